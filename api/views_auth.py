"""Login endpoints: two-phase QR + PIN, and password login for demo accounts."""

from django.http import JsonResponse

from core.access import require_roles
from core.auth import password_login

from .views_common import json_view, qr_login, read_json, user_to_dict


@json_view("POST")
def qr_scan(request):
	"""
	POST: Phase 1 of QR login. Body {"qrData": "..."} → identity + challenge for phase 2
	"""
	body = read_json(request)
	resolved = qr_login().scan(body.get("qrData"))
	return JsonResponse({
		"success": True,
		"userId": resolved.user_id,
		"name": resolved.name,
		"challenge": resolved.challenge,
		"message": "QR code verified. Please enter PIN.",
	})


@json_view("POST")
def qr_verify(request):
	"""
	POST: Phase 2 of QR login. Body {"challenge": "...", "pin": "1234", "userId": optional}
	"""
	body = read_json(request)
	result = qr_login().verify_pin(body.get("challenge"), body.get("pin"), user_id=body.get("userId"))
	return JsonResponse({"success": True, "token": result.token, "user": user_to_dict(result.user)})


@json_view("POST")
def login(request):
	"""
	POST: ID + password login. Body {"id": "STU001", "password": "..."}
	"""
	body = read_json(request)
	result = password_login(body.get("id"), body.get("password"))
	return JsonResponse({
		"success": True,
		"token": result.token,
		"user": user_to_dict(result.user),
		"message": f"Welcome back, {result.user.name}!",
	})


@json_view("GET")
@require_roles()
def me(request):
	"""
	GET: The authenticated caller's profile and order count
	"""
	user = request.caller.user
	data = user_to_dict(user)
	data["totalOrders"] = user.orders.count()
	return JsonResponse(data)

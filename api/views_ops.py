"""Endpoints that change state: orders, kitchen workflow, wallet, accounts, catalog."""

import hmac, hashlib
import logging

from django.conf import settings
from django.http import JsonResponse

from core.access import ADMIN_ROLES, STAFF_ROLES, require_roles
from core.constants import Role
from core.exceptions import Forbidden, InvalidCart

from .views_common import (
	item_to_dict, json_view, money, order_to_dict, read_json, services, tx_to_dict, user_to_dict,
)

logger = logging.getLogger(__name__)


# --- Orders --------------------------------------------------------------------

@json_view("GET", "POST")
def orders(request):
	"""
	POST: Place an order paid from the caller's wallet. Body {"items": [{"itemId": 1, "quantity": 2}, ...]}
	GET:  Kitchen queue (staff/admin), optional ?status=PENDING
	"""
	if request.method == "POST":
		return _place_order(request)
	return _list_orders(request)


@require_roles()
def _place_order(request):
	body = read_json(request)
	items = body.get("items")
	if not isinstance(items, list):
		raise InvalidCart("items must be a list")
	lines = []
	for line in items:
		if not isinstance(line, dict):
			raise InvalidCart("Each line needs itemId and quantity")
		lines.append({"item_id": line.get("itemId", line.get("item_id")), "quantity": line.get("quantity")})

	placed = services().coordinator.place_order(request.caller.user.pk, lines)
	return JsonResponse({
		"success": True,
		"order": order_to_dict(placed.order),
		"newBalance": money(placed.new_balance),
		"message": "Order placed successfully",
	}, status=201)


@require_roles(*STAFF_ROLES)
def _list_orders(request):
	qs = services().workflow.list_orders(request.caller.role, status=request.GET.get("status") or None)
	return JsonResponse([order_to_dict(o, include_user=True) for o in qs[:200]], safe=False)


@json_view("PUT", "POST")
@require_roles()
def order_status(request, order_id: int):
	"""
	PUT: Move an order to the next kitchen status. Body {"status": "PREPARING"}
	"""
	body = read_json(request)
	order = services().workflow.advance_order(order_id, request.caller.role, body.get("status"))
	order = services().workflow.get_order(order.pk, request.caller.user)
	return JsonResponse({"success": True, "order": order_to_dict(order, include_user=True)})


# --- Wallet --------------------------------------------------------------------

@json_view("POST")
@require_roles(*ADMIN_ROLES)
def wallet_recharge(request):
	"""
	POST: Admin top-up. Body {"userId": "STU001", "amount": "200.00", "description": optional}
	"""
	body = read_json(request)
	user, tx = services().ledger.recharge(
		body.get("userId"), body.get("amount"), body.get("description") or "Admin wallet recharge",
	)
	return JsonResponse({"success": True, "newBalance": money(user.wallet_balance), "transaction": tx_to_dict(tx)})


@json_view("POST")
@require_roles()
def upi_request(request):
	"""
	POST: Build a UPI payment link + QR for a self-service recharge. Body {"amount": "100"}
	"""
	body = read_json(request)
	req = services().ledger.payment_request(request.caller.user, body.get("amount"))
	return JsonResponse({
		"success": True,
		"transactionId": req["transaction_id"],
		"amount": money(req["amount"]),
		"upiLink": req["upi_link"],
		"qrCode": req["qr_code"],
		"instructions": "Scan this QR code with any UPI app to recharge your wallet",
	})


def _hmac_valid(raw_body: bytes, provided_sig: str, secret: str) -> bool:
	mac = hmac.new(key=secret.encode("utf-8"), msg=raw_body, digestmod=hashlib.sha256)
	return hmac.compare_digest(mac.hexdigest(), provided_sig or "")


@json_view("POST")
def verify_payment(request):
	"""
	POST: Payment gateway callback.
	Body {"transactionId": "...", "amount": "100.00", "userId": "STU001", "status": "SUCCESS" | "FAILED"}
	When UPI_WEBHOOK_SECRET is set the raw body must carry a matching X-Signature (hex HMAC-SHA256).
	"""
	secret = settings.UPI_WEBHOOK_SECRET
	if secret and not _hmac_valid(request.body or b"", request.headers.get("X-Signature", ""), secret):
		raise Forbidden("Bad signature")

	body = read_json(request)
	user = services().accounts.get_user(body.get("userId"))
	tx = services().ledger.verify_payment(user.pk, body.get("transactionId"), body.get("amount"), body.get("status"))
	if tx.status != "SUCCESS":
		return JsonResponse({"success": False, "error": "payment_failed", "transaction": tx_to_dict(tx)}, status=400)
	return JsonResponse({
		"success": True,
		"newBalance": money(services().ledger.balance(user.pk)),
		"transaction": tx_to_dict(tx),
	})


# --- Accounts ------------------------------------------------------------------

@json_view("GET", "POST")
@require_roles(*ADMIN_ROLES)
def users(request):
	"""
	GET:  All users with their order counts, optional ?role=STAFF
	POST: Register a user. Body {"name", "email", "pin", "role"?, "phone"?, "password"?}
	"""
	if request.method == "GET":
		qs = services().accounts.list_users(role=request.GET.get("role") or None)
		return JsonResponse([dict(user_to_dict(u), orderCount=u.order_count) for u in qs], safe=False)

	body = read_json(request)
	user = services().accounts.register_user(
		name=body.get("name"),
		email=body.get("email"),
		pin=body.get("pin"),
		role=body.get("role") or Role.USER,
		phone=body.get("phone") or "",
		password=body.get("password"),
	)
	return JsonResponse({"success": True, "user": user_to_dict(user)}, status=201)


@json_view("PUT", "DELETE")
@require_roles(*ADMIN_ROLES)
def user_detail(request, user_id: str):
	"""
	PUT: Update name / email / phone / isActive / pin
	DELETE: Remove a user that has no order or wallet history
	"""
	if request.method == "DELETE":
		services().accounts.delete_user(user_id)
		return JsonResponse({"success": True})

	body = read_json(request)
	fields = {k: body[src] for src, k in (
		("name", "name"), ("email", "email"), ("phone", "phone"), ("isActive", "is_active"), ("pin", "pin"),
	) if src in body}
	user = services().accounts.update_user(user_id, **fields)
	return JsonResponse({"success": True, "user": user_to_dict(user)})


@json_view("POST")
@require_roles(*ADMIN_ROLES)
def user_qr(request, user_id: str):
	"""
	POST: Render the user's login QR and email it
	"""
	result = services().accounts.send_qr(user_id)
	return JsonResponse({
		"success": True,
		"qrCode": result["qr_code"],
		"emailSent": result["email_sent"],
		"message": "QR code generated and sent to email" if result["email_sent"] else "QR code generated but email failed",
	})


# --- Catalog -------------------------------------------------------------------

@json_view("GET", "POST")
def items(request):
	"""
	GET:  All items (any role), optional ?categoryId=
	POST: Create an item (admin). Body {"name", "price", "categoryId", "description"?, "image"?}
	"""
	if request.method == "POST":
		return _create_item(request)
	return _list_items(request)


@require_roles()
def _list_items(request):
	qs = services().catalog.items(category_id=request.GET.get("categoryId") or None)
	return JsonResponse([item_to_dict(i) for i in qs], safe=False)


@require_roles(*ADMIN_ROLES)
def _create_item(request):
	body = read_json(request)
	item = services().catalog.create_item(
		name=body.get("name"),
		price=body.get("price"),
		category_id=body.get("categoryId"),
		description=body.get("description") or "",
		image=body.get("image") or "",
	)
	return JsonResponse({"success": True, "item": item_to_dict(item)}, status=201)


@json_view("PUT", "DELETE")
@require_roles(*ADMIN_ROLES)
def item_detail(request, item_id: int):
	"""
	PUT: Edit an item. Body with any of {"name", "description", "image", "price", "categoryId", "isAvailable"}
	DELETE: Remove an item; one with order history is only taken off the menu
	"""
	if request.method == "DELETE":
		deleted = services().catalog.delete_item(item_id)
		return JsonResponse({
			"success": True,
			"deleted": deleted,
			"message": "Item deleted successfully" if deleted else "Item has order history and was marked unavailable",
		})

	body = read_json(request)
	item = services().catalog.update_item(
		item_id,
		name=body.get("name"),
		description=body.get("description"),
		image=body.get("image"),
		price=body.get("price"),
		category_id=body.get("categoryId"),
		is_available=body.get("isAvailable"),
	)
	return JsonResponse({"success": True, "item": item_to_dict(item)})


@json_view("POST")
@require_roles(*ADMIN_ROLES)
def categories(request):
	body = read_json(request)
	category = services().catalog.create_category(body.get("name"), body.get("image") or "")
	return JsonResponse({"success": True, "category": {"id": category.id, "name": category.name, "image": category.image}}, status=201)

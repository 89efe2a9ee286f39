"""Shared plumbing for the JSON views: error mapping, body parsing, serializers."""

import functools
import json
import logging

from django.apps import apps
from django.core.exceptions import ValidationError
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt

from core.exceptions import CanteenError, InvalidInput

logger = logging.getLogger(__name__)


def services():
	return apps.get_app_config("core").services


def qr_login():
	return apps.get_app_config("core").qr_login


def json_view(*methods):
	"""
	Restrict a view to ``methods`` and render CanteenError subclasses as
	{"error": code, "message": ...} with their HTTP status.
	"""
	def decorator(view):
		@functools.wraps(view)
		def wrapper(request, *args, **kwargs):
			if methods and request.method not in methods:
				return JsonResponse({"error": "method_not_allowed", "message": f"{'/'.join(methods)} only"}, status=405)
			try:
				return view(request, *args, **kwargs)
			except CanteenError as e:
				return JsonResponse(e.as_dict(), status=e.http_status)
			except ValidationError as e:
				# Malformed ids (e.g. a non-UUID user id) surface from the ORM as ValidationError
				return JsonResponse({"error": "invalid_input", "message": "; ".join(e.messages)}, status=400)
			except Exception:
				# Don't leak internals; log exception server-side
				logger.exception("Unhandled error in %s", view.__name__)
				return JsonResponse({"error": "server_error", "message": "Internal error"}, status=500)
		return csrf_exempt(wrapper)
	return decorator


def read_json(request) -> dict:
	try:
		body = json.loads(request.body or b"{}")
	except (ValueError, UnicodeDecodeError):
		raise InvalidInput("Invalid JSON")
	if not isinstance(body, dict):
		raise InvalidInput("JSON object expected")
	return body


def money(value) -> str:
	return f"{value:.2f}"


# --- serializers ---------------------------------------------------------------

def user_to_dict(user) -> dict:
	return {
		"id": str(user.id),
		"userId": user.user_id,
		"name": user.name,
		"email": user.email,
		"phone": user.phone,
		"role": user.role,
		"walletBalance": money(user.wallet_balance),
		"isActive": user.is_active,
		"createdAt": user.created_at.isoformat() if user.created_at else None,
	}


def item_to_dict(item) -> dict:
	return {
		"id": item.id,
		"name": item.name,
		"description": item.description,
		"price": money(item.price),
		"image": item.image,
		"isAvailable": item.is_available,
		"categoryId": item.category_id,
	}


def order_to_dict(order, include_user: bool = False) -> dict:
	data = {
		"id": order.id,
		"orderNumber": order.order_number,
		"tokenNumber": order.token_number,
		"status": order.status,
		"totalAmount": money(order.total_amount),
		"createdAt": order.created_at.isoformat(),
		"updatedAt": order.updated_at.isoformat(),
		"orderItems": [
			{
				"itemId": oi.item_id,
				"name": oi.item.name,
				"quantity": oi.quantity,
				"price": money(oi.price),
				"lineTotal": money(oi.line_total),
			}
			for oi in order.order_items.all()
		],
	}
	if include_user:
		data["user"] = {"userId": order.user.user_id, "name": order.user.name}
	return data


def tx_to_dict(tx) -> dict:
	return {
		"id": str(tx.id),
		"amount": money(tx.amount),
		"type": tx.type,
		"status": tx.status,
		"description": tx.description,
		"paymentMethod": tx.payment_method or None,
		"transactionId": tx.transaction_id or None,
		"orderId": tx.order_id,
		"createdAt": tx.created_at.isoformat(),
	}

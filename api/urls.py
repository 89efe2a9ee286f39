"""Public API surface of the canteen service.

- /auth/*: QR + PIN login (two phases) and password login
- /menu, /items, /categories: catalog
- /orders: place (any user), kitchen queue and status moves (staff/admin)
- /wallet/*: balance, history, admin recharge, UPI recharge + gateway callback
- /users: account administration (admin)
"""

from django.urls import path
from .views_auth import qr_scan, qr_verify, login, me
from .views_ops import (
	orders, order_status, wallet_recharge, upi_request, verify_payment, users, user_detail, user_qr, items, item_detail,
	categories,
)
from .views_read import health, menu, my_orders, order_detail, wallet_balance, wallet_transactions, debug_summary


urlpatterns = [
	path("health", health),
	path("auth/qr/scan", qr_scan),
	path("auth/qr/verify", qr_verify),
	path("auth/login", login),
	path("me", me),
	path("menu", menu),
	path("items", items),
	path("items/<int:item_id>", item_detail),
	path("categories", categories),
	path("orders", orders),
	path("orders/mine", my_orders),
	path("orders/<int:order_id>", order_detail),
	path("orders/<int:order_id>/status", order_status),
	path("wallet/balance", wallet_balance),
	path("wallet/transactions", wallet_transactions),
	path("wallet/recharge", wallet_recharge),
	path("wallet/upi-request", upi_request),
	path("wallet/verify-payment", verify_payment),
	path("users", users),
	path("users/<str:user_id>", user_detail),
	path("users/<str:user_id>/qr", user_qr),
	path("debug/summary", debug_summary, name="debug_summary"),
]

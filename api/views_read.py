"""Read-only endpoints: menu, order history, wallet state, consistency summary."""

from django.http import JsonResponse

from core.access import ADMIN_ROLES, require_roles

from .views_common import item_to_dict, json_view, money, order_to_dict, services, tx_to_dict


def health(request):
	return JsonResponse({"ok": True})


@json_view("GET")
@require_roles()
def menu(request):
	"""
	GET: Active categories with their available items
	"""
	data = [
		{
			"id": c.id,
			"name": c.name,
			"image": c.image,
			"items": [item_to_dict(i) for i in c.items.all()],
		}
		for c in services().resolver.menu()
	]
	return JsonResponse(data, safe=False)


@json_view("GET")
@require_roles()
def my_orders(request):
	"""
	GET: The caller's orders, newest first
	"""
	orders = services().workflow.orders_for_user(request.caller.user.pk)
	return JsonResponse([order_to_dict(o) for o in orders], safe=False)


@json_view("GET")
@require_roles()
def order_detail(request, order_id: int):
	order = services().workflow.get_order(order_id, request.caller.user)
	return JsonResponse(order_to_dict(order, include_user=True))


@json_view("GET")
@require_roles()
def wallet_balance(request):
	return JsonResponse({"balance": money(services().ledger.balance(request.caller.user.pk))})


@json_view("GET")
@require_roles()
def wallet_transactions(request):
	"""
	GET: Last 50 wallet transactions of the caller (including FAILED attempts)
	"""
	rows = services().ledger.transactions(request.caller.user.pk, limit=50)
	return JsonResponse([tx_to_dict(t) for t in rows], safe=False)


@json_view("GET")
@require_roles(*ADMIN_ROLES)
def debug_summary(request):
	"""
	GET: Wallet balances vs SUCCESS ledger rows. ``mismatches`` should always be empty.
	"""
	mismatches = services().ledger.audit()
	return JsonResponse({
		"consistent": not mismatches,
		"mismatches": [
			{
				"userId": m["user_id"],
				"walletBalance": money(m["wallet_balance"]),
				"ledgerTotal": money(m["ledger_total"]),
			}
			for m in mismatches
		],
		"notes": "walletBalance should equal ledgerTotal for every user when everything is consistent.",
	})

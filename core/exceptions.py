"""Application errors raised by the canteen core.

Each error carries a stable ``code`` and the HTTP status the API layer maps it to,
so views can render any of them with one handler.
"""

from decimal import Decimal


class CanteenError(Exception):
	code = "error"
	http_status = 400

	def __init__(self, message: str = ""):
		super().__init__(message or self.code)
		self.message = message or self.code

	def as_dict(self) -> dict:
		return {"error": self.code, "message": self.message}


class InvalidInput(CanteenError):
	code = "invalid_input"


class InvalidCart(InvalidInput):
	code = "invalid_cart"


class InvalidAmount(InvalidInput):
	code = "invalid_amount"


class NotFound(CanteenError):
	code = "not_found"
	http_status = 404


class UserInactive(NotFound):
	code = "user_inactive"


class DuplicateUser(CanteenError):
	code = "duplicate_user"
	http_status = 409


class ItemUnavailable(CanteenError):
	"""
	A cart line references an item that is missing or switched off.
	"""
	code = "item_unavailable"
	http_status = 409

	def __init__(self, item_id, item_name: str | None = None):
		label = item_name or "unknown"
		super().__init__(f"Item {label} is not available")
		self.item_id = item_id
		self.item_name = item_name

	def as_dict(self) -> dict:
		data = super().as_dict()
		data["item_id"] = self.item_id
		return data


class InsufficientFunds(CanteenError):
	"""
	Wallet balance below the amount to debit. ``shortfall`` is what the user
	still has to top up.
	"""
	code = "insufficient_funds"
	http_status = 402

	def __init__(self, balance: Decimal, required: Decimal):
		self.balance = balance
		self.required = required
		self.shortfall = required - balance
		super().__init__(f"Insufficient wallet balance: need {required:.2f}, have {balance:.2f}")

	def as_dict(self) -> dict:
		data = super().as_dict()
		data.update({
			"balance": f"{self.balance:.2f}",
			"required": f"{self.required:.2f}",
			"shortfall": f"{self.shortfall:.2f}",
		})
		return data


class InvalidTransition(CanteenError):
	code = "invalid_transition"
	http_status = 409

	def __init__(self, current: str, target: str):
		super().__init__(f"Cannot move order from {current} to {target}")
		self.current = current
		self.target = target


class Unauthorized(CanteenError):
	code = "unauthorized"
	http_status = 401


class Forbidden(CanteenError):
	code = "forbidden"
	http_status = 403


class PaymentConflict(CanteenError):
	"""
	A payment reference that was already credited for another user or amount.
	"""
	code = "payment_conflict"
	http_status = 409


class TooManyAttempts(CanteenError):
	code = "too_many_attempts"
	http_status = 429

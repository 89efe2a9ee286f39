"""Business orchestration for the canteen.

This module coordinates: menu resolution → order placement (wallet debit) → kitchen
workflow, plus wallet recharges and account / catalog administration.
Every balance mutation goes through WalletLedger inside transaction.atomic, and the
order placement runs as one atomic unit so no partial order can ever be stored.
"""

import logging
import secrets
import time
from dataclasses import dataclass
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import validate_email
from django.db import transaction, IntegrityError, OperationalError
from django.db.models import Count, F, Q, Sum, Value, DecimalField, Prefetch
from django.db.models.functions import Coalesce
from django.utils import timezone

from .access import STAFF_ROLES, ensure_role
from .adapters.email_adapter import EmailAdapter
from .adapters.qr_adapter import QRAdapter
from .adapters.upi_adapter import UPIAdapter
from .constants import (
	ORDER_TRANSITIONS, USER_ID_PREFIXES, OrderStatus, PaymentMethod, Role, TransactionStatus, TransactionType, to_money,
)
from .exceptions import (
	DuplicateUser, InsufficientFunds, InvalidAmount, InvalidCart, InvalidInput, InvalidTransition, ItemUnavailable,
	NotFound, PaymentConflict, UserInactive,
)
from .models import Category, Item, Order, OrderItem, User, WalletTransaction, gen_order_number, gen_qr_code

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")
ORDER_NUMBER_ATTEMPTS = 5
TOKEN_NUMBER_ATTEMPTS = 5


def gen_token_number() -> str:
	"""
	Kitchen call-out ticket: T + local HHMM + two random digits (e.g. T123407)
	"""
	return f"T{timezone.localtime():%H%M}{secrets.randbelow(100):02d}"


def run_in_transaction(fn, *, using="default", retries=None):
	"""
	Run ``fn`` inside transaction.atomic, retrying transient database failures
	(lock timeouts, serialization failures) a bounded number of times.

	Retries only happen at the outermost boundary: inside an enclosing atomic block the
	failed transaction belongs to the caller, so the error is raised straight away.
	"""
	attempts = settings.CANTEEN_TX_RETRIES if retries is None else retries
	if transaction.get_connection(using).in_atomic_block:
		attempts = 1
	attempts = max(1, attempts)

	for attempt in range(1, attempts + 1):
		try:
			with transaction.atomic(using=using):
				return fn()
		except OperationalError as e:
			if attempt == attempts:
				raise
			logger.warning("Transient database error (attempt %s/%s): %s", attempt, attempts, e)
			time.sleep(0.05 * attempt)


# --- Value objects -------------------------------------------------------------

@dataclass(frozen=True)
class CartLine:
	item_id: int
	quantity: int


@dataclass(frozen=True)
class ResolvedItem:
	item_id: int
	name: str
	price: Decimal
	is_available: bool


@dataclass(frozen=True)
class PricedLine:
	item_id: int
	name: str
	quantity: int
	unit_price: Decimal

	@property
	def line_total(self) -> Decimal:
		return self.unit_price * self.quantity


@dataclass(frozen=True)
class PlacedOrder:
	order: Order
	new_balance: Decimal


# --- Pricing & availability ----------------------------------------------------

class MenuResolver:
	"""
	Read-only lookups over the catalog. Nothing here writes, so every call is safe to retry.
	"""

	def __init__(self, using: str = "default"):
		self.using = using

	def resolve(self, item_ids) -> dict:
		"""
		Batch-fetch items. Returns {item_id: ResolvedItem} with ``None`` for ids that do not exist.
		"""
		ids = {int(i) for i in item_ids}
		rows = Item.objects.using(self.using).filter(pk__in=ids).values("id", "name", "price", "is_available")
		found = {
			r["id"]: ResolvedItem(item_id=r["id"], name=r["name"], price=r["price"], is_available=r["is_available"])
			for r in rows
		}
		return {i: found.get(i) for i in sorted(ids)}

	def resolve_lines(self, lines) -> list:
		"""
		Price each cart line at the item's current price. The first missing or unavailable
		item rejects the whole cart.
		"""
		resolved = self.resolve(line.item_id for line in lines)
		priced = []
		for line in lines:
			item = resolved.get(line.item_id)
			if item is None or not item.is_available:
				raise ItemUnavailable(line.item_id, item.name if item else None)
			priced.append(PricedLine(item_id=item.item_id, name=item.name, quantity=line.quantity, unit_price=item.price))
		return priced

	def menu(self):
		"""
		Active categories with their available items, for the ordering screen
		"""
		available = Item.objects.using(self.using).filter(is_available=True).order_by("name")
		return (
			Category.objects.using(self.using)
			.filter(is_active=True)
			.prefetch_related(Prefetch("items", queryset=available))
			.order_by("name")
		)


# --- Wallet ledger -------------------------------------------------------------

class WalletLedger:
	"""
	The only writer of User.wallet_balance and WalletTransaction. Each successful balance
	change and its SUCCESS ledger row are written in the same transaction, so the balance
	always equals the sum of the user's SUCCESS rows.
	"""

	def __init__(self, using: str = "default", retries=None):
		self.using = using
		self.retries = retries

	def _users(self):
		return User.objects.using(self.using)

	def _txs(self):
		return WalletTransaction.objects.using(self.using)

	@staticmethod
	def _positive(amount) -> Decimal:
		try:
			value = to_money(amount)
		except ValueError as e:
			raise InvalidAmount(str(e))
		if value <= 0:
			raise InvalidAmount("Amount must be > 0")
		return value

	def credit(self, user_pk, amount, description: str, payment_method: str = "", transaction_id: str = "") -> WalletTransaction:
		value = self._positive(amount)

		def _credit():
			updated = self._users().filter(pk=user_pk).update(wallet_balance=F("wallet_balance") + value)
			if not updated:
				raise NotFound("User not found")
			return self._txs().create(
				user_id=user_pk,
				amount=value,
				type=TransactionType.CREDIT,
				description=description,
				status=TransactionStatus.SUCCESS,
				payment_method=payment_method,
				transaction_id=transaction_id,
			)

		tx = run_in_transaction(_credit, using=self.using, retries=self.retries)
		logger.info("Credited %s to user %s (%s)", value, user_pk, payment_method or "manual")
		return tx

	def debit(self, user_pk, amount, description: str, order: Order | None = None) -> WalletTransaction:
		value = self._positive(amount)

		def _debit():
			# Compare-and-swap: the row only changes if the balance still covers the amount
			updated = (
				self._users()
				.filter(pk=user_pk, wallet_balance__gte=value)
				.update(wallet_balance=F("wallet_balance") - value)
			)
			if not updated:
				balance = self._users().filter(pk=user_pk).values_list("wallet_balance", flat=True).first()
				if balance is None:
					raise NotFound("User not found")
				raise InsufficientFunds(balance, value)
			return self._txs().create(
				user_id=user_pk,
				amount=-value,
				type=TransactionType.DEBIT,
				description=description,
				status=TransactionStatus.SUCCESS,
				payment_method=PaymentMethod.WALLET,
				order=order,
			)

		tx = run_in_transaction(_debit, using=self.using, retries=self.retries)
		logger.info("Debited %s from user %s", value, user_pk)
		return tx

	def record_failed_payment(self, user_pk, amount, description: str, payment_method: str = "", transaction_id: str = "") -> WalletTransaction:
		"""
		Audit row for a payment that did not go through. The balance is not touched.
		"""
		value = self._positive(amount)
		if not self._users().filter(pk=user_pk).exists():
			raise NotFound("User not found")
		tx = self._txs().create(
			user_id=user_pk,
			amount=value,
			type=TransactionType.CREDIT,
			description=description,
			status=TransactionStatus.FAILED,
			payment_method=payment_method,
			transaction_id=transaction_id,
		)
		logger.warning("Recorded failed %s payment %s for user %s", payment_method or "external", transaction_id, user_pk)
		return tx

	def balance(self, user_pk) -> Decimal:
		balance = self._users().filter(pk=user_pk).values_list("wallet_balance", flat=True).first()
		if balance is None:
			raise NotFound("User not found")
		return balance

	def transactions(self, user_pk, limit: int = 50):
		return list(self._txs().filter(user_id=user_pk).order_by("-created_at")[:limit])

	def ledger_total(self, user_pk) -> Decimal:
		total = self._txs().filter(user_id=user_pk, status=TransactionStatus.SUCCESS).aggregate(s=Sum("amount"))["s"]
		return total if total is not None else ZERO

	def reconcile(self, user_pk) -> dict:
		balance = self.balance(user_pk)
		total = self.ledger_total(user_pk)
		return {"balance": balance, "ledger_total": total, "consistent": balance == total}

	def audit(self):
		"""
		Users whose stored balance disagrees with their SUCCESS ledger rows
		"""
		money = DecimalField(max_digits=12, decimal_places=2)
		rows = self._users().annotate(
			ledger_total=Coalesce(
				Sum("wallet_transactions__amount", filter=Q(wallet_transactions__status=TransactionStatus.SUCCESS)),
				Value(ZERO, output_field=money),
				output_field=money,
			)
		).values("user_id", "wallet_balance", "ledger_total")
		return [r for r in rows if r["wallet_balance"] != r["ledger_total"]]

	# --- recharge paths ---

	def recharge(self, user_id: str, amount, description: str = "Admin wallet recharge") -> tuple:
		"""
		Admin top-up addressed by the human-facing user id (STU001). Returns (user, tx).
		"""
		value = self._positive(amount)
		if value > settings.CANTEEN_MAX_RECHARGE:
			raise InvalidAmount(f"Recharge above {settings.CANTEEN_MAX_RECHARGE:.2f} is not allowed")
		user = self._users().filter(user_id=user_id).first()
		if user is None:
			raise NotFound("User not found")
		tx = self.credit(user.pk, value, description, payment_method=PaymentMethod.ADMIN_RECHARGE)
		user.refresh_from_db(fields=["wallet_balance"])
		return user, tx

	def payment_request(self, user: User, amount) -> dict:
		"""
		Build a UPI deep link (and its QR) the user pays from their UPI app
		"""
		value = self._positive(amount)
		if value > settings.CANTEEN_MAX_RECHARGE:
			raise InvalidAmount(f"Recharge above {settings.CANTEEN_MAX_RECHARGE:.2f} is not allowed")
		transaction_id = UPIAdapter.new_transaction_id(user.user_id)
		link = UPIAdapter.payment_link(value, transaction_id)
		return {
			"transaction_id": transaction_id,
			"amount": value,
			"upi_link": link,
			"qr_code": QRAdapter.to_data_url(link),
		}

	def verify_payment(self, user_pk, transaction_id: str, amount, status: str) -> WalletTransaction:
		"""
		Apply a gateway callback. SUCCESS credits the wallet once per transaction id (repeated
		callbacks return the original row); anything else is recorded as a FAILED attempt.
		"""
		if not transaction_id:
			raise InvalidInput("transaction_id required")
		if str(status).upper() != TransactionStatus.SUCCESS:
			return self.record_failed_payment(
				user_pk, amount, "Failed UPI wallet recharge", payment_method=PaymentMethod.UPI, transaction_id=transaction_id,
			)

		value = self._positive(amount)
		existing = self._credited_payment(transaction_id)
		if existing is None:
			try:
				return self.credit(user_pk, value, "UPI wallet recharge", payment_method=PaymentMethod.UPI, transaction_id=transaction_id)
			except IntegrityError:
				# A concurrent callback credited the same transaction_id first
				existing = self._credited_payment(transaction_id)
				if existing is None:
					raise
		if str(existing.user_id) != str(user_pk) or existing.amount != value:
			logger.warning("Payment %s replayed for user %s with amount %s", transaction_id, user_pk, value)
			raise PaymentConflict(f"Transaction {transaction_id} was already credited for a different payment")
		return existing

	def _credited_payment(self, transaction_id: str) -> WalletTransaction | None:
		return self._txs().filter(transaction_id=transaction_id, status=TransactionStatus.SUCCESS).first()


# --- Order placement -----------------------------------------------------------

class OrderCoordinator:
	"""
	Turns a cart into Order + OrderItems + a wallet debit, all or nothing.

	Order (inside one transaction): resolve items → price → lock user row → funds check →
	create order + items → ledger debit. Any failure rolls the whole unit back.
	"""

	def __init__(self, ledger: WalletLedger, resolver: MenuResolver, using: str = "default",
				 max_line_quantity=None, retries=None, order_number_factory=gen_order_number,
				 token_number_factory=gen_token_number):
		self.ledger = ledger
		self.resolver = resolver
		self.using = using
		self.max_line_quantity = max_line_quantity or settings.CANTEEN_MAX_LINE_QUANTITY
		self.retries = retries
		self.order_number_factory = order_number_factory
		self.token_number_factory = token_number_factory

	def normalize_cart(self, lines) -> list:
		if not lines or isinstance(lines, (str, bytes, dict)):
			raise InvalidCart("Order must contain at least one item")
		cart = []
		for raw in lines:
			if isinstance(raw, CartLine):
				item_id, quantity = raw.item_id, raw.quantity
			elif isinstance(raw, dict):
				item_id, quantity = raw.get("item_id"), raw.get("quantity")
			else:
				raise InvalidCart("Each line needs item_id and quantity")
			if isinstance(quantity, bool) or not isinstance(quantity, int):
				raise InvalidCart("Quantity must be a whole number")
			if not 1 <= quantity <= self.max_line_quantity:
				raise InvalidCart(f"Quantity must be between 1 and {self.max_line_quantity}")
			try:
				item_id = int(item_id)
			except (TypeError, ValueError):
				raise InvalidCart("Each line needs a valid item_id")
			cart.append(CartLine(item_id=item_id, quantity=quantity))
		return cart

	def place_order(self, user_pk, lines) -> PlacedOrder:
		cart = self.normalize_cart(lines)
		try:
			placed = run_in_transaction(lambda: self._place(user_pk, cart), using=self.using, retries=self.retries)
		except (ItemUnavailable, InsufficientFunds) as e:
			logger.warning("Order rejected for user %s: %s", user_pk, e)
			raise
		logger.info(
			"Order %s placed by user %s: total=%s token=%s",
			placed.order.order_number, user_pk, placed.order.total_amount, placed.order.token_number,
		)
		return placed

	def _place(self, user_pk, cart) -> PlacedOrder:
		priced = self.resolver.resolve_lines(cart)
		total = sum((line.line_total for line in priced), ZERO)

		# Serializes concurrent orders of the same user until commit
		user = User.objects.using(self.using).select_for_update().filter(pk=user_pk).first()
		if user is None:
			raise NotFound("User not found")
		if not user.is_active:
			raise UserInactive("User inactive")
		if user.wallet_balance < total:
			raise InsufficientFunds(user.wallet_balance, total)

		order = self._create_order(user, total)
		OrderItem.objects.using(self.using).bulk_create([
			OrderItem(order=order, item_id=line.item_id, quantity=line.quantity, price=line.unit_price)
			for line in priced
		])
		self.ledger.debit(user.pk, total, f"Order payment - {order.order_number}", order=order)
		return PlacedOrder(order=order, new_balance=self.ledger.balance(user.pk))

	def _create_order(self, user: User, total: Decimal) -> Order:
		token_number = self._token_number()
		for attempt in range(1, ORDER_NUMBER_ATTEMPTS + 1):
			try:
				with transaction.atomic(using=self.using):
					return Order.objects.using(self.using).create(
						order_number=self.order_number_factory(),
						user=user,
						total_amount=total,
						token_number=token_number,
						status=OrderStatus.PENDING,
					)
			except IntegrityError:
				# order_number collision; the savepoint keeps the outer transaction usable
				if attempt == ORDER_NUMBER_ATTEMPTS:
					raise
				logger.warning("Order number collision, regenerating (attempt %s)", attempt)

	def _token_number(self) -> str:
		today = Order.objects.using(self.using).filter(created_at__date=timezone.localdate())
		token = self.token_number_factory()
		for _ in range(TOKEN_NUMBER_ATTEMPTS - 1):
			if not today.filter(token_number=token).exists():
				break
			token = self.token_number_factory()
		return token


# --- Kitchen workflow ----------------------------------------------------------

class OrderWorkflow:
	"""
	PENDING → PREPARING → READY → DELIVERED, with CANCELLED reachable from PENDING and
	PREPARING. Only staff and admins move orders; every move must be a legal successor.
	Cancelling does not refund the wallet.
	"""

	def __init__(self, using: str = "default"):
		self.using = using

	@staticmethod
	def next_statuses(status: str) -> tuple:
		return ORDER_TRANSITIONS[OrderStatus(status)]

	def _orders(self):
		return Order.objects.using(self.using)

	def advance_order(self, order_id, caller_role: str, target_status: str) -> Order:
		ensure_role(caller_role, STAFF_ROLES)
		if target_status not in OrderStatus.values:
			raise InvalidInput(f"Unknown status {target_status!r}")

		with transaction.atomic(using=self.using):
			order = self._orders().select_for_update().filter(pk=order_id).first()
			if order is None:
				raise NotFound("Order not found")
			previous = order.status
			if target_status not in self.next_statuses(previous):
				raise InvalidTransition(previous, target_status)
			order.status = target_status
			order.save(update_fields=["status", "updated_at"])

		logger.info("Order %s moved %s -> %s", order.order_number, previous, target_status)
		return order

	def get_order(self, order_id, caller_user: User) -> Order:
		"""
		Owners see their own orders; staff and admins see all
		"""
		order = self._orders().select_related("user").prefetch_related("order_items__item").filter(pk=order_id).first()
		if order is None or (caller_user.role not in STAFF_ROLES and order.user_id != caller_user.pk):
			raise NotFound("Order not found")
		return order

	def list_orders(self, caller_role: str, status: str | None = None):
		ensure_role(caller_role, STAFF_ROLES)
		qs = self._orders().select_related("user").prefetch_related("order_items__item").order_by("-created_at")
		if status:
			if status not in OrderStatus.values:
				raise InvalidInput(f"Unknown status {status!r}")
			qs = qs.filter(status=status)
		return qs

	def orders_for_user(self, user_pk):
		return (
			self._orders().filter(user_id=user_pk)
			.prefetch_related("order_items__item")
			.order_by("-created_at")
		)


# --- Accounts & catalog --------------------------------------------------------

class AccountServices:
	"""
	Registration and profile maintenance. The wallet balance is never touched here.
	"""

	def __init__(self, using: str = "default"):
		self.using = using

	def _users(self):
		return User.objects.using(self.using)

	@staticmethod
	def _validate_pin(pin) -> str:
		pin = str(pin or "")
		if len(pin) != 4 or not pin.isdigit():
			raise InvalidInput("PIN must be exactly 4 digits")
		return pin

	@staticmethod
	def _validate_name(name) -> str:
		name = (name or "").strip()
		if not 2 <= len(name) <= 100:
			raise InvalidInput("Name must be between 2 and 100 characters")
		return name

	@staticmethod
	def _validate_email(email) -> str:
		email = (email or "").strip().lower()
		try:
			validate_email(email)
		except ValidationError:
			raise InvalidInput("Please provide a valid email")
		return email

	def _next_user_id(self, role: str) -> str:
		prefix = USER_ID_PREFIXES[Role(role)]
		taken = self._users().filter(user_id__startswith=prefix).values_list("user_id", flat=True)
		numbers = [int(u[len(prefix):]) for u in taken if u[len(prefix):].isdigit()]
		return f"{prefix}{max(numbers, default=0) + 1:03d}"

	def register_user(self, name: str, email: str, pin: str, role: str = Role.USER, phone: str = "",
					  password: str | None = None) -> User:
		name = self._validate_name(name)
		email = self._validate_email(email)
		pin = self._validate_pin(pin)
		if role not in Role.values:
			raise InvalidInput("Role must be USER, STAFF, or ADMIN")
		if self._users().filter(email=email).exists():
			raise DuplicateUser("Email already exists")

		for attempt in range(1, 4):
			user_id = self._next_user_id(role)
			user = User(user_id=user_id, name=name, email=email, phone=phone or "", role=role, qr_code=gen_qr_code(user_id))
			user.set_pin(pin)
			if password:
				user.set_password(password)
			try:
				with transaction.atomic(using=self.using):
					user.save(using=self.using)
			except IntegrityError:
				# Lost a race for the same user_id (or email); re-check and try the next id
				if self._users().filter(email=email).exists():
					raise DuplicateUser("Email already exists")
				if attempt == 3:
					raise
				continue
			logger.info("Registered %s user %s", role, user_id)
			return user

	def list_users(self, role: str | None = None):
		"""
		All accounts, newest first, each annotated with ``order_count``
		"""
		qs = self._users().annotate(order_count=Count("orders")).order_by("-created_at")
		if role:
			if role not in Role.values:
				raise InvalidInput(f"Unknown role {role!r}")
			qs = qs.filter(role=role)
		return qs

	def get_user(self, user_id: str) -> User:
		user = self._users().filter(user_id=user_id).first()
		if user is None:
			raise NotFound("User not found")
		return user

	def update_user(self, user_id: str, **fields) -> User:
		user = self.get_user(user_id)
		update_fields = []
		if "name" in fields:
			user.name = self._validate_name(fields["name"])
			update_fields.append("name")
		if "email" in fields:
			email = self._validate_email(fields["email"])
			if self._users().filter(email=email).exclude(pk=user.pk).exists():
				raise DuplicateUser("Email already exists")
			user.email = email
			update_fields.append("email")
		if "phone" in fields:
			user.phone = fields["phone"] or ""
			update_fields.append("phone")
		if "is_active" in fields:
			user.is_active = bool(fields["is_active"])
			update_fields.append("is_active")
		if fields.get("pin"):
			user.set_pin(self._validate_pin(fields["pin"]))
			update_fields.append("pin")
		if update_fields:
			user.save(using=self.using, update_fields=update_fields)
		return user

	def delete_user(self, user_id: str) -> None:
		"""
		Only accounts that never ordered can be removed; others are deactivated instead
		"""
		user = self.get_user(user_id)
		if user.orders.exists() or user.wallet_transactions.exists():
			raise InvalidInput("User has order or wallet history; deactivate instead")
		user.delete()

	def send_qr(self, user_id: str) -> dict:
		"""
		Render the user's login QR and mail it. A mail failure is reported, not raised.
		"""
		user = self.get_user(user_id)
		data_url = QRAdapter.to_data_url(user.qr_code)
		email_sent = EmailAdapter.send_qr(user.email, user.name, data_url)
		return {"qr_code": data_url, "email_sent": email_sent}


class CatalogServices:

	def __init__(self, using: str = "default"):
		self.using = using

	@staticmethod
	def _price(price) -> Decimal:
		try:
			value = to_money(price)
		except ValueError as e:
			raise InvalidInput(str(e))
		if value <= 0:
			raise InvalidInput("Price must be a positive number")
		return value

	def create_category(self, name: str, image: str = "") -> Category:
		name = (name or "").strip()
		if not name:
			raise InvalidInput("Category name required")
		if Category.objects.using(self.using).filter(name__iexact=name).exists():
			raise InvalidInput("Category already exists")
		return Category.objects.using(self.using).create(name=name, image=image or "")

	def _category(self, category_id) -> Category:
		category = Category.objects.using(self.using).filter(pk=category_id).first()
		if category is None:
			raise NotFound("Category not found")
		return category

	def create_item(self, name: str, price, category_id, description: str = "", image: str = "") -> Item:
		name = (name or "").strip()
		if not 2 <= len(name) <= 100:
			raise InvalidInput("Item name must be between 2 and 100 characters")
		return Item.objects.using(self.using).create(
			name=name,
			description=description or "",
			price=self._price(price),
			image=image or "",
			category=self._category(category_id),
		)

	def update_item(self, item_id, **fields) -> Item:
		"""
		Edit an item. A price change only affects orders placed afterwards.
		"""
		item = Item.objects.using(self.using).filter(pk=item_id).first()
		if item is None:
			raise NotFound("Item not found")
		update_fields = ["updated_at"]
		for name in ("name", "description", "image"):
			if fields.get(name) is not None:
				setattr(item, name, fields[name])
				update_fields.append(name)
		if fields.get("price") is not None:
			item.price = self._price(fields["price"])
			update_fields.append("price")
		if fields.get("category_id") is not None:
			item.category = self._category(fields["category_id"])
			update_fields.append("category")
		if fields.get("is_available") is not None:
			item.is_available = bool(fields["is_available"])
			update_fields.append("is_available")
		item.save(using=self.using, update_fields=update_fields)
		return item

	def delete_item(self, item_id) -> bool:
		"""
		Remove an item. Items that were ever ordered stay for the order history and are
		only taken off the menu. Returns True when the row was actually deleted.
		"""
		with transaction.atomic(using=self.using):
			item = Item.objects.using(self.using).select_for_update().filter(pk=item_id).first()
			if item is None:
				raise NotFound("Item not found")
			if item.order_items.exists():
				item.is_available = False
				item.save(using=self.using, update_fields=["is_available", "updated_at"])
				logger.info("Item %s has order history, marked unavailable instead of deleting", item.pk)
				return False
			item.delete()
		logger.info("Deleted item %s", item_id)
		return True

	def items(self, category_id=None):
		qs = Item.objects.using(self.using).select_related("category").order_by("name")
		if category_id:
			qs = qs.filter(category_id=category_id)
		return qs


# --- Wiring --------------------------------------------------------------------

@dataclass
class CanteenServices:
	"""
	The service graph, built once per process by CoreConfig.ready() and handed to views.
	"""
	ledger: WalletLedger
	resolver: MenuResolver
	coordinator: OrderCoordinator
	workflow: OrderWorkflow
	accounts: AccountServices
	catalog: CatalogServices

	@classmethod
	def build(cls, using: str = "default") -> "CanteenServices":
		ledger = WalletLedger(using=using)
		resolver = MenuResolver(using=using)
		return cls(
			ledger=ledger,
			resolver=resolver,
			coordinator=OrderCoordinator(ledger=ledger, resolver=resolver, using=using),
			workflow=OrderWorkflow(using=using),
			accounts=AccountServices(using=using),
			catalog=CatalogServices(using=using),
		)

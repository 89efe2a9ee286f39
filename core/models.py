"""Database models for the canteen.


Tables:
- User: diner / staff / admin identity with the wallet balance
- Category: menu grouping
- Item: sellable menu entry with its current price and availability
- Order: a paid order and its kitchen status
- OrderItem: one line of an order with the price captured at order time
- WalletTransaction: append-only ledger of wallet credits and debits

User.wallet_balance is only ever changed by core.services.WalletLedger, which also
writes the matching WalletTransaction row.
"""

import secrets
import uuid

from django.db import models
from django.db.models import Q
from django.contrib.auth.hashers import check_password, make_password
from django.utils import timezone

from .constants import OrderStatus, PaymentMethod, Role, TransactionStatus, TransactionType


def gen_qr_code(user_id: str) -> str:
	# Opaque, unguessable; only ever compared for equality
	return f"CANTEEN_{user_id}_{secrets.token_hex(8)}"


def gen_order_number() -> str:
	return f"ORD{timezone.localdate():%Y%m%d}{secrets.token_hex(4).upper()}"


class User(models.Model):
	"""
	Canteen account. ``user_id`` is the short human-facing id printed on the card
	(STU001, STF001, ADM001); ``qr_code`` is what the card's QR encodes.
	"""
	id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
	user_id = models.CharField(max_length=20, unique=True)
	name = models.CharField(max_length=100)
	email = models.EmailField(unique=True)
	phone = models.CharField(max_length=20, blank=True, default="")
	role = models.CharField(max_length=8, choices=Role.choices, default=Role.USER)
	wallet_balance = models.DecimalField(max_digits=12, decimal_places=2, default=0)
	is_active = models.BooleanField(default=True)
	pin = models.CharField(max_length=128)
	password = models.CharField(max_length=128, blank=True, default="")
	qr_code = models.CharField(max_length=100, unique=True)
	created_at = models.DateTimeField(auto_now_add=True)

	class Meta:
		constraints = [
			models.CheckConstraint(condition=Q(wallet_balance__gte=0), name="user_wallet_balance_non_negative"),
		]

	def __str__(self):
		return f"{self.user_id} ({self.name})"

	def set_pin(self, raw_pin: str):
		self.pin = make_password(raw_pin)

	def check_pin(self, raw_pin: str) -> bool:
		return bool(self.pin) and check_password(raw_pin, self.pin)

	def set_password(self, raw_password: str):
		self.password = make_password(raw_password)

	def check_password(self, raw_password: str) -> bool:
		# Accounts created without a password can only log in by QR + PIN
		return bool(self.password) and check_password(raw_password, self.password)


class Category(models.Model):
	name = models.CharField(max_length=100, unique=True)
	image = models.URLField(blank=True, default="")
	is_active = models.BooleanField(default=True)

	class Meta:
		ordering = ["name"]
		verbose_name_plural = "categories"

	def __str__(self):
		return self.name


class Item(models.Model):
	"""
	A menu entry. ``price`` is the *current* price; orders snapshot it into
	OrderItem.price so later edits never touch past orders.
	"""
	name = models.CharField(max_length=100)
	description = models.TextField(blank=True, default="")
	price = models.DecimalField(max_digits=10, decimal_places=2)
	image = models.URLField(blank=True, default="")
	category = models.ForeignKey(Category, on_delete=models.PROTECT, related_name="items")
	is_available = models.BooleanField(default=True)
	created_at = models.DateTimeField(auto_now_add=True)
	updated_at = models.DateTimeField(auto_now=True)

	class Meta:
		ordering = ["name"]
		constraints = [
			models.CheckConstraint(condition=Q(price__gt=0), name="item_price_positive"),
		]

	def __str__(self):
		return self.name


class Order(models.Model):
	"""
	Created only by OrderCoordinator. After creation only ``status`` moves,
	driven by OrderWorkflow.
	"""
	id = models.BigAutoField(primary_key=True)
	order_number = models.CharField(max_length=32, unique=True, default=gen_order_number)
	user = models.ForeignKey(User, on_delete=models.PROTECT, related_name="orders")
	total_amount = models.DecimalField(max_digits=12, decimal_places=2)
	status = models.CharField(max_length=16, choices=OrderStatus.choices, default=OrderStatus.PENDING)
	token_number = models.CharField(max_length=16)
	created_at = models.DateTimeField(auto_now_add=True)
	updated_at = models.DateTimeField(auto_now=True)

	class Meta:
		ordering = ["-created_at"]
		indexes = [
			models.Index(fields=["status", "created_at"]),
		]

	def __str__(self):
		return self.order_number


class OrderItem(models.Model):
	id = models.BigAutoField(primary_key=True)
	order = models.ForeignKey(Order, on_delete=models.CASCADE, related_name="order_items")
	item = models.ForeignKey(Item, on_delete=models.PROTECT, related_name="order_items")
	quantity = models.PositiveIntegerField()
	price = models.DecimalField(max_digits=10, decimal_places=2) # unit price at order time

	class Meta:
		constraints = [
			models.CheckConstraint(condition=Q(quantity__gt=0), name="order_item_quantity_positive"),
		]

	@property
	def line_total(self):
		return self.price * self.quantity


class WalletTransaction(models.Model):
	"""
	Append-only wallet ledger. ``amount`` is signed: credits positive, debits negative,
	and ``type`` always agrees with the sign. Only SUCCESS rows count towards the balance;
	FAILED rows exist for audit.
	"""
	id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
	user = models.ForeignKey(User, on_delete=models.PROTECT, related_name="wallet_transactions")
	amount = models.DecimalField(max_digits=12, decimal_places=2)
	type = models.CharField(max_length=8, choices=TransactionType.choices)
	description = models.CharField(max_length=255, blank=True, default="")
	status = models.CharField(max_length=8, choices=TransactionStatus.choices, default=TransactionStatus.SUCCESS)
	payment_method = models.CharField(max_length=16, choices=PaymentMethod.choices, blank=True, default="")
	transaction_id = models.CharField(max_length=100, blank=True, default="") # external payment reference
	order = models.ForeignKey(Order, null=True, blank=True, on_delete=models.PROTECT, related_name="wallet_transactions")
	created_at = models.DateTimeField(auto_now_add=True)

	class Meta:
		ordering = ["-created_at"]
		constraints = [
			models.CheckConstraint(
				condition=(Q(type=TransactionType.CREDIT, amount__gt=0) | Q(type=TransactionType.DEBIT, amount__lt=0)),
				name="wallet_tx_sign_matches_type",
			),
			# An external payment can only be credited once
			models.UniqueConstraint(
				fields=["transaction_id"],
				condition=Q(status=TransactionStatus.SUCCESS) & ~Q(transaction_id=""),
				name="wallet_tx_unique_successful_payment",
			),
		]
		indexes = [
			models.Index(fields=["user", "status"]),
			models.Index(fields=["transaction_id"]),
		]

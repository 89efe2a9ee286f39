"""Enumerations and money helpers shared across the canteen core.


- Role / OrderStatus / TransactionType / TransactionStatus / PaymentMethod are the
  stored string values for the corresponding model fields.
- to_money() normalises any numeric input to a 2-decimal Decimal.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from django.db import models

MONEY_PLACES = Decimal("0.01")


class Role(models.TextChoices):
    USER = "USER", "User"
    STAFF = "STAFF", "Staff"
    ADMIN = "ADMIN", "Admin"


class OrderStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    PREPARING = "PREPARING", "Preparing"
    READY = "READY", "Ready"
    DELIVERED = "DELIVERED", "Delivered"
    CANCELLED = "CANCELLED", "Cancelled"


class TransactionType(models.TextChoices):
    CREDIT = "CREDIT", "Credit"
    DEBIT = "DEBIT", "Debit"


class TransactionStatus(models.TextChoices):
    PENDING = "PENDING", "Pending"
    SUCCESS = "SUCCESS", "Success"
    FAILED = "FAILED", "Failed"


class PaymentMethod(models.TextChoices):
    ADMIN_RECHARGE = "ADMIN_RECHARGE", "Admin recharge"
    UPI = "UPI", "UPI"
    WALLET = "WALLET", "Wallet"


# Legal single-step moves of the kitchen workflow
ORDER_TRANSITIONS = {
    OrderStatus.PENDING: (OrderStatus.PREPARING, OrderStatus.CANCELLED),
    OrderStatus.PREPARING: (OrderStatus.READY, OrderStatus.CANCELLED),
    OrderStatus.READY: (OrderStatus.DELIVERED,),
    OrderStatus.DELIVERED: (),
    OrderStatus.CANCELLED: (),
}

# Prefix of the human-facing user id, by role
USER_ID_PREFIXES = {
    Role.ADMIN: "ADM",
    Role.STAFF: "STF",
    Role.USER: "STU",
}


def to_money(value) -> Decimal:
    """
    Convert str / int / Decimal input into a 2-decimal Decimal. Floats go through str()
    so 0.1 stays 0.10 instead of its binary expansion.
    """
    if isinstance(value, float):
        value = str(value)
    try:
        amount = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise ValueError(f"Not a monetary amount: {value!r}")
    if not amount.is_finite():
        raise ValueError(f"Not a monetary amount: {value!r}")
    return amount.quantize(MONEY_PLACES, rounding=ROUND_HALF_UP)

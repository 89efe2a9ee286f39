"""Shared pytest fixtures and configuration for all tests."""

from decimal import Decimal

import pytest
from django.core.cache import cache

from core.adapters.token_adapter import TokenAdapter
from core.constants import PaymentMethod, Role
from core.models import Category, Item, User
from core.services import CanteenServices


@pytest.fixture(autouse=True)
def fast_hashers(settings):
    """PBKDF2 is deliberately slow; tests only need a working hasher."""
    settings.PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]


@pytest.fixture(autouse=True)
def clear_cache():
    """Login failure counters live in the cache; start every test with none."""
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def canteen() -> CanteenServices:
    """Fixture providing a freshly wired service graph on the default database."""
    return CanteenServices.build()


@pytest.fixture
def category(db) -> Category:
    return Category.objects.create(name="Meals")


@pytest.fixture
def menu_items(category) -> dict[str, Item]:
    """Fixture providing two orderable items and one switched-off item."""
    return {
        "thali": Item.objects.create(name="Veg Thali", price=Decimal("120.00"), category=category),
        "dosa": Item.objects.create(name="Masala Dosa", price=Decimal("60.00"), category=category),
        "juice": Item.objects.create(
            name="Orange Juice", price=Decimal("40.00"), category=category, is_available=False
        ),
    }


@pytest.fixture
def make_user(db, canteen):
    """Factory registering a user and funding the wallet through the ledger."""

    def _make(role=Role.USER, balance="0.00", pin="1234", password=None, email=None) -> User:
        n = User.objects.count() + 1
        user = canteen.accounts.register_user(
            name=f"Test User {n}",
            email=email or f"user{n}@example.com",
            pin=pin,
            role=role,
            password=password,
        )
        if Decimal(balance) > 0:
            canteen.ledger.credit(
                user.pk, balance, "Opening balance", payment_method=PaymentMethod.ADMIN_RECHARGE
            )
            user.refresh_from_db()
        return user

    return _make


@pytest.fixture
def staff(make_user) -> User:
    return make_user(role=Role.STAFF)


@pytest.fixture
def admin(make_user) -> User:
    return make_user(role=Role.ADMIN)


@pytest.fixture
def auth_header():
    """Factory producing Django test client kwargs carrying a Bearer token."""

    def _header(user: User) -> dict:
        return {"HTTP_AUTHORIZATION": f"Bearer {TokenAdapter.issue_access(user.pk, user.role)}"}

    return _header

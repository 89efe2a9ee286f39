"""Unit tests for WalletLedger."""

import uuid
from decimal import Decimal

import pytest
from django.db import IntegrityError

from core.constants import PaymentMethod, TransactionStatus, TransactionType
from core.exceptions import InsufficientFunds, InvalidAmount, InvalidInput, NotFound, PaymentConflict
from core.models import User, WalletTransaction
from core.services import WalletLedger


@pytest.mark.unit
@pytest.mark.django_db
class TestCredit:
    """Credits: balance up, one SUCCESS CREDIT row."""

    def test_admin_credit_of_200(self, canteen, make_user):
        """Crediting 200.00 raises the balance by 200.00 and appends one SUCCESS CREDIT row."""
        user = make_user(balance="50.00")

        tx = canteen.ledger.credit(user.pk, "200.00", "Admin wallet recharge", payment_method=PaymentMethod.ADMIN_RECHARGE)

        user.refresh_from_db()
        assert user.wallet_balance == Decimal("250.00")
        assert tx.amount == Decimal("200.00")
        assert tx.type == TransactionType.CREDIT
        assert tx.status == TransactionStatus.SUCCESS
        assert tx.payment_method == PaymentMethod.ADMIN_RECHARGE
        assert WalletTransaction.objects.filter(user=user, type=TransactionType.CREDIT).count() == 2

    @pytest.mark.parametrize("amount", ["0", "-5.00", "abc", None, "NaN"])
    def test_rejects_non_positive_or_garbage_amounts(self, canteen, make_user, amount):
        """Only strictly positive amounts can be credited."""
        user = make_user()

        with pytest.raises(InvalidAmount):
            canteen.ledger.credit(user.pk, amount, "bad")

        assert WalletTransaction.objects.filter(user=user).count() == 0

    def test_unknown_user(self, canteen):
        """Crediting a user that does not exist writes nothing."""
        with pytest.raises(NotFound):
            canteen.ledger.credit(uuid.uuid4(), "10.00", "ghost")

        assert WalletTransaction.objects.count() == 0

    def test_float_input_keeps_cents(self, canteen, make_user):
        """Floats are converted through their repr, not their binary value."""
        user = make_user()

        canteen.ledger.credit(user.pk, 0.1, "ten paise")

        assert canteen.ledger.balance(user.pk) == Decimal("0.10")


@pytest.mark.unit
@pytest.mark.django_db
class TestDebit:
    """Debits: guarded by the current balance, one SUCCESS DEBIT row."""

    def test_debit_writes_negative_debit_row(self, canteen, make_user):
        user = make_user(balance="100.00")

        tx = canteen.ledger.debit(user.pk, "30.00", "Snack")

        assert canteen.ledger.balance(user.pk) == Decimal("70.00")
        assert tx.amount == Decimal("-30.00")
        assert tx.type == TransactionType.DEBIT
        assert tx.payment_method == PaymentMethod.WALLET

    def test_debit_of_entire_balance_is_allowed(self, canteen, make_user):
        user = make_user(balance="100.00")

        canteen.ledger.debit(user.pk, "100.00", "Everything")

        assert canteen.ledger.balance(user.pk) == Decimal("0.00")

    def test_debit_beyond_balance(self, canteen, make_user):
        """Overdrawing raises InsufficientFunds with the shortfall and changes nothing."""
        user = make_user(balance="50.00")

        with pytest.raises(InsufficientFunds) as exc_info:
            canteen.ledger.debit(user.pk, "120.00", "Too much")

        assert exc_info.value.shortfall == Decimal("70.00")
        assert canteen.ledger.balance(user.pk) == Decimal("50.00")
        assert not WalletTransaction.objects.filter(user=user, type=TransactionType.DEBIT).exists()

    def test_debit_checks_stored_balance_not_caller_snapshot(self, canteen, make_user):
        """The debit compares against the row in the database, so a stale in-memory user cannot overdraw."""
        user = make_user(balance="100.00")
        stale = User.objects.get(pk=user.pk)
        canteen.ledger.debit(user.pk, "80.00", "First order")

        assert stale.wallet_balance == Decimal("100.00")
        with pytest.raises(InsufficientFunds):
            canteen.ledger.debit(stale.pk, "80.00", "Second order")

        assert canteen.ledger.balance(user.pk) == Decimal("20.00")

    def test_unknown_user(self, canteen):
        with pytest.raises(NotFound):
            canteen.ledger.debit(uuid.uuid4(), "1.00", "ghost")


@pytest.mark.unit
@pytest.mark.django_db
class TestFailedPaymentsAndReconcile:

    def test_failed_payment_leaves_balance_alone(self, canteen, make_user):
        """A FAILED row is appended for audit but the balance does not move."""
        user = make_user(balance="20.00")

        tx = canteen.ledger.record_failed_payment(
            user.pk, "100.00", "Failed UPI wallet recharge", payment_method=PaymentMethod.UPI, transaction_id="TXN_1"
        )

        assert tx.status == TransactionStatus.FAILED
        assert tx.transaction_id == "TXN_1"
        assert canteen.ledger.balance(user.pk) == Decimal("20.00")
        assert canteen.ledger.reconcile(user.pk)["consistent"] is True

    def test_reconcile_matches_success_rows(self, canteen, make_user):
        user = make_user(balance="300.00")
        canteen.ledger.debit(user.pk, "45.50", "Lunch")
        canteen.ledger.record_failed_payment(user.pk, "10.00", "Failed")

        result = canteen.ledger.reconcile(user.pk)

        assert result == {"balance": Decimal("254.50"), "ledger_total": Decimal("254.50"), "consistent": True}

    def test_audit_reports_tampered_balances(self, canteen, make_user):
        """A balance written behind the ledger's back shows up in the audit."""
        honest = make_user(balance="10.00")
        tampered = make_user(balance="10.00")
        User.objects.filter(pk=tampered.pk).update(wallet_balance=Decimal("99.00"))

        mismatches = canteen.ledger.audit()

        assert [m["user_id"] for m in mismatches] == [tampered.user_id]
        assert honest.user_id not in [m["user_id"] for m in mismatches]

    def test_transactions_newest_first_and_limited(self, canteen, make_user):
        user = make_user()
        for n in range(5):
            canteen.ledger.credit(user.pk, f"{n + 1}.00", f"credit {n}")

        rows = canteen.ledger.transactions(user.pk, limit=3)

        assert len(rows) == 3
        assert [r.created_at for r in rows] == sorted((r.created_at for r in rows), reverse=True)


@pytest.mark.unit
@pytest.mark.django_db
class TestRecharge:

    def test_recharge_by_external_user_id(self, canteen, make_user):
        user = make_user()

        refreshed, tx = canteen.ledger.recharge(user.user_id, "200.00")

        assert refreshed.wallet_balance == Decimal("200.00")
        assert tx.payment_method == PaymentMethod.ADMIN_RECHARGE
        assert tx.description == "Admin wallet recharge"

    def test_recharge_unknown_user(self, canteen):
        with pytest.raises(NotFound):
            canteen.ledger.recharge("STU999", "10.00")

    def test_recharge_above_limit(self, canteen, make_user, settings):
        settings.CANTEEN_MAX_RECHARGE = Decimal("500.00")
        user = make_user()

        with pytest.raises(InvalidAmount):
            canteen.ledger.recharge(user.user_id, "500.01")

    def test_payment_request_builds_upi_link_and_qr(self, canteen, make_user, settings):
        settings.UPI_ID = "canteen@upi"
        user = make_user()

        req = canteen.ledger.payment_request(user, "100")

        assert req["amount"] == Decimal("100.00")
        assert req["upi_link"].startswith("upi://pay?pa=canteen%40upi")
        assert "am=100.00" in req["upi_link"]
        assert f"tr={req['transaction_id']}" in req["upi_link"]
        assert req["qr_code"].startswith("data:image/png;base64,")

    def test_verify_payment_success_is_idempotent(self, canteen, make_user):
        """A gateway retrying the same SUCCESS callback credits the wallet once."""
        user = make_user()

        first = canteen.ledger.verify_payment(user.pk, "TXN_42", "150.00", "SUCCESS")
        second = canteen.ledger.verify_payment(user.pk, "TXN_42", "150.00", "success")

        assert first.pk == second.pk
        assert canteen.ledger.balance(user.pk) == Decimal("150.00")

    def test_verify_payment_failure_records_failed_row(self, canteen, make_user):
        user = make_user()

        tx = canteen.ledger.verify_payment(user.pk, "TXN_43", "150.00", "FAILED")

        assert tx.status == TransactionStatus.FAILED
        assert canteen.ledger.balance(user.pk) == Decimal("0.00")

    def test_verify_payment_requires_transaction_id(self, canteen, make_user):
        user = make_user()

        with pytest.raises(InvalidInput):
            canteen.ledger.verify_payment(user.pk, "", "10.00", "SUCCESS")

    def test_payment_reference_is_credited_once(self, canteen, make_user):
        """The database refuses a second SUCCESS row for the same external reference."""
        user = make_user()
        canteen.ledger.credit(user.pk, "100.00", "UPI wallet recharge", payment_method=PaymentMethod.UPI, transaction_id="TXN_X")

        with pytest.raises(IntegrityError):
            canteen.ledger.credit(user.pk, "100.00", "UPI wallet recharge", payment_method=PaymentMethod.UPI, transaction_id="TXN_X")

        assert WalletTransaction.objects.filter(transaction_id="TXN_X").count() == 1
        assert canteen.ledger.balance(user.pk) == Decimal("100.00")
        assert canteen.ledger.reconcile(user.pk)["consistent"]

    def test_verify_payment_rejects_reference_of_another_user(self, canteen, make_user):
        payer = make_user()
        other = make_user()
        canteen.ledger.verify_payment(payer.pk, "TXN_A", "100.00", "SUCCESS")

        with pytest.raises(PaymentConflict):
            canteen.ledger.verify_payment(other.pk, "TXN_A", "100.00", "SUCCESS")

        assert canteen.ledger.balance(other.pk) == Decimal("0.00")
        assert canteen.ledger.balance(payer.pk) == Decimal("100.00")

    def test_verify_payment_rejects_changed_amount(self, canteen, make_user):
        user = make_user()
        canteen.ledger.verify_payment(user.pk, "TXN_B", "100.00", "SUCCESS")

        with pytest.raises(PaymentConflict):
            canteen.ledger.verify_payment(user.pk, "TXN_B", "500.00", "SUCCESS")

        assert canteen.ledger.balance(user.pk) == Decimal("100.00")

    def test_verify_payment_losing_a_race_returns_the_winning_row(self, make_user):
        """Two callbacks both see no credit yet; the second insert hits the unique guard."""

        class RacingLedger(WalletLedger):
            checks = 0

            def _credited_payment(self, transaction_id):
                self.checks += 1
                if self.checks == 1:
                    return None
                return super()._credited_payment(transaction_id)

        user = make_user()
        winner = WalletLedger().credit(
            user.pk, "120.00", "UPI wallet recharge", payment_method=PaymentMethod.UPI, transaction_id="TXN_R"
        )

        tx = RacingLedger().verify_payment(user.pk, "TXN_R", "120.00", "SUCCESS")

        assert tx.pk == winner.pk
        assert WalletLedger().balance(user.pk) == Decimal("120.00")
        assert WalletTransaction.objects.filter(transaction_id="TXN_R").count() == 1

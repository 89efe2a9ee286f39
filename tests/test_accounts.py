"""Unit tests for AccountServices and the QR / email adapters."""

from smtplib import SMTPException
from unittest.mock import patch

import pytest

from core.adapters.qr_adapter import QRAdapter
from core.constants import Role
from core.exceptions import DuplicateUser, InvalidInput, NotFound
from core.models import User


@pytest.mark.unit
@pytest.mark.django_db
class TestRegistration:

    def test_user_ids_follow_role_prefixes(self, canteen):
        first = canteen.accounts.register_user("Asha Rao", "asha@example.com", "1234")
        second = canteen.accounts.register_user("Ravi Kumar", "ravi@example.com", "1234")
        cook = canteen.accounts.register_user("Head Cook", "cook@example.com", "1234", role=Role.STAFF)
        boss = canteen.accounts.register_user("Manager", "boss@example.com", "1234", role=Role.ADMIN)

        assert [first.user_id, second.user_id, cook.user_id, boss.user_id] == ["STU001", "STU002", "STF001", "ADM001"]

    def test_user_id_continues_after_highest(self, canteen):
        canteen.accounts.register_user("Asha Rao", "asha@example.com", "1234")
        second = canteen.accounts.register_user("Ravi Kumar", "ravi@example.com", "1234")
        canteen.accounts.delete_user("STU001")

        third = canteen.accounts.register_user("Meena Iyer", "meena@example.com", "1234")

        assert second.user_id == "STU002"
        assert third.user_id == "STU003"

    def test_credentials_are_hashed(self, canteen):
        user = canteen.accounts.register_user("Asha Rao", "Asha@Example.com", "1234", password="secret")

        assert user.email == "asha@example.com"
        assert user.pin != "1234" and user.check_pin("1234")
        assert not user.check_pin("9999")
        assert user.password != "secret" and user.check_password("secret")
        assert user.qr_code.startswith("CANTEEN_STU001_")
        assert user.wallet_balance == 0

    def test_duplicate_email_is_case_insensitive(self, canteen):
        canteen.accounts.register_user("Asha Rao", "asha@example.com", "1234")

        with pytest.raises(DuplicateUser):
            canteen.accounts.register_user("Asha Again", "ASHA@example.com", "1234")

    @pytest.mark.parametrize("name, email, pin, role", [
        ("A", "a@example.com", "1234", Role.USER),
        ("Asha Rao", "not-an-email", "1234", Role.USER),
        ("Asha Rao", "a@example.com", "12a4", Role.USER),
        ("Asha Rao", "a@example.com", "12345", Role.USER),
        ("Asha Rao", "a@example.com", "1234", "MANAGER"),
    ])
    def test_validation(self, canteen, name, email, pin, role):
        with pytest.raises(InvalidInput):
            canteen.accounts.register_user(name, email, pin, role=role)

        assert User.objects.count() == 0


@pytest.mark.unit
@pytest.mark.django_db
class TestProfileMaintenance:

    def test_update_user(self, canteen, make_user):
        user = make_user(pin="1111")

        updated = canteen.accounts.update_user(user.user_id, name="New Name", phone="9876543210", pin="2222", is_active=False)

        stored = User.objects.get(pk=user.pk)
        assert updated.name == stored.name == "New Name"
        assert stored.phone == "9876543210"
        assert stored.is_active is False
        assert stored.check_pin("2222")

    def test_update_email_to_taken_address(self, canteen, make_user):
        make_user(email="taken@example.com")
        user = make_user()

        with pytest.raises(DuplicateUser):
            canteen.accounts.update_user(user.user_id, email="taken@example.com")

    def test_user_with_history_cannot_be_deleted(self, canteen, make_user):
        user = make_user(balance="10.00")

        with pytest.raises(InvalidInput):
            canteen.accounts.delete_user(user.user_id)

        assert User.objects.filter(pk=user.pk).exists()

    def test_unknown_user(self, canteen, db):
        with pytest.raises(NotFound):
            canteen.accounts.get_user("STU404")

    def test_list_users_with_order_counts(self, canteen, make_user, menu_items):
        buyer = make_user(balance="200.00")
        idle = make_user()
        for _ in range(2):
            canteen.coordinator.place_order(buyer.pk, [{"item_id": menu_items["dosa"].pk, "quantity": 1}])

        counts = {u.user_id: u.order_count for u in canteen.accounts.list_users()}

        assert counts == {buyer.user_id: 2, idle.user_id: 0}

    def test_list_users_by_role(self, canteen, make_user):
        make_user()
        staff = make_user(role=Role.STAFF)

        assert [u.user_id for u in canteen.accounts.list_users(role=Role.STAFF)] == [staff.user_id]
        with pytest.raises(InvalidInput):
            canteen.accounts.list_users(role="CHEF")


@pytest.mark.unit
@pytest.mark.django_db
class TestSendQR:

    def test_qr_is_mailed_as_png(self, canteen, make_user, mailoutbox):
        user = make_user()

        result = canteen.accounts.send_qr(user.user_id)

        assert result["email_sent"] is True
        assert result["qr_code"].startswith("data:image/png;base64,")
        assert len(mailoutbox) == 1
        assert mailoutbox[0].to == [user.email]
        name, content, mimetype = mailoutbox[0].attachments[0]
        assert mimetype == "image/png"
        assert content.startswith(b"\x89PNG")

    def test_mail_failure_is_reported_not_raised(self, canteen, make_user):
        user = make_user()

        with patch("core.adapters.email_adapter.EmailMultiAlternatives.send", side_effect=SMTPException("down")):
            result = canteen.accounts.send_qr(user.user_id)

        assert result["email_sent"] is False
        assert result["qr_code"].startswith("data:image/png;base64,")

    def test_png_encoder(self):
        assert QRAdapter.to_png("CANTEEN_STU001_abc").startswith(b"\x89PNG")

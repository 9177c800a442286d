import pytest

from errors import ConflictError, DomainError, NotFoundError
from models.schemas import (
    CreatePaymentMethodInput,
    UpdatePaymentMethodInput,
    parse_input,
)
from tests.helpers import rule_input, transaction_input


def _create(name="Amex Gold"):
    return parse_input(CreatePaymentMethodInput, name=name)


def _update(**data):
    return parse_input(UpdatePaymentMethodInput, **data)


class TestPaymentMethodService:
    """Tests for PaymentMethodService."""

    def test_create(self, services, user):
        method = services.payment_methods.create(user.id, _create())

        assert method.id > 0
        assert method.name == "Amex Gold"
        assert method.is_default is False

    def test_duplicate_name_conflicts(self, services, user):
        with pytest.raises(ConflictError):
            services.payment_methods.create(user.id, _create("cash"))

    def test_deactivate_hides_from_active_list(self, services, user):
        method = services.payment_methods.create(user.id, _create())

        services.payment_methods.update(method.id, user.id, _update(is_active=False))

        active = services.payment_methods.find_all(user.id, is_active=True)
        assert method.id not in [m.id for m in active]
        assert len(services.payment_methods.find_all(user.id)) == 7

    def test_rename_conflict(self, services, user):
        method = services.payment_methods.create(user.id, _create())

        with pytest.raises(ConflictError):
            services.payment_methods.update(method.id, user.id, _update(name="Debit Card"))

    def test_default_is_protected(self, services, user, cash):
        """Test that seeded payment methods cannot be edited or deleted."""
        with pytest.raises(DomainError):
            services.payment_methods.update(cash.id, user.id, _update(name="Money"))
        with pytest.raises(DomainError):
            services.payment_methods.delete(cash.id, user.id)

    def test_delete_used_conflicts(self, services, user, rent_category):
        """Test that payment methods referenced by transactions or rules are kept."""
        used_by_tx = services.payment_methods.create(user.id, _create("Card A"))
        used_by_rule = services.payment_methods.create(user.id, _create("Card B"))
        services.transactions.create(
            user.id, transaction_input(rent_category.id, payment_method_id=used_by_tx.id)
        )
        services.recurring_rules.create(
            user.id, rule_input(payment_method_id=used_by_rule.id)
        )

        with pytest.raises(ConflictError):
            services.payment_methods.delete(used_by_tx.id, user.id)
        with pytest.raises(ConflictError):
            services.payment_methods.delete(used_by_rule.id, user.id)

    def test_delete_unused(self, services, user):
        method = services.payment_methods.create(user.id, _create())

        services.payment_methods.delete(method.id, user.id)

        assert services.payment_methods.find(method.id, user.id) is None

    def test_delete_unknown(self, services, user):
        with pytest.raises(NotFoundError):
            services.payment_methods.delete(9999, user.id)

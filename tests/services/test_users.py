import pytest

from db.seeds import (
    DEFAULT_EXPENSE_CATEGORIES,
    DEFAULT_INCOME_CATEGORIES,
    DEFAULT_PAYMENT_METHODS,
)
from errors import AuthenticationError, ConflictError, NotFoundError, ValidationError


class TestUserService:
    """Tests for UserService."""

    def test_create_user(self, services):
        """Test registering a user normalizes email and currency."""
        user = services.users.create("  Ana@Example.com ", name="Ana", currency="usd")

        assert user.id > 0
        assert user.email == "ana@example.com"
        assert user.name == "Ana"
        assert user.currency == "USD"
        assert user.created_at is not None

    def test_create_seeds_defaults(self, services):
        """Test that registration seeds default categories and payment methods."""
        user = services.users.create("ana@example.com")

        expenses = services.categories.find_all(user.id, kind="expense")
        income = services.categories.find_all(user.id, kind="income")
        methods = services.payment_methods.find_all(user.id)

        assert len(expenses) == len(DEFAULT_EXPENSE_CATEGORIES) == 12
        assert len(income) == len(DEFAULT_INCOME_CATEGORIES) == 5
        assert len(methods) == len(DEFAULT_PAYMENT_METHODS) == 6
        assert all(c.is_default for c in expenses + income)
        assert all(m.is_default for m in methods)

    def test_duplicate_email_conflicts(self, services, user):
        with pytest.raises(ConflictError):
            services.users.create("ANA@example.com")

    @pytest.mark.parametrize("email", ["", "ana", "@example.com", "ana@"])
    def test_invalid_email(self, services, email):
        with pytest.raises(ValidationError):
            services.users.create(email)

    def test_invalid_currency(self, services):
        with pytest.raises(ValidationError):
            services.users.create("ana@example.com", currency="PESO")

    def test_authenticate(self, services, user):
        """Test resolving a user from their email."""
        assert services.users.authenticate("Ana@example.com").id == user.id

    @pytest.mark.parametrize("identity", [None, "", "   ", "nobody@example.com"])
    def test_authenticate_rejects_unknown(self, services, user, identity):
        with pytest.raises(AuthenticationError):
            services.users.authenticate(identity)

    def test_update_profile(self, services, user):
        updated = services.users.update_profile(user.id, name="Ana María", currency="eur")

        assert updated.name == "Ana María"
        assert updated.currency == "EUR"
        assert services.users.find(user.id).currency == "EUR"

    def test_update_unknown_user(self, services):
        with pytest.raises(NotFoundError):
            services.users.update_profile(9999, name="Ghost")

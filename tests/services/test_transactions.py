from datetime import date

import pytest

from errors import NotFoundError, ValidationError
from models.month import Month
from models.schemas import ListTransactionsParams, UpdateTransactionInput, parse_input
from models.split import CategorySplit
from tests.helpers import rule_input, transaction_input


def _params(**data):
    return parse_input(ListTransactionsParams, **data)


def _update(**data):
    return parse_input(UpdateTransactionInput, **data)


class TestCreateTransaction:
    """Tests for TransactionService.create."""

    def test_create_paid_expense(self, services, user, rent_category):
        """Test creating a paid expense defaults paid_on to the occurrence date."""
        transaction = services.transactions.create(
            user.id, transaction_input(rent_category.id)
        )

        assert transaction.id > 0
        assert transaction.occurred_month == Month(2025, 6)
        assert transaction.status == "paid"
        assert transaction.paid_on == date(2025, 6, 10)
        assert transaction.is_generated is False

        found = services.transactions.find(transaction.id, user.id)
        assert found.title == "Groceries"
        assert found.amount == 15050
        assert found.splits == [CategorySplit(rent_category.id, 15050)]
        assert found.created_at is not None

    def test_pending_defaults_due_date(self, services, user, rent_category):
        """Test that a pending transaction without due date is due on its date."""
        transaction = services.transactions.create(
            user.id, transaction_input(rent_category.id, status="pending")
        )

        assert transaction.due_on == date(2025, 6, 10)
        assert transaction.paid_on is None

    def test_split_across_categories(self, services, user, rent_category, utilities_category):
        transaction = services.transactions.create(
            user.id,
            transaction_input(
                rent_category.id,
                amount=10000,
                split=[
                    {"category_id": rent_category.id, "allocated_amount": 7000},
                    {"category_id": utilities_category.id, "allocated_amount": 3000},
                ],
            ),
        )

        assert len(services.transactions.find(transaction.id, user.id).splits) == 2

    def test_split_total_must_match(self, services, user, rent_category):
        """Test that splits must add up to the amount."""
        with pytest.raises(ValidationError):
            services.transactions.create(
                user.id,
                transaction_input(
                    rent_category.id,
                    split=[{"category_id": rent_category.id, "allocated_amount": 100}],
                ),
            )

    def test_split_is_required(self, services, user, rent_category):
        """Test that the input schema requires at least one split."""
        with pytest.raises(ValidationError):
            transaction_input(rent_category.id, split=[])

    def test_month_must_match_date(self, services, user, rent_category):
        """Test that an explicit month must contain the occurrence date."""
        with pytest.raises(ValidationError):
            services.transactions.create(
                user.id, transaction_input(rent_category.id, occurred_month="2025-07")
            )

    def test_matching_month_accepted(self, services, user, rent_category):
        transaction = services.transactions.create(
            user.id, transaction_input(rent_category.id, occurred_month="2025-06")
        )

        assert transaction.occurred_month == Month(2025, 6)

    def test_foreign_category_rejected(self, services, user, other_user):
        foreign = services.categories.find_by_name(other_user.id, "expense", "Rent")

        with pytest.raises(ValidationError):
            services.transactions.create(user.id, transaction_input(foreign.id))

    def test_wrong_kind_category_rejected(self, services, user, salary_category):
        """Test that an expense cannot be allocated to an income category."""
        with pytest.raises(ValidationError):
            services.transactions.create(user.id, transaction_input(salary_category.id))


class TestUpdateTransaction:
    """Tests for TransactionService.update and mark_paid."""

    def test_update_title_and_amount(self, services, user, rent_category):
        """Test a partial update with new splits."""
        created = services.transactions.create(user.id, transaction_input(rent_category.id))

        updated = services.transactions.update(
            created.id,
            user.id,
            _update(
                title="Supermarket",
                amount=20000,
                split=[{"category_id": rent_category.id, "allocated_amount": 20000}],
            ),
        )

        found = services.transactions.find(created.id, user.id)
        assert updated.title == "Supermarket"
        assert found.amount == 20000
        assert found.splits == [CategorySplit(rent_category.id, 20000)]

    def test_amount_change_revalidates_existing_splits(self, services, user, rent_category):
        created = services.transactions.create(user.id, transaction_input(rent_category.id))

        with pytest.raises(ValidationError):
            services.transactions.update(created.id, user.id, _update(amount=20000))

    def test_move_to_other_month(self, services, user, rent_category):
        """Test that changing the date of a manual transaction moves its month."""
        created = services.transactions.create(user.id, transaction_input(rent_category.id))

        updated = services.transactions.update(
            created.id, user.id, _update(occurred_on=date(2025, 7, 2))
        )

        assert updated.occurred_month == Month(2025, 7)

    def test_generated_transaction_keeps_month(self, services, user):
        """Test that a generated transaction stays keyed to its target month."""
        services.recurring_rules.create(user.id, rule_input())
        generated = services.materializer.materialize(user.id, "2025-06").created[0]

        updated = services.transactions.update(
            generated.id, user.id, _update(occurred_on=date(2025, 7, 1))
        )

        assert updated.occurred_month == Month(2025, 6)
        assert services.materializer.materialize(user.id, "2025-06").created_count == 0

    def test_set_pending_requires_due_date(self, services, user, rent_category):
        """Test that switching to pending fills in a due date."""
        created = services.transactions.create(user.id, transaction_input(rent_category.id))

        updated = services.transactions.update(created.id, user.id, _update(status="pending"))

        assert updated.status == "pending"
        assert updated.due_on == date(2025, 6, 10)
        assert updated.paid_on is None

    def test_mark_paid_uses_today(self, services, user, rent_category, today):
        """Test that mark_paid defaults the payment date to today."""
        created = services.transactions.create(
            user.id, transaction_input(rent_category.id, status="pending")
        )

        paid = services.transactions.mark_paid(created.id, user.id)

        assert paid.status == "paid"
        assert paid.paid_on == today
        assert services.transactions.find(created.id, user.id).status == "paid"

    def test_mark_paid_with_date(self, services, user, rent_category):
        created = services.transactions.create(
            user.id, transaction_input(rent_category.id, status="pending")
        )

        paid = services.transactions.mark_paid(created.id, user.id, paid_on=date(2025, 6, 12))

        assert paid.paid_on == date(2025, 6, 12)

    def test_update_other_users_transaction(self, services, user, other_user, rent_category):
        created = services.transactions.create(user.id, transaction_input(rent_category.id))

        with pytest.raises(NotFoundError):
            services.transactions.update(created.id, other_user.id, _update(title="Mine"))


class TestDeleteTransaction:
    def test_delete_removes_splits(self, services, user, rent_category):
        """Test that deleting a transaction cascades to its splits."""
        created = services.transactions.create(user.id, transaction_input(rent_category.id))

        services.transactions.delete(created.id, user.id)

        assert services.transactions.find(created.id, user.id) is None
        assert services.categories.is_in_use(rent_category.id) is False

    def test_delete_unknown(self, services, user):
        with pytest.raises(NotFoundError):
            services.transactions.delete(9999, user.id)


class TestListTransactions:
    """Tests for TransactionService.list."""

    @pytest.fixture
    def populated(self, services, user, rent_category, utilities_category, salary_category, cash):
        services.transactions.create(
            user.id,
            transaction_input(
                rent_category.id, title="June rent", amount=250000, payment_method_id=cash.id
            ),
        )
        services.transactions.create(
            user.id,
            transaction_input(
                utilities_category.id,
                title="Power bill",
                amount=12000,
                status="pending",
                occurred_on=date(2025, 6, 20),
            ),
        )
        services.transactions.create(
            user.id,
            transaction_input(
                salary_category.id,
                kind="income",
                title="Salary",
                amount=900000,
                occurred_on=date(2025, 6, 1),
            ),
        )
        services.transactions.create(
            user.id,
            transaction_input(
                utilities_category.id,
                title="Water bill",
                amount=5000,
                occurred_on=date(2025, 5, 20),
            ),
        )

    def test_default_sort_is_newest_first(self, services, user, populated):
        page = services.transactions.list(user.id, _params())

        assert page.total == 4
        assert [t.title for t in page.items] == [
            "Power bill",
            "June rent",
            "Salary",
            "Water bill",
        ]

    def test_filters(self, services, user, populated, utilities_category, cash):
        """Test each filter narrows the result."""
        assert services.transactions.list(user.id, _params(month="2025-05")).total == 1
        assert services.transactions.list(user.id, _params(kind="income")).total == 1
        assert services.transactions.list(user.id, _params(status="pending")).total == 1
        assert (
            services.transactions.list(user.id, _params(payment_method_id=cash.id)).total == 1
        )
        assert (
            services.transactions.list(
                user.id, _params(category_ids=[utilities_category.id])
            ).total
            == 2
        )
        assert services.transactions.list(user.id, _params(q="bill")).total == 2

    def test_sort_by_amount_ascending(self, services, user, populated):
        page = services.transactions.list(
            user.id, _params(sort_by="amount", sort_order="asc")
        )

        assert [t.amount for t in page.items] == [5000, 12000, 250000, 900000]

    def test_pagination(self, services, user, populated):
        """Test page size and page number."""
        page = services.transactions.list(user.id, _params(page=2, page_size=3))

        assert page.total == 4
        assert page.total_pages == 2
        assert len(page.items) == 1
        assert page.items[0].title == "Water bill"

    @pytest.mark.parametrize(
        "params",
        [
            {"sort_by": "description"},
            {"sort_by": "amount; DROP TABLE transactions"},
            {"page": 0},
            {"page_size": 101},
            {"page_size": 0},
        ],
    )
    def test_invalid_params_rejected(self, services, user, params):
        with pytest.raises(ValidationError):
            services.transactions.list(user.id, _params(**params))

    def test_other_users_transactions_hidden(self, services, other_user, populated):
        assert services.transactions.list(other_user.id, _params()).total == 0


class TestExpenseStatusSummary:
    def test_paid_vs_pending(self, services, user, rent_category):
        """Test totals of paid and pending expenses in a month."""
        services.transactions.create(user.id, transaction_input(rent_category.id, amount=1000))
        services.transactions.create(
            user.id, transaction_input(rent_category.id, amount=2000, status="pending")
        )
        services.transactions.create(
            user.id, transaction_input(rent_category.id, amount=4000, status="pending")
        )

        summary = services.transactions.get_expense_status_summary(user.id, Month(2025, 6))

        assert summary.month == "2025-06"
        assert summary.total_paid == 1000
        assert summary.paid_count == 1
        assert summary.total_pending == 6000
        assert summary.pending_count == 2

    def test_empty_month(self, services, user):
        summary = services.transactions.get_expense_status_summary(user.id, Month(2025, 1))

        assert summary.total_paid == 0
        assert summary.pending_count == 0

"""Tests for transaction analysis tools."""

from datetime import date

from models.month import Month
from tests.helpers import rule_input, transaction_input
from tools.transactions import get_period_summary, get_period_transactions


class TestGetPeriodTransactions:
    """Tests for get_period_transactions function."""

    def test_every_month_is_present(self, services, user, rent_category):
        """Test that empty months still appear in the result."""
        services.transactions.create(
            user.id, transaction_input(rent_category.id, occurred_on=date(2025, 1, 15))
        )
        services.transactions.create(
            user.id, transaction_input(rent_category.id, occurred_on=date(2025, 3, 2))
        )

        result = get_period_transactions(services, user.id, Month(2025, 1), Month(2025, 3))

        assert list(result) == ["2025-01", "2025-02", "2025-03"]
        assert len(result["2025-01"]) == 1
        assert result["2025-02"] == []
        assert len(result["2025-03"]) == 1

    def test_crosses_year_boundary(self, services, user):
        result = get_period_transactions(services, user.id, Month(2024, 11), Month(2025, 2))

        assert list(result) == ["2024-11", "2024-12", "2025-01", "2025-02"]

    def test_end_before_start_is_empty(self, services, user):
        assert get_period_transactions(services, user.id, Month(2025, 3), Month(2025, 1)) == {}

    def test_category_filter(self, services, user, rent_category, utilities_category):
        services.transactions.create(user.id, transaction_input(rent_category.id))
        services.transactions.create(user.id, transaction_input(utilities_category.id))

        result = get_period_transactions(
            services, user.id, Month(2025, 6), Month(2025, 6), category_ids=[rent_category.id]
        )

        assert len(result["2025-06"]) == 1
        assert result["2025-06"][0].category_ids == [rent_category.id]


class TestGetPeriodSummary:
    """Tests for get_period_summary function."""

    def test_monthly_totals(self, services, user, rent_category, utilities_category, salary_category):
        """Test income, expense, net and category totals per month."""
        services.transactions.create(
            user.id,
            transaction_input(
                salary_category.id,
                kind="income",
                title="Salary",
                amount=100000,
                occurred_on=date(2025, 5, 1),
            ),
        )
        services.transactions.create(
            user.id,
            transaction_input(
                rent_category.id,
                amount=50000,
                occurred_on=date(2025, 5, 5),
                split=[
                    {"category_id": rent_category.id, "allocated_amount": 20000},
                    {"category_id": utilities_category.id, "allocated_amount": 30000},
                ],
            ),
        )

        result = get_period_summary(services, user.id, Month(2025, 5), Month(2025, 6))

        assert result["2025-05"] == {
            "income_total": 100000,
            "expense_total": 50000,
            "net": 50000,
            "expenses_by_category": {rent_category.id: 20000, utilities_category.id: 30000},
        }
        assert result["2025-06"]["net"] == 0

    def test_uncategorized_generated_expense(self, services, user):
        """Test that generated expenses without splits land in category 0."""
        services.recurring_rules.create(user.id, rule_input())
        services.materializer.materialize(user.id, "2025-06")

        result = get_period_summary(services, user.id, Month(2025, 6), Month(2025, 6))

        assert result["2025-06"]["expenses_by_category"] == {0: 250000}

"""Dashboard service: monthly financial summary."""

from typing import List

from models.month import Month
from models.summary import (
    CategoryTotal,
    DashboardSummary,
    PaymentMethodTotal,
    TransactionCounts,
)

_CATEGORY_TOTALS_QUERY = """
    SELECT c.id, c.name, SUM(tc.allocated_amount) AS total
    FROM transaction_categories tc
    JOIN categories c ON c.id = tc.category_id
    JOIN transactions t ON t.id = tc.transaction_id
    WHERE t.user_id = ? AND t.occurred_month = ? AND t.kind = ?
    GROUP BY c.id, c.name
    ORDER BY total DESC, c.name
"""


class DashboardService:
    """Builds the monthly summary shown on the dashboard.

    Recurring rules are materialized for the month before aggregating, so
    the summary always includes fixed income and expenses.
    """

    def __init__(self, db_manager, materializer):
        """Initialize the dashboard service.

        Args:
            db_manager: Database manager instance for database operations.
            materializer: RecurringMaterializationEngine run before each summary.
        """
        self.db_manager = db_manager
        self.materializer = materializer

    def get_summary(self, user_id: int, month: str) -> DashboardSummary:
        """Get a user's summary for a month.

        Args:
            user_id: User to summarize.
            month: Month as "YYYY-MM".

        Returns:
            DashboardSummary with totals, breakdowns and counts.

        Raises:
            ValidationError: If the month is malformed.
            DomainError: If materialization fails; no summary is produced.
        """
        target = Month.parse(month)
        self.materializer.materialize(user_id, str(target))

        key = str(target)
        with self.db_manager.connect() as conn:
            totals = conn.execute(
                """
                SELECT kind, status, SUM(amount), COUNT(*)
                FROM transactions
                WHERE user_id = ? AND occurred_month = ?
                GROUP BY kind, status
                """,
                (user_id, key),
            ).fetchall()

            expenses_by_category = self._category_totals(conn, user_id, key, "expense")
            income_by_category = self._category_totals(conn, user_id, key, "income")

            payment_rows = conn.execute(
                """
                SELECT pm.id, pm.name, SUM(t.amount) AS total
                FROM transactions t
                JOIN payment_methods pm ON pm.id = t.payment_method_id
                WHERE t.user_id = ? AND t.occurred_month = ? AND t.kind = 'expense'
                GROUP BY pm.id, pm.name
                ORDER BY total DESC, pm.name
                """,
                (user_id, key),
            ).fetchall()

        total_income = 0
        total_expenses = 0
        counts = TransactionCounts()
        for kind, status, total, count in totals:
            if kind == "income":
                total_income += total
                counts.income += count
            else:
                total_expenses += total
                counts.expenses += count
            if status == "pending":
                counts.pending += count
        counts.total = counts.income + counts.expenses

        return DashboardSummary(
            month=key,
            total_income=total_income,
            total_expenses=total_expenses,
            balance=total_income - total_expenses,
            expenses_by_category=expenses_by_category,
            income_by_category=income_by_category,
            expenses_by_payment_method=[
                PaymentMethodTotal(row[0], row[1], row[2]) for row in payment_rows
            ],
            transactions_count=counts,
        )

    def _category_totals(
        self, conn, user_id: int, month: str, kind: str
    ) -> List[CategoryTotal]:
        rows = conn.execute(_CATEGORY_TOTALS_QUERY, (user_id, month, kind)).fetchall()
        return [CategoryTotal(row[0], row[1], row[2]) for row in rows]

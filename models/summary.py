"""Read models for monthly summaries and paginated listings."""

from dataclasses import dataclass, field
from typing import List

from models.transaction import Transaction


@dataclass
class CategoryTotal:
    category_id: int
    category_name: str
    total: int


@dataclass
class PaymentMethodTotal:
    payment_method_id: int
    payment_method_name: str
    total: int


@dataclass
class TransactionCounts:
    total: int = 0
    income: int = 0
    expenses: int = 0
    pending: int = 0


@dataclass
class DashboardSummary:
    """Financial summary of a single month.

    All amounts are in cents. Category breakdowns come from transaction
    splits and are ordered by total, largest first.
    """

    month: str
    total_income: int
    total_expenses: int
    balance: int
    expenses_by_category: List[CategoryTotal] = field(default_factory=list)
    income_by_category: List[CategoryTotal] = field(default_factory=list)
    expenses_by_payment_method: List[PaymentMethodTotal] = field(default_factory=list)
    transactions_count: TransactionCounts = field(default_factory=TransactionCounts)


@dataclass
class ExpenseStatusSummary:
    """Paid vs pending expenses for a month (amounts in cents)."""

    month: str
    total_paid: int = 0
    paid_count: int = 0
    total_pending: int = 0
    pending_count: int = 0


@dataclass
class PaginatedTransactions:
    items: List[Transaction]
    total: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        if self.total == 0:
            return 0
        return (self.total + self.page_size - 1) // self.page_size

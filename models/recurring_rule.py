"""Recurring rule model: a monthly income/expense template."""

from dataclasses import dataclass, field
from typing import List, Optional

from errors import DomainError
from models.month import Month
from models.split import CategorySplit, splits_total

KINDS = ("income", "expense")
STATUSES = ("pending", "paid")


@dataclass
class RecurringRule:
    """Represents a recurring monthly rule owned by a user.

    A rule applies to every month in ``[active_from_month, active_to_month]``
    (open-ended when ``active_to_month`` is None) while ``is_active`` is set.

    Attributes:
        id: Unique identifier (auto-generated).
        user_id: Owning user.
        title: Short title copied to generated transactions.
        description: Optional longer description.
        amount: Amount in cents (> 0).
        kind: 'income' or 'expense'.
        day_of_month: Anchor day (1-31), clamped to the month length when
            materialized.
        status: Explicit status for generated transactions, or None to use
            the default for the rule's kind.
        payment_method_id: Optional payment method reference.
        active_from_month: First month the rule applies to.
        active_to_month: Last month the rule applies to, or None.
        is_active: Deactivated rules are never materialized.
        categories: Category splits copied to generated transactions.
    """

    id: int
    user_id: int
    title: str
    description: Optional[str]
    amount: int
    kind: str
    day_of_month: int
    status: Optional[str]
    payment_method_id: Optional[int]
    active_from_month: Month
    active_to_month: Optional[Month] = None
    is_active: bool = True
    categories: List[CategorySplit] = field(default_factory=list)

    def __post_init__(self):
        if not self.title or not self.title.strip():
            raise DomainError("Rule title is required")
        if self.amount <= 0:
            raise DomainError("Rule amount must be greater than zero")
        if self.day_of_month < 1 or self.day_of_month > 31:
            raise DomainError("Day of month must be between 1 and 31")
        if self.kind not in KINDS:
            raise DomainError(f"Invalid rule kind: {self.kind}")
        if self.status is not None and self.status not in STATUSES:
            raise DomainError(f"Invalid rule status: {self.status}")
        if self.active_to_month and self.active_to_month < self.active_from_month:
            raise DomainError("End month must be the same as or after the start month")

    def covers(self, month: Month) -> bool:
        """Check whether the rule is active and its window includes ``month``."""
        if not self.is_active:
            return False
        if month < self.active_from_month:
            return False
        if self.active_to_month is not None and month > self.active_to_month:
            return False
        return True

    def is_open_ended(self) -> bool:
        return self.active_to_month is None

    def materialized_status(self) -> str:
        """Status given to transactions generated from this rule.

        An explicit rule status wins. Otherwise expenses start out pending
        and income is treated as already received.
        """
        if self.status is not None:
            return self.status
        return "paid" if self.kind == "income" else "pending"

    def splits_match_amount(self) -> bool:
        """True when there are no splits or they add up to the rule amount."""
        if not self.categories:
            return True
        return splits_total(self.categories) == self.amount

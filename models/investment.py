from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import List, Optional


@dataclass
class Investment:
    """A fixed-rate investment such as a term deposit or a yield account.

    Simple-interest investments always have a duration; compound ones
    (daily capitalization) may be open-ended with ``days`` set to None.
    """

    id: int
    user_id: int
    platform: str  # e.g. "Banco Nación", "Mercado Pago"
    title: str
    principal: int  # cents
    tna: Decimal  # nominal annual rate, percent (45.5 means 45.5%)
    days: Optional[int]
    is_compound: bool
    started_on: date
    notes: Optional[str] = None

    def end_date(self) -> Optional[date]:
        if self.days is None:
            return None
        return self.started_on + timedelta(days=self.days)

    def has_ended(self, today: date) -> bool:
        """An investment is still running on its end date and ends after it."""
        end = self.end_date()
        return end is not None and end < today

    def days_remaining(self, today: date) -> Optional[int]:
        end = self.end_date()
        if end is None:
            return None
        return max((end - today).days, 0)


@dataclass
class YieldResult:
    """Outcome of a yield calculation; amounts in cents."""

    yield_amount: int
    total: int
    tna: Decimal
    days: int


@dataclass
class PaginatedInvestments:
    items: List[Investment]
    total: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        if self.total == 0:
            return 0
        return (self.total + self.page_size - 1) // self.page_size

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional

from models.month import Month
from models.split import CategorySplit


@dataclass
class Transaction:
    id: int
    user_id: int
    kind: str  # 'income' or 'expense'
    title: str
    description: Optional[str]
    amount: int  # cents, always positive
    payment_method_id: Optional[int]
    is_fixed: bool
    status: str  # 'pending' or 'paid'
    occurred_on: date
    occurred_month: Month
    due_on: Optional[date] = None  # required while pending
    paid_on: Optional[date] = None
    source_recurring_rule_id: Optional[int] = None  # set on generated transactions
    splits: List[CategorySplit] = field(default_factory=list)
    created_at: Optional[datetime] = None

    @property
    def is_generated(self) -> bool:
        """True when this transaction was materialized from a recurring rule."""
        return self.source_recurring_rule_id is not None

    @property
    def category_ids(self) -> List[int]:
        return [split.category_id for split in self.splits]

    def to_dict(self) -> dict:
        """Convert transaction to a plain dictionary (for export/display)."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "kind": self.kind,
            "title": self.title,
            "description": self.description,
            "amount": self.amount,
            "payment_method_id": self.payment_method_id,
            "is_fixed": self.is_fixed,
            "status": self.status,
            "occurred_on": self.occurred_on.isoformat(),
            "occurred_month": str(self.occurred_month),
            "due_on": self.due_on.isoformat() if self.due_on else None,
            "paid_on": self.paid_on.isoformat() if self.paid_on else None,
            "source_recurring_rule_id": self.source_recurring_rule_id,
            "splits": [
                {
                    "category_id": split.category_id,
                    "allocated_amount": split.allocated_amount,
                }
                for split in self.splits
            ],
        }

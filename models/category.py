"""Category model for transaction categorization."""

from dataclasses import dataclass


@dataclass
class Category:
    """Represents a user-owned income or expense category.

    Attributes:
        id: Unique identifier (auto-generated).
        user_id: Owning user.
        kind: 'income' or 'expense'.
        name: Category name (unique per user and kind).
        is_active: Inactive categories are hidden from pickers but keep history.
        is_default: Seeded at registration; cannot be edited or deleted.
    """

    id: int
    user_id: int
    kind: str
    name: str
    is_active: bool = True
    is_default: bool = False

    def can_be_deleted(self) -> bool:
        return not self.is_default

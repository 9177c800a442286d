"""Category splits: how an amount is distributed across categories."""

from dataclasses import dataclass
from typing import Iterable, List

from errors import ValidationError


@dataclass
class CategorySplit:
    """Allocation of part of an amount to a category.

    Attributes:
        category_id: Category receiving the allocation.
        allocated_amount: Amount in cents (always positive).
    """

    category_id: int
    allocated_amount: int


def splits_total(splits: Iterable[CategorySplit]) -> int:
    return sum(split.allocated_amount for split in splits)


def validate_splits(amount: int, splits: List[CategorySplit], *, required: bool) -> None:
    """Check a list of splits against the amount it distributes.

    Args:
        amount: Total amount in cents.
        splits: Proposed splits.
        required: When True an empty list is rejected; when False an empty
            list is accepted (the amount is simply uncategorized).

    Raises:
        ValidationError: If splits are missing (when required), not positive,
            repeat a category, or do not add up to the amount.
    """
    if not splits:
        if required:
            raise ValidationError("At least one category must be specified")
        return

    if any(split.allocated_amount <= 0 for split in splits):
        raise ValidationError("Category amounts must be greater than zero")

    category_ids = [split.category_id for split in splits]
    if len(category_ids) != len(set(category_ids)):
        raise ValidationError("The same category cannot be assigned more than once")

    total = splits_total(splits)
    if total != amount:
        raise ValidationError(
            f"Category amounts ({total}) must add up to the total amount ({amount})"
        )

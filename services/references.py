"""Ownership checks for category and payment method references."""

from typing import Iterable, Optional

from errors import ValidationError


def check_references(
    conn,
    user_id: int,
    kind: str,
    category_ids: Iterable[int],
    payment_method_id: Optional[int],
) -> None:
    """Verify that referenced categories and payment method belong to the user.

    Categories must also match the entry kind (an expense cannot be split
    into income categories).

    Args:
        conn: Open database connection.
        user_id: Owning user.
        kind: 'income' or 'expense'.
        category_ids: Category IDs referenced by splits.
        payment_method_id: Optional payment method ID.

    Raises:
        ValidationError: If any reference is unknown, foreign, or of the wrong kind.
    """
    category_ids = list(category_ids)
    if category_ids:
        placeholders = ", ".join(["?"] * len(category_ids))
        rows = conn.execute(
            f"""
            SELECT id, kind FROM categories
            WHERE user_id = ? AND id IN ({placeholders})
            """,
            [user_id, *category_ids],
        ).fetchall()
        found = {row[0]: row[1] for row in rows}

        missing = [cid for cid in category_ids if cid not in found]
        if missing:
            raise ValidationError(f"Unknown category ID(s): {missing}")

        mismatched = [cid for cid in category_ids if found[cid] != kind]
        if mismatched:
            raise ValidationError(
                f"Category ID(s) {mismatched} are not {kind} categories"
            )

    if payment_method_id is not None:
        row = conn.execute(
            "SELECT 1 FROM payment_methods WHERE id = ? AND user_id = ?",
            (payment_method_id, user_id),
        ).fetchone()
        if not row:
            raise ValidationError(f"Unknown payment method ID: {payment_method_id}")

"""Recurring rule service for database operations."""

from datetime import date
from typing import Callable, Dict, List, Optional

from errors import NotFoundError, ConflictError, ValidationError
from logger import get_logger
from models.month import Month
from models.recurring_rule import RecurringRule
from models.schemas import CreateRecurringRuleInput, UpdateRecurringRuleInput
from models.split import CategorySplit, validate_splits
from services.references import check_references

logger = get_logger()

_RULE_SELECT_FIELDS = """id, user_id, title, description, amount, kind, day_of_month,
       status, payment_method_id, active_from_month, active_to_month, is_active"""

_RULE_INSERT_FIELDS = """user_id, title, description, amount, kind, day_of_month,
    status, payment_method_id, active_from_month, active_to_month, is_active"""

_RULE_INSERT_PLACEHOLDERS = f"({', '.join(['?'] * len(_RULE_INSERT_FIELDS.split(',')))})"

# Changing any of these on an open-ended rule starts a new version
_CONTENT_FIELDS = {
    "title",
    "description",
    "amount",
    "kind",
    "day_of_month",
    "status",
    "payment_method_id",
    "categories",
}


class RecurringRuleService:
    """Service for managing recurring rules.

    Also acts as the rule store used by recurring materialization through
    ``list_active_for_user``.
    """

    def __init__(self, db_manager, clock: Optional[Callable[[], date]] = None):
        """Initialize the recurring rule service.

        Args:
            db_manager: Database manager instance for database operations.
            clock: Callable returning today's date (defaults to date.today).
        """
        self.db_manager = db_manager
        self.clock = clock or date.today

    def current_month(self) -> Month:
        return Month.current(self.clock())

    # -- queries -------------------------------------------------------------

    def list_active_for_user(
        self, user_id: int, month: Optional[Month] = None
    ) -> List[RecurringRule]:
        """Get a user's active rules, optionally only those covering a month.

        Args:
            user_id: Owning user.
            month: When given, only rules whose window includes it.

        Returns:
            Rules with their category splits, ordered by id.
        """
        query = f"SELECT {_RULE_SELECT_FIELDS} FROM recurring_rules WHERE user_id = ? AND is_active = 1"
        params: list = [user_id]

        if month is not None:
            query += """
                AND active_from_month <= ?
                AND (active_to_month IS NULL OR active_to_month >= ?)
            """
            params.extend([str(month), str(month)])

        query += " ORDER BY id"

        with self.db_manager.connect() as conn:
            rows = conn.execute(query, params).fetchall()
            return self._with_categories(conn, [self._row_to_rule(row) for row in rows])

    def find_all(self, user_id: int) -> List[RecurringRule]:
        """Get all of a user's rules, active or not, newest window first."""
        with self.db_manager.connect() as conn:
            rows = conn.execute(
                f"""
                SELECT {_RULE_SELECT_FIELDS} FROM recurring_rules
                WHERE user_id = ?
                ORDER BY active_from_month DESC, id DESC
                """,
                (user_id,),
            ).fetchall()
            return self._with_categories(conn, [self._row_to_rule(row) for row in rows])

    def find(self, rule_id: int, user_id: int) -> Optional[RecurringRule]:
        with self.db_manager.connect() as conn:
            row = conn.execute(
                f"SELECT {_RULE_SELECT_FIELDS} FROM recurring_rules WHERE id = ? AND user_id = ?",
                (rule_id, user_id),
            ).fetchone()

            if not row:
                return None
            return self._with_categories(conn, [self._row_to_rule(row)])[0]

    def require(self, rule_id: int, user_id: int) -> RecurringRule:
        """Get a rule or raise NotFoundError."""
        rule = self.find(rule_id, user_id)
        if not rule:
            raise NotFoundError("Recurring rule", rule_id)
        return rule

    def find_splits(self, rule_id: int) -> List[CategorySplit]:
        with self.db_manager.connect() as conn:
            rows = conn.execute(
                """
                SELECT category_id, allocated_amount FROM recurring_rule_categories
                WHERE recurring_rule_id = ?
                ORDER BY id
                """,
                (rule_id,),
            ).fetchall()
            return [CategorySplit(row[0], row[1]) for row in rows]

    def set_splits(self, rule_id: int, splits: List[CategorySplit]) -> None:
        """Replace a rule's category splits.

        No validation happens here; callers check splits against the amount.
        """
        with self.db_manager.connect() as conn:
            try:
                self._replace_splits(conn, rule_id, splits)
                conn.commit()
            except Exception:
                conn.rollback()
                raise

    def has_generated_transactions(self, rule_id: int) -> bool:
        with self.db_manager.connect() as conn:
            row = conn.execute(
                "SELECT EXISTS (SELECT 1 FROM transactions WHERE source_recurring_rule_id = ?)",
                (rule_id,),
            ).fetchone()
            return bool(row[0])

    # -- use cases -----------------------------------------------------------

    def create(self, user_id: int, data: CreateRecurringRuleInput) -> RecurringRule:
        """Create a new recurring rule.

        Args:
            user_id: Owning user.
            data: Validated rule payload.

        Returns:
            The created RecurringRule with id populated.

        Raises:
            ValidationError: If splits do not add up to the amount, the end
                month is before the start month, or a referenced category or
                payment method does not belong to the user.
        """
        splits = [
            CategorySplit(split.category_id, split.allocated_amount)
            for split in data.categories
        ]
        validate_splits(data.amount, splits, required=False)

        active_from = Month.parse(data.active_from_month)
        active_to = Month.parse(data.active_to_month) if data.active_to_month else None
        if active_to is not None and active_to < active_from:
            raise ValidationError(
                f"End month ({active_to}) cannot be before start month ({active_from})"
            )

        rule = RecurringRule(
            id=0,
            user_id=user_id,
            title=data.title,
            description=data.description,
            amount=data.amount,
            kind=data.kind,
            day_of_month=data.day_of_month,
            status=data.status,
            payment_method_id=data.payment_method_id,
            active_from_month=active_from,
            active_to_month=active_to,
            categories=splits,
        )

        with self.db_manager.connect() as conn:
            check_references(
                conn, user_id, rule.kind,
                [s.category_id for s in splits], rule.payment_method_id,
            )
            try:
                rule.id = self._insert_rule(conn, rule)
                conn.commit()
            except Exception:
                conn.rollback()
                raise

        logger.debug(f"Created recurring rule {rule.id} for user {user_id}")
        return rule

    def update(
        self, rule_id: int, user_id: int, data: UpdateRecurringRuleInput
    ) -> RecurringRule:
        """Update a rule, versioning open-ended rules.

        When an open-ended rule that started before the current month has any
        content change (title, description, amount, kind, day, status,
        payment method or categories), the existing rule is closed at the
        previous month and a new rule starting in the current month is
        created with the merged values. Past generated transactions keep
        pointing at the old version. If the old version already produced the
        current month, the new version skips that month so it is not
        generated twice. Other rules are updated in place.

        Returns:
            The new version, or the updated rule.

        Raises:
            NotFoundError: If the rule does not exist.
            ValidationError: On split/reference problems, when the requested
                end month precedes the (new) start month, or when a start
                month is given for an update that creates a new version.
        """
        existing = self.require(rule_id, user_id)
        fields = data.model_fields_set

        amount = data.amount if data.amount is not None else existing.amount
        kind = data.kind or existing.kind
        if data.categories is not None:
            splits = [
                CategorySplit(split.category_id, split.allocated_amount)
                for split in data.categories
            ]
        else:
            splits = existing.categories
        validate_splits(amount, splits, required=False)

        merged = dict(
            user_id=user_id,
            title=data.title if data.title is not None else existing.title,
            description=(
                data.description if "description" in fields else existing.description
            ),
            amount=amount,
            kind=kind,
            day_of_month=data.day_of_month or existing.day_of_month,
            status=data.status if "status" in fields else existing.status,
            payment_method_id=(
                data.payment_method_id
                if "payment_method_id" in fields
                else existing.payment_method_id
            ),
            is_active=existing.is_active,
            categories=splits,
        )

        current = self.current_month()
        versioned = (
            existing.is_open_ended()
            and bool(fields & _CONTENT_FIELDS)
            and existing.active_from_month < current
        )

        if versioned and data.active_from_month:
            raise ValidationError(
                "A new version always starts in the current month; "
                "active_from_month cannot be set together with content changes"
            )

        if versioned:
            active_from = current
        elif data.active_from_month:
            active_from = Month.parse(data.active_from_month)
        else:
            active_from = existing.active_from_month

        if "active_to_month" in fields:
            active_to = Month.parse(data.active_to_month) if data.active_to_month else None
        else:
            active_to = None if versioned else existing.active_to_month

        if active_to is not None and active_to < active_from:
            if versioned:
                raise ValidationError(
                    f"End month ({active_to}) cannot be before the start month of "
                    f"the new version ({active_from})"
                )
            raise ValidationError(
                f"End month ({active_to}) cannot be before start month ({active_from})"
            )

        rule = RecurringRule(
            id=0 if versioned else existing.id,
            active_from_month=active_from,
            active_to_month=active_to,
            **merged,
        )

        with self.db_manager.connect() as conn:
            check_references(
                conn, user_id, rule.kind,
                [s.category_id for s in splits], rule.payment_method_id,
            )
            try:
                if versioned:
                    conn.execute(
                        """
                        UPDATE recurring_rules
                        SET active_to_month = ?, updated_at = CURRENT_TIMESTAMP
                        WHERE id = ? AND user_id = ?
                        """,
                        (str(current.previous()), rule_id, user_id),
                    )
                    rule.id = self._insert_rule(conn, rule)
                    if self._has_instance(conn, rule_id, current):
                        # Current month was already produced by the old version
                        conn.execute(
                            """
                            INSERT INTO dismissed_recurring_instances
                                (recurring_rule_id, occurred_month)
                            VALUES (?, ?)
                            """,
                            (rule.id, str(current)),
                        )
                else:
                    conn.execute(
                        """
                        UPDATE recurring_rules
                        SET title = ?, description = ?, amount = ?, kind = ?,
                            day_of_month = ?, status = ?, payment_method_id = ?,
                            active_from_month = ?, active_to_month = ?,
                            updated_at = CURRENT_TIMESTAMP
                        WHERE id = ? AND user_id = ?
                        """,
                        (
                            rule.title,
                            rule.description,
                            rule.amount,
                            rule.kind,
                            rule.day_of_month,
                            rule.status,
                            rule.payment_method_id,
                            str(rule.active_from_month),
                            str(rule.active_to_month) if rule.active_to_month else None,
                            rule_id,
                            user_id,
                        ),
                    )
                    if data.categories is not None:
                        self._replace_splits(conn, rule_id, splits)
                conn.commit()
            except Exception:
                conn.rollback()
                raise

        if versioned:
            logger.info(
                f"Recurring rule {rule_id} closed at {current.previous()}; "
                f"new version {rule.id} starts {current}"
            )
        return rule

    def deactivate(self, rule_id: int, user_id: int) -> RecurringRule:
        """Stop a rule from materializing; generated transactions are kept."""
        return self._set_active(rule_id, user_id, False)

    def activate(self, rule_id: int, user_id: int) -> RecurringRule:
        return self._set_active(rule_id, user_id, True)

    def delete(self, rule_id: int, user_id: int) -> Optional[RecurringRule]:
        """Delete a rule, or close it when it is still running.

        An open-ended rule that started before the current month is closed at
        the previous month and kept. Any other rule is removed together with
        its splits, unless it already generated transactions.

        Returns:
            The closed rule, or None when the rule was removed.

        Raises:
            NotFoundError: If the rule does not exist.
            ConflictError: If the rule has generated transactions and cannot
                be closed; deactivate it instead.
        """
        rule = self.require(rule_id, user_id)
        previous = self.current_month().previous()

        if rule.is_open_ended() and rule.active_from_month <= previous:
            with self.db_manager.connect() as conn:
                conn.execute(
                    """
                    UPDATE recurring_rules
                    SET active_to_month = ?, updated_at = CURRENT_TIMESTAMP
                    WHERE id = ? AND user_id = ?
                    """,
                    (str(previous), rule_id, user_id),
                )
                conn.commit()
            rule.active_to_month = previous
            logger.info(f"Recurring rule {rule_id} closed at {previous}")
            return rule

        if self.has_generated_transactions(rule_id):
            raise ConflictError(
                "The recurring rule has generated transactions; deactivate it instead"
            )

        with self.db_manager.connect() as conn:
            conn.execute(
                "DELETE FROM recurring_rules WHERE id = ? AND user_id = ?",
                (rule_id, user_id),
            )
            conn.commit()

        logger.info(f"Recurring rule {rule_id} deleted")
        return None

    # -- helpers -------------------------------------------------------------

    def _has_instance(self, conn, rule_id: int, month: Month) -> bool:
        row = conn.execute(
            """
            SELECT EXISTS (
                SELECT 1 FROM transactions
                WHERE source_recurring_rule_id = ? AND occurred_month = ?
            ) OR EXISTS (
                SELECT 1 FROM dismissed_recurring_instances
                WHERE recurring_rule_id = ? AND occurred_month = ?
            )
            """,
            (rule_id, str(month), rule_id, str(month)),
        ).fetchone()
        return bool(row[0])

    def _set_active(self, rule_id: int, user_id: int, is_active: bool) -> RecurringRule:
        rule = self.require(rule_id, user_id)
        with self.db_manager.connect() as conn:
            conn.execute(
                """
                UPDATE recurring_rules
                SET is_active = ?, updated_at = CURRENT_TIMESTAMP
                WHERE id = ? AND user_id = ?
                """,
                (1 if is_active else 0, rule_id, user_id),
            )
            conn.commit()
        rule.is_active = is_active
        return rule

    def _insert_rule(self, conn, rule: RecurringRule) -> int:
        """Insert a rule and its splits without committing; returns the new id."""
        cursor = conn.execute(
            f"INSERT INTO recurring_rules ({_RULE_INSERT_FIELDS}) VALUES {_RULE_INSERT_PLACEHOLDERS}",
            (
                rule.user_id,
                rule.title,
                rule.description,
                rule.amount,
                rule.kind,
                rule.day_of_month,
                rule.status,
                rule.payment_method_id,
                str(rule.active_from_month),
                str(rule.active_to_month) if rule.active_to_month else None,
                1 if rule.is_active else 0,
            ),
        )
        self._replace_splits(conn, cursor.lastrowid, rule.categories)
        return cursor.lastrowid

    def _replace_splits(self, conn, rule_id: int, splits: List[CategorySplit]) -> None:
        conn.execute(
            "DELETE FROM recurring_rule_categories WHERE recurring_rule_id = ?",
            (rule_id,),
        )
        conn.executemany(
            """
            INSERT INTO recurring_rule_categories (recurring_rule_id, category_id, allocated_amount)
            VALUES (?, ?, ?)
            """,
            [(rule_id, s.category_id, s.allocated_amount) for s in splits],
        )

    def _with_categories(self, conn, rules: List[RecurringRule]) -> List[RecurringRule]:
        if not rules:
            return rules

        by_id: Dict[int, RecurringRule] = {rule.id: rule for rule in rules}
        placeholders = ", ".join(["?"] * len(by_id))
        rows = conn.execute(
            f"""
            SELECT recurring_rule_id, category_id, allocated_amount
            FROM recurring_rule_categories
            WHERE recurring_rule_id IN ({placeholders})
            ORDER BY id
            """,
            list(by_id),
        ).fetchall()

        for rule_id, category_id, allocated_amount in rows:
            by_id[rule_id].categories.append(CategorySplit(category_id, allocated_amount))
        return rules

    def _row_to_rule(self, row: tuple) -> RecurringRule:
        return RecurringRule(
            id=row[0],
            user_id=row[1],
            title=row[2],
            description=row[3],
            amount=row[4],
            kind=row[5],
            day_of_month=row[6],
            status=row[7],
            payment_method_id=row[8],
            active_from_month=Month.parse(row[9]),
            active_to_month=Month.parse(row[10]) if row[10] else None,
            is_active=bool(row[11]),
        )

"""Transaction service for database operations."""

from datetime import date, datetime
from typing import Callable, Dict, List, Optional

from errors import NotFoundError, ValidationError
from logger import get_logger
from models.month import Month
from models.recurring_rule import RecurringRule
from models.schemas import (
    MAX_PAGE_SIZE,
    SORTABLE_COLUMNS,
    CreateTransactionInput,
    ListTransactionsParams,
    UpdateTransactionInput,
)
from models.split import CategorySplit, validate_splits
from models.summary import ExpenseStatusSummary, PaginatedTransactions
from models.transaction import Transaction
from services.references import check_references

logger = get_logger()

# SQL Query Constants
_TRANSACTION_SELECT_FIELDS = """id, user_id, kind, title, description, amount,
       payment_method_id, is_fixed, status, occurred_on, occurred_month, due_on,
       paid_on, source_recurring_rule_id, created_at"""

_TRANSACTION_INSERT_FIELDS = """user_id, kind, title, description, amount,
    payment_method_id, is_fixed, status, occurred_on, occurred_month, due_on,
    paid_on, source_recurring_rule_id"""

# Automatically generate placeholders from field count
_TRANSACTION_INSERT_PLACEHOLDERS = (
    f"({', '.join(['?'] * len(_TRANSACTION_INSERT_FIELDS.split(',')))})"
)


def _iso(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value else None


class TransactionService:
    """Service for managing transactions.

    Also acts as the transaction store used by recurring materialization:
    ``exists_for_rule_and_month`` and ``create_from_rule`` are keyed by
    ``(rule_id, month)`` and backed by a unique index, so a generated
    transaction is written at most once per rule and month.
    """

    def __init__(self, db_manager, clock: Optional[Callable[[], date]] = None):
        """Initialize the transaction service.

        Args:
            db_manager: Database manager instance for database operations.
            clock: Callable returning today's date (defaults to date.today).
        """
        self.db_manager = db_manager
        self.clock = clock or date.today

    # -- recurring materialization store -------------------------------------

    def exists_for_rule_and_month(self, rule_id: int, month: Month) -> bool:
        """Check whether a rule already produced (or was dismissed for) a month.

        A generated transaction the user deleted counts as existing, so it is
        not recreated on the next materialization.
        """
        with self.db_manager.connect() as conn:
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

    def create_from_rule(
        self, rule: RecurringRule, month: Month, due_date: date, status: str
    ) -> Optional[Transaction]:
        """Insert the generated transaction for a rule and month if absent.

        The row and its category splits are written in one database
        transaction. The write lock is taken up front so concurrent callers
        queue behind each other instead of failing.

        Args:
            rule: Rule being materialized.
            month: Target month.
            due_date: Due date (the rule's day clamped to the month).
            status: 'pending' or 'paid'.

        Returns:
            The created Transaction, or None if the (rule, month) pair
            already exists or was dismissed.
        """
        transaction = Transaction(
            id=0,
            user_id=rule.user_id,
            kind=rule.kind,
            title=rule.title,
            description=rule.description,
            amount=rule.amount,
            payment_method_id=rule.payment_method_id,
            is_fixed=True,
            status=status,
            occurred_on=due_date,
            occurred_month=month,
            due_on=due_date if status == "pending" else None,
            paid_on=due_date if status == "paid" else None,
            source_recurring_rule_id=rule.id,
            splits=[
                CategorySplit(split.category_id, split.allocated_amount)
                for split in rule.categories
            ],
        )

        with self.db_manager.connect() as conn:
            conn.execute("BEGIN IMMEDIATE")
            try:
                dismissed = conn.execute(
                    """
                    SELECT 1 FROM dismissed_recurring_instances
                    WHERE recurring_rule_id = ? AND occurred_month = ?
                    """,
                    (rule.id, str(month)),
                ).fetchall()
                if dismissed:
                    conn.rollback()
                    return None

                cursor = conn.execute(
                    f"""
                    INSERT INTO transactions ({_TRANSACTION_INSERT_FIELDS})
                    VALUES {_TRANSACTION_INSERT_PLACEHOLDERS}
                    ON CONFLICT (source_recurring_rule_id, occurred_month)
                        WHERE source_recurring_rule_id IS NOT NULL
                    DO NOTHING
                    """,
                    self._insert_values(transaction),
                )
                if cursor.rowcount == 0:
                    conn.rollback()
                    return None

                transaction.id = cursor.lastrowid
                self._insert_splits(conn, transaction.id, transaction.splits)
                conn.commit()
            except Exception:
                conn.rollback()
                raise

        return transaction

    # -- use cases -----------------------------------------------------------

    def create(self, user_id: int, data: CreateTransactionInput) -> Transaction:
        """Create a manual transaction.

        Args:
            user_id: Owning user.
            data: Validated transaction payload.

        Returns:
            The created Transaction with id populated.

        Raises:
            ValidationError: If splits do not add up, the month does not match
                the date, or a referenced category/payment method is unknown.
        """
        splits = [
            CategorySplit(split.category_id, split.allocated_amount)
            for split in data.split
        ]
        validate_splits(data.amount, splits, required=True)

        occurred_month = Month.from_date(data.occurred_on)
        if data.occurred_month is not None:
            requested = Month.parse(data.occurred_month)
            if not requested.contains(data.occurred_on):
                raise ValidationError(
                    f"Month {requested} does not match date {data.occurred_on.isoformat()}"
                )

        if data.status == "pending":
            due_on = data.due_on or data.occurred_on
            paid_on = None
        else:
            due_on = data.due_on
            paid_on = data.paid_on or data.occurred_on

        transaction = Transaction(
            id=0,
            user_id=user_id,
            kind=data.kind,
            title=data.title,
            description=data.description,
            amount=data.amount,
            payment_method_id=data.payment_method_id,
            is_fixed=data.is_fixed,
            status=data.status,
            occurred_on=data.occurred_on,
            occurred_month=occurred_month,
            due_on=due_on,
            paid_on=paid_on,
            splits=splits,
        )

        with self.db_manager.connect() as conn:
            check_references(
                conn,
                user_id,
                transaction.kind,
                transaction.category_ids,
                transaction.payment_method_id,
            )
            try:
                cursor = conn.execute(
                    f"""
                    INSERT INTO transactions ({_TRANSACTION_INSERT_FIELDS})
                    VALUES {_TRANSACTION_INSERT_PLACEHOLDERS}
                    """,
                    self._insert_values(transaction),
                )
                transaction.id = cursor.lastrowid
                self._insert_splits(conn, transaction.id, splits)
                conn.commit()
            except Exception:
                conn.rollback()
                raise

        logger.debug(f"Created transaction {transaction.id} for user {user_id}")
        return transaction

    def update(
        self, transaction_id: int, user_id: int, data: UpdateTransactionInput
    ) -> Transaction:
        """Apply a partial update to a transaction.

        Generated transactions can be edited like any other; their target
        month stays fixed so materialization keeps recognizing them.

        Raises:
            NotFoundError: If the transaction does not exist.
            ValidationError: If the resulting splits or references are invalid.
        """
        existing = self.require(transaction_id, user_id)
        fields = data.model_fields_set

        amount = data.amount if data.amount is not None else existing.amount
        if data.split is not None:
            splits = [
                CategorySplit(split.category_id, split.allocated_amount)
                for split in data.split
            ]
        else:
            splits = existing.splits
        validate_splits(amount, splits, required=not existing.is_generated)

        occurred_on = data.occurred_on or existing.occurred_on
        if existing.is_generated:
            occurred_month = existing.occurred_month
        else:
            occurred_month = Month.from_date(occurred_on)

        status = data.status or existing.status
        if status == "pending":
            due_on = data.due_on or existing.due_on or occurred_on
            paid_on = None
        else:
            due_on = data.due_on or existing.due_on
            paid_on = data.paid_on or existing.paid_on or self.clock()

        updated = Transaction(
            id=existing.id,
            user_id=user_id,
            kind=existing.kind,
            title=data.title if data.title is not None else existing.title,
            description=(
                data.description if "description" in fields else existing.description
            ),
            amount=amount,
            payment_method_id=(
                data.payment_method_id
                if "payment_method_id" in fields
                else existing.payment_method_id
            ),
            is_fixed=data.is_fixed if data.is_fixed is not None else existing.is_fixed,
            status=status,
            occurred_on=occurred_on,
            occurred_month=occurred_month,
            due_on=due_on,
            paid_on=paid_on,
            source_recurring_rule_id=existing.source_recurring_rule_id,
            splits=splits,
            created_at=existing.created_at,
        )

        with self.db_manager.connect() as conn:
            check_references(
                conn,
                user_id,
                updated.kind,
                updated.category_ids if data.split is not None else [],
                updated.payment_method_id if "payment_method_id" in fields else None,
            )
            try:
                conn.execute(
                    """
                    UPDATE transactions
                    SET title = ?, description = ?, amount = ?, payment_method_id = ?,
                        is_fixed = ?, status = ?, occurred_on = ?, occurred_month = ?,
                        due_on = ?, paid_on = ?, updated_at = CURRENT_TIMESTAMP
                    WHERE id = ? AND user_id = ?
                    """,
                    (
                        updated.title,
                        updated.description,
                        updated.amount,
                        updated.payment_method_id,
                        1 if updated.is_fixed else 0,
                        updated.status,
                        updated.occurred_on.isoformat(),
                        str(updated.occurred_month),
                        _iso(updated.due_on),
                        _iso(updated.paid_on),
                        transaction_id,
                        user_id,
                    ),
                )
                if data.split is not None:
                    conn.execute(
                        "DELETE FROM transaction_categories WHERE transaction_id = ?",
                        (transaction_id,),
                    )
                    self._insert_splits(conn, transaction_id, splits)
                conn.commit()
            except Exception:
                conn.rollback()
                raise

        return updated

    def mark_paid(
        self, transaction_id: int, user_id: int, paid_on: Optional[date] = None
    ) -> Transaction:
        """Mark a transaction as paid.

        Args:
            transaction_id: Transaction to update.
            user_id: Owning user.
            paid_on: Payment date; defaults to today.

        Returns:
            The updated Transaction. Already paid transactions are returned
            unchanged.

        Raises:
            NotFoundError: If the transaction does not exist.
        """
        transaction = self.require(transaction_id, user_id)
        if transaction.status == "paid":
            return transaction

        transaction.status = "paid"
        transaction.paid_on = paid_on or self.clock()

        with self.db_manager.connect() as conn:
            conn.execute(
                """
                UPDATE transactions
                SET status = 'paid', paid_on = ?, updated_at = CURRENT_TIMESTAMP
                WHERE id = ? AND user_id = ?
                """,
                (transaction.paid_on.isoformat(), transaction_id, user_id),
            )
            conn.commit()

        return transaction

    def delete(self, transaction_id: int, user_id: int) -> None:
        """Delete a transaction and its splits.

        Deleting a generated transaction records its (rule, month) pair as
        dismissed so materialization does not bring it back.

        Raises:
            NotFoundError: If the transaction does not exist.
        """
        transaction = self.require(transaction_id, user_id)

        with self.db_manager.connect() as conn:
            try:
                if transaction.is_generated:
                    conn.execute(
                        """
                        INSERT OR IGNORE INTO dismissed_recurring_instances
                            (recurring_rule_id, occurred_month)
                        VALUES (?, ?)
                        """,
                        (
                            transaction.source_recurring_rule_id,
                            str(transaction.occurred_month),
                        ),
                    )
                conn.execute(
                    "DELETE FROM transactions WHERE id = ? AND user_id = ?",
                    (transaction_id, user_id),
                )
                conn.commit()
            except Exception:
                conn.rollback()
                raise

        logger.debug(f"Deleted transaction {transaction_id} for user {user_id}")

    # -- queries -------------------------------------------------------------

    def find(self, transaction_id: int, user_id: int) -> Optional[Transaction]:
        """Get a single transaction by ID.

        Returns:
            Transaction with its splits, or None if not found for this user.
        """
        with self.db_manager.connect() as conn:
            row = conn.execute(
                f"""
                SELECT {_TRANSACTION_SELECT_FIELDS} FROM transactions
                WHERE id = ? AND user_id = ?
                """,
                (transaction_id, user_id),
            ).fetchone()

            if not row:
                return None
            return self._with_splits(conn, [self._row_to_transaction(row)])[0]

    def require(self, transaction_id: int, user_id: int) -> Transaction:
        transaction = self.find(transaction_id, user_id)
        if not transaction:
            raise NotFoundError("Transaction", transaction_id)
        return transaction

    def find_by_month(self, user_id: int, month: Month) -> List[Transaction]:
        """Get all of a user's transactions in a month, oldest first."""
        with self.db_manager.connect() as conn:
            rows = conn.execute(
                f"""
                SELECT {_TRANSACTION_SELECT_FIELDS} FROM transactions
                WHERE user_id = ? AND occurred_month = ?
                ORDER BY occurred_on, id
                """,
                (user_id, str(month)),
            ).fetchall()
            return self._with_splits(
                conn, [self._row_to_transaction(row) for row in rows]
            )

    def list(self, user_id: int, params: ListTransactionsParams) -> PaginatedTransactions:
        """Search a user's transactions with filters, sorting and pagination.

        Args:
            user_id: Owning user.
            params: Filters (month, kind, status, payment method, categories,
                free text ``q``), sort column/order and page.

        Returns:
            PaginatedTransactions with the requested page.

        Raises:
            ValidationError: On an unknown sort column, page < 1 or a page
                size outside 1..100.
        """
        if params.sort_by not in SORTABLE_COLUMNS:
            raise ValidationError(
                f"Cannot sort by {params.sort_by!r}; use one of {', '.join(SORTABLE_COLUMNS)}"
            )
        if params.page < 1:
            raise ValidationError("Page must be 1 or greater")
        if params.page_size < 1 or params.page_size > MAX_PAGE_SIZE:
            raise ValidationError(f"Page size must be between 1 and {MAX_PAGE_SIZE}")

        where = ["user_id = ?"]
        values: list = [user_id]

        if params.month is not None:
            where.append("occurred_month = ?")
            values.append(str(Month.parse(params.month)))
        if params.kind is not None:
            where.append("kind = ?")
            values.append(params.kind)
        if params.status is not None:
            where.append("status = ?")
            values.append(params.status)
        if params.payment_method_id is not None:
            where.append("payment_method_id = ?")
            values.append(params.payment_method_id)
        if params.category_ids:
            placeholders = ", ".join(["?"] * len(params.category_ids))
            where.append(
                f"""EXISTS (
                    SELECT 1 FROM transaction_categories tc
                    WHERE tc.transaction_id = transactions.id
                      AND tc.category_id IN ({placeholders})
                )"""
            )
            values.extend(params.category_ids)
        if params.q:
            where.append("(title LIKE ? OR description LIKE ?)")
            pattern = f"%{params.q}%"
            values.extend([pattern, pattern])

        where_clause = " AND ".join(where)
        direction = "ASC" if params.sort_order == "asc" else "DESC"
        offset = (params.page - 1) * params.page_size

        with self.db_manager.connect() as conn:
            total = conn.execute(
                f"SELECT COUNT(*) FROM transactions WHERE {where_clause}", values
            ).fetchone()[0]

            rows = conn.execute(
                f"""
                SELECT {_TRANSACTION_SELECT_FIELDS} FROM transactions
                WHERE {where_clause}
                ORDER BY {params.sort_by} {direction}, id {direction}
                LIMIT ? OFFSET ?
                """,
                [*values, params.page_size, offset],
            ).fetchall()
            items = self._with_splits(
                conn, [self._row_to_transaction(row) for row in rows]
            )

        return PaginatedTransactions(
            items=items, total=total, page=params.page, page_size=params.page_size
        )

    def get_expense_status_summary(
        self, user_id: int, month: Month
    ) -> ExpenseStatusSummary:
        """Totals and counts of paid vs pending expenses for a month."""
        with self.db_manager.connect() as conn:
            row = conn.execute(
                """
                SELECT
                    COALESCE(SUM(CASE WHEN status = 'paid' THEN amount END), 0),
                    COUNT(CASE WHEN status = 'paid' THEN 1 END),
                    COALESCE(SUM(CASE WHEN status = 'pending' THEN amount END), 0),
                    COUNT(CASE WHEN status = 'pending' THEN 1 END)
                FROM transactions
                WHERE user_id = ? AND kind = 'expense' AND occurred_month = ?
                """,
                (user_id, str(month)),
            ).fetchone()

        return ExpenseStatusSummary(
            month=str(month),
            total_paid=row[0],
            paid_count=row[1],
            total_pending=row[2],
            pending_count=row[3],
        )

    # -- helpers -------------------------------------------------------------

    def _insert_values(self, transaction: Transaction) -> tuple:
        return (
            transaction.user_id,
            transaction.kind,
            transaction.title,
            transaction.description,
            transaction.amount,
            transaction.payment_method_id,
            1 if transaction.is_fixed else 0,
            transaction.status,
            transaction.occurred_on.isoformat(),
            str(transaction.occurred_month),
            _iso(transaction.due_on),
            _iso(transaction.paid_on),
            transaction.source_recurring_rule_id,
        )

    def _insert_splits(self, conn, transaction_id: int, splits: List[CategorySplit]):
        conn.executemany(
            """
            INSERT INTO transaction_categories (transaction_id, category_id, allocated_amount)
            VALUES (?, ?, ?)
            """,
            [(transaction_id, s.category_id, s.allocated_amount) for s in splits],
        )

    def _with_splits(self, conn, transactions: List[Transaction]) -> List[Transaction]:
        """Attach category splits to already loaded transactions."""
        if not transactions:
            return transactions

        by_id: Dict[int, Transaction] = {t.id: t for t in transactions}
        placeholders = ", ".join(["?"] * len(by_id))
        rows = conn.execute(
            f"""
            SELECT transaction_id, category_id, allocated_amount
            FROM transaction_categories
            WHERE transaction_id IN ({placeholders})
            ORDER BY id
            """,
            list(by_id),
        ).fetchall()

        for transaction_id, category_id, allocated_amount in rows:
            by_id[transaction_id].splits.append(
                CategorySplit(category_id, allocated_amount)
            )
        return transactions

    def _row_to_transaction(self, row: tuple) -> Transaction:
        """Convert a database row to a Transaction object (without splits)."""
        return Transaction(
            id=row[0],
            user_id=row[1],
            kind=row[2],
            title=row[3],
            description=row[4],
            amount=row[5],
            payment_method_id=row[6],
            is_fixed=bool(row[7]),
            status=row[8],
            occurred_on=date.fromisoformat(row[9]),
            occurred_month=Month.parse(row[10]),
            due_on=date.fromisoformat(row[11]) if row[11] else None,
            paid_on=date.fromisoformat(row[12]) if row[12] else None,
            source_recurring_rule_id=row[13],
            created_at=datetime.fromisoformat(row[14]) if row[14] else None,
        )

"""Investment service for database operations and yield calculations."""

from datetime import date
from decimal import ROUND_CEILING, ROUND_HALF_UP, Decimal
from typing import Callable, Optional

from errors import NotFoundError, ValidationError
from logger import get_logger
from models.investment import Investment, PaginatedInvestments, YieldResult
from models.schemas import (
    INVESTMENT_SORTABLE_COLUMNS,
    MAX_PAGE_SIZE,
    MAX_TNA,
    CreateInvestmentInput,
    ListInvestmentsParams,
    UpdateInvestmentInput,
)

logger = get_logger()

_INVESTMENT_SELECT_FIELDS = """id, user_id, platform, title, principal, tna, days,
       is_compound, started_on, notes"""

_DAYS_PER_YEAR = Decimal(365)
_CENT = Decimal("1")
_RATE_PRECISION = Decimal("0.01")


class YieldCalculator:
    """Interest calculations on amounts in cents.

    Simple interest: ``yield = principal * (tna / 100) * (days / 365)``.
    Compound interest capitalizes daily:
    ``total = principal * (1 + tna / 100 / 365) ** days``.
    Results are rounded half-up to whole cents.
    """

    def calculate(
        self, principal: int, tna: Decimal, days: int, is_compound: bool = False
    ) -> YieldResult:
        """Calculate the yield and final total of an investment.

        Args:
            principal: Invested amount in cents.
            tna: Nominal annual rate in percent.
            days: Duration in days.
            is_compound: Use daily capitalization instead of simple interest.

        Returns:
            YieldResult with yield and total in cents.

        Raises:
            ValidationError: If principal or days are not positive, or the
                rate is negative.
        """
        if principal <= 0:
            raise ValidationError("Principal must be greater than zero")
        if tna < 0:
            raise ValidationError("Rate cannot be negative")
        if days <= 0:
            raise ValidationError("Days must be greater than zero")

        principal_dec = Decimal(principal)
        rate = Decimal(tna) / 100

        if is_compound:
            total = principal_dec * (1 + rate / _DAYS_PER_YEAR) ** days
            yield_amount = total - principal_dec
        else:
            yield_amount = principal_dec * rate * Decimal(days) / _DAYS_PER_YEAR
            total = principal_dec + yield_amount

        return YieldResult(
            yield_amount=int(yield_amount.quantize(_CENT, rounding=ROUND_HALF_UP)),
            total=int(total.quantize(_CENT, rounding=ROUND_HALF_UP)),
            tna=Decimal(tna),
            days=days,
        )

    def final_amount(self, principal: int, tna: Decimal, days: int) -> int:
        return self.calculate(principal, tna, days).total

    def effective_annual_rate(self, principal: int, final_amount: int, days: int) -> Decimal:
        """Annualized rate (percent, two decimals) that turns principal into final_amount."""
        if principal <= 0 or final_amount <= 0 or days <= 0:
            raise ValidationError("Principal, final amount and days must be greater than zero")

        rate = (Decimal(final_amount) / Decimal(principal) - 1) * (_DAYS_PER_YEAR / days) * 100
        return rate.quantize(_RATE_PRECISION, rounding=ROUND_HALF_UP)

    def days_for_target_yield(self, principal: int, tna: Decimal, target_yield: int) -> int:
        """Days of simple interest needed to earn target_yield cents, rounded up."""
        if principal <= 0 or tna <= 0 or target_yield <= 0:
            raise ValidationError("Principal, rate and target yield must be greater than zero")

        days = (Decimal(target_yield) * _DAYS_PER_YEAR) / (Decimal(principal) * Decimal(tna) / 100)
        return int(days.to_integral_value(rounding=ROUND_CEILING))


class InvestmentService:
    """Service for managing investments."""

    def __init__(self, db_manager, clock: Optional[Callable[[], date]] = None):
        """Initialize the investment service.

        Args:
            db_manager: Database manager instance for database operations.
            clock: Callable returning today's date (defaults to date.today).
        """
        self.db_manager = db_manager
        self.clock = clock or date.today
        self.calculator = YieldCalculator()

    def list(self, user_id: int, params: ListInvestmentsParams) -> PaginatedInvestments:
        """Search a user's investments with text/active filters, sorting and pagination.

        ``active=True`` keeps open-ended investments and those whose end date
        is today or later; ``active=False`` keeps the ones that have ended.

        Raises:
            ValidationError: On an unknown sort column, page < 1 or a page
                size outside 1..100.
        """
        if params.sort_by not in INVESTMENT_SORTABLE_COLUMNS:
            raise ValidationError(
                f"Cannot sort by {params.sort_by!r}; "
                f"use one of {', '.join(INVESTMENT_SORTABLE_COLUMNS)}"
            )
        if params.page < 1:
            raise ValidationError("Page must be 1 or greater")
        if params.page_size < 1 or params.page_size > MAX_PAGE_SIZE:
            raise ValidationError(f"Page size must be between 1 and {MAX_PAGE_SIZE}")

        where = ["user_id = ?"]
        values: list = [user_id]

        if params.q:
            where.append("(title LIKE ? OR platform LIKE ? OR notes LIKE ?)")
            pattern = f"%{params.q}%"
            values.extend([pattern, pattern, pattern])

        end_date = "date(started_on, '+' || days || ' days')"
        if params.active is True:
            where.append(f"(days IS NULL OR {end_date} >= ?)")
            values.append(self.clock().isoformat())
        elif params.active is False:
            where.append(f"(days IS NOT NULL AND {end_date} < ?)")
            values.append(self.clock().isoformat())

        where_clause = " AND ".join(where)
        direction = "ASC" if params.sort_order == "asc" else "DESC"
        offset = (params.page - 1) * params.page_size

        with self.db_manager.connect() as conn:
            total = conn.execute(
                f"SELECT COUNT(*) FROM investments WHERE {where_clause}", values
            ).fetchone()[0]

            rows = conn.execute(
                f"""
                SELECT {_INVESTMENT_SELECT_FIELDS} FROM investments
                WHERE {where_clause}
                ORDER BY {params.sort_by} {direction}, id {direction}
                LIMIT ? OFFSET ?
                """,
                [*values, params.page_size, offset],
            ).fetchall()

        return PaginatedInvestments(
            items=[self._row_to_investment(row) for row in rows],
            total=total,
            page=params.page,
            page_size=params.page_size,
        )

    def find(self, investment_id: int, user_id: int) -> Optional[Investment]:
        with self.db_manager.connect() as conn:
            row = conn.execute(
                f"""
                SELECT {_INVESTMENT_SELECT_FIELDS} FROM investments
                WHERE id = ? AND user_id = ?
                """,
                (investment_id, user_id),
            ).fetchone()
            return self._row_to_investment(row) if row else None

    def require(self, investment_id: int, user_id: int) -> Investment:
        investment = self.find(investment_id, user_id)
        if not investment:
            raise NotFoundError("Investment", investment_id)
        return investment

    def create(self, user_id: int, data: CreateInvestmentInput) -> Investment:
        """Create a new investment.

        Raises:
            ValidationError: If the start date is in the future.
        """
        self._check_started_on(data.started_on)

        investment = Investment(
            id=0,
            user_id=user_id,
            platform=data.platform,
            title=data.title,
            principal=data.principal,
            tna=data.tna,
            days=data.days,
            is_compound=data.is_compound,
            started_on=data.started_on,
            notes=data.notes,
        )

        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                """
                INSERT INTO investments
                    (user_id, platform, title, principal, tna, days, is_compound,
                     started_on, notes)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    user_id,
                    investment.platform,
                    investment.title,
                    investment.principal,
                    str(investment.tna),
                    investment.days,
                    1 if investment.is_compound else 0,
                    investment.started_on.isoformat(),
                    investment.notes,
                ),
            )
            conn.commit()
            investment.id = cursor.lastrowid

        logger.debug(f"Created investment {investment.id} for user {user_id}")
        return investment

    def update(
        self, investment_id: int, user_id: int, data: UpdateInvestmentInput
    ) -> Investment:
        """Apply a partial update.

        Raises:
            NotFoundError: If the investment does not exist.
            ValidationError: If the result is a simple-interest investment
                without a duration, or starts in the future.
        """
        investment = self.require(investment_id, user_id)
        fields = data.model_fields_set

        for name in ("platform", "title", "principal", "tna", "is_compound", "started_on"):
            value = getattr(data, name)
            if value is not None:
                setattr(investment, name, value)
        if "days" in fields:
            investment.days = data.days
        if "notes" in fields:
            investment.notes = data.notes

        if not investment.is_compound and investment.days is None:
            raise ValidationError("days is required for simple-interest investments")
        self._check_started_on(investment.started_on)

        with self.db_manager.connect() as conn:
            conn.execute(
                """
                UPDATE investments
                SET platform = ?, title = ?, principal = ?, tna = ?, days = ?,
                    is_compound = ?, started_on = ?, notes = ?,
                    updated_at = CURRENT_TIMESTAMP
                WHERE id = ? AND user_id = ?
                """,
                (
                    investment.platform,
                    investment.title,
                    investment.principal,
                    str(investment.tna),
                    investment.days,
                    1 if investment.is_compound else 0,
                    investment.started_on.isoformat(),
                    investment.notes,
                    investment_id,
                    user_id,
                ),
            )
            conn.commit()

        return investment

    def update_rates(self, user_id: int, platform: str, tna: Decimal) -> int:
        """Set the rate of every investment a user holds on a platform.

        Returns:
            Number of investments updated.
        """
        if tna < 0 or tna > MAX_TNA:
            raise ValidationError("Rate must be between 0 and 999.99")

        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                """
                UPDATE investments
                SET tna = ?, updated_at = CURRENT_TIMESTAMP
                WHERE user_id = ? AND lower(platform) = lower(?)
                """,
                (str(tna), user_id, platform),
            )
            conn.commit()

        logger.info(f"Updated rate to {tna}% on {cursor.rowcount} investment(s) at {platform}")
        return cursor.rowcount

    def delete(self, investment_id: int, user_id: int) -> None:
        """Delete an investment.

        Raises:
            NotFoundError: If the investment does not exist.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                "DELETE FROM investments WHERE id = ? AND user_id = ?",
                (investment_id, user_id),
            )
            conn.commit()

        if cursor.rowcount == 0:
            raise NotFoundError("Investment", investment_id)

    def count(self, user_id: int) -> int:
        with self.db_manager.connect() as conn:
            return conn.execute(
                "SELECT COUNT(*) FROM investments WHERE user_id = ?", (user_id,)
            ).fetchone()[0]

    def total_invested(self, user_id: int) -> int:
        """Sum of principals in cents."""
        with self.db_manager.connect() as conn:
            return conn.execute(
                "SELECT COALESCE(SUM(principal), 0) FROM investments WHERE user_id = ?",
                (user_id,),
            ).fetchone()[0]

    def calculate_yield(self, investment: Investment) -> YieldResult:
        """Yield over the investment's term, or up to today when open-ended."""
        if investment.days is not None:
            days = investment.days
        else:
            days = (self.clock() - investment.started_on).days

        if days <= 0:
            return YieldResult(
                yield_amount=0, total=investment.principal, tna=investment.tna, days=0
            )
        return self.calculator.calculate(
            investment.principal, investment.tna, days, investment.is_compound
        )

    def _check_started_on(self, started_on: date) -> None:
        if started_on > self.clock():
            raise ValidationError("Start date cannot be in the future")

    def _row_to_investment(self, row: tuple) -> Investment:
        return Investment(
            id=row[0],
            user_id=row[1],
            platform=row[2],
            title=row[3],
            principal=row[4],
            tna=Decimal(str(row[5])),
            days=row[6],
            is_compound=bool(row[7]),
            started_on=date.fromisoformat(row[8]),
            notes=row[9],
        )

"""Input schemas validated before any service touches the database."""

from datetime import date
from decimal import Decimal
from typing import List, Literal, Optional, Type, TypeVar

import pydantic
from pydantic import BaseModel, ConfigDict, Field, model_validator

from errors import ValidationError
from models.month import MONTH_PATTERN

Kind = Literal["income", "expense"]
Status = Literal["pending", "paid"]
SortOrder = Literal["asc", "desc"]

SORTABLE_COLUMNS = ("occurred_on", "amount", "title", "created_at")
MAX_PAGE_SIZE = 100

INVESTMENT_SORTABLE_COLUMNS = ("started_on", "principal", "tna", "days", "platform", "title")

# 999,999,999,999.99 in cents
MAX_PRINCIPAL = 99_999_999_999_999
MAX_TNA = Decimal("999.99")
MAX_DAYS = 36_500

SchemaT = TypeVar("SchemaT", bound=BaseModel)


class _Input(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="forbid")


class CategorySplitInput(_Input):
    """Single category allocation (amount in cents)."""

    category_id: int
    allocated_amount: int = Field(gt=0)


class CreateCategoryInput(_Input):
    kind: Kind
    name: str = Field(min_length=2, max_length=60)


class UpdateCategoryInput(_Input):
    name: Optional[str] = Field(default=None, min_length=2, max_length=60)
    is_active: Optional[bool] = None


class CreatePaymentMethodInput(_Input):
    name: str = Field(min_length=2, max_length=60)
    is_active: bool = True


class UpdatePaymentMethodInput(_Input):
    name: Optional[str] = Field(default=None, min_length=2, max_length=60)
    is_active: Optional[bool] = None


class CreateRecurringRuleInput(_Input):
    """Payload for a new recurring rule.

    ``status`` may be left unset; generated transactions then use the default
    status for the rule's kind (pending expenses, paid income).
    """

    title: str = Field(min_length=1, max_length=120)
    description: Optional[str] = Field(default=None, max_length=500)
    amount: int = Field(gt=0)
    kind: Kind
    day_of_month: int = Field(ge=1, le=31)
    status: Optional[Status] = None
    payment_method_id: Optional[int] = None
    active_from_month: str = Field(pattern=MONTH_PATTERN)
    active_to_month: Optional[str] = Field(default=None, pattern=MONTH_PATTERN)
    categories: List[CategorySplitInput] = Field(default_factory=list)


class UpdateRecurringRuleInput(_Input):
    """Partial update; only fields explicitly set are applied."""

    title: Optional[str] = Field(default=None, min_length=1, max_length=120)
    description: Optional[str] = Field(default=None, max_length=500)
    amount: Optional[int] = Field(default=None, gt=0)
    kind: Optional[Kind] = None
    day_of_month: Optional[int] = Field(default=None, ge=1, le=31)
    status: Optional[Status] = None
    payment_method_id: Optional[int] = None
    active_from_month: Optional[str] = Field(default=None, pattern=MONTH_PATTERN)
    active_to_month: Optional[str] = Field(default=None, pattern=MONTH_PATTERN)
    categories: Optional[List[CategorySplitInput]] = None


class CreateTransactionInput(_Input):
    kind: Kind
    title: str = Field(min_length=2, max_length=120)
    description: Optional[str] = Field(default=None, max_length=500)
    amount: int = Field(gt=0)
    payment_method_id: Optional[int] = None
    is_fixed: bool = False
    status: Status
    occurred_on: date
    occurred_month: Optional[str] = Field(default=None, pattern=MONTH_PATTERN)
    due_on: Optional[date] = None
    paid_on: Optional[date] = None
    split: List[CategorySplitInput] = Field(min_length=1)


class UpdateTransactionInput(_Input):
    title: Optional[str] = Field(default=None, min_length=2, max_length=120)
    description: Optional[str] = Field(default=None, max_length=500)
    amount: Optional[int] = Field(default=None, gt=0)
    payment_method_id: Optional[int] = None
    is_fixed: Optional[bool] = None
    status: Optional[Status] = None
    occurred_on: Optional[date] = None
    due_on: Optional[date] = None
    paid_on: Optional[date] = None
    split: Optional[List[CategorySplitInput]] = Field(default=None, min_length=1)


class ListTransactionsParams(_Input):
    month: Optional[str] = Field(default=None, pattern=MONTH_PATTERN)
    kind: Optional[Kind] = None
    status: Optional[Status] = None
    payment_method_id: Optional[int] = None
    category_ids: Optional[List[int]] = None
    q: Optional[str] = None
    sort_by: str = "occurred_on"
    sort_order: SortOrder = "desc"
    page: int = 1
    page_size: int = 20



class CreateInvestmentInput(_Input):
    platform: str = Field(min_length=1, max_length=80)
    title: str = Field(min_length=1, max_length=120)
    principal: int = Field(gt=0, le=MAX_PRINCIPAL)
    tna: Decimal = Field(ge=0, le=MAX_TNA, decimal_places=2)
    days: Optional[int] = Field(default=None, gt=0, le=MAX_DAYS)
    is_compound: bool = False
    started_on: date
    notes: Optional[str] = Field(default=None, max_length=5000)

    @model_validator(mode="after")
    def _simple_interest_needs_days(self):
        if not self.is_compound and self.days is None:
            raise ValueError("days is required for simple-interest investments")
        return self


class UpdateInvestmentInput(_Input):
    """Partial update; only fields explicitly set are applied."""

    platform: Optional[str] = Field(default=None, min_length=1, max_length=80)
    title: Optional[str] = Field(default=None, min_length=1, max_length=120)
    principal: Optional[int] = Field(default=None, gt=0, le=MAX_PRINCIPAL)
    tna: Optional[Decimal] = Field(default=None, ge=0, le=MAX_TNA, decimal_places=2)
    days: Optional[int] = Field(default=None, gt=0, le=MAX_DAYS)
    is_compound: Optional[bool] = None
    started_on: Optional[date] = None
    notes: Optional[str] = Field(default=None, max_length=5000)


class ListInvestmentsParams(_Input):
    q: Optional[str] = Field(default=None, max_length=100)
    active: Optional[bool] = None
    sort_by: str = "started_on"
    sort_order: SortOrder = "desc"
    page: int = 1
    page_size: int = 20


def parse_input(schema: Type[SchemaT], **data) -> SchemaT:
    """Build a schema instance, raising the application ValidationError on failure.

    Args:
        schema: Pydantic model class to instantiate.
        **data: Field values.

    Returns:
        Validated schema instance.

    Raises:
        ValidationError: With the pydantic error list as ``details``.
    """
    try:
        return schema(**data)
    except pydantic.ValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first["loc"])
        message = f"{location}: {first['msg']}" if location else first["msg"]
        raise ValidationError(
            message,
            details=e.errors(include_url=False, include_context=False),
        ) from e

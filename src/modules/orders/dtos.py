"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
These are the contracts between the API layer (DRF Views)
and the Service layer.  DTOs are immutable (``frozen=True``).

Input DTOs are built through ``from_payload`` / ``from_query``, which
collect **every** pydantic error and re-raise them as a single
``OrderValidationFailed`` keyed by field path (``items[1].quantity``).

- ``CreateOrderItemDTO`` / ``CreateOrderDTO``: order creation input.
- ``UpdateOrderStatusDTO``: status transition input.
- ``ListOrdersDTO``: paging, sorting and filters of the list query.
- ``StatisticsQueryDTO``: date range of the statistics query.
- ``OrderDraftItem`` / ``OrderDraft``: priced, unpersisted order.
- ``OrderPage`` / ``OrderStatistics``: query outputs.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import (
    TYPE_CHECKING,
    Any,
    Dict,
    List,
    Mapping,
    Optional,
    Sequence,
    Type,
    TypeVar,
)

from django.utils import timezone
from pydantic import (
    BaseModel,
    ConfigDict,
    ValidationError,
    ValidationInfo,
    field_validator,
)

from modules.orders.constants import (
    DEFAULT_PAGE_SIZE,
    DEFAULT_SORT,
    MAX_PAGE,
    MAX_PAGE_SIZE,
    SORT_SAFELIST,
    STATISTICS_DEFAULT_DAYS,
    OrderStatus,
)
from modules.orders.exceptions import OrderValidationFailed

if TYPE_CHECKING:
    from modules.core.pagination import PageMetadata
    from modules.orders.models import Order

DTO = TypeVar("DTO", bound=BaseModel)

# Messages used when pydantic rejects a value before our validators run
# (wrong type, missing key).  Keyed by the last segment of the field path.
_FALLBACK_MESSAGES: Dict[str, str] = {
    "user_id": "must be a valid user ID",
    "items": "must be a list of order items",
    "product_id": "must be a valid product ID",
    "quantity": "must be a positive integer",
    "status": "must be provided",
    "version": "must be a positive integer",
    "page": "must be an integer value",
    "page_size": "must be an integer value",
    "start_date": "must be in YYYY-MM-DD format",
    "end_date": "must be in YYYY-MM-DD format",
}


def _field_path(loc: Sequence[Any]) -> str:
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path = f"{path}.{part}" if path else str(part)
    return path or "__all__"


def _error_message(error: Dict[str, Any]) -> str:
    if error["type"] == "value_error":
        return str(error["ctx"]["error"])
    if error["type"] == "missing":
        return "must be provided"
    names = [part for part in error["loc"] if isinstance(part, str)]
    if names and names[-1] in _FALLBACK_MESSAGES:
        return _FALLBACK_MESSAGES[names[-1]]
    return error["msg"]


def validate_dto(dto_class: Type[DTO], data: Mapping[str, Any]) -> DTO:
    """Build ``dto_class`` from ``data`` or raise ``OrderValidationFailed``."""
    try:
        return dto_class.model_validate(data)
    except ValidationError as exc:
        errors: Dict[str, str] = {}
        for error in exc.errors():
            errors.setdefault(_field_path(error["loc"]), _error_message(error))
        raise OrderValidationFailed(errors) from exc


# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class CreateOrderItemDTO(BaseModel):
    """Immutable DTO for a single order item in a creation request.

    The client sends ``product_id`` and ``quantity``.
    ``unit_price`` is resolved by the Service Layer from the product catalog.
    """

    model_config = ConfigDict(frozen=True)

    product_id: int
    quantity: int

    @field_validator("product_id")
    @classmethod
    def product_id_must_be_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be a valid product ID")
        return v

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be greater than 0")
        return v


class CreateOrderDTO(BaseModel):
    """Immutable DTO for order creation requests.

    Validates:
    - ``user_id`` must be positive.
    - ``items`` must contain at least one item.
    - Each item product id and quantity must be positive.

    A product may appear on several lines; stock is checked against the
    combined quantity.
    """

    model_config = ConfigDict(frozen=True)

    user_id: int
    items: List[CreateOrderItemDTO]

    @field_validator("user_id")
    @classmethod
    def user_id_must_be_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be a valid user ID")
        return v

    @field_validator("items")
    @classmethod
    def items_must_not_be_empty(
        cls, v: List[CreateOrderItemDTO]
    ) -> List[CreateOrderItemDTO]:
        if not v:
            raise ValueError("must contain at least one item")
        return v

    @classmethod
    def from_payload(cls, user_id: Any, payload: Mapping[str, Any]) -> CreateOrderDTO:
        """Validate a raw request body on behalf of ``user_id``."""
        items = payload.get("items", []) if isinstance(payload, Mapping) else None
        return validate_dto(cls, {"user_id": user_id, "items": items})


class UpdateOrderStatusDTO(BaseModel):
    """Immutable DTO for status transition requests.

    Only the shape is validated here; whether ``status`` is a legal
    destination is decided by the transition authority.
    """

    model_config = ConfigDict(frozen=True)

    status: str
    version: int

    @field_validator("status")
    @classmethod
    def status_must_not_be_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must be provided")
        return v.strip().upper()

    @field_validator("version")
    @classmethod
    def version_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be a positive integer")
        return v

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> UpdateOrderStatusDTO:
        data = payload if isinstance(payload, Mapping) else {}
        return validate_dto(
            cls, {key: data[key] for key in ("status", "version") if key in data}
        )


class ListOrdersDTO(BaseModel):
    """Immutable DTO for the order list query.

    ``user_id=None`` lists every order (admin view).
    """

    model_config = ConfigDict(frozen=True)

    user_id: Optional[int] = None
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE
    sort: str = DEFAULT_SORT
    name: Optional[str] = None
    status: Optional[str] = None

    @field_validator("page")
    @classmethod
    def page_in_range(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be greater than zero")
        if v > MAX_PAGE:
            raise ValueError("must be a maximum of 10 million")
        return v

    @field_validator("page_size")
    @classmethod
    def page_size_in_range(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be greater than zero")
        if v > MAX_PAGE_SIZE:
            raise ValueError(f"must be a maximum of {MAX_PAGE_SIZE}")
        return v

    @field_validator("sort")
    @classmethod
    def sort_in_safelist(cls, v: str) -> str:
        if v not in SORT_SAFELIST:
            raise ValueError("invalid sort value")
        return v

    @field_validator("status")
    @classmethod
    def status_is_known(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip().upper()
        if v not in OrderStatus.values:
            raise ValueError(f"must be one of {', '.join(OrderStatus.values)}")
        return v

    @field_validator("name")
    @classmethod
    def blank_name_is_none(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v.strip() if v else v

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    @classmethod
    def from_query(
        cls,
        user_id: Optional[int],
        params: Mapping[str, Any],
        default_page_size: int = DEFAULT_PAGE_SIZE,
    ) -> ListOrdersDTO:
        """Validate query-string parameters; absent keys take defaults."""
        data: Dict[str, Any] = {
            "user_id": user_id,
            "page": params.get("page") or 1,
            "page_size": params.get("page_size") or default_page_size,
            "sort": params.get("sort") or DEFAULT_SORT,
        }
        for key in ("name", "status"):
            if params.get(key):
                data[key] = params.get(key)
        return validate_dto(cls, data)


class StatisticsQueryDTO(BaseModel):
    """Immutable DTO for the order statistics date range (inclusive)."""

    model_config = ConfigDict(frozen=True)

    start_date: date
    end_date: date

    @field_validator("end_date")
    @classmethod
    def end_not_before_start(cls, v: date, info: ValidationInfo) -> date:
        start = info.data.get("start_date")
        if start is not None and start > v:
            raise ValueError("must not be before start_date")
        return v

    @classmethod
    def from_query(cls, params: Mapping[str, Any]) -> StatisticsQueryDTO:
        """Validate ``start_date``/``end_date``; default is the last 30 days."""
        today = timezone.localdate()
        return validate_dto(
            cls,
            {
                "start_date": params.get("start_date")
                or today - timedelta(days=STATISTICS_DEFAULT_DAYS),
                "end_date": params.get("end_date") or today,
            },
        )


# ---------------------------------------------------------------------------
# Pricing output
# ---------------------------------------------------------------------------


class OrderDraftItem(BaseModel):
    """A priced line item, not yet persisted."""

    model_config = ConfigDict(frozen=True)

    product_id: int
    product_name: str
    quantity: int
    unit_price: Decimal

    @property
    def subtotal(self) -> Decimal:
        return self.unit_price * self.quantity


class OrderDraft(BaseModel):
    """An unpersisted, fully priced order."""

    model_config = ConfigDict(frozen=True)

    user_id: int
    status: str = OrderStatus.PLACED
    total_amount: Decimal
    items: List[OrderDraftItem]


# ---------------------------------------------------------------------------
# Query outputs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class OrderPage:
    """One page of orders plus its pagination metadata."""

    orders: List[Order]
    metadata: PageMetadata


class OrderStatistics(BaseModel):
    """Aggregated order figures over a date range."""

    model_config = ConfigDict(frozen=True)

    start_date: date
    end_date: date
    total_orders: int
    status_counts: Dict[str, int]
    total_revenue: Decimal
    average_order_value: Decimal

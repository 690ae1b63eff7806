"""Inbound order event contract.

Order events are published by the order service as JSON objects, one event
per message:

    {"orderId": 1, "userId": 123, "productName": "Test Product",
     "quantity": 2, "totalAmount": 199.99, "status": "PENDING",
     "eventType": "ORDER_CREATED", "timestamp": "2024-01-15 10:30:00"}

The schema is strict about identifiers and lenient about the numeric order
details: quantity and total amount arrive in whatever numeric encoding the
producer used and are canonicalized here, falling back to 1 and 0.0 with a
warning instead of rejecting the event.
"""

import json
import math
from datetime import UTC, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

logger = structlog.get_logger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1
INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

DEFAULT_QUANTITY = 1
DEFAULT_TOTAL_AMOUNT = Decimal("0.0")


class OrderEventType(Enum):
    ORDER_CREATED = "ORDER_CREATED"
    ORDER_UPDATED = "ORDER_UPDATED"
    ORDER_CANCELLED = "ORDER_CANCELLED"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def _missing_(cls, value):
        return cls.UNKNOWN


class DeserializationError(Exception):
    """The message payload is not a valid order event."""

    def __init__(self, message: str, payload=None) -> None:
        super().__init__(message)
        self.payload = payload


# ---------------------------------------------------------------------------
# Numeric canonicalization
# ---------------------------------------------------------------------------
def canonical_quantity(value) -> int:
    """Convert ``value`` to an int32 quantity, defaulting to 1."""
    candidate = None
    if isinstance(value, bool):
        candidate = None
    elif isinstance(value, int):
        candidate = value
    elif isinstance(value, float) and math.isfinite(value):
        candidate = int(value)
    elif isinstance(value, Decimal) and value.is_finite():
        candidate = int(value)
    elif isinstance(value, str):
        try:
            parsed = Decimal(value.strip())
            if parsed.is_finite():
                candidate = int(parsed)
        except InvalidOperation:
            candidate = None

    if candidate is None or not INT32_MIN <= candidate <= INT32_MAX:
        logger.warning(
            "Unexpected quantity value, using default",
            value=repr(value),
            value_type=type(value).__name__,
            default=DEFAULT_QUANTITY,
        )
        return DEFAULT_QUANTITY
    return candidate


def canonical_amount(value) -> Decimal:
    """Convert ``value`` to a Decimal total amount, defaulting to 0.0."""
    candidate = None
    if isinstance(value, bool):
        candidate = None
    elif isinstance(value, int):
        candidate = Decimal(value)
    elif isinstance(value, float) and math.isfinite(value):
        candidate = Decimal(str(value))
    elif isinstance(value, Decimal) and value.is_finite():
        candidate = value
    elif isinstance(value, str):
        try:
            parsed = Decimal(value.strip())
            if parsed.is_finite():
                candidate = parsed
        except InvalidOperation:
            candidate = None

    if candidate is None:
        logger.warning(
            "Unexpected totalAmount value, using default",
            value=repr(value),
            value_type=type(value).__name__,
            default=str(DEFAULT_TOTAL_AMOUNT),
        )
        return DEFAULT_TOTAL_AMOUNT
    return candidate


# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------
class OrderEvent(BaseModel):
    """An order lifecycle event as received from the bus. Immutable."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    order_id: int = Field(alias="orderId", ge=INT64_MIN, le=INT64_MAX)
    user_id: int = Field(alias="userId", ge=INT64_MIN, le=INT64_MAX)
    product_name: str | None = Field(default=None, alias="productName")
    quantity: int = Field(default=None, validate_default=True)
    total_amount: Decimal = Field(default=None, alias="totalAmount", validate_default=True)
    order_status: str = Field(default=None, alias="status", validate_default=True)
    event_type: str = Field(default="", alias="eventType")
    timestamp: datetime = Field(default=None, validate_default=True)

    @field_validator("order_id", "user_id", mode="before")
    @classmethod
    def _reject_non_integral_ids(cls, value):
        if isinstance(value, bool) or value is None:
            raise ValueError("must be an integer")
        return value

    @field_validator("quantity", mode="before")
    @classmethod
    def _canonical_quantity(cls, value):
        return canonical_quantity(value)

    @field_validator("total_amount", mode="before")
    @classmethod
    def _canonical_amount(cls, value):
        return canonical_amount(value)

    @field_validator("order_status", mode="before")
    @classmethod
    def _order_status(cls, value):
        if value is None:
            return "UNKNOWN"
        return str(value)

    @field_validator("event_type", mode="before")
    @classmethod
    def _event_type(cls, value):
        if value is None:
            return ""
        return str(value)

    @field_validator("timestamp", mode="before")
    @classmethod
    def _timestamp(cls, value):
        if value is None:
            return datetime.now(UTC)
        if isinstance(value, str):
            try:
                return datetime.strptime(value, TIMESTAMP_FORMAT).replace(tzinfo=UTC)
            except ValueError:
                return datetime.fromisoformat(value)
        return value

    @property
    def kind(self) -> OrderEventType:
        return OrderEventType(self.event_type)


def parse_order_event(payload: bytes | str) -> OrderEvent:
    """Deserialize a raw message payload into an OrderEvent.

    Raises:
        DeserializationError: the payload is not JSON, not an object, or
            violates the schema.
    """
    try:
        data = json.loads(payload)
    except (ValueError, TypeError) as e:
        raise DeserializationError(f"Payload is not valid JSON: {e}", payload) from e

    if not isinstance(data, dict):
        raise DeserializationError(f"Expected a JSON object, got {type(data).__name__}", payload)

    try:
        return OrderEvent.model_validate(data)
    except ValidationError as e:
        raise DeserializationError(f"Invalid order event: {e.error_count()} validation error(s)", payload) from e

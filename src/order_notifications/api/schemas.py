"""Pydantic response models for the notifications API.

API schemas are separate from the Protean aggregate (anti-corruption pattern).
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


class NotificationResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    order_id: int = Field(serialization_alias="orderId")
    user_id: int = Field(serialization_alias="userId")
    recipient: str
    subject: str
    message: str
    notification_type: str = Field(serialization_alias="type")
    status: str
    sent_at: datetime | None = Field(default=None, serialization_alias="sentAt")
    error_message: str | None = Field(default=None, serialization_alias="errorMessage")
    is_read: bool = Field(default=False, serialization_alias="isRead")
    read_at: datetime | None = Field(default=None, serialization_alias="readAt")
    created_at: datetime | None = Field(default=None, serialization_alias="createdAt")

    @classmethod
    def from_notification(cls, n) -> "NotificationResponse":
        return cls(
            id=str(n.id),
            order_id=n.order_id,
            user_id=n.user_id,
            recipient=n.recipient,
            subject=n.subject,
            message=n.message,
            notification_type=n.notification_type,
            status=n.status,
            sent_at=n.sent_at,
            error_message=n.error_message,
            is_read=bool(n.is_read),
            read_at=n.read_at,
            created_at=n.created_at,
        )


class StatsResponse(BaseModel):
    user_id: int = Field(serialization_alias="userId")
    total: int
    pending: int
    sent: int
    failed: int


class ResendResponse(BaseModel):
    order_id: int = Field(serialization_alias="orderId")
    resent: bool
    message: str


class StatusResponse(BaseModel):
    status: str = "ok"


class EmailHealthResponse(BaseModel):
    status: str
    transport: str


# Shape check only; the mail server has the final say
_EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class EmailRequest(BaseModel):
    """An ad-hoc plain-text e-mail."""

    to: str = Field(pattern=_EMAIL_PATTERN, max_length=254)
    subject: str = Field(min_length=1, max_length=255)
    body: str = Field(min_length=1, max_length=5000)

    @field_validator("subject", "body")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value


class EmailResponse(BaseModel):
    notification_id: str = Field(serialization_alias="notificationId")
    sent: bool
    message: str


class OrderEventResponse(BaseModel):
    processed: bool
    notification_id: str | None = Field(default=None, serialization_alias="notificationId")
    message: str

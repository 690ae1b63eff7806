"""Runtime settings for the notification pipeline.

Defaults match a single-node deployment with an in-memory mail transport.
Every field can be overridden with a ``NOTIFICATION_<FIELD>`` environment
variable, e.g. ``NOTIFICATION_MAX_POOL_SIZE=20``.
"""

import os
from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict, Field, model_validator

ENV_PREFIX = "NOTIFICATION_"


class NotificationSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    # Delivery worker pool
    core_pool_size: int = Field(default=5, ge=1)
    max_pool_size: int = Field(default=10, ge=1)
    queue_capacity: int = Field(default=100, ge=0)
    keep_alive_seconds: float = Field(default=60.0, gt=0)
    drain_timeout_seconds: float = Field(default=30.0, ge=0)

    # Mail
    mail_from_address: str = "noreply@oms.com"
    mail_from_name: str | None = "Order Management System"
    smtp_host: str | None = None
    smtp_port: int = 587
    smtp_username: str | None = None
    smtp_password: str | None = None
    smtp_starttls: bool = True
    smtp_timeout_seconds: float = Field(default=10.0, gt=0)

    # User directory
    user_directory_url: str = "http://localhost:8081"
    user_directory_timeout_seconds: float = Field(default=5.0, gt=0)

    # Resend
    resend_timeout_seconds: float = Field(default=30.0, gt=0)

    # Ingestion
    order_events_topic: str = "order-events-v2"
    partitions: int = Field(default=1, ge=1)
    ingestion_enabled: bool = True
    kafka_bootstrap_servers: str = "localhost:9092"
    kafka_group_id: str = "notification-service-group-v5"
    kafka_auto_offset_reset: str = "earliest"

    @model_validator(mode="after")
    def _check_pool_sizes(self):
        if self.max_pool_size < self.core_pool_size:
            raise ValueError("max_pool_size must be greater than or equal to core_pool_size")
        return self

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "NotificationSettings":
        """Build settings from ``NOTIFICATION_*`` variables. Unset fields keep their defaults."""
        environ = os.environ if environ is None else environ
        values = {}
        for name in cls.model_fields:
            raw = environ.get(f"{ENV_PREFIX}{name.upper()}")
            if raw is not None and raw != "":
                values[name] = raw
        return cls.model_validate(values)

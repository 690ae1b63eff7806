"""Tests for NotificationSettings defaults, validation and environment overrides."""

import pytest
from order_notifications.config import NotificationSettings
from pydantic import ValidationError


class TestDefaults:
    def test_pool_defaults(self):
        settings = NotificationSettings()
        assert settings.core_pool_size == 5
        assert settings.max_pool_size == 10
        assert settings.queue_capacity == 100
        assert settings.drain_timeout_seconds == 30.0

    def test_mail_and_topic_defaults(self):
        settings = NotificationSettings()
        assert settings.mail_from_address == "noreply@oms.com"
        assert settings.smtp_host is None
        assert settings.order_events_topic == "order-events-v2"


class TestValidation:
    def test_max_below_core(self):
        with pytest.raises(ValidationError, match="max_pool_size"):
            NotificationSettings(core_pool_size=5, max_pool_size=4)

    def test_core_at_least_one(self):
        with pytest.raises(ValidationError):
            NotificationSettings(core_pool_size=0)

    def test_negative_queue(self):
        with pytest.raises(ValidationError):
            NotificationSettings(queue_capacity=-1)


class TestFromEnv:
    def test_overrides(self):
        settings = NotificationSettings.from_env(
            {
                "NOTIFICATION_CORE_POOL_SIZE": "2",
                "NOTIFICATION_MAX_POOL_SIZE": "3",
                "NOTIFICATION_QUEUE_CAPACITY": "7",
                "NOTIFICATION_SMTP_HOST": "smtp.example.com",
                "NOTIFICATION_SMTP_STARTTLS": "false",
            }
        )
        assert (settings.core_pool_size, settings.max_pool_size, settings.queue_capacity) == (2, 3, 7)
        assert settings.smtp_host == "smtp.example.com"
        assert settings.smtp_starttls is False

    def test_unrelated_and_empty_variables_ignored(self):
        settings = NotificationSettings.from_env({"CORE_POOL_SIZE": "1", "NOTIFICATION_MAX_POOL_SIZE": ""})
        assert settings.core_pool_size == 5
        assert settings.max_pool_size == 10

    def test_invalid_value(self):
        with pytest.raises(ValidationError):
            NotificationSettings.from_env({"NOTIFICATION_CORE_POOL_SIZE": "many"})

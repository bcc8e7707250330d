"""Startup-time helpers for safe config logging."""

from sellerpay.common.config import Settings
from sellerpay.common.logging import logger

SECRET_MARKERS = ("key", "secret", "password", "token")


def redacted_value(field: str, value: object) -> object:
    """Mask secret-like settings; report only whether they are set."""

    if any(marker in field.lower() for marker in SECRET_MARKERS):
        return "<redacted>" if value else "<unset>"
    return value


def log_startup_config(settings: Settings, fields: list[str]) -> dict[str, object]:
    """Log the effective value of selected settings for quick troubleshooting."""

    config: dict[str, object] = {"service": settings.service_name}
    for field in fields:
        config[field] = redacted_value(field, getattr(settings, field))
    logger.info("startup_config=%s", config)
    return config

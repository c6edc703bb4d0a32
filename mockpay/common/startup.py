"""Startup-time helpers for safe config logging."""

from mockpay.common.config import MockSettings
from mockpay.common.logging import logger


def _safe_value(name: str, value):
    """Return value with simple redaction for secret-like setting names."""

    if any(secret in name.upper() for secret in ["KEY", "SECRET", "PASSWORD", "TOKEN"]):
        return "<redacted>"
    return value


def log_startup_config(config: MockSettings) -> None:
    """Log the effective settings once for quick troubleshooting."""

    effective = {name: _safe_value(name, value) for name, value in config.model_dump().items()}
    logger.info("startup_config=%s", effective)

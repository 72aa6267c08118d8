"""Logfire tracing for circulation operations."""

import functools
import inspect
import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any

import logfire

from .config import CirculationConfig

logger = logging.getLogger(__name__)


def initialize_observability(config: CirculationConfig) -> None:
    """Configure Logfire from the service configuration."""
    logfire.configure(
        service_name=config.service_name,
        service_version=config.service_version,
        token=config.logfire_token,
        send_to_logfire=config.send_to_logfire and config.logfire_token is not None,
        console=None if config.console_traces else False,
    )
    logger.debug(
        "Observability initialized (send_to_logfire=%s, console=%s)",
        config.send_to_logfire,
        config.console_traces,
    )


def traced(operation: str):
    """Decorator to run a circulation operation inside a Logfire span."""

    def decorator(func: Callable) -> Callable:
        signature = inspect.signature(func)

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            with logfire.span(
                f"circulation.{operation}",
                operation=operation,
            ) as span:
                start_time = datetime.now()
                _add_attributes(span, "input", signature.bind(*args, **kwargs).arguments)

                try:
                    result = func(*args, **kwargs)
                except Exception as e:
                    span.set_attribute("circulation.success", False)
                    span.set_attribute("circulation.error_type", type(e).__name__)
                    span.set_attribute("circulation.error", str(e))
                    raise

                span.set_attribute("circulation.success", True)
                span.set_attribute(
                    "circulation.duration_ms",
                    (datetime.now() - start_time).total_seconds() * 1000,
                )
                return result

        return wrapper

    return decorator


def report_notification_failure(patron_id: str, message: str, error: Exception) -> None:
    """Record a failed notification without interrupting the caller."""
    logger.error("Notification to patron %s failed: %s", patron_id, error)
    with logfire.span(
        "circulation.notification_failed",
        patron_id=patron_id,
        notification_message=message,
    ) as span:
        span.set_attribute("notification.error_type", type(error).__name__)
        span.set_attribute("notification.error", str(error))


def _add_attributes(span, prefix: str, data: dict[str, Any]) -> None:
    for key, value in data.items():
        if isinstance(value, str | int | float | bool):
            span.set_attribute(f"{prefix}.{key}", value)

"""Structlog configuration for service-wide logging."""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Any

import structlog

from pdfraster.settings import Settings, get_settings

if TYPE_CHECKING:
    from structlog.typing import EventDict, Processor

_LOGGING_CONFIGURED = False

# Third-party loggers that flood DEBUG output with per-request wire details.
_NOISY_LOGGERS = ("botocore", "boto3", "urllib3", "s3transfer", "multipart", "python_multipart")


def _rename_event_key(
    logger: logging.Logger,  # noqa: ARG001
    method_name: str,  # noqa: ARG001
    event_dict: EventDict,
) -> EventDict:
    """Store the log message under `message` instead of `event`."""
    if "event" in event_dict:
        event_dict["message"] = event_dict.pop("event")
    return event_dict


def _service_fields(settings: Settings) -> Processor:
    """Return a processor stamping every entry with service and environment."""
    fields = {"service": settings.project_name, "env": settings.app_env}

    def _add_service_fields(
        logger: logging.Logger,  # noqa: ARG001
        method_name: str,  # noqa: ARG001
        event_dict: EventDict,
    ) -> EventDict:
        for key, value in fields.items():
            event_dict.setdefault(key, value)
        return event_dict

    return _add_service_fields


def _build_processors(settings: Settings) -> list[Processor]:
    renderer: Processor = structlog.processors.JSONRenderer()
    if not settings.log_json:
        renderer = structlog.dev.ConsoleRenderer()

    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
        _service_fields(settings),
        _rename_event_key,
        structlog.processors.format_exc_info,
        renderer,
    ]


def _build_handlers(settings: Settings) -> list[logging.Handler]:
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if settings.log_file:
        handlers.append(logging.FileHandler(settings.log_file, encoding="utf-8"))
    return handlers


def configure_logging(*, settings: Settings | None = None, force: bool = False) -> None:
    """Configure structlog and stdlib logging once for the service.

    Args:
        settings (Settings | None): Settings to read levels and outputs from.
        force (bool): Reconfigure even when logging is already set up.
    """
    global _LOGGING_CONFIGURED  # noqa: PLW0603

    if _LOGGING_CONFIGURED and not force:
        return

    config = settings or get_settings()
    log_level = getattr(logging, config.log_level.upper(), logging.INFO)

    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        handlers=_build_handlers(config),
        force=force,
    )
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    structlog.configure(
        processors=_build_processors(config),
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _LOGGING_CONFIGURED = True


def bind_request_context(**values: Any) -> None:
    """Attach `values` to every entry logged by the current request."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(**values)


def clear_request_context() -> None:
    """Drop the values bound by `bind_request_context`."""
    structlog.contextvars.clear_contextvars()


def get_logger(name: str = "pdfraster") -> structlog.BoundLogger:
    """Return service logger, configuring logging lazily."""
    if not _LOGGING_CONFIGURED:
        configure_logging()
    return structlog.get_logger(name)

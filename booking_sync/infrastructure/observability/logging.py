"""
Structured logging setup for the booking sync job.
Provides JSON-formatted logs with consistent fields plus named business
events that run-level alerting keys on.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.stdlib import LoggerFactory

SERVICE_NAME = "ftts-booking-sync"


class BusinessTelemetry:
    """Named business events emitted alongside regular log lines."""

    LAUNCH = "LAUNCH"
    NOT_WHITELISTED_URL_CALL = "NOT_WHITELISTED_URL_CALL"

    CBS_TE_SUCC_CREATE = "CBS_TE_SUCC_CREATE"
    CBS_TE_SUCC_UPDATE = "CBS_TE_SUCC_UPDATE"
    CBS_TE_SUCC_DELETE = "CBS_TE_SUCC_DELETE"
    CBS_TE_BAD_REQUEST = "CBS_TE_BAD_REQUEST"
    CBS_TE_AUTH_ISSUE = "CBS_TE_AUTH_ISSUE"
    CBS_TE_NOT_FOUND = "CBS_TE_NOT_FOUND"
    CBS_TE_INTERNAL_ERROR = "CBS_TE_INTERNAL_ERROR"

    CBS_CDS_BAD_REQUEST = "CBS_CDS_BAD_REQUEST"
    CBS_CDS_CONNECTIVITY_ISSUE = "CBS_CDS_CONNECTIVITY_ISSUE"
    CBS_CDS_NOT_FOUND = "CBS_CDS_NOT_FOUND"
    CBS_CDS_INTERNAL_ERROR = "CBS_CDS_INTERNAL_ERROR"


SARAS_ERROR_EVENTS: dict[int, str] = {
    400: BusinessTelemetry.CBS_TE_BAD_REQUEST,
    401: BusinessTelemetry.CBS_TE_AUTH_ISSUE,
    404: BusinessTelemetry.CBS_TE_NOT_FOUND,
    500: BusinessTelemetry.CBS_TE_INTERNAL_ERROR,
}

CRM_ERROR_EVENTS: dict[int, str] = {
    400: BusinessTelemetry.CBS_CDS_BAD_REQUEST,
    401: BusinessTelemetry.CBS_CDS_CONNECTIVITY_ISSUE,
    403: BusinessTelemetry.CBS_CDS_CONNECTIVITY_ISSUE,
    404: BusinessTelemetry.CBS_CDS_NOT_FOUND,
    500: BusinessTelemetry.CBS_CDS_INTERNAL_ERROR,
}


def setup_logging(log_level: str = "INFO") -> None:
    """
    Configure structured logging with JSON output.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            _add_service_context,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO),
    )

    # Suppress noisy third-party loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def _add_service_context(logger, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Tag every entry with the service name."""
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def get_logger(name: str = None) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)


def log_event(logger, event_name: str, message: str | None = None, **fields: Any) -> None:
    """Log a named business event with consistent fields."""
    logger.info(message or event_name, business_event=event_name, **fields)


def log_saras_event(logger, status: int | None, **fields: Any) -> None:
    """Log the business event for a SARAS error status, if it has one."""
    event_name = SARAS_ERROR_EVENTS.get(status)
    if event_name:
        log_event(logger, event_name, status_code=status, **fields)


def log_crm_event(logger, status: int | None, **fields: Any) -> None:
    """Log the business event for a CRM error status, if it has one."""
    event_name = CRM_ERROR_EVENTS.get(status)
    if event_name:
        log_event(logger, event_name, status_code=status, **fields)


def log_access_denied_event(logger, error) -> None:
    """Log a blocked outbound call."""
    log_event(
        logger,
        BusinessTelemetry.NOT_WHITELISTED_URL_CALL,
        str(error),
        host=getattr(error, "host", None),
        port=getattr(error, "port", None),
    )

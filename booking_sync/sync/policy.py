"""
Error policy for the booking synchroniser.

Decides for every caught error whether the run carries on with the next
unit of work or aborts altogether.
"""

from enum import Enum

from booking_sync.errors import ErrorKind
from booking_sync.infrastructure.observability.logging import get_logger

# Sporadic CRM failures that should not stop the run
TRANSIENT_CRM_STATUSES = {400, 500}


class SyncAction(str, Enum):
    CONTINUE = "continue"
    ABORT = "abort"


def classify_error(error: BaseException) -> SyncAction:
    kind = getattr(error, "kind", None)

    if kind is ErrorKind.ACCESS_DENIED:
        return SyncAction.ABORT
    if kind is ErrorKind.SARAS:
        return SyncAction.CONTINUE
    if kind is ErrorKind.CRM:
        if getattr(error, "status", None) in TRANSIENT_CRM_STATUSES:
            return SyncAction.CONTINUE
        return SyncAction.ABORT
    return SyncAction.ABORT


class ErrorPolicy:
    """Logs a caught error and re-raises it when it must abort the run."""

    def __init__(self, logger=None):
        self.logger = logger or get_logger(__name__)

    def classify(self, error: BaseException) -> SyncAction:
        return classify_error(error)

    def handle(self, error: Exception, **context) -> SyncAction:
        """
        Apply the policy to ``error``.

        Returns SyncAction.CONTINUE if the error was swallowed.

        Raises:
            The original error when the run must abort
        """
        action = self.classify(error)
        details = error.to_log_dict() if hasattr(error, "to_log_dict") else {"error": str(error)}
        details["error_type"] = type(error).__name__

        if action is SyncAction.CONTINUE:
            self.logger.warning(
                f"Encountered a recoverable {self._describe(error)}, continuing the run",
                **details,
                **context,
            )
            return action

        self.logger.critical(
            f"Encountered a {self._describe(error)}, aborting the run",
            **details,
            **context,
        )
        raise error

    def _describe(self, error: BaseException) -> str:
        kind = getattr(error, "kind", None)
        if kind is ErrorKind.ACCESS_DENIED:
            return "egress access denied error"
        if kind is ErrorKind.SARAS:
            return "SARAS error"
        if kind is ErrorKind.CRM:
            return "CRM error"
        return "unexpected error"

"""
Error taxonomy for the booking sync job.

Errors carry a ``kind`` discriminant so the synchroniser's error policy can
dispatch on it rather than on the concrete exception type.
"""

from enum import Enum

import httpx

# SARAS error codes returned in the response body
SARAS_DUPLICATE_BOOKING_CODE = 1025
SARAS_APPOINTMENT_NOT_FOUND_CODE = 1029


class ErrorKind(str, Enum):
    ACCESS_DENIED = "access_denied"
    CRM = "crm"
    SARAS = "saras"


class SarasErrorKind(str, Enum):
    DUPLICATE = "duplicate"
    APPOINTMENT_NOT_FOUND = "appointment_not_found"
    GENERIC = "generic"


class BookingSyncError(Exception):
    """Base class for typed errors raised by the gateways."""

    kind: ErrorKind

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.message = message
        self.status = status

    def to_log_dict(self) -> dict:
        return {
            "error_kind": self.kind.value,
            "error": self.message,
            "status": self.status,
        }


class AccessDeniedError(BookingSyncError):
    """Outbound request to a host that is not on the egress allow-list."""

    kind = ErrorKind.ACCESS_DENIED

    def __init__(self, host: str | None, port: int | None, message: str | None = None):
        super().__init__(message or f"Access denied to {host}:{port}")
        self.host = host
        self.port = port


class CrmError(BookingSyncError):
    """CRM transport error carrying the HTTP status, if there was one."""

    kind = ErrorKind.CRM


class SarasError(BookingSyncError):
    """SARAS error carrying status, SARAS error code and reason."""

    kind = ErrorKind.SARAS

    def __init__(
        self,
        message: str,
        status: int | None = None,
        code: int | None = None,
        reason: str | None = None,
        saras_kind: SarasErrorKind = SarasErrorKind.GENERIC,
    ):
        super().__init__(message, status)
        self.code = code
        self.reason = reason
        self.saras_kind = saras_kind

    @property
    def is_duplicate(self) -> bool:
        return self.saras_kind is SarasErrorKind.DUPLICATE

    @property
    def is_appointment_not_found(self) -> bool:
        return self.saras_kind is SarasErrorKind.APPOINTMENT_NOT_FOUND

    @classmethod
    def from_response(cls, response: httpx.Response, message: str | None = None) -> "SarasError":
        """Classify a failed SARAS response by the error code in its body."""
        code = None
        reason = None
        try:
            data = response.json() if response.content else {}
            if isinstance(data, dict):
                code = data.get("code")
                reason = data.get("reason")
        except ValueError:
            pass

        if code == SARAS_DUPLICATE_BOOKING_CODE:
            saras_kind = SarasErrorKind.DUPLICATE
        elif code == SARAS_APPOINTMENT_NOT_FOUND_CODE:
            saras_kind = SarasErrorKind.APPOINTMENT_NOT_FOUND
        else:
            saras_kind = SarasErrorKind.GENERIC

        return cls(
            message or f"SARAS request failed with status code {response.status_code}",
            status=response.status_code,
            code=code,
            reason=reason,
            saras_kind=saras_kind,
        )

    @classmethod
    def from_exception(cls, error: Exception) -> "SarasError":
        """Wrap a transport failure that never produced a response."""
        response = getattr(error, "response", None)
        if isinstance(response, httpx.Response):
            return cls.from_response(response, message=str(error))
        return cls(f"SARAS request failed: {error}")

    def to_log_dict(self) -> dict:
        data = super().to_log_dict()
        data.update({"code": self.code, "reason": self.reason, "saras_kind": self.saras_kind.value})
        return data

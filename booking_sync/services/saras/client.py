"""
SARAS test engine client: create, update and delete bookings.
"""

import httpx

from booking_sync.errors import AccessDeniedError, SarasError
from booking_sync.infrastructure.observability.logging import (
    BusinessTelemetry,
    get_logger,
    log_event,
    log_saras_event,
)
from booking_sync.models.domain.booking_domain import (
    BookingDetails,
    BookingReference,
    booking_identifiers,
)
from booking_sync.services.saras.converters import remove_nulls, to_saras_booking
from booking_sync.services.saras.http import SarasHttpClient


class SarasClient:
    """
    Pushes bookings to SARAS.

    The appointment id in the url is the booking product reference. Failures
    are classified into SarasError kinds (duplicate, appointment not found,
    generic) and raised; egress violations pass through untouched.
    """

    def __init__(self, http_client: SarasHttpClient, api_url: str, logger=None):
        self.http = http_client
        self.api_url = api_url
        self.logger = logger or get_logger(__name__)

    def _booking_url(self, appointment_id: str) -> str:
        return f"{self.api_url}Booking/{appointment_id}"

    async def create_booking(self, booking: BookingDetails) -> None:
        appointment_id = booking.booking_product.reference
        booking_product_id = booking.booking_product.id
        payload = remove_nulls(to_saras_booking(booking))

        self.logger.info(
            "Posting booking to SARAS",
            appointment_id=appointment_id,
            booking_product_id=booking_product_id,
        )
        self.logger.debug(
            "SARAS create booking raw payload",
            appointment_id=appointment_id,
            booking_product_id=booking_product_id,
            payload=payload,
        )

        try:
            await self.http.post(self._booking_url(appointment_id), payload)
        except AccessDeniedError:
            raise
        except httpx.HTTPError as e:
            raise self._handle_error(e, "create_booking", booking) from e

        log_event(
            self.logger,
            BusinessTelemetry.CBS_TE_SUCC_CREATE,
            "Successfully posted booking to SARAS",
            **booking_identifiers(booking),
        )

    async def update_booking(self, booking: BookingDetails) -> None:
        """
        Send an updated booking. If SARAS does not know the appointment the
        booking is posted as new instead, once.
        """
        appointment_id = booking.booking_product.reference
        booking_product_id = booking.booking_product.id
        payload = remove_nulls(to_saras_booking(booking))

        self.logger.info(
            "Sending updated booking to SARAS",
            appointment_id=appointment_id,
            booking_product_id=booking_product_id,
        )
        self.logger.debug(
            "SARAS update booking raw payload",
            appointment_id=appointment_id,
            booking_product_id=booking_product_id,
            payload=payload,
        )

        try:
            await self.http.put(self._booking_url(appointment_id), payload)
        except AccessDeniedError:
            raise
        except httpx.HTTPError as e:
            saras_error = self._handle_error(e, "update_booking", booking)
            if not saras_error.is_appointment_not_found:
                raise saras_error from e

            self.logger.warning(
                "Booking not found in SARAS, posting missing booking",
                appointment_id=appointment_id,
                booking_product_id=booking_product_id,
                **saras_error.to_log_dict(),
            )
            await self.create_booking(booking)
            return

        log_event(
            self.logger,
            BusinessTelemetry.CBS_TE_SUCC_UPDATE,
            "Successfully sent updated booking to SARAS",
            **booking_identifiers(booking),
        )

    async def delete_booking(self, booking: BookingDetails | BookingReference) -> None:
        ref = booking.booking_product if isinstance(booking, BookingDetails) else booking
        appointment_id = ref.reference

        self.logger.info(
            "Deleting booking in SARAS",
            appointment_id=appointment_id,
            booking_product_id=ref.id,
        )

        try:
            await self.http.delete(self._booking_url(appointment_id))
        except AccessDeniedError:
            raise
        except httpx.HTTPError as e:
            raise self._handle_error(e, "delete_booking", booking) from e

        log_event(
            self.logger,
            BusinessTelemetry.CBS_TE_SUCC_DELETE,
            "Successfully sent deleted booking to SARAS",
            **booking_identifiers(booking),
        )

    def _handle_error(
        self, error: httpx.HTTPError, operation: str, booking: BookingDetails | BookingReference
    ) -> SarasError:
        """Classify, log and return the SarasError for a failed request."""
        saras_error = SarasError.from_exception(error)
        identifiers = booking_identifiers(booking)
        response = getattr(error, "response", None)

        self.logger.debug(
            f"SARAS {operation} error response",
            response=response.text[:500] if isinstance(response, httpx.Response) else None,
            **identifiers,
        )
        self.logger.critical(
            f"SARAS {operation} failed",
            status=saras_error.status,
            code=saras_error.code,
            reason=saras_error.reason,
            error=str(error),
            **identifiers,
        )
        log_saras_event(self.logger, saras_error.status, **identifiers)
        return saras_error

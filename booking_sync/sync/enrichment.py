"""
Test history enrichment for LGV and PCV bookings.

LGV and PCV theory tests come in two parts (multiple choice and hazard
perception). When the candidate has already passed the other part, SARAS
needs to know so the booking is attached to that history.
"""

from booking_sync.infrastructure.observability.logging import get_logger
from booking_sync.models.domain.booking_domain import BookingDetails, booking_identifiers
from booking_sync.models.enums.crm import TestType
from booking_sync.services.saras.mappings import TEST_TYPE_COUNTERPARTS, remit_to_organisation


def counterpart_test_type(test_type: int | None) -> TestType | None:
    return TEST_TYPE_COUNTERPARTS.get(test_type)


class TestHistoryEnricher:
    """
    Fills ``test_history`` (and ``test_last_passed_date``) on bookings whose
    test type has a counterpart.

    With ``use_last_passed_date`` (SARAS API v2) the CRM is asked for the
    date of the last pass; otherwise only whether a valid pass exists.
    """

    def __init__(self, crm, use_last_passed_date: bool = True, logger=None):
        self.crm = crm
        self.use_last_passed_date = use_last_passed_date
        self.logger = logger or get_logger(__name__)

    def applies_to(self, booking: BookingDetails) -> bool:
        return counterpart_test_type(booking.test_type) is not None

    async def enrich(self, booking: BookingDetails) -> None:
        counterpart = counterpart_test_type(booking.test_type)
        if counterpart is None:
            return

        contact_id = booking.contact.id

        if self.use_last_passed_date:
            organisation = remit_to_organisation(booking.organisation.remit)
            last_passed_date = await self.crm.get_last_passed_test_date(
                contact_id, counterpart, organisation
            )
            if not last_passed_date:
                self.logger.debug(
                    "No corresponding test pass date found",
                    counterpart_test_type=int(counterpart),
                    **booking_identifiers(booking),
                )
                return
            booking.test_history = [int(counterpart)]
            booking.test_last_passed_date = last_passed_date
        else:
            has_pass = await self.crm.candidate_has_valid_test_pass(
                contact_id, counterpart, booking.booking_product.test_date
            )
            if not has_pass:
                return
            booking.test_history = [int(counterpart)]

        self.logger.info(
            "Booking enriched with corresponding test history",
            counterpart_test_type=int(counterpart),
            test_last_passed_date=booking.test_last_passed_date,
            **booking_identifiers(booking),
        )

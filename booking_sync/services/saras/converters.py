"""
Conversion of booking details into the SARAS booking payload.
"""

from typing import Any

from booking_sync.infrastructure.observability.logging import get_logger
from booking_sync.models.domain.booking_domain import Address, BookingDetails, Organisation
from booking_sync.models.enums.saras import Gender, TestAccommodation, TestCentreRegion, TestLanguage
from booking_sync.services.saras.mappings import (
    GENDER_CODES,
    TEST_LANGUAGES,
    VOICEOVER_LANGUAGES,
    remit_to_organisation,
)

logger = get_logger(__name__)


def to_saras_booking(booking: BookingDetails) -> dict[str, Any]:
    """Map a booking onto the SARAS wire model (nulls still present)."""
    booking_product = booking.booking_product
    contact = booking.contact
    voiceover = VOICEOVER_LANGUAGES.get(booking_product.voiceover_language)

    return {
        "Appointment": {
            "DateTime": booking_product.test_date,
        },
        "Candidate": {
            "CandidateID": booking_product.candidate_id,
            "Name": contact.first_name,
            "Surname": contact.last_name,
            "DOB": contact.date_of_birth,
            "Gender": GENDER_CODES.get(contact.gender_code, Gender.UNKNOWN),
            "Address": format_address(contact.address),
            "DrivingLicenseNumber": booking.licence.licence_number,
            "PersonalReferenceNumber": booking_product.personal_reference_number or None,
            "EntitlementConfirmation": booking_product.entitlement_confirmation or None,
        },
        "DeliveryModeID": booking.organisation.delivery_mode,
        "Testcentre": {
            "Region": convert_region(booking.organisation),
            "TestcentreCode": booking.organisation.test_centre_code,
        },
        "TestLanguage": TEST_LANGUAGES.get(booking_product.test_language, TestLanguage.ENGLISH),
        "VoiceOverLanguage": voiceover,
        "TestType": booking.product.test_type,
        "Organisation": remit_to_organisation(booking.organisation.remit),
        "TestAccommodation": convert_test_accommodations(
            booking_product.test_accommodation, has_voiceover=voiceover is not None
        ),
        "PreviousPassedExams": booking.test_history,
        "PreviousPassedTestDate": booking.test_last_passed_date,
    }


def convert_test_accommodations(raw: str | None, has_voiceover: bool = False) -> list[int] | None:
    """
    Parse the comma separated accommodation codes.

    A selected voiceover language is itself an accommodation, so it is put
    at the front of the list when not already requested. Codes that are not
    numbers are skipped.
    """
    accommodations = []
    for value in (raw or "").split(","):
        value = value.strip()
        if not value:
            continue
        try:
            accommodations.append(int(value))
        except ValueError:
            logger.warning("Skipping non-numeric test accommodation code", code=value)

    if has_voiceover:
        others = [value for value in accommodations if value != TestAccommodation.VOICEOVER_LANG]
        accommodations = [int(TestAccommodation.VOICEOVER_LANG), *others]

    return accommodations or None


def convert_region(organisation: Organisation) -> TestCentreRegion:
    if organisation.region_a:
        return TestCentreRegion.REGION_A
    if organisation.region_b:
        return TestCentreRegion.REGION_B
    if organisation.region_c:
        return TestCentreRegion.REGION_C
    return TestCentreRegion.DEFAULT


def format_address(address: Address | None) -> str | None:
    """Join the non-empty address lines with commas."""
    if address is None:
        return None
    lines = [line.strip() for line in address.lines() if line]
    return ",".join(lines) or None


def remove_nulls(data: Any) -> Any:
    """Recursively drop None values, keeping empty strings, lists and dicts."""
    if isinstance(data, dict):
        return {key: remove_nulls(value) for key, value in data.items() if value is not None}
    if isinstance(data, list):
        return [remove_nulls(value) for value in data if value is not None]
    return data

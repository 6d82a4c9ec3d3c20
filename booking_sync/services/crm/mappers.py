"""
Mapping of raw CRM booking product records into BookingDetails.
"""

from booking_sync.infrastructure.observability.logging import get_logger
from booking_sync.models.domain.booking_domain import (
    Address,
    BookingDetails,
    BookingProduct,
    Contact,
    Licence,
    Organisation,
    Product,
)


class CrmMappingError(Exception):
    """Raised when a record lacks a field or linked entity we need."""


def _require(record: dict, key: str):
    value = record.get(key) if isinstance(record, dict) else None
    if value is None or value == "":
        raise CrmMappingError(f"Missing required field '{key}'")
    return value


class CrmMapper:
    def __init__(self, logger=None):
        self.logger = logger or get_logger(__name__)

    def to_booking_details(self, record: dict) -> BookingDetails | None:
        """
        Build BookingDetails from a booking product record with its expanded
        candidate, product, test centre and licence.

        Returns None (and logs a warning) if anything required is missing.
        """
        booking_product_id = record.get("ftts_bookingproductid")
        try:
            candidate = _require(record, "ftts_CandidateId")
            product = _require(record, "ftts_productid")
            booking = _require(record, "ftts_bookingid")
            test_centre = _require(booking, "ftts_testcentre")
            licence = _require(booking, "ftts_LicenceId")

            return BookingDetails(
                booking_product=BookingProduct(
                    id=_require(record, "ftts_bookingproductid"),
                    reference=_require(record, "ftts_reference"),
                    test_date=record.get("ftts_testdate"),
                    last_updated_at_date=record.get("ftts_testenginebookingupdated"),
                    candidate_id=record.get("_ftts_candidateid_value"),
                    personal_reference_number=record.get("ftts_personalreferencenumber"),
                    entitlement_confirmation=record.get("ftts_entitlementconfirmation"),
                    test_language=record.get("ftts_testlanguage"),
                    voiceover_language=record.get("ftts_voiceoverlanguage"),
                    test_accommodation=record.get("ftts_testaccommodation"),
                ),
                contact=Contact(
                    id=_require(candidate, "contactid"),
                    first_name=candidate.get("ftts_firstandmiddlenames"),
                    last_name=candidate.get("lastname"),
                    date_of_birth=candidate.get("birthdate"),
                    gender_code=candidate.get("gendercode"),
                    address=Address(
                        line1=candidate.get("address1_line1"),
                        line2=candidate.get("address1_line2"),
                        line3=candidate.get("address1_line3"),
                        city=candidate.get("address1_city"),
                        county=candidate.get("address1_county"),
                        postcode=candidate.get("address1_postalcode"),
                    ),
                ),
                product=Product(test_type=product.get("ftts_testenginetesttype")),
                organisation=Organisation(
                    remit=test_centre.get("ftts_remit"),
                    delivery_mode=test_centre.get("ftts_testenginedeliverymodel"),
                    test_centre_code=test_centre.get("ftts_testenginetestcentrecode"),
                    region_a=test_centre.get("ftts_regiona"),
                    region_b=test_centre.get("ftts_regionb"),
                    region_c=test_centre.get("ftts_regionc"),
                ),
                licence=Licence(licence_number=licence.get("ftts_licence")),
            )
        except (CrmMappingError, AttributeError, TypeError) as e:
            self.logger.warning(
                "Dropping booking product that could not be mapped",
                booking_product_id=booking_product_id,
                error=str(e),
            )
            return None

    def to_booking_details_list(self, records: list[dict]) -> list[BookingDetails]:
        bookings = []
        for record in records:
            booking = self.to_booking_details(record)
            if booking is not None:
                bookings.append(booking)
        return bookings

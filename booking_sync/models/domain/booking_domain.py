"""
Booking domain models.

These dataclasses are the normalised shape of a CRM booking product. The
CRM mapper builds them, the synchroniser enriches them in place and the
SARAS converter turns them into the test engine's wire format.
"""

from dataclasses import dataclass, field


@dataclass(slots=True)
class Address:
    line1: str | None = None
    line2: str | None = None
    line3: str | None = None
    city: str | None = None
    county: str | None = None
    postcode: str | None = None

    def lines(self) -> list[str | None]:
        return [self.line1, self.line2, self.line3, self.city, self.county, self.postcode]


@dataclass(slots=True)
class Contact:
    id: str
    first_name: str | None
    last_name: str | None
    date_of_birth: str | None
    gender_code: int | None
    address: Address = field(default_factory=Address)


@dataclass(slots=True)
class Organisation:
    """Test centre the booking is at."""

    remit: int | None
    delivery_mode: int | None
    test_centre_code: str | None
    region_a: bool | None = None
    region_b: bool | None = None
    region_c: bool | None = None


@dataclass(slots=True)
class Licence:
    licence_number: str | None


@dataclass(slots=True)
class Product:
    test_type: int | None


@dataclass(slots=True)
class BookingReference:
    """Minimal projection of a booking product (id + human reference)."""

    id: str
    reference: str


@dataclass(slots=True)
class BookingProduct(BookingReference):
    test_date: str | None = None
    last_updated_at_date: str | None = None
    candidate_id: str | None = None
    personal_reference_number: str | None = None
    entitlement_confirmation: str | None = None
    test_language: int | None = None
    voiceover_language: int | None = None
    test_accommodation: str | None = None  # comma separated accommodation codes


@dataclass(slots=True)
class BookingDetails:
    """A booking product with everything SARAS needs to schedule the test."""

    booking_product: BookingProduct
    contact: Contact
    organisation: Organisation
    licence: Licence
    product: Product
    # Filled in by test history enrichment only
    test_history: list[int] | None = None
    test_last_passed_date: str | None = None

    @property
    def id(self) -> str:
        return self.booking_product.id

    @property
    def reference(self) -> str:
        return self.booking_product.reference

    @property
    def test_type(self) -> int | None:
        return self.product.test_type if self.product else None


def booking_identifiers(booking: BookingDetails | BookingReference) -> dict:
    """Correlation fields attached to every per-booking log line."""
    if isinstance(booking, BookingDetails):
        return {
            "booking_product_id": booking.booking_product.id,
            "booking_reference": booking.booking_product.reference,
            "candidate_id": booking.booking_product.candidate_id,
        }
    return {
        "booking_product_id": booking.id,
        "booking_reference": booking.reference,
    }

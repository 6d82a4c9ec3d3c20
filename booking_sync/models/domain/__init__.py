"""
Domain models for the booking sync job.
"""

from booking_sync.models.domain.booking_domain import (
    Address,
    BookingDetails,
    BookingProduct,
    BookingReference,
    Contact,
    Licence,
    Organisation,
    Product,
    booking_identifiers,
)

__all__ = [
    "Address",
    "BookingDetails",
    "BookingProduct",
    "BookingReference",
    "Contact",
    "Licence",
    "Organisation",
    "Product",
    "booking_identifiers",
]

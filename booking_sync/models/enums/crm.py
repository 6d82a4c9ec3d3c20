"""Option-set values used by the CRM."""

from enum import Enum, IntEnum


class Collection(str, Enum):
    BOOKING_PRODUCTS = "ftts_bookingproducts"
    TEST_HISTORIES = "ftts_testhistories"


class BookingStatus(IntEnum):
    CONFIRMED = 675030001
    CANCELLATION_IN_PROGRESS = 675030002
    CHANGE_IN_PROGRESS = 675030003
    CANCELLED = 675030008


class TestStatus(IntEnum):
    PASSED = 2


class TestType(IntEnum):
    LGV_MULTIPLE_CHOICE = 3
    LGV_HPT = 4
    PCV_MULTIPLE_CHOICE = 7
    PCV_HPT = 8


class Remit(IntEnum):
    DVSA_ENGLAND = 675030000
    DVA = 675030001
    DVSA_WALES = 675030002
    DVSA_SCOTLAND = 675030003


class Origin(IntEnum):
    CANDIDATE_BOOKING_PORTAL = 1
    CUSTOMER_SERVICE_CENTRE = 2
    IHTTC_PORTAL = 3
    TRAINER_BOOKER_PORTAL = 4

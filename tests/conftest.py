import copy
from unittest.mock import AsyncMock, MagicMock

import pytest

from booking_sync.config import Settings
from booking_sync.models.domain.booking_domain import (
    Address,
    BookingDetails,
    BookingProduct,
    Contact,
    Licence,
    Organisation,
    Product,
)

SYNC_TIMESTAMP = "2021-04-05T14:30:00.000Z"
SARAS_URL = "https://saras.test/api/"
CRM_BASE_URL = "https://crm.test"
CRM_API_URL = "https://crm.test/api/data/v9.1/"


def _booking(
    booking_product_id: str,
    reference: str,
    candidate_id: str,
    contact_id: str,
    test_type: int,
    test_date: str,
    **overrides,
) -> BookingDetails:
    booking = BookingDetails(
        booking_product=BookingProduct(
            id=booking_product_id,
            reference=reference,
            test_date=test_date,
            last_updated_at_date="2020-06-21T07:00:00Z",
            candidate_id=candidate_id,
            personal_reference_number="ABC123",
            entitlement_confirmation="entconfirm353525",
            test_language=2,
            voiceover_language=675030005,
            test_accommodation="1,2,3",
        ),
        contact=Contact(
            id=contact_id,
            first_name="Carl",
            last_name="Teslington",
            date_of_birth="1980-12-03",
            gender_code=1,
            address=Address(
                line1="Floor 15",
                line2="ECJU",
                line3="50 Victoria Street",
                city="London",
                county=None,
                postcode="SW1H 0TL",
            ),
        ),
        organisation=Organisation(
            remit=675030000,
            delivery_mode=1,
            test_centre_code="TESTCENTRE-1",
            region_a=False,
            region_b=True,
            region_c=False,
        ),
        licence=Licence(licence_number="WENDY68245925"),
        product=Product(test_type=test_type),
    )
    for key, value in overrides.items():
        setattr(booking, key, value)
    return booking


MOCK_BOOKINGS = [
    _booking("001", "REF001", "candidate1", "C001", 4, "2020-06-23T07:00:00Z"),
    _booking("002", "REF002", "candidate2", "C002", 1, "2020-05-12T11:00:00Z"),
]


def crm_record(booking_product_id="001", reference="REF001", **overrides) -> dict:
    record = {
        "ftts_bookingproductid": booking_product_id,
        "ftts_reference": reference,
        "ftts_testdate": "2021-04-06T09:00:00Z",
        "ftts_testenginebookingupdated": "2021-04-04T09:00:00Z",
        "_ftts_candidateid_value": "candidate1",
        "ftts_personalreferencenumber": "ABC123",
        "ftts_entitlementconfirmation": None,
        "ftts_testlanguage": 1,
        "ftts_voiceoverlanguage": None,
        "ftts_testaccommodation": None,
        "ftts_CandidateId": {
            "contactid": "C001",
            "ftts_firstandmiddlenames": "Carl",
            "lastname": "Teslington",
            "birthdate": "1980-12-03",
            "gendercode": 1,
            "address1_line1": "Floor 15",
            "address1_postalcode": "SW1H 0TL",
        },
        "ftts_productid": {"ftts_testenginetesttype": 3},
        "ftts_bookingid": {
            "ftts_bookingid": "B001",
            "ftts_testcentre": {
                "ftts_remit": 675030000,
                "ftts_testenginedeliverymodel": 1,
                "ftts_testenginetestcentrecode": "TESTCENTRE-1",
                "ftts_regiona": True,
                "ftts_regionb": False,
                "ftts_regionc": False,
            },
            "ftts_LicenceId": {"ftts_licence": "WENDY68245925"},
        },
    }
    record.update(overrides)
    return record


@pytest.fixture
def bookings() -> list[BookingDetails]:
    """Fresh copies so tests can mutate them freely."""
    return copy.deepcopy(MOCK_BOOKINGS)


@pytest.fixture
def booking(bookings) -> BookingDetails:
    return bookings[0]


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        SARAS_URL=SARAS_URL,
        SARAS_MAX_RETRIES=3,
        CRM_BASE_URL=CRM_BASE_URL,
        CRM_MAX_RETRIES=2,
        NEW_BOOKING_WINDOW=2,
        ENABLE_SARAS_API_VERSION_2=True,
    )


@pytest.fixture
def mock_logger():
    return MagicMock()


@pytest.fixture
def mock_crm():
    crm = MagicMock()
    crm.get_new_bookings = AsyncMock(return_value=[])
    crm.get_cancelled_bookings = AsyncMock(return_value=[])
    crm.get_updated_bookings = AsyncMock(return_value=[])
    crm.update_booking_sync_date = AsyncMock(return_value=None)
    crm.candidate_has_valid_test_pass = AsyncMock(return_value=False)
    crm.get_last_passed_test_date = AsyncMock(return_value=None)
    return crm


@pytest.fixture
def mock_saras():
    saras = MagicMock()
    saras.create_booking = AsyncMock(return_value=None)
    saras.update_booking = AsyncMock(return_value=None)
    saras.delete_booking = AsyncMock(return_value=None)
    return saras


@pytest.fixture
def no_sleep():
    return AsyncMock(return_value=None)

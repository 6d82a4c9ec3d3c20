import pytest
from conftest import crm_record

from booking_sync.services.crm.mappers import CrmMapper


@pytest.fixture
def mapper(mock_logger):
    return CrmMapper(mock_logger)


def test_to_booking_details_maps_all_fields(mapper):
    booking = mapper.to_booking_details(crm_record())

    assert booking.booking_product.reference == "REF001"
    assert booking.booking_product.candidate_id == "candidate1"
    assert booking.booking_product.test_date == "2021-04-06T09:00:00Z"
    assert booking.booking_product.last_updated_at_date == "2021-04-04T09:00:00Z"
    assert booking.contact.first_name == "Carl"
    assert booking.contact.address.line1 == "Floor 15"
    assert booking.contact.address.line2 is None
    assert booking.organisation.remit == 675030000
    assert booking.organisation.region_a is True
    assert booking.test_history is None


@pytest.mark.parametrize(
    "broken_field",
    ["ftts_reference", "ftts_CandidateId", "ftts_productid", "ftts_bookingid"],
)
def test_missing_top_level_field_drops_record(broken_field, mapper, mock_logger):
    record = crm_record()
    record[broken_field] = None

    assert mapper.to_booking_details(record) is None
    mock_logger.warning.assert_called_once()
    assert mock_logger.warning.call_args.kwargs["booking_product_id"] == "001"


@pytest.mark.parametrize("broken_field", ["ftts_testcentre", "ftts_LicenceId"])
def test_missing_linked_entity_drops_record(broken_field, mapper, mock_logger):
    record = crm_record()
    del record["ftts_bookingid"][broken_field]

    assert mapper.to_booking_details(record) is None
    mock_logger.warning.assert_called_once()


def test_missing_contact_id_drops_record(mapper, mock_logger):
    record = crm_record()
    record["ftts_CandidateId"]["contactid"] = ""

    assert mapper.to_booking_details(record) is None
    mock_logger.warning.assert_called_once()


def test_to_booking_details_list_keeps_valid_records(mapper, mock_logger):
    missing_reference = crm_record("002", reference=None)

    bookings = mapper.to_booking_details_list(
        [crm_record(), missing_reference, crm_record("003", "REF003")]
    )

    assert [b.booking_product.id for b in bookings] == ["001", "003"]
    assert mock_logger.warning.call_count == 1

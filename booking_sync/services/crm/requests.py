"""
OData request building for CRM booking product queries.
"""

from datetime import datetime, timedelta

from booking_sync.models.enums.crm import BookingStatus, TestStatus

BOOKING_PRODUCT_FIELDS = [
    "ftts_bookingproductid",
    "ftts_testdate",
    "ftts_testenginebookingupdated",
    "_ftts_candidateid_value",
    "ftts_reference",
    "ftts_personalreferencenumber",
    "ftts_entitlementconfirmation",
    "ftts_testlanguage",
    "ftts_voiceoverlanguage",
    "ftts_testaccommodation",
]
ADDRESS_FIELDS = [
    "address1_line1",
    "address1_line2",
    "address1_line3",
    "address1_city",
    "address1_county",
    "address1_postalcode",
]
CANDIDATE_FIELDS = [
    "contactid",
    "ftts_firstandmiddlenames",
    "lastname",
    "birthdate",
    "gendercode",
    *ADDRESS_FIELDS,
]
PRODUCT_FIELDS = ["ftts_testenginetesttype"]
ORGANISATION_FIELDS = [
    "ftts_remit",
    "ftts_testenginedeliverymodel",
    "ftts_testenginetestcentrecode",
    "ftts_regiona",
    "ftts_regionb",
    "ftts_regionc",
]
LICENCE_FIELDS = ["ftts_licence"]


def to_iso_string(value: datetime) -> str:
    """UTC ISO-8601 with milliseconds and a Z suffix, e.g. 2021-04-05T14:30:00.000Z"""
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def start_of_day(value: datetime) -> datetime:
    return value.replace(hour=0, minute=0, second=0, microsecond=0)


def build_expand_query() -> str:
    """$expand clause pulling the candidate, product, test centre and licence."""
    test_centre = f"ftts_testcentre($select={','.join(ORGANISATION_FIELDS)})"
    licence = f"ftts_LicenceId($select={','.join(LICENCE_FIELDS)})"
    return ",".join(
        [
            f"ftts_CandidateId($select={','.join(CANDIDATE_FIELDS)})",
            f"ftts_productid($select={','.join(PRODUCT_FIELDS)})",
            f"ftts_bookingid($select=ftts_bookingid;$expand={test_centre},{licence})",
        ]
    )


def build_retrieve_booking_details_params(filter_query: str) -> dict[str, str]:
    return {
        "$select": ",".join(BOOKING_PRODUCT_FIELDS),
        "$expand": build_expand_query(),
        "$filter": filter_query,
    }


def new_bookings_filter(now: datetime, window_hours: int) -> str:
    """
    Bookings never sent to the test engine, with a test date between the start
    of today and ``window_hours`` from now.
    """
    limit = now + timedelta(hours=window_hours)
    between = (
        "Microsoft.Dynamics.CRM.Between(PropertyName='ftts_testdate', "
        f"PropertyValues=['{to_iso_string(start_of_day(now))}', '{to_iso_string(limit)}'])"
    )
    status = (
        f"(ftts_bookingstatus eq {BookingStatus.CONFIRMED.value}"
        f" or ftts_bookingstatus eq {BookingStatus.CANCELLATION_IN_PROGRESS.value}"
        f" or ftts_bookingstatus eq {BookingStatus.CHANGE_IN_PROGRESS.value})"
    )
    return (
        f"{status} and ftts_testengineinitialsentdate eq null and {between}"
        " and _ftts_bookingid_value ne null and _ftts_candidateid_value ne null"
    )


def _on_or_after_today(now: datetime) -> str:
    return (
        "Microsoft.Dynamics.CRM.OnOrAfter(PropertyName='ftts_testdate',"
        f"PropertyValue='{to_iso_string(start_of_day(now))}')"
    )


def cancelled_bookings_filter(now: datetime) -> str:
    """Cancelled bookings already sent to the test engine and changed since."""
    return (
        f"ftts_bookingstatus eq {BookingStatus.CANCELLED.value}"
        " and ftts_testengineinitialsentdate ne null"
        " and ftts_testenginebookingupdated ne null"
        " and ftts_testenginebookingupdated ge ftts_testengineinitialsentdate"
        " and _ftts_bookingid_value ne null and _ftts_candidateid_value ne null"
        f" and {_on_or_after_today(now)}"
    )


def updated_bookings_filter(now: datetime) -> str:
    """Confirmed bookings updated after they were last sent to the test engine."""
    return (
        f"ftts_bookingstatus eq {BookingStatus.CONFIRMED.value}"
        " and ftts_testengineinitialsentdate ne null"
        " and ftts_testenginebookingupdated gt ftts_testengineinitialsentdate"
        f" and {_on_or_after_today(now)}"
    )


def valid_test_pass_filter(candidate_id: str, test_type: int, on_date: datetime) -> str:
    # CRM expiry dates are stored at 00:00 but are valid to the end of that day
    valid_on = to_iso_string(start_of_day(on_date))
    return (
        f"_ftts_person_value eq {candidate_id}"
        f" and ftts_Testtype/ftts_testenginetesttype eq {int(test_type)}"
        f" and ftts_teststatus eq {TestStatus.PASSED.value}"
        f" and ftts_expirydate ge {valid_on}"
    )

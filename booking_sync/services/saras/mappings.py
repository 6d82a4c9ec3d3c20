"""Lookup tables from CRM option-set values to SARAS values."""

from booking_sync.models.enums.crm import Remit, TestType
from booking_sync.models.enums.saras import Gender, Organisation, TestLanguage, VoiceoverLanguage

GENDER_CODES: dict[int, Gender] = {
    1: Gender.MALE,
    2: Gender.FEMALE,
    3: Gender.UNKNOWN,
}

REMITS: dict[int, Organisation] = {
    Remit.DVA: Organisation.DVA,
    Remit.DVSA_ENGLAND: Organisation.DVSA,
    Remit.DVSA_WALES: Organisation.DVSA,
    Remit.DVSA_SCOTLAND: Organisation.DVSA,
}

TEST_LANGUAGES: dict[int, TestLanguage] = {
    1: TestLanguage.ENGLISH,
    2: TestLanguage.WELSH,
}

VOICEOVER_LANGUAGES: dict[int, VoiceoverLanguage] = {
    675030005: VoiceoverLanguage.ENGLISH,
    675030021: VoiceoverLanguage.WELSH,
    675030001: VoiceoverLanguage.ARABIC,
    675030006: VoiceoverLanguage.FARSI,
    675030003: VoiceoverLanguage.CANTONESE,
    675030018: VoiceoverLanguage.TURKISH,
    675030012: VoiceoverLanguage.POLISH,
    675030013: VoiceoverLanguage.PORTUGUESE,
}

# Multiple choice and hazard perception parts of the same LGV/PCV theory test
TEST_TYPE_COUNTERPARTS: dict[int, TestType] = {
    TestType.LGV_MULTIPLE_CHOICE: TestType.LGV_HPT,
    TestType.LGV_HPT: TestType.LGV_MULTIPLE_CHOICE,
    TestType.PCV_MULTIPLE_CHOICE: TestType.PCV_HPT,
    TestType.PCV_HPT: TestType.PCV_MULTIPLE_CHOICE,
}


def remit_to_organisation(remit: int | None) -> Organisation:
    """Anything that is not a DVA remit is treated as DVSA."""
    return REMITS.get(remit, Organisation.DVSA)

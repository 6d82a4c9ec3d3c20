"""Values understood by the SARAS test engine API."""

from enum import IntEnum


class DeliveryMode(IntEnum):
    IHTTC = 0
    PERMANENT_TESTCENTRE = 1
    OCCASIONAL_TESTCENTRE = 2
    AT_HOME = 3


class Gender(IntEnum):
    FEMALE = 0
    MALE = 1
    UNKNOWN = 3


class Organisation(IntEnum):
    DVA = 0
    DVSA = 1


class TestLanguage(IntEnum):
    ENGLISH = 0
    WELSH = 1


class VoiceoverLanguage(IntEnum):
    ENGLISH = 0
    WELSH = 1
    ARABIC = 2
    FARSI = 3
    CANTONESE = 4
    TURKISH = 5
    POLISH = 6
    PORTUGUESE = 7


class TestCentreRegion(IntEnum):
    DEFAULT = 0
    REGION_A = 1
    REGION_B = 2
    REGION_C = 3


class TestAccommodation(IntEnum):
    EXTRA_LENGTH = 0
    VOICEOVER_LANG = 1
    BSL = 2
    PAUSE_HPT = 3
    OLM = 4
    READER = 5
    RECORDER = 6
    BSL_TRANSLATOR = 7
    LIP_SPEAKER = 8
    LISTENING_AID = 9
    SEPARATE_ROOM = 10
    AT_HOME_TESTING = 11
    LANGUAGE_TRANSLATOR = 12

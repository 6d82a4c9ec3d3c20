import pytest

from booking_sync.config import (
    DEFAULT_CRM_MAX_RETRIES,
    DEFAULT_NEW_BOOKING_WINDOW_HOURS,
    DEFAULT_SARAS_MAX_RETRIES,
    Settings,
    to_number_or_default,
)


@pytest.mark.parametrize(
    "value, expected",
    [
        ("5", 5),
        (5, 5),
        ("2.7", 2),
        ("0", 0),
        ("-1", 7),
        ("abc", 7),
        ("", 7),
        (None, 7),
        ("nan", 7),
    ],
)
def test_to_number_or_default(value, expected):
    assert to_number_or_default(value, 7) == expected


def test_numeric_settings_fall_back_to_defaults(monkeypatch):
    monkeypatch.setenv("SARAS_MAX_RETRIES", "lots")
    monkeypatch.setenv("CRM_MAX_RETRIES", "-3")
    monkeypatch.setenv("NEW_BOOKING_WINDOW", "")

    settings = Settings(_env_file=None)

    assert settings.SARAS_MAX_RETRIES == DEFAULT_SARAS_MAX_RETRIES
    assert settings.CRM_MAX_RETRIES == DEFAULT_CRM_MAX_RETRIES
    assert settings.NEW_BOOKING_WINDOW == DEFAULT_NEW_BOOKING_WINDOW_HOURS


def test_numeric_settings_read_from_environment(monkeypatch):
    monkeypatch.setenv("SARAS_MAX_RETRIES", "4")
    monkeypatch.setenv("NEW_BOOKING_WINDOW", "24")

    settings = Settings(_env_file=None)

    assert settings.SARAS_MAX_RETRIES == 4
    assert settings.NEW_BOOKING_WINDOW == 24


def test_saras_feature_flag(monkeypatch):
    assert Settings(_env_file=None).ENABLE_SARAS_API_VERSION_2 is True

    monkeypatch.setenv("ENABLE_SARAS_API_VERSION_2", "false")

    assert Settings(_env_file=None).ENABLE_SARAS_API_VERSION_2 is False


def test_crm_api_url():
    assert (
        Settings(_env_file=None, CRM_BASE_URL="https://org.crm11.dynamics.com/").crm_api_url()
        == "https://org.crm11.dynamics.com/api/data/v9.1/"
    )


def test_saras_api_url_has_trailing_slash():
    assert Settings(_env_file=None, SARAS_URL="https://saras.test/api").saras_api_url() == (
        "https://saras.test/api/"
    )
    assert Settings(_env_file=None, SARAS_URL="https://saras.test/api/").saras_api_url() == (
        "https://saras.test/api/"
    )


def test_crm_tenant_defaults_to_azure_tenant():
    settings = Settings(_env_file=None, AZURE_TENANT_ID="tenant-a")
    assert settings.crm_tenant_id() == "tenant-a"

    settings = Settings(_env_file=None, AZURE_TENANT_ID="tenant-a", CRM_TENANT_ID="tenant-b")
    assert settings.crm_tenant_id() == "tenant-b"


def test_allowed_urls(settings):
    assert settings.allowed_urls() == [
        "https://crm.test/api/data/v9.1/",
        "https://saras.test/api/",
        "https://login.microsoftonline.com",
    ]

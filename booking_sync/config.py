from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PATH = Path(__file__).resolve().parent.parent / ".env.local"

# Defaults used when a numeric setting is missing, not a number or negative
DEFAULT_SARAS_MAX_RETRIES = 10
DEFAULT_CRM_MAX_RETRIES = 10
DEFAULT_NEW_BOOKING_WINDOW_HOURS = 72

CRM_API_PATH = "api/data/v9.1/"


def to_number_or_default(value, default: int) -> int:
    """Coerce an env value to a non-negative int, falling back to default."""
    if value is None or value == "":
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if number < 0 or number != number:
        return default
    return int(number)


class Settings(BaseSettings):
    # Environment settings
    environment: str = "development"
    LOG_LEVEL: str = "INFO"
    WEBSITE_SITE_NAME: str = ""

    # SARAS (test engine) settings
    SARAS_URL: str = ""
    SARAS_MAX_RETRIES: int = DEFAULT_SARAS_MAX_RETRIES
    SARAS_SCOPE: str = ""
    AZURE_TENANT_ID: str = ""
    CBIBOOKING_CLIENT_ID: str = ""
    CBIBOOKING_CLIENT_SECRET: str = ""

    # CRM settings
    CRM_BASE_URL: str = ""
    CRM_MAX_RETRIES: int = DEFAULT_CRM_MAX_RETRIES
    NEW_BOOKING_WINDOW: int = DEFAULT_NEW_BOOKING_WINDOW_HOURS
    CRM_SCOPE: str = ""
    CRM_TENANT_ID: str = ""
    CRM_CLIENT_ID: str = ""
    CRM_CLIENT_SECRET: str = ""

    # Identity provider (Azure AD v2 token endpoint)
    TOKEN_AUTHORITY_URL: str = "https://login.microsoftonline.com"

    # HTTP settings
    REQUEST_TIMEOUT: float = 30.0

    # Feature toggles
    ENABLE_SARAS_API_VERSION_2: bool = True

    model_config = SettingsConfigDict(
        env_file=str(ENV_PATH),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("SARAS_MAX_RETRIES", mode="before")
    @classmethod
    def _saras_retries(cls, value):
        return to_number_or_default(value, DEFAULT_SARAS_MAX_RETRIES)

    @field_validator("CRM_MAX_RETRIES", mode="before")
    @classmethod
    def _crm_retries(cls, value):
        return to_number_or_default(value, DEFAULT_CRM_MAX_RETRIES)

    @field_validator("NEW_BOOKING_WINDOW", mode="before")
    @classmethod
    def _new_booking_window(cls, value):
        return to_number_or_default(value, DEFAULT_NEW_BOOKING_WINDOW_HOURS)

    def crm_api_url(self) -> str:
        """CRM Web API root, e.g. https://org.crm11.dynamics.com/api/data/v9.1/"""
        base = self.CRM_BASE_URL.rstrip("/")
        return f"{base}/{CRM_API_PATH}"

    def saras_api_url(self) -> str:
        """SARAS base url, always ending in a slash so paths can be appended."""
        if not self.SARAS_URL or self.SARAS_URL.endswith("/"):
            return self.SARAS_URL
        return f"{self.SARAS_URL}/"

    def crm_tenant_id(self) -> str:
        return self.CRM_TENANT_ID or self.AZURE_TENANT_ID

    def allowed_urls(self) -> list[str]:
        """Outbound urls the egress filter lets through."""
        urls = [self.crm_api_url(), self.saras_api_url(), self.TOKEN_AUTHORITY_URL]
        return [url for url in urls if url]


def get_settings() -> Settings:
    """Resolve settings once at process start."""
    return Settings()

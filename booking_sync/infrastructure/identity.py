"""
OAuth2 client-credentials token acquisition for the CRM and SARAS APIs.
"""

from datetime import UTC, datetime, timedelta

import httpx

from booking_sync.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

# Refresh cached tokens this long before they expire
TOKEN_EXPIRY_BUFFER = timedelta(minutes=5)
REQUEST_TIMEOUT = 10  # seconds


class TokenAcquisitionError(Exception):
    """Raised when the identity provider does not return a usable token."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class AccessToken:
    """Access token plus its expiry."""

    def __init__(self, data: dict):
        self.token = data.get("access_token") or ""
        self.token_type = data.get("token_type", "Bearer")
        expires_in = data.get("expires_in")
        if expires_in:
            self.expires_at = datetime.now(UTC) + timedelta(seconds=int(expires_in))
        else:
            self.expires_at = None

    def is_valid(self) -> bool:
        if not self.token:
            return False
        if self.expires_at is None:
            return True
        return datetime.now(UTC) + TOKEN_EXPIRY_BUFFER < self.expires_at


class ClientCredentialsTokenProvider:
    """
    Fetches tokens with the client-credentials grant and caches the
    current one until it is close to expiry.
    """

    def __init__(
        self,
        authority_url: str,
        tenant_id: str,
        client_id: str,
        client_secret: str,
        scope: str,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.token_url = f"{authority_url.rstrip('/')}/{tenant_id}/oauth2/v2.0/token"
        self.client_id = client_id
        self.client_secret = client_secret
        self.scope = scope
        self._client = http_client
        self._token: AccessToken | None = None

    async def get_token(self) -> str:
        if self._token and self._token.is_valid():
            return self._token.token

        data = {
            "grant_type": "client_credentials",
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "scope": self.scope,
        }

        try:
            if self._client is not None:
                response = await self._client.post(self.token_url, data=data)
            else:
                async with httpx.AsyncClient(timeout=REQUEST_TIMEOUT) as client:
                    response = await client.post(self.token_url, data=data)
        except httpx.RequestError as e:
            logger.error("Network error acquiring access token", scope=self.scope, error=str(e))
            raise TokenAcquisitionError(f"Network error acquiring token: {e}") from e

        if not response.is_success:
            logger.error(
                "Identity provider rejected token request",
                scope=self.scope,
                status_code=response.status_code,
                response_text=response.text[:200],
            )
            raise TokenAcquisitionError(
                f"Token request failed (HTTP {response.status_code})",
                status_code=response.status_code,
            )

        try:
            token = AccessToken(response.json())
        except ValueError as e:
            raise TokenAcquisitionError(f"Invalid token response: {e}") from e

        if not token.token:
            raise TokenAcquisitionError("Token response did not contain an access token")

        self._token = token
        logger.debug("Access token acquired", scope=self.scope, expires_at=str(token.expires_at))
        return token.token

"""
Wiring of the clients one sync run needs.

Everything is built explicitly from the run's Settings; nothing is held in
module-level singletons.
"""

from dataclasses import dataclass

import httpx

from booking_sync.config import Settings
from booking_sync.infrastructure.egress import EgressFilter
from booking_sync.infrastructure.identity import ClientCredentialsTokenProvider
from booking_sync.infrastructure.observability.logging import get_logger
from booking_sync.services.crm.client import CrmClient
from booking_sync.services.saras.client import SarasClient
from booking_sync.services.saras.http import SarasHttpClient
from booking_sync.sync.enrichment import TestHistoryEnricher


@dataclass
class SyncDependencies:
    crm: CrmClient
    saras: SarasClient
    enricher: TestHistoryEnricher
    egress_filter: EgressFilter
    _http_clients: list[httpx.AsyncClient]

    async def close(self) -> None:
        for client in self._http_clients:
            await client.aclose()


def build_http_client(settings: Settings, egress_filter: EgressFilter) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.REQUEST_TIMEOUT),
        limits=httpx.Limits(max_keepalive_connections=10, max_connections=20),
        event_hooks=egress_filter.event_hooks(),
    )


async def build_dependencies(settings: Settings, logger=None) -> SyncDependencies:
    """
    Build the CRM and SARAS clients for a run.

    A fresh SARAS token is acquired here and used for the whole run.
    """
    logger = logger or get_logger(__name__)
    egress_filter = EgressFilter(settings.allowed_urls())

    identity_client = build_http_client(settings, egress_filter)
    crm_http = build_http_client(settings, egress_filter)
    saras_http = build_http_client(settings, egress_filter)
    http_clients = [identity_client, crm_http, saras_http]

    try:
        saras_token_provider = ClientCredentialsTokenProvider(
            settings.TOKEN_AUTHORITY_URL,
            settings.AZURE_TENANT_ID,
            settings.CBIBOOKING_CLIENT_ID,
            settings.CBIBOOKING_CLIENT_SECRET,
            settings.SARAS_SCOPE,
            http_client=identity_client,
        )
        saras_token = await saras_token_provider.get_token()

        crm_token_provider = ClientCredentialsTokenProvider(
            settings.TOKEN_AUTHORITY_URL,
            settings.crm_tenant_id(),
            settings.CRM_CLIENT_ID,
            settings.CRM_CLIENT_SECRET,
            settings.CRM_SCOPE,
            http_client=identity_client,
        )

        crm = CrmClient(settings, http_client=crm_http, token_provider=crm_token_provider)
        saras = SarasClient(
            SarasHttpClient(saras_token, settings.SARAS_MAX_RETRIES, client=saras_http),
            settings.saras_api_url(),
        )
        enricher = TestHistoryEnricher(
            crm, use_last_passed_date=settings.ENABLE_SARAS_API_VERSION_2
        )
    except Exception:
        logger.critical("Error building sync dependencies")
        for client in http_clients:
            await client.aclose()
        raise

    logger.info("Sync dependencies built", allowed_urls=settings.allowed_urls())
    return SyncDependencies(
        crm=crm,
        saras=saras,
        enricher=enricher,
        egress_filter=egress_filter,
        _http_clients=http_clients,
    )

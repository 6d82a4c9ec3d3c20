"""
CRM (Dynamics Web API) client for booking products and test histories.
Handles OData queries, FetchXML lookups, sync-date writes and retries.
"""

import asyncio
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from pathlib import Path
from string import Template

import httpx

from booking_sync.config import Settings
from booking_sync.errors import AccessDeniedError, CrmError
from booking_sync.infrastructure.observability.logging import get_logger, log_crm_event
from booking_sync.models.domain.booking_domain import BookingDetails
from booking_sync.models.enums.crm import Collection, Origin, Remit, TestStatus
from booking_sync.models.enums.saras import Organisation
from booking_sync.services.crm.mappers import CrmMapper
from booking_sync.services.crm.requests import (
    build_retrieve_booking_details_params,
    cancelled_bookings_filter,
    new_bookings_filter,
    updated_bookings_filter,
    valid_test_pass_filter,
)

DATA_DIR = Path(__file__).resolve().parent / "data"
DVA_RESULTS_TEMPLATE = "getCorrespondingDvaTestResults.xml"
DVSA_RESULTS_TEMPLATE = "getCorrespondingDvsaTestResults.xml"

# Retry configuration
BACKOFF_FACTOR = 1
MAX_BACKOFF_SECONDS = 30
RETRY_STATUS_CODES = {429, 500, 502, 503, 504}

ODATA_HEADERS = {
    "Accept": "application/json",
    "OData-MaxVersion": "4.0",
    "OData-Version": "4.0",
}

Sleep = Callable[[float], Awaitable[None]]


def parse_crm_datetime(value: str) -> datetime:
    """Parse a CRM date or date-time string into an aware UTC datetime."""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


class CrmClient:
    """
    Source gateway for the booking sync.

    Every request is retried on transient failures (429, 5xx gateway errors
    and network errors) up to ``CRM_MAX_RETRIES`` times. Failures surface as
    CrmError carrying the HTTP status; egress violations are never wrapped.
    """

    def __init__(
        self,
        settings: Settings,
        http_client: httpx.AsyncClient | None = None,
        token_provider=None,
        logger=None,
        mapper: CrmMapper | None = None,
        sleep: Sleep = asyncio.sleep,
        clock: Callable[[], datetime] | None = None,
    ):
        self.settings = settings
        self.api_url = settings.crm_api_url()
        self.max_retries = settings.CRM_MAX_RETRIES
        self.new_bookings_window = settings.NEW_BOOKING_WINDOW
        self.logger = logger or get_logger(__name__)
        self.mapper = mapper or CrmMapper(self.logger)
        self.token_provider = token_provider
        self._client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(settings.REQUEST_TIMEOUT)
        )
        self._sleep = sleep
        self._clock = clock or (lambda: datetime.now(UTC))

    async def close(self) -> None:
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Booking queries
    # ------------------------------------------------------------------

    async def get_new_bookings(self) -> list[BookingDetails]:
        """
        Bookings that are confirmed (or have a cancellation/change in
        progress), have never been sent to the test engine and are within
        the new bookings window.
        """
        filter_query = new_bookings_filter(self._clock(), self.new_bookings_window)
        return await self._send_booking_details_request(filter_query, "get_new_bookings")

    async def get_cancelled_bookings(self) -> list[BookingDetails]:
        """Cancelled bookings that were sent to the test engine before."""
        filter_query = cancelled_bookings_filter(self._clock())
        return await self._send_booking_details_request(filter_query, "get_cancelled_bookings")

    async def get_updated_bookings(self) -> list[BookingDetails]:
        """Confirmed bookings updated since they were last synced."""
        filter_query = updated_bookings_filter(self._clock())
        return await self._send_booking_details_request(filter_query, "get_updated_bookings")

    async def _send_booking_details_request(
        self, filter_query: str, operation: str
    ) -> list[BookingDetails]:
        url = f"{self.api_url}{Collection.BOOKING_PRODUCTS.value}"
        params = build_retrieve_booking_details_params(filter_query)
        self.logger.debug(f"CRM {operation} raw request", url=url, params=params)

        try:
            records: list[dict] = []
            next_url: str | None = url
            while next_url:
                response = await self._request_with_retry("GET", next_url, params=params)
                data = self._parse_json(response)
                records.extend(data.get("value", []))
                next_url = data.get("@odata.nextLink")
                params = None  # nextLink already carries the query

            self.logger.debug(f"CRM {operation} raw response", record_count=len(records))
            return self.mapper.to_booking_details_list(records)

        except CrmError as e:
            self.logger.critical(
                f"CRM {operation} failed retrieving booking products matching the criteria",
                status=e.status,
                error=str(e),
            )
            log_crm_event(self.logger, e.status)
            raise

    # ------------------------------------------------------------------
    # Test history lookups
    # ------------------------------------------------------------------

    async def candidate_has_valid_test_pass(
        self, candidate_id: str, test_type: int, on_date: str | None
    ) -> bool:
        """
        True if the candidate holds a pass of the given test type that is
        still valid on ``on_date``. Errors are logged and treated as no pass.
        """
        if not on_date:
            self.logger.warning(
                "No test date to check candidate test history against",
                candidate_id=candidate_id,
            )
            return False

        try:
            filter_query = valid_test_pass_filter(
                candidate_id, test_type, parse_crm_datetime(on_date)
            )
            self.logger.debug("CRM test histories count request", filter_query=filter_query)

            url = f"{self.api_url}{Collection.TEST_HISTORIES.value}"
            params = {"$filter": filter_query, "$count": "true", "$select": "ftts_testhistoryid"}
            response = await self._request_with_retry("GET", url, params=params)
            data = self._parse_json(response)

            count = data.get("@odata.count", len(data.get("value", [])))
            self.logger.debug("CRM test histories count response", count=count)
            return count > 0

        except (CrmError, ValueError) as e:
            status = getattr(e, "status", None)
            self.logger.critical(
                "CRM error checking candidate test history",
                candidate_id=candidate_id,
                status=status,
                error=str(e),
            )
            log_crm_event(self.logger, status, candidate_id=candidate_id)
            return False

    async def get_last_passed_test_date(
        self, candidate_id: str, test_type: int, organisation: Organisation
    ) -> str | None:
        """
        Test date of the candidate's most recent pass of ``test_type`` at
        the given organisation, or None.
        """
        test_histories = await self._fetch_corresponding_results(
            candidate_id, test_type, organisation
        )
        if not test_histories:
            return None

        test_history = test_histories[0]
        test_date = test_history.get("testDate")
        if not test_date:
            self.logger.warning(
                "Test history does not have a test date",
                test_history_id=test_history.get("testHistoryId"),
                candidate_id=test_history.get("candidateId"),
            )
            return None
        return test_date

    async def _fetch_corresponding_results(
        self, candidate_id: str, test_type: int, organisation: Organisation
    ) -> list[dict] | None:
        filename = (
            DVA_RESULTS_TEMPLATE if organisation == Organisation.DVA else DVSA_RESULTS_TEMPLATE
        )
        self.logger.info(
            "Fetching corresponding test results",
            filename=filename,
            candidate_id=candidate_id,
            test_type=int(test_type),
            organisation=int(organisation),
        )

        fetch_xml = Template((DATA_DIR / filename).read_text(encoding="utf-8")).safe_substitute(
            statusPass=TestStatus.PASSED.value,
            candidateId=candidate_id,
            correspondingTestEngineTestType=int(test_type),
            dva=Remit.DVA.value,
        )
        self.logger.debug("CRM corresponding test results raw request", fetch_xml=fetch_xml)

        try:
            url = f"{self.api_url}{Collection.TEST_HISTORIES.value}"
            response = await self._request_with_retry("GET", url, params={"fetchXml": fetch_xml})
            data = self._parse_json(response)
        except CrmError as e:
            self.logger.error(
                "Failed to load corresponding test results",
                organisation=int(organisation),
                test_type=int(test_type),
                status=e.status,
                error=str(e),
            )
            log_crm_event(self.logger, e.status)
            raise

        results = data.get("value")
        self.logger.debug(
            "CRM corresponding test results raw response",
            result_count=len(results) if results else 0,
        )
        if not results:
            return None
        return self._remove_results_without_remits(results)

    def _remove_results_without_remits(self, test_histories: list[dict]) -> list[dict]:
        """Results need a test centre remit unless they came from the IHTTC portal."""
        kept = []
        for test_history in test_histories:
            if not test_history.get("testCentreRemit") and (
                test_history.get("origin") != Origin.IHTTC_PORTAL
            ):
                self.logger.warning(
                    "Not retrieving candidate's test result due to missing remit",
                    candidate_id=test_history.get("candidateId"),
                    booking_product_ref=test_history.get("bookingProductReference"),
                    test_history_id=test_history.get("testHistoryId"),
                )
                continue
            kept.append(test_history)
        return kept

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def update_booking_sync_date(self, booking_product_id: str, sync_timestamp: str) -> None:
        """Stamp ftts_testengineinitialsentdate to mark the booking as synced."""
        self.logger.debug(
            "Updating booking product sync date",
            booking_product_id=booking_product_id,
            sync_timestamp=sync_timestamp,
        )
        url = (
            f"{self.api_url}{Collection.BOOKING_PRODUCTS.value}({booking_product_id})"
            "/ftts_testengineinitialsentdate"
        )
        try:
            await self._request_with_retry("PUT", url, json={"value": sync_timestamp})
        except CrmError as e:
            self.logger.critical(
                "CRM error updating booking product sync date",
                booking_product_id=booking_product_id,
                status=e.status,
                error=str(e),
            )
            log_crm_event(self.logger, e.status, booking_product_id=booking_product_id)
            raise

        self.logger.debug(
            "Booking product sync date updated",
            booking_product_id=booking_product_id,
            sync_timestamp=sync_timestamp,
        )

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def _headers(self) -> dict:
        headers = dict(ODATA_HEADERS)
        if self.token_provider is not None:
            headers["Authorization"] = f"Bearer {await self.token_provider.get_token()}"
        return headers

    async def _request_with_retry(self, method: str, url: str, **kwargs) -> httpx.Response:
        """
        Execute a CRM request, retrying transient failures with capped
        exponential backoff.

        Raises:
            CrmError: On a non-success final response or exhausted retries
            AccessDeniedError: If the egress filter blocks the request
        """
        attempt = 0
        while True:
            attempt += 1
            try:
                response = await self._client.request(
                    method, url, headers=await self._headers(), **kwargs
                )
            except AccessDeniedError:
                raise
            except httpx.RequestError as e:
                if attempt > self.max_retries:
                    raise CrmError(f"CRM request failed: {e}") from e
                await self._before_retry(attempt, None, str(e))
                continue

            if response.is_success:
                return response

            if response.status_code in RETRY_STATUS_CODES and attempt <= self.max_retries:
                await self._before_retry(attempt, response.status_code, response.reason_phrase)
                continue

            raise CrmError(self._error_message(response), status=response.status_code)

    async def _before_retry(self, attempt: int, status: int | None, message: str) -> None:
        backoff = min(BACKOFF_FACTOR * (2 ** (attempt - 1)), MAX_BACKOFF_SECONDS)
        log_crm_event(self.logger, status)
        self.logger.warning(
            "Retrying failed CRM request",
            error_status=status,
            error_message=message,
            attempt=attempt,
            backoff_seconds=backoff,
        )
        await self._sleep(backoff)

    def _error_message(self, response: httpx.Response) -> str:
        try:
            error = response.json().get("error", {})
            message = error.get("message")
        except (ValueError, AttributeError):
            message = None
        return message or f"CRM request failed (HTTP {response.status_code})"

    def _parse_json(self, response: httpx.Response) -> dict:
        try:
            data = response.json() if response.content else {}
        except ValueError as e:
            raise CrmError(f"Invalid CRM response format: {e}", status=response.status_code) from e
        return data if isinstance(data, dict) else {}

"""
Booking synchroniser: pushes CRM booking changes to SARAS.

A run processes three passes in a fixed order (updated, cancelled, new).
Bookings are handled one at a time so that an error which must abort the
run stops everything after it immediately.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum

from booking_sync.errors import SarasError
from booking_sync.infrastructure.observability.logging import get_logger
from booking_sync.models.domain.booking_domain import BookingDetails, booking_identifiers
from booking_sync.sync.enrichment import TestHistoryEnricher
from booking_sync.sync.policy import ErrorPolicy


class BookingOutcome(str, Enum):
    SYNCED = "synced"  # sent to SARAS and marked as synced
    RECONCILED = "reconciled"  # SARAS already matched, marked as synced
    SKIPPED = "skipped"  # error swallowed, left for the next run


@dataclass
class PassReport:
    """Counts for one pass. Observability only."""

    name: str
    retrieved: int = 0
    synced: int = 0
    reconciled: int = 0
    skipped: int = 0
    fetch_failed: bool = False

    def record(self, outcome: BookingOutcome) -> None:
        if outcome is BookingOutcome.SYNCED:
            self.synced += 1
        elif outcome is BookingOutcome.RECONCILED:
            self.reconciled += 1
        else:
            self.skipped += 1

    @property
    def processed(self) -> int:
        return self.synced + self.reconciled

    def to_dict(self) -> dict:
        return {
            "pass": self.name,
            "retrieved": self.retrieved,
            "synced": self.synced,
            "reconciled": self.reconciled,
            "skipped": self.skipped,
            "fetch_failed": self.fetch_failed,
        }


@dataclass
class SyncRunReport:
    sync_timestamp: str
    passes: list[PassReport] = field(default_factory=list)

    def get(self, name: str) -> PassReport | None:
        return next((report for report in self.passes if report.name == name), None)

    def to_dict(self) -> dict:
        return {
            "sync_timestamp": self.sync_timestamp,
            "passes": [report.to_dict() for report in self.passes],
        }


class Synchroniser:
    """
    Orchestrates one sync run.

    Args:
        sync_timestamp: Captured once at the start of the run and written to
            every booking marked as synced during it
        crm: Source gateway (CrmClient)
        saras: Target gateway (SarasClient)
        enricher: Optional test history enricher
        logger: structlog logger
    """

    def __init__(
        self,
        sync_timestamp: str,
        crm,
        saras,
        enricher: TestHistoryEnricher | None = None,
        logger=None,
        policy: ErrorPolicy | None = None,
    ):
        self.sync_timestamp = sync_timestamp
        self.crm = crm
        self.saras = saras
        self.enricher = enricher
        self.logger = logger or get_logger(__name__)
        self.policy = policy or ErrorPolicy(self.logger)

    async def process_bookings(self) -> SyncRunReport:
        """Process updated, cancelled and new bookings, in that order."""
        self.logger.info("Started processing bookings", sync_timestamp=self.sync_timestamp)
        report = SyncRunReport(sync_timestamp=self.sync_timestamp)

        report.passes.append(await self.process_updated_bookings())
        report.passes.append(await self.process_cancelled_bookings())
        report.passes.append(await self.process_new_bookings())

        self.logger.info("Finished processing bookings", **report.to_dict())
        return report

    async def process_updated_bookings(self) -> PassReport:
        return await self._run_pass(
            "updated",
            fetch=self.crm.get_updated_bookings,
            send=self.saras.update_booking,
            enrich=True,
        )

    async def process_cancelled_bookings(self) -> PassReport:
        return await self._run_pass(
            "cancelled",
            fetch=self.crm.get_cancelled_bookings,
            send=self.saras.delete_booking,
            enrich=False,
            already_applied=lambda e: isinstance(e, SarasError) and e.is_appointment_not_found,
        )

    async def process_new_bookings(self) -> PassReport:
        return await self._run_pass(
            "new",
            fetch=self.crm.get_new_bookings,
            send=self.saras.create_booking,
            enrich=True,
            already_applied=lambda e: isinstance(e, SarasError) and e.is_duplicate,
        )

    async def _run_pass(
        self,
        name: str,
        fetch: Callable[[], Awaitable[list[BookingDetails]]],
        send: Callable[[BookingDetails], Awaitable[None]],
        enrich: bool,
        already_applied: Callable[[Exception], bool] | None = None,
    ) -> PassReport:
        report = PassReport(name=name)

        try:
            bookings = await fetch()
        except Exception as e:
            self.policy.handle(e, sync_pass=name)
            report.fetch_failed = True
            bookings = []

        report.retrieved = len(bookings)
        self.logger.info("Retrieved bookings from CRM", sync_pass=name, count=len(bookings))

        for booking in bookings:
            outcome = await self._process_booking(booking, send, enrich, already_applied)
            report.record(outcome)

        self.logger.info(
            "Finished pass",
            sync_pass=name,
            processed=report.processed,
            skipped=report.skipped,
        )
        return report

    async def _process_booking(
        self,
        booking: BookingDetails,
        send: Callable[[BookingDetails], Awaitable[None]],
        enrich: bool,
        already_applied: Callable[[Exception], bool] | None,
    ) -> BookingOutcome:
        if enrich:
            await self._set_test_history(booking)

        try:
            await send(booking)
            await self.crm.update_booking_sync_date(booking.booking_product.id, self.sync_timestamp)
            return BookingOutcome.SYNCED
        except Exception as e:
            if already_applied is not None and already_applied(e):
                self.logger.warning(
                    "Booking already in the expected state in SARAS, updating CRM sync date",
                    **booking_identifiers(booking),
                )
                return await self._mark_synced_again(booking)

            self.policy.handle(e, **booking_identifiers(booking))
            return BookingOutcome.SKIPPED

    async def _mark_synced_again(self, booking: BookingDetails) -> BookingOutcome:
        try:
            await self.crm.update_booking_sync_date(booking.booking_product.id, self.sync_timestamp)
            return BookingOutcome.RECONCILED
        except Exception as e:
            self.policy.handle(e, **booking_identifiers(booking))
            return BookingOutcome.SKIPPED

    async def _set_test_history(self, booking: BookingDetails) -> None:
        """Enrich the booking; a swallowed lookup error leaves it unenriched."""
        if self.enricher is None or not self.enricher.applies_to(booking):
            return
        try:
            await self.enricher.enrich(booking)
        except Exception as e:
            self.policy.handle(e, **booking_identifiers(booking))

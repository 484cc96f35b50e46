import datetime
from typing import Optional

from salon_booking.models.booking import AvailabilityResult, Booking, ConflictSummary
from salon_booking.services.booking_store import BookingStore
from salon_booking.services.time_interval import LEGACY_DURATION_MINUTES, format_minutes, overlaps


def masters_compatible(candidate: str, existing: str) -> bool:
    """
    An unassigned candidate competes with every booking. A named candidate
    competes with unassigned bookings and bookings for the same master.
    """
    if not candidate:
        return True
    existing = (existing or "").strip()
    return not existing or existing == candidate


class AvailabilityChecker:
    """
    Read-only conflict detection for one (tenant, date).

    Pass a store bound to a transaction to make the check part of the write
    it guards.
    """

    def __init__(self, store: BookingStore, legacy_duration: int = LEGACY_DURATION_MINUTES):
        self.store = store
        self.legacy_duration = legacy_duration

    async def check(
        self,
        tenant_id: int,
        on_date: datetime.date,
        start: Optional[int],
        end: Optional[int],
        master: Optional[str] = None,
        exclude_id: Optional[int] = None,
    ) -> AvailabilityResult:
        if start is None or end is None:
            return AvailabilityResult(available=False, error="Invalid time format, expected HH:MM")
        if start >= end:
            return AvailabilityResult(available=False, error="End time must be after start time")

        candidate_master = (master or "").strip()
        for booking in await self.store.list_by_tenant(tenant_id, on_date):
            if exclude_id is not None and booking.id == exclude_id:
                continue
            if not masters_compatible(candidate_master, booking.master):
                continue
            if overlaps(start, end, booking.start_time, booking.effective_end(self.legacy_duration)):
                return AvailabilityResult(available=False, conflict=self.summarize(booking))

        return AvailabilityResult(available=True)

    def summarize(self, booking: Booking) -> ConflictSummary:
        return ConflictSummary(
            name=booking.name,
            time=format_minutes(booking.start_time),
            endTime=format_minutes(booking.effective_end(self.legacy_duration)),
            master=booking.master,
        )

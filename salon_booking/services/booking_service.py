import datetime
from contextlib import contextmanager
from typing import Any, Callable, Dict, List, Optional
from zoneinfo import ZoneInfo

from sqlalchemy.exc import SQLAlchemyError

from salon_booking.core.config import Settings, settings as default_settings
from salon_booking.core.exceptions import (
    ConflictException,
    ForbiddenException,
    InternalException,
    NotFoundException,
    ValidationException,
)
from salon_booking.core.logger import logger
from salon_booking.models.api_models import AvailabilityRequest, BookingCreateRequest, BookingUpdateRequest
from salon_booking.models.booking import AvailabilityResult, Booking
from salon_booking.services.availability import AvailabilityChecker
from salon_booking.services.booking_store import BookingStore, StoreWriteConflict
from salon_booking.services.tenant_directory import TenantDirectory
from salon_booking.services.time_interval import derive_end, parse_end_time, parse_time
from salon_booking.services.validators import (
    ensure_not_past,
    parse_date,
    require_text,
    sanitize_text,
    validate_phone,
)

WINDOW_FIELDS = ("date", "start_time", "end_time", "master")


class BookingService:
    """
    Request-facing orchestration of bookings.

    Every write runs the availability check and the write inside one store
    transaction. Business failures are raised as domain exceptions; storage
    failures are logged with context and re-raised as InternalException.
    """

    def __init__(
        self,
        store: BookingStore,
        tenants: TenantDirectory,
        settings: Settings = default_settings,
        clock: Optional[Callable[[], datetime.date]] = None,
    ):
        self.store = store
        self.tenants = tenants
        self.default_duration = settings.DEFAULT_DURATION_MINUTES
        self.legacy_duration = settings.LEGACY_DURATION_MINUTES
        self.tz = ZoneInfo(settings.TIMEZONE)
        self._clock = clock
        self.checker = AvailabilityChecker(store, self.legacy_duration)

    def today(self) -> datetime.date:
        if self._clock:
            return self._clock()
        return datetime.datetime.now(self.tz).date()

    @contextmanager
    def _storage_errors(self, operation: str, tenant_id: Optional[int] = None, booking_id: Optional[int] = None):
        try:
            yield
        except SQLAlchemyError as e:
            logger.error(f"❌ Storage failure in {operation} (tenant={tenant_id}, booking={booking_id}): {e}")
            raise InternalException() from e

    # --- Availability ---

    async def check_availability(self, tenant_id: int, payload: AvailabilityRequest) -> AvailabilityResult:
        booking_date = parse_date(payload.date)
        start = parse_time(payload.time)
        if payload.endTime and payload.endTime.strip():
            end = parse_end_time(payload.endTime)
        else:
            end = derive_end(start, self.default_duration) if start is not None else None

        with self._storage_errors("check_availability", tenant_id):
            return await self.checker.check(
                tenant_id, booking_date, start, end, sanitize_text(payload.master, 100)
            )

    # --- Create ---

    async def create(self, tenant_id: int, payload: BookingCreateRequest) -> Booking:
        logger.info(
            f"📥 Booking request - tenant {tenant_id}, date {payload.date}, "
            f"time {payload.time}, master '{payload.master or ''}'"
        )

        name = require_text(payload.name, "name", "Client name")
        phone = validate_phone(payload.phone)
        service = require_text(payload.service, "service", "Service")
        booking_date = parse_date(payload.date)
        ensure_not_past(booking_date, self.today())

        start = parse_time(payload.time)
        if start is None:
            raise ValidationException("Invalid start time, expected HH:MM", field="time")
        if payload.endTime and payload.endTime.strip():
            end = self._parse_end(payload.endTime)
        else:
            end = derive_end(start, self.default_duration)
        self._validate_window(start, end)

        await self._require_active_tenant(tenant_id)

        data = {
            "tenant_id": tenant_id,
            "name": name,
            "phone": phone,
            "service": service,
            "master": sanitize_text(payload.master, 100),
            "date": booking_date,
            "start_time": start,
            "end_time": end,
            "comment": sanitize_text(payload.comment),
        }

        with self._storage_errors("create", tenant_id):
            try:
                async with self.store.transaction() as tx:
                    result = await AvailabilityChecker(tx, self.legacy_duration).check(
                        tenant_id, booking_date, start, end, data["master"]
                    )
                    if not result.available:
                        raise self._conflict(result)
                    booking = await tx.insert(data)
            except StoreWriteConflict:
                raise await self._lost_race(tenant_id, booking_date, start, end, data["master"])

        logger.info(f"✅ Booking {booking.id} created for tenant {tenant_id} on {booking_date}")
        return booking

    # --- Update ---

    async def update(self, booking_id: int, tenant_id: int, payload: BookingUpdateRequest) -> Booking:
        supplied = payload.model_fields_set
        logger.info(f"✏️ Update request - booking {booking_id}, tenant {tenant_id}, fields {sorted(supplied)}")

        existing, changes = None, {}
        with self._storage_errors("update", tenant_id, booking_id):
            try:
                async with self.store.transaction() as tx:
                    existing = await self._load_owned(tx, booking_id, tenant_id)
                    changes = self._build_changes(existing, payload, supplied)
                    window = self._changed_window(existing, changes)

                    if window is not None:
                        result = await AvailabilityChecker(tx, self.legacy_duration).check(
                            tenant_id, *window, exclude_id=booking_id
                        )
                        if not result.available:
                            raise self._conflict(result)

                    if not changes:
                        return existing
                    booking = await tx.update(booking_id, changes)
            except StoreWriteConflict:
                if existing is None:
                    raise ConflictException()
                merged = self._merged_window(existing, changes)
                raise await self._lost_race(tenant_id, *merged, exclude_id=booking_id)

        logger.info(f"✅ Booking {booking_id} updated ({', '.join(sorted(changes))})")
        return booking

    def _build_changes(self, existing: Booking, payload: BookingUpdateRequest, supplied) -> Dict[str, Any]:
        changes: Dict[str, Any] = {}

        if "name" in supplied:
            changes["name"] = require_text(payload.name, "name", "Client name")
        if "phone" in supplied:
            changes["phone"] = validate_phone(payload.phone)
        if "service" in supplied:
            changes["service"] = require_text(payload.service, "service", "Service")
        if "comment" in supplied:
            changes["comment"] = sanitize_text(payload.comment)
        if "master" in supplied:
            master = sanitize_text(payload.master, 100)
            if master != existing.master:
                changes["master"] = master

        if "date" in supplied:
            new_date = parse_date(payload.date)
            if new_date != existing.date:
                ensure_not_past(new_date, self.today())
                changes["date"] = new_date

        start, end = existing.start_time, existing.end_time
        if "time" in supplied:
            start = parse_time(payload.time)
            if start is None:
                raise ValidationException("Invalid start time, expected HH:MM", field="time")

        if "endTime" in supplied:
            if payload.endTime and payload.endTime.strip():
                end = self._parse_end(payload.endTime)
            else:
                end = derive_end(start, self.default_duration)
        elif start != existing.start_time:
            # Moving the start keeps the booked duration
            if existing.end_time is not None:
                duration = existing.end_time - existing.start_time
            else:
                duration = self.default_duration
            end = derive_end(start, duration)

        if start != existing.start_time:
            changes["start_time"] = start
        if end != existing.end_time:
            changes["end_time"] = end
        if "start_time" in changes or "end_time" in changes:
            self._validate_window(start, end)

        return changes

    def _merged_window(self, existing: Booking, changes: Dict[str, Any]):
        start = changes.get("start_time", existing.start_time)
        end = changes.get("end_time", existing.end_time)
        if end is None:
            end = existing.effective_end(self.legacy_duration)
        return (
            changes.get("date", existing.date),
            start,
            end,
            changes.get("master", existing.master),
        )

    def _changed_window(self, existing: Booking, changes: Dict[str, Any]):
        """The candidate window when date, time or master actually moved, else None."""
        if not any(field in changes for field in WINDOW_FIELDS):
            return None
        return self._merged_window(existing, changes)

    # --- Delete / read ---

    async def delete(self, booking_id: int, tenant_id: int) -> None:
        with self._storage_errors("delete", tenant_id, booking_id):
            try:
                async with self.store.transaction() as tx:
                    await self._load_owned(tx, booking_id, tenant_id)
                    await tx.delete(booking_id)
            except StoreWriteConflict as e:
                logger.error(f"❌ Delete of booking {booking_id} (tenant={tenant_id}) rejected by the database: {e}")
                raise InternalException() from e
        logger.info(f"🗑️ Booking {booking_id} deleted by tenant {tenant_id}")

    async def get(self, booking_id: int, tenant_id: int) -> Booking:
        with self._storage_errors("get", tenant_id, booking_id):
            return await self._load_owned(self.store, booking_id, tenant_id)

    async def list_by_tenant(self, tenant_id: int, on_date: Optional[str] = None) -> List[Booking]:
        day = parse_date(on_date) if on_date else None
        with self._storage_errors("list_by_tenant", tenant_id):
            bookings = await self.store.list_by_tenant(tenant_id, day)
        if day is not None:
            bookings.sort(key=lambda b: (b.start_time, b.id))
        return bookings

    async def list_by_master(self, identity: str, on_date: Optional[str] = None) -> List[Booking]:
        if not identity or not identity.strip():
            raise ValidationException("Master is required", field="master")
        day = parse_date(on_date) if on_date else None
        with self._storage_errors("list_by_master"):
            return await self.store.list_by_master(identity, day)

    async def list_by_phone(self, phone: str) -> List[Booking]:
        with self._storage_errors("list_by_phone"):
            return await self.store.list_by_phone(phone or "")

    # --- Helpers ---

    async def _load_owned(self, store: BookingStore, booking_id: int, tenant_id: int) -> Booking:
        booking = await store.get(booking_id)
        if booking is None:
            raise NotFoundException("Booking")
        if booking.tenant_id != tenant_id:
            logger.warning(f"⛔ Tenant {tenant_id} tried to access booking {booking_id} of tenant {booking.tenant_id}")
            raise ForbiddenException()
        return booking

    async def _require_active_tenant(self, tenant_id: int) -> None:
        try:
            active = await self.tenants.is_active(tenant_id)
        except Exception as e:
            logger.error(f"❌ Tenant directory lookup failed (tenant={tenant_id}): {e}")
            raise InternalException() from e
        if not active:
            raise NotFoundException("Salon")

    def _parse_end(self, text: str) -> int:
        end = parse_end_time(text)
        if end is None:
            raise ValidationException("Invalid end time, expected HH:MM", field="endTime")
        return end

    def _validate_window(self, start: int, end: int) -> None:
        if end <= start:
            raise ValidationException("End time must be after start time", field="endTime")

    def _conflict(self, result: AvailabilityResult) -> ConflictException:
        conflict = result.conflict.model_dump() if result.conflict else None
        logger.warning(f"⚠️ Slot taken: {conflict}")
        return ConflictException(conflict=conflict)

    async def _lost_race(self, tenant_id, on_date, start, end, master, exclude_id=None) -> ConflictException:
        # Another writer committed first; report whatever now occupies the slot
        result = await self.checker.check(tenant_id, on_date, start, end, master, exclude_id=exclude_id)
        return self._conflict(result)

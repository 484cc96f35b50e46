"""
Booking persistence.

`BookingStore` is the abstraction the engine talks to. `SqlBookingStore`
implements it over async SQLAlchemy. Calling `transaction()` yields a store
bound to a single serialised transaction so that the conflict read and the
write it guards commit or fail together.
"""

from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
import datetime
from typing import Any, AsyncIterator, Dict, List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from salon_booking.core.logger import logger
from salon_booking.models.booking import Booking
from salon_booking.models.db_models import BookingRow
from salon_booking.services.validators import MIN_PHONE_DIGITS, phone_digits, phones_match

SERIALIZATION_FAILURE = "40001"
DEADLOCK_DETECTED = "40P01"

UPDATABLE_FIELDS = ("name", "phone", "service", "master", "date", "start_time", "end_time", "comment")


class StoreWriteConflict(Exception):
    """A concurrent writer won; the transaction was rolled back."""


class BookingStore(ABC):
    @abstractmethod
    def transaction(self):
        """Async context manager yielding a store bound to one serialised transaction."""

    @abstractmethod
    async def insert(self, data: Dict[str, Any]) -> Booking: ...

    @abstractmethod
    async def get(self, booking_id: int) -> Optional[Booking]: ...

    @abstractmethod
    async def list_by_tenant(self, tenant_id: int, on_date: Optional[datetime.date] = None) -> List[Booking]: ...

    @abstractmethod
    async def list_by_master(self, identity: str, on_date: Optional[datetime.date] = None) -> List[Booking]: ...

    @abstractmethod
    async def list_by_phone(self, phone: str) -> List[Booking]: ...

    @abstractmethod
    async def update(self, booking_id: int, changes: Dict[str, Any]) -> Optional[Booking]: ...

    @abstractmethod
    async def delete(self, booking_id: int) -> bool: ...


def _is_write_conflict(exc: DBAPIError) -> bool:
    if isinstance(exc, IntegrityError):
        return True
    orig = getattr(exc, "orig", None)
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if code in (SERIALIZATION_FAILURE, DEADLOCK_DETECTED):
        return True
    message = str(orig or exc).lower()
    return "could not serialize access" in message or "deadlock detected" in message


class SqlBookingStore(BookingStore):
    def __init__(self, session_factory: async_sessionmaker, session: Optional[AsyncSession] = None):
        self._session_factory = session_factory
        self._session = session

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator["SqlBookingStore"]:
        if self._session is not None:
            # Already inside a transaction, join it
            yield self
            return

        async with self._session_factory() as session:
            try:
                async with session.begin():
                    yield SqlBookingStore(self._session_factory, session)
            except DBAPIError as e:
                if _is_write_conflict(e):
                    logger.warning(f"⚠️ Concurrent write rejected by the database: {e.orig}")
                    raise StoreWriteConflict(str(e.orig)) from e
                raise

    @asynccontextmanager
    async def _use_session(self) -> AsyncIterator[AsyncSession]:
        if self._session is not None:
            yield self._session
            return
        async with self.transaction() as tx:
            yield tx._session

    async def insert(self, data: Dict[str, Any]) -> Booking:
        async with self._use_session() as session:
            row = BookingRow(**data)
            session.add(row)
            await session.flush()
            await session.refresh(row)
            return Booking.model_validate(row)

    async def get(self, booking_id: int) -> Optional[Booking]:
        async with self._use_session() as session:
            row = await session.get(BookingRow, booking_id)
            return Booking.model_validate(row) if row else None

    async def list_by_tenant(self, tenant_id: int, on_date: Optional[datetime.date] = None) -> List[Booking]:
        stmt = select(BookingRow).where(BookingRow.tenant_id == tenant_id)
        if on_date is not None:
            # Insertion order, the availability check reports the first conflict it meets
            stmt = stmt.where(BookingRow.date == on_date).order_by(BookingRow.id)
        else:
            stmt = stmt.order_by(BookingRow.date, BookingRow.start_time, BookingRow.id)
        return await self._fetch(stmt)

    async def list_by_master(self, identity: str, on_date: Optional[datetime.date] = None) -> List[Booking]:
        """Cross-tenant: case-insensitive match on the trimmed master name."""
        key = identity.strip().lower()
        stmt = select(BookingRow).where(
            BookingRow.master != "",
            func.lower(func.trim(BookingRow.master)) == key,
        )
        if on_date is not None:
            stmt = stmt.where(BookingRow.date == on_date)
        stmt = stmt.order_by(BookingRow.date, BookingRow.start_time, BookingRow.id)
        return await self._fetch(stmt)

    async def list_by_phone(self, phone: str) -> List[Booking]:
        """Cross-tenant: stored numbers are matched on their trailing digits."""
        digits = phone_digits(phone)
        if len(digits) < MIN_PHONE_DIGITS:
            return []

        normalized = BookingRow.phone
        for ch in (" ", "-", "(", ")", "+"):
            normalized = func.replace(normalized, ch, "")

        stmt = (
            select(BookingRow)
            .where(normalized.like(f"%{digits[-MIN_PHONE_DIGITS:]}"))
            .order_by(BookingRow.date.desc(), BookingRow.start_time.desc(), BookingRow.id.desc())
        )
        rows = await self._fetch(stmt)
        return [b for b in rows if phones_match(b.phone, phone)]

    async def update(self, booking_id: int, changes: Dict[str, Any]) -> Optional[Booking]:
        async with self._use_session() as session:
            row = await session.get(BookingRow, booking_id)
            if row is None:
                return None
            for field, value in changes.items():
                if field not in UPDATABLE_FIELDS:
                    raise ValueError(f"Field '{field}' cannot be updated")
                setattr(row, field, value)
            await session.flush()
            return Booking.model_validate(row)

    async def delete(self, booking_id: int) -> bool:
        async with self._use_session() as session:
            result = await session.execute(delete(BookingRow).where(BookingRow.id == booking_id))
            return result.rowcount > 0

    async def _fetch(self, stmt) -> List[Booking]:
        async with self._use_session() as session:
            result = await session.execute(stmt)
            return [Booking.model_validate(row) for row in result.scalars().all()]

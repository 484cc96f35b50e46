import datetime
from typing import Optional

from sqlalchemy import Date, DateTime, Index, Integer, String, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class BookingRow(Base):
    __tablename__ = "bookings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tenant_id: Mapped[int] = mapped_column(Integer, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str] = mapped_column(String(50), nullable=False)
    service: Mapped[str] = mapped_column(String(255), nullable=False)
    master: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    date: Mapped[datetime.date] = mapped_column(Date, nullable=False)
    start_time: Mapped[int] = mapped_column(Integer, nullable=False)  # minutes since midnight
    end_time: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)  # NULL only on legacy rows
    comment: Mapped[str] = mapped_column(Text, nullable=False, default="")
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.datetime.now
    )

    __table_args__ = (
        Index("idx_bookings_tenant_date", "tenant_id", "date"),
        Index("idx_bookings_tenant_date_time", "tenant_id", "date", "start_time"),
        Index("idx_bookings_master", "master"),
        Index("idx_bookings_created_at", "created_at"),
    )

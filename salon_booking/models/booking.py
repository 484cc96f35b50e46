from typing import Optional
import datetime
from pydantic import BaseModel, ConfigDict

from salon_booking.services.time_interval import format_minutes


class Booking(BaseModel):
    """A stored appointment. Times are minutes since midnight."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: int
    tenant_id: int
    name: str
    phone: str
    service: str
    master: str = ""
    date: datetime.date
    start_time: int
    end_time: Optional[int] = None  # None only on legacy rows
    comment: str = ""
    created_at: Optional[datetime.datetime] = None

    def effective_end(self, legacy_duration: int) -> int:
        if self.end_time is not None:
            return self.end_time
        return self.start_time + legacy_duration

    def to_api(self) -> dict:
        return {
            "id": self.id,
            "tenantId": self.tenant_id,
            "name": self.name,
            "phone": self.phone,
            "service": self.service,
            "master": self.master,
            "date": self.date.isoformat(),
            "time": format_minutes(self.start_time),
            "endTime": format_minutes(self.end_time),
            "comment": self.comment,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }


class ConflictSummary(BaseModel):
    name: str
    time: str
    endTime: str
    master: str = ""


class AvailabilityResult(BaseModel):
    available: bool
    conflict: Optional[ConflictSummary] = None
    error: Optional[str] = None

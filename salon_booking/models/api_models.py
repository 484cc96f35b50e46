from pydantic import BaseModel
from typing import Optional, List, Dict, Any

# --- Incoming Request Models ---
# Fields stay loosely typed: BookingService validates them and reports
# problems with the VALIDATION_ERROR envelope.

class BookingCreateRequest(BaseModel):
    name: Optional[str] = None
    phone: Optional[str] = None
    service: Optional[str] = None
    master: Optional[str] = None
    date: Optional[str] = None
    time: Optional[str] = None
    endTime: Optional[str] = None
    comment: Optional[str] = None

class BookingUpdateRequest(BaseModel):
    # Only fields present in the body are applied
    name: Optional[str] = None
    phone: Optional[str] = None
    service: Optional[str] = None
    master: Optional[str] = None
    date: Optional[str] = None
    time: Optional[str] = None
    endTime: Optional[str] = None
    comment: Optional[str] = None

class AvailabilityRequest(BaseModel):
    date: Optional[str] = None
    time: Optional[str] = None
    endTime: Optional[str] = None
    master: Optional[str] = None


# --- Outgoing Response Models ---

class BookingEnvelope(BaseModel):
    success: bool = True
    booking: Dict[str, Any]

class BookingListEnvelope(BaseModel):
    success: bool = True
    bookings: List[Dict[str, Any]]

class AvailabilityEnvelope(BaseModel):
    success: bool = True
    available: bool
    conflict: Optional[Dict[str, Any]] = None
    error: Optional[str] = None

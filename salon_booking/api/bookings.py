from fastapi import APIRouter, Depends, Request
from typing import Optional

from salon_booking.core.security import get_tenant_id, verify_internal_token
from salon_booking.models.api_models import (
    AvailabilityEnvelope,
    AvailabilityRequest,
    BookingCreateRequest,
    BookingEnvelope,
    BookingListEnvelope,
    BookingUpdateRequest,
)
from salon_booking.services.booking_service import BookingService

router = APIRouter(prefix="/bookings", dependencies=[Depends(verify_internal_token)])


def get_booking_service(request: Request) -> BookingService:
    return request.app.state.booking_service


@router.post("", status_code=201, response_model=BookingEnvelope)
async def create_booking(
    req: BookingCreateRequest,
    tenant_id: int = Depends(get_tenant_id),
    service: BookingService = Depends(get_booking_service),
):
    booking = await service.create(tenant_id, req)
    return {"success": True, "booking": booking.to_api()}


@router.post("/check-availability", response_model=AvailabilityEnvelope, response_model_exclude_none=True)
async def check_availability(
    req: AvailabilityRequest,
    tenant_id: int = Depends(get_tenant_id),
    service: BookingService = Depends(get_booking_service),
):
    result = await service.check_availability(tenant_id, req)
    return {
        "success": True,
        "available": result.available,
        "conflict": result.conflict.model_dump() if result.conflict else None,
        "error": result.error,
    }


@router.get("", response_model=BookingListEnvelope)
async def list_bookings(
    date: Optional[str] = None,
    tenant_id: int = Depends(get_tenant_id),
    service: BookingService = Depends(get_booking_service),
):
    bookings = await service.list_by_tenant(tenant_id, date)
    return {"success": True, "bookings": [b.to_api() for b in bookings]}


# Cross-tenant reads: a master may work for several salons, a client may book anywhere

@router.get("/master/{identity}", response_model=BookingListEnvelope)
async def list_master_bookings(
    identity: str,
    date: Optional[str] = None,
    service: BookingService = Depends(get_booking_service),
):
    bookings = await service.list_by_master(identity, date)
    return {"success": True, "bookings": [b.to_api() for b in bookings]}


@router.get("/phone/{phone}", response_model=BookingListEnvelope)
async def list_phone_bookings(
    phone: str,
    service: BookingService = Depends(get_booking_service),
):
    bookings = await service.list_by_phone(phone)
    return {"success": True, "bookings": [b.to_api() for b in bookings]}


@router.get("/{booking_id}", response_model=BookingEnvelope)
async def get_booking(
    booking_id: int,
    tenant_id: int = Depends(get_tenant_id),
    service: BookingService = Depends(get_booking_service),
):
    booking = await service.get(booking_id, tenant_id)
    return {"success": True, "booking": booking.to_api()}


@router.put("/{booking_id}", response_model=BookingEnvelope)
async def update_booking(
    booking_id: int,
    req: BookingUpdateRequest,
    tenant_id: int = Depends(get_tenant_id),
    service: BookingService = Depends(get_booking_service),
):
    booking = await service.update(booking_id, tenant_id, req)
    return {"success": True, "booking": booking.to_api()}


@router.delete("/{booking_id}")
async def delete_booking(
    booking_id: int,
    tenant_id: int = Depends(get_tenant_id),
    service: BookingService = Depends(get_booking_service),
):
    await service.delete(booking_id, tenant_id)
    return {"success": True}

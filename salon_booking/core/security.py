from fastapi import Header
from typing import Optional

from salon_booking.core.config import settings
from salon_booking.core.exceptions import DomainException, ValidationException


class UnauthorizedException(DomainException):
    status_code = 401
    default_code = "AUTHENTICATION_ERROR"


async def verify_internal_token(x_internal_token: Optional[str] = Header(None)):
    """
    Requests reach this service through the gateway, which authenticates the
    session. When INTERNAL_API_TOKEN is set the gateway must present it.
    """
    if not settings.INTERNAL_API_TOKEN:
        return True

    if x_internal_token != settings.INTERNAL_API_TOKEN:
        raise UnauthorizedException("Invalid internal token")
    return True


async def get_tenant_id(x_tenant_id: Optional[str] = Header(None)) -> int:
    """Authenticated tenant id forwarded by the gateway."""
    if not x_tenant_id:
        raise UnauthorizedException("Authentication required")
    try:
        tenant_id = int(x_tenant_id)
    except ValueError:
        raise ValidationException("Invalid tenant id", field="X-Tenant-Id")
    if tenant_id <= 0:
        raise ValidationException("Invalid tenant id", field="X-Tenant-Id")
    return tenant_id

from typing import Iterable, Optional, Protocol

from supabase import AsyncClient, create_async_client

from salon_booking.core.config import Settings
from salon_booking.core.logger import logger


class TenantDirectory(Protocol):
    """Resolves whether a tenant id belongs to an active salon account."""

    async def is_active(self, tenant_id: int) -> bool: ...


class StaticTenantDirectory:
    """Fixed set of active tenants (local development and tests)."""

    def __init__(self, tenant_ids: Iterable[int] = ()):
        self._tenant_ids = set(tenant_ids)

    async def is_active(self, tenant_id: int) -> bool:
        return tenant_id in self._tenant_ids


class SupabaseTenantDirectory:
    """
    Reads salon accounts from the shared user directory in Supabase.
    A tenant is active when its row exists and `is_active` is true.
    """

    def __init__(self, url: str, key: str, table: str = "users"):
        self._url = url
        self._key = key
        self._table = table
        self._client: Optional[AsyncClient] = None

    async def get_client(self) -> AsyncClient:
        if not self._client:
            self._client = await create_async_client(self._url, self._key)
            logger.info("✅ Supabase Async client initialized")
        return self._client

    async def is_active(self, tenant_id: int) -> bool:
        client = await self.get_client()
        response = await client.table(self._table).select("id, is_active").eq("id", tenant_id).limit(1).execute()
        if not response.data:
            logger.info(f"🔍 Tenant {tenant_id} not found in directory")
            return False
        return bool(response.data[0].get("is_active", True))


def build_tenant_directory(settings: Settings) -> TenantDirectory:
    if settings.TENANT_DIRECTORY == "supabase":
        if not (settings.SUPABASE_URL and settings.SUPABASE_KEY):
            raise ValueError("SUPABASE_URL and SUPABASE_KEY are required for the supabase tenant directory")
        return SupabaseTenantDirectory(settings.SUPABASE_URL, settings.SUPABASE_KEY, settings.SUPABASE_TENANT_TABLE)
    if settings.TENANT_DIRECTORY == "static":
        if not settings.STATIC_TENANT_IDS:
            logger.warning("⚠️ Static tenant directory is empty, every booking will be rejected")
        return StaticTenantDirectory(settings.STATIC_TENANT_IDS)
    raise ValueError(f"Unknown TENANT_DIRECTORY '{settings.TENANT_DIRECTORY}'")

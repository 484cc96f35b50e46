import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from salon_booking.core.config import Settings
from salon_booking.services.tenant_directory import (
    StaticTenantDirectory,
    SupabaseTenantDirectory,
    build_tenant_directory,
)


def mock_supabase(rows):
    client = MagicMock()
    query = client.table.return_value.select.return_value.eq.return_value.limit.return_value
    query.execute = AsyncMock(return_value=MagicMock(data=rows))
    return client


@pytest.mark.asyncio
async def test_static_directory():
    directory = StaticTenantDirectory([1, 2])
    assert await directory.is_active(1) is True
    assert await directory.is_active(3) is False


@pytest.mark.asyncio
async def test_supabase_directory_active_and_inactive():
    with patch("salon_booking.services.tenant_directory.create_async_client", new_callable=AsyncMock) as mock_create:
        mock_create.return_value = mock_supabase([{"id": 1, "is_active": True}])
        directory = SupabaseTenantDirectory("https://example.supabase.co", "key")
        assert await directory.is_active(1) is True

        # Client is created once and reused
        await directory.is_active(1)
        mock_create.assert_called_once_with("https://example.supabase.co", "key")

    with patch("salon_booking.services.tenant_directory.create_async_client", new_callable=AsyncMock) as mock_create:
        mock_create.return_value = mock_supabase([{"id": 5, "is_active": False}])
        directory = SupabaseTenantDirectory("https://example.supabase.co", "key")
        assert await directory.is_active(5) is False


@pytest.mark.asyncio
async def test_supabase_directory_missing_tenant():
    with patch("salon_booking.services.tenant_directory.create_async_client", new_callable=AsyncMock) as mock_create:
        client = mock_supabase([])
        mock_create.return_value = client
        directory = SupabaseTenantDirectory("https://example.supabase.co", "key", table="salons")

        assert await directory.is_active(42) is False
        client.table.assert_called_with("salons")


def test_build_tenant_directory():
    static = build_tenant_directory(Settings(TENANT_DIRECTORY="static", STATIC_TENANT_IDS=[7]))
    assert isinstance(static, StaticTenantDirectory)

    supabase = build_tenant_directory(
        Settings(TENANT_DIRECTORY="supabase", SUPABASE_URL="https://example.supabase.co", SUPABASE_KEY="key")
    )
    assert isinstance(supabase, SupabaseTenantDirectory)

    with pytest.raises(ValueError):
        build_tenant_directory(Settings(TENANT_DIRECTORY="supabase", SUPABASE_URL="", SUPABASE_KEY=""))
    with pytest.raises(ValueError):
        build_tenant_directory(Settings(TENANT_DIRECTORY="ldap"))

"""Tests for tenant webhook secret resolution."""

import pytest

from session_export.lib.webhooks import StaticSecretProvider, resolve_secret


class _VaultLike:
    def get_secret(self, tenant_id: str) -> str:
        return f"vault-{tenant_id}"


class TestStaticSecretProvider:
    """Tests for StaticSecretProvider."""

    def test_tenant_secret_overrides_default(self) -> None:
        provider = StaticSecretProvider("default", {"tenant-1": "one"})
        assert provider("tenant-1") == "one"
        assert provider("tenant-2") == "default"


class TestResolveSecret:
    """Tests for resolve_secret."""

    @pytest.mark.asyncio
    async def test_plain_callable(self) -> None:
        assert await resolve_secret(lambda t: f"s-{t}", "tenant-1") == "s-tenant-1"

    @pytest.mark.asyncio
    async def test_get_secret_object(self) -> None:
        assert await resolve_secret(_VaultLike(), "tenant-1") == "vault-tenant-1"

    @pytest.mark.asyncio
    async def test_invalid_provider(self) -> None:
        with pytest.raises(TypeError):
            await resolve_secret(object(), "tenant-1")

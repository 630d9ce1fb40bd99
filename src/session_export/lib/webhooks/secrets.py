"""Per-tenant webhook secret resolution."""

import inspect
from collections.abc import Awaitable, Callable
from typing import Any

SecretProvider = Callable[[str], str | Awaitable[str]]


class StaticSecretProvider:
    """Resolves tenant secrets from a fixed mapping with a default fallback."""

    def __init__(self, default_secret: str, tenant_secrets: dict[str, str] | None = None) -> None:
        self._default_secret = default_secret
        self._tenant_secrets = dict(tenant_secrets or {})

    def __call__(self, tenant_id: str) -> str:
        return self._tenant_secrets.get(tenant_id, self._default_secret)


async def resolve_secret(provider: Any, tenant_id: str) -> str:
    """Ask a provider for a tenant secret.

    The provider may be a plain or async callable, or an object exposing
    ``get_secret(tenant_id)``.

    Raises:
        TypeError: If the provider has neither shape.
    """
    if callable(provider):
        secret = provider(tenant_id)
    elif hasattr(provider, "get_secret"):
        secret = provider.get_secret(tenant_id)
    else:
        msg = "secret provider must be callable or define get_secret()"
        raise TypeError(msg)
    if inspect.isawaitable(secret):
        secret = await secret
    return secret

"""Tenant token handling and HMAC signing helpers.

Uses PyJWT for tenant bearer tokens and the standard library ``hmac`` module
for webhook body signatures and artifact download-link signatures.
"""

import hashlib
import hmac
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

import jwt

from session_export.core.errors import AuthorizationError

ADMIN_ROLE = "admin"
EXPORT_AUDITOR_ROLE = "export_auditor"


@dataclass(frozen=True)
class AuthContext:
    """Authenticated caller identity scoped to a tenant."""

    tenant_id: str
    actor_id: str
    roles: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_admin(self) -> bool:
        return ADMIN_ROLE in self.roles or EXPORT_AUDITOR_ROLE in self.roles


def create_tenant_token(
    tenant_id: str,
    actor_id: str,
    secret_key: str,
    *,
    roles: list[str] | None = None,
    algorithm: str = "HS256",
    expires_minutes: int = 60,
) -> str:
    """Create a JWT bearer token for a tenant actor.

    Args:
        tenant_id: Tenant the token is scoped to.
        actor_id: The acting user or service ID (JWT subject).
        secret_key: Secret key for signing.
        roles: Optional role names (e.g. ``admin``).
        algorithm: JWT signing algorithm.
        expires_minutes: Token expiration in minutes.

    Returns:
        The encoded JWT string.
    """
    expire = datetime.now(UTC) + timedelta(minutes=expires_minutes)
    payload = {
        "sub": actor_id,
        "tenant_id": tenant_id,
        "roles": list(roles or []),
        "exp": expire,
        "type": "tenant",
    }
    return jwt.encode(payload, secret_key, algorithm=algorithm)


def decode_tenant_token(token: str, secret_key: str, algorithm: str = "HS256") -> AuthContext:
    """Decode a tenant token into an AuthContext.

    Args:
        token: The JWT string to decode.
        secret_key: Secret key used for signing.
        algorithm: JWT signing algorithm.

    Returns:
        The authenticated context.

    Raises:
        AuthorizationError: If the token is expired, invalid, or lacks claims.
    """
    try:
        payload = jwt.decode(token, secret_key, algorithms=[algorithm])
    except jwt.InvalidTokenError as e:
        msg = f"Invalid tenant token: {e}"
        raise AuthorizationError(msg) from e

    tenant_id = payload.get("tenant_id")
    actor_id = payload.get("sub")
    if not tenant_id or not actor_id or payload.get("type") != "tenant":
        msg = "Tenant token is missing required claims"
        raise AuthorizationError(msg)
    return AuthContext(tenant_id=tenant_id, actor_id=actor_id, roles=tuple(payload.get("roles") or ()))


def require_tenant(auth_context: AuthContext, tenant_id: str) -> AuthContext:
    """Ensure the authenticated context belongs to the requested tenant.

    Raises:
        AuthorizationError: If the token tenant differs from ``tenant_id``.
    """
    if auth_context.tenant_id != tenant_id:
        msg = "Tenant token does not match requested tenant"
        raise AuthorizationError(msg)
    return auth_context


def sign_webhook_body(secret: str, timestamp: str, body: str) -> str:
    """Compute the hex HMAC-SHA256 signature of ``"{timestamp}:{body}"``."""
    message = f"{timestamp}:{body}".encode()
    return hmac.new(secret.encode(), message, hashlib.sha256).hexdigest()


def verify_webhook_signature(secret: str, timestamp: str, body: str, signature: str) -> bool:
    """Check a webhook signature in constant time."""
    expected = sign_webhook_body(secret, timestamp, body)
    return hmac.compare_digest(expected.encode(), signature.encode())


# Truncated to keep download links short; 128 bits of HMAC output.
_DOWNLOAD_SIGNATURE_LENGTH = 32


def sign_download(secret: str, tenant_id: str, file_name: str, expires_at: str) -> str:
    """Sign an artifact download link bound to tenant, file, and expiry."""
    message = f"{tenant_id}/{file_name}/{expires_at}".encode()
    return hmac.new(secret.encode(), message, hashlib.sha256).hexdigest()[:_DOWNLOAD_SIGNATURE_LENGTH]


def verify_download_signature(secret: str, tenant_id: str, file_name: str, expires_at: str, signature: str) -> bool:
    """Check a download-link signature in constant time."""
    expected = sign_download(secret, tenant_id, file_name, expires_at)
    return hmac.compare_digest(expected.encode(), signature.encode())

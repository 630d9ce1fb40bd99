"""FastAPI dependency injection for the export container and tenant auth.

Provides get_export_container, get_auth_context, require_tenant_access, and
require_admin.
"""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from session_export.core.config import Settings, get_settings
from session_export.core.container import ExportContainer, get_container
from session_export.core.errors import AuthorizationError
from session_export.core.security import AuthContext, decode_tenant_token, require_tenant

bearer_scheme = HTTPBearer(auto_error=False)


def get_export_container() -> ExportContainer:
    """Return the process-wide export container."""
    return get_container()


async def get_auth_context(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> AuthContext:
    """Decode the bearer tenant token.

    Args:
        credentials: The bearer credentials, if any.
        settings: Application settings.

    Returns:
        The authenticated caller.

    Raises:
        HTTPException: 401 if the token is missing or invalid.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        raise credentials_exception
    try:
        return decode_tenant_token(credentials.credentials, settings.jwt_secret_key, settings.jwt_algorithm)
    except AuthorizationError as exc:
        raise credentials_exception from exc


async def require_tenant_access(
    tenant_id: str,
    auth_context: Annotated[AuthContext, Depends(get_auth_context)],
) -> AuthContext:
    """Require the token tenant to match the ``tenant_id`` path parameter.

    Raises:
        HTTPException: 403 on tenant mismatch.
    """
    try:
        return require_tenant(auth_context, tenant_id)
    except AuthorizationError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc


async def require_admin(
    auth_context: Annotated[AuthContext, Depends(get_auth_context)],
) -> AuthContext:
    """Require an admin or export auditor role.

    Raises:
        HTTPException: 403 if the caller lacks an admin role.
    """
    if not auth_context.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin role required",
        )
    return auth_context

"""Root API router with /api/v1 prefix."""

from fastapi import APIRouter

from session_export.core.config import Settings


def create_router(settings: Settings) -> APIRouter:
    """Create the root API router with all sub-routers included.

    Args:
        settings: Application settings.

    Returns:
        Configured API router.
    """
    from session_export.api.v1.admin import admin_router
    from session_export.api.v1.downloads import downloads_router
    from session_export.api.v1.exports import exports_router

    root_router = APIRouter(prefix=settings.api_v1_prefix)
    root_router.include_router(exports_router)
    root_router.include_router(downloads_router)
    root_router.include_router(admin_router)

    return root_router

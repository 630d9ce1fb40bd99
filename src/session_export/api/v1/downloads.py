"""Signed artifact download endpoint."""

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import FileResponse

from session_export.core.container import ExportContainer
from session_export.core.dependencies import get_export_container
from session_export.core.errors import ValidationError
from session_export.lib.exporter import CONTENT_TYPES

downloads_router = APIRouter(prefix="/downloads", tags=["downloads"])


@downloads_router.get("/{tenant_id}/{file_name}")
async def download_artifact(
    tenant_id: str,
    file_name: str,
    sig: str = Query(..., min_length=1),
    expires: str = Query(..., min_length=1),
    container: ExportContainer = Depends(get_export_container),
) -> FileResponse:
    """Download an export artifact through a signed, expiring link."""
    try:
        path = container.artifacts.verify_download(tenant_id, file_name, sig, expires)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=e.message) from e
    except FileNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Export file not found") from e

    return FileResponse(
        path=path,
        media_type=CONTENT_TYPES.get(path.suffix.lstrip("."), "application/octet-stream"),
        filename=path.name,
    )

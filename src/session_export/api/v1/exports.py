"""Export API endpoints for tenant session exports."""

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Response, status

from session_export.core.container import ExportContainer
from session_export.core.dependencies import get_export_container, require_tenant_access
from session_export.core.errors import ValidationError
from session_export.core.security import AuthContext
from session_export.models.export_job import JobStatus
from session_export.schemas.export import (
    ExportJobStatusResponse,
    ExportSubmissionResponse,
    parse_export_filters,
)

exports_router = APIRouter(prefix="/tenants/{tenant_id}/exports", tags=["exports"])


@exports_router.post(
    "",
    response_model=ExportSubmissionResponse,
    responses={status.HTTP_202_ACCEPTED: {"model": ExportSubmissionResponse}},
)
async def request_export(
    tenant_id: str,
    response: Response,
    payload: dict[str, Any] = Body(...),
    auth_context: AuthContext = Depends(require_tenant_access),
    container: ExportContainer = Depends(get_export_container),
) -> ExportSubmissionResponse:
    """Request a session export; small exports are returned ready, large ones queued."""
    try:
        filters = parse_export_filters(payload)
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"message": e.message, "errors": e.details},
        ) from e

    submission = await container.job_service.create_export_job(
        tenant_id=tenant_id,
        filters=filters,
        auth_context=auth_context,
    )
    if submission.status == JobStatus.QUEUED:
        response.status_code = status.HTTP_202_ACCEPTED
    return ExportSubmissionResponse.model_validate(submission)


@exports_router.get(
    "/{job_id}",
    response_model=ExportJobStatusResponse,
)
async def get_export_status(
    tenant_id: str,
    job_id: str,
    _auth_context: AuthContext = Depends(require_tenant_access),
    container: ExportContainer = Depends(get_export_container),
) -> ExportJobStatusResponse:
    """Get export job status."""
    view = await container.job_service.get_job_status(tenant_id=tenant_id, job_id=job_id)
    if view is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Export job not found")
    return ExportJobStatusResponse.model_validate(view)

"""Export CLI commands for tenant session exports."""

import asyncio
from datetime import datetime
from pathlib import Path

import typer

export_app = typer.Typer()


@export_app.command("run")
def export_run(
    tenant_id: str = typer.Option(..., "--tenant", help="Tenant to export"),
    range_start: datetime = typer.Option(..., "--start", help="Range start (ISO-8601, UTC if no offset)"),
    range_end: datetime = typer.Option(..., "--end", help="Range end (ISO-8601, UTC if no offset)"),
    output_format: str = typer.Option("csv", "--format", help="Output format (csv, json)"),
    game_mode: str | None = typer.Option(None, "--game-mode", help="Filter by game mode"),
    min_wave: int = typer.Option(0, "--min-wave", help="Minimum completed wave"),
    webhook_url: str | None = typer.Option(None, "--webhook-url", help="Deliver the export to this webhook"),
    schedule: str | None = typer.Option(None, "--schedule", help="5-field CRON for recurring webhook delivery"),
    actor_id: str = typer.Option("cli", "--actor", help="Actor recorded in the audit trail"),
    dataset: Path | None = typer.Option(None, "--dataset", help="JSON file of sessions (overrides settings)"),
) -> None:
    """Export a tenant's sessions, waiting for background processing if needed."""
    payload: dict = {
        "range_start": range_start.isoformat(),
        "range_end": range_end.isoformat(),
        "format": output_format,
        "min_completed_wave": min_wave,
    }
    if game_mode:
        payload["game_mode"] = game_mode
    if webhook_url:
        payload["delivery"] = {"type": "webhook", "webhook_url": webhook_url, "schedule": schedule}
    asyncio.run(_export_run(tenant_id, actor_id, payload, dataset))


async def _export_run(tenant_id: str, actor_id: str, payload: dict, dataset: Path | None) -> None:
    """Async implementation of export."""
    from session_export.core.config import get_settings
    from session_export.core.container import build_container
    from session_export.core.errors import ValidationError
    from session_export.core.security import AuthContext
    from session_export.models.export_job import JobStatus
    from session_export.repositories.analytics import DatasetAnalyticsRepository
    from session_export.schemas.export import parse_export_filters

    settings = get_settings()
    analytics = DatasetAnalyticsRepository.from_file(dataset) if dataset else None
    container = build_container(settings, analytics=analytics)

    try:
        filters = parse_export_filters(payload)
    except ValidationError as e:
        typer.echo(f"Error: {e.message}", err=True)
        for field, message in e.details.items():
            typer.echo(f"  {field}: {message}", err=True)
        raise typer.Exit(code=1) from e

    container.worker.start()
    try:
        submission = await container.job_service.create_export_job(
            tenant_id=tenant_id,
            filters=filters,
            auth_context=AuthContext(tenant_id=tenant_id, actor_id=actor_id),
        )
        typer.echo(f"Export job created: {submission.job_id}")
        if submission.status == JobStatus.QUEUED:
            typer.echo(f"Queued (eta {submission.eta_seconds}s). Processing...")
            await container.queue.join()
    finally:
        container.worker.stop()

    view = await container.job_service.get_job_status(tenant_id=tenant_id, job_id=submission.job_id)
    if view is None or view.status == JobStatus.FAILED:
        reason = view.failure_reason if view else "job record missing"
        typer.echo(f"Export failed: {reason}", err=True)
        raise typer.Exit(code=1)

    typer.echo(f"\nExport {view.status}:")
    typer.echo(f"  Records:    {view.record_count}")
    typer.echo(f"  Delivery:   {view.delivery_type} ({view.delivery_status})")
    typer.echo(f"  Download:   {view.download_url}")

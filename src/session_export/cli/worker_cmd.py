"""Worker CLI commands: batch submission drained by the worker runtime."""

import asyncio
import json
from pathlib import Path

import typer

worker_app = typer.Typer()


@worker_app.command("run")
def worker_run(
    requests_file: Path = typer.Argument(..., help="JSON array of export requests"),
    dataset: Path | None = typer.Option(None, "--dataset", help="JSON file of sessions (overrides settings)"),
) -> None:
    """Submit a batch of export requests and process queued ones in the background worker.

    Each request is an object with ``tenant_id``, an optional ``actor_id``, and
    the export filters (``range_start``, ``range_end``, ``format``, ...).
    """
    try:
        requests = json.loads(requests_file.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        typer.echo(f"Error: cannot read {requests_file}: {e}", err=True)
        raise typer.Exit(code=1) from e
    if not isinstance(requests, list):
        typer.echo("Error: requests file must contain a JSON array", err=True)
        raise typer.Exit(code=1)

    failed = asyncio.run(_worker_run(requests, dataset))
    if failed:
        raise typer.Exit(code=1)


async def _worker_run(requests: list, dataset: Path | None) -> int:
    """Async implementation of the batch worker. Returns the number of failed requests."""
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

    submitted: list[tuple[str, str]] = []
    failed = 0

    container.worker.start()
    try:
        for index, request in enumerate(requests):
            if not isinstance(request, dict) or not request.get("tenant_id"):
                typer.echo(f"[{index}] skipped: tenant_id is required", err=True)
                failed += 1
                continue
            tenant_id = request["tenant_id"]
            filters_payload = {k: v for k, v in request.items() if k not in ("tenant_id", "actor_id")}
            try:
                filters = parse_export_filters(filters_payload)
            except ValidationError as e:
                typer.echo(f"[{index}] invalid: {e.message} {e.details}", err=True)
                failed += 1
                continue
            try:
                submission = await container.job_service.create_export_job(
                    tenant_id=tenant_id,
                    filters=filters,
                    auth_context=AuthContext(tenant_id=tenant_id, actor_id=request.get("actor_id") or "worker"),
                )
            except Exception as e:
                typer.echo(f"[{index}] failed: {e}", err=True)
                failed += 1
                continue
            typer.echo(f"[{index}] {submission.job_id}: {submission.status}")
            submitted.append((tenant_id, submission.job_id))

        await container.queue.join()
    finally:
        container.worker.stop()

    typer.echo("\nResults:")
    for tenant_id, job_id in submitted:
        view = await container.job_service.get_job_status(tenant_id=tenant_id, job_id=job_id)
        if view is None or view.status == JobStatus.FAILED:
            failed += 1
            typer.echo(f"  {job_id}: failed ({view.failure_reason if view else 'missing'})")
        else:
            typer.echo(f"  {job_id}: {view.status}, {view.record_count} records")
    return failed

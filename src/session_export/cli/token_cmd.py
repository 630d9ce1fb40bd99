"""Tenant token CLI commands."""

import typer

token_app = typer.Typer()


@token_app.command("issue")
def issue_token(
    tenant_id: str = typer.Option(..., "--tenant", help="Tenant the token is scoped to"),
    actor_id: str = typer.Option(..., "--actor", help="Acting user or service ID"),
    roles: list[str] = typer.Option([], "--role", help="Role to grant (repeatable, e.g. admin)"),
    expires_minutes: int | None = typer.Option(None, "--expires-minutes", help="Override token lifetime"),
) -> None:
    """Issue a signed tenant bearer token."""
    from session_export.core.config import get_settings
    from session_export.core.security import create_tenant_token

    settings = get_settings()
    token = create_tenant_token(
        tenant_id,
        actor_id,
        settings.jwt_secret_key,
        roles=roles,
        algorithm=settings.jwt_algorithm,
        expires_minutes=expires_minutes or settings.token_expire_minutes,
    )
    typer.echo(token)

"""Local artifact storage with expiring, HMAC-signed download links.

Artifacts live under ``<base_dir>/<tenant_id>/<job_id>.<format>`` with a
``<job_id>.meta.json`` sidecar describing who produced them and from which
filters.
"""

import asyncio
import json
import re
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any
from urllib.parse import urlencode

from loguru import logger

from session_export.core.errors import ValidationError
from session_export.core.security import sign_download, verify_download_signature
from session_export.lib.artifacts.types import Artifact
from session_export.lib.exporter import render_records

DEFAULT_TTL_SECONDS = 24 * 60 * 60

# Tenant and job IDs become path segments
_SAFE_SEGMENT = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _check_segment(name: str, value: str) -> None:
    if not _SAFE_SEGMENT.match(value) or ".." in value:
        msg = f"{name} contains unsupported characters"
        raise ValidationError(msg, {name: "invalid"})


def _write_text(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


class ArtifactStore:
    """Renders, persists, and signs export artifacts on the local filesystem.

    Args:
        base_dir: Root directory; one subdirectory per tenant.
        signed_url_base: Public URL prefix for download links.
        signing_secret: Server-held key for download-link signatures.
        ttl_seconds: Lifetime of a download link.
        clock: Returns the current UTC time.
    """

    def __init__(
        self,
        base_dir: Path,
        signed_url_base: str,
        signing_secret: str,
        *,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if not signing_secret:
            msg = "signing_secret is required for artifact storage"
            raise ValueError(msg)
        self._base_dir = Path(base_dir)
        self._signed_url_base = signed_url_base.rstrip("/")
        self._signing_secret = signing_secret
        self._ttl_seconds = ttl_seconds
        self._clock = clock

    @property
    def base_dir(self) -> Path:
        return self._base_dir

    async def store_artifact(
        self,
        *,
        tenant_id: str,
        job_id: str,
        format: str,
        records: list[dict[str, Any]],
        filters: dict[str, Any] | None = None,
        actor_id: str | None = None,
    ) -> Artifact:
        """Render records and persist them with a metadata sidecar.

        Writing the same job twice overwrites the previous files.

        Args:
            tenant_id: Owning tenant; becomes the storage namespace.
            job_id: Export job ID; becomes the file stem.
            format: Output format (csv, json).
            records: Normalized session records.
            filters: JSON-safe filters recorded in the sidecar.
            actor_id: Requesting actor recorded in the sidecar.

        Returns:
            The stored Artifact with its signed download URL.

        Raises:
            ValidationError: If an identifier is missing or the format is unsupported.
        """
        if not tenant_id:
            msg = "tenant_id is required for artifact storage"
            raise ValidationError(msg)
        if not job_id:
            msg = "job_id is required for artifact storage"
            raise ValidationError(msg)
        if not format:
            msg = "format is required for artifact storage"
            raise ValidationError(msg)
        _check_segment("tenant_id", tenant_id)
        _check_segment("job_id", job_id)

        payload = render_records(str(format), records)
        file_name = f"{job_id}.{format}"
        tenant_dir = self._base_dir / tenant_id
        artifact_path = tenant_dir / file_name
        await asyncio.to_thread(_write_text, artifact_path, payload)

        now = self._clock()
        expires_at = now + timedelta(seconds=self._ttl_seconds)
        download_url = self.generate_signed_url(tenant_id, file_name, expires_at)

        metadata = {
            "tenant_id": tenant_id,
            "job_id": job_id,
            "format": str(format),
            "filters": filters or {},
            "actor_id": actor_id,
            "created_at": now.isoformat(),
            "expires_at": expires_at.isoformat(),
            "artifact_path": str(artifact_path),
        }
        metadata_path = tenant_dir / f"{job_id}.meta.json"
        await asyncio.to_thread(_write_text, metadata_path, json.dumps(metadata, indent=2, default=str))

        logger.info("Stored artifact {} ({} bytes) for tenant {}", file_name, len(payload.encode()), tenant_id)

        return Artifact(
            download_url=download_url,
            artifact_path=str(artifact_path),
            created_at=now,
            completed_at=now,
            expires_at=expires_at,
        )

    def generate_signed_url(self, tenant_id: str, file_name: str, expires_at: datetime) -> str:
        """Build a download URL whose signature binds tenant, file, and expiry."""
        expires = expires_at.isoformat()
        signature = sign_download(self._signing_secret, tenant_id, file_name, expires)
        query = urlencode({"sig": signature, "expires": expires})
        return f"{self._signed_url_base}/{tenant_id}/{file_name}?{query}"

    def verify_download(self, tenant_id: str, file_name: str, signature: str, expires: str) -> Path:
        """Resolve a signed download request to the artifact path.

        Args:
            tenant_id: Tenant segment of the download URL.
            file_name: File segment of the download URL.
            signature: The ``sig`` query parameter.
            expires: The ``expires`` query parameter (ISO-8601).

        Returns:
            Path of the artifact on disk.

        Raises:
            ValidationError: If the signature is wrong or the link has expired.
            FileNotFoundError: If the artifact no longer exists.
        """
        _check_segment("tenant_id", tenant_id)
        _check_segment("file_name", file_name)
        if not verify_download_signature(self._signing_secret, tenant_id, file_name, expires, signature):
            msg = "Invalid download signature"
            raise ValidationError(msg, {"sig": "invalid"})
        try:
            expires_at = datetime.fromisoformat(expires)
        except ValueError as e:
            msg = "Invalid download expiry"
            raise ValidationError(msg, {"expires": "invalid"}) from e
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=UTC)
        if self._clock() >= expires_at:
            msg = "Download link has expired"
            raise ValidationError(msg, {"expires": "expired"})

        path = self._base_dir / tenant_id / file_name
        if not path.is_file():
            msg = f"Artifact {tenant_id}/{file_name} not found"
            raise FileNotFoundError(msg)
        return path

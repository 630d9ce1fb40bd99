"""Integration tests for the signed artifact download endpoint."""

from collections.abc import AsyncIterator
from datetime import UTC, datetime, timedelta

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from session_export.api.v1.downloads import downloads_router
from session_export.core.config import Settings
from session_export.core.container import ExportContainer, build_container
from session_export.core.dependencies import get_export_container


@pytest.fixture
def container(settings: Settings) -> ExportContainer:
    return build_container(settings)


@pytest.fixture
async def client(container: ExportContainer) -> AsyncIterator[AsyncClient]:
    app = FastAPI()
    app.include_router(downloads_router, prefix="/api/v1")
    app.dependency_overrides[get_export_container] = lambda: container
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


class TestDownloadArtifact:
    """Tests for GET /downloads/{tenant_id}/{file_name}."""

    @pytest.mark.asyncio
    async def test_signed_link_downloads_file(self, client: AsyncClient, container: ExportContainer) -> None:
        artifact = await container.artifacts.store_artifact(
            tenant_id="tenant-1", job_id="exp_1", format="csv", records=[{"session_id": "sess-1"}]
        )
        response = await client.get(artifact.download_url)
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "sess-1" in response.text

    @pytest.mark.asyncio
    async def test_tampered_signature_returns_403(self, client: AsyncClient, container: ExportContainer) -> None:
        await container.artifacts.store_artifact(tenant_id="tenant-1", job_id="exp_1", format="csv", records=[])
        response = await client.get(
            "/api/v1/downloads/tenant-1/exp_1.csv",
            params={"sig": "0" * 32, "expires": "2999-01-01T00:00:00+00:00"},
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_non_ascii_signature_returns_403(self, client: AsyncClient, container: ExportContainer) -> None:
        await container.artifacts.store_artifact(tenant_id="tenant-1", job_id="exp_1", format="csv", records=[])
        response = await client.get(
            "/api/v1/downloads/tenant-1/exp_1.csv?sig=%C3%A9&expires=2999-01-01T00%3A00%3A00%2B00%3A00"
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_missing_file_returns_404(self, client: AsyncClient, container: ExportContainer) -> None:
        url = container.artifacts.generate_signed_url(
            "tenant-1", "exp_gone.json", datetime.now(UTC) + timedelta(minutes=5)
        )
        response = await client.get(url)
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_missing_query_params_returns_422(self, client: AsyncClient) -> None:
        response = await client.get("/api/v1/downloads/tenant-1/exp_1.csv")
        assert response.status_code == 422

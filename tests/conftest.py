"""Shared fixtures for the Scuba client test suite."""

import httpx
import pytest
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from scubaclient.auth.models import AwsCredentials, AwsV4Auth, AwsV4Params
from scubaclient.client import ScubaClient
from scubaclient.config.settings import get_settings

TEST_CREDENTIALS = AwsCredentials(
    access_key_id="AKIDEXAMPLE",
    secret_access_key="wJalrXUtnFEMI/K7MDENG+bPxRfiCYEXAMPLEKEY",
)


@pytest.fixture
def bucket_metrics() -> dict:
    """Wire-format body for a bucket's latest metrics."""
    return {
        "objectsTotal": 10,
        "bytesTotal": 2048,
        "metricsClass": "bucket",
        "resourceName": "foo",
    }


@pytest.fixture
def aws_auth() -> AwsV4Auth:
    return AwsV4Auth(AwsV4Params(credentials=TEST_CREDENTIALS))


def make_scuba_app(metrics: dict, health_status: int = 200) -> FastAPI:
    """A stand-in Scuba service. Received requests land in app.state.requests."""
    app = FastAPI()
    app.state.requests = []

    async def record(request: Request) -> None:
        app.state.requests.append({
            "method": request.method,
            "path": request.url.path,
            "query": dict(request.query_params),
            "headers": dict(request.headers),
            "body": await request.body(),
        })

    @app.get("/_/healthcheck")
    async def healthcheck(request: Request):
        await record(request)
        if health_status != 200:
            return JSONResponse(status_code=health_status, content={"error": "unavailable"})
        return {"status": "ok"}

    @app.get("/metrics/{metrics_class}/{resource_name}/latest")
    async def latest(metrics_class: str, resource_name: str, request: Request):
        await record(request)
        return {**metrics, "metricsClass": metrics_class, "resourceName": resource_name}

    @app.get("/metrics/{metrics_class}/{resource_name}/{date}")
    async def by_date(metrics_class: str, resource_name: str, date: str, request: Request):
        await record(request)
        return {**metrics, "metricsClass": metrics_class, "resourceName": resource_name}

    return app


@pytest.fixture
def scuba_app(bucket_metrics) -> FastAPI:
    return make_scuba_app(bucket_metrics)


@pytest.fixture
async def scuba_client(scuba_app):
    """ScubaClient wired to the stand-in service via ASGI transport."""
    client = ScubaClient(transport=httpx.ASGITransport(app=scuba_app))
    yield client
    await client.close()


@pytest.fixture
def override_settings(monkeypatch):
    """Factory fixture: set SCUBA_* env vars and clear settings cache.

    Usage:
        override_settings(HOST="scuba.local", AUTH_MODE="aws_v4")
    """
    def _override(**kwargs):
        for key, value in kwargs.items():
            monkeypatch.setenv(f"SCUBA_{key.upper()}", str(value))
        # Clear lru_cache so Settings re-reads env
        get_settings.cache_clear()

    yield _override

    get_settings.cache_clear()

"""Scuba client: typed async access to the Scuba metrics service.

    async with ScubaClient(host="scuba.local", auth=AwsV4Auth()) as client:
        metrics = await client.get_latest_metrics("bucket", "my-bucket")
"""

import dataclasses
from collections.abc import Mapping
from datetime import date as date_type
from datetime import datetime, timezone
from typing import Any

import httpx

from scubaclient.api.models import MetricsClass, ScubaMetrics
from scubaclient.api.scuba import ScubaApi
from scubaclient.auth.factory import build_auth_hook
from scubaclient.auth.models import ScubaAuth
from scubaclient.auth.sigv4 import RequestHook
from scubaclient.config.connection import ClientConfig, build_connection_options
from scubaclient.config.settings import Settings, get_settings
from scubaclient.logging.request_log import (
    RequestTimer,
    generate_request_id,
    get_logger,
    request_id_var,
)

logger = get_logger()


def format_metrics_date(value: date_type | datetime) -> str:
    """Render a day as YYYY-MM-DD using UTC calendar fields.

    Aware datetimes are converted to UTC first. Naive datetimes are rejected
    since their calendar day depends on an unknown zone.
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            raise ValueError("Datetime must be timezone-aware")
        value = value.astimezone(timezone.utc).date()
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"


class ScubaClient:
    """Facade over the Scuba API with optional SigV4 request signing."""

    def __init__(
        self,
        config: ClientConfig | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        **overrides: Any,
    ):
        config = config or ClientConfig()
        if overrides:
            config = dataclasses.replace(config, **overrides)
        self._config = config
        self._options = build_connection_options(config)
        self._api = ScubaApi(self._options, transport=transport)

        # Handle of the installed signing hook, if any
        self._auth_hook: RequestHook | None = None

        if config.auth is not None:
            self.set_auth(config.auth)

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "ScubaClient":
        settings = settings or get_settings()
        return cls(settings.to_client_config(), transport=transport)

    @property
    def base_url(self) -> str:
        return self._options.base_url

    @property
    def api(self) -> ScubaApi:
        return self._api

    async def __aenter__(self) -> "ScubaClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def set_auth(self, auth: ScubaAuth | None) -> None:
        """Replace the signing hook: remove the current one, then install per `auth`.

        `NoAuth()` or None leaves requests unsigned.
        """
        hook = build_auth_hook(auth)

        if self._auth_hook is not None:
            self._api.remove_request_hook(self._auth_hook)
            self._auth_hook = None

        if hook is not None:
            self._api.add_request_hook(hook)
            self._auth_hook = hook

        logger.debug(
            "Auth configured",
            extra={"audit_data": {"auth": type(auth).__name__ if auth is not None else "NoAuth"}},
        )

    async def get_latest_metrics(
        self,
        metrics_class: MetricsClass | str,
        resource_name: str,
        options: Mapping[str, Any] | None = None,
        *,
        body: Any = None,
    ) -> ScubaMetrics:
        metrics_class = MetricsClass(metrics_class).value
        response = await self._call(
            "get_latest_metrics",
            self._api.get_latest_metrics(
                metrics_class, resource_name, body, self._request_options(options)
            ),
            metrics_class=metrics_class,
            resource_name=resource_name,
        )
        return ScubaMetrics.from_dict(response.json())

    async def get_metrics(
        self,
        metrics_class: MetricsClass | str,
        resource_name: str,
        date: date_type | datetime,
        options: Mapping[str, Any] | None = None,
        *,
        body: Any = None,
    ) -> ScubaMetrics:
        """Fetch the metrics of `resource_name` for the UTC day of `date`.

        `date` is a `date`, or a timezone-aware `datetime` converted to UTC.
        A naive `datetime` raises ValueError before any request is sent.
        """
        metrics_class = MetricsClass(metrics_class).value
        date_string = format_metrics_date(date)
        response = await self._call(
            "get_metrics",
            self._api.get_metrics(
                metrics_class, resource_name, date_string, body, self._request_options(options)
            ),
            metrics_class=metrics_class,
            resource_name=resource_name,
            date=date_string,
        )
        return ScubaMetrics.from_dict(response.json())

    async def health_check(self, options: Mapping[str, Any] | None = None) -> None:
        await self._call("health_check", self._api.health_check(self._request_options(options)))

    async def close(self) -> None:
        await self._api.close()

    def _request_options(self, options: Mapping[str, Any] | None) -> dict:
        return {**self._options.request_defaults(), **(options or {})}

    async def _call(self, operation: str, request, **audit: Any) -> httpx.Response:
        """Await one API request, logging its outcome. Errors are re-raised unchanged."""
        request_id_var.set(generate_request_id())
        timer = RequestTimer()
        try:
            with timer:
                response = await request
        except Exception as e:
            logger.warning(
                "Scuba call failed",
                extra={"audit_data": {
                    "operation": operation,
                    "error": type(e).__name__,
                    "status": _status_of(e),
                    "latency_ms": timer.elapsed_ms,
                    **audit,
                }},
            )
            raise

        logger.info(
            "Scuba call succeeded",
            extra={"audit_data": {
                "operation": operation,
                "status": response.status_code,
                "latency_ms": timer.elapsed_ms,
                **audit,
            }},
        )
        return response


def _status_of(error: Exception) -> int | None:
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code
    return None

"""HTTP bindings for the Scuba REST API.

Routes:
    GET /metrics/{metricsClass}/{resourceName}/latest
    GET /metrics/{metricsClass}/{resourceName}/{date}
    GET /_/healthcheck

Every operation returns the raw `httpx.Response` once it is known to be
2xx; anything else raises `httpx.HTTPStatusError`.
"""

from collections.abc import Mapping
from typing import Any
from urllib.parse import quote

import httpx

from scubaclient.auth.sigv4 import RequestHook
from scubaclient.config.connection import ConnectionOptions, build_ssl_context
from scubaclient.logging.request_log import log_request, log_response

HEALTHCHECK_PATH = "/_/healthcheck"


class ScubaApi:
    """Issues Scuba API requests over a pooled httpx client."""

    def __init__(
        self,
        options: ConnectionOptions,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._options = options
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._event_hooks: dict[str, list] = {
            "request": [log_request],
            "response": [log_response],
        }

    @property
    def options(self) -> ConnectionOptions:
        return self._options

    @property
    def request_hooks(self) -> tuple[RequestHook, ...]:
        return tuple(self._event_hooks["request"])

    def add_request_hook(self, hook: RequestHook) -> None:
        """Append a hook; it runs after the hooks already installed."""
        self._event_hooks["request"].append(hook)
        self._sync_hooks()

    def remove_request_hook(self, hook: RequestHook) -> None:
        if hook in self._event_hooks["request"]:
            self._event_hooks["request"].remove(hook)
            self._sync_hooks()

    def _sync_hooks(self) -> None:
        if self._client is not None and not self._client.is_closed:
            self._client.event_hooks = self._event_hooks

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            ssl_context = build_ssl_context(self._options.tls)
            self._client = httpx.AsyncClient(
                base_url=self._options.base_url,
                verify=ssl_context if ssl_context is not None else True,
                limits=self._options.limits,
                event_hooks=self._event_hooks,
                transport=self._transport,
            )
        return self._client

    async def get_latest_metrics(
        self,
        metrics_class: str,
        resource_name: str,
        body: Any = None,
        options: Mapping[str, Any] | None = None,
    ) -> httpx.Response:
        path = f"/metrics/{_segment(metrics_class)}/{_segment(resource_name)}/latest"
        return await self._request("GET", path, body, options)

    async def get_metrics(
        self,
        metrics_class: str,
        resource_name: str,
        date: str,
        body: Any = None,
        options: Mapping[str, Any] | None = None,
    ) -> httpx.Response:
        path = f"/metrics/{_segment(metrics_class)}/{_segment(resource_name)}/{_segment(date)}"
        return await self._request("GET", path, body, options)

    async def health_check(self, options: Mapping[str, Any] | None = None) -> httpx.Response:
        return await self._request("GET", HEALTHCHECK_PATH, None, options)

    async def _request(
        self,
        method: str,
        path: str,
        body: Any,
        options: Mapping[str, Any] | None,
    ) -> httpx.Response:
        kwargs = dict(options or {})
        if body is not None:
            kwargs["json"] = body

        client = await self._get_client()
        response = await client.request(method, path, **kwargs)
        response.raise_for_status()
        return response

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()
        self._client = None


def _segment(value: str) -> str:
    """Percent-encode a value as a single path segment."""
    return quote(str(value), safe="")

"""Tests for scubaclient/api/scuba.py: route bindings and hook pipeline."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from scubaclient.api.scuba import ScubaApi
from scubaclient.config.connection import ClientConfig, build_connection_options
from scubaclient.logging.request_log import log_request, log_response


@pytest.fixture
def options():
    return build_connection_options(ClientConfig())


@pytest.fixture
def api(options):
    return ScubaApi(options)


def ok_response(json_body=None) -> MagicMock:
    response = MagicMock()
    response.status_code = 200
    response.json.return_value = json_body or {}
    return response


class TestRoutes:

    async def test_get_latest_metrics(self, api):
        mock_client = AsyncMock()
        mock_client.request.return_value = ok_response()
        mock_client.is_closed = False
        api._client = mock_client

        await api.get_latest_metrics("bucket", "foo", options={"timeout": 3})

        mock_client.request.assert_called_once_with(
            "GET", "/metrics/bucket/foo/latest", timeout=3,
        )

    async def test_get_metrics_with_body(self, api):
        mock_client = AsyncMock()
        mock_client.request.return_value = ok_response()
        mock_client.is_closed = False
        api._client = mock_client

        await api.get_metrics("account", "acc 1", "2024-03-05", body={"k": "v"})

        mock_client.request.assert_called_once_with(
            "GET", "/metrics/account/acc%201/2024-03-05", json={"k": "v"},
        )

    async def test_health_check(self, api):
        mock_client = AsyncMock()
        mock_client.request.return_value = ok_response()
        mock_client.is_closed = False
        api._client = mock_client

        await api.health_check()
        mock_client.request.assert_called_once_with("GET", "/_/healthcheck")

    async def test_raises_for_status(self, api):
        mock_client = AsyncMock()
        response = ok_response()
        response.raise_for_status.side_effect = httpx.HTTPStatusError(
            "boom", request=MagicMock(), response=MagicMock(status_code=500),
        )
        mock_client.request.return_value = response
        mock_client.is_closed = False
        api._client = mock_client

        with pytest.raises(httpx.HTTPStatusError):
            await api.health_check()


class TestClientLifecycle:

    async def test_lazy_client_uses_connection_options(self, options):
        api = ScubaApi(options)
        assert api._client is None

        with patch("scubaclient.api.scuba.httpx.AsyncClient") as mock_cls:
            await api._get_client()

        kwargs = mock_cls.call_args.kwargs
        assert kwargs["base_url"] == "http://localhost:8100"
        assert kwargs["verify"] is True
        assert kwargs["limits"].max_keepalive_connections == 0
        assert kwargs["event_hooks"]["request"] == [log_request]
        assert kwargs["event_hooks"]["response"] == [log_response]

    async def test_tls_context_passed_as_verify(self):
        options = build_connection_options(ClientConfig(use_https=True, ca="CA PEM"))
        api = ScubaApi(options)
        sentinel = object()

        with patch("scubaclient.api.scuba.build_ssl_context", return_value=sentinel) as mock_ssl, \
                patch("scubaclient.api.scuba.httpx.AsyncClient") as mock_cls:
            await api._get_client()

        mock_ssl.assert_called_once_with(options.tls)
        assert mock_cls.call_args.kwargs["verify"] is sentinel

    async def test_client_reused(self, api):
        c1 = await api._get_client()
        c2 = await api._get_client()
        assert c1 is c2
        await api.close()

    async def test_close(self, api):
        mock_client = AsyncMock()
        mock_client.is_closed = False
        api._client = mock_client

        await api.close()
        mock_client.aclose.assert_called_once()
        assert api._client is None

    async def test_close_when_no_client(self, api):
        await api.close()


class TestRequestHooks:

    def test_add_and_remove(self, api):
        async def hook(request):
            pass

        api.add_request_hook(hook)
        assert api.request_hooks == (log_request, hook)
        api.remove_request_hook(hook)
        assert api.request_hooks == (log_request,)

    def test_remove_unknown_is_noop(self, api):
        async def hook(request):
            pass

        api.remove_request_hook(hook)
        assert api.request_hooks == (log_request,)

    async def test_changes_reach_live_client(self, api):
        async def hook(request):
            pass

        client = await api._get_client()
        api.add_request_hook(hook)
        assert client.event_hooks["request"] == [log_request, hook]
        api.remove_request_hook(hook)
        assert client.event_hooks["request"] == [log_request]
        await api.close()

    async def test_hook_sees_request_before_send(self, options):
        seen = []

        async def stamp(request):
            request.headers["X-Stamp"] = "1"

        def handler(request):
            seen.append(request.headers.get("x-stamp"))
            return httpx.Response(200)

        api = ScubaApi(options, transport=httpx.MockTransport(handler))
        api.add_request_hook(stamp)
        await api.health_check()
        await api.close()

        assert seen == ["1"]

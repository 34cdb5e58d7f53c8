"""Connection settings for the Scuba transport.

`build_connection_options` turns a `ClientConfig` into the base URL and the
pooling/TLS options handed to httpx. It performs no I/O and no validation;
bad values surface once the transport uses them.
"""

import os
import ssl
import tempfile
from dataclasses import dataclass, field

import httpx

from scubaclient.auth.models import NoAuth, ScubaAuth

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 8100


@dataclass(frozen=True)
class ClientConfig:
    host: str | None = None
    port: int | None = None
    use_https: bool = False
    base_path: str | None = None  # appended to the URL, e.g. "/api"
    key: str | None = None  # PEM contents
    cert: str | None = None  # PEM contents
    ca: str | None = None  # PEM contents
    keep_alive: bool = False
    auth: ScubaAuth | None = field(default_factory=NoAuth)


@dataclass(frozen=True)
class TLSMaterial:
    key: str | None = None
    cert: str | None = None
    ca: tuple[str, ...] | None = None

    @property
    def empty(self) -> bool:
        return not (self.key or self.cert or self.ca)


@dataclass(frozen=True)
class ConnectionOptions:
    base_url: str
    keep_alive: bool = False
    tls: TLSMaterial = field(default_factory=TLSMaterial)

    @property
    def limits(self) -> httpx.Limits:
        if self.keep_alive:
            return httpx.Limits(max_connections=100, max_keepalive_connections=20)
        # No idle connections kept: each request closes its connection.
        return httpx.Limits(max_connections=100, max_keepalive_connections=0)

    def request_defaults(self) -> dict:
        """Per-call httpx options; caller options are merged on top."""
        return {"headers": {"Accept": "application/json"}}


def build_connection_options(config: ClientConfig) -> ConnectionOptions:
    proto = "https" if config.use_https else "http"
    host = config.host or DEFAULT_HOST
    port = config.port or DEFAULT_PORT
    base_path = config.base_path or ""

    return ConnectionOptions(
        base_url=f"{proto}://{host}:{port}{base_path}",
        keep_alive=bool(config.keep_alive),
        tls=TLSMaterial(
            key=config.key or None,
            cert=config.cert or None,
            ca=(config.ca,) if config.ca else None,
        ),
    )


def build_ssl_context(tls: TLSMaterial) -> ssl.SSLContext | None:
    """Build the TLS context for the transport, or None to keep httpx defaults.

    A configured CA replaces the system trust store. The ssl module only loads
    certificate chains from files, so cert and key are staged in a temporary
    directory that is removed before returning.
    """
    if tls.empty:
        return None

    if tls.ca:
        context = ssl.create_default_context(cadata="\n".join(tls.ca))
    else:
        context = ssl.create_default_context()

    if tls.cert:
        with tempfile.TemporaryDirectory(prefix="scubaclient-") as tmpdir:
            certfile = _write_pem(tmpdir, "cert.pem", tls.cert)
            keyfile = _write_pem(tmpdir, "key.pem", tls.key) if tls.key else None
            context.load_cert_chain(certfile=certfile, keyfile=keyfile)

    return context


def _write_pem(directory: str, name: str, contents: str) -> str:
    path = os.path.join(directory, name)
    with open(path, "w", encoding="utf-8") as f:
        f.write(contents)
    os.chmod(path, 0o600)
    return path

"""AWS Signature Version 4 signing for outgoing Scuba requests.

`aws_v4_interceptor` returns an httpx request hook. httpx awaits request
hooks inside `send()`, right before the request goes on the wire, so each
request is signed exactly once and never leaves unsigned while its signing
is pending.

Credentials are looked up in this order: explicit `credentials`, the
caller's `credentials_provider`, an assumed role, then the default boto3
chain (environment, shared config, instance metadata).
"""

import asyncio
import inspect
from collections.abc import Awaitable, Callable
from urllib.parse import parse_qsl, urlsplit, urlunsplit

import httpx
from botocore.auth import S3SigV4Auth, SigV4Auth
from botocore.awsrequest import AWSRequest
from botocore.credentials import Credentials, ReadOnlyCredentials, RefreshableCredentials
from botocore.exceptions import BotoCoreError, ClientError

from scubaclient.auth.models import AwsCredentials, AwsV4Params
from scubaclient.errors import SigningError
from scubaclient.logging.request_log import get_logger

RequestHook = Callable[[httpx.Request], Awaitable[None]]

logger = get_logger("auth")

SUPPORTED_HASH_ALGORITHMS = ("sha256", "sha-256")


class CredentialResolver:
    """Resolves signing credentials, possibly over the network."""

    def __init__(self, params: AwsV4Params):
        self._params = params
        self._credentials: Credentials | None = None

    async def resolve(self) -> ReadOnlyCredentials:
        provider = self._params.credentials_provider
        if self._params.credentials is None and provider is not None:
            result = provider()
            if inspect.isawaitable(result):
                result = await result
            return await _freeze(result)

        if self._credentials is None:
            # boto3 lookups may hit the filesystem, IMDS or STS
            self._credentials = await asyncio.to_thread(self._load)
        if self._credentials is None:
            raise SigningError("No AWS credentials found for request signing")
        return await _freeze(self._credentials)

    def _load(self) -> Credentials | None:
        params = self._params
        if params.credentials is not None:
            return Credentials(
                params.credentials.access_key_id,
                params.credentials.secret_access_key,
                params.credentials.session_token,
            )

        import boto3

        session = boto3.Session(profile_name=params.profile_name, region_name=params.region)
        if params.assume_role_arn:
            return _assume_role_credentials(session, params)
        return session.get_credentials()


def _assume_role_credentials(session, params: AwsV4Params) -> RefreshableCredentials:
    """Credentials for `params.assume_role_arn`, refreshed before they expire."""
    sts = session.client("sts", region_name=params.region)

    def refresh() -> dict:
        resp = sts.assume_role(
            RoleArn=params.assume_role_arn,
            RoleSessionName=params.assume_role_session_name,
        )
        creds = resp["Credentials"]
        return {
            "access_key": creds["AccessKeyId"],
            "secret_key": creds["SecretAccessKey"],
            "token": creds["SessionToken"],
            "expiry_time": creds["Expiration"].isoformat(),
        }

    return RefreshableCredentials.create_from_metadata(
        metadata=refresh(),
        refresh_using=refresh,
        method="sts-assume-role",
    )


async def _freeze(credentials) -> ReadOnlyCredentials:
    if isinstance(credentials, ReadOnlyCredentials):
        return credentials
    if isinstance(credentials, AwsCredentials):
        return ReadOnlyCredentials(
            credentials.access_key_id,
            credentials.secret_access_key,
            credentials.session_token,
        )
    if hasattr(credentials, "get_frozen_credentials"):
        # Refreshable credentials may call STS here
        return await asyncio.to_thread(credentials.get_frozen_credentials)
    raise SigningError(f"Unsupported credentials type: {type(credentials).__name__}")


def build_signing_request(request: httpx.Request, body: bytes) -> AWSRequest:
    """Translate an httpx request into the request object botocore signs.

    The query string is decoded into (key, value) pairs so botocore can apply
    the SigV4 canonical encoding to it. Repeated keys keep every value. A Host
    header matching the URL is always present.
    """
    parts = urlsplit(str(request.url))
    query = parse_qsl(parts.query, keep_blank_values=True)

    headers = {name: value for name, value in request.headers.items() if name != "host"}
    headers["host"] = parts.netloc

    return AWSRequest(
        method=request.method.upper(),
        url=urlunsplit((parts.scheme, parts.netloc, parts.path or "/", "", "")),
        headers=headers,
        data=body,
        params=query,
    )


def sign(signing_request: AWSRequest, credentials: ReadOnlyCredentials, params: AwsV4Params) -> None:
    """Add SigV4 headers to `signing_request` in place."""
    signer_cls = S3SigV4Auth if params.service == "s3" else SigV4Auth
    signer_cls(credentials, params.service, params.region).add_auth(signing_request)


def aws_v4_interceptor(params: AwsV4Params) -> RequestHook:
    """Build a request hook that SigV4-signs every request it sees."""
    if params.hash_algorithm.lower() not in SUPPORTED_HASH_ALGORITHMS:
        raise ValueError(f"Unsupported SigV4 hash algorithm: {params.hash_algorithm}")

    resolver = CredentialResolver(params)

    async def sign_request(request: httpx.Request) -> None:
        try:
            credentials = await resolver.resolve()
            body = await request.aread()
            signing_request = build_signing_request(request, body)
            sign(signing_request, credentials, params)
        except (BotoCoreError, ClientError) as e:
            raise SigningError(f"Failed to sign request: {e}") from e

        request.headers = httpx.Headers(list(signing_request.headers.items()))
        logger.debug(
            "Request signed",
            extra={"audit_data": {
                "service": params.service,
                "region": params.region,
                "method": request.method,
                "url": str(request.url),
            }},
        )

    return sign_request

"""Authentication variants for the Scuba client.

`ScubaAuth` is either `NoAuth` (requests go out unsigned) or `AwsV4Auth`
(every request is signed with AWS Signature Version 4).
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

DEFAULT_SERVICE = "s3"
DEFAULT_REGION = "us-east-1"
DEFAULT_HASH_ALGORITHM = "sha256"


@dataclass(frozen=True)
class AwsCredentials:
    access_key_id: str
    secret_access_key: str
    session_token: str | None = None

    def __repr__(self) -> str:
        return f"AwsCredentials(access_key_id={self.access_key_id!r}, secret_access_key='***')"


# Returns AwsCredentials or botocore credentials, optionally as an awaitable.
CredentialsProvider = Callable[[], Any | Awaitable[Any]]


@dataclass(frozen=True)
class AwsV4Params:
    service: str = DEFAULT_SERVICE
    region: str = DEFAULT_REGION
    credentials: AwsCredentials | None = None  # explicit keys win over everything else
    credentials_provider: CredentialsProvider | None = None
    profile_name: str | None = None  # boto3 profile for the default chain
    assume_role_arn: str | None = None
    assume_role_session_name: str = "scubaclient"
    hash_algorithm: str = DEFAULT_HASH_ALGORITHM


@dataclass(frozen=True)
class NoAuth:
    """Requests are sent without signing."""


@dataclass(frozen=True)
class AwsV4Auth:
    params: AwsV4Params = field(default_factory=AwsV4Params)


ScubaAuth = NoAuth | AwsV4Auth

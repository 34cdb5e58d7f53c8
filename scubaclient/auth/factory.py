"""Factory mapping an auth variant to its request hook."""

from scubaclient.auth.models import AwsV4Auth, NoAuth, ScubaAuth
from scubaclient.auth.sigv4 import RequestHook, aws_v4_interceptor


def build_auth_hook(auth: ScubaAuth | None) -> RequestHook | None:
    """Return the signing hook for `auth`, or None for unsigned requests."""
    if auth is None or isinstance(auth, NoAuth):
        return None
    if isinstance(auth, AwsV4Auth):
        return aws_v4_interceptor(auth.params)
    raise TypeError(f"Unknown auth variant: {type(auth).__name__}")

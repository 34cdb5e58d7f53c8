"""Exception types raised by the Scuba client."""


class ScubaClientError(Exception):
    """Base class for errors raised by this package."""


class SigningError(ScubaClientError):
    """Credential resolution or SigV4 signing failed for a request."""


class MalformedResponseError(ScubaClientError):
    """A successful response whose body is not a metrics object."""

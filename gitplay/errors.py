"""Errors raised when talking to a git forge."""


class ForgeError(Exception):
    """Base class for forge API failures.

    Attributes:
        status_code: HTTP status of the failing response, if any
        body: Response body, kept for diagnostics
    """

    retryable = False

    def __init__(self, message: str, status_code: int | None = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class AuthenticationFailure(ForgeError):
    """The credential is invalid or expired; the user must sign in again."""


class RateLimitOrPermission(ForgeError):
    """Rate limit exhausted or the credential lacks the required scope.

    Reported to the user as-is. Nothing retries automatically; ``retryable``
    only tells the caller that trying again later may succeed.
    """

    retryable = True

    def __init__(
        self,
        message: str,
        status_code: int | None = 403,
        body: str = "",
        rate_limit_remaining: int | None = None,
        rate_limit_reset: int | None = None,
    ):
        super().__init__(message, status_code, body)
        self.rate_limit_remaining = rate_limit_remaining
        self.rate_limit_reset = rate_limit_reset


class UpstreamProtocolError(ForgeError):
    """Unexpected status, malformed body, transport failure or runaway pagination."""


class PartialFetchFailure(ForgeError):
    """One account's events could not be fetched.

    Only recorded by the aggregator, never raised out of it.
    """

    def __init__(self, login: str, cause: Exception):
        status_code = cause.status_code if isinstance(cause, ForgeError) else None
        super().__init__(f"Failed to fetch events for {login}: {cause}", status_code)
        self.login = login
        self.cause = cause

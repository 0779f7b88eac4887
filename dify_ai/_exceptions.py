"""Typed error hierarchy for Dify API calls."""


class DifyError(Exception):
    """Base exception for all dify_ai errors."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        url: str | None = None,
        method: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.url = url
        self.method = method


class APICallError(DifyError):
    """Upstream answered with a non-success status."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        url: str | None = None,
        method: str | None = None,
        code: str | None = None,
        response_body: str | None = None,
    ):
        super().__init__(message, status_code=status_code, url=url, method=method)
        self.code = code
        self.response_body = response_body

    @property
    def is_retryable(self) -> bool:
        return self.status_code is not None and (
            self.status_code == 429 or self.status_code >= 500
        )


class BadRequestError(APICallError):
    """400/422: invalid request parameters."""


class AuthenticationError(APICallError):
    """401: invalid or missing API key."""


class PermissionDeniedError(APICallError):
    """403: app not accessible with this key."""


class NotFoundError(APICallError):
    """404: app, conversation or workflow does not exist."""


class RateLimitError(APICallError):
    """429: too many requests."""


class APIConnectionError(DifyError):
    """Request never produced a response (timeout, DNS, reset)."""


class InvalidPromptError(DifyError):
    """Prompt cannot be turned into a Dify request."""


class InvalidResponseDataError(DifyError):
    """Blocking response body does not have the expected shape."""


class LoadAPIKeyError(DifyError):
    """No API key passed and none found in the environment."""


class InvalidEventError(DifyError):
    """A stream payload failed validation after the stream had started."""

    def __init__(self, message: str, raw_text: str | None = None):
        super().__init__(message)
        self.raw_text = raw_text


# Map HTTP status codes to exception classes.
STATUS_MAP: dict[int, type[APICallError]] = {
    400: BadRequestError,
    401: AuthenticationError,
    403: PermissionDeniedError,
    404: NotFoundError,
    422: BadRequestError,
    429: RateLimitError,
}

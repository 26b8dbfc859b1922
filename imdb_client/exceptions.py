from typing import Any, Optional


class ImdbApiError(Exception):
    """Base error for every failure raised by the IMDb client."""

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        self.message = message
        self.url = url
        self.status_code = status_code
        super().__init__(message)

    def __str__(self) -> str:
        if self.url:
            return f"{self.message} ({self.url})"
        return self.message


class MalformedUrlError(ImdbApiError):
    """The assembled request URL is not a valid URL."""


class InvalidUrlError(ImdbApiError):
    """The URL could not be turned into a request target."""


class ImdbConnectionError(ImdbApiError):
    """I/O failure while talking to the API, timeouts included."""


class UninitializedClientError(ImdbApiError):
    """A request was attempted without an HTTP client configured."""


class HttpStatusError(ImdbApiError):
    """The API answered with a non-success status code."""


class ClientError(HttpStatusError):
    """3xx or 4xx response."""


class ServerError(HttpStatusError):
    """5xx response."""


class DecodeError(ImdbApiError):
    """
    The response body is not valid JSON or does not match the target schema.

    When the body belonged to an error response, ``http_error`` holds the
    ``ClientError``/``ServerError`` for the original status code.
    """

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
        http_error: Optional[HttpStatusError] = None,
    ):
        super().__init__(message, url=url, status_code=status_code)
        self.http_error = http_error


class UnrecognizedVariantError(DecodeError):
    """No registered discriminator key is present in a search result."""

    def __init__(self, message: str, payload: Any = None, url: Optional[str] = None):
        super().__init__(message, url=url)
        self.payload = payload

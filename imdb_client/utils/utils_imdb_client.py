import json
import logging
import random
import time
from types import MappingProxyType
from typing import Any, List, Mapping, NamedTuple, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from ..config import Settings, settings
from ..exceptions import (
    ClientError,
    DecodeError,
    ImdbConnectionError,
    InvalidUrlError,
    MalformedUrlError,
    ServerError,
    UninitializedClientError,
    UnrecognizedVariantError,
)
from ..schemas.imdb_schemas import (
    ImdbErrorResponse,
    PersonDetails,
    SearchResult,
    TitleDetails,
)

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

USER_AGENTS = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 14_4) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.4 Safari/605.1.15",
    "Mozilla/5.0 (X11; Linux x86_64; rv:125.0) Gecko/20100101 Firefox/125.0",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:125.0) Gecko/20100101 Firefox/125.0",
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_4 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.4 Mobile/15E148 Safari/604.1",
)

# Discriminator key -> variant, checked in this order.
SEARCH_VARIANTS: Mapping[str, Type[BaseModel]] = MappingProxyType({
    'tconst': TitleDetails,
    'nconst': PersonDetails,
})


class RawResponse(NamedTuple):
    status_code: int
    body: str


def random_user_agent() -> str:
    return random.choice(USER_AGENTS)


def build_url(
    function: str,
    arguments: Mapping[str, str],
    locale: str,
    timestamp: Optional[int] = None,
    config: Settings = settings
) -> str:
    """
    Build a signed request URL for an API function.

    Credentials, locale and timestamp come first, then the caller's
    arguments in mapping order, then the signature. Values are used as
    given, so callers must pre-encode anything unsafe.

    :param function: API function path, e.g. 'title/maindetails'.
    :param arguments: Extra query parameters.
    :param locale: Locale sent with the request, e.g. 'en_US'.
    :param timestamp: Seconds since the epoch; defaults to now.
    :param config: Settings holding the base URL and credentials.
    :return: The request URL.
    :raises MalformedUrlError: If the result is not a valid http(s) URL.
    """
    if timestamp is None:
        timestamp = int(time.time())

    query = [
        f"api={config.IMDB_API_VERSION}",
        f"appid={config.IMDB_APP_ID}",
        f"locale={locale}",
        f"timestamp={timestamp}",
    ]
    query += [f"{key}={value}" for key, value in arguments.items()]
    query.append(f"sig={config.IMDB_SIG}")

    url = f"{config.IMDB_BASE_URL}{function}?{'&'.join(query)}"
    logger.debug("URL = %s", url)

    try:
        parsed = httpx.URL(url)
    except httpx.InvalidURL as exc:
        raise MalformedUrlError(
            f"Failed to convert string to URL: {exc}", url=url) from exc
    if parsed.scheme not in ('http', 'https') or not parsed.host:
        raise MalformedUrlError(
            "Failed to convert string to URL: not an absolute http(s) URL", url=url)
    return url


def request_web_page(
    client: Optional[httpx.Client],
    url: str,
    charset: str = settings.IMDB_CHARSET
) -> RawResponse:
    """
    GET a URL and return its status code and text body.

    :param client: Injected HTTP client. Must not be None.
    :param url: URL produced by build_url.
    :param charset: Encoding used to decode the body.
    :return: RawResponse with the status code and body.
    :raises UninitializedClientError: If no client was configured.
    :raises InvalidUrlError: If the URL is not a usable request target.
    :raises ImdbConnectionError: On any I/O failure, timeouts included.
    """
    if client is None:
        raise UninitializedClientError(
            "HTTP client has not been configured", url=url)

    headers = {
        'Accept': 'application/json',
        'User-Agent': random_user_agent(),
    }
    try:
        resp = client.get(url, headers=headers)
    except (httpx.InvalidURL, httpx.UnsupportedProtocol) as exc:
        raise InvalidUrlError("Invalid URL", url=url) from exc
    except httpx.RequestError as exc:
        raise ImdbConnectionError(
            f"Error retrieving URL: {exc}", url=url) from exc

    return RawResponse(resp.status_code, resp.content.decode(charset, errors='replace'))


def classify_response(raw: RawResponse, url: Optional[str] = None) -> str:
    """
    Return the body of a successful response or raise for an error status.

    :param raw: Response returned by request_web_page.
    :param url: Request URL, attached to raised errors.
    :return: Response body when the status code is below 300.
    :raises ServerError: For status codes of 500 and above.
    :raises ClientError: For status codes from 300 to 499.
    :raises DecodeError: If an error body is not a valid error envelope.
        Its ``http_error`` holds the error for the original status code.
    """
    if raw.status_code < 300:
        return raw.body

    error_cls = ServerError if raw.status_code >= 500 else ClientError
    try:
        envelope = ImdbErrorResponse.model_validate_json(raw.body)
    except ValidationError as exc:
        http_error = error_cls(
            raw.body or f"HTTP {raw.status_code}", url=url, status_code=raw.status_code)
        raise DecodeError(
            f"Failed to decode error response for HTTP {raw.status_code}: {exc}",
            url=url,
            status_code=raw.status_code,
            http_error=http_error,
        ) from exc

    raise error_cls(envelope.status.message, url=url, status_code=raw.status_code)


def _load_json(body: str, url: Optional[str]) -> Any:
    try:
        return json.loads(body)
    except (ValueError, RecursionError) as exc:
        raise DecodeError(f"Response is not valid JSON: {exc}", url=url) from exc


def unwrap_data(data: Any) -> Any:
    """Strip the ``{"data": {...}}`` envelope some functions answer with."""
    if isinstance(data, dict) and isinstance(data.get('data'), dict):
        return data['data']
    return data


def decode_model(
    body: str,
    model: Type[M],
    url: Optional[str] = None,
    unwrap: bool = True
) -> M:
    """
    Decode a response body into a fixed-schema model.

    :param body: JSON response body.
    :param model: Target model class.
    :param url: Request URL, attached to raised errors.
    :param unwrap: Strip a top-level ``data`` envelope first.
    :return: The decoded model.
    :raises DecodeError: If the body is not JSON or does not fit the model.
    """
    data = _load_json(body, url)
    if unwrap:
        data = unwrap_data(data)
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise DecodeError(
            f"Response does not match {model.__name__}: {exc}", url=url) from exc


def decode_search_result(obj: Any, url: Optional[str] = None) -> SearchResult:
    """
    Decode one search result into the variant its discriminator key names.

    :param obj: Parsed JSON object.
    :param url: Request URL, attached to raised errors.
    :return: TitleDetails or PersonDetails.
    :raises UnrecognizedVariantError: If no registered key is present.
    :raises DecodeError: If obj is not an object or does not fit its variant.
    """
    if not isinstance(obj, dict):
        raise DecodeError(f"Search result is not a JSON object: {obj!r}", url=url)

    for key, model in SEARCH_VARIANTS.items():
        if key in obj:
            try:
                return model.model_validate(obj)
            except ValidationError as exc:
                raise DecodeError(
                    f"Search result does not match {model.__name__}: {exc}", url=url
                ) from exc

    raise UnrecognizedVariantError(
        f"No registered discriminator in search result: {obj!r}", payload=obj, url=url)


def decode_search_results(body: str, url: Optional[str] = None) -> List[SearchResult]:
    """
    Decode a search response into a flat list of variants.

    Every list-valued field of the response (``title_results``,
    ``name_results``, ...) is decoded in document order.

    :param body: JSON response body.
    :param url: Request URL, attached to raised errors.
    :return: List of decoded search results.
    """
    data = unwrap_data(_load_json(body, url))
    if not isinstance(data, dict):
        raise DecodeError("Search response is not a JSON object", url=url)

    results: List[SearchResult] = []
    for group in data.values():
        if isinstance(group, list):
            results.extend(decode_search_result(item, url) for item in group)
    return results

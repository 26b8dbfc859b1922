import logging
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from typing import Callable, Iterator, List, Mapping, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel

from ..config import Settings, settings, system_locale
from ..exceptions import ImdbApiError, UninitializedClientError
from ..schemas.imdb_schemas import (
    ImdbResult,
    PersonDetails,
    ResponseDetail,
    SearchResult,
    TitleDetails,
    WrapperResponse,
)
from ..utils.utils_imdb_client import (
    build_url,
    classify_response,
    decode_model,
    decode_search_results,
    request_web_page,
)

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)
T = TypeVar("T")


def _default_locale() -> str:
    return settings.IMDB_LOCALE or system_locale()


@dataclass(frozen=True)
class ImdbContext:
    """
    Everything a call needs: the injected HTTP client, the locale sent with
    each request and the settings holding base URL and credentials.
    """

    http_client: Optional[httpx.Client] = None
    locale: str = field(default_factory=_default_locale)
    config: Settings = field(default_factory=lambda: settings)

    def with_locale(self, locale: str) -> "ImdbContext":
        logger.debug("Setting locale to %s", locale)
        return replace(self, locale=locale)


@contextmanager
def imdb_session(
    locale: Optional[str] = None,
    timeout: Optional[float] = None
) -> Iterator[ImdbContext]:
    """
    Open an httpx client and yield a context bound to it.

    :param locale: Locale for every request; defaults to the configured one.
    :param timeout: Client timeout in seconds; defaults to IMDB_TIMEOUT.
    """
    with httpx.Client(timeout=settings.IMDB_TIMEOUT if timeout is None else timeout) as client:
        context = ImdbContext(http_client=client)
        if locale:
            context = context.with_locale(locale)
        yield context


def _call(
    context: ImdbContext,
    result_type: Type[ImdbResult[T]],
    function: str,
    arguments: Optional[Mapping[str, str]],
    decode: Callable[[str, str], T]
) -> ImdbResult[T]:
    """
    Run one request/decode round trip and wrap the outcome.

    Failures are logged and returned as the result's status. A missing
    HTTP client is a configuration bug and is raised instead.
    """
    try:
        url = build_url(
            function, arguments or {}, context.locale, config=context.config)
        raw = request_web_page(
            context.http_client, url, context.config.IMDB_CHARSET)
        body = classify_response(raw, url)
        return result_type.success(decode(body, url))
    except UninitializedClientError:
        raise
    except ImdbApiError as exc:
        logger.warning("%s: %s", type(exc).__name__, exc, exc_info=exc)
        return result_type.failure(f"{type(exc).__name__}: {exc.message}", exc)


def get_wrapper(
    context: ImdbContext,
    model: Type[M],
    function: str,
    arguments: Optional[Mapping[str, str]] = None
) -> ImdbResult[M]:
    """
    Fetch a function and decode the body into a typed model.

    :param context: Client context.
    :param model: Model class the body decodes into.
    :param function: API function path.
    :param arguments: Extra query parameters.
    :return: ImdbResult holding the model or the failure.
    """
    return _call(
        context, ImdbResult[model], function, arguments,
        lambda body, url: decode_model(body, model, url)
    )


def get_response(
    context: ImdbContext,
    function: str,
    arguments: Optional[Mapping[str, str]] = None
) -> ImdbResult[ResponseDetail]:
    """
    Fetch a function answering with a ``{"data": {...}}`` envelope.

    :param context: Client context.
    :param function: API function path.
    :param arguments: Extra query parameters.
    :return: ImdbResult holding the envelope's ResponseDetail.
    """
    return _call(
        context, ImdbResult[ResponseDetail], function, arguments,
        lambda body, url: decode_model(body, WrapperResponse, url, unwrap=False).data
    )


def get_search_results(
    context: ImdbContext,
    function: str,
    arguments: Optional[Mapping[str, str]] = None
) -> ImdbResult[List[SearchResult]]:
    """
    Fetch a search function and decode its mixed title/person results.

    :param context: Client context.
    :param function: API function path, e.g. 'find'.
    :param arguments: Extra query parameters, e.g. {'q': 'matrix'}.
    :return: ImdbResult holding the decoded results in response order.
    """
    return _call(
        context, ImdbResult[List[SearchResult]], function, arguments,
        decode_search_results
    )


def get_title_details(context: ImdbContext, imdb_id: str) -> ImdbResult[TitleDetails]:
    """
    Fetch the main details of a title.

    :param context: Client context.
    :param imdb_id: Title identifier, e.g. 'tt0133093'.
    :return: ImdbResult holding TitleDetails or the failure.
    """
    return get_wrapper(context, TitleDetails, 'title/maindetails', {'tconst': imdb_id})


def get_person_details(context: ImdbContext, person_id: str) -> ImdbResult[PersonDetails]:
    """
    Fetch the main details of a person.

    :param context: Client context.
    :param person_id: Person identifier, e.g. 'nm0000206'.
    :return: ImdbResult holding PersonDetails or the failure.
    """
    return get_wrapper(context, PersonDetails, 'name/maindetails', {'nconst': person_id})


def search(context: ImdbContext, query: str) -> ImdbResult[List[SearchResult]]:
    """
    Search titles and people.

    The query is sent as-is; encode spaces and reserved characters first.

    :param context: Client context.
    :param query: Pre-encoded search text.
    :return: ImdbResult holding the mixed title/person results.
    """
    return get_search_results(context, 'find', {'q': query})


def get_top_250(context: ImdbContext) -> ImdbResult[ResponseDetail]:
    """
    Fetch the top 250 chart.

    :param context: Client context.
    :return: ImdbResult holding the chart's ResponseDetail.
    """
    return get_response(context, 'chart/top')


def get_coming_soon(context: ImdbContext) -> ImdbResult[ResponseDetail]:
    """
    Fetch the coming soon feature list.

    :param context: Client context.
    :return: ImdbResult holding the list's ResponseDetail.
    """
    return get_response(context, 'feature/comingsoon')

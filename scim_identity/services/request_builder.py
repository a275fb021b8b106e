"""
Request Builder Service

Serialises a filter plus pagination parameters into either a query string
(``GET /Users/``) or a SearchRequest body (``POST /Users/.search``).
"""

from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlencode

from pydantic_core import PydanticSerializationError

from ..errors import MarshalError, NoFilterError, wrap
from ..models.filters import FilterExpression, is_null_filter
from ..models.scim_resources import SCIM_SEARCH_REQUEST_SCHEMA, SearchRequest

METHOD_GET = "GET"
METHOD_POST = "POST"
POST_SEARCH_PATH = ".search"


@dataclass(frozen=True)
class ListRequest:
    """A list call ready to be sent: method, path suffix and payload."""

    method: str
    path_suffix: str
    query_string: str = ""
    body: Optional[bytes] = None


def build_query_string(
    filter: Optional[FilterExpression],
    cursor: Optional[str] = None,
    count: Optional[int] = None,
) -> str:
    """
    Encode ``cursor``, ``count`` and ``filter`` as a URL query string.

    Keys are emitted in sorted order; a null filter omits the ``filter`` key.
    """
    query = {}
    if cursor is not None:
        query["cursor"] = cursor
    if count is not None:
        query["count"] = str(count)
    if not is_null_filter(filter):
        query["filter"] = filter.to_string()

    return urlencode(sorted(query.items()))


def build_search_body(
    filter: Optional[FilterExpression],
    cursor: Optional[str] = None,
    count: Optional[int] = None,
) -> bytes:
    """
    Build the JSON body of a ``.search`` request.

    Raises:
        NoFilterError: POST search without a filter is not supported
        MarshalError: the SearchRequest could not be serialised
    """
    if is_null_filter(filter):
        raise NoFilterError()

    search_request = SearchRequest(
        schemas=[SCIM_SEARCH_REQUEST_SCHEMA],
        filter=filter.to_string(),
        count=count,
        cursor=cursor,
    )

    try:
        return search_request.model_dump_json(exclude_none=True).encode("utf-8")
    except PydanticSerializationError as e:
        raise wrap(MarshalError(), e)


def build_list_request(
    use_http_post: bool,
    filter: Optional[FilterExpression],
    cursor: Optional[str] = None,
    count: Optional[int] = None,
) -> ListRequest:
    if use_http_post:
        return ListRequest(
            method=METHOD_POST,
            path_suffix=POST_SEARCH_PATH,
            body=build_search_body(filter, cursor=cursor, count=count),
        )

    return ListRequest(
        method=METHOD_GET,
        path_suffix="",
        query_string=build_query_string(filter, cursor=cursor, count=count),
    )

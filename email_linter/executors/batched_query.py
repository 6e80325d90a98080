"""Batched query executor: one ``<Type>/query`` + ``<Type>/get`` round trip.

The query step resolves a filter to an ordered id list and a total count;
the get step fetches only the requested properties for those ids through a
JMAP result reference. Responses are validated here and turned into typed
records, or into one of the errors in ``email_linter.errors``.
"""

import logging

from pydantic import ValidationError

from email_linter.errors import FetchError, ProtocolError, QueryError, RequestTooLarge
from email_linter.integrations.jmap import JmapClient
from email_linter.schemas.jmap import (
    EmailRecord,
    GetArguments,
    JmapMethodError,
    JmapResponse,
    Mailbox,
    MethodResponse,
    QueryArguments,
)
from email_linter.schemas.linter import QueryResult

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 100

QUERY_CALL_ID = "0"
GET_CALL_ID = "1"


def build_method_calls(
    data_type: str,
    *,
    account_id: str,
    filter: dict,
    properties: list[str],
    ids_path: str = "/ids",
    query_options: dict | None = None,
) -> list[list]:
    """Build the two method calls of a batched query request."""
    query_args: dict = {"accountId": account_id, "filter": filter}
    if query_options:
        query_args.update(query_options)

    get_args = {
        "accountId": account_id,
        "#ids": {
            "resultOf": QUERY_CALL_ID,
            "name": f"{data_type}/query",
            "path": ids_path,
        },
        "properties": properties,
    }
    return [
        [f"{data_type}/query", query_args, QUERY_CALL_ID],
        [f"{data_type}/get", get_args, GET_CALL_ID],
    ]


def email_query_options(limit: int = DEFAULT_LIMIT) -> dict:
    """Newest first, one entry per thread, first page only, with a total."""
    return {
        "sort": [{"property": "receivedAt", "isAscending": False}],
        "collapseThreads": True,
        "position": 0,
        "limit": limit,
        "calculateTotal": True,
    }


def parse_batched_response(body: str) -> tuple[list[dict], int]:
    """Validate a query+get response body.

    Returns:
        Tuple of (raw records in server order, total matches).

    Raises:
        ProtocolError: If the body is not a JMAP response with both calls.
        QueryError: If the query call returned an error.
        FetchError: If the get call returned an error.
        RequestTooLarge: If the get call was refused for asking too much.
    """
    try:
        response = JmapResponse.model_validate_json(body)
    except ValidationError as exc:
        raise ProtocolError(f"Response is not a valid JMAP response: {exc}") from exc

    by_call_id: dict[str, MethodResponse] = {}
    for method_response in response.method_responses():
        by_call_id.setdefault(method_response.call_id, method_response)

    query_response = by_call_id.get(QUERY_CALL_ID)
    get_response = by_call_id.get(GET_CALL_ID)
    if query_response is None or get_response is None:
        raise ProtocolError(
            f"Expected responses for calls {QUERY_CALL_ID!r} and {GET_CALL_ID!r}, "
            f"got {sorted(by_call_id)}"
        )

    if query_response.is_error:
        error = _parse_error(query_response)
        raise QueryError(error.type, error.description)
    if get_response.is_error:
        error = _parse_error(get_response)
        if error.type == "requestTooLarge":
            raise RequestTooLarge(error.type, error.description)
        raise FetchError(error.type, error.description)

    try:
        query_args = QueryArguments.model_validate(query_response.arguments)
        get_args = GetArguments.model_validate(get_response.arguments)
    except ValidationError as exc:
        raise ProtocolError(f"Unexpected method response arguments: {exc}") from exc

    total = query_args.total if query_args.total is not None else len(query_args.ids)
    return get_args.records, total


def _parse_error(method_response: MethodResponse) -> JmapMethodError:
    try:
        return JmapMethodError.model_validate(method_response.arguments)
    except ValidationError as exc:
        raise ProtocolError(f"Malformed error response: {exc}") from exc


async def query_emails(
    client: JmapClient,
    *,
    account_id: str,
    filter: dict,
    properties: list[str],
    limit: int = DEFAULT_LIMIT,
    ids_path: str = "/ids",
) -> QueryResult:
    """Run one Email/query + Email/get request.

    Args:
        client: An open JmapClient.
        account_id: JMAP account to query.
        filter: A JMAP FilterCondition or FilterOperator.
        properties: Email properties to fetch (e.g. ``["to", "from"]``).
        limit: Page size. Matches beyond it are counted in ``total`` only.
        ids_path: JSON pointer into the query result used as the id list.

    Returns:
        QueryResult with the fetched records and the store-wide total.
    """
    method_calls = build_method_calls(
        "Email",
        account_id=account_id,
        filter=filter,
        properties=properties,
        ids_path=ids_path,
        query_options=email_query_options(limit),
    )
    body = await client.call(method_calls)
    raw_records, total = parse_batched_response(body)

    try:
        result = QueryResult(
            records=[EmailRecord.model_validate(r) for r in raw_records],
            total=total,
        )
    except ValidationError as exc:
        raise ProtocolError(f"Invalid email records: {exc}") from exc

    logger.debug("Email query returned %d of %d match(es)", result.retrieved, result.total)
    return result


async def query_mailboxes(
    client: JmapClient,
    *,
    account_id: str,
    filter: dict,
    properties: list[str],
) -> list[Mailbox]:
    """Run one Mailbox/query + Mailbox/get request."""
    method_calls = build_method_calls(
        "Mailbox",
        account_id=account_id,
        filter=filter,
        properties=properties,
    )
    body = await client.call(method_calls)
    raw_records, _total = parse_batched_response(body)

    try:
        return [Mailbox.model_validate(r) for r in raw_records]
    except ValidationError as exc:
        raise ProtocolError(f"Invalid mailbox records: {exc}") from exc

"""Batch request encoding and response demultiplexing.

The Linode API accepts several actions in a single call
(``api_action=batch``) and answers with an array holding one sub-response
per action, in submission order. This module turns actions into one
:class:`httpx.Request` and maps the answer back onto the actions that
produced it.
"""

import json
import math
from collections.abc import Sequence
from typing import Any

import httpx
import pydantic
import structlog

from .errors import (
    EncodingError,
    RequestBuildError,
    ShapeError,
    UnexpectedActionError,
    aggregate_error,
)
from .types import Action, ErrorDetail, Record, SubResponse, format_number

logger = structlog.get_logger(__name__)

ACTION_KEY = "api_action"
BATCH_ACTION = "batch"
REQUEST_ARRAY_KEY = "api_requestArray"
API_KEY = "api_key"


def _encode_value(action: Action, key: str, value: Any) -> str:
    """Flatten a parameter value into the string the API expects."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int | float):
        if isinstance(value, float) and not math.isfinite(value):
            msg = f"Parameter {key!r} of action {action.name!r} is not finite"
            raise EncodingError(msg)
        return format_number(value)
    msg = (
        f"Parameter {key!r} of action {action.name!r} is not a flat value: "
        f"{type(value).__name__}"
    )
    raise EncodingError(msg)


def encode_actions(actions: Sequence[Action]) -> str:
    """Serialize actions into the JSON array sent as ``api_requestArray``.

    Each action becomes one object holding its parameters, in insertion
    order, followed by the ``api_action`` name. Actions keep their order.

    Raises:
        EncodingError: If a parameter value is not a flat scalar.
    """
    objects = []
    for action in actions:
        obj = {
            key: _encode_value(action, key, value)
            for key, value in action.parameters.items()
        }
        # The action name always wins over a parameter of the same key
        obj.pop(ACTION_KEY, None)
        obj[ACTION_KEY] = action.name
        objects.append(obj)
    return json.dumps(objects, separators=(",", ":"))


def _parse_base_url(base_url: str) -> httpx.URL:
    try:
        url = httpx.URL(base_url)
    except (httpx.InvalidURL, TypeError) as exc:
        msg = f"Error parsing base URL {base_url!r}: {exc}"
        raise RequestBuildError(msg) from exc
    if url.scheme not in ("http", "https") or not url.host:
        msg = f"Base URL {base_url!r} must be an absolute http(s) URL"
        raise RequestBuildError(msg)
    return url


def encode(
    actions: Sequence[Action],
    token: str,
    base_url: str,
    method: str = "GET",
    headers: dict[str, str] | None = None,
    timeout: float | None = None,
) -> httpx.Request:
    """Build one request carrying all actions as a batch.

    Args:
        actions: Actions to send, in the order the API should run them.
        token: API key used to authenticate the request.
        base_url: Address of the API endpoint.
        method: HTTP method; parameters always travel in the query string.
        headers: Extra request headers.
        timeout: Request timeout in seconds, attached to the request so
            it applies when sent by any client.

    Returns:
        Request ready to be sent by an :class:`httpx.Client`.

    Raises:
        EncodingError: If a parameter value is not a flat scalar.
        RequestBuildError: If ``base_url`` is not a usable address.
    """
    url = _parse_base_url(base_url)
    params = {
        ACTION_KEY: BATCH_ACTION,
        REQUEST_ARRAY_KEY: encode_actions(actions),
        API_KEY: token,
    }
    logger.debug(
        "Encoded batch request",
        method=method,
        actions=[action.name for action in actions],
    )
    extensions = {"timeout": httpx.Timeout(timeout).as_dict()} if timeout else {}
    return httpx.Request(
        method,
        url,
        params=params,
        headers=headers,
        extensions=extensions,
    )


def parse_batch_response(payload: Any) -> list[SubResponse]:
    """Validate a decoded response body into sub-responses.

    A single object, as returned for single-action calls, is treated as a
    batch of one.

    Raises:
        ShapeError: If the payload is not an object or an array of objects
            with the sub-response structure.
    """
    if isinstance(payload, dict):
        payload = [payload]
    if not isinstance(payload, list):
        msg = f"Incorrect data returned from API: {payload!r}"
        raise ShapeError(msg)
    try:
        return [SubResponse.model_validate(item) for item in payload]
    except pydantic.ValidationError as exc:
        msg = f"Incorrect data returned from API: {exc}"
        raise ShapeError(msg) from exc


def parse_error_payload(payload: Any) -> list[ErrorDetail]:
    """Collect error details from any error payload shape the API uses.

    Accepts ``{"ERRORCODE": ..., "ERRORMESSAGE": ...}``,
    ``{"ERRORARRAY": [...]}`` and batch arrays of sub-responses.

    Raises:
        ShapeError: If the payload matches none of these shapes.
    """
    try:
        if isinstance(payload, dict) and "ERRORCODE" in payload:
            return [ErrorDetail.model_validate(payload)]
        return [
            error
            for sub_response in parse_batch_response(payload)
            for error in sub_response.errors
        ]
    except pydantic.ValidationError as exc:
        msg = f"Error parsing error body: {exc}"
        raise ShapeError(msg) from exc


def demultiplex(
    raw: Sequence[SubResponse],
    expected: Sequence[str],
) -> dict[str, Record]:
    """Match sub-responses to the actions that produced them.

    Checks run in a fixed order: response count, reported errors, record
    count per sub-response, then the action name at each position. The
    API answers in submission order, so matching is positional and the
    name is only an integrity check.

    Args:
        raw: Sub-responses as returned by the API.
        expected: Action names in the order they were submitted.

    Returns:
        Mapping of action name to its single data record.

    Raises:
        ValueError: If ``expected`` names an action twice.
        ShapeError: If the counts of sub-responses or records are wrong.
        ApiError: If any sub-response reports errors.
        UnexpectedActionError: If a sub-response answers another action.
    """
    if len(set(expected)) != len(expected):
        msg = f"Expected actions must be unique: {list(expected)}"
        raise ValueError(msg)

    if len(raw) != len(expected):
        msg = (
            f"Incorrect data returned from API: expected {len(expected)} "
            f"responses, got {len(raw)}"
        )
        raise ShapeError(msg, expected=len(expected), actual=len(raw))

    details = [detail for sub_response in raw for detail in sub_response.errors]
    for detail in details:
        logger.error("API error response", error_message=detail.render())
    if error := aggregate_error(details):
        raise error

    for sub_response in raw:
        records = sub_response.records
        if len(records) != 1:
            msg = (
                f"Incorrect data returned from API for {sub_response.action!r}: "
                f"expected 1 record, got {len(records)}"
            )
            raise ShapeError(msg, expected=1, actual=len(records))

    for position, sub_response in enumerate(raw):
        if sub_response.action != expected[position]:
            raise UnexpectedActionError(
                expected=expected[position],
                observed=sub_response.action,
                position=position,
            )

    return {
        sub_response.action: sub_response.records[0] for sub_response in raw
    }

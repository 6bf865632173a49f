"""Linode API client.

Provides the HTTP client for creating, retrieving and destroying nodes.
Every operation is a single batch round trip; responses are checked,
demultiplexed and folded into return values here.
"""

import json
import os
import threading
import time
from collections.abc import Sequence
from typing import Any

import httpx
import structlog

from . import batch, node
from .errors import ShapeError, TransportError, aggregate_error
from .types import Action, Record

logger = structlog.get_logger(__name__)

DEFAULT_BASE_URL = "https://api.linode.com"

DEFAULT_TIMEOUT = 30.0

API_KEY_ENV_VAR = "LINODE_KEY"

SUCCESS_STATUSES = frozenset({200, 201, 202, 204})
ERROR_PAYLOAD_STATUSES = frozenset({400, 422})

CREATE_ACTION = "linode.create"
DELETE_ACTION = "linode.delete"


def _status_line(response: httpx.Response) -> str:
    return f"{response.status_code} {response.reason_phrase}".strip()


def _decode(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        msg = f"Error decoding response body: {exc}"
        raise ShapeError(msg) from exc


def check_response(response: httpx.Response) -> Any:
    """Interpret the status of a response and decode its body.

    Only 400 and 422 answers are trusted to carry a structured error
    payload; any other non-success status is reported as is.

    Args:
        response: Response received from the API.

    Returns:
        Decoded JSON body, ``None`` for an empty body.

    Raises:
        ApiError: If the API answered 400/422 with error entries.
        TransportError: For any other non-success status, or a 400/422
            answer without error entries.
        ShapeError: If the body is not valid JSON.
    """
    status_code = response.status_code
    if status_code in SUCCESS_STATUSES:
        return _decode(response)

    if status_code in ERROR_PAYLOAD_STATUSES:
        payload = _decode(response)
        details = batch.parse_error_payload(payload) if payload is not None else []
        for detail in details:
            logger.error("API error response", error_message=detail.render())
        if error := aggregate_error(details):
            raise error

    logger.error("API request rejected", status=_status_line(response))
    raise TransportError(status_code, _status_line(response))


class LinodeClient:
    """HTTP client for the Linode API.

    Builds batch requests, sends them and reconciles the answers into
    node identifiers and :class:`~linode_api.node.Node` objects.

    Thread-safe through thread-local storage of httpx.Client instances.
    Can be used as a context manager for automatic cleanup.
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize the API client.

        Args:
            api_key: API key; read from ``LINODE_KEY`` when not given.
            base_url: Base URL of the API (default: https://api.linode.com).
            timeout: Request timeout in seconds (default: 30.0).
            transport: Optional httpx transport, e.g. for tests or proxies.

        Raises:
            ValueError: If base_url is empty or timeout is not positive.
        """
        if not base_url:
            msg = "base_url cannot be empty"
            raise ValueError(msg)
        if timeout <= 0:
            msg = "timeout must be positive"
            raise ValueError(msg)

        self.api_key = api_key or os.environ.get(API_KEY_ENV_VAR, "")
        if not self.api_key:
            logger.warning(
                "No API key configured, requests will be rejected",
                env_var=API_KEY_ENV_VAR,
            )
        self.base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

        self._headers = {"Accept": "application/json"}

        # Use thread-local storage for httpx.Client (thread safety)
        self._local = threading.local()

    @property
    def client(self) -> httpx.Client:
        """Get or create thread-local httpx client.

        Each thread gets its own httpx.Client instance for thread safety.
        Clients are created lazily and reused within the same thread.

        Returns:
            Thread-local httpx.Client instance.
        """
        if not hasattr(self._local, "client") or self._local.client.is_closed:
            self._local.client = httpx.Client(
                timeout=self._timeout,
                transport=self._transport,
            )
        return self._local.client

    def __enter__(self):
        """Enter context manager."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Exit context manager and cleanup resources."""
        self.close()

    def close(self):
        """Close the thread-local HTTP client if open."""
        if hasattr(self._local, "client") and not self._local.client.is_closed:
            self._local.client.close()

    def _make_request(self, actions: Sequence[Action], method: str = "GET") -> Any:
        """Send actions as one batch and return the checked, decoded body.

        Args:
            actions: Actions to run, in order.
            method: HTTP method to use.

        Returns:
            Decoded JSON response body.

        Raises:
            httpx.HTTPError: If the HTTP request fails.
            LinodeError: If the request cannot be built or the API rejects it.
        """
        request = batch.encode(
            actions,
            self.api_key,
            self.base_url,
            method=method,
            headers=self._headers,
            timeout=self._timeout,
        )
        start_time = time.time()

        try:
            logger.debug(
                "Making API request",
                method=method,
                actions=[action.name for action in actions],
            )
            response = self.client.send(request)
            duration = time.time() - start_time
            logger.debug(
                "API request completed",
                status_code=response.status_code,
                duration_seconds=round(duration, 3),
            )
        except httpx.HTTPError:
            duration = time.time() - start_time
            logger.exception(
                "API request failed",
                duration_seconds=round(duration, 3),
            )
            raise

        return check_response(response)

    def _run(
        self,
        actions: Sequence[Action],
        method: str = "GET",
    ) -> dict[str, Record]:
        data = self._make_request(actions, method=method)
        return batch.demultiplex(
            batch.parse_batch_response(data),
            [action.name for action in actions],
        )

    def create_node(
        self,
        datacenter_id: str,
        plan_id: str,
        payment_term: str | None = None,
    ) -> str:
        """Create a node.

        Args:
            datacenter_id: Datacenter to place the node in.
            plan_id: Plan (size) of the node.
            payment_term: Optional payment term in months.

        Returns:
            ID of the new node.

        Raises:
            ApiError: If the API rejects the creation, e.g. an invalid plan.
            TransportError: If the API answers with an unexpected status.
        """
        parameters = {"DataCenterID": datacenter_id, "PlanID": plan_id}
        if payment_term:
            parameters["PaymentTerm"] = payment_term

        matched = self._run(
            [Action(name=CREATE_ACTION, parameters=parameters)],
            method="POST",
        )
        node_id = node.extract_node_id(CREATE_ACTION, matched[CREATE_ACTION])
        logger.info("Created node", node_id=node_id, datacenter_id=datacenter_id)
        return node_id

    def destroy_node(self, node_id: str, skip_checks: bool = False) -> None:
        """Destroy a node.

        Args:
            node_id: ID of the node to destroy.
            skip_checks: Destroy even if the node still has disks.

        Raises:
            ApiError: If the API refuses to destroy the node.
            TransportError: If the API answers with an unexpected status.
        """
        action = Action(
            name=DELETE_ACTION,
            parameters={"LinodeID": node_id, "skipChecks": skip_checks},
        )
        self._run([action], method="POST")
        logger.info("Destroyed node", node_id=node_id)

    def retrieve_node(self, node_id: str) -> node.Node:
        """Fetch a node with its networking and disk details.

        Sends ``linode.list``, ``linode.ip.list`` and ``linode.disk.list``
        in one batch and reconciles the three answers.

        Args:
            node_id: ID of the node to fetch.

        Returns:
            The assembled Node.

        Raises:
            ApiError: If any of the actions reports an error.
            ShapeError: If the API answers with an unexpected structure.
            TransportError: If the API answers with an unexpected status.
        """
        actions = [
            Action(name=name, parameters={"LinodeID": node_id})
            for name in node.RETRIEVE_ACTIONS
        ]
        return node.assemble_node(self._run(actions))

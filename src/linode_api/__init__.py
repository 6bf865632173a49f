"""Linode API client.

Client library for the Linode management API that creates, retrieves and
destroys nodes. Related actions are sent as a single batch request and the
answers are reconciled into one Node.

Exports:
    LinodeClient: HTTP client with authentication and error handling.
    Node: Retrieved node with identity, networking and disk details.
    types: Module containing Pydantic models for API requests and responses.
    DEFAULT_BASE_URL: Default address of the Linode API.
    DEFAULT_TIMEOUT: Default HTTP request timeout.
"""

__version__ = "0.1.0"

from . import types
from .client import DEFAULT_BASE_URL, DEFAULT_TIMEOUT, LinodeClient
from .errors import (
    ApiError,
    EncodingError,
    LinodeError,
    RequestBuildError,
    ShapeError,
    TransportError,
    UnexpectedActionError,
    UnsupportedActionError,
)
from .node import Node

__all__ = [
    "DEFAULT_BASE_URL",
    "DEFAULT_TIMEOUT",
    "ApiError",
    "EncodingError",
    "LinodeClient",
    "LinodeError",
    "Node",
    "RequestBuildError",
    "ShapeError",
    "TransportError",
    "UnexpectedActionError",
    "UnsupportedActionError",
    "types",
]

"""Exception taxonomy for the Linode API client.

Every error raised by this package derives from :class:`LinodeError`, so
callers can catch the whole family at once or single out remote failures
(:class:`ApiError`) from local and contract problems.
"""

from collections.abc import Iterable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .types import ErrorDetail


class LinodeError(Exception):
    """Base class for all errors raised by the client."""


class EncodingError(LinodeError):
    """Raised when an action parameter cannot be sent as a flat value."""


class RequestBuildError(LinodeError):
    """Raised when the base address cannot be turned into a request URL."""


class TransportError(LinodeError):
    """Raised for HTTP statuses that carry no trusted error payload."""

    def __init__(self, status_code: int, status: str):
        self.status_code = status_code
        self.status = status
        super().__init__(f"API error: {status}")


class ApiError(LinodeError):
    """Remote-reported failures, one or more code/message pairs.

    The message is the comma-joined rendering of every detail, in the
    order the API reported them.
    """

    def __init__(self, details: Iterable["ErrorDetail"]):
        self.details = tuple(details)
        super().__init__(", ".join(detail.render() for detail in self.details))


class ShapeError(LinodeError):
    """Raised when a response does not have the structure the API promises."""

    def __init__(
        self,
        message: str,
        expected: int | None = None,
        actual: int | None = None,
    ):
        self.expected = expected
        self.actual = actual
        super().__init__(message)


class UnexpectedActionError(LinodeError):
    """Raised when a sub-response answers a different action than was sent."""

    def __init__(self, expected: str, observed: str, position: int):
        self.expected = expected
        self.observed = observed
        self.position = position
        super().__init__(
            f"Unexpected action at position {position}: "
            f"expected {expected!r}, got {observed!r}",
        )


class UnsupportedActionError(LinodeError):
    """Raised when a node is assembled from an action it has no rule for."""

    def __init__(self, action: str):
        self.action = action
        super().__init__(f"No extraction rule for action {action!r}")


def aggregate_error(details: Iterable["ErrorDetail"]) -> ApiError | None:
    """Combine error details into a single ApiError.

    Args:
        details: Error details in the order they were reported.

    Returns:
        ``None`` when there are no details, otherwise one ApiError
        carrying all of them.
    """
    collected = list(details)
    if not collected:
        return None
    return ApiError(collected)

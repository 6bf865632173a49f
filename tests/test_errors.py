"""Tests for error rendering and aggregation."""

import pytest
from structlog.testing import capture_logs

from linode_api import errors
from linode_api.types import ErrorDetail

# ---------------------------------------------------------------------------
# ErrorDetail.render
# ---------------------------------------------------------------------------


def test_render_joins_code_and_message():
    """Code and message are rendered as 'code: message'."""
    detail = ErrorDetail(code=8, message="PlanID is invalid. Check linode.plans.list")
    assert detail.render() == "8: PlanID is invalid. Check linode.plans.list"


def test_render_empty_message_uses_fallback():
    """An empty message still renders a non-empty, deterministic line."""
    detail = ErrorDetail(code=5, message="")
    assert detail.render() == "5: no error message available"


def test_render_accepts_string_codes():
    """Codes may be strings in some API generations."""
    detail = ErrorDetail.model_validate(
        {"ERRORCODE": "E42", "ERRORMESSAGE": "Something broke"},
    )
    assert detail.render() == "E42: Something broke"


def test_error_detail_is_immutable():
    """Error details cannot be modified after creation."""
    detail = ErrorDetail(code=1, message="x")
    with pytest.raises(ValueError):
        detail.message = "y"


# ---------------------------------------------------------------------------
# aggregate_error
# ---------------------------------------------------------------------------


def test_aggregate_error_empty_returns_none():
    """No details means no error."""
    assert errors.aggregate_error([]) is None


def test_aggregate_error_single_detail():
    """A single detail becomes the whole message."""
    detail = ErrorDetail(code=8, message="PlanID is invalid. Check linode.plans.list")
    error = errors.aggregate_error([detail])

    assert isinstance(error, errors.ApiError)
    assert str(error) == "8: PlanID is invalid. Check linode.plans.list"
    assert error.details == (detail,)


def test_aggregate_error_joins_in_input_order():
    """Multiple details are comma-joined in the order given."""
    details = [
        ErrorDetail(code=6, message="LinodeID is required"),
        ErrorDetail(code=8, message=""),
        ErrorDetail(code=4, message="Object not found"),
    ]
    error = errors.aggregate_error(details)

    assert error is not None
    assert str(error) == (
        "6: LinodeID is required, "
        "8: no error message available, "
        "4: Object not found"
    )


def test_aggregate_error_accepts_generators():
    """Details may come from a lazy iterable, e.g. a union across responses."""
    groups = [
        [ErrorDetail(code=1, message="first")],
        [],
        [ErrorDetail(code=2, message="second")],
    ]
    error = errors.aggregate_error(detail for group in groups for detail in group)

    assert error is not None
    assert str(error) == "1: first, 2: second"


def test_all_errors_share_base_class():
    """Every client error can be caught as LinodeError."""
    assert issubclass(errors.ApiError, errors.LinodeError)
    assert issubclass(errors.ShapeError, errors.LinodeError)
    assert issubclass(errors.TransportError, errors.LinodeError)
    assert issubclass(errors.EncodingError, errors.LinodeError)
    assert issubclass(errors.RequestBuildError, errors.LinodeError)
    assert issubclass(errors.UnexpectedActionError, errors.LinodeError)
    assert issubclass(errors.UnsupportedActionError, errors.LinodeError)


def test_transport_error_keeps_status():
    """TransportError carries the status code and the raw status line."""
    error = errors.TransportError(500, "500 Internal Server Error")
    assert error.status_code == 500
    assert "500 Internal Server Error" in str(error)


def test_render_null_message_uses_fallback():
    """A null ERRORMESSAGE renders like an empty one."""
    detail = ErrorDetail.model_validate({"ERRORCODE": 4, "ERRORMESSAGE": None})
    assert detail.message is None
    assert detail.render() == "4: no error message available"


def test_aggregate_error_has_no_side_effects():
    """Aggregation only builds the error, logging is left to callers."""
    with capture_logs() as logs:
        errors.aggregate_error([ErrorDetail(code=1, message="first")])
    assert logs == []

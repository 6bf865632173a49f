"""Node model and assembly from batch sub-responses.

A retrieved node is spread over three list actions: ``linode.list`` for
identity and placement, ``linode.ip.list`` for networking and
``linode.disk.list`` for the disk. Each action has an extraction rule
that validates its record and copies the relevant fields onto a
:class:`Node`.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, TypeAlias

import pydantic
import structlog

from .errors import ShapeError, UnsupportedActionError
from .types import (
    RawDiskRecord,
    RawIPRecord,
    RawLinodeRecord,
    RawNodeIDRecord,
    Record,
    format_number,
)

logger = structlog.get_logger(__name__)

LIST_ACTION = "linode.list"
IP_LIST_ACTION = "linode.ip.list"
DISK_LIST_ACTION = "linode.disk.list"

STATUS_LABELS = {
    "-2": "boot failed",
    "-1": "being created",
    "0": "brand new",
    "1": "running",
    "2": "powered off",
    "3": "shutting down",
    "4": "saved to disk",
}


def status_label(status: str) -> str:
    """Translate a node status code into its label, empty if unknown."""
    return STATUS_LABELS.get(status, "")


@dataclass
class Node:
    """A retrieved Linode.

    All attributes are strings; numeric API values are rendered as plain
    decimal text.
    """

    id: str = ""
    datacenter_id: str = ""
    label: str = ""
    distribution: str = ""
    status: str = ""
    total_hd: str = ""
    ip_address: str = ""
    dns_name: str = ""
    disk_label: str = ""
    disk_type: str = ""
    disk_status: str = ""
    disk_size: str = ""

    @property
    def status_label(self) -> str:
        """Human readable status, empty for unknown codes."""
        return status_label(self.status)


Extractor: TypeAlias = Callable[[Record], dict[str, str]]


def _validate(model: type[pydantic.BaseModel], action: str, record: Record) -> Any:
    try:
        return model.model_validate(record)
    except pydantic.ValidationError as exc:
        msg = f"Incorrect {action} record returned from API: {exc}"
        raise ShapeError(msg) from exc


def _extract_linode(record: Record) -> dict[str, str]:
    raw: RawLinodeRecord = _validate(RawLinodeRecord, LIST_ACTION, record)
    return {
        "id": format_number(raw.linode_id),
        "datacenter_id": format_number(raw.datacenter_id),
        "label": raw.label,
        "distribution": raw.distribution_vendor,
        "status": format_number(raw.status),
        "total_hd": format_number(raw.total_hd),
    }


def _extract_ip(record: Record) -> dict[str, str]:
    raw: RawIPRecord = _validate(RawIPRecord, IP_LIST_ACTION, record)
    return {
        "ip_address": raw.ip_address,
        "dns_name": raw.rdns_name,
    }


def _extract_disk(record: Record) -> dict[str, str]:
    raw: RawDiskRecord = _validate(RawDiskRecord, DISK_LIST_ACTION, record)
    return {
        "disk_label": raw.label,
        "disk_type": raw.disk_type,
        "disk_status": format_number(raw.status),
        "disk_size": format_number(raw.size),
    }


EXTRACTORS: dict[str, Extractor] = {
    LIST_ACTION: _extract_linode,
    IP_LIST_ACTION: _extract_ip,
    DISK_LIST_ACTION: _extract_disk,
}

# Actions sent by a node retrieval, in submission order
RETRIEVE_ACTIONS = (LIST_ACTION, IP_LIST_ACTION, DISK_LIST_ACTION)


def assemble_node(matched: Mapping[str, Record]) -> Node:
    """Build a Node from the records of a retrieval batch.

    Args:
        matched: Action name to its single data record, as returned by
            :func:`linode_api.batch.demultiplex`.

    Returns:
        The fully populated Node.

    Raises:
        UnsupportedActionError: If an action has no extraction rule.
        ShapeError: If a record is malformed or a required action is missing.
    """
    fields: dict[str, str] = {}
    for action, record in matched.items():
        extractor = EXTRACTORS.get(action)
        if extractor is None:
            raise UnsupportedActionError(action)
        fields.update(extractor(record))

    if missing := [action for action in RETRIEVE_ACTIONS if action not in matched]:
        msg = f"Cannot assemble node, missing responses for: {', '.join(missing)}"
        raise ShapeError(msg, expected=len(RETRIEVE_ACTIONS), actual=len(matched))

    node = Node(**fields)
    logger.debug("Assembled node", node_id=node.id, status=node.status_label)
    return node


def extract_node_id(action: str, record: Record) -> str:
    """Read the ``LinodeID`` a create or delete action answered with."""
    raw: RawNodeIDRecord = _validate(RawNodeIDRecord, action, record)
    return format_number(raw.linode_id)

"""Wire types for the Linode API.

Pydantic models for the request actions and the raw response structures
returned by the API. Field aliases match the upper-case keys used on the
wire; records carry only the fields the client reads, everything else is
ignored during validation. Record models validate strictly: a boolean or a
numeric string is never accepted where the API promises a number.
"""

from typing import Any, TypeAlias

from pydantic import BaseModel, ConfigDict, Field

Record: TypeAlias = dict[str, Any]

NO_MESSAGE = "no error message available"


def format_number(value: int | float) -> str:
    """Render a JSON number as plain, locale-independent text.

    Integral values print without a decimal part (``24576.0`` -> ``"24576"``),
    other floats use their shortest round-trip representation.
    """
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, float):
        return repr(value)
    return str(value)


class Action(BaseModel):
    """A single named operation to send to the API."""

    model_config = ConfigDict(frozen=True)

    name: str
    parameters: dict[str, Any] = Field(default_factory=dict)


class ErrorDetail(BaseModel):
    """One error entry reported by the API."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    code: int | str = Field(alias="ERRORCODE")
    message: str | None = Field(None, alias="ERRORMESSAGE")

    def render(self) -> str:
        """Format the error as ``"<code>: <message>"``."""
        return f"{self.code}: {self.message or NO_MESSAGE}"


class SubResponse(BaseModel):
    """Response to one action of a batch request.

    ``DATA`` is a list of records for list actions and a single object for
    create/delete style actions; :attr:`records` smooths over the difference.
    """

    model_config = ConfigDict(populate_by_name=True)

    action: str = Field("", alias="ACTION")
    data: list[Record] | Record | None = Field(None, alias="DATA")
    errors: list[ErrorDetail] = Field(default_factory=list, alias="ERRORARRAY")

    @property
    def records(self) -> list[Record]:
        """Records carried by this sub-response, empty objects count as none."""
        if self.data is None:
            return []
        if isinstance(self.data, dict):
            return [self.data] if self.data else []
        return self.data


class RawLinodeRecord(BaseModel):
    """Record returned by ``linode.list``."""

    model_config = ConfigDict(strict=True)

    linode_id: int | float = Field(alias="LINODEID")
    datacenter_id: int | float = Field(alias="DATACENTERID")
    label: str = Field(alias="LABEL")
    distribution_vendor: str = Field(alias="DISTRIBUTIONVENDOR")
    status: int | float = Field(alias="STATUS")
    total_hd: int | float = Field(alias="TOTALHD")


class RawIPRecord(BaseModel):
    """Record returned by ``linode.ip.list``."""

    model_config = ConfigDict(strict=True)

    ip_address: str = Field(alias="IPADDRESS")
    rdns_name: str = Field(alias="RDNS_NAME")


class RawDiskRecord(BaseModel):
    """Record returned by ``linode.disk.list``."""

    model_config = ConfigDict(strict=True)

    label: str = Field(alias="LABEL")
    disk_type: str = Field(alias="TYPE")
    status: int | float = Field(alias="STATUS")
    size: int | float = Field(alias="SIZE")


class RawNodeIDRecord(BaseModel):
    """Record returned by ``linode.create`` and ``linode.delete``."""

    model_config = ConfigDict(strict=True)

    linode_id: int | float = Field(alias="LinodeID")

from pydantic import BaseModel, ConfigDict, Field, conint, model_validator
from typing import Literal

from .enums import Parity


class LinkConfig(BaseModel):
    """
    Options recognised when opening a link.

    ``hw_flow`` is accepted as an alias of ``hardware_flow_control``.
    Narrow characters (fewer than 8 data bits) need a parity bit, so
    ``data_bits < 8`` together with ``parity="none"`` is rejected here,
    before any device is opened.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    device:    str = Field(..., min_length=1, examples=["/dev/ttyUSB0"])
    baud:      int = Field(9600)                   # unknown rates fall back to B0
    parity:    Parity = Field(Parity.NONE)
    stop_bits: Literal[1, 2] = Field(1)
    data_bits: conint(ge=5, le=8) = Field(8)
    hardware_flow_control: bool = Field(False, alias="hw_flow")

    @model_validator(mode="after")
    def _parity_required_below_eight_bits(self) -> "LinkConfig":
        if self.data_bits < 8 and self.parity is Parity.NONE:
            raise ValueError("parity must be 'odd' or 'even' when data_bits < 8")
        return self

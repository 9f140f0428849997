import os
from pydantic import BaseModel, Field
from functools import lru_cache

from .enums import Parity
from .models import LinkConfig

ENV_PREFIX = "SERIAL_DEVICE_"


class Settings(BaseModel):
    device:    str  = Field("/dev/ttyS0")
    baud:      int  = Field(9600)
    parity:    Parity = Field(Parity.NONE)
    stop_bits: int  = Field(1)
    data_bits: int  = Field(8)
    hardware_flow_control: bool = Field(False)

    def link_config(self) -> LinkConfig:
        return LinkConfig(**self.model_dump())


def _from_environ() -> dict:
    # SERIAL_DEVICE_BAUD=57600 -> {"baud": "57600"}, pydantic coerces the strings
    overrides = {}
    for name in Settings.model_fields:
        value = os.getenv(ENV_PREFIX + name.upper())
        if value is not None:
            overrides[name] = value
    return overrides


@lru_cache
def get_settings() -> Settings:
    return Settings(**_from_environ())

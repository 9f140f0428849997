"""
Declarative accessors for command/response devices.

A device class lists its queries and commands as class attributes:

    class Laser(DeviceBase):
        identity = measurement("*IDN?")
        current  = control(":Laser:Current?", ":Laser:Current %0.3f",
                           validator=lambda amps: -3.0 < amps < 0)

    laser.identity          # sends "*IDN?" and returns the reply
    laser.current = -2.1    # sends ":Laser:Current -2.100"
"""

from __future__ import annotations

from typing import Any, Callable, Optional, Union

from .link.driver import Link
from .models import LinkConfig

Validator = Callable[[Any], bool]


def measurement(query: str, doc: Optional[str] = None) -> property:
    """Read-only attribute answered by sending ``query``."""

    def fget(self):
        return self.send_message(query)

    return property(fget, doc=doc or f"Reply to {query!r}.")


def setting(command_format: str, validator: Optional[Validator] = None,
            doc: Optional[str] = None) -> property:
    """Write-only attribute; assigning sends ``command_format % value``."""
    return property(None, _setter(command_format, validator),
                    doc=doc or f"Sends {command_format!r}.")


def control(query: str, command_format: str, validator: Optional[Validator] = None,
            doc: Optional[str] = None) -> property:
    """Attribute read with ``query`` and written with ``command_format``."""

    def fget(self):
        return self.send_message(query)

    return property(fget, _setter(command_format, validator),
                    doc=doc or f"Reply to {query!r}, set with {command_format!r}.")


def _setter(command_format: str, validator: Optional[Validator]):
    def fset(self, value):
        if validator is not None and not validator(value):
            raise ValueError(f"{value!r} rejected for {command_format!r}")
        self.send_message(command_format % value)

    return fset


class DeviceBase:
    """Base for device classes that talk to their hardware over one Link."""

    def __init__(self, link: Link):
        self.link = link

    @classmethod
    def open(cls, **options) -> "DeviceBase":
        """
        Validate ``options`` as a LinkConfig and open the device.

        Recognised keys: device (required), baud, parity, stop_bits,
        data_bits, hardware_flow_control (or hw_flow).
        """
        config = LinkConfig(**options)
        return cls(Link.from_config(config))

    def send_message(self, message: str) -> str:
        return self.link.send(message)

    def write(self, command: Union[str, bytes]) -> None:
        self.link.write(command)

    def read(self) -> str:
        return self.link.read()

    def read_bytes(self, n: int) -> bytes:
        return self.link.read_bytes(n)

    def read_exactly(self, n: int, max_idle_polls: int = 10) -> bytes:
        return self.link.read_exactly(n, max_idle_polls)

    def close(self) -> None:
        self.link.destroy()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

"""
m6812.py - M6812 data acquisition board.

Text commands for identification and geometry, binary dump for samples.
"""

from __future__ import annotations

import struct
from functools import cached_property
from typing import Dict, List

from ..accessors import DeviceBase, measurement

# time (u16), quadrant (u8), ch0 (u16), ch1 (u16), big-endian
RECORD = struct.Struct(">HBHH")


class M6812(DeviceBase):
    identity = measurement("IDN")
    time     = measurement("TIME")

    @cached_property
    def num_sample_points(self) -> int:
        """Points per SAMPLE, asked once per instance."""
        return int(self.send_message("POINTS"))

    @cached_property
    def record_length(self) -> int:
        """Bytes per point in a SAMPLE dump, asked once per instance."""
        return int(self.send_message("ROWSIZE"))

    def sample(self) -> Dict[str, List[int]]:
        size = self.num_sample_points * self.record_length
        self.write("SAMPLE")
        return decode_samples(self.read_exactly(size))

    def meta(self) -> Dict[str, str]:
        return {"BOARDID": self.identity}


def decode_samples(data: bytes) -> Dict[str, List[int]]:
    """Split a SAMPLE dump into per-field lists; a trailing partial record is ignored."""
    usable = len(data) - len(data) % RECORD.size
    out: Dict[str, List[int]] = {"time": [], "quadrant": [], "ch0": [], "ch1": []}
    for time_, quadrant, ch0, ch1 in RECORD.iter_unpack(data[:usable]):
        out["time"].append(time_)
        out["quadrant"].append(quadrant)
        out["ch0"].append(ch0)
        out["ch1"].append(ch1)
    return out

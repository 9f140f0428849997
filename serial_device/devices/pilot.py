"""
pilot.py - laser "pilot" controller.

SCPI-style text protocol, one query or command per line.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterator

from ..accessors import DeviceBase, control, measurement, setting

log = logging.getLogger("serial_device.devices.pilot")

PIEZO_MIN = -13
PIEZO_MAX = 13
PIEZO_LIMIT = 13.5

# meta() keys
LASERID         = "LASERID"
LASER_CURRENT   = "LASERCUR"
PIEZO_WAVEFORM  = "PIEZOWAV"
PIEZO_FREQUENCY = "PIEZOFRE"
PIEZO_AMPLITUDE = "PIEZOAMP"
PIEZO_OFFSET    = "PIEZOOFF"
PIEZO_VOLTAGE   = "PIEZOVOL"     # unreliable on most firmware
LASER_TEMP      = "LASERTEM"
CC_ENABLE       = "CCENABLE"


def validate_current(current: float) -> bool:
    """Injection current runs at 0..-3 A (negative bias)."""
    return -3.0 < current < 0


def validate_piezo_offset(offset: float) -> bool:
    return -PIEZO_LIMIT <= offset <= PIEZO_LIMIT


def _steps(start: float, stop: float, step: float) -> Iterator[float]:
    """start, start±step, ... up to and including stop."""
    step = abs(step) if stop >= start else -abs(step)
    count = int(round((stop - start) / step, 9)) if step else 0
    for i in range(count + 1):
        yield start + i * step


class Pilot(DeviceBase):
    identity        = measurement("*idn?")
    echo            = setting(":System:echo %s")

    piezo_offset    = control(":Piezo:Offset?", ":Piezo:Offset %s",
                              validator=validate_piezo_offset)
    piezo_frequency = control(":Piezo:Frequency?", ":Piezo:Frequency %0.2f Hz")
    piezo_waveform  = control(":Piezo:Frequency:Generator?",
                              ":Piezo:Frequency:Generator %0.3s")   # OFF|0, SIN|1, TRI|2
    piezo_amplitude = control(":Piezo:Frequency:Amplitude?",
                              ":Piezo:Frequency:Amplitude %0.3f")
    piezo_voltage   = measurement(":Piezo:Voltage?")

    laser_current   = control(":Laser:Current?", ":Laser:Current %0.3f",
                              validator=validate_current)
    laser_status    = measurement(":Laser:Status?")
    laser_temperature = measurement(":TEC:Temperature?")

    cc_enable       = measurement(":CCoupling:Enable?")
    cc_gain         = measurement(":CCoupling:Gain?")
    cc_prescale     = measurement(":CCoupling:Prescale?")
    cc_direction    = measurement(":CCoupling:Direction?")

    def init_piezo(self, step: float = 0.5) -> bool:
        """Sweep the piezo offset from its current value to PIEZO_MIN, up to PIEZO_MAX, then back to 0."""
        current_offset = float(self.piezo_offset)
        log.info("Piezo ramp-up from %.3f", current_offset)

        for sweep in (_steps(current_offset, PIEZO_MIN, step),
                      _steps(PIEZO_MIN, PIEZO_MAX, step),
                      _steps(PIEZO_MAX, 0, step)):
            for value in sweep:
                log.debug("Piezo offset = %.3f", value)
                self.piezo_offset = value
        return True

    def meta(self) -> Dict[str, str]:
        """Controller state as a flat dictionary."""
        data: Dict[str, str] = {}
        self.set_meta(data)
        return data

    def set_meta(self, data) -> None:
        """Fill any ``data[key] = value`` container with the controller state."""
        data[LASERID]         = self.identity.rstrip("\r\n")
        data[LASER_CURRENT]   = self.laser_current.rstrip("\r\n")
        data[PIEZO_WAVEFORM]  = self.piezo_waveform.rstrip("\r\n")
        data[PIEZO_FREQUENCY] = self.piezo_frequency.rstrip("\r\n")
        data[PIEZO_AMPLITUDE] = self.piezo_amplitude.rstrip("\r\n")
        data[PIEZO_OFFSET]    = self.piezo_offset.rstrip("\r\n")
        data[PIEZO_VOLTAGE]   = self.piezo_voltage.rstrip("\r\n")
        data[LASER_TEMP]      = self.laser_temperature.rstrip("\r\n")
        data[CC_ENABLE]       = self.cc_enable.rstrip("\r\n")

#!/usr/bin/env python3
"""
Serial link diagnostic tool

Lists serial ports, opens the configured device and performs one
command/response exchange.

    python diagnose_link.py [device] [command]

Defaults come from SERIAL_DEVICE_* environment variables (see
serial_device/config.py).
"""

import sys

import serial.tools.list_ports
from pydantic import ValidationError

from serial_device.config import get_settings
from serial_device.errors import SerialDeviceError
from serial_device.link.driver import Link
from serial_device.logging_config import setup_logging


def list_serial_ports():
    """List all available serial ports"""
    print("Available serial ports:")
    ports = sorted(serial.tools.list_ports.comports(), key=lambda p: p.device)

    for port in ports:
        print(f"  {port.device} - {port.description}")
        if port.manufacturer:
            print(f"    Manufacturer: {port.manufacturer}")
        if port.serial_number:
            print(f"    Serial Number: {port.serial_number}")
    if not ports:
        print("  (none)")
    print()


def exchange(config, command):
    """Open the link described by ``config`` and send one command"""
    print(f"Opening {config.device} @ {config.baud} baud, {config.data_bits} data bits, "
          f"parity={config.parity.value}, stop bits={config.stop_bits}, "
          f"rtscts={config.hardware_flow_control}")
    try:
        with Link.from_config(config) as link:
            print(f"Sending {command!r}")
            response = link.send(command)
            if response:
                print(f"Response: {response!r}")
            else:
                print("No response (line stayed quiet)")
            if link.truncated:
                print("Response was longer than the buffer and has been cut")
    except SerialDeviceError as e:
        print(f"Error [{e.kind.name}]: {e}")
        return False
    return True


def main():
    setup_logging(log_level="DEBUG")
    print("Serial Link Diagnostic Tool\n")

    list_serial_ports()

    settings = get_settings()
    overrides = {}
    if len(sys.argv) > 1:
        overrides["device"] = sys.argv[1]
    command = sys.argv[2] if len(sys.argv) > 2 else "*IDN?"

    try:
        config = settings.model_copy(update=overrides).link_config()
    except ValidationError as e:
        print(f"Invalid configuration:\n{e}")
        sys.exit(2)

    sys.exit(0 if exchange(config, command) else 1)


if __name__ == "__main__":
    main()

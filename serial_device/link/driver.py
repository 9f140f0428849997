"""
driver.py - serial link engine.
* opens and configures a POSIX tty through pyserial (raw mode, VMIN=VTIME=0)
* writes CR-terminated ASCII commands one byte at a time
* reads responses until the line goes quiet for one poll interval
"""

from __future__ import annotations

import logging
import select
import termios
from typing import Optional, Union

import serial

from .config_ext import get as _cfg
from .response import ResponseBuffer, normalize_response
from ..enums import DEGENERATE_BAUD, STANDARD_BAUD_RATES, Parity, WriteFault
from ..errors import (
    DeviceUnavailableError,
    InvalidConfigurationError,
    NullDeviceError,
    ReadError,
    SelectError,
    WriteError,
    classify_write_errno,
    os_errno,
)
from ..logging_config import get_logger, log_hex_data, log_transaction_summary
from ..models import LinkConfig

_log = get_logger("serial_device.link.driver")

_cfg = _cfg()

POLL_TIMEOUT       = _cfg.poll_timeout
MAX_POLLS          = _cfg.max_polls
CHUNK_SIZE         = _cfg.chunk_size
RESPONSE_CAPACITY  = _cfg.response_capacity
READ_BYTES_TIMEOUT = _cfg.read_bytes_timeout
WRITE_TIMEOUT      = _cfg.write_timeout
TERMINATOR         = bytes([_cfg.terminator])
ENCODING           = _cfg.encoding

PARITY = {
    Parity.NONE: serial.PARITY_NONE,
    Parity.ODD:  serial.PARITY_ODD,
    Parity.EVEN: serial.PARITY_EVEN,
}

# termios attribute list: [iflag, oflag, cflag, lflag, ispeed, ospeed, cc]
IFLAG, CC = 0, 6


def baud_lookup(baud: int) -> int:
    """Return ``baud`` if it is a standard rate, otherwise the degenerate B0 rate."""
    if baud in STANDARD_BAUD_RATES:
        return baud
    _log.warning("Baud rate %r is not a standard rate, falling back to %d", baud, DEGENERATE_BAUD)
    return DEGENERATE_BAUD


def port_settings(baud: int = 9600, data_bits: int = 8, stop_bits: int = 1,
                  parity: Union[Parity, str] = Parity.NONE,
                  flow_control: bool = False) -> dict:
    """
    Build the pyserial settings for a line configuration without opening anything.

    Raises InvalidConfigurationError for data bits outside 5..8, stop bits
    other than 1 or 2, an unknown parity, or narrow characters without parity.
    """
    if data_bits not in (serial.FIVEBITS, serial.SIXBITS, serial.SEVENBITS, serial.EIGHTBITS):
        raise InvalidConfigurationError("Data bits must be between 5 and 8")
    if stop_bits not in (serial.STOPBITS_ONE, serial.STOPBITS_TWO):
        raise InvalidConfigurationError("Stop bits must be either 1 or 2")
    try:
        parity = Parity(parity)
    except ValueError:
        raise InvalidConfigurationError("Parity must be 'odd', 'even', or 'none'") from None
    if data_bits < 8 and parity is Parity.NONE:
        raise InvalidConfigurationError("Parity must be 'odd' or 'even' below 8 data bits")

    return {
        "baudrate":           baud_lookup(baud),
        "bytesize":           data_bits,
        "parity":             PARITY[parity],
        "stopbits":           stop_bits,
        "xonxoff":            False,
        "rtscts":             bool(flow_control),
        "dsrdtr":             False,
        "timeout":            0,            # reads never block, read() polls instead
        "write_timeout":      WRITE_TIMEOUT,
        "inter_byte_timeout": None,
    }


class TerminalPort(serial.Serial):
    """
    pyserial port that keeps the terminal attributes it found on the device.

    The snapshot is taken before pyserial's first reconfiguration and put
    back by ``close()``, so the tty is left the way it was found even when
    the port is only garbage collected.
    """

    def __init__(self, *args, **kwargs):
        self.original_attributes: Optional[list] = None
        self.active_attributes: Optional[list] = None
        super().__init__(*args, **kwargs)

    def _reconfigure_port(self, force_update=False):
        if self.original_attributes is None and self.fd is not None:
            self.original_attributes = termios.tcgetattr(self.fd)
        try:
            super()._reconfigure_port(force_update)

            attributes = termios.tcgetattr(self.fd)
            attributes[IFLAG] |= termios.IGNPAR     # drop bytes with parity errors
            attributes[CC][termios.VMIN] = 0
            attributes[CC][termios.VTIME] = 0
            # Second application: some drivers only latch a new baud rate on it
            termios.tcsetattr(self.fd, termios.TCSANOW, attributes)
            self.active_attributes = attributes
        except BaseException:
            # pyserial's open() only closes the descriptor on failure
            if not self.is_open:
                self._restore_attributes()
            raise

    def _restore_attributes(self):
        if self.fd is None or self.original_attributes is None:
            return
        try:
            termios.tcsetattr(self.fd, termios.TCSANOW, self.original_attributes)
        except termios.error as e:
            _log.warning("Could not restore terminal settings on %s: %s", self.port, e)

    def wait_readable(self, timeout: float) -> bool:
        ready, _, _ = select.select([self.fd], [], [], timeout)
        return bool(ready)

    def close(self):
        if self.is_open and self.fd is not None and self.original_attributes is not None:
            try:
                termios.tcflush(self.fd, termios.TCIOFLUSH)
            except termios.error as e:
                _log.warning("Could not flush %s: %s", self.port, e)
            self._restore_attributes()
        super().close()


class Link:
    """
    An open request/response channel to one serial device.

    Use ``configure_and_open`` (or ``Link.open`` / ``Link.from_config``) to
    create one. ``close`` releases the descriptor and restores the device's
    terminal settings, ``destroy`` additionally drops everything the link
    owns; both are safe to call more than once. Not thread-safe.
    """

    def __init__(self, device: str, port: TerminalPort):
        self.device = device
        self._port: Optional[TerminalPort] = port
        self.last_response = ""
        self.truncated = False

    # ───── construction ────────────────────────────────────────
    @classmethod
    def open(cls, device: str, baud: int = 9600, data_bits: int = 8, stop_bits: int = 1,
             parity: Union[Parity, str] = Parity.NONE, flow_control: bool = False) -> "Link":
        if not device:
            raise InvalidConfigurationError("A device path must be specified")
        settings = port_settings(baud, data_bits, stop_bits, parity, flow_control)

        port = TerminalPort()
        port.apply_settings(settings)
        port.port = device
        try:
            port.open()
        except (serial.SerialException, OSError, termios.error) as e:
            _log.error("Cannot open %s: %s", device, e)
            raise DeviceUnavailableError(device=device) from e

        port.reset_input_buffer()
        port.reset_output_buffer()
        _log.info("Serial open %s @ %d bps, %d%s%d, rtscts=%s",
                  device, settings["baudrate"], data_bits, settings["parity"],
                  stop_bits, settings["rtscts"])
        return cls(device, port)

    @classmethod
    def from_config(cls, config: LinkConfig) -> "Link":
        return cls.open(config.device, config.baud, config.data_bits, config.stop_bits,
                        config.parity, config.hardware_flow_control)

    # ───── state ───────────────────────────────────────────────
    @property
    def is_open(self) -> bool:
        return self._port is not None and self._port.is_open

    @property
    def original_settings(self) -> Optional[list]:
        return self._port.original_attributes if self._port is not None else None

    @property
    def active_settings(self) -> Optional[list]:
        return self._port.active_attributes if self._port is not None else None

    def _require_port(self) -> TerminalPort:
        if not self.is_open:
            raise NullDeviceError(device=self.device)
        return self._port

    # ───── I/O ─────────────────────────────────────────────────
    def write(self, command: Union[str, bytes]) -> None:
        """
        Send ``command`` followed by a CR, one byte per write call.

        Text commands must be ASCII; anything else raises WriteError
        (INVALID_FOR_WRITING) before a byte is sent.
        """
        port = self._require_port()
        if isinstance(command, str):
            try:
                command = command.encode(ENCODING)
            except UnicodeEncodeError as e:
                raise WriteError(WriteFault.INVALID_FOR_WRITING, device=self.device) from e
        frame = bytes(command) + TERMINATOR
        log_hex_data(_log, logging.DEBUG, f"TX {self.device}", frame)

        for i in range(len(frame)):
            try:
                written = port.write(frame[i:i + 1])
            except serial.SerialTimeoutException as e:
                raise WriteError(WriteFault.WOULD_BLOCK, device=self.device) from e
            except OSError as e:
                code = os_errno(e)
                fault = classify_write_errno(code)
                _log.error("Write to %s failed at byte %d/%d: %s (%s)",
                           self.device, i + 1, len(frame), fault.name, e)
                raise WriteError(fault, code, device=self.device) from e
            if written != 1:
                _log.error("Short write to %s at byte %d/%d", self.device, i + 1, len(frame))
                raise WriteError(WriteFault.GENERIC, device=self.device)

    def read(self) -> str:
        """
        Collect a response and return it normalized.

        Waits up to POLL_TIMEOUT for the line to become readable and reads a
        chunk, repeating until a wait times out (end of response) or
        MAX_POLLS waits have been made. Chunks that do not fit into the
        response buffer are dropped and flagged in ``truncated``.
        """
        port = self._require_port()
        self.last_response = ""
        self.truncated = False
        buf = ResponseBuffer(RESPONSE_CAPACITY)

        polls = MAX_POLLS
        while polls > 0:
            polls -= 1
            try:
                ready = port.wait_readable(POLL_TIMEOUT)
            except (OSError, ValueError) as e:
                _log.error("Readiness wait on %s failed: %s", self.device, e)
                raise SelectError(device=self.device) from e
            if not ready:
                break

            try:
                chunk = port.read(CHUNK_SIZE)
            except OSError as e:
                _log.error("Read from %s failed: %s", self.device, e)
                raise ReadError(device=self.device) from e
            if chunk:
                log_hex_data(_log, logging.DEBUG, f"RX chunk {self.device}", chunk, 32)
                if not buf.append(chunk):
                    _log.warning("Response buffer full on %s, dropped %d bytes",
                                 self.device, len(chunk))
        else:
            _log.warning("%s still talking after %d polls, response cut short",
                         self.device, MAX_POLLS)

        self.truncated = buf.truncated
        self.last_response = normalize_response(buf.data, ENCODING)
        log_hex_data(_log, logging.DEBUG, f"RX {self.device}", buf.data)
        return self.last_response

    def read_bytes(self, n: int) -> bytes:
        """
        Single short attempt to read at most ``n`` raw bytes.

        Waits READ_BYTES_TIMEOUT for data and makes one read call; returns
        whatever was available, possibly nothing.
        """
        port = self._require_port()
        if n <= 0:
            return b""
        try:
            ready = port.wait_readable(READ_BYTES_TIMEOUT)
        except (OSError, ValueError) as e:
            _log.error("Readiness wait on %s failed: %s", self.device, e)
            raise SelectError(device=self.device) from e
        if not ready:
            return b""
        try:
            data = port.read(n)
        except OSError as e:
            _log.error("Read from %s failed: %s", self.device, e)
            raise ReadError(device=self.device) from e
        return data[:n]

    def read_exactly(self, n: int, max_idle_polls: int = 10) -> bytes:
        """Read exactly ``n`` bytes or raise ReadError once the device stalls."""
        self._require_port()
        out = bytearray()
        idle = 0
        while len(out) < n:
            data = self.read_bytes(n - len(out))
            if data:
                out += data
                idle = 0
            else:
                idle += 1
                if idle > max_idle_polls:
                    raise ReadError(f"Stalled after {len(out)} of {n} bytes", device=self.device)
        return bytes(out)

    def send(self, message: Union[str, bytes]) -> str:
        """Write ``message`` and return the device's normalized reply."""
        log_transaction_summary(_log, "TX", self.device, "COMMAND", repr(message))
        self.write(message)
        response = self.read()
        log_transaction_summary(_log, "RX", self.device, "RESPONSE", repr(response))
        return response

    # ───── teardown ────────────────────────────────────────────
    def close(self) -> None:
        """Flush, restore the original terminal settings and close the descriptor."""
        if not self.is_open:
            return
        self._port.close()
        _log.info("Serial closed %s", self.device)

    def destroy(self) -> None:
        """Close if needed and drop the port, its snapshots and the last response."""
        self.close()
        self._port = None
        self.last_response = ""
        self.truncated = False

    def __enter__(self) -> "Link":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.destroy()

    def __repr__(self) -> str:
        state = "open" if self.is_open else "closed"
        return f"<Link {self.device} {state}>"


def configure_and_open(device: str, baud: int = 9600, data_bits: int = 8, stop_bits: int = 1,
                       parity: Union[Parity, str] = Parity.NONE,
                       flow_control: bool = False) -> Link:
    return Link.open(device, baud, data_bits, stop_bits, parity, flow_control)

"""
Shared fixtures: a fake TerminalPort so the link engine can be exercised
without hardware.
"""

import os
from collections import deque

import pytest
import serial

from serial_device.link import driver


class FakePort:
    """Stands in for driver.TerminalPort; records traffic and replays canned input."""

    def __init__(self):
        self.is_open = False
        self.port = None
        self.settings = None
        self.original_attributes = None
        self.active_attributes = None

        self.written = []
        self.waits = []
        self.reads = []
        self.flushes = 0
        self.closes = 0
        self._chunks = deque()

        # failure injection
        self.open_error = None
        self.write_errno = None         # raise like pyserial after fail_after bytes
        self.write_exception = None
        self.fail_after = 0
        self.short_write = False
        self.wait_error = None
        self.read_error = None
        self.endless = None             # chunk returned forever once queue is empty

    # pyserial surface used by Link
    def apply_settings(self, d):
        self.settings = dict(d)

    def open(self):
        if self.open_error is not None:
            raise self.open_error
        self.original_attributes = ["original"]
        self.active_attributes = ["active"]
        self.is_open = True

    def reset_input_buffer(self):
        self.flushes += 1

    def reset_output_buffer(self):
        self.flushes += 1

    def write(self, data):
        if len(self.written) >= self.fail_after:
            if self.write_exception is not None:
                raise self.write_exception
            if self.write_errno is not None:
                try:
                    raise OSError(self.write_errno, os.strerror(self.write_errno))
                except OSError as e:
                    raise serial.SerialException("write failed: {}".format(e))
        if self.short_write:
            return 0
        self.written.append(bytes(data))
        return len(data)

    def wait_readable(self, timeout):
        self.waits.append(timeout)
        if self.wait_error is not None:
            raise self.wait_error
        return bool(self._chunks) or self.endless is not None

    def read(self, size=1):
        if self.read_error is not None:
            raise self.read_error
        if not self._chunks:
            chunk = self.endless or b""
        else:
            chunk = self._chunks.popleft()
            if len(chunk) > size:
                self._chunks.appendleft(chunk[size:])
                chunk = chunk[:size]
        self.reads.append(size)
        return chunk

    def close(self):
        self.is_open = False
        self.closes += 1

    # test helpers
    def feed(self, *chunks):
        self._chunks.extend(chunks)

    @property
    def payload(self):
        return b"".join(self.written)


@pytest.fixture
def fake_port(monkeypatch):
    """FakePort patched in as the port class of the engine."""
    port = FakePort()
    monkeypatch.setattr(driver, "TerminalPort", lambda: port)
    return port


@pytest.fixture
def link(fake_port):
    """Open link on the fake port."""
    lnk = driver.configure_and_open("/dev/ttyFAKE0")
    yield lnk
    lnk.destroy()

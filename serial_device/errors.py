"""
Exceptions raised by the link engine.

Every failure carries an ``ErrorKind`` and a human-readable description
derived from it, so callers can either catch a specific class or switch on
``exc.kind``.
"""

from __future__ import annotations

import errno
from typing import Optional

from .enums import ErrorKind, WriteFault

DESCRIPTIONS = {
    ErrorKind.NULL_DEVICE:           "Serial link is not open.",
    ErrorKind.SELECT_FAILURE:        "select() returned error while reading device response.",
    ErrorKind.WRITE_FAILURE:         "Error writing data to device.",
    ErrorKind.READ_FAILURE:          "Error reading data from device.",
    ErrorKind.DEVICE_UNAVAILABLE:    "Error initializing device.",
    ErrorKind.INVALID_CONFIGURATION: "Unsupported line configuration.",
}

WRITE_FAULT_DESCRIPTIONS = {
    WriteFault.GENERIC:             "Error writing data to device.",
    WriteFault.WOULD_BLOCK:         "Error writing: non-blocking device will block.",
    WriteFault.BAD_DESCRIPTOR:      "Error writing: invalid file descriptor.",
    WriteFault.BAD_ADDRESS:         "Error writing: buffer not addressable.",
    WriteFault.FILE_TOO_LARGE:      "Error writing: file size exceeded.",
    WriteFault.INTERRUPTED:         "Error writing: call interrupted.",
    WriteFault.INVALID_FOR_WRITING: "Error writing: unsuitable for writing.",
    WriteFault.IO_ERROR:            "Error writing: low-level I/O error.",
    WriteFault.OUT_OF_SPACE:        "Error writing: no room for data.",
    WriteFault.BROKEN_PIPE:         "Error writing: receiving end cannot read.",
}

_WRITE_FAULTS = {
    errno.EAGAIN: WriteFault.WOULD_BLOCK,
    errno.EBADF:  WriteFault.BAD_DESCRIPTOR,
    errno.EFAULT: WriteFault.BAD_ADDRESS,
    errno.EFBIG:  WriteFault.FILE_TOO_LARGE,
    errno.EINTR:  WriteFault.INTERRUPTED,
    errno.EINVAL: WriteFault.INVALID_FOR_WRITING,
    errno.EIO:    WriteFault.IO_ERROR,
    errno.ENOSPC: WriteFault.OUT_OF_SPACE,
    errno.EPIPE:  WriteFault.BROKEN_PIPE,
}


def describe(kind: ErrorKind) -> str:
    return DESCRIPTIONS.get(kind, "Unknown error.")


def describe_write_fault(fault: WriteFault) -> str:
    return WRITE_FAULT_DESCRIPTIONS.get(fault, "Unknown error.")


def classify_write_errno(code: Optional[int]) -> WriteFault:
    """Map an OS errno from a failed write onto a WriteFault (GENERIC if unknown)."""
    if code is None:
        return WriteFault.GENERIC
    return _WRITE_FAULTS.get(code, WriteFault.GENERIC)


def os_errno(exc: BaseException) -> Optional[int]:
    """
    errno of ``exc`` or of the OSError it was raised from.

    pyserial re-raises OS failures as ``SerialException('write failed: ...')``
    without an errno, the original error survives as ``__context__``.
    """
    code = getattr(exc, "errno", None)
    if code is None:
        code = getattr(exc.__cause__ or exc.__context__, "errno", None)
    return code


class SerialDeviceError(Exception):
    """Base class for every failure reported by a serial link."""

    kind: ErrorKind = ErrorKind.NULL_DEVICE

    def __init__(self, message: Optional[str] = None, *, device: Optional[str] = None):
        self.device = device
        self.description = message or describe(self.kind)
        super().__init__(self.description)

    def __str__(self) -> str:
        if self.device:
            return f"{self.device}: {self.description}"
        return self.description


class NullDeviceError(SerialDeviceError):
    kind = ErrorKind.NULL_DEVICE


class DeviceUnavailableError(SerialDeviceError):
    kind = ErrorKind.DEVICE_UNAVAILABLE


class SelectError(SerialDeviceError):
    kind = ErrorKind.SELECT_FAILURE


class ReadError(SerialDeviceError):
    kind = ErrorKind.READ_FAILURE


class InvalidConfigurationError(SerialDeviceError, ValueError):
    kind = ErrorKind.INVALID_CONFIGURATION


class WriteError(SerialDeviceError):
    kind = ErrorKind.WRITE_FAILURE

    def __init__(self, fault: WriteFault = WriteFault.GENERIC,
                 os_errno: Optional[int] = None, *, device: Optional[str] = None):
        self.fault = fault
        self.os_errno = os_errno
        super().__init__(describe_write_fault(fault), device=device)

from enum import Enum, IntEnum

# Rates with a termios B<rate> constant on every POSIX platform we target
STANDARD_BAUD_RATES = (
    0, 50, 75, 110, 134, 150, 200, 300, 600, 1200, 1800,
    2400, 4800, 9600, 19200, 38400, 57600, 115200, 230400,
)

DEGENERATE_BAUD = 0                 # B0, used for anything not listed above


class Parity(str, Enum):
    NONE = "none"
    ODD  = "odd"
    EVEN = "even"


class ErrorKind(IntEnum):
    NULL_DEVICE           = -1      # link closed or never opened
    SELECT_FAILURE        = -2      # readiness wait returned a hard error
    WRITE_FAILURE         = -3      # see WriteFault for the detail
    READ_FAILURE          = -4
    DEVICE_UNAVAILABLE    = -5      # open() or tcsetattr() failed
    INVALID_CONFIGURATION = -15     # refused before touching the OS


class WriteFault(IntEnum):
    GENERIC             = -3        # errno did not match anything below
    WOULD_BLOCK         = -6        # EAGAIN
    BAD_DESCRIPTOR      = -7        # EBADF
    BAD_ADDRESS         = -8        # EFAULT
    FILE_TOO_LARGE      = -9        # EFBIG
    INTERRUPTED         = -10       # EINTR
    INVALID_FOR_WRITING = -11       # EINVAL
    IO_ERROR            = -12       # EIO
    OUT_OF_SPACE        = -13       # ENOSPC
    BROKEN_PIPE         = -14       # EPIPE

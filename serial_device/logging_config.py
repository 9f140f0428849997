# serial_device/logging_config.py
"""
Logging setup for serial-device.

The link engine logs every open/close at INFO and every payload in hex at
DEBUG, so a separate traffic log is kept for the ``serial_device.link``
loggers when file logging is enabled.
"""

import logging
import logging.handlers
import os
from pathlib import Path

LINK_LOGGER = "serial_device.link"


def setup_logging(log_level: str = "INFO", log_to_file: bool = False, log_dir: str = "logs"):
    """
    Configure the root logger for applications built on serial-device.

    Args:
        log_level: Root level name (DEBUG, INFO, WARNING, ERROR)
        log_to_file: Also write rotating log files under ``log_dir``
        log_dir: Directory for the log files, created if missing
    """

    detailed_formatter = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d [%(name)24s] %(levelname)8s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    console_formatter = logging.Formatter(
        fmt="%(asctime)s [%(name)20s] %(levelname)5s: %(message)s",
        datefmt="%H:%M:%S"
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper()))
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(console_formatter)
    root_logger.addHandler(console_handler)

    if log_to_file:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_path / "serial_device.log",
            maxBytes=10 * 1024 * 1024,  # 10 MB
            backupCount=5
        )
        file_handler.setLevel(getattr(logging, log_level.upper()))
        file_handler.setFormatter(detailed_formatter)
        root_logger.addHandler(file_handler)

        # TX/RX traffic only
        traffic_handler = logging.handlers.RotatingFileHandler(
            log_path / "link_traffic.log",
            maxBytes=5 * 1024 * 1024,   # 5 MB
            backupCount=10
        )
        traffic_handler.setLevel(logging.DEBUG)
        traffic_handler.setFormatter(detailed_formatter)
        traffic_handler.addFilter(lambda record: record.name.startswith(LINK_LOGGER))
        root_logger.addHandler(traffic_handler)

    logging.getLogger(LINK_LOGGER).setLevel(logging.DEBUG)

    setup_log = logging.getLogger("serial_device.logging")
    setup_log.info("Logging initialized: level=%s, to_file=%s", log_level, log_to_file)
    if log_to_file:
        setup_log.info("Log directory: %s", Path(log_dir).absolute())


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def log_hex_data(logger: logging.Logger, level: int, message: str, data: bytes, max_bytes: int = 64):
    """
    Log binary data as hex, eliding the middle of payloads longer than ``max_bytes``.
    """
    if not logger.isEnabledFor(level):
        return

    if len(data) <= max_bytes:
        hex_data = data.hex().upper()
        logger.log(level, "%s (%d bytes): %s", message, len(data), hex_data)
    else:
        hex_start = data[:max_bytes//2].hex().upper()
        hex_end = data[-max_bytes//2:].hex().upper()
        logger.log(level, "%s (%d bytes): %s...%s",
                   message, len(data), hex_start, hex_end)


def log_transaction_summary(logger: logging.Logger, direction: str, device: str,
                            operation: str, details: str = ""):
    """One-line summary of an exchange; ``direction`` is "TX" or "RX"."""
    marker = ">>>" if direction == "TX" else "<<<"
    logger.info("%s %s: %s %s", marker, device, operation, details)


if os.getenv("SERIAL_DEVICE_AUTO_LOGGING", "0") == "1":
    setup_logging(
        os.getenv("SERIAL_DEVICE_LOG_LEVEL", "INFO"),
        os.getenv("SERIAL_DEVICE_LOG_TO_FILE", "0") == "1",
    )

"""JSON logging configuration for host certificate management."""

import logging

from pythonjsonlogger import jsonlogger

LOGGER_NAME = "hostcert_manager"

# hostname is present when a call passes extra={"hostname": ...}
ALLOWED_FIELDS = frozenset(
    {
        "timestamp",
        "level",
        "message",
        "exc_info",
        "funcName",
        "lineno",
        "hostname",
    }
)


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter emitting one line per record with a fixed field set."""

    def add_fields(self, log_record, record, message_dict):
        """Rename levelname to level and drop fields outside ALLOWED_FIELDS.

        Args:
            log_record: Dict to be logged as JSON
            record: LogRecord object from logging framework
            message_dict: Dict containing message and args
        """
        super().add_fields(log_record, record, message_dict)

        if "levelname" in log_record:
            log_record["level"] = log_record.pop("levelname")

        for key in [key for key in log_record if key not in ALLOWED_FIELDS]:
            log_record.pop(key)


def _setup_logger() -> logging.Logger:
    """Initialize and configure singleton logger.

    Returns:
        Logger writing JSON lines to stderr
    """
    logger = logging.getLogger(LOGGER_NAME)

    if logger.handlers:
        return logger

    handler = logging.StreamHandler()
    handler.setFormatter(
        CustomJsonFormatter(
            fmt="%(timestamp)s %(levelname)s %(funcName)s %(lineno)d %(message)s",
            timestamp=True,
        )
    )

    logger.setLevel(logging.INFO)
    logger.addHandler(handler)
    # stdout is reserved for LIST output
    logger.propagate = False

    return logger


def set_verbose(verbose: bool) -> None:
    """Switch the singleton logger between INFO and DEBUG."""
    LOGGER.setLevel(logging.DEBUG if verbose else logging.INFO)


LOGGER = _setup_logger()

# Core - Logging & Audit Events
#
# All modules log through ``logging.getLogger(__name__)``. The CLI calls
# configure_logging() once to render those records (and structured
# audit events) through structlog on stderr, at a level picked by the
# -v / -q flags. Stdout stays reserved for the run report.
#
# Audit events record what happened to the authorized_keys file. They
# carry key fingerprints, never full key blobs.

import logging
import sys
from typing import Any, Optional, TextIO

import structlog

PACKAGE_LOGGER_NAME = "keyloader"
AUDIT_LOGGER_NAME = "keyloader.audit"

# Marks the handler we install so a second configure_logging() call
# replaces it instead of stacking another one.
_HANDLER_MARKER = "_keyloader_handler"

_SHARED_PROCESSORS = [
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso"),
]


def verbosity_to_level(verbosity: int) -> int:
    """Map -q/-v counts to a logging level.

    -1 (quiet) -> ERROR, 0 -> WARNING, 1 -> INFO, 2+ -> DEBUG
    """
    if verbosity < 0:
        return logging.ERROR
    if verbosity == 0:
        return logging.WARNING
    if verbosity == 1:
        return logging.INFO
    return logging.DEBUG


def configure_logging(verbosity: int = 0, stream: Optional[TextIO] = None) -> int:
    """Route keyloader logs through structlog's console renderer.

    Returns the logging level that was applied.
    """
    level = verbosity_to_level(verbosity)

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=_SHARED_PROCESSORS,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.dev.ConsoleRenderer(colors=False),
        ],
    )
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(formatter)
    handler.setLevel(level)
    setattr(handler, _HANDLER_MARKER, True)

    root_logger = logging.getLogger()
    for existing in list(root_logger.handlers):
        if getattr(existing, _HANDLER_MARKER, False):
            root_logger.removeHandler(existing)
    root_logger.addHandler(handler)

    logging.getLogger(PACKAGE_LOGGER_NAME).setLevel(level)
    return level


def get_audit_logger() -> structlog.stdlib.BoundLogger:
    """Structured logger for authorized_keys audit events."""
    return structlog.wrap_logger(
        logging.getLogger(AUDIT_LOGGER_NAME),
        processors=[
            structlog.stdlib.filter_by_level,
            *_SHARED_PROCESSORS,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
    )


def log_key_event(event: str, level: int = logging.INFO, **fields: Any) -> None:
    """Emit one audit event.

    Usage:
        log_key_event(
            "authorized_keys_written",
            path="/home/me/.ssh/authorized_keys",
            added=["SHA256:..."],
        )
    """
    get_audit_logger().log(level, event, **fields)

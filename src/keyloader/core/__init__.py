# Core Module - Shared Utilities
#
# Logging configuration and structured audit events.

from .audit_log import (
    AUDIT_LOGGER_NAME,
    configure_logging,
    get_audit_logger,
    log_key_event,
    verbosity_to_level,
)

__all__ = [
    "AUDIT_LOGGER_NAME",
    "configure_logging",
    "get_audit_logger",
    "log_key_event",
    "verbosity_to_level",
]

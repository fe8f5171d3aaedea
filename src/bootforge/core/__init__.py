"""Core primitives shared by every bootforge layer: errors, settings, logging."""

from bootforge.core.errors import (
    BootforgeError,
    ContainerRuntimeError,
    DiagnosticsWarning,
    ErrorCategory,
    ErrorContext,
    LaunchError,
    StagingError,
)
from bootforge.core.logging import configure_logging, get_logger
from bootforge.core.settings import BootforgeSettings, RuntimeKind, get_settings

__all__ = [
    # Errors
    "BootforgeError",
    "ContainerRuntimeError",
    "DiagnosticsWarning",
    "ErrorCategory",
    "ErrorContext",
    "LaunchError",
    "StagingError",
    # Logging
    "configure_logging",
    "get_logger",
    # Settings
    "BootforgeSettings",
    "RuntimeKind",
    "get_settings",
]

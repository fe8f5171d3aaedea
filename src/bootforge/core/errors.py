"""
Structured error types for bootforge.

Every failure of a build is reported through one of a small, typed set of
errors so callers can tell *where* the pipeline broke without parsing
messages:

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────┐
        │                      BootforgeError                          │
        │        (category, retryable, context, cause)                 │
        ├─────────────────────────────────────────────────────────────┤
        │                                                              │
        │  StagingError       LaunchError         ContainerRuntimeError│
        │  (STAGING)          (LAUNCH)            (RUNTIME)            │
        │  temp dir / copy    daemon unreachable  start / wait failed  │
        │                     create failed       non-zero exit        │
        │                                                              │
        │  DiagnosticsWarning  (UserWarning, never the primary error)  │
        └─────────────────────────────────────────────────────────────┘

No error is retried internally. ``retryable`` is advice for a caller that
wraps a build in its own retry policy.

Examples:
    >>> err = LaunchError("Cannot reach docker daemon")
    >>> err.category
    <ErrorCategory.LAUNCH: 'LAUNCH'>
    >>> err.retryable
    True

    >>> err = ContainerRuntimeError(
    ...     "Container exited with non-zero status",
    ...     exit_code=137,
    ...     diagnostics="mkfs: out of space",
    ... )
    >>> err.exit_code
    137

Tags:
    error-handling, exception-hierarchy, bootforge
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Where in the build pipeline an error originated."""

    STAGING = "STAGING"      # temp dir creation, kernel copy
    LAUNCH = "LAUNCH"        # runtime unreachable, container creation
    RUNTIME = "RUNTIME"      # start, wait, non-zero exit, missing artifact
    CONFIG = "CONFIG"        # invalid settings
    INTERNAL = "INTERNAL"    # bugs, unexpected state


@dataclass
class ErrorContext:
    """Structured metadata attached to an error for logging.

    Only non-None fields are emitted by :meth:`to_dict`.
    """

    image: str | None = None
    container_id: str | None = None
    runtime: str | None = None
    kernel_path: str | None = None
    staging_dir: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["image", "container_id", "runtime", "kernel_path", "staging_dir"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class BootforgeError(Exception):
    """
    Base exception for all bootforge errors.

    Subclasses set ``default_category`` and ``default_retryable``; callers
    may override either per instance. The wrapped exception is kept both as
    ``cause`` and as ``__cause__`` so tracebacks show the original failure.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> BootforgeError:
        """
        Add context to this error (fluent API).

        Usage:
            raise LaunchError("create failed").with_context(
                image="projectunik/boot-creator",
                runtime="docker-api",
            )
        """
        for key, value in kwargs.items():
            if key != "metadata" and hasattr(self.context, key):
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


class StagingError(BootforgeError):
    """Creating the staging directory or copying the kernel into it failed."""

    default_category = ErrorCategory.STAGING


class LaunchError(BootforgeError):
    """The container runtime is unreachable or refused to create the container."""

    default_category = ErrorCategory.LAUNCH
    default_retryable = True


class ContainerRuntimeError(BootforgeError, RuntimeError):
    """
    The container was created but did not complete successfully.

    Raised when start or wait fails (``exit_code`` is None) and when the
    container finished with a non-zero status (``exit_code`` is set and
    ``diagnostics`` holds the container's combined output when it could be
    retrieved). The diagnostics text is part of ``str(error)`` so operators
    see it wherever the error is printed.
    """

    default_category = ErrorCategory.RUNTIME

    def __init__(
        self,
        message: str,
        *,
        exit_code: int | None = None,
        diagnostics: str | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.exit_code = exit_code
        self.diagnostics = diagnostics

    def __str__(self) -> str:
        parts = [self.message]
        if self.exit_code is not None:
            parts.append(f"(exit: {self.exit_code})")
        text = " ".join(parts)
        if self.diagnostics:
            text = f"{text}\n--- container output ---\n{self.diagnostics.rstrip()}"
        return text

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        if self.exit_code is not None:
            result["exit_code"] = self.exit_code
        if self.diagnostics is not None:
            result["diagnostics"] = self.diagnostics
        return result


class DiagnosticsWarning(UserWarning):
    """Container logs could not be retrieved after a non-zero exit.

    Issued with :func:`warnings.warn`; it never replaces the non-zero-exit
    error it accompanies.
    """


__all__ = [
    "BootforgeError",
    "ContainerRuntimeError",
    "DiagnosticsWarning",
    "ErrorCategory",
    "ErrorContext",
    "LaunchError",
    "StagingError",
]

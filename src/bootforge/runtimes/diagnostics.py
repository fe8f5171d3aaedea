"""Failure diagnostics for containers that exited non-zero.

Runs only after a non-zero exit and before the container is removed. It
reads the container's complete combined stdout/stderr history (not a tail)
so the operator sees everything the builder printed.

A failure to fetch logs is secondary: it is logged, issued as a
:class:`~bootforge.core.errors.DiagnosticsWarning`, and ``collect`` returns
None so the caller still reports the original non-zero exit.

The CLI strategy does not need this collector: ``docker run`` streams the
same combined output to the child process's stdout, which the runtime
captures directly.
"""

from __future__ import annotations

import warnings
from typing import Any

from bootforge.core.errors import DiagnosticsWarning
from bootforge.core.logging import get_logger

logger = get_logger(__name__)


class DiagnosticsCollector:
    """Reads the full combined log stream of a finished container.

    Example:
        >>> collector = DiagnosticsCollector()
        >>> output = collector.collect(container)  # docker.models.containers.Container
    """

    def collect(self, container: Any) -> bytes | None:
        """Return the container's stdout+stderr, or None if it cannot be read."""
        container_id = getattr(container, "short_id", None) or getattr(container, "id", None)
        try:
            stream = container.logs(
                stdout=True,
                stderr=True,
                stream=True,
                follow=True,
                tail="all",
            )
            output = b"".join(stream)
        except Exception as exc:
            logger.warning(
                "diagnostics.unavailable",
                container_id=container_id,
                error=str(exc),
            )
            warnings.warn(
                DiagnosticsWarning(f"Failed to get logs for container {container_id}: {exc}"),
                stacklevel=2,
            )
            return None

        logger.error(
            "diagnostics.collected",
            container_id=container_id,
            output=output.decode("utf-8", errors="replace"),
        )
        return output

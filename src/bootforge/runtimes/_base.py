"""Base container runtime with shared lifecycle logic.

Provides ``BaseContainerRuntime``: logging, error wrapping and health-check
timing shared by both invocation strategies.

Architecture:

    .. code-block:: text

        ContainerRuntime (Protocol)
              │
              ▼
        BaseContainerRuntime
        ├── run()    → logging + error wrapping → _do_run()
        └── health() → latency timing           → _do_health()
              │
        ┌─────┴──────────────────┐
        ▼                        ▼
    DockerApiRuntime       DockerCliRuntime

Usage:
    class PodmanCliRuntime(BaseContainerRuntime):
        runtime_name = "podman-cli"
        ...
"""

from __future__ import annotations

import time

from bootforge.core.errors import BootforgeError, ContainerRuntimeError, ErrorContext
from bootforge.core.logging import get_logger
from bootforge.runtimes._types import (
    CompletionResult,
    ContainerSpec,
    RuntimeHealth,
    describe_spec,
)

logger = get_logger(__name__)


class BaseContainerRuntime:
    """Base class for container runtimes.

    Subclasses MUST implement ``_do_run`` and ``_do_health``.

    The base class wraps each call with:
        - Structured logging of the ContainerSpec (env values redacted) and outcome
        - Conversion of unexpected exceptions to ContainerRuntimeError
        - Timing for health latency

    .. code-block:: text

        run(spec)
          ├── log: container.run
          ├── _do_run(spec)  ← subclass implements
          ├── log: container.completed (exit_code)
          └── on non-bootforge error: wrap in ContainerRuntimeError
    """

    runtime_name: str = "base"

    def run(self, spec: ContainerSpec) -> CompletionResult:
        """Run one container with logging and error wrapping."""
        logger.info("container.run", runtime=self.runtime_name, **describe_spec(spec))
        try:
            result = self._do_run(spec)
        except BootforgeError as exc:
            logger.error(
                "container.failed",
                runtime=self.runtime_name,
                image=spec.image,
                error=exc.message,
                category=exc.category.value,
                context=exc.context.to_dict(),
            )
            raise
        except Exception as exc:
            logger.error(
                "container.failed",
                runtime=self.runtime_name,
                image=spec.image,
                error=str(exc),
            )
            raise ContainerRuntimeError(
                f"Unexpected failure running {spec.image}: {exc}",
                context=ErrorContext(image=spec.image, runtime=self.runtime_name),
                cause=exc,
            ) from exc

        log = logger.info if result.succeeded else logger.error
        log(
            "container.completed",
            runtime=self.runtime_name,
            image=spec.image,
            container_id=result.container_id,
            exit_code=result.exit_code,
        )
        return result

    def health(self) -> RuntimeHealth:
        """Health check with latency timing."""
        start = time.perf_counter()
        try:
            result = self._do_health()
            return RuntimeHealth(
                healthy=result.healthy,
                runtime=self.runtime_name,
                version=result.version,
                message=result.message,
                latency_ms=(time.perf_counter() - start) * 1000,
            )
        except Exception as exc:
            return RuntimeHealth(
                healthy=False,
                runtime=self.runtime_name,
                message=f"Health check failed: {exc}",
                latency_ms=(time.perf_counter() - start) * 1000,
            )

    # --- Abstract methods for subclasses ---

    def _do_run(self, spec: ContainerSpec) -> CompletionResult:
        """Implement in subclass."""
        raise NotImplementedError

    def _do_health(self) -> RuntimeHealth:
        """Implement in subclass."""
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(runtime={self.runtime_name!r})"

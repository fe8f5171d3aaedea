"""Runtime selection by configuration.

``create_runtime`` picks the invocation strategy named by
``BootforgeSettings.runtime``. Call it once at process start and pass the
result to builders; runtimes are stateless between runs and safe to share.

    >>> runtime = create_runtime(BootforgeSettings(runtime="cli"))
    >>> runtime.runtime_name
    'docker-cli'
"""

from __future__ import annotations

from typing import Any

from bootforge.core.errors import BootforgeError, ErrorCategory
from bootforge.core.logging import get_logger
from bootforge.core.settings import BootforgeSettings, RuntimeKind
from bootforge.runtimes._types import ContainerRuntime

logger = get_logger(__name__)


def create_runtime(
    settings: BootforgeSettings,
    *,
    client: Any | None = None,
) -> ContainerRuntime:
    """Build the runtime selected by ``settings.runtime``.

    Args:
        settings: Resolved settings.
        client: Pre-built ``docker.DockerClient`` for the API strategy. When
            None, one is created from settings.

    Raises:
        LaunchError: API strategy selected and the daemon is unreachable.
    """
    kind = RuntimeKind(settings.runtime)
    if kind is RuntimeKind.API:
        from bootforge.runtimes.docker_api import DockerApiRuntime, create_docker_client

        runtime: ContainerRuntime = DockerApiRuntime(client or create_docker_client(settings))
    elif kind is RuntimeKind.CLI:
        from bootforge.runtimes.docker_cli import DockerCliRuntime

        runtime = DockerCliRuntime(settings.docker_binary)
    else:  # pragma: no cover - RuntimeKind is exhaustive
        raise BootforgeError(f"Unknown runtime {kind!r}", category=ErrorCategory.CONFIG)

    logger.debug("runtime.selected", runtime=runtime.runtime_name)
    return runtime

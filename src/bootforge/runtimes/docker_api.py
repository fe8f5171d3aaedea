"""Docker Engine API runtime — runs containers through the docker SDK.

Talks to the daemon over its programmatic interface:

    .. code-block:: text

        DockerApiRuntime.run(spec)
          ├── containers.create(image, command, environment, volumes, privileged)
          │     └── failure → LaunchError
          ├── try:
          │     ├── container.start()       failure → ContainerRuntimeError
          │     ├── container.wait()        failure → ContainerRuntimeError
          │     ├── StatusCode != 0 → DiagnosticsCollector.collect(container)
          │     └── return CompletionResult
          └── finally:
                └── container.remove(force=True)   best-effort, logged

The client is constructed once by the caller (see
:func:`create_docker_client`) and passed in; this module never reads the
environment on its own.

Example:
    >>> client = create_docker_client(get_settings())
    >>> runtime = DockerApiRuntime(client)
    >>> result = runtime.run(spec)
    >>> result.exit_code
    0
"""

from __future__ import annotations

from typing import Any

import docker
from docker.errors import DockerException, ImageNotFound, NotFound
from requests.exceptions import RequestException

from bootforge.core.errors import ContainerRuntimeError, ErrorContext, LaunchError
from bootforge.core.logging import get_logger
from bootforge.core.settings import BootforgeSettings
from bootforge.runtimes._base import BaseContainerRuntime
from bootforge.runtimes._types import CompletionResult, ContainerSpec, RuntimeHealth
from bootforge.runtimes.diagnostics import DiagnosticsCollector

logger = get_logger(__name__)

# Transport failures surface as requests exceptions, daemon-side ones as DockerException.
_DOCKER_ERRORS = (DockerException, RequestException)


def create_docker_client(settings: BootforgeSettings) -> docker.DockerClient:
    """Build the process-wide docker client from settings.

    Raises:
        LaunchError: If the daemon cannot be reached.
    """
    try:
        if settings.docker_host:
            return docker.DockerClient(
                base_url=settings.docker_host,
                timeout=settings.docker_timeout,
            )
        return docker.from_env(timeout=settings.docker_timeout)
    except _DOCKER_ERRORS as exc:
        raise LaunchError(
            f"Cannot connect to the Docker daemon: {exc}",
            context=ErrorContext(runtime=DockerApiRuntime.runtime_name),
            cause=exc,
        ) from exc


class DockerApiRuntime(BaseContainerRuntime):
    """Runs one container per call via the docker SDK.

    Args:
        client: A ``docker.DockerClient`` (shared, created once per process).
        diagnostics: Collector used after non-zero exits.
    """

    runtime_name = "docker-api"

    def __init__(
        self,
        client: docker.DockerClient,
        *,
        diagnostics: DiagnosticsCollector | None = None,
    ) -> None:
        self._client = client
        self._diagnostics = diagnostics or DiagnosticsCollector()

    def _do_run(self, spec: ContainerSpec) -> CompletionResult:
        context = ErrorContext(image=spec.image, runtime=self.runtime_name)
        container = self._create(spec, context)
        context.container_id = container.id

        try:
            logger.info(
                "container.created",
                container_id=container.id,
                image=spec.image,
                cmd=list(spec.args),
                binds=spec.bind_strings,
            )

            try:
                container.start()
            except _DOCKER_ERRORS as exc:
                raise ContainerRuntimeError(
                    f"Failed to start container for {spec.image}: {exc}",
                    context=context,
                    cause=exc,
                ) from exc

            try:
                status = container.wait()
            except _DOCKER_ERRORS as exc:
                raise ContainerRuntimeError(
                    f"Failed waiting for container of {spec.image}: {exc}",
                    context=context,
                    cause=exc,
                ) from exc

            exit_code = int(status.get("StatusCode", -1))
            if status.get("Error"):
                logger.warning("container.wait_error", container_id=container.id, error=status["Error"])

            output = None
            if exit_code != 0:
                logger.error("container.nonzero_exit", container_id=container.id, status=exit_code)
                output = self._diagnostics.collect(container)

            return CompletionResult(exit_code=exit_code, container_id=container.id, output=output)
        finally:
            self._remove(container)

    def _create(self, spec: ContainerSpec, context: ErrorContext) -> Any:
        try:
            return self._client.containers.create(
                image=spec.image,
                command=list(spec.args) or None,
                environment=spec.env_pairs or None,
                volumes=spec.bind_strings or None,
                privileged=spec.privileged,
            )
        except ImageNotFound as exc:
            logger.error("container.create_failed", image=spec.image, error=str(exc))
            raise LaunchError(
                f"Image {spec.image} not found",
                retryable=False,
                context=context,
                cause=exc,
            ) from exc
        except _DOCKER_ERRORS as exc:
            logger.error("container.create_failed", image=spec.image, error=str(exc))
            raise LaunchError(
                f"Error creating container for {spec.image}: {exc}",
                context=context,
                cause=exc,
            ) from exc
        except Exception as exc:
            logger.error("container.create_failed", image=spec.image, error=repr(exc))
            raise LaunchError(
                f"Unexpected failure creating container for {spec.image}: {exc}",
                retryable=False,
                context=context,
                cause=exc,
            ) from exc

    def _remove(self, container: Any) -> None:
        """Remove the container. Best-effort: failures are logged, never raised."""
        try:
            container.remove(force=True)
            logger.debug("container.removed", container_id=container.id)
        except NotFound:
            logger.debug("container.already_removed", container_id=container.id)
        except _DOCKER_ERRORS as exc:
            logger.warning("container.remove_failed", container_id=container.id, error=str(exc))

    def _do_health(self) -> RuntimeHealth:
        self._client.ping()
        version = self._client.version().get("Version")
        return RuntimeHealth(healthy=True, runtime=self.runtime_name, version=version)

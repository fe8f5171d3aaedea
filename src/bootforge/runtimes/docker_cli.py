"""Docker CLI runtime — runs containers via ``docker run --rm`` subprocesses.

Fallback strategy for hosts where the Engine API socket is not reachable
from Python but a ``docker`` CLI (Docker Desktop, Podman's docker shim,
Colima, CI runners) is on PATH.

    .. code-block:: text

        ContainerSpec field   │ docker run argument
        ──────────────────────┼──────────────────────────────
        (always)              │ run --rm
        privileged            │ --privileged
        binds (in order)      │ -v host:container ...
        env                   │ -e KEY=VALUE ...
        image                 │ image
        args                  │ args... (after the image)

Cleanup is delegated to docker's own ``--rm``: the container is removed
when it exits, so there is no explicit removal step.

Exit codes:
    - 0          → success
    - 125        → docker itself failed (daemon unreachable, bad image,
                   invalid flags): LaunchError
    - anything   → the container's own exit status, returned in
      else         CompletionResult with the captured combined output
"""

from __future__ import annotations

import dataclasses
import shlex
import shutil
import subprocess

from bootforge.core.errors import ErrorContext, LaunchError
from bootforge.core.logging import get_logger
from bootforge.runtimes._base import BaseContainerRuntime
from bootforge.runtimes._types import (
    CompletionResult,
    ContainerSpec,
    RuntimeHealth,
    redact_env,
)

logger = get_logger(__name__)

# ``docker run`` reserves 125 for errors of the docker client/daemon itself.
DOCKER_RUN_ERROR = 125


def build_command(spec: ContainerSpec, docker_binary: str = "docker") -> list[str]:
    """Synthesize the ``docker run`` command line for ``spec``.

    Example:
        >>> build_command(ContainerSpec(image="alpine", args=("true",), privileged=True))
        ['docker', 'run', '--rm', '--privileged', 'alpine', 'true']
    """
    cmd = [docker_binary, "run", "--rm"]
    if spec.privileged:
        cmd.append("--privileged")
    for bind in spec.bind_strings:
        cmd.extend(["-v", bind])
    for pair in spec.env_pairs:
        cmd.extend(["-e", pair])
    cmd.append(spec.image)
    cmd.extend(spec.args)
    return cmd


class DockerCliRuntime(BaseContainerRuntime):
    """Runs one container per call with the ``docker`` CLI.

    Args:
        docker_binary: Executable name (looked up on PATH) or absolute path.
    """

    runtime_name = "docker-cli"

    def __init__(self, docker_binary: str = "docker") -> None:
        self.docker_binary = docker_binary

    def _find_docker(self) -> str:
        """Resolve the docker CLI binary."""
        docker = shutil.which(self.docker_binary)
        if docker is None:
            raise LaunchError(
                f"Docker CLI {self.docker_binary!r} not found on PATH",
                retryable=False,
                context=ErrorContext(runtime=self.runtime_name),
            )
        return docker

    def _do_run(self, spec: ContainerSpec) -> CompletionResult:
        context = ErrorContext(image=spec.image, runtime=self.runtime_name)
        cmd = build_command(spec, self._find_docker())

        redacted = dataclasses.replace(spec, env=redact_env(spec.env))
        logger.debug("docker.exec", cmd=shlex.join(build_command(redacted, self.docker_binary)))

        try:
            proc = subprocess.run(  # noqa: S603
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                check=False,
            )
        except OSError as exc:
            raise LaunchError(
                f"Failed to execute docker for {spec.image}: {exc}",
                context=context,
                cause=exc,
            ) from exc

        if proc.returncode == DOCKER_RUN_ERROR:
            output = proc.stdout.decode("utf-8", errors="replace").strip()
            raise LaunchError(
                f"running container {spec.image}: docker exited {DOCKER_RUN_ERROR}: {output}",
                context=context,
            )

        output = proc.stdout if proc.returncode != 0 else None
        return CompletionResult(exit_code=proc.returncode, output=output)

    def _do_health(self) -> RuntimeHealth:
        proc = subprocess.run(  # noqa: S603
            [self._find_docker(), "version", "--format", "{{.Server.Version}}"],
            capture_output=True,
            text=True,
            timeout=10,
            check=False,
        )
        if proc.returncode != 0:
            return RuntimeHealth(
                healthy=False,
                runtime=self.runtime_name,
                message=proc.stderr.strip() or f"docker version exited {proc.returncode}",
            )
        return RuntimeHealth(healthy=True, runtime=self.runtime_name, version=proc.stdout.strip())

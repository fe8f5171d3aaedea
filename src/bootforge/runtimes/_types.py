"""Container runtime types and protocol.

This module defines what a single containerized invocation looks like and
the contract every invocation strategy satisfies:

- ContainerSpec: image, args, bind mounts, privilege flag, env
- BindMount: one ``host:container`` pair
- CompletionResult: exit code (plus diagnostics when non-zero)
- RuntimeHealth: runtime reachability check result
- ContainerRuntime: protocol with ``run(spec)`` and ``health()``

Architecture:

    .. code-block:: text

        ContainerSpec ──► ContainerRuntime.run() ──► CompletionResult
                              │
                ┌─────────────┴──────────────┐
                ▼                            ▼
        DockerApiRuntime              DockerCliRuntime
        (docker SDK: create →         (docker run --rm ...
         start → wait → logs →         as a child process)
         remove)

    Both strategies honour the same contract: one container per ``run()``,
    always cleaned up, non-zero exits returned (not raised) together with
    whatever combined output could be recovered.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable


# ---------------------------------------------------------------------------
# Spec
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class BindMount:
    """A host directory bound into the container's filesystem.

    Example:
        >>> BindMount("/tmp/stage1234", "/opt/vol/").as_bind()
        '/tmp/stage1234:/opt/vol/'
    """

    host_path: str
    container_path: str

    def as_bind(self) -> str:
        """Render in docker's ``host:container`` notation."""
        return f"{self.host_path}:{self.container_path}"

    @classmethod
    def parse(cls, value: str) -> BindMount:
        """Parse ``host:container`` notation."""
        host, sep, container = value.partition(":")
        if not sep or not host or not container:
            raise ValueError(f"Bind mount must look like 'host:container', got {value!r}")
        return cls(host_path=host, container_path=container)


@dataclass(frozen=True)
class ContainerSpec:
    """Everything needed to launch one container.

    Built once per invocation and never reused. ``binds`` order is kept
    exactly as given; ``env`` order carries no meaning.

    Example:
        >>> spec = ContainerSpec(
        ...     image="projectunik/boot-creator",
        ...     args=("-d", "/opt/vol/", "-p", "program.bin", "-a", "console=ttyS0"),
        ...     binds=(BindMount("/tmp/stage1234", "/opt/vol/"), BindMount("/dev/", "/dev/")),
        ...     privileged=True,
        ... )
    """

    image: str
    args: tuple[str, ...] = ()
    binds: tuple[BindMount, ...] = ()
    privileged: bool = False
    env: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.image:
            raise ValueError("ContainerSpec.image must not be empty")
        # Accept lists from callers; store tuples so the instance stays immutable.
        object.__setattr__(self, "args", tuple(self.args))
        object.__setattr__(
            self,
            "binds",
            tuple(b if isinstance(b, BindMount) else BindMount.parse(b) for b in self.binds),
        )
        object.__setattr__(self, "env", dict(self.env))

    @property
    def bind_strings(self) -> list[str]:
        """Binds in ``host:container`` notation, in caller order."""
        return [b.as_bind() for b in self.binds]

    @property
    def env_pairs(self) -> list[str]:
        """Environment as ``KEY=VALUE`` strings."""
        return [f"{key}={value}" for key, value in self.env.items()]


def container_spec(
    image: str,
    args: Iterable[str] | None = None,
    binds: Iterable[BindMount | str] | None = None,
    *,
    privileged: bool = False,
    env: Mapping[str, str] | None = None,
) -> ContainerSpec:
    """Build a :class:`ContainerSpec`, accepting ``host:container`` strings for binds."""
    return ContainerSpec(
        image=image,
        args=tuple(args or ()),
        binds=tuple(binds or ()),
        privileged=privileged,
        env=dict(env or {}),
    )


_SECRET_KEY = re.compile(r"(PASSWORD|PASSWD|TOKEN|SECRET|KEY|CREDENTIAL)", re.IGNORECASE)


def redact_env(env: Mapping[str, str]) -> dict[str, str]:
    """Mask values of env vars that look like credentials, for logging."""
    return {
        key: ("***" if _SECRET_KEY.search(key) else value)
        for key, value in env.items()
    }


def describe_spec(spec: ContainerSpec) -> dict[str, Any]:
    """Log-safe view of a spec."""
    return {
        "image": spec.image,
        "cmd": list(spec.args),
        "binds": spec.bind_strings,
        "privileged": spec.privileged,
        "env": redact_env(spec.env),
    }


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CompletionResult:
    """Final status of one container run.

    ``output`` is only populated for non-zero exits: it holds the
    container's combined stdout/stderr, or None when it could not be
    retrieved.
    """

    exit_code: int
    container_id: str | None = None
    output: bytes | None = None

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0

    @property
    def output_text(self) -> str | None:
        """``output`` decoded for display."""
        if self.output is None:
            return None
        return self.output.decode("utf-8", errors="replace")


@dataclass(frozen=True)
class RuntimeHealth:
    """Runtime health check result."""

    healthy: bool
    runtime: str
    version: str | None = None
    message: str | None = None
    latency_ms: float | None = None


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------

@runtime_checkable
class ContainerRuntime(Protocol):
    """Protocol for container invocation strategies.

    ``run`` launches exactly one container, blocks until it terminates and
    guarantees the container is removed before returning, whatever happens.

    Raises (from ``run``):
        LaunchError: runtime unreachable or container creation failed.
        ContainerRuntimeError: start or wait failed.
    """

    @property
    def runtime_name(self) -> str:
        """Unique name for this strategy (``docker-api``, ``docker-cli``)."""
        ...

    def run(self, spec: ContainerSpec) -> CompletionResult:
        """Launch ``spec``, wait for it, and report how it ended."""
        ...

    def health(self) -> RuntimeHealth:
        """Check runtime reachability. Never raises."""
        ...

"""Compile recipe — run a compiler image against a host source folder.

Compiler images read sources from ``/opt/code`` and leave their output
there; their entrypoint decides what to run, so no arguments are passed.
They run unprivileged: only the boot-creator recipe gets device access.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from pathlib import Path

from bootforge.core.errors import ErrorContext, StagingError
from bootforge.runtimes._types import BindMount, CompletionResult, ContainerRuntime
from bootforge.runtimes.invoke import run_container

CODE_DIR = "/opt/code"


def parse_env_pairs(pairs: Iterable[str]) -> dict[str, str]:
    """Turn ``KEY=VALUE`` strings into a mapping.

    >>> parse_env_pairs(["ARCH=x86_64", "OPTS=a=b"])
    {'ARCH': 'x86_64', 'OPTS': 'a=b'}
    """
    env: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise ValueError(f"Environment entry must look like KEY=VALUE, got {pair!r}")
        env[key] = value
    return env


def compile_in_container(
    runtime: ContainerRuntime,
    image: str,
    source_dir: str | Path,
    env: Mapping[str, str] | Iterable[str] | None = None,
) -> CompletionResult:
    """Run compiler ``image`` with ``source_dir`` bound at ``/opt/code``.

    Raises:
        StagingError: ``source_dir`` is not a directory.
        LaunchError: The container could not be created.
        ContainerRuntimeError: Start/wait failed or the compiler exited non-zero.
    """
    source_dir = Path(source_dir).resolve()
    if not source_dir.is_dir():
        raise StagingError(
            f"Source folder {source_dir} does not exist",
            context=ErrorContext(image=image),
        )

    if env is None:
        env_map: dict[str, str] = {}
    elif isinstance(env, Mapping):
        env_map = dict(env)
    else:
        env_map = parse_env_pairs(env)

    return run_container(
        runtime,
        image,
        binds=[BindMount(str(source_dir), CODE_DIR)],
        privileged=False,
        env=env_map,
    )

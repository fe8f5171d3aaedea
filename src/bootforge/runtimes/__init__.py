"""Container runtimes for bootforge.

This package contains the runtime protocol, its types, and the two
interchangeable invocation strategies.

Architecture:

    .. code-block:: text

        bootforge.runtimes
        ├── __init__.py      ← Public API (this file)
        ├── _types.py        ← ContainerRuntime protocol + spec/result types
        ├── _base.py         ← BaseContainerRuntime (logging, error wrapping)
        ├── docker_api.py    ← DockerApiRuntime (docker SDK)
        ├── docker_cli.py    ← DockerCliRuntime (docker run --rm)
        ├── diagnostics.py   ← DiagnosticsCollector (logs after non-zero exit)
        ├── factory.py       ← create_runtime (selection by settings)
        └── invoke.py        ← run_container (raise on non-zero exit)

The ``docker`` SDK is only imported when the API strategy is used.
"""

from bootforge.runtimes._base import BaseContainerRuntime
from bootforge.runtimes._types import (
    BindMount,
    CompletionResult,
    ContainerRuntime,
    ContainerSpec,
    RuntimeHealth,
    container_spec,
    describe_spec,
    redact_env,
)
from bootforge.runtimes.docker_cli import DockerCliRuntime, build_command
from bootforge.runtimes.factory import create_runtime
from bootforge.runtimes.invoke import check_completion, run_container

__all__ = [
    # Types & Protocol
    "BindMount",
    "CompletionResult",
    "ContainerRuntime",
    "ContainerSpec",
    "RuntimeHealth",
    # Utilities
    "build_command",
    "container_spec",
    "describe_spec",
    "redact_env",
    # Runtimes
    "BaseContainerRuntime",
    "DockerCliRuntime",
    "create_runtime",
    # Invocation
    "check_completion",
    "run_container",
]

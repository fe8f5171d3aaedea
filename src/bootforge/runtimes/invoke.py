"""One-call container invocation that raises on non-zero exit.

``run_container`` is the helper recipes use: it assembles a
:class:`ContainerSpec`, runs it on the given runtime and turns a non-zero
exit into a :class:`ContainerRuntimeError` carrying the container's output.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from bootforge.core.errors import ContainerRuntimeError, ErrorContext
from bootforge.runtimes._types import (
    BindMount,
    CompletionResult,
    ContainerRuntime,
    ContainerSpec,
    container_spec,
)


def check_completion(
    result: CompletionResult,
    spec: ContainerSpec,
    *,
    runtime: str | None = None,
) -> CompletionResult:
    """Raise ContainerRuntimeError if ``result`` is a non-zero exit."""
    if result.succeeded:
        return result
    raise ContainerRuntimeError(
        f"Container {spec.image} returned non zero status",
        exit_code=result.exit_code,
        diagnostics=result.output_text,
        context=ErrorContext(
            image=spec.image,
            container_id=result.container_id,
            runtime=runtime,
        ),
    )


def run_container(
    runtime: ContainerRuntime,
    image: str,
    args: Iterable[str] | None = None,
    binds: Iterable[BindMount | str] | None = None,
    *,
    privileged: bool = False,
    env: Mapping[str, str] | None = None,
) -> CompletionResult:
    """Run ``image`` to completion on ``runtime``.

    Raises:
        LaunchError: The container could not be created.
        ContainerRuntimeError: Start/wait failed, or the exit code was non-zero.
    """
    spec = container_spec(image, args, binds, privileged=privileged, env=env)
    result = runtime.run(spec)
    return check_completion(result, spec, runtime=runtime.runtime_name)

"""Boot-creator recipe — compiled kernel in, bootable disk image out.

The builder image is an opaque collaborator. Its whole contract is:

    boot-creator -d <contextDir> -p <kernelFileName> -a <cmdline>
        → writes <contextDir>/vol.img on success

Pipeline:

    .. code-block:: text

        STAGED ──► RUNNING ──┬──► SUCCEEDED        (exit 0, vol.img moved out)
                             ├──► FAILED_NON_ZERO  (ContainerRuntimeError + logs)
                             ├──► FAILED_NO_ARTIFACT (exit 0 but no vol.img)
                             └──► FAILED_LAUNCH    (create/start/wait failed)
                                        │
                 any state after STAGED ┴──► CLEANED (staging removed, always)

    Host                                   Container (privileged)
    ────                                   ──────────────────────
    <tmp>/stageXXXX/program.bin    ──►     /opt/vol/program.bin
    /dev/                          ──►     /dev/
    <tmp>/stageXXXX/vol.img        ◄──     /opt/vol/vol.img
        │
        └── moved to <tmp>/bootforge-XXXX.img before teardown

Example:
    >>> runtime = create_runtime(settings)
    >>> builder = BootImageBuilder(runtime, settings)
    >>> result = builder.build(BuildRequest(Path("/tmp/k.bin"), "console=ttyS0"))
    >>> result.image_path
    PosixPath('/tmp/bootforge/bootforge-q1w2e3.img')
"""

from __future__ import annotations

import os
import shutil
import tempfile
import uuid
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any

from bootforge.build.staging import StagingArea, staged
from bootforge.core.errors import (
    ContainerRuntimeError,
    ErrorContext,
    LaunchError,
    StagingError,
)
from bootforge.core.logging import get_logger
from bootforge.core.settings import BootforgeSettings, get_settings
from bootforge.runtimes._types import BindMount, ContainerRuntime, ContainerSpec
from bootforge.runtimes.invoke import check_completion

logger = get_logger(__name__)

CONTEXT_DIR = "/opt/vol/"
VOLUME_IMAGE_NAME = "vol.img"


class BuildState(str, Enum):
    """Lifecycle of one boot image build."""

    STAGED = "staged"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED_NON_ZERO = "failed_non_zero"
    FAILED_LAUNCH = "failed_launch"
    FAILED_NO_ARTIFACT = "failed_no_artifact"
    CLEANED = "cleaned"


_FAILED_STATES = frozenset(
    {BuildState.FAILED_LAUNCH, BuildState.FAILED_NON_ZERO, BuildState.FAILED_NO_ARTIFACT}
)


@dataclass(frozen=True)
class BuildRequest:
    """Input to one build."""

    kernel_path: Path
    cmdline: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "kernel_path", Path(self.kernel_path))


@dataclass(frozen=True)
class BuildResult:
    """Output of a successful build. ``image_path`` belongs to the caller."""

    image_path: Path
    exit_code: int = 0


def boot_creator_spec(
    area: StagingArea,
    cmdline: str,
    *,
    image: str,
    device_dir: str = "/dev/",
) -> ContainerSpec:
    """The container spec realizing the boot-creator recipe for ``area``."""
    return ContainerSpec(
        image=image,
        args=("-d", CONTEXT_DIR, "-p", area.kernel_name, "-a", cmdline),
        binds=(
            BindMount(str(area.directory), CONTEXT_DIR),
            BindMount(device_dir, device_dir),
        ),
        # Raw device access is needed to partition and format the image.
        privileged=True,
    )


class BootImageBuilder:
    """Builds bootable images by running boot-creator on a container runtime.

    Holds no per-build state: every ``build()`` owns its staging area and
    container, so one builder may serve concurrent callers.

    Args:
        runtime: Container runtime (created once per process).
        settings: Supplies the builder image, device dir and temp dir.
        image: Override ``settings.boot_creator_image``.
        tmp_dir: Override ``settings.tmp_dir``.
    """

    def __init__(
        self,
        runtime: ContainerRuntime,
        settings: BootforgeSettings | None = None,
        *,
        image: str | None = None,
        tmp_dir: str | Path | None = None,
    ) -> None:
        settings = settings or get_settings()
        self.runtime = runtime
        self.image = image or settings.boot_creator_image
        self.device_dir = settings.host_device_dir
        self.tmp_dir = Path(tmp_dir) if tmp_dir else settings.tmp_dir

    def build(self, request: BuildRequest) -> BuildResult:
        """Build a bootable image from ``request.kernel_path``.

        Raises:
            StagingError: Staging or moving the artifact out failed.
            LaunchError: The builder container could not be created.
            ContainerRuntimeError: Start/wait failed, the builder exited
                non-zero (``diagnostics`` holds its output), or it exited 0
                without producing ``vol.img``.
        """
        log = logger.bind(
            build_id=uuid.uuid4().hex[:12],
            kernel=str(request.kernel_path),
            image=self.image,
        )
        area: StagingArea | None = None
        try:
            with staged(request.kernel_path, base_dir=self.tmp_dir) as area:
                self._transition(log, BuildState.STAGED, staging_dir=str(area.directory))
                return self._run(area, request, log)
        except (LaunchError, ContainerRuntimeError, StagingError) as exc:
            exc.with_context(kernel_path=str(request.kernel_path))
            if area is not None:
                exc.with_context(staging_dir=str(area.directory))
            raise
        finally:
            if area is not None:
                self._transition(log, BuildState.CLEANED)

    def _run(self, area: StagingArea, request: BuildRequest, log: Any) -> BuildResult:
        spec = boot_creator_spec(area, request.cmdline, image=self.image, device_dir=self.device_dir)

        self._transition(log, BuildState.RUNNING, runtime=self.runtime.runtime_name)
        try:
            result = self.runtime.run(spec)
        except (LaunchError, ContainerRuntimeError):
            self._transition(log, BuildState.FAILED_LAUNCH)
            raise

        if not result.succeeded:
            self._transition(log, BuildState.FAILED_NON_ZERO, exit_code=result.exit_code)
            check_completion(result, spec, runtime=self.runtime.runtime_name)

        produced = area.directory / VOLUME_IMAGE_NAME
        if not produced.is_file():
            self._transition(log, BuildState.FAILED_NO_ARTIFACT)
            raise ContainerRuntimeError(
                f"{spec.image} exited 0 but produced no {VOLUME_IMAGE_NAME}",
                exit_code=0,
                context=ErrorContext(image=spec.image, runtime=self.runtime.runtime_name),
            )

        image_path = self._take_artifact(produced, spec)
        self._transition(log, BuildState.SUCCEEDED, image_path=str(image_path))
        return BuildResult(image_path=image_path, exit_code=result.exit_code)

    def _take_artifact(self, produced: Path, spec: ContainerSpec) -> Path:
        """Move ``vol.img`` out of the staging area into a new temp file."""
        context = ErrorContext(image=spec.image)

        try:
            fd, name = tempfile.mkstemp(prefix="bootforge-", suffix=".img", dir=self.tmp_dir)
        except OSError as exc:
            raise StagingError(
                f"Failed to create result file: {exc}", context=context, cause=exc
            ) from exc
        os.close(fd)

        result_path = Path(name)
        try:
            shutil.move(str(produced), str(result_path))
        except OSError as exc:
            result_path.unlink(missing_ok=True)
            raise StagingError(
                f"Failed to move {VOLUME_IMAGE_NAME} out of staging area: {exc}",
                context=context,
                cause=exc,
            ) from exc
        return result_path

    @staticmethod
    def _transition(log: Any, state: BuildState, **fields: Any) -> None:
        level = log.error if state in _FAILED_STATES else log.info
        level("build.state", state=state.value, **fields)


def build_bootable_image(
    runtime: ContainerRuntime,
    kernel: str | Path,
    cmdline: str = "",
    *,
    settings: BootforgeSettings | None = None,
) -> Path:
    """Build a bootable image and return the path of the new image file."""
    builder = BootImageBuilder(runtime, settings)
    return builder.build(BuildRequest(Path(kernel), cmdline)).image_path

"""Staging areas — per-build scratch directories bound into the builder.

A staging area is created for exactly one build, holds the kernel under a
fixed name, and is removed when the build ends, whether it succeeded or
not:

    >>> with staged("/tmp/k.bin") as area:
    ...     area.kernel_path
    PosixPath('/tmp/bootforge/stage8f3k2a/program.bin')
    >>> area.directory.exists()
    False

Teardown never raises: a directory that cannot be removed is logged and
left behind rather than masking the build's own outcome.
"""

from __future__ import annotations

import shutil
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

from bootforge.core.errors import ErrorContext, StagingError
from bootforge.core.logging import get_logger

logger = get_logger(__name__)

KERNEL_FILE_NAME = "program.bin"


@dataclass(frozen=True)
class StagingArea:
    """A host directory owned by a single build."""

    directory: Path
    kernel_name: str = KERNEL_FILE_NAME

    @property
    def kernel_path(self) -> Path:
        return self.directory / self.kernel_name


def prepare(kernel_path: str | Path, *, base_dir: str | Path | None = None) -> StagingArea:
    """Create a fresh staging directory and copy the kernel into it.

    Args:
        kernel_path: Compiled kernel binary on the host.
        base_dir: Parent for the staging directory (created if missing).
            Defaults to the system temp dir.

    Raises:
        StagingError: The directory could not be created or the copy failed.
    """
    kernel_path = Path(kernel_path)
    context = ErrorContext(kernel_path=str(kernel_path))

    try:
        if base_dir is not None:
            Path(base_dir).mkdir(parents=True, exist_ok=True)
        directory = Path(tempfile.mkdtemp(prefix="stage", dir=base_dir))
    except OSError as exc:
        raise StagingError(
            f"Failed to create staging directory: {exc}",
            context=context,
            cause=exc,
        ) from exc

    area = StagingArea(directory=directory)
    context.staging_dir = str(directory)
    try:
        shutil.copyfile(kernel_path, area.kernel_path)
    except OSError as exc:
        teardown(area)
        raise StagingError(
            f"Failed to copy kernel {kernel_path} into staging area: {exc}",
            context=context,
            cause=exc,
        ) from exc

    logger.debug("staging.prepared", staging_dir=str(directory), kernel=str(kernel_path))
    return area


def teardown(area: StagingArea) -> None:
    """Recursively remove the staging directory. Idempotent, never raises."""
    if not area.directory.exists():
        return
    try:
        shutil.rmtree(area.directory)
        logger.debug("staging.removed", staging_dir=str(area.directory))
    except OSError as exc:
        logger.warning("staging.teardown_failed", staging_dir=str(area.directory), error=str(exc))


@contextmanager
def staged(kernel_path: str | Path, *, base_dir: str | Path | None = None) -> Iterator[StagingArea]:
    """Prepare a staging area and guarantee its teardown on every exit path."""
    area = prepare(kernel_path, base_dir=base_dir)
    try:
        yield area
    finally:
        teardown(area)

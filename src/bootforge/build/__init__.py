"""Build recipes: staging, the boot-creator recipe and the compile recipe."""

from bootforge.build.bootable import (
    BootImageBuilder,
    BuildRequest,
    BuildResult,
    BuildState,
    boot_creator_spec,
    build_bootable_image,
)
from bootforge.build.recipes import compile_in_container, parse_env_pairs
from bootforge.build.staging import StagingArea, prepare, staged, teardown

__all__ = [
    "BootImageBuilder",
    "BuildRequest",
    "BuildResult",
    "BuildState",
    "StagingArea",
    "boot_creator_spec",
    "build_bootable_image",
    "compile_in_container",
    "parse_env_pairs",
    "prepare",
    "staged",
    "teardown",
]

"""Tests for the boot-creator build pipeline.

Runs against ``FakeRuntime`` from conftest, which snapshots the staging
directory and writes ``vol.img`` the way boot-creator does.
"""

from __future__ import annotations

from unittest.mock import patch

import pytest
from structlog.testing import capture_logs

from bootforge.build.bootable import (
    BootImageBuilder,
    BuildRequest,
    BuildState,
    boot_creator_spec,
    build_bootable_image,
)
from bootforge.build.staging import StagingArea
from bootforge.core.errors import ContainerRuntimeError, LaunchError, StagingError


def _staging_dirs(settings):
    if not settings.tmp_dir.exists():
        return []
    return [p for p in settings.tmp_dir.iterdir() if p.name.startswith("stage")]


def _states(logs):
    return [e["state"] for e in logs if e["event"] == "build.state"]


class TestBootCreatorSpec:
    def test_recipe(self, tmp_path):
        area = StagingArea(directory=tmp_path / "stage1")
        spec = boot_creator_spec(area, "console=ttyS0", image="projectunik/boot-creator")

        assert spec.args == ("-d", "/opt/vol/", "-p", "program.bin", "-a", "console=ttyS0")
        assert spec.bind_strings == [f"{tmp_path / 'stage1'}:/opt/vol/", "/dev/:/dev/"]
        assert spec.privileged is True
        assert dict(spec.env) == {}

    def test_empty_cmdline_still_passed(self, tmp_path):
        spec = boot_creator_spec(StagingArea(tmp_path), "", image="img")
        assert spec.args[-2:] == ("-a", "")


class TestSuccessfulBuild:
    def test_spec_sent_to_runtime(self, fake_runtime, settings, kernel_file):
        BootImageBuilder(fake_runtime, settings).build(BuildRequest(kernel_file, "console=ttyS0"))

        (spec,) = fake_runtime.specs
        assert spec.image == "projectunik/boot-creator"
        assert spec.args == ("-d", "/opt/vol/", "-p", "program.bin", "-a", "console=ttyS0")
        host, container = spec.bind_strings[0].split(":")
        assert container == "/opt/vol/"
        assert host.startswith(str(settings.tmp_dir))
        assert spec.bind_strings[1] == "/dev/:/dev/"
        assert spec.privileged is True

    def test_staging_holds_only_the_kernel(self, fake_runtime, settings, kernel_file):
        BootImageBuilder(fake_runtime, settings).build(BuildRequest(kernel_file))
        assert fake_runtime.staged_files == [["program.bin"]]

    def test_result_survives_staging_teardown(self, fake_runtime, settings, kernel_file):
        result = BootImageBuilder(fake_runtime, settings).build(BuildRequest(kernel_file))

        assert result.exit_code == 0
        assert result.image_path.read_bytes() == b"BOOTABLE-DISK"
        assert result.image_path.parent == settings.tmp_dir
        assert result.image_path.name.startswith("bootforge-")
        assert result.image_path.suffix == ".img"
        assert _staging_dirs(settings) == []

    def test_each_build_gets_own_staging_and_result(self, fake_runtime, settings, kernel_file):
        builder = BootImageBuilder(fake_runtime, settings)
        first = builder.build(BuildRequest(kernel_file))
        second = builder.build(BuildRequest(kernel_file))

        assert first.image_path != second.image_path
        assert fake_runtime.specs[0].binds[0] != fake_runtime.specs[1].binds[0]

    def test_state_transitions(self, fake_runtime, settings, kernel_file):
        with capture_logs() as logs:
            BootImageBuilder(fake_runtime, settings).build(BuildRequest(kernel_file))

        assert _states(logs) == [
            BuildState.STAGED.value,
            BuildState.RUNNING.value,
            BuildState.SUCCEEDED.value,
            BuildState.CLEANED.value,
        ]

    def test_overrides(self, fake_runtime, settings, kernel_file, tmp_path):
        other_tmp = tmp_path / "elsewhere"
        builder = BootImageBuilder(fake_runtime, settings, image="my/boot-creator:dev", tmp_dir=other_tmp)
        result = builder.build(BuildRequest(kernel_file))

        assert fake_runtime.specs[0].image == "my/boot-creator:dev"
        assert result.image_path.parent == other_tmp

    def test_build_bootable_image_helper(self, fake_runtime, settings, kernel_file):
        path = build_bootable_image(fake_runtime, kernel_file, "quiet", settings=settings)
        assert path.read_bytes() == b"BOOTABLE-DISK"
        assert fake_runtime.specs[0].args[-1] == "quiet"


class TestFailedBuild:
    def test_nonzero_exit(self, fake_runtime, settings, kernel_file):
        fake_runtime.exit_code = 137
        fake_runtime.output = b"mkfs.ext2: No space left on device\n"

        with capture_logs() as logs, pytest.raises(ContainerRuntimeError) as exc_info:
            BootImageBuilder(fake_runtime, settings).build(BuildRequest(kernel_file))

        error = exc_info.value
        assert error.exit_code == 137
        assert "No space left on device" in error.diagnostics
        assert "returned non zero status" in error.message
        assert _staging_dirs(settings) == []
        assert _states(logs)[-2:] == [BuildState.FAILED_NON_ZERO.value, BuildState.CLEANED.value]

    def test_launch_failure(self, fake_runtime, settings, kernel_file):
        fake_runtime.error = LaunchError("Image projectunik/boot-creator not found", retryable=False)

        with capture_logs() as logs, pytest.raises(LaunchError):
            BootImageBuilder(fake_runtime, settings).build(BuildRequest(kernel_file))

        assert _staging_dirs(settings) == []
        assert _states(logs)[-2:] == [BuildState.FAILED_LAUNCH.value, BuildState.CLEANED.value]

    def test_wait_failure(self, fake_runtime, settings, kernel_file):
        fake_runtime.error = ContainerRuntimeError("Failed waiting for container")

        with pytest.raises(ContainerRuntimeError, match="Failed waiting"):
            BootImageBuilder(fake_runtime, settings).build(BuildRequest(kernel_file))

        assert _staging_dirs(settings) == []

    def test_exit_zero_without_image(self, fake_runtime, settings, kernel_file):
        fake_runtime.produce_image = False

        with pytest.raises(ContainerRuntimeError, match="produced no vol.img") as exc_info:
            BootImageBuilder(fake_runtime, settings).build(BuildRequest(kernel_file))

        assert exc_info.value.exit_code == 0
        assert _staging_dirs(settings) == []

    def test_missing_kernel_never_runs_container(self, fake_runtime, settings, tmp_path):
        with pytest.raises(StagingError):
            BootImageBuilder(fake_runtime, settings).build(BuildRequest(tmp_path / "nope.bin"))

        assert fake_runtime.specs == []

    def test_move_failure_leaves_no_result_file(self, fake_runtime, settings, kernel_file):
        with patch("bootforge.build.bootable.shutil.move", side_effect=OSError("cross-device")):
            with pytest.raises(StagingError, match="Failed to move vol.img"):
                BootImageBuilder(fake_runtime, settings).build(BuildRequest(kernel_file))

        assert list(settings.tmp_dir.iterdir()) == []

    def test_exit_zero_without_image_logs_failed_state(self, fake_runtime, settings, kernel_file):
        fake_runtime.produce_image = False

        with capture_logs() as logs, pytest.raises(ContainerRuntimeError):
            BootImageBuilder(fake_runtime, settings).build(BuildRequest(kernel_file))

        assert _states(logs)[-3:] == [
            BuildState.RUNNING.value,
            BuildState.FAILED_NO_ARTIFACT.value,
            BuildState.CLEANED.value,
        ]
        failed = [e for e in logs if e.get("state") == BuildState.FAILED_NO_ARTIFACT.value]
        assert failed[0]["log_level"] == "error"

    def test_staging_failure_logs_no_states(self, fake_runtime, settings, tmp_path):
        with capture_logs() as logs, pytest.raises(StagingError):
            BootImageBuilder(fake_runtime, settings).build(BuildRequest(tmp_path / "nope.bin"))

        assert _states(logs) == []

    def test_errors_carry_kernel_and_staging_dir(self, fake_runtime, settings, kernel_file):
        fake_runtime.exit_code = 1

        with pytest.raises(ContainerRuntimeError) as exc_info:
            BootImageBuilder(fake_runtime, settings).build(BuildRequest(kernel_file))

        context = exc_info.value.context
        assert context.kernel_path == str(kernel_file)
        assert context.staging_dir.startswith(str(settings.tmp_dir))
        assert context.container_id == "fake123"

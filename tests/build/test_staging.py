"""Tests for staging areas."""

from __future__ import annotations

from unittest.mock import patch

import pytest
from structlog.testing import capture_logs

from bootforge.build.staging import KERNEL_FILE_NAME, StagingArea, prepare, staged, teardown
from bootforge.core.errors import StagingError


class TestPrepare:
    def test_copies_kernel_under_fixed_name(self, kernel_file, tmp_path):
        area = prepare(kernel_file, base_dir=tmp_path / "work")

        assert area.directory.parent == tmp_path / "work"
        assert area.directory.name.startswith("stage")
        assert area.kernel_name == KERNEL_FILE_NAME == "program.bin"
        assert area.kernel_path.read_bytes() == b"\x7fELF-unikernel"
        assert sorted(p.name for p in area.directory.iterdir()) == ["program.bin"]

    def test_each_area_is_unique(self, kernel_file, tmp_path):
        first = prepare(kernel_file, base_dir=tmp_path)
        second = prepare(kernel_file, base_dir=tmp_path)
        assert first.directory != second.directory

    def test_missing_kernel_leaves_nothing_behind(self, tmp_path):
        base = tmp_path / "work"

        with pytest.raises(StagingError) as exc_info:
            prepare(tmp_path / "missing.bin", base_dir=base)

        assert list(base.iterdir()) == []
        assert exc_info.value.context.kernel_path.endswith("missing.bin")

    def test_mkdtemp_failure(self, kernel_file, tmp_path):
        with patch(
            "bootforge.build.staging.tempfile.mkdtemp", side_effect=PermissionError("read-only")
        ):
            with pytest.raises(StagingError, match="Failed to create staging directory"):
                prepare(kernel_file, base_dir=tmp_path)


class TestTeardown:
    def test_removes_recursively(self, kernel_file, tmp_path):
        area = prepare(kernel_file, base_dir=tmp_path)
        (area.directory / "vol.img").write_bytes(b"x")

        teardown(area)

        assert not area.directory.exists()

    def test_idempotent(self, tmp_path):
        area = StagingArea(directory=tmp_path / "gone")
        teardown(area)
        teardown(area)

    def test_failure_is_logged_not_raised(self, kernel_file, tmp_path):
        area = prepare(kernel_file, base_dir=tmp_path)

        with capture_logs() as logs, patch(
            "bootforge.build.staging.shutil.rmtree", side_effect=OSError("busy")
        ):
            teardown(area)

        assert logs[-1]["event"] == "staging.teardown_failed"
        assert logs[-1]["error"] == "busy"


class TestStagedContext:
    def test_removed_on_success(self, kernel_file, tmp_path):
        with staged(kernel_file, base_dir=tmp_path) as area:
            assert area.kernel_path.exists()
        assert not area.directory.exists()

    def test_removed_on_error(self, kernel_file, tmp_path):
        with pytest.raises(RuntimeError):
            with staged(kernel_file, base_dir=tmp_path) as area:
                raise RuntimeError("builder blew up")
        assert not area.directory.exists()

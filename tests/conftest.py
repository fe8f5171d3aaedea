"""
Shared pytest fixtures for bootforge tests.

This module provides:
- Isolated settings pointing at a per-test temp dir
- A kernel binary on disk
- ``FakeRuntime``: an in-memory ContainerRuntime that plays boot-creator
- ``docker_client``: a MagicMock shaped like ``docker.DockerClient``

No test needs a Docker daemon.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from unittest.mock import MagicMock

import pytest
import structlog

# Ensure bootforge is importable without installation
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from bootforge.core.settings import BootforgeSettings, get_settings
from bootforge.runtimes._types import CompletionResult, ContainerSpec, RuntimeHealth


# =============================================================================
# Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def _reset_global_state(monkeypatch):
    """Reset cached settings and logging configuration around every test."""
    for var in ("BOOTFORGE_RUNTIME", "BOOTFORGE_TMP_DIR", "BOOTFORGE_LOG_LEVEL"):
        monkeypatch.delenv(var, raising=False)
    get_settings.cache_clear()
    structlog.reset_defaults()
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    get_settings.cache_clear()
    structlog.reset_defaults()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def settings(tmp_path: Path) -> BootforgeSettings:
    """Settings whose temp dir lives inside the test's tmp_path."""
    return BootforgeSettings(_env_file=None, tmp_dir=tmp_path / "work")


@pytest.fixture
def kernel_file(tmp_path: Path) -> Path:
    """A fake compiled kernel."""
    path = tmp_path / "k.bin"
    path.write_bytes(b"\x7fELF-unikernel")
    return path


# =============================================================================
# Fake runtime
# =============================================================================


@dataclass
class FakeRuntime:
    """In-memory ContainerRuntime that behaves like boot-creator.

    On ``run`` it snapshots the staging directory bound at ``/opt/vol/``,
    optionally writes ``vol.img`` there, then returns ``exit_code`` with
    ``output``, or raises ``error`` if set.
    """

    exit_code: int = 0
    output: bytes | None = None
    produce_image: bool = True
    image_bytes: bytes = b"BOOTABLE-DISK"
    error: Exception | None = None
    runtime_name: str = "fake"

    specs: list[ContainerSpec] = field(default_factory=list)
    staged_files: list[list[str]] = field(default_factory=list)

    def run(self, spec: ContainerSpec) -> CompletionResult:
        self.specs.append(spec)
        context_dir = next(
            (Path(b.host_path) for b in spec.binds if b.container_path == "/opt/vol/"),
            None,
        )
        if context_dir is not None:
            self.staged_files.append(sorted(p.name for p in context_dir.iterdir()))
        if self.error is not None:
            raise self.error
        if self.produce_image and self.exit_code == 0 and context_dir is not None:
            (context_dir / "vol.img").write_bytes(self.image_bytes)
        output = self.output if self.exit_code != 0 else None
        return CompletionResult(exit_code=self.exit_code, container_id="fake123", output=output)

    def health(self) -> RuntimeHealth:
        return RuntimeHealth(healthy=True, runtime=self.runtime_name, version="0.0.0-fake")


@pytest.fixture
def fake_runtime() -> FakeRuntime:
    return FakeRuntime()


# =============================================================================
# Docker SDK mock
# =============================================================================


@pytest.fixture
def container() -> MagicMock:
    """A finished container that exited 0."""
    c = MagicMock(name="container")
    c.id = "3f2a9c7d1e00"
    c.short_id = "3f2a9c7d1e"
    c.wait.return_value = {"StatusCode": 0, "Error": None}
    c.logs.return_value = iter([b"creating partition table\n", b"mkfs failed\n"])
    return c


@pytest.fixture
def docker_client(container: MagicMock) -> MagicMock:
    """A docker.DockerClient whose containers.create returns ``container``."""
    client = MagicMock(name="docker_client")
    client.containers.create.return_value = container
    client.version.return_value = {"Version": "27.1.1"}
    return client

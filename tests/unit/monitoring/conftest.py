"""Shared fixtures for monitoring tests."""

import shutil
from pathlib import Path

import pytest
from file_monitor.config import MonitorConfig
from file_monitor.monitoring import FileMonitor, FileProber


class FileTree:
    """Helpers for creating and removing files below a test root."""

    def __init__(self, root: Path):
        self.root = root

    def write(self, name: str, contents: str) -> Path:
        path = self.root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(contents)
        return path

    def touch(self, name: str) -> Path:
        return self.write(name, "hello")

    def remove(self, name: str) -> None:
        (self.root / name).unlink()

    def remove_dir(self, name: str) -> None:
        shutil.rmtree(self.root / name)


@pytest.fixture
def root(tmp_path):
    """Monitored root directory, kept apart from the cache file."""
    path = tmp_path / "root"
    path.mkdir()
    return path


@pytest.fixture
def tree(root):
    return FileTree(root)


@pytest.fixture
def config():
    return MonitorConfig(_env_file=None)


@pytest.fixture
def prober(config):
    return FileProber(config)


@pytest.fixture
def monitor(tmp_path, config):
    return FileMonitor(tmp_path / "root.monitor", config=config)

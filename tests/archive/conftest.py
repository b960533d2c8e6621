"""Shared fixtures for archive tests."""

from pathlib import Path

import pytest

from rconf.archive.errors import CapabilityUnavailableError
from rconf.archive.paths import SystemDirs


class FakeManager:
    """Package manager hook that records calls instead of running anything."""

    def __init__(
        self,
        succeed: bool = True,
        can_uninstall: bool = True,
        can_upgrade: bool = True,
        error: Exception | None = None,
    ):
        self.succeed = succeed
        self.can_uninstall = can_uninstall
        self.can_upgrade = can_upgrade
        self.error = error
        self.calls: list[str] = []

    def install(self) -> bool:
        if self.error is not None:
            raise self.error
        self.calls.append("install")
        return self.succeed

    def uninstall(self) -> bool:
        if not self.can_uninstall:
            raise CapabilityUnavailableError("uninstall_args")
        self.calls.append("uninstall")
        return self.succeed

    def upgrade(self) -> bool:
        if not self.can_upgrade:
            raise CapabilityUnavailableError("upgrade_args")
        self.calls.append("upgrade")
        return self.succeed


@pytest.fixture
def dirs(tmp_path: Path) -> SystemDirs:
    """Fake filesystem root, home and config directories."""
    root = tmp_path / "root"
    home = tmp_path / "home"
    config = tmp_path / "home" / ".config"
    for directory in (root, home, config):
        directory.mkdir(parents=True, exist_ok=True)
    return SystemDirs(root=root, home=home, config=config)


@pytest.fixture
def fake_manager() -> FakeManager:
    return FakeManager()


@pytest.fixture
def make_manager():
    """Factory for FakeManager instances with custom behavior."""
    return FakeManager

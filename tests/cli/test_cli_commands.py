"""Integration tests for rconf CLI commands.

Tests the archive lifecycle commands:
1. archive
2. inspect
3. install
4. remove
"""

import os
import subprocess
import sys
import tarfile
from pathlib import Path

import pytest

from rconf.cli import main

PROJECT_ROOT = Path(__file__).resolve().parents[2]


@pytest.fixture
def fake_host(tmp_path):
    """Temporary home and config directories with a few dotfiles."""
    home = tmp_path / "home"
    config = tmp_path / "xdg"
    (config / "git").mkdir(parents=True)
    home.mkdir(exist_ok=True)
    (home / ".bashrc").write_text("export EDITOR=nvim\n")
    (config / "git" / "config").write_text("[user]\n\tname = Test\n")
    return {"home": home, "config": config}


@pytest.fixture
def manifest_file(tmp_path):
    """Manifest selecting the fake host's dotfiles."""
    path = tmp_path / "manifest.yaml"
    path.write_text("path_specifier:\n  home: [.bashrc]\n  config: [git]\n")
    return path


@pytest.fixture
def host_env(fake_host):
    return {
        "RCONF_HOME_DIR": str(fake_host["home"]),
        "RCONF_CONFIG_DIR": str(fake_host["config"]),
    }


def run_cli(*args, env=None):
    """Run rconf CLI command and return result."""
    cmd = [sys.executable, "-m", "rconf.cli"] + list(args)

    full_env = os.environ.copy()
    full_env["PYTHONPATH"] = os.pathsep.join(
        p for p in (str(PROJECT_ROOT), full_env.get("PYTHONPATH")) if p
    )
    if env is not None:
        full_env.update(env)

    result = subprocess.run(cmd, capture_output=True, text=True, env=full_env, timeout=30)
    return result


class TestArchiveCommand:
    """Tests for 'rconf archive' command."""

    def test_archive_basic(self, tmp_path, manifest_file, host_env):
        dest = tmp_path / "out"
        result = run_cli(
            "archive", "--file", str(manifest_file), "--dest", str(dest), "dotfiles", env=host_env
        )

        assert result.returncode == 0, result.stderr
        archive_path = dest / "dotfiles.tar"
        assert archive_path.exists()
        with tarfile.open(archive_path) as tar:
            names = tar.getnames()
        assert names == [".rconf", "install.sh", "home/.bashrc", "config/git", "config/git/config"]

    def test_archive_default_manifest(self, tmp_path, fake_host, host_env):
        (fake_host["config"] / ".rconf").write_text("path_specifier:\n  home: [.bashrc]\n")

        result = run_cli("archive", "--dest", str(tmp_path), "backup", env=host_env)

        assert result.returncode == 0, result.stderr
        assert (tmp_path / "backup.tar").exists()

    def test_archive_compressed_without_script(self, tmp_path, manifest_file, host_env):
        result = run_cli(
            "archive",
            "-f",
            str(manifest_file),
            "-d",
            str(tmp_path),
            "-z",
            "gz",
            "--no-script",
            "dotfiles.tar.gz",
            env=host_env,
        )

        assert result.returncode == 0, result.stderr
        archive_path = tmp_path / "dotfiles.tar.gz"
        with tarfile.open(archive_path, "r:gz") as tar:
            assert "install.sh" not in tar.getnames()

    def test_archive_missing_manifest(self, tmp_path, host_env):
        result = run_cli(
            "archive", "--file", str(tmp_path / "missing.yaml"), "--dest", str(tmp_path), "x",
            env=host_env,
        )

        assert result.returncode == 1
        assert "missing.yaml" in result.stderr

    def test_archive_missing_path(self, tmp_path, fake_host, manifest_file, host_env):
        (fake_host["home"] / ".bashrc").unlink()

        result = run_cli(
            "archive", "--file", str(manifest_file), "--dest", str(tmp_path), "x", env=host_env
        )

        assert result.returncode == 1
        assert ".bashrc" in result.stderr

    def test_archive_requires_title(self):
        result = run_cli("archive")
        assert result.returncode != 0


class TestInstallAndRemove:
    """Tests for 'rconf install', 'rconf inspect' and 'rconf remove'."""

    @pytest.fixture
    def archive_path(self, tmp_path, manifest_file, host_env):
        result = run_cli(
            "archive", "--file", str(manifest_file), "--dest", str(tmp_path), "dotfiles",
            env=host_env,
        )
        assert result.returncode == 0, result.stderr
        return tmp_path / "dotfiles.tar"

    def test_install_onto_new_host(self, tmp_path, archive_path):
        new_home = tmp_path / "new-home"
        new_config = tmp_path / "new-xdg"
        env = {"RCONF_HOME_DIR": str(new_home), "RCONF_CONFIG_DIR": str(new_config)}

        result = run_cli("install", str(archive_path), env=env)

        assert result.returncode == 0, result.stderr
        assert (new_home / ".bashrc").read_text() == "export EDITOR=nvim\n"
        assert (new_config / "git" / "config").read_text() == "[user]\n\tname = Test\n"

    def test_inspect(self, archive_path, fake_host, host_env):
        result = run_cli("inspect", str(archive_path), env=host_env)

        assert result.returncode == 0, result.stderr
        assert "Package manager: (none)" in result.stdout
        assert "Entries: 3" in result.stdout
        assert f"home/.bashrc -> {fake_host['home'] / '.bashrc'}" in result.stdout

    def test_remove_is_idempotent(self, archive_path, fake_host, host_env):
        first = run_cli("remove", str(archive_path), env=host_env)
        second = run_cli("remove", str(archive_path), env=host_env)

        assert first.returncode == 0, first.stderr
        assert second.returncode == 0, second.stderr
        assert not (fake_host["home"] / ".bashrc").exists()
        assert not (fake_host["config"] / "git").exists()

    def test_install_upgrade_without_manager(self, archive_path, host_env):
        result = run_cli("install", str(archive_path), "--upgrade", env=host_env)

        assert result.returncode == 1
        assert "manager" in result.stderr

    def test_install_archive_without_manifest(self, tmp_path, manifest_file, host_env):
        bare = tmp_path / "bare.tar"
        with tarfile.open(bare, "w") as tar:
            tar.add(manifest_file, arcname="home/manifest.yaml")

        result = run_cli("install", str(bare), env=host_env)

        assert result.returncode == 1
        assert "No manifest entry" in result.stderr


class TestMainInProcess:
    """Run main() directly to check exit handling."""

    def test_error_exits_with_status_1(self, tmp_path, monkeypatch, capsys):
        monkeypatch.setenv("RCONF_HOME_DIR", str(tmp_path))

        with pytest.raises(SystemExit) as exc_info:
            main(["install", str(tmp_path / "missing.tar")])

        assert exc_info.value.code == 1
        assert "missing.tar" in capsys.readouterr().err

    def test_archive_prints_path(self, tmp_path, manifest_file, host_env, monkeypatch, capsys):
        for name, value in host_env.items():
            monkeypatch.setenv(name, value)

        main(["archive", "-f", str(manifest_file), "-d", str(tmp_path), "backup"])

        assert capsys.readouterr().out.strip() == str(tmp_path / "backup.tar")

    def test_archive_compressed_title_with_tar_suffix(
        self, tmp_path, manifest_file, host_env, monkeypatch, capsys
    ):
        for name, value in host_env.items():
            monkeypatch.setenv(name, value)

        main(["archive", "-f", str(manifest_file), "-d", str(tmp_path), "-z", "gz", "backup.tar"])

        assert capsys.readouterr().out.strip() == str(tmp_path / "backup.tar.gz")
        assert not (tmp_path / "backup.tar.tar.gz").exists()

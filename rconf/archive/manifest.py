"""Manifest data model and operations.

The manifest describes which paths to back up and, optionally, which package
manager to drive when the archive is installed. It is stored as YAML, both as
a standalone file written by the user and as the first entry of every archive.
"""

import shlex
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from rconf.archive.errors import ArchiveIOError, InvalidPathError, ManifestParseError
from rconf.archive.specifier import PathSpecifier


def _arg_list(value: Any, field_name: str) -> list[str] | None:
    """Normalize an argument list; a plain string is split shell-style."""
    if value is None:
        return None
    if isinstance(value, str):
        return shlex.split(value)
    if isinstance(value, list) and all(isinstance(v, str) for v in value):
        return list(value)
    raise TypeError(f"'{field_name}' must be a string or a list of strings")


@dataclass
class ManagerConfig:
    """Package manager invocation settings.

    Attributes:
        name: Package manager executable (e.g. "pacman", "apt")
        packages: Packages the archived configs belong to
        install_args: Arguments placed before the packages to install them
        uninstall_args: Arguments placed before the packages to remove them
        upgrade_args: Arguments to upgrade the whole system
        reboot_after_upgrade: Whether a reboot is advised after upgrading
    """

    name: str
    packages: list[str]
    install_args: list[str]
    uninstall_args: list[str] | None = None
    upgrade_args: list[str] | None = None
    reboot_after_upgrade: bool = False

    def to_dict(self) -> dict[str, Any]:
        result = {
            "name": self.name,
            "packages": self.packages,
            "install_args": self.install_args,
        }
        if self.uninstall_args is not None:
            result["uninstall_args"] = self.uninstall_args
        if self.upgrade_args is not None:
            result["upgrade_args"] = self.upgrade_args
        if self.reboot_after_upgrade:
            result["reboot_after_upgrade"] = True
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ManagerConfig":
        """Create manager settings from dictionary.

        Raises:
            KeyError: If a required field is missing
            TypeError: If a field has the wrong type
        """
        name = data["name"]
        if not isinstance(name, str):
            raise TypeError("'name' must be a string")
        packages = _arg_list(data.get("packages", []), "packages")

        return cls(
            name=name,
            packages=packages,
            install_args=_arg_list(data.get("install_args", []), "install_args"),
            uninstall_args=_arg_list(data.get("uninstall_args"), "uninstall_args"),
            upgrade_args=_arg_list(data.get("upgrade_args"), "upgrade_args"),
            reboot_after_upgrade=bool(data.get("reboot_after_upgrade", False)),
        )


@dataclass(frozen=True)
class Manifest:
    """Archive manifest.

    Attributes:
        path_specifier: Paths to archive (optional)
        manager: Package manager settings (optional)
    """

    path_specifier: PathSpecifier | None = None
    manager: ManagerConfig | None = None

    def to_dict(self) -> dict[str, Any]:
        result = {}
        if self.path_specifier is not None:
            result["path_specifier"] = self.path_specifier.to_dict()
        if self.manager is not None:
            result["manager"] = self.manager.to_dict()
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Manifest":
        """Create manifest from dictionary.

        Raises:
            KeyError: If a required manager field is missing
            TypeError: If a section has the wrong shape
            InvalidPathError: If a configured path cannot be archived
        """
        unknown = set(data) - {"path_specifier", "manager"}
        if unknown:
            raise TypeError(f"Unknown manifest sections: {', '.join(sorted(unknown))}")

        specifier = data.get("path_specifier")
        manager = data.get("manager")
        for section, value in (("path_specifier", specifier), ("manager", manager)):
            if value is not None and not isinstance(value, dict):
                raise TypeError(f"'{section}' must be a mapping")

        return cls(
            path_specifier=PathSpecifier.from_dict(specifier) if specifier is not None else None,
            manager=ManagerConfig.from_dict(manager) if manager is not None else None,
        )


def parse_manifest(text: str) -> Manifest:
    """Parse manifest YAML.

    Args:
        text: YAML document

    Returns:
        Parsed Manifest (empty for an empty document)

    Raises:
        ManifestParseError: If the YAML is invalid or does not describe a manifest
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ManifestParseError(str(e)) from e

    if data is None:
        return Manifest()
    if not isinstance(data, dict):
        raise ManifestParseError("top level must be a mapping")

    try:
        return Manifest.from_dict(data)
    except KeyError as e:
        raise ManifestParseError(f"missing required field {e}") from e
    except (TypeError, InvalidPathError) as e:
        raise ManifestParseError(str(e)) from e


def dump_manifest(manifest: Manifest) -> str:
    """Serialize manifest to YAML."""
    return yaml.safe_dump(manifest.to_dict(), sort_keys=False, default_flow_style=False)


def load_manifest(path: Path) -> Manifest:
    """Load manifest from a YAML file.

    Raises:
        ArchiveIOError: If the file cannot be read
        ManifestParseError: If the file content is not a valid manifest
    """
    try:
        text = Path(path).read_text()
    except OSError as e:
        raise ArchiveIOError(f"{path}: {e.strerror or e}", path) from e

    return parse_manifest(text)


def save_manifest(manifest: Manifest, path: Path) -> None:
    """Write manifest to a YAML file, creating parent directories."""
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(dump_manifest(manifest))
    except OSError as e:
        raise ArchiveIOError(f"{path}: {e.strerror or e}", path) from e


def validate_manifest(manifest: Manifest) -> list[str]:
    """Check a manifest for settings that are legal but likely mistakes.

    Args:
        manifest: Manifest to check

    Returns:
        List of warning messages (empty if nothing stands out)
    """
    warnings = []

    if manifest.path_specifier is not None:
        seen = set()
        for path in manifest.path_specifier.enumerate_all():
            name = path.to_archive_relative()
            if name in seen:
                warnings.append(f"Duplicate path: {name}")
            seen.add(name)

            if path.is_ambiguous():
                warnings.append(
                    f"Absolute path /{path.relative} is stored as '{name}' and will be "
                    f"installed as a {path.relative.parts[0]} path"
                )

    if manifest.manager is not None:
        if not manifest.manager.name.strip():
            warnings.append("Package manager name is empty")
        if not manifest.manager.packages:
            warnings.append("Package manager configured without packages")

    return warnings

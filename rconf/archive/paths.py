"""Mapping between local filesystem paths and their portable archive names.

Every payload entry in a config archive belongs to one of three domains:

- absolute: stored with its root at the archive root
  (``/etc/gitconfig`` => ``etc/gitconfig``)
- home: stored under a ``home`` marker directory
  (``$HOME/.bashrc`` => ``home/.bashrc``)
- config: stored under a ``config`` marker directory
  (``$XDG_CONFIG_HOME/nvim`` => ``config/nvim``)

The home and config roots are resolved on the machine performing the install,
so an archive built on one host can be unpacked on another.
"""

import os
import sys
from dataclasses import dataclass
from enum import Enum
from pathlib import Path, PurePosixPath, PureWindowsPath

from rconf.archive.errors import DirectoryNotFoundError, InvalidPathError

MANIFEST_NAME = ".rconf"
SCRIPT_NAME = "install.sh"
RESERVED_NAMES = frozenset({MANIFEST_NAME, SCRIPT_NAME})


class PathKind(str, Enum):
    """Domain a configured path belongs to."""

    ABSOLUTE = "absolute"
    HOME = "home"
    CONFIG = "config"

    @property
    def marker(self) -> str:
        """Top-level archive directory for this domain ('' for absolute paths)."""
        return "" if self is PathKind.ABSOLUTE else self.value

    def __str__(self) -> str:
        return self.value


MARKERS = frozenset({PathKind.HOME.marker, PathKind.CONFIG.marker})


def _default_home() -> Path | None:
    try:
        return Path.home()
    except (RuntimeError, KeyError):
        return None


def _config_under(home: Path) -> Path:
    if sys.platform == "win32":
        return home / "AppData" / "Roaming"
    if sys.platform == "darwin":
        return home / "Library" / "Application Support"
    return home / ".config"


def _default_config() -> Path | None:
    if sys.platform == "win32":
        appdata = os.environ.get("APPDATA")
        return Path(appdata) if appdata else None

    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    if sys.platform != "darwin" and xdg_config and Path(xdg_config).is_absolute():
        return Path(xdg_config)

    home = _default_home()
    return _config_under(home) if home else None


@dataclass(frozen=True)
class SystemDirs:
    """Root directories that archive domains resolve against.

    Attributes:
        root: Root for absolute paths (the filesystem root by default)
        home: User home directory, None if it cannot be determined
        config: User configuration directory, None if it cannot be determined
    """

    root: Path = Path(os.sep)
    home: Path | None = None
    config: Path | None = None

    @classmethod
    def from_environment(
        cls, home: Path | None = None, config: Path | None = None
    ) -> "SystemDirs":
        """Resolve directories for the running host.

        Args:
            home: Explicit home directory, overriding detection
            config: Explicit config directory, overriding detection. When only
                home is given, the config directory is derived from it.

        Returns:
            SystemDirs for this host
        """
        if config is None:
            config = _config_under(home) if home is not None else _default_config()
        return cls(home=home or _default_home(), config=config)

    def root_for(self, kind: PathKind) -> Path:
        """Return the directory paths of the given kind are relative to.

        Raises:
            DirectoryNotFoundError: If the home or config directory is unknown
        """
        if kind is PathKind.ABSOLUTE:
            return self.root

        directory = self.home if kind is PathKind.HOME else self.config
        if directory is None:
            raise DirectoryNotFoundError(kind)
        return directory


@dataclass(frozen=True)
class ArchivePath:
    """A single payload entry: its domain plus a path relative to that domain's root.

    Attributes:
        kind: Domain of the path
        relative: Path relative to the domain root
    """

    kind: PathKind
    relative: PurePosixPath

    def __post_init__(self):
        relative = PurePosixPath(self.relative)
        object.__setattr__(self, "relative", relative)

        if not relative.parts:
            raise InvalidPathError(f"Empty {self.kind} path")
        if relative.is_absolute() or PureWindowsPath(relative.as_posix()).drive:
            raise InvalidPathError(f"Path must be relative to its {self.kind} root: {relative}")
        if ".." in relative.parts:
            raise InvalidPathError(f"Path escapes its {self.kind} root: {relative}")
        if self.to_archive_relative() in RESERVED_NAMES:
            raise InvalidPathError(f"Path collides with a reserved archive entry: {relative}")

    @classmethod
    def from_spec(cls, kind: PathKind, value: str) -> "ArchivePath":
        """Build from a path string as written in a manifest.

        Absolute paths lose their leading separator; home and config paths
        must already be relative to their directory.

        Raises:
            InvalidPathError: If the string cannot be stored in an archive
        """
        if kind is PathKind.ABSOLUTE:
            if not PurePosixPath(value).is_absolute():
                raise InvalidPathError(f"Absolute path expected: {value!r}")
            value = value.lstrip("/")
        elif PurePosixPath(value).is_absolute():
            raise InvalidPathError(f"{kind} path must be relative to the {kind} directory: {value!r}")

        return cls(kind, PurePosixPath(value))

    def to_archive_relative(self) -> str:
        """Name of this entry inside an archive."""
        if self.kind is PathKind.ABSOLUTE:
            return self.relative.as_posix()
        return (PurePosixPath(self.kind.marker) / self.relative).as_posix()

    def to_local_path(self, dirs: SystemDirs) -> Path:
        """Location of this entry on the local filesystem.

        Raises:
            DirectoryNotFoundError: If the domain root cannot be resolved
        """
        return dirs.root_for(self.kind).joinpath(*self.relative.parts)

    def is_ambiguous(self) -> bool:
        """True when the archive name would be read back as a different domain.

        An absolute path such as ``/home/user/.bashrc`` is stored as
        ``home/user/.bashrc``, which classifies as a home path.
        """
        return self.kind is PathKind.ABSOLUTE and self.relative.parts[0] in MARKERS


def classify_entry(name: str) -> ArchivePath | None:
    """Map an archive entry name back to its ArchivePath.

    Args:
        name: Entry name as stored in the archive

    Returns:
        ArchivePath for payload entries, None for reserved entries and the
        bare marker directories

    Raises:
        InvalidPathError: If the entry name is not a valid payload path
    """
    path = PurePosixPath(name)
    if path.is_absolute():
        path = path.relative_to(path.anchor)

    if not path.parts or path.as_posix() in RESERVED_NAMES:
        return None

    head = path.parts[0]
    if head in MARKERS:
        rest = path.relative_to(head)
        if not rest.parts:
            return None
        return ArchivePath(PathKind(head), rest)

    return ArchivePath(PathKind.ABSOLUTE, path)

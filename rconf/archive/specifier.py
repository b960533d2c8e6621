"""Backup selection grouped by path domain."""

from dataclasses import dataclass, field
from typing import Any

from rconf.archive.paths import ArchivePath, PathKind

# Archive entries are written in this order.
KIND_ORDER = (PathKind.ABSOLUTE, PathKind.HOME, PathKind.CONFIG)


@dataclass
class PathSpecifier:
    """Paths selected for backup, grouped by the root they are relative to.

    Attributes:
        absolute: Absolute paths (e.g. "/etc/pacman.conf")
        home: Paths relative to the home directory (e.g. ".bashrc")
        config: Paths relative to the config directory (e.g. "nvim")
    """

    absolute: list[str] = field(default_factory=list)
    home: list[str] = field(default_factory=list)
    config: list[str] = field(default_factory=list)

    def __post_init__(self):
        # Fails early so enumeration never has to
        self._paths = {
            kind: [ArchivePath.from_spec(kind, value) for value in self._values(kind)]
            for kind in KIND_ORDER
        }

    def _values(self, kind: PathKind) -> list[str]:
        return getattr(self, kind.value)

    def enumerate(self, kind: PathKind) -> list[ArchivePath]:
        """ArchivePaths for every configured path of one kind."""
        return list(self._paths[kind])

    def enumerate_all(self) -> list[ArchivePath]:
        """ArchivePaths for every configured path: absolute, then home, then config."""
        paths = []
        for kind in KIND_ORDER:
            paths.extend(self._paths[kind])
        return paths

    def is_empty(self) -> bool:
        return not any(self._paths.values())

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary, omitting empty groups."""
        return {kind.value: list(self._values(kind)) for kind in KIND_ORDER if self._values(kind)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PathSpecifier":
        """Create from dictionary; missing groups are empty.

        Raises:
            TypeError: If a group is not a list of strings
            InvalidPathError: If a path cannot be stored in an archive
        """
        unknown = set(data) - {kind.value for kind in KIND_ORDER}
        if unknown:
            raise TypeError(f"Unknown path groups: {', '.join(sorted(unknown))}")

        groups = {}
        for kind in KIND_ORDER:
            values = data.get(kind.value) or []
            if not isinstance(values, list) or not all(isinstance(v, str) for v in values):
                raise TypeError(f"'{kind.value}' must be a list of path strings")
            groups[kind.value] = values

        return cls(**groups)

"""Config archive system for rconf.

This module provides the path mapping between local files and archive entries,
the manifest model, and archive creation, installation and removal.
"""

from rconf.archive.distribution import archive_suffix, write_archive
from rconf.archive.errors import (
    ArchiveIOError,
    CapabilityUnavailableError,
    ConfigError,
    DirectoryNotFoundError,
    InvalidPathError,
    ManagerFailedError,
    ManifestMissingError,
    ManifestParseError,
)
from rconf.archive.installer import ArchiveState, ConfigArchive, remove_path
from rconf.archive.manager import Manager, PackageManager
from rconf.archive.manifest import (
    Manifest,
    ManagerConfig,
    dump_manifest,
    load_manifest,
    parse_manifest,
    save_manifest,
    validate_manifest,
)
from rconf.archive.paths import (
    MANIFEST_NAME,
    SCRIPT_NAME,
    ArchivePath,
    PathKind,
    SystemDirs,
    classify_entry,
)
from rconf.archive.script import build_script
from rconf.archive.specifier import PathSpecifier

__all__ = [
    # Paths
    "PathKind",
    "ArchivePath",
    "SystemDirs",
    "classify_entry",
    "MANIFEST_NAME",
    "SCRIPT_NAME",
    "PathSpecifier",
    # Manifest
    "Manifest",
    "ManagerConfig",
    "parse_manifest",
    "dump_manifest",
    "load_manifest",
    "save_manifest",
    "validate_manifest",
    # Package manager
    "Manager",
    "PackageManager",
    # Distribution
    "write_archive",
    "archive_suffix",
    "build_script",
    # Installation
    "ConfigArchive",
    "ArchiveState",
    "remove_path",
    # Errors
    "ConfigError",
    "ArchiveIOError",
    "ManifestParseError",
    "ManifestMissingError",
    "DirectoryNotFoundError",
    "ManagerFailedError",
    "CapabilityUnavailableError",
    "InvalidPathError",
]

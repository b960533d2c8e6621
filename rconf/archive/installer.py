"""Config archive installation and removal.

Archives are read as forward-only tar streams: one pass locates the manifest,
and every install, uninstall or listing opens the file again for its own pass.
A failed pass is not rolled back; entries handled before the failure stay
applied.
"""

import logging
import os
import shutil
import tarfile
from collections.abc import Callable
from enum import Enum
from pathlib import Path, PurePosixPath

from rconf.archive.errors import (
    ArchiveIOError,
    CapabilityUnavailableError,
    ConfigError,
    InvalidPathError,
    ManagerFailedError,
    ManifestMissingError,
    ManifestParseError,
)
from rconf.archive.manager import Manager, PackageManager
from rconf.archive.manifest import Manifest, parse_manifest
from rconf.archive.paths import MANIFEST_NAME, ArchivePath, SystemDirs, classify_entry

logger = logging.getLogger(__name__)

EntryAction = Callable[[tarfile.TarFile, tarfile.TarInfo, ArchivePath], None]


class ArchiveState(Enum):
    """Lifecycle of a ConfigArchive."""

    OPENED = "opened"
    MANIFEST_LOADED = "manifest_loaded"
    APPLIED = "applied"
    FAILED = "failed"


def remove_path(path: Path) -> bool:
    """Remove a file, symlink or directory tree.

    Args:
        path: Path to remove

    Returns:
        True if something was removed, False if the path did not exist
    """
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
        return True
    if path.is_symlink() or path.exists():
        path.unlink()
        return True
    return False


class ConfigArchive:
    """A config archive on disk together with the manifest stored in it.

    Attributes:
        source: Path to the archive file
        dirs: Directory roots archive entries are resolved against
        manifest: Manifest read from the archive (None until loaded)
        state: Current lifecycle state
    """

    def __init__(
        self,
        source: Path,
        *,
        dirs: SystemDirs | None = None,
        manager: PackageManager | None = None,
    ):
        """Initialize without reading the archive.

        Args:
            source: Path to the archive file
            dirs: Directory roots (default: resolved from this host)
            manager: Package manager hook, overriding the manifest's manager
        """
        self.source = Path(source)
        self.dirs = dirs or SystemDirs.from_environment()
        self.manifest: Manifest | None = None
        self.state = ArchiveState.OPENED
        self._manager = manager

    @classmethod
    def open(
        cls,
        source: Path,
        *,
        dirs: SystemDirs | None = None,
        manager: PackageManager | None = None,
    ) -> "ConfigArchive":
        """Open an archive and load its manifest.

        Raises:
            ArchiveIOError: If the archive cannot be read
            ManifestMissingError: If the archive has no manifest entry
            ManifestParseError: If the manifest entry cannot be parsed
        """
        archive = cls(source, dirs=dirs, manager=manager)
        archive.load_manifest()
        return archive

    @property
    def manager(self) -> PackageManager | None:
        """Package manager hook, if one is configured."""
        return self._manager

    def _io_error(self, error: Exception) -> ArchiveIOError:
        if isinstance(error, OSError):
            return ArchiveIOError.from_os_error(error, self.source)
        return ArchiveIOError(f"{self.source}: {error}", self.source)

    def _require_state(self, *states: ArchiveState) -> None:
        if self.state not in states:
            raise RuntimeError(f"Archive {self.source} is {self.state.value}; reopen it to run another pass")

    def load_manifest(self) -> Manifest:
        """Scan the archive for its manifest entry and parse it.

        Returns:
            Loaded Manifest
        """
        self._require_state(ArchiveState.OPENED)

        manifest = None
        try:
            with tarfile.open(self.source, "r|*") as tar:
                for member in tar:
                    if PurePosixPath(member.name).as_posix() != MANIFEST_NAME:
                        continue

                    content = tar.extractfile(member)
                    if content is None:
                        raise ManifestParseError("manifest entry is not a regular file")
                    with content:
                        text = content.read().decode("utf-8")
                    manifest = parse_manifest(text)
                    break
        except (OSError, tarfile.TarError) as e:
            self.state = ArchiveState.FAILED
            raise self._io_error(e) from e
        except UnicodeDecodeError as e:
            self.state = ArchiveState.FAILED
            raise ManifestParseError(f"manifest is not UTF-8 text: {e}") from e
        except ConfigError:
            self.state = ArchiveState.FAILED
            raise

        if manifest is None:
            self.state = ArchiveState.FAILED
            raise ManifestMissingError(self.source)

        logger.debug(f"Loaded manifest from {self.source}")
        self.manifest = manifest
        if self._manager is None and manifest.manager is not None:
            self._manager = Manager(manifest.manager)
        self.state = ArchiveState.MANIFEST_LOADED
        return manifest

    def _walk(self, action: EntryAction) -> int:
        """Run action on every payload entry in one forward pass.

        Returns:
            Number of payload entries visited
        """
        count = 0
        try:
            with tarfile.open(self.source, "r|*") as tar:
                for member in tar:
                    path = classify_entry(member.name)
                    if path is None:
                        continue
                    action(tar, member, path)
                    count += 1
        except (OSError, tarfile.TarError) as e:
            raise self._io_error(e) from e
        return count

    def entries(self) -> list[ArchivePath]:
        """List the payload entries in archive order."""
        self._require_state(ArchiveState.MANIFEST_LOADED)

        paths = []

        def collect(tar, member, path):
            paths.append(path)

        self._walk(collect)
        return paths

    def _check_contained(self, destination: Path, path: ArchivePath) -> None:
        """Reject entries whose parent resolves outside the domain root.

        Symlinks unpacked by earlier entries are followed, so a link cannot
        redirect later writes elsewhere.
        """
        root = self.dirs.root_for(path.kind).resolve()
        parent = destination.parent.resolve()
        if parent != root and root not in parent.parents:
            raise InvalidPathError(
                f"Entry {path.to_archive_relative()} resolves outside its {path.kind} root: {parent}"
            )

    def _unpack(self, tar: tarfile.TarFile, member: tarfile.TarInfo, path: ArchivePath) -> None:
        destination = path.to_local_path(self.dirs)
        self._check_contained(destination, path)
        logger.debug(f"Unpacking {member.name} to {destination}")

        if member.isdir():
            destination.mkdir(parents=True, exist_ok=True)
            return

        if not (member.issym() or member.islnk() or member.isfile()):
            logger.warning(f"Skipping unsupported entry type: {member.name}")
            return

        destination.parent.mkdir(parents=True, exist_ok=True)
        # Existing files and links are replaced, never written through
        if destination.is_symlink() or destination.is_file():
            destination.unlink()

        if member.issym():
            os.symlink(member.linkname, destination)
            return

        if member.islnk():
            target = classify_entry(member.linkname)
            if target is None:
                raise InvalidPathError(f"Hard link {member.name} points at a non-payload entry: {member.linkname}")
            source = target.to_local_path(self.dirs)
            try:
                os.link(source, destination)
            except OSError:
                shutil.copy2(source, destination)
            return

        content = tar.extractfile(member)
        with content, open(destination, "wb") as f:
            shutil.copyfileobj(content, f)
        os.chmod(destination, member.mode & 0o7777)
        os.utime(destination, (member.mtime, member.mtime))

    def _remove(self, tar: tarfile.TarFile, member: tarfile.TarInfo, path: ArchivePath) -> None:
        destination = path.to_local_path(self.dirs)
        if remove_path(destination):
            logger.debug(f"Removed {destination}")

    def _run_pass(self, action: EntryAction, verb: str) -> None:
        try:
            count = self._walk(action)
        except ConfigError:
            self.state = ArchiveState.FAILED
            raise
        self.state = ArchiveState.APPLIED
        logger.info(f"{verb} {count} entries from {self.source}")

    def install(self) -> None:
        """Install the packages (if configured), then unpack every payload entry.

        Existing files are overwritten and parent directories created.

        Raises:
            ManagerFailedError: If the package manager reports failure
            DirectoryNotFoundError: If a home or config root cannot be resolved
            InvalidPathError: If an entry would be written outside its domain root
            ArchiveIOError: If reading the archive or writing a file fails
        """
        self._require_state(ArchiveState.MANIFEST_LOADED)

        if self._manager is not None:
            logger.info("Installing packages")
            try:
                succeeded = self._manager.install()
            except ConfigError:
                self.state = ArchiveState.FAILED
                raise
            if not succeeded:
                self.state = ArchiveState.FAILED
                raise ManagerFailedError("Package installation failed")

        self._run_pass(self._unpack, "Installed")

    def uninstall(self) -> None:
        """Remove the packages (if configured), then delete every payload entry.

        Entries that are already gone are skipped.

        Raises:
            CapabilityUnavailableError: If a manager is configured without uninstall arguments
            ManagerFailedError: If the package manager reports failure
            DirectoryNotFoundError: If a home or config root cannot be resolved
            ArchiveIOError: If reading the archive or deleting a file fails
        """
        self._require_state(ArchiveState.MANIFEST_LOADED)

        if self._manager is not None:
            logger.info("Removing packages")
            try:
                succeeded = self._manager.uninstall()
            except ConfigError:
                self.state = ArchiveState.FAILED
                raise
            if not succeeded:
                self.state = ArchiveState.FAILED
                raise ManagerFailedError("Package removal failed")

        self._run_pass(self._remove, "Removed")

    def upgrade(self) -> None:
        """Upgrade the system through the package manager.

        Raises:
            CapabilityUnavailableError: If no manager or no upgrade arguments are configured
            ManagerFailedError: If the package manager reports failure
        """
        self._require_state(ArchiveState.MANIFEST_LOADED)

        if self._manager is None:
            raise CapabilityUnavailableError("manager")

        logger.info("Upgrading system")
        if not self._manager.upgrade():
            raise ManagerFailedError("System upgrade failed")

        if self.manifest.manager is not None and self.manifest.manager.reboot_after_upgrade:
            logger.warning("A reboot is recommended after the system upgrade")

"""Config archive creation.

An archive is a tar stream laid out as:

- ``.rconf``: the manifest the archive was built from (always first)
- ``install.sh``: generated shell installer (optional)
- payload entries named by their archive-relative path
"""

import errno
import io
import logging
import os
import tarfile
import time
from pathlib import Path

from rconf.archive.errors import ArchiveIOError
from rconf.archive.manifest import Manifest, dump_manifest, validate_manifest
from rconf.archive.paths import MANIFEST_NAME, SCRIPT_NAME, SystemDirs
from rconf.archive.script import build_script

logger = logging.getLogger(__name__)

COMPRESSIONS = ("", "gz", "bz2", "xz")


def archive_suffix(compression: str = "") -> str:
    """File suffix for an archive using the given compression (e.g. ".tar.gz")."""
    return f".tar.{compression}" if compression else ".tar"


def _add_text(tar: tarfile.TarFile, name: str, text: str, mode: int = 0o644) -> None:
    data = text.encode("utf-8")
    info = tarfile.TarInfo(name)
    info.size = len(data)
    info.mtime = int(time.time())
    info.mode = mode
    tar.addfile(info, io.BytesIO(data))


def write_archive(
    manifest: Manifest,
    destination: Path,
    *,
    dirs: SystemDirs | None = None,
    compression: str = "",
    include_script: bool = True,
) -> Path:
    """Build a config archive from a manifest.

    Files are stored as single entries, directories recursively. Paths whose
    home or config root cannot be resolved, and paths that do not exist, are
    fatal.

    Args:
        manifest: Manifest listing the paths to archive
        destination: Path of the archive file to create
        dirs: Directory roots to resolve paths against (default: this host)
        compression: One of "", "gz", "bz2", "xz"
        include_script: Whether to add the generated install.sh entry

    Returns:
        Path to created archive

    Raises:
        ValueError: If compression is not supported
        DirectoryNotFoundError: If a home or config root cannot be resolved
        ArchiveIOError: If a path is missing or the archive cannot be written
    """
    if compression not in COMPRESSIONS:
        raise ValueError(f"Unsupported compression: {compression!r}")

    dirs = dirs or SystemDirs.from_environment()
    destination = Path(destination)

    for warning in validate_manifest(manifest):
        logger.warning(warning)

    paths = manifest.path_specifier.enumerate_all() if manifest.path_specifier else []

    try:
        destination.parent.mkdir(parents=True, exist_ok=True)

        with tarfile.open(destination, f"w:{compression}" if compression else "w") as tar:
            _add_text(tar, MANIFEST_NAME, dump_manifest(manifest))
            if include_script:
                _add_text(tar, SCRIPT_NAME, build_script(manifest), mode=0o755)

            for path in paths:
                local_path = path.to_local_path(dirs)
                name = path.to_archive_relative()

                if not local_path.exists() and not local_path.is_symlink():
                    raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(local_path))

                logger.debug(f"Adding {local_path} as {name}")
                tar.add(local_path, arcname=name, recursive=True)
    except OSError as e:
        raise ArchiveIOError.from_os_error(e, destination) from e
    except tarfile.TarError as e:
        raise ArchiveIOError(f"{destination}: {e}", destination) from e

    logger.info(f"Archive written to {destination} ({len(paths)} paths)")
    return destination

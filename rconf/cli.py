"""
rconf CLI - Back up and deploy configuration files.

Usage:
    rconf archive [--file manifest.yaml] [--dest DIR] TITLE
        Archives the paths listed in the manifest into DIR/TITLE.tar.

    rconf install ARCHIVE [--upgrade]
        Installs the archive's packages and configuration files.

    rconf remove ARCHIVE
        Removes the archive's packages and configuration files.

    rconf inspect ARCHIVE
        Lists the archive's entries and where they would be installed.
"""

import argparse
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from rconf.archive.distribution import COMPRESSIONS, archive_suffix, write_archive
from rconf.archive.errors import ConfigError, DirectoryNotFoundError
from rconf.archive.installer import ConfigArchive
from rconf.archive.manifest import load_manifest
from rconf.config import get_settings

logger = logging.getLogger(__name__)


def cmd_archive(args: argparse.Namespace) -> None:
    """Create an archive from a manifest file."""
    settings = get_settings()

    manifest_path = Path(args.file) if args.file else settings.default_manifest()
    if manifest_path is None:
        raise ConfigError(
            "Could not determine default configuration directory, and no manifest file was given."
        )
    logger.info(f"Reading manifest {manifest_path}")
    manifest = load_manifest(manifest_path)

    compression = args.compress if args.compress is not None else settings.compression
    suffix = archive_suffix(compression)
    title = args.title
    if not title.endswith(suffix):
        title = title.removesuffix(archive_suffix()) + suffix
    dest_dir = Path(args.dest) if args.dest else Path.cwd()

    archive_path = write_archive(
        manifest,
        dest_dir / title,
        dirs=settings.system_dirs(),
        compression=compression,
        include_script=settings.write_script and not args.no_script,
    )
    print(archive_path)


def cmd_install(args: argparse.Namespace) -> None:
    """Install an archive, optionally upgrading the system first."""
    settings = get_settings()
    archive = ConfigArchive.open(Path(args.archive), dirs=settings.system_dirs())

    if args.upgrade:
        archive.upgrade()
    archive.install()
    print(f"Installed {args.archive}")


def cmd_remove(args: argparse.Namespace) -> None:
    """Uninstall an archive."""
    settings = get_settings()
    archive = ConfigArchive.open(Path(args.archive), dirs=settings.system_dirs())

    archive.uninstall()
    print(f"Removed {args.archive}")


def cmd_inspect(args: argparse.Namespace) -> None:
    """Show an archive's package manager settings and payload entries."""
    settings = get_settings()
    dirs = settings.system_dirs()
    archive = ConfigArchive.open(Path(args.archive), dirs=dirs)

    manager = archive.manifest.manager
    if manager is not None:
        print(f"Package manager: {manager.name}")
        print(f"Packages: {' '.join(manager.packages) or '(none)'}")
    else:
        print("Package manager: (none)")

    entries = archive.entries()
    print(f"Entries: {len(entries)}")
    for path in entries:
        try:
            destination = str(path.to_local_path(dirs))
        except DirectoryNotFoundError:
            destination = f"<{path.kind} directory unavailable>"
        print(f"  {path.kind.value:<8} {path.to_archive_relative()} -> {destination}")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="rconf",
        description="rconf - backup and deploy configuration files",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # 'archive' subcommand
    archive_parser = subparsers.add_parser(
        "archive", help="Create an archive as specified by the manifest file"
    )
    archive_parser.add_argument(
        "-f",
        "--file",
        type=str,
        metavar="FILE",
        help="Manifest file to build the archive from (default: <config dir>/.rconf)",
    )
    archive_parser.add_argument(
        "-d",
        "--dest",
        type=str,
        metavar="DIR",
        help="Directory to store the archive in (default: current directory)",
    )
    archive_parser.add_argument(
        "-z",
        "--compress",
        choices=[c for c in COMPRESSIONS if c],
        default=None,
        help="Compress the archive",
    )
    archive_parser.add_argument(
        "--no-script", action="store_true", help="Do not include the generated install.sh"
    )
    archive_parser.add_argument("title", metavar="TITLE", help="Archive name without extension")
    archive_parser.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")
    archive_parser.set_defaults(func=cmd_archive)

    # 'install' subcommand
    install_parser = subparsers.add_parser(
        "install", help="Install configurations from an archive"
    )
    install_parser.add_argument("archive", metavar="ARCHIVE", help="Archive to install")
    install_parser.add_argument(
        "--upgrade", action="store_true", help="Upgrade the system before installing"
    )
    install_parser.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")
    install_parser.set_defaults(func=cmd_install)

    # 'remove' subcommand
    remove_parser = subparsers.add_parser(
        "remove", help="Remove configurations installed from an archive"
    )
    remove_parser.add_argument("archive", metavar="ARCHIVE", help="Archive to remove")
    remove_parser.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")
    remove_parser.set_defaults(func=cmd_remove)

    # 'inspect' subcommand
    inspect_parser = subparsers.add_parser("inspect", help="List the contents of an archive")
    inspect_parser.add_argument("archive", metavar="ARCHIVE", help="Archive to inspect")
    inspect_parser.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")
    inspect_parser.set_defaults(func=cmd_inspect)

    args = parser.parse_args(argv)

    # Configure logging
    level = logging.DEBUG if getattr(args, "verbose", False) else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        args.func(args)
    except (ConfigError, ValidationError) as e:
        print(e, file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()

"""Shell installer generated alongside the archive payload.

The script lets an archive be applied on a machine without rconf: unpack the
tar, then run ``bash install.sh`` from the unpacked directory.
"""

import shlex

from rconf.archive.manifest import Manifest
from rconf.archive.paths import MANIFEST_NAME, SCRIPT_NAME, PathKind

_HOME_BLOCK = """\
if [ -d home ]; then
    find home -mindepth 1 -maxdepth 1 -exec cp --recursive --target-directory "$HOME" '{}' +
fi
"""

_CONFIG_BLOCK = """\
if [ -d config ]; then
    mkdir -p "${XDG_CONFIG_HOME:-$HOME/.config}"
    find config -mindepth 1 -maxdepth 1 -exec cp --recursive --target-directory "${XDG_CONFIG_HOME:-$HOME/.config}" '{}' +
fi
"""

_ABSOLUTE_BLOCK = f"""\
for entry in *; do
    case "$entry" in
        home|config|{SCRIPT_NAME}|{MANIFEST_NAME}) continue ;;
    esac
    cp --recursive "$entry" /
done
"""


def build_script(manifest: Manifest) -> str:
    """Generate a bash script that installs an unpacked archive.

    Args:
        manifest: Manifest the archive is built from

    Returns:
        Script text
    """
    lines = ["#!/usr/bin/env bash", "set -e", 'cd "$(dirname "$0")"', ""]

    specifier = manifest.path_specifier
    if specifier is not None:
        if specifier.enumerate(PathKind.HOME):
            lines.append(_HOME_BLOCK)
        if specifier.enumerate(PathKind.CONFIG):
            lines.append(_CONFIG_BLOCK)
        if specifier.enumerate(PathKind.ABSOLUTE):
            lines.append(_ABSOLUTE_BLOCK)

    manager = manifest.manager
    if manager is not None:
        cmd = [manager.name, *manager.install_args, *manager.packages]
        lines.append(shlex.join(cmd))
        lines.append("")

    return "\n".join(lines)

"""Package manager hook run around archive installs.

The archive engine only needs a success flag from each operation; the
package manager's own output goes straight to the terminal.
"""

import logging
import subprocess
from typing import Protocol

from rconf.archive.errors import CapabilityUnavailableError, ManagerFailedError
from rconf.archive.manifest import ManagerConfig

logger = logging.getLogger(__name__)


class PackageManager(Protocol):
    """Operations the installer calls on a package manager."""

    def install(self) -> bool: ...

    def uninstall(self) -> bool: ...

    def upgrade(self) -> bool: ...


class Manager:
    """Runs the configured package manager as a blocking subprocess.

    Attributes:
        config: Package manager settings from the manifest
    """

    def __init__(self, config: ManagerConfig):
        self.config = config

    def _run(self, args: list[str]) -> bool:
        cmd = [self.config.name, *args]
        logger.info(f"Running package manager: {' '.join(cmd)}")

        try:
            result = subprocess.run(cmd, check=False)
        except OSError as e:
            raise ManagerFailedError(f"Could not run package manager '{self.config.name}': {e}") from e

        if result.returncode != 0:
            logger.warning(f"{self.config.name} exited with status {result.returncode}")
        return result.returncode == 0

    def install(self) -> bool:
        """Install the configured packages."""
        return self._run([*self.config.install_args, *self.config.packages])

    def uninstall(self) -> bool:
        """Remove the configured packages.

        Raises:
            CapabilityUnavailableError: If no uninstall arguments are configured
        """
        if self.config.uninstall_args is None:
            raise CapabilityUnavailableError("uninstall_args")
        return self._run([*self.config.uninstall_args, *self.config.packages])

    def upgrade(self) -> bool:
        """Upgrade the whole system.

        A reboot may be advisable afterwards; it is never performed.

        Raises:
            CapabilityUnavailableError: If no upgrade arguments are configured
        """
        if self.config.upgrade_args is None:
            raise CapabilityUnavailableError("upgrade_args")
        return self._run(list(self.config.upgrade_args))

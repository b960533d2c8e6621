"""
Configuration management for rconf.

Settings are read from RCONF_* environment variables.
"""

from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings

from rconf.archive.distribution import COMPRESSIONS
from rconf.archive.paths import MANIFEST_NAME, SystemDirs


class Settings(BaseSettings):
    """Application settings."""

    # Manifest used by 'rconf archive' when --file is not given
    manifest_file: Path | None = None

    # Directory overrides (detected from the host when unset)
    home_dir: Path | None = None
    config_dir: Path | None = None

    # Archive settings
    compression: str = ""
    write_script: bool = True

    model_config = {"env_prefix": "RCONF_"}

    @field_validator("compression")
    @classmethod
    def check_compression(cls, value: str) -> str:
        if value not in COMPRESSIONS:
            raise ValueError(f"compression must be one of {', '.join(c or repr(c) for c in COMPRESSIONS)}")
        return value

    def system_dirs(self) -> SystemDirs:
        """Directory roots for this host, honoring the overrides."""
        return SystemDirs.from_environment(home=self.home_dir, config=self.config_dir)

    def default_manifest(self) -> Path | None:
        """
        Manifest path used when none is given on the command line.

        Returns:
            RCONF_MANIFEST_FILE if set, else the manifest in the config directory,
            or None if the config directory cannot be determined
        """
        if self.manifest_file is not None:
            return self.manifest_file

        config_dir = self.system_dirs().config
        return config_dir / MANIFEST_NAME if config_dir else None


def get_settings() -> Settings:
    """
    Get application settings.

    Returns:
        Settings instance
    """
    return Settings()

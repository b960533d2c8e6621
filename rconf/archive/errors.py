"""Error types raised by the config archive engine.

Every failure the engine reports is a ConfigError, so callers (the CLI in
particular) can catch a single type, print its message and exit non-zero.
"""


class ConfigError(Exception):
    """Base class for all config archive errors."""


class ArchiveIOError(ConfigError):
    """Opening, reading, writing, copying or deleting a file failed."""

    def __init__(self, message: str, path=None):
        self.path = path
        super().__init__(f"An error occurred while handling file: {message}")

    @classmethod
    def from_os_error(cls, error: OSError, path=None) -> "ArchiveIOError":
        """Wrap an OSError, naming the file it failed on when known."""
        path = error.filename or path
        reason = error.strerror or str(error)
        return cls(f"{path}: {reason}" if path else reason, path)


class ManifestParseError(ConfigError):
    """Manifest content could not be parsed."""

    def __init__(self, message: str):
        super().__init__(f"An error occurred while parsing the manifest: {message}")


class ManifestMissingError(ConfigError):
    """Archive has no manifest entry."""

    def __init__(self, source):
        self.source = source
        super().__init__(f"No manifest entry found in archive: {source}")


class DirectoryNotFoundError(ConfigError):
    """The home or config directory cannot be determined on this host."""

    def __init__(self, kind):
        self.kind = kind
        super().__init__(f"Could not determine system directory: {kind}")


class ManagerFailedError(ConfigError):
    """The package manager reported failure."""


class CapabilityUnavailableError(ConfigError):
    """A package manager operation was requested but is not configured."""

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"No value specified for '{field}' which is required by this operation")


class InvalidPathError(ConfigError):
    """A path cannot be represented inside a config archive."""

"""Exceptions raised in one layer and caught in another.

Compilation errors are ordinary bugs and use the builtin types; these cover
configuration and export failures that the CLI reports per destination.
"""


class ArchloomError(Exception):
    """Base class for archloom errors."""


class ConfigError(ArchloomError, ValueError):
    """Raised when a config or graph file is missing fields or malformed."""


class UnknownFormatError(ArchloomError, ValueError):
    """Raised when no image format code can be read from a destination."""


class ConversionError(ArchloomError, RuntimeError):
    """Raised when the remote PlantUML service cannot be reached."""

"""Error types shared by the check, in and out actions."""

from __future__ import annotations


class ResourceError(Exception):
    """Base class for every failure the resource reports to the caller."""


class ConfigurationError(ResourceError):
    """Source or params cannot be acted upon (bad regex, unknown state, ...)."""


class VersionError(ResourceError):
    """A version or a persisted file does not resolve to anything usable."""

# src/postinstall/errors.py

from __future__ import annotations


class InstallerError(Exception):
    """Base class for every error raised by the installer core."""


class ConfigurationError(InstallerError):
    """
    A task declaration (or a file derived from declarations) cannot be understood.

    Raised for missing `type`, missing locator field, unknown type or scope,
    and malformed status / manifest files.
    """


class InstallIOError(InstallerError, OSError):
    """A status file or its directory is not writable or cannot be created."""


class NotFoundError(InstallerError):
    """The in-flight operation references a task that no longer exists."""


class StateError(InstallerError):
    """The requested transition is not valid in the current installer state."""


class RetryableError(InstallerError):
    """Another process holds the installer lock; the caller may try again."""

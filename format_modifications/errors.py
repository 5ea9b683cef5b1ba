"""
Custom exception types used across format-modifications.

Defining explicit error classes makes it easier for the CLI and the
attachment registry to distinguish between conditions that should only
warn the user, conditions that abort an invocation, and unexpected bugs.
"""

from __future__ import annotations


class FormatModificationsError(Exception):
    """Base class for all format-modifications specific errors."""


class ConfigError(FormatModificationsError):
    """Raised when configuration overrides are unknown or deprecated."""


class VCSError(FormatModificationsError):
    """Raised when a version-control command fails unexpectedly."""


class NotInRepositoryError(VCSError):
    """Raised when no repository root can be found for a path."""


class BaselineUnavailableError(VCSError):
    """Raised when the baseline content of a tracked file cannot be fetched."""


class UnsupportedCapabilityError(FormatModificationsError):
    """Raised when a formatter or VCS backend lacks a required capability."""


class DiffError(FormatModificationsError):
    """Raised when the diff engine fails to compare two texts."""


class FormatterError(FormatModificationsError):
    """Raised when an external formatting command fails."""


class ReformatLoopError(FormatModificationsError):
    """Raised when the reformat loop does not reach a fixed point."""


class ReentrantInvocationError(FormatModificationsError):
    """Raised when a document is reformatted while already being reformatted."""

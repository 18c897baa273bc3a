"""Exceptions for gitbrowse."""

from __future__ import annotations


class GitBrowseError(Exception):
    """Base class for gitbrowse errors."""


class TreeCorruptError(GitBrowseError):
    """Raised when a raw tree payload ends mid-record or is malformed.

    The tree view being rendered must be aborted; a partially decoded
    listing is never returned.
    """


class GitExecError(GitBrowseError):
    """Raised when the git executable exits with a non-zero status."""

    def __init__(self, message: str, returncode: int | None = None, stderr: str = ""):
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class GitNotFoundError(GitExecError):
    """Raised when no git executable can be found."""

"""Decoded tree entries and git filemode helpers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

GIT_FILEMODE_TREE = 0o040000
GIT_FILEMODE_BLOB = 0o100644
GIT_FILEMODE_BLOB_EXECUTABLE = 0o100755
GIT_FILEMODE_LINK = 0o120000
GIT_FILEMODE_COMMIT = 0o160000  # submodule (gitlink)

_S_IFMT = 0o170000


class EntryKind(str, Enum):
    """Kind of a decoded tree entry.

    Members: ``TREE``, ``BLOB``.  Submodules never get a kind; they are
    dropped while decoding.
    """
    TREE = "tree"
    BLOB = "blob"

    def __str__(self) -> str:          # noqa: D105
        return self.value

    @classmethod
    def from_filemode(cls, mode: int) -> EntryKind:
        """Classify a git filemode integer by its directory bit."""
        if mode & GIT_FILEMODE_TREE:
            return cls.TREE
        return cls.BLOB


@dataclass(frozen=True)
class TreeEntry:
    """One decoded directory entry.

    Attributes:
        path: Entry name, prefixed with the owning tree's path when it has one.
        mode: Octal filemode string, zero-padded to six digits (``"040000"``).
        kind: :class:`EntryKind` of the entry.
        hash: 40-char lowercase hex object id.
        size: Blob size in bytes when the listing reported one, else ``None``.
    """
    path: str
    mode: str
    kind: EntryKind
    hash: str
    size: int | None = None

    @property
    def filemode(self) -> int:
        """The mode as an integer (``0o100644``)."""
        return int(self.mode, 8)


def normalize_mode(mode: str) -> str:
    """Left-pad an octal mode string to the canonical six digits."""
    return mode.rjust(6, "0")


def mode_string(mode: int | str) -> str:
    """Render a git filemode like ``ls -l`` does (``drwxr-xr-x``).

    Submodules render as ``m---------``.  Anything that is not a tree, link
    or submodule is shown as a regular file with its permission bits.
    """
    if isinstance(mode, str):
        mode = int(mode, 8) if mode else 0
    fmt = mode & _S_IFMT
    if fmt == GIT_FILEMODE_TREE:
        return "drwxr-xr-x"
    if fmt == GIT_FILEMODE_LINK:
        return "lrwxrwxrwx"
    if fmt == GIT_FILEMODE_COMMIT:
        return "m---------"
    if mode & 0o111:
        return "-rwxr-xr-x"
    return "-rw-r--r--"

"""Content objects that live at a path inside a tree."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

from .entries import mode_string

if TYPE_CHECKING:
    from .project import Project

_HASH_RE = re.compile(r"[0-9a-fA-F]{40}\Z")


def validate_hash(hash: str) -> str:
    """Return *hash* in canonical lowercase form, or raise ValueError."""
    if not isinstance(hash, str) or not _HASH_RE.match(hash):
        raise ValueError(f"Invalid object hash {hash!r}: expected 40 hex characters")
    return hash.lower()


class FilesystemObject:
    """Metadata shared by trees and blobs.

    The same object content can sit at several paths, so *path*, *mode* and
    *commit_hash* describe one location of the object, not the object itself.

    Attributes:
        hash: 40-char lowercase hex object id.
        mode: Octal filemode string (``"100644"``), empty when unknown.
        commit_hash: Hash of the commit the object was reached from, if any.
    """

    def __init__(self, project: Project | None, hash: str):
        self._project = project
        self.hash = validate_hash(hash)
        self._path = ""
        self.mode = ""
        self.commit_hash: str | None = None

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.hash[:7]}, path={self._path!r})"

    @property
    def project(self) -> Project:
        if self._project is None:
            raise RuntimeError(f"{self!r} is not attached to a project")
        return self._project

    def attach(self, project: Project) -> None:
        """Bind a detached object (e.g. one loaded from a cache) to *project*."""
        self._project = project

    @property
    def path(self) -> str:
        """Repository-relative path, empty for the root tree."""
        return self._path

    @path.setter
    def path(self, value: str) -> None:
        self._path = value

    @property
    def name(self) -> str:
        """Last segment of :attr:`path`."""
        return self._path.rsplit("/", 1)[-1]

    @property
    def mode_string(self) -> str:
        """``ls -l`` style rendering of :attr:`mode`."""
        return mode_string(self.mode)

    def clone(self):
        """Return an independent copy carrying the same metadata."""
        dup = object.__new__(type(self))
        dup.__dict__.update(self.__dict__)
        return dup


class Blob(FilesystemObject):
    """A file, symlink or executable referenced from a tree.

    Attributes:
        size: Byte length when a listing reported it, else ``None``.
    """

    def __init__(self, project: Project | None, hash: str):
        super().__init__(project, hash)
        self.size: int | None = None
        self._data: bytes | None = None

    @property
    def data(self) -> bytes:
        """Blob content, read from the object store on first access."""
        if self._data is None:
            self._data = self.project.get_object(self.hash)
        return self._data

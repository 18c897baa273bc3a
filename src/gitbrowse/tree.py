"""Tree: a directory listing decoded from a git tree object.

A tree has two independently loaded views:

* its direct children, decoded once from the raw object (or from
  ``git ls-tree`` in compat mode) and stored as :class:`TreeEntry` records;
* a recursive index mapping every path below it to a hash, built from a
  single recursive listing.

Content objects are rebuilt from the stored entries on every
:meth:`Tree.get_contents` call; only the entries are kept in the object
cache.
"""

from __future__ import annotations

import enum
import logging
import threading
from typing import TYPE_CHECKING

from .decode import parse_ls_tree, parse_ls_tree_paths, parse_raw_tree
from .entries import EntryKind, TreeEntry
from .objects import Blob, FilesystemObject, validate_hash

if TYPE_CHECKING:
    from .project import Project

logger = logging.getLogger(__name__)


class TreeState(enum.Flag):
    """Which lazy views of a :class:`Tree` are loaded.

    ``TreeState(0)`` is neither; ``LOADED | INDEXED`` is both.
    """
    LOADED = enum.auto()
    INDEXED = enum.auto()


class Tree(FilesystemObject):
    """A directory in a repository, identified by its tree hash."""

    def __init__(self, project: Project | None, hash: str, path: str = ""):
        super().__init__(project, hash)
        self._path = path
        self._entries: list[TreeEntry] = []
        self._contents_read = False
        self._contents_lock = threading.Lock()
        self._reset_paths()
        self._paths_lock = threading.Lock()

    def _reset_paths(self) -> None:
        self._tree_paths: dict[str, str] = {}
        self._blob_paths: dict[str, str] = {}
        self._hash_paths_read = False

    @property
    def path(self) -> str:
        return self._path

    @path.setter
    def path(self, value: str) -> None:
        # Index keys are full paths, so a move makes them stale.  Entries
        # decoded under the old path are left as they are.
        if value == self._path:
            return
        with self._paths_lock:
            if self._hash_paths_read:
                self._reset_paths()
            self._path = value

    @property
    def state(self) -> TreeState:
        state = TreeState(0)
        if self._contents_read:
            state |= TreeState.LOADED
        if self._hash_paths_read:
            state |= TreeState.INDEXED
        return state

    @property
    def entries(self) -> list[TreeEntry]:
        """Decoded entries in object order, loading them if needed."""
        self._read_contents()
        return list(self._entries)

    # -- contents ------------------------------------------------------------

    def get_contents(self) -> list[FilesystemObject]:
        """Return a :class:`Tree` or :class:`Blob` for each entry, in order.

        Objects come from the project, so a hash seen for the first time
        yields the project's shared instance.  Later entries with the same
        hash get their own copy, because each entry sets its own path and
        mode on the object it receives.
        """
        self._read_contents()

        project = self.project
        contents: list[FilesystemObject] = []
        used: set[tuple[EntryKind, str]] = set()

        for entry in self._entries:
            if not entry.hash:
                continue

            if entry.kind is EntryKind.TREE:
                obj = project.get_tree(entry.hash)
            elif entry.kind is EntryKind.BLOB:
                obj = project.get_blob(entry.hash)
            else:
                continue

            key = (entry.kind, entry.hash)
            if key in used:
                obj = obj.clone()
            else:
                used.add(key)

            if isinstance(obj, Blob) and entry.size is not None:
                obj.size = entry.size
            if entry.mode:
                obj.mode = entry.mode
            if entry.path:
                obj.path = entry.path
            if self.commit_hash:
                obj.commit_hash = self.commit_hash

            contents.append(obj)

        return contents

    def _read_contents(self) -> None:
        if self._contents_read:
            return
        with self._contents_lock:
            if self._contents_read:
                return
            project = self.project
            if project.compat:
                entries = self._read_contents_git(project)
            else:
                entries = self._read_contents_raw(project)
            self._entries = entries
            self._contents_read = True

        if project.cache is not None:
            project.cache.set(self.cache_key, self)

    def _read_contents_git(self, project: Project) -> list[TreeEntry]:
        logger.debug("reading tree %s via ls-tree", self.hash)
        output = project.ls_tree(self.hash, with_size=project.can_show_size_in_tree())
        return parse_ls_tree(output, self._path)

    def _read_contents_raw(self, project: Project) -> list[TreeEntry]:
        logger.debug("reading tree %s from raw object", self.hash)
        return parse_raw_tree(project.get_object(self.hash), self._path)

    # -- path index ----------------------------------------------------------

    @property
    def tree_paths(self) -> dict[str, str]:
        """Every directory below this tree, full path → tree hash."""
        self._read_hash_paths()
        return dict(self._tree_paths)

    @property
    def blob_paths(self) -> dict[str, str]:
        """Every file below this tree, full path → blob hash."""
        self._read_hash_paths()
        return dict(self._blob_paths)

    def path_to_hash(self, path: str) -> str | None:
        """Return the hash of the file or directory at *path*.

        *path* is a full repository path.  Files win over directories.
        Returns ``None`` for an empty or unknown path.
        """
        path = path.strip("/") if path else ""
        if not path:
            return None

        self._read_hash_paths()

        if path in self._blob_paths:
            return self._blob_paths[path]
        return self._tree_paths.get(path)

    def _read_hash_paths(self) -> None:
        if self._hash_paths_read:
            return
        with self._paths_lock:
            if self._hash_paths_read:
                return
            logger.debug("indexing paths below tree %s", self.hash)
            output = self.project.ls_tree(self.hash, recursive=True)
            self._tree_paths, self._blob_paths = parse_ls_tree_paths(output, self._path)
            self._hash_paths_read = True

    # -- copying and caching -------------------------------------------------

    def clone(self) -> Tree:
        dup = super().clone()
        dup._entries = list(self._entries)
        dup._tree_paths = dict(self._tree_paths)
        dup._blob_paths = dict(self._blob_paths)
        dup._contents_lock = threading.Lock()
        dup._paths_lock = threading.Lock()
        return dup

    def __getstate__(self) -> dict:
        # The path index and the project are not persisted.
        return {
            "hash": self.hash,
            "path": self._path,
            "mode": self.mode,
            "commit_hash": self.commit_hash,
            "entries": self._entries,
            "contents_read": self._contents_read,
        }

    def __setstate__(self, state: dict) -> None:
        self.__init__(None, state["hash"], state["path"])
        self.mode = state["mode"]
        self.commit_hash = state["commit_hash"]
        self._entries = state["entries"]
        self._contents_read = state["contents_read"]

    @staticmethod
    def make_cache_key(project: str, hash: str) -> str:
        """Cache key for tree *hash* in *project*."""
        return f"project|{project}|tree|{validate_hash(hash)}"

    @property
    def cache_key(self) -> str:
        return Tree.make_cache_key(self.project.name, self.hash)

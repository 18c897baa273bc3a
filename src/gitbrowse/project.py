"""Project: one repository and the collaborators used to read it."""

from __future__ import annotations

import os
import threading
from pathlib import Path

from dulwich.repo import Repo

from .cache import MemoryCache, ObjectCache
from .gitexe import GIT_LS_TREE, GitExe
from .loader import ObjectLoader
from .objects import Blob, validate_hash
from .tree import Tree

_DEFAULT = object()

# Bound for the cache a Project creates when none is passed.
DEFAULT_CACHE_ITEMS = 1024


class Project:
    """A repository being browsed.

    Trees and blobs are resolved through the project so that each hash maps
    to one shared instance.  Decoded trees are also written to *cache*,
    which may be shared between projects opened on the same repository.

    The shared instances are held for the life of the project, so a
    long-running process should open one project per request (or batch)
    and share a cache between them.

    Args:
        path: Path to the (usually bare) repository.
        name: Identifier used in cache keys.  Defaults to the directory name.
        compat: Read trees with the git executable instead of parsing raw
            objects.
        git_exe: :class:`GitExe` to run git with.  Created on first use.
        cache: Object cache.  Defaults to a private :class:`MemoryCache`
            holding at most ``DEFAULT_CACHE_ITEMS`` trees;
            pass ``None`` to disable caching.
        repo: An already open dulwich ``Repo`` for *path*.
    """

    def __init__(
        self,
        path: str | os.PathLike[str],
        *,
        name: str | None = None,
        compat: bool = False,
        git_exe: GitExe | None = None,
        cache: ObjectCache | None = _DEFAULT,  # type: ignore[assignment]
        repo: Repo | None = None,
    ):
        self.path = os.fspath(path)
        self.name = name or os.path.basename(self.path.rstrip("/\\"))
        self.compat = compat
        self.cache = MemoryCache(DEFAULT_CACHE_ITEMS) if cache is _DEFAULT else cache
        self._git_exe = git_exe
        self._repo = repo
        self._loader: ObjectLoader | None = None
        self._trees: dict[str, Tree] = {}
        self._blobs: dict[str, Blob] = {}
        self._guard = threading.Lock()

    def __repr__(self) -> str:
        return f"Project({self.name!r}, compat={self.compat})"

    @classmethod
    def open(cls, path: str | Path, **kwargs) -> Project:
        """Open an existing repository, raising FileNotFoundError if missing."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Repository not found: {path}")
        return cls(path, **kwargs)

    @property
    def repo(self) -> Repo:
        if self._repo is None:
            self._repo = Repo(self.path)
        return self._repo

    @property
    def loader(self) -> ObjectLoader:
        if self._loader is None:
            self._loader = ObjectLoader(self.repo)
        return self._loader

    @property
    def git_exe(self) -> GitExe:
        if self._git_exe is None:
            self._git_exe = GitExe()
        return self._git_exe

    # -- object sources ------------------------------------------------------

    def get_object(self, hash: str) -> bytes:
        """Raw payload of object *hash*."""
        return self.loader.get_object(hash)

    def ls_tree(self, hash: str, *, recursive: bool = False, with_size: bool = False) -> str:
        """``git ls-tree --full-name -t`` output for tree *hash*.

        In compat mode git is run; otherwise the same listing is rendered
        from the object store.
        """
        if not self.compat:
            return self.loader.ls_tree(hash, recursive=recursive, with_size=with_size)
        args = ["--full-name"]
        if with_size:
            args.append("-l")
        if recursive:
            args.append("-r")
        args.append("-t")
        args.append(hash)
        return self.git_exe.execute(self.path, GIT_LS_TREE, args)

    def can_show_size_in_tree(self) -> bool:
        """Whether :meth:`ls_tree` can report blob sizes."""
        if self.compat:
            return self.git_exe.can_show_size_in_tree()
        return True

    # -- object resolution ---------------------------------------------------

    def get_tree(self, hash: str) -> Tree:
        """Return the shared :class:`Tree` for *hash*.

        A tree decoded earlier under the same cache key is reused, entries
        and all.
        """
        hash = validate_hash(hash)
        with self._guard:
            tree = self._trees.get(hash)
            if tree is not None:
                return tree
            if self.cache is not None:
                tree = self.cache.get(Tree.make_cache_key(self.name, hash))
            if tree is None:
                tree = Tree(self, hash)
            else:
                tree.attach(self)
            self._trees[hash] = tree
            return tree

    def get_blob(self, hash: str) -> Blob:
        """Return the shared :class:`Blob` for *hash*."""
        hash = validate_hash(hash)
        with self._guard:
            blob = self._blobs.get(hash)
            if blob is None:
                blob = self._blobs[hash] = Blob(self, hash)
            return blob

    def resolve(self, rev: str = "HEAD") -> Tree:
        """Return the root tree of *rev* (a ref name, commit or tree hash).

        When *rev* names a commit, the tree carries its hash as
        ``commit_hash``.

        Raises:
            KeyError: *rev* does not name an object.
            ValueError: *rev* names a blob.
        """
        commit_hash, tree_hash = self.loader.resolve(rev)
        tree = self.get_tree(tree_hash)
        if commit_hash is not None:
            tree.commit_hash = commit_hash
        return tree

"""Raw object access through dulwich."""

from __future__ import annotations

import logging

from dulwich.object_store import iter_tree_contents
from dulwich.objects import Commit, Tag, Tree
from dulwich.repo import Repo

from .decode import quote_path
from .entries import GIT_FILEMODE_COMMIT, EntryKind

logger = logging.getLogger(__name__)

_REF_PREFIXES = (b"", b"refs/", b"refs/heads/", b"refs/tags/")


def _kind_word(mode: int) -> str:
    if mode == GIT_FILEMODE_COMMIT:
        return "commit"
    return str(EntryKind.from_filemode(mode))


class ObjectLoader:
    """Reads objects straight out of a repository's object store."""

    def __init__(self, repo: Repo):
        self._repo = repo

    def __repr__(self) -> str:
        return f"ObjectLoader({self._repo.path!r})"

    @property
    def object_store(self):
        return self._repo.object_store

    def get_object(self, hash: str) -> bytes:
        """Return the payload of object *hash* (no ``<type> <size>\\0`` header).

        Raises:
            KeyError: The object is not in the repository.
        """
        _type_num, raw = self.object_store.get_raw(hash.encode("ascii"))
        return raw

    def ls_tree(self, hash: str, *, recursive: bool = False, with_size: bool = False) -> str:
        """Render tree *hash* in ``git ls-tree --full-name -t`` format.

        With *recursive*, subtrees are listed depth-first with full paths,
        like ``-r -t``.  With *with_size*, a size column is added as ``-l``
        does (``-`` for non-blobs).
        """
        store = self.object_store
        sha = hash.encode("ascii")
        if recursive:
            entries = [e for e in iter_tree_contents(store, sha, include_trees=True) if e.path]
        else:
            tree = store[sha]
            if not isinstance(tree, Tree):
                raise ValueError(f"Not a tree: {hash}")
            entries = list(tree.iteritems())

        lines = []
        for entry in entries:
            kind = _kind_word(entry.mode)
            size_col = ""
            if with_size:
                size = "-"
                if kind == "blob":
                    size = str(len(store.get_raw(entry.sha)[1]))
                size_col = " " + size.rjust(7)
            name = quote_path(entry.path.decode("utf-8", "surrogateescape"))
            lines.append(f"{entry.mode:06o} {kind} {entry.sha.decode('ascii')}{size_col}\t{name}")
        logger.debug("rendered %d listing lines for %s", len(lines), hash)
        return "".join(line + "\n" for line in lines)

    def _lookup(self, rev: str):
        rev_bytes = rev.encode()
        refs = self._repo.refs
        for prefix in _REF_PREFIXES:
            name = prefix + rev_bytes
            if name in refs:
                return self._repo[refs[name]]
        store = self.object_store
        if len(rev_bytes) == 40:
            return store[rev_bytes.lower()]
        # Short hash: prefix scan
        if len(rev_bytes) >= 4:
            for sha in store:
                if sha.startswith(rev_bytes.lower()):
                    return store[sha]
        raise KeyError(rev)

    def resolve(self, rev: str) -> tuple[str | None, str]:
        """Resolve a ref name or hash to ``(commit_hash, tree_hash)``.

        Tags are peeled.  *commit_hash* is ``None`` when *rev* names a tree
        directly.

        Raises:
            KeyError: *rev* does not name an object.
            ValueError: *rev* resolves to a blob.
        """
        obj = self._lookup(rev)
        for _ in range(50):  # safety limit
            if not isinstance(obj, Tag):
                break
            obj = self._repo[obj.object[1]]
        if isinstance(obj, Commit):
            return obj.id.decode("ascii"), obj.tree.decode("ascii")
        if isinstance(obj, Tree):
            return None, obj.id.decode("ascii")
        raise ValueError(f"{rev!r} does not name a commit or tree")

from .project import Project
from .tree import Tree, TreeState
from .objects import Blob, FilesystemObject
from .entries import EntryKind, TreeEntry
from .decode import parse_raw_tree, parse_ls_tree, parse_ls_tree_paths
from .cache import ObjectCache, MemoryCache
from .gitexe import GitExe
from .exceptions import GitBrowseError, TreeCorruptError, GitExecError, GitNotFoundError

__all__ = [
    "Project", "Tree", "TreeState", "Blob", "FilesystemObject",
    "EntryKind", "TreeEntry",
    "parse_raw_tree", "parse_ls_tree", "parse_ls_tree_paths",
    "ObjectCache", "MemoryCache", "GitExe",
    "GitBrowseError", "TreeCorruptError", "GitExecError", "GitNotFoundError",
]

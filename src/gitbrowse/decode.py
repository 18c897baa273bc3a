"""Decoders for tree listings.

Two sources describe the same tree: the raw object payload (a run of
``<mode> <name>\\0<20-byte id>`` records) and the text printed by
``git ls-tree``.  Both decode to the same list of :class:`TreeEntry`.
"""

from __future__ import annotations

import logging
import re

from .entries import GIT_FILEMODE_COMMIT, EntryKind, TreeEntry, normalize_mode
from .exceptions import TreeCorruptError

logger = logging.getLogger(__name__)

SHA_RAW_LEN = 20

_RAW_MODE_RE = re.compile(rb"[0-7]+")

# <mode> SP <kind> SP <sha>[ <size>|-] TAB <name>
_LS_TREE_RE = re.compile(
    r"^([0-9]+) (\S+) ([0-9a-fA-F]{40})(\s+[0-9]+|\s+-)?\t(.+)$"
)

_C_ESCAPES = {
    "a": 0x07, "b": 0x08, "t": 0x09, "n": 0x0A,
    "v": 0x0B, "f": 0x0C, "r": 0x0D, '"': 0x22, "\\": 0x5C,
}
_C_UNESCAPES = {v: k for k, v in _C_ESCAPES.items()}


def join_path(base: str, name: str) -> str:
    """Prefix *name* with ``base + "/"`` when *base* is non-empty."""
    return f"{base}/{name}" if base else name


def quote_path(name: str) -> str:
    """Quote *name* the way ``git ls-tree`` does with ``core.quotePath=false``.

    Names containing a double quote, a backslash or a control character
    are wrapped in double quotes with C-style escapes.  Everything else is
    returned unchanged.
    """
    if not any(ord(ch) < 0x20 or ch in '"\\\x7f' for ch in name):
        return name
    out = []
    for ch in name:
        code = ord(ch)
        if code in _C_UNESCAPES:
            out.append("\\" + _C_UNESCAPES[code])
        elif code < 0x20 or code == 0x7F:
            out.append(f"\\{code:03o}")
        else:
            out.append(ch)
    return '"' + "".join(out) + '"'


def unquote_path(name: str) -> str:
    """Undo the C-style quoting git applies to unusual path names."""
    if len(name) < 2 or name[0] != '"' or name[-1] != '"':
        return name
    body = name[1:-1]
    out = bytearray()
    i = 0
    while i < len(body):
        ch = body[i]
        if ch != "\\" or i + 1 == len(body):
            out += ch.encode("utf-8", "surrogateescape")
            i += 1
            continue
        octal = body[i + 1:i + 4]
        if len(octal) == 3 and all(c in "01234567" for c in octal):
            out.append(int(octal, 8) & 0xFF)
            i += 4
        else:
            out.append(_C_ESCAPES.get(body[i + 1], ord(body[i + 1]) & 0xFF))
            i += 2
    return out.decode("utf-8", "surrogateescape")


def parse_raw_tree(data: bytes, base_path: str = "") -> list[TreeEntry]:
    """Decode a raw tree object payload.

    Args:
        data: The tree payload, without the ``tree <size>\\0`` header.
        base_path: Path of the tree; prefixed onto every entry name.

    Returns:
        Entries in payload order.  Submodule entries are dropped.

    Raises:
        TreeCorruptError: The payload ends mid-record or a mode is not octal.
    """
    entries: list[TreeEntry] = []
    pos = 0
    length = len(data)
    while pos < length:
        space = data.find(b" ", pos)
        if space == -1:
            raise TreeCorruptError(f"Missing space after mode at offset {pos}")
        nul = data.find(b"\0", space + 1)
        if nul == -1:
            raise TreeCorruptError(f"Missing NUL after name at offset {space + 1}")
        end = nul + 1 + SHA_RAW_LEN
        if end > length:
            raise TreeCorruptError(
                f"Truncated object id at offset {nul + 1}: "
                f"{length - nul - 1} of {SHA_RAW_LEN} bytes"
            )

        raw_mode = data[pos:space]
        if not _RAW_MODE_RE.fullmatch(raw_mode):
            raise TreeCorruptError(f"Invalid mode {raw_mode!r} at offset {pos}")
        mode = normalize_mode(raw_mode.decode("ascii"))
        filemode = int(mode, 8)
        name = data[space + 1:nul].decode("utf-8", "surrogateescape")
        sha = data[nul + 1:end].hex()
        pos = end

        if filemode == GIT_FILEMODE_COMMIT:
            # submodules are not supported
            continue

        entries.append(TreeEntry(
            path=join_path(base_path, name),
            mode=mode,
            kind=EntryKind.from_filemode(filemode),
            hash=sha,
        ))

    logger.debug("decoded %d raw tree entries under %r", len(entries), base_path)
    return entries


def parse_ls_tree(output: str, base_path: str = "") -> list[TreeEntry]:
    """Decode ``git ls-tree`` output, one entry per line.

    Lines that do not match the listing format, and lines of any kind other
    than ``tree`` or ``blob``, are skipped.  The size column (``-l``) is
    kept for blobs when it holds a number; ``-`` or no column means the
    size is unknown.
    """
    entries: list[TreeEntry] = []
    for line in output.split("\n"):
        m = _LS_TREE_RE.match(line)
        if m is None:
            continue
        mode, kind_word, sha, size_col, name = m.groups()
        size = None
        if kind_word == "tree":
            kind = EntryKind.TREE
        elif kind_word == "blob":
            kind = EntryKind.BLOB
            size_col = (size_col or "").strip()
            if size_col and size_col != "-":
                size = int(size_col)
        else:
            continue

        entries.append(TreeEntry(
            path=join_path(base_path, unquote_path(name.strip())),
            mode=normalize_mode(mode),
            kind=kind,
            hash=sha.lower(),
            size=size,
        ))

    logger.debug("decoded %d ls-tree entries under %r", len(entries), base_path)
    return entries


def parse_ls_tree_paths(
    output: str, base_path: str = ""
) -> tuple[dict[str, str], dict[str, str]]:
    """Decode recursive ``git ls-tree -r -t`` output into path indexes.

    Returns:
        ``(tree_paths, blob_paths)``, each mapping a full path to a hash.
    """
    tree_paths: dict[str, str] = {}
    blob_paths: dict[str, str] = {}
    for line in output.split("\n"):
        m = _LS_TREE_RE.match(line)
        if m is None:
            continue
        _mode, kind_word, sha, _size, name = m.groups()
        path = join_path(base_path, unquote_path(name.strip()))
        if kind_word == "tree":
            tree_paths[path] = sha.lower()
        elif kind_word == "blob":
            blob_paths[path] = sha.lower()
    return tree_paths, blob_paths

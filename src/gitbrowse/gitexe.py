"""Wrapper around the git executable."""

from __future__ import annotations

import logging
import os
import re
import shutil
import subprocess

from .exceptions import GitExecError, GitNotFoundError

logger = logging.getLogger(__name__)

GIT_LS_TREE = "ls-tree"

_VERSION_RE = re.compile(r"(\d+(?:\.\d+)*)")


def _parse_version(text: str) -> tuple[int, ...]:
    """Parse ``git version 2.39.2`` (or similar) into ``(2, 39, 2)``."""
    m = _VERSION_RE.search(text)
    if m is None:
        return ()
    return tuple(int(part) for part in m.group(1).split("."))


class GitExe:
    """Runs git commands against bare repositories.

    Args:
        binary: Path to the git executable.  Defaults to ``$GITBROWSE_GIT``,
            then to ``git`` on ``PATH``.
        timeout: Seconds before a command is abandoned; ``None`` waits
            forever.  A timeout propagates as :class:`subprocess.TimeoutExpired`.
    """

    def __init__(self, binary: str | None = None, *, timeout: float | None = None):
        self.binary = binary or os.environ.get("GITBROWSE_GIT") or shutil.which("git")
        self.timeout = timeout
        self._version: tuple[int, ...] | None = None

    def __repr__(self) -> str:
        return f"GitExe({self.binary!r})"

    def _run(self, cmd: list[str], what: str) -> str:
        if self.binary is None:
            raise GitNotFoundError("git is not installed or not on PATH")
        logger.debug("running %s", " ".join(cmd))
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="surrogateescape",
                timeout=self.timeout,
            )
        except FileNotFoundError:
            raise GitNotFoundError(f"git executable not found: {self.binary}") from None
        if result.returncode != 0:
            msg = result.stderr.strip() or result.stdout.strip() or "unknown error"
            raise GitExecError(
                f"git {what} failed: {msg}",
                returncode=result.returncode,
                stderr=result.stderr,
            )
        return result.stdout

    def execute(self, project_path: str, command: str, args: list[str]) -> str:
        """Run ``git <command> <args>`` in the repository at *project_path*.

        Returns the command's stdout.  Path quoting is limited to special
        characters (``core.quotePath=false``) so non-ASCII names come back
        as text.

        Raises:
            GitNotFoundError: No git executable is available.
            GitExecError: git exited with a non-zero status.
        """
        cmd = [
            self.binary or "git",
            f"--git-dir={project_path}",
            "-c", "core.quotePath=false",
            command,
            *args,
        ]
        return self._run(cmd, command)

    @property
    def version(self) -> tuple[int, ...]:
        """Version of the git executable, e.g. ``(2, 39, 2)``."""
        if self._version is None:
            output = self._run([self.binary or "git", "--version"], "--version")
            self._version = _parse_version(output)
            logger.debug("git version %s", ".".join(map(str, self._version)))
        return self._version

    def can_show_size_in_tree(self) -> bool:
        """Whether ``git ls-tree`` accepts ``-l`` (git 1.5.3 and later)."""
        return self.version >= (1, 5, 3)

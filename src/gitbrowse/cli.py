"""gitbrowse CLI — browse trees in bare git repositories."""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager

import click
from dulwich.errors import NotGitRepository

from .exceptions import GitBrowseError
from .gitexe import GitExe
from .objects import Blob
from .project import Project
from .tree import Tree


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _strip_colon(raw: str) -> str:
    """Strip an optional leading ':' from a repo-side path."""
    return raw[1:] if raw.startswith(":") else raw


def _status(ctx, msg):
    """Emit a status message to stderr when verbose mode (-v) is on."""
    if ctx.obj.get("verbose"):
        click.echo(msg, err=True)


def _store_repo(ctx, param, value):
    """Click callback: store --repo value in the context."""
    ctx.ensure_object(dict)
    if value is not None:
        ctx.obj["repo_path"] = value
    return value


def _repo_option(f):
    """Shared --repo/-r option decorator for all commands."""
    return click.option(
        "--repo", "-r", type=click.Path(), envvar="GITBROWSE_REPO",
        help="Path to git repository (or set GITBROWSE_REPO).",
        expose_value=False, callback=_store_repo, is_eager=True,
    )(f)


def _require_repo(ctx) -> str:
    """Get the repo path from context, raising a clear error if missing."""
    repo = ctx.obj.get("repo_path")
    if not repo:
        raise click.ClickException(
            "No repository specified. Use --repo or set GITBROWSE_REPO."
        )
    return repo


def _open_project(ctx) -> Project:
    git = ctx.obj.get("git")
    try:
        return Project.open(
            _require_repo(ctx),
            compat=ctx.obj.get("compat", False),
            git_exe=GitExe(git) if git else None,
        )
    except FileNotFoundError as exc:
        raise click.ClickException(str(exc))


@contextmanager
def _library_errors():
    """Turn library failures into click errors so no partial listing is shown."""
    try:
        yield
    except NotGitRepository as exc:
        raise click.ClickException(f"Not a git repository: {exc}")
    except GitBrowseError as exc:
        raise click.ClickException(str(exc))
    except KeyError as exc:
        key = exc.args[0] if exc.args else ""
        if isinstance(key, bytes):
            key = key.decode("ascii", "replace")
        raise click.ClickException(f"Object not found: {key}")


def _resolve_root(project: Project, rev: str) -> Tree:
    try:
        return project.resolve(rev)
    except KeyError:
        raise click.ClickException(f"Revision not found: {rev}")
    except ValueError as exc:
        raise click.ClickException(str(exc))


def _tree_at(project: Project, rev: str, path: str) -> Tree:
    """Return the tree at *path* in *rev*, positioned at that path."""
    root = _resolve_root(project, rev)
    path = _strip_colon(path).strip("/")
    if not path:
        return root
    tree_hash = root.tree_paths.get(path)
    if tree_hash is None:
        if path in root.blob_paths:
            raise click.ClickException(f"Not a directory: {path}")
        raise click.ClickException(f"Path not found: {path}")
    tree = project.get_tree(tree_hash)
    tree.path = path
    tree.commit_hash = root.commit_hash
    return tree


def _entry_dict(obj) -> dict:
    d = {
        "name": obj.name,
        "path": obj.path,
        "mode": obj.mode,
        "type": "tree" if isinstance(obj, Tree) else "blob",
        "hash": obj.hash,
    }
    if isinstance(obj, Blob):
        d["size"] = obj.size
    return d


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

@click.group()
@click.option("--repo", "-r", type=click.Path(), envvar="GITBROWSE_REPO",
              help="Path to git repository (or set GITBROWSE_REPO).",
              expose_value=False, callback=_store_repo, is_eager=True)
@click.option("--compat", is_flag=True, envvar="GITBROWSE_COMPAT",
              help="Read trees with the git executable instead of raw objects.")
@click.option("--git", "git", type=click.Path(), envvar="GITBROWSE_GIT", default=None,
              help="Path to the git executable (or set GITBROWSE_GIT).")
@click.option("-v", "--verbose", is_flag=True, help="Verbose output on stderr.")
@click.pass_context
def main(ctx, compat, git, verbose):
    """gitbrowse — browse the trees of a git repository without a checkout.

    \b
    Examples:
      gitbrowse -r repo.git ls                 # root of HEAD
      gitbrowse -r repo.git ls -l main :src    # long listing of src/ on main
      gitbrowse -r repo.git paths v1.0         # every path below v1.0
      gitbrowse -r repo.git lookup HEAD :README
    """
    ctx.ensure_object(dict)
    ctx.obj["compat"] = compat
    ctx.obj["git"] = git
    ctx.obj["verbose"] = verbose
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")


@main.command()
@_repo_option
@click.argument("rev", default="HEAD")
@click.argument("path", default="")
@click.option("-l", "--long", "long_", is_flag=True, help="Show modes, types, hashes and sizes.")
@click.option("--format", "fmt", type=click.Choice(["text", "json"]), default="text",
              help="Output format.")
@click.pass_context
def ls(ctx, rev, path, long_, fmt):
    """List the entries of the directory at PATH in REV (default: HEAD).

    A single ':path' argument lists that path in HEAD.
    """
    if rev.startswith(":") and not path:
        rev, path = "HEAD", rev
    project = _open_project(ctx)
    with _library_errors():
        tree = _tree_at(project, rev, path)
        contents = tree.get_contents()
    _status(ctx, f"tree {tree.hash}: {len(contents)} entries")

    if fmt == "json":
        click.echo(json.dumps([_entry_dict(obj) for obj in contents], indent=2))
        return

    for obj in contents:
        if not long_:
            click.echo(obj.name + ("/" if isinstance(obj, Tree) else ""))
            continue
        kind = "tree" if isinstance(obj, Tree) else "blob"
        size = "-"
        if isinstance(obj, Blob) and obj.size is not None:
            size = str(obj.size)
        click.echo(f"{obj.mode_string} {kind} {obj.hash} {size:>8}\t{obj.name}")


@main.command()
@_repo_option
@click.argument("rev", default="HEAD")
@click.option("--type", "kind", type=click.Choice(["all", "tree", "blob"]), default="all",
              help="Only list directories or only files.")
@click.pass_context
def paths(ctx, rev, kind):
    """Print every path below the root of REV with its hash."""
    project = _open_project(ctx)
    with _library_errors():
        root = _resolve_root(project, rev)
        found: dict[str, str] = {}
        if kind in ("all", "tree"):
            found.update(root.tree_paths)
        if kind in ("all", "blob"):
            found.update(root.blob_paths)
    for p in sorted(found):
        click.echo(f"{found[p]}\t{p}")


@main.command()
@_repo_option
@click.argument("rev")
@click.argument("path")
@click.pass_context
def lookup(ctx, rev, path):
    """Print the hash of the file or directory at PATH in REV."""
    project = _open_project(ctx)
    with _library_errors():
        root = _resolve_root(project, rev)
        found = root.path_to_hash(_strip_colon(path))
    if found is None:
        raise click.ClickException(f"Path not found: {path}")
    click.echo(found)

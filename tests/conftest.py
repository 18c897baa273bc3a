"""Shared fixtures for gitbrowse tests."""

from types import SimpleNamespace

import pytest
from click.testing import CliRunner
from dulwich.objects import Blob, Commit, Tag, Tree
from dulwich.repo import Repo

from gitbrowse import Project

SUBMODULE_SHA = b"5" * 40


def _add_blob(repo, data: bytes) -> bytes:
    blob = Blob.from_string(data)
    repo.object_store.add_object(blob)
    return blob.id


def _add_tree(repo, items) -> bytes:
    """*items* is a list of (name, mode, sha) tuples."""
    tree = Tree()
    for name, mode, sha in items:
        tree.add(name, mode, sha)
    repo.object_store.add_object(tree)
    return tree.id


def _add_commit(repo, tree_id: bytes, message: bytes) -> bytes:
    c = Commit()
    c.tree = tree_id
    c.parents = []
    c.author = c.committer = b"gitbrowse <gitbrowse@localhost>"
    c.author_time = c.commit_time = 1700000000
    c.author_timezone = c.commit_timezone = 0
    c.message = message
    repo.object_store.add_object(c)
    return c.id


@pytest.fixture
def sample_repo(tmp_path):
    """Bare repo with one commit on 'main' and an annotated tag 'v1'.

    Tree:
        README.md, run.sh (executable), link -> README.md,
        same1.txt, same2.txt (identical content),
        a/x.txt, b/x.txt (a/ and b/ are the same tree),
        src/app.py, src/lib/util.py,
        vendor (submodule, dropped when decoding)
    """
    path = tmp_path / "sample.git"
    repo = Repo.init_bare(str(path), mkdir=True)

    readme = _add_blob(repo, b"# sample\n")
    run = _add_blob(repo, b"#!/bin/sh\necho hi\n")
    link = _add_blob(repo, b"README.md")
    same = _add_blob(repo, b"same\n")
    x = _add_blob(repo, b"x\n")
    app = _add_blob(repo, b"print('app')\n")
    util = _add_blob(repo, b"def util(): pass\n")

    xdir = _add_tree(repo, [(b"x.txt", 0o100644, x)])
    lib = _add_tree(repo, [(b"util.py", 0o100644, util)])
    src = _add_tree(repo, [(b"app.py", 0o100644, app), (b"lib", 0o040000, lib)])
    root = _add_tree(repo, [
        (b"README.md", 0o100644, readme),
        (b"run.sh", 0o100755, run),
        (b"link", 0o120000, link),
        (b"same1.txt", 0o100644, same),
        (b"same2.txt", 0o100644, same),
        (b"a", 0o040000, xdir),
        (b"b", 0o040000, xdir),
        (b"src", 0o040000, src),
        (b"vendor", 0o160000, SUBMODULE_SHA),
    ])
    commit = _add_commit(repo, root, b"Initial commit\n")
    repo.refs[b"refs/heads/main"] = commit
    repo.refs.set_symbolic_ref(b"HEAD", b"refs/heads/main")

    tag = Tag()
    tag.name = b"v1"
    tag.object = (Commit, commit)
    tag.tagger = b"gitbrowse <gitbrowse@localhost>"
    tag.tag_time = 1700000000
    tag.tag_timezone = 0
    tag.message = b"v1\n"
    repo.object_store.add_object(tag)
    repo.refs[b"refs/tags/v1"] = tag.id

    def hx(sha):
        return sha.decode("ascii")

    return SimpleNamespace(
        path=str(path),
        repo=repo,
        commit=hx(commit),
        root=hx(root),
        src=hx(src),
        lib=hx(lib),
        xdir=hx(xdir),
        readme=hx(readme),
        run=hx(run),
        link=hx(link),
        same=hx(same),
        x=hx(x),
        app=hx(app),
        util=hx(util),
    )


@pytest.fixture
def project(sample_repo):
    """Raw-mode project on the sample repo."""
    return Project(sample_repo.path, repo=sample_repo.repo)


class FakeGitExe:
    """Stands in for GitExe; answers ls-tree from a dulwich-rendered listing."""

    def __init__(self, loader=None, *, outputs=None, can_show_size=True):
        self.loader = loader
        self.outputs = outputs or {}
        self.can_show_size = can_show_size
        self.calls = []

    def execute(self, project_path, command, args):
        self.calls.append((command, list(args)))
        tree_hash = args[-1]
        if tree_hash in self.outputs:
            return self.outputs[tree_hash]
        return self.loader.ls_tree(
            tree_hash, recursive="-r" in args, with_size="-l" in args,
        )

    def can_show_size_in_tree(self):
        return self.can_show_size


@pytest.fixture
def fake_git(project):
    return FakeGitExe(project.loader)


@pytest.fixture
def compat_project(sample_repo, fake_git):
    """Compat-mode project whose git calls are answered by FakeGitExe."""
    return Project(sample_repo.path, repo=sample_repo.repo, compat=True, git_exe=fake_git)


@pytest.fixture
def spy(monkeypatch):
    """Wrap ``obj.name`` so calls are recorded; returns the call list."""
    def _spy(obj, name):
        calls = []
        orig = getattr(obj, name)

        def wrapper(*args, **kwargs):
            calls.append((args, kwargs))
            return orig(*args, **kwargs)

        monkeypatch.setattr(obj, name, wrapper)
        return calls
    return _spy


@pytest.fixture
def runner():
    return CliRunner()

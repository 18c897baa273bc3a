"""Tests for gitbrowse.project and gitbrowse.loader."""

import pytest

from gitbrowse import Blob, MemoryCache, Project, Tree
from gitbrowse.project import DEFAULT_CACHE_ITEMS


class TestProject:
    def test_name_defaults_to_directory(self, sample_repo):
        assert Project(sample_repo.path).name == "sample.git"
        assert Project(sample_repo.path + "/").name == "sample.git"
        assert Project(sample_repo.path, name="demo").name == "demo"

    def test_default_cache(self, sample_repo):
        cache = Project(sample_repo.path).cache
        assert isinstance(cache, MemoryCache)
        assert cache.max_items == DEFAULT_CACHE_ITEMS
        assert Project(sample_repo.path, cache=None).cache is None

    def test_open_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            Project.open(tmp_path / "nope.git")

    def test_open_existing(self, sample_repo):
        project = Project.open(sample_repo.path)
        assert project.get_object(sample_repo.readme) == b"# sample\n"

    def test_get_tree_is_canonical(self, project, sample_repo):
        tree = project.get_tree(sample_repo.root)
        assert isinstance(tree, Tree)
        assert project.get_tree(sample_repo.root.upper()) is tree

    def test_get_blob_is_canonical(self, project, sample_repo):
        blob = project.get_blob(sample_repo.readme)
        assert isinstance(blob, Blob)
        assert project.get_blob(sample_repo.readme) is blob
        assert blob.data == b"# sample\n"

    def test_raw_mode_reports_sizes(self, project):
        assert project.can_show_size_in_tree() is True

    def test_compat_size_capability(self, compat_project, fake_git):
        assert compat_project.can_show_size_in_tree() is True
        fake_git.can_show_size = False
        assert compat_project.can_show_size_in_tree() is False

    def test_compat_ls_tree_args(self, compat_project, fake_git, sample_repo):
        compat_project.ls_tree(sample_repo.src, recursive=True, with_size=True)
        assert fake_git.calls == [("ls-tree", ["--full-name", "-l", "-r", "-t", sample_repo.src])]


class TestResolve:
    @pytest.mark.parametrize("rev", ["HEAD", "main", "refs/heads/main", "v1"])
    def test_refs(self, project, sample_repo, rev):
        tree = project.resolve(rev)
        assert tree.hash == sample_repo.root
        assert tree.commit_hash == sample_repo.commit

    def test_commit_hash(self, project, sample_repo):
        assert project.resolve(sample_repo.commit).hash == sample_repo.root

    def test_short_hash(self, project, sample_repo):
        assert project.resolve(sample_repo.commit[:10]).hash == sample_repo.root

    def test_tree_hash(self, project, sample_repo):
        tree = project.resolve(sample_repo.src)
        assert tree.hash == sample_repo.src
        assert tree.commit_hash is None

    def test_blob_rejected(self, project, sample_repo):
        with pytest.raises(ValueError):
            project.resolve(sample_repo.readme)

    def test_unknown(self, project):
        with pytest.raises(KeyError):
            project.resolve("no-such-branch")


class TestObjectLoader:
    def test_get_object_is_payload(self, project, sample_repo):
        payload = project.loader.get_object(sample_repo.lib)
        assert payload == b"100644 util.py\0" + bytes.fromhex(sample_repo.util)

    def test_get_object_missing(self, project):
        with pytest.raises(KeyError):
            project.loader.get_object("0" * 40)

    def test_ls_tree_format(self, project, sample_repo):
        assert project.loader.ls_tree(sample_repo.src) == (
            f"100644 blob {sample_repo.app}\tapp.py\n"
            f"040000 tree {sample_repo.lib}\tlib\n"
        )

    def test_ls_tree_with_size(self, project, sample_repo):
        size = len(b"print('app')\n")
        assert project.loader.ls_tree(sample_repo.src, with_size=True) == (
            f"100644 blob {sample_repo.app} {str(size).rjust(7)}\tapp.py\n"
            f"040000 tree {sample_repo.lib}       -\tlib\n"
        )

    def test_ls_tree_recursive(self, project, sample_repo):
        lines = project.loader.ls_tree(sample_repo.src, recursive=True).splitlines()
        assert lines == [
            f"100644 blob {sample_repo.app}\tapp.py",
            f"040000 tree {sample_repo.lib}\tlib",
            f"100644 blob {sample_repo.util}\tlib/util.py",
        ]

    def test_ls_tree_submodule_kind(self, project, sample_repo):
        listing = project.loader.ls_tree(sample_repo.root)
        assert f"160000 commit {'5' * 40}\tvendor\n" in listing

    def test_ls_tree_not_a_tree(self, project, sample_repo):
        with pytest.raises(ValueError):
            project.loader.ls_tree(sample_repo.readme)

    def test_object_store_is_repo_store(self, project, sample_repo):
        assert project.loader.object_store is sample_repo.repo.object_store

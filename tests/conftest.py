"""
Shared test helpers: commit-list builders, throwaway pygit2 repositories
and an offscreen QApplication.
"""

import os

import pytest

# Must be set before any QGuiApplication is created
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pygit2  # noqa: E402
from PySide6.QtWidgets import QApplication  # noqa: E402

from gitplus.graph.types import Commit  # noqa: E402


def make_commit(hash, parents=(), refs=(), message=None):
    """Commit with a readable fake hash (short_hash == hash)."""
    return Commit(
        hash=hash,
        short_hash=hash[:7],
        parents=tuple(parents),
        refs=tuple(refs),
        message=message if message is not None else f"commit {hash}",
        author="Test",
        date="2024-01-01 00:00",
    )


@pytest.fixture
def merge_history():
    """C1 -> C2 (merge of C3 and C4) -> C3, C4 -> C5 (root)."""
    return [
        make_commit("C1", ["C2"]),
        make_commit("C2", ["C3", "C4"]),
        make_commit("C3", ["C5"]),
        make_commit("C4", ["C5"]),
        make_commit("C5", []),
    ]


@pytest.fixture
def linear_history():
    """A -> B -> C -> D, newest first."""
    return [
        make_commit("A", ["B"]),
        make_commit("B", ["C"]),
        make_commit("C", ["D"]),
        make_commit("D", []),
    ]


# --- pygit2 repositories ---


@pytest.fixture
def git_repo(tmp_path):
    """
    Non-bare repository on branch main with four commits c1..c4, each adding
    one file. Returns (pygit2.Repository, [c1, c2, c3, c4] hex ids).
    """
    repo = pygit2.init_repository(str(tmp_path / "repo"), initial_head="main")
    repo.config["user.name"] = "Test User"
    repo.config["user.email"] = "test@example.com"

    oids = []
    files = {}
    for i, name in enumerate(["a.txt", "b.txt", "c.txt", "d.txt"], start=1):
        files[name] = f"content {i}\n"
        parents = [oids[-1]] if oids else []
        oids.append(commit_files(repo, files, f"c{i}", parents, ref="refs/heads/main"))
    sync_worktree(repo)
    return repo, oids


def commit_files(repo, files, message, parents, ref=None):
    """Create a commit whose tree holds exactly `files` (name -> text)."""
    builder = repo.TreeBuilder()
    for name, content in sorted(files.items()):
        blob = repo.create_blob(content.encode())
        builder.insert(name, blob, pygit2.enums.FileMode.BLOB)
    tree = builder.write()
    signature = pygit2.Signature("Test User", "test@example.com")
    oid = repo.create_commit(
        ref, signature, signature, message, tree, [pygit2.Oid(hex=p) for p in parents]
    )
    return str(oid)


def sync_worktree(repo):
    """Make index and working tree match HEAD."""
    repo.reset(repo.head.target, pygit2.enums.ResetMode.HARD)


def tree_files(repo, oid):
    """name -> text for every blob in a commit's tree."""
    commit = repo.get(oid)
    return {entry.name: repo.get(entry.id).data.decode() for entry in commit.tree}


# --- Qt ---


@pytest.fixture(scope="session")
def qapp():
    app = QApplication.instance()
    if app is None:
        app = QApplication([])
    return app

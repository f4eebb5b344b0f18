"""
Git repository access using pygit2
"""

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pygit2

from gitplus.constants import DEFAULT_AUTHOR_EMAIL, DEFAULT_AUTHOR_NAME
from gitplus.graph.types import HEAD_BRANCH_PREFIX, HEAD_REF, Commit

SHORT_HASH_LENGTH = 7


class GitPlusRepository:
    """Reads history and refs for the graph view"""

    def __init__(
        self,
        repo_path: str | None = None,
        fallback_name: str = DEFAULT_AUTHOR_NAME,
        fallback_email: str = DEFAULT_AUTHOR_EMAIL,
    ) -> None:
        """Open the repository containing repo_path (default: cwd)"""
        start = repo_path if repo_path is not None else str(Path.cwd())
        discovered = pygit2.discover_repository(start)
        if discovered is None:
            raise ValueError("Not in a git repository")

        self.repo = pygit2.Repository(discovered)
        self.fallback_name = fallback_name
        self.fallback_email = fallback_email

    @property
    def workdir(self) -> Path | None:
        return Path(self.repo.workdir) if self.repo.workdir else None

    @property
    def git_dir(self) -> Path:
        return Path(self.repo.path)

    def get_head_commit(self) -> pygit2.Commit:
        """Get the commit HEAD points at"""
        if self.repo.head_is_unborn:
            raise ValueError("Repository has no commits yet")
        return self.repo.head.peel(pygit2.Commit)

    def get_branch_head(self, branch_name: str) -> pygit2.Commit:
        """Get the head commit of a branch"""
        branch = self.repo.branches[branch_name]
        return branch.peel(pygit2.Commit)

    def get_checked_out_branch(self) -> str | None:
        """Name of the checked out branch, None when detached or unborn"""
        if self.repo.head_is_unborn or self.repo.head_is_detached:
            return None
        return self.repo.head.shorthand

    def get_commit(self, oid: str) -> pygit2.Commit:
        """Look up a commit by full hash"""
        try:
            obj = self.repo.get(oid)
        except ValueError as e:
            raise ValueError(f"Invalid commit id: {oid}") from e
        if not isinstance(obj, pygit2.Commit):
            raise ValueError(f"Commit {oid[:SHORT_HASH_LENGTH]} not found")
        return obj

    def get_local_branches(self) -> list[tuple[str, int]]:
        """Local branch names with tip commit time, newest first"""
        branch_times: list[tuple[str, int]] = []
        for branch_name in self.repo.branches.local:
            commit = self.get_branch_head(branch_name)
            branch_times.append((branch_name, commit.commit_time))
        branch_times.sort(key=lambda x: -x[1])
        return branch_times

    def get_ref_decorations(self) -> dict[str, list[str]]:
        """
        Map commit hash -> ref decorations, formatted like `git log %D`.

        HEAD comes first ("HEAD -> main" when attached, "HEAD" when detached),
        then tags, local branches and remote branches.
        """
        decorations: dict[str, list[str]] = {}

        def add(oid: str, name: str) -> None:
            decorations.setdefault(oid, []).append(name)

        checked_out = self.get_checked_out_branch()
        if not self.repo.head_is_unborn:
            head_oid = str(self.get_head_commit().id)
            if checked_out is None:
                add(head_oid, HEAD_REF)
            else:
                add(head_oid, f"{HEAD_BRANCH_PREFIX}{checked_out}")

        for ref_name in self.repo.references:
            if not ref_name.startswith("refs/tags/"):
                continue
            try:
                commit = self.repo.references[ref_name].peel(pygit2.Commit)
            except (ValueError, pygit2.GitError):
                # Tags on trees or blobs have no place in the graph
                continue
            add(str(commit.id), f"tag: {ref_name[len('refs/tags/'):]}")

        for branch_name in self.repo.branches.local:
            if branch_name == checked_out:
                continue
            add(str(self.get_branch_head(branch_name).id), branch_name)

        for branch_name in self.repo.branches.remote:
            try:
                commit = self.repo.branches.remote[branch_name].peel(pygit2.Commit)
            except (ValueError, pygit2.GitError):
                continue
            add(str(commit.id), branch_name)

        return decorations

    def load_commits(self, branch: str | None = None, limit: int | None = None) -> list[Commit]:
        """
        Load history newest-first, like `git log --date-order`.

        Walks from HEAD, or from `branch` when given. Parents always come
        after their children. An empty repository gives an empty list.
        """
        if branch is not None:
            if branch not in self.repo.branches:
                raise ValueError(f"Unknown branch: {branch}")
            start = self.get_branch_head(branch).id
        elif self.repo.head_is_unborn:
            return []
        else:
            start = self.get_head_commit().id

        decorations = self.get_ref_decorations()
        sort = pygit2.enums.SortMode.TOPOLOGICAL | pygit2.enums.SortMode.TIME

        commits: list[Commit] = []
        for c in self.repo.walk(start, sort):
            if limit and len(commits) >= limit:
                break
            oid = str(c.id)
            commits.append(
                Commit(
                    hash=oid,
                    short_hash=oid[:SHORT_HASH_LENGTH],
                    parents=tuple(str(p) for p in c.parent_ids),
                    refs=tuple(decorations.get(oid, [])),
                    message=c.message.strip().split("\n")[0],
                    author=c.author.name,
                    date=format_signature_time(c.author),
                )
            )
        return commits

    def is_worktree_clean(self) -> bool:
        """True when no tracked file differs from HEAD (untracked files ignored)"""
        return not self.repo.status(untracked_files="no")

    def get_signature(self) -> pygit2.Signature:
        """Committer signature from git config, or the configured fallback"""
        try:
            return self.repo.default_signature
        except (KeyError, pygit2.GitError):
            return pygit2.Signature(self.fallback_name, self.fallback_email)


def format_signature_time(signature: pygit2.Signature) -> str:
    """Signature time in its own timezone, e.g. 2024-05-01 14:03"""
    tz = timezone(timedelta(minutes=signature.offset))
    return datetime.fromtimestamp(signature.time, tz).strftime("%Y-%m-%d %H:%M")

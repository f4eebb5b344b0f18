"""
Git actions with undo support.

Each action is a class with perform() and undo() methods.
Actions are recorded in the action log for undo capability.

History rewrites (reword, squash) keep the tip tree unchanged and only move
refs. Actions that produce new content (cherry-pick, revert) build the new
commits in memory first and move HEAD with a hard reset at the end, so a
conflict never leaves a half-applied state behind.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

import pygit2

from gitplus.git_backend.repository import SHORT_HASH_LENGTH, GitPlusRepository
from gitplus.graph.requests import (
    ActionRequest,
    CherryPickRangeRequest,
    CherryPickRequest,
    EditMessageRequest,
    ResetRequest,
    RevertRequest,
    SquashRequest,
)

PYGIT2_RESET_MODES = {
    "soft": pygit2.enums.ResetMode.SOFT,
    "mixed": pygit2.enums.ResetMode.MIXED,
    "hard": pygit2.enums.ResetMode.HARD,
}


def _short(oid: str) -> str:
    return oid[:SHORT_HASH_LENGTH]


class GitAction(ABC):
    """Base class for undoable git actions."""

    @abstractmethod
    def perform(self) -> None:
        """Execute the action."""
        ...

    @abstractmethod
    def undo(self) -> None:
        """Undo the action."""
        ...

    @abstractmethod
    def description(self) -> str:
        """Human-readable description of the action."""
        ...


def _signature(repo: GitPlusRepository) -> pygit2.Signature:
    return repo.get_signature()


def _require_clean(repo: GitPlusRepository) -> None:
    if not repo.is_worktree_clean():
        raise ValueError("Working tree has uncommitted changes. Commit or stash them first.")


def _move_head(repo: GitPlusRepository, oid: pygit2.Oid) -> None:
    """Point HEAD (through its branch when attached) at oid without touching files."""
    if repo.repo.head_is_detached:
        repo.repo.set_head(oid)
    else:
        repo.repo.references[repo.repo.head.name].set_target(oid)


def _first_parent_descendants(repo: GitPlusRepository, oid: str) -> list[pygit2.Commit]:
    """
    Commits between HEAD and oid on HEAD's first-parent line, newest first.

    oid itself is excluded. Raises ValueError if oid is not on that line.
    """
    descendants: list[pygit2.Commit] = []
    current = repo.get_head_commit()
    while str(current.id) != oid:
        descendants.append(current)
        if not current.parents:
            raise ValueError(
                f"Commit {_short(oid)} is not on the current branch's first-parent history"
            )
        current = current.parents[0]
    return descendants


def _replay(
    repo: GitPlusRepository,
    descendants: list[pygit2.Commit],
    new_base: pygit2.Oid,
    committer: pygit2.Signature,
) -> pygit2.Oid:
    """Re-create descendants (newest first) on top of new_base with their trees unchanged."""
    tip = new_base
    for commit in reversed(descendants):
        tip = repo.repo.create_commit(
            None,
            commit.author,
            committer,
            commit.message,
            commit.tree_id,
            [tip, *commit.parent_ids[1:]],
        )
    return tip


def _conflict_paths(index: pygit2.Index) -> list[str]:
    paths: list[str] = []
    for conflict in index.conflicts:
        # conflict is a tuple of (ancestor, ours, theirs) IndexEntry objects
        for entry in conflict:
            if entry is not None:
                paths.append(entry.path)
    return sorted(set(paths))


def _raise_conflicts(what: str, paths: list[str]) -> None:
    print(f"{what} conflict in {len(paths)} file(s):")
    for path in paths:
        print(f"  - {path}")

    files_str = ", ".join(paths[:5])
    if len(paths) > 5:
        files_str += f", ... ({len(paths) - 5} more)"
    raise ValueError(f"{what} has conflicts in: {files_str}")


def _pick_onto(
    repo: GitPlusRepository,
    commit: pygit2.Commit,
    onto: pygit2.Commit,
    committer: pygit2.Signature,
) -> pygit2.Oid:
    """Apply commit's change on top of onto, returning the new commit id."""
    if len(commit.parents) != 1:
        kind = "root" if not commit.parents else "merge"
        raise ValueError(f"Cannot cherry-pick {kind} commit {_short(str(commit.id))}")

    merged = repo.repo.merge_trees(
        ancestor=commit.parents[0].tree,
        ours=onto.tree,
        theirs=commit.tree,
    )
    if merged.conflicts:
        _raise_conflicts(f"Cherry-pick of {_short(str(commit.id))}", _conflict_paths(merged))

    tree_oid = merged.write_tree(repo.repo)
    return repo.repo.create_commit(
        None, commit.author, committer, commit.message, tree_oid, [onto.id]
    )


@dataclass
class _HeadAction(GitAction):
    """Shared bookkeeping: remembers where HEAD was so undo can return there."""

    repo: GitPlusRepository
    previous_head_oid: str = field(default="", init=False)
    result_oid: str = field(default="", init=False)

    def _remember_head(self) -> pygit2.Commit:
        head = self.repo.get_head_commit()
        self.previous_head_oid = str(head.id)
        return head

    def _check_undoable(self) -> pygit2.Oid:
        if not self.previous_head_oid:
            raise ValueError("Cannot undo: no previous state recorded")
        head = str(self.repo.get_head_commit().id)
        if head != self.result_oid:
            raise ValueError(
                f"Cannot undo {self.description()}: HEAD has moved to {_short(head)}"
            )
        return pygit2.Oid(hex=self.previous_head_oid)

    def undo(self) -> None:
        """Hard reset back to the recorded HEAD."""
        oid = self._check_undoable()
        _require_clean(self.repo)
        self.repo.repo.reset(oid, pygit2.enums.ResetMode.HARD)


@dataclass
class CherryPickAction(_HeadAction):
    """Apply a single commit on top of HEAD."""

    commit_oid: str = ""

    def perform(self) -> None:
        _require_clean(self.repo)
        head = self._remember_head()
        commit = self.repo.get_commit(self.commit_oid)
        new_oid = _pick_onto(self.repo, commit, head, _signature(self.repo))
        self.repo.repo.reset(new_oid, pygit2.enums.ResetMode.HARD)
        self.result_oid = str(new_oid)

    def description(self) -> str:
        return f"Cherry-pick {_short(self.commit_oid)}"


@dataclass
class CherryPickRangeAction(_HeadAction):
    """Apply several commits on top of HEAD, oldest first."""

    commit_oids: tuple[str, ...] = ()  # newest -> oldest

    def perform(self) -> None:
        if not self.commit_oids:
            raise ValueError("Nothing to cherry-pick")
        _require_clean(self.repo)
        tip = self._remember_head()
        committer = _signature(self.repo)

        for oid in reversed(self.commit_oids):
            commit = self.repo.get_commit(oid)
            new_oid = _pick_onto(self.repo, commit, tip, committer)
            tip = self.repo.get_commit(str(new_oid))

        self.repo.repo.reset(tip.id, pygit2.enums.ResetMode.HARD)
        self.result_oid = str(tip.id)

    def description(self) -> str:
        return f"Cherry-pick {len(self.commit_oids)} commits"


@dataclass
class RevertAction(_HeadAction):
    """Create a commit undoing the changes of another commit."""

    commit_oid: str = ""

    def perform(self) -> None:
        _require_clean(self.repo)
        head = self._remember_head()
        commit = self.repo.get_commit(self.commit_oid)
        if len(commit.parents) > 1:
            raise ValueError(f"Cannot revert merge commit {_short(self.commit_oid)}")

        reverted = self.repo.repo.revert_commit(commit, head)
        if reverted.conflicts:
            _raise_conflicts(f"Revert of {_short(self.commit_oid)}", _conflict_paths(reverted))

        tree_oid = reverted.write_tree(self.repo.repo)
        subject = commit.message.strip().split("\n")[0]
        message = f'Revert "{subject}"\n\nThis reverts commit {self.commit_oid}.\n'
        signature = _signature(self.repo)
        new_oid = self.repo.repo.create_commit(
            None, signature, signature, message, tree_oid, [head.id]
        )
        self.repo.repo.reset(new_oid, pygit2.enums.ResetMode.HARD)
        self.result_oid = str(new_oid)

    def description(self) -> str:
        return f"Revert {_short(self.commit_oid)}"


@dataclass
class ResetAction(_HeadAction):
    """Move HEAD to a commit (soft, mixed or hard)."""

    commit_oid: str = ""
    mode: str = "mixed"

    def perform(self) -> None:
        if self.mode not in PYGIT2_RESET_MODES:
            raise ValueError(f"Unknown reset mode: {self.mode}")
        self._remember_head()
        commit = self.repo.get_commit(self.commit_oid)
        self.repo.repo.reset(commit.id, PYGIT2_RESET_MODES[self.mode])
        self.result_oid = str(commit.id)

    def undo(self) -> None:
        """Return to the previous HEAD with the same reset mode."""
        oid = self._check_undoable()
        self.repo.repo.reset(oid, PYGIT2_RESET_MODES[self.mode])

    def description(self) -> str:
        return f"Reset ({self.mode}) to {_short(self.commit_oid)}"


@dataclass
class _RewriteAction(_HeadAction):
    """History rewrite on HEAD's first-parent line. The tip tree never changes."""

    def undo(self) -> None:
        """Point HEAD back at the original commits."""
        _move_head(self.repo, self._check_undoable())


@dataclass
class EditMessageAction(_RewriteAction):
    """Change the message of a commit and re-parent everything above it."""

    commit_oid: str = ""
    new_message: str = ""

    def perform(self) -> None:
        message = self.new_message.strip()
        if not message:
            raise ValueError("Commit message cannot be empty")

        self._remember_head()
        commit = self.repo.get_commit(self.commit_oid)
        descendants = _first_parent_descendants(self.repo, self.commit_oid)
        committer = _signature(self.repo)

        reworded = self.repo.repo.create_commit(
            None,
            commit.author,
            committer,
            message + "\n",
            commit.tree_id,
            list(commit.parent_ids),
        )
        tip = _replay(self.repo, descendants, reworded, committer)
        _move_head(self.repo, tip)
        self.result_oid = str(tip)

    def description(self) -> str:
        return f"Edit message of {_short(self.commit_oid)}"


@dataclass
class SquashAction(_RewriteAction):
    """
    Collapse a consecutive chain of commits into one.

    The new commit has the newest selected commit's tree, the oldest selected
    commit's author, and base_parent_oid as its only parent. Commits above
    the chain are re-parented onto it.
    """

    commit_oids: tuple[str, ...] = ()  # newest -> oldest
    base_parent_oid: str = ""
    message: str = ""

    def perform(self) -> None:
        if len(self.commit_oids) < 2:
            raise ValueError("Select at least two commits to squash")
        if not self.base_parent_oid:
            raise ValueError("Cannot squash: oldest selected commit has no parent.")
        message = self.message.strip()
        if not message:
            raise ValueError("Commit message cannot be empty")

        chain = [self.repo.get_commit(oid) for oid in self.commit_oids]
        expected_parents = [*self.commit_oids[1:], self.base_parent_oid]
        for commit, expected in zip(chain, expected_parents):
            if [str(p) for p in commit.parent_ids] != [expected]:
                raise ValueError(
                    f"Cannot squash: {_short(str(commit.id))} is not a linear "
                    f"child of {_short(expected)}"
                )

        self._remember_head()
        newest, oldest = chain[0], chain[-1]
        descendants = _first_parent_descendants(self.repo, str(newest.id))
        committer = _signature(self.repo)

        squashed = self.repo.repo.create_commit(
            None,
            oldest.author,
            committer,
            message + "\n",
            newest.tree_id,
            [pygit2.Oid(hex=self.base_parent_oid)],
        )
        tip = _replay(self.repo, descendants, squashed, committer)
        _move_head(self.repo, tip)
        self.result_oid = str(tip)

    def description(self) -> str:
        return f"Squash {len(self.commit_oids)} commits onto {_short(self.base_parent_oid)}"


def action_for_request(repo: GitPlusRepository, request: ActionRequest) -> GitAction | None:
    """
    Build the action that carries out a graph request.

    Returns None for requests handled by the UI alone (details, copy hash).
    """
    if isinstance(request, CherryPickRequest):
        return CherryPickAction(repo, commit_oid=request.hash)
    if isinstance(request, CherryPickRangeRequest):
        return CherryPickRangeAction(repo, commit_oids=request.hashes)
    if isinstance(request, RevertRequest):
        return RevertAction(repo, commit_oid=request.hash)
    if isinstance(request, ResetRequest):
        return ResetAction(repo, commit_oid=request.hash, mode=request.mode)
    if isinstance(request, EditMessageRequest):
        return EditMessageAction(repo, commit_oid=request.hash, new_message=request.new_message)
    if isinstance(request, SquashRequest):
        return SquashAction(
            repo,
            commit_oids=request.hashes,
            base_parent_oid=request.base_parent_hash,
            message=request.message,
        )
    return None


class GitActionLog:
    """In-memory log of git actions for undo capability."""

    def __init__(self) -> None:
        self._actions: list[GitAction] = []

    def record(self, action: GitAction) -> None:
        """Record an action that was performed."""
        self._actions.append(action)

    def perform(self, action: GitAction) -> None:
        """Perform an action and record it. Git errors surface as ValueError."""
        try:
            action.perform()
        except (pygit2.GitError, KeyError) as e:
            raise ValueError(f"{action.description()} failed: {e}") from e
        self.record(action)

    def can_undo(self) -> bool:
        """Check if there are actions to undo."""
        return len(self._actions) > 0

    def undo_last(self) -> GitAction | None:
        """Undo the last action and return it."""
        if not self._actions:
            return None
        action = self._actions[-1]
        try:
            action.undo()
        except (pygit2.GitError, KeyError) as e:
            raise ValueError(f"Undo of {action.description()} failed: {e}") from e
        # Only forget the action once it has actually been undone
        self._actions.pop()
        return action

    def get_actions(self) -> list[GitAction]:
        """Get all recorded actions."""
        return list(self._actions)

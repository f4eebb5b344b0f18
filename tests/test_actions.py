"""
Tests for git actions against real repositories.

History in every test starts as c1 -> c2 -> c3 -> c4 on main, each commit
adding one file (a.txt .. d.txt).
"""

import pygit2
import pytest
from conftest import commit_files, tree_files

from gitplus.git_backend.actions import (
    CherryPickAction,
    CherryPickRangeAction,
    EditMessageAction,
    GitActionLog,
    ResetAction,
    RevertAction,
    SquashAction,
    action_for_request,
)
from gitplus.git_backend.repository import GitPlusRepository
from gitplus.graph.requests import (
    CopyHashRequest,
    ResetRequest,
    ShowDetailsRequest,
    SquashRequest,
)


def _head(repo):
    return str(repo.head.target)


def _subjects(repo):
    """First-parent subjects from HEAD, newest first."""
    subjects = []
    commit = repo.head.peel(pygit2.Commit)
    while True:
        subjects.append(commit.message.strip())
        if not commit.parents:
            return subjects
        commit = commit.parents[0]


@pytest.fixture
def gp(git_repo):
    repo, _ = git_repo
    return GitPlusRepository(repo.workdir)


@pytest.fixture
def feature(git_repo):
    """Branch off c1 with two commits adding e.txt then f.txt."""
    repo, oids = git_repo
    base = {"a.txt": "content 1\n"}
    f1 = commit_files(repo, {**base, "e.txt": "e\n"}, "f1", [oids[0]], ref="refs/heads/feature")
    f2 = commit_files(
        repo, {**base, "e.txt": "e\n", "f.txt": "f\n"}, "f2", [f1], ref="refs/heads/feature"
    )
    return f1, f2


class TestEditMessage:
    def test_rewords_and_replays_descendants(self, git_repo, gp):
        repo, oids = git_repo
        tip_tree = repo.get(oids[3]).tree_id

        action = EditMessageAction(gp, commit_oid=oids[1], new_message="reworded c2")
        action.perform()

        assert _subjects(repo) == ["c4", "c3", "reworded c2", "c1"]
        assert repo.head.peel(pygit2.Commit).tree_id == tip_tree
        assert repo.head.shorthand == "main"
        assert gp.is_worktree_clean()

    def test_reword_tip(self, git_repo, gp):
        repo, oids = git_repo
        EditMessageAction(gp, commit_oid=oids[3], new_message="new tip").perform()
        assert _subjects(repo)[:2] == ["new tip", "c3"]

    def test_undo_restores_original_commits(self, git_repo, gp):
        repo, oids = git_repo
        action = EditMessageAction(gp, commit_oid=oids[1], new_message="x")
        action.perform()
        action.undo()
        assert _head(repo) == oids[3]

    def test_empty_message_rejected(self, git_repo, gp):
        _, oids = git_repo
        with pytest.raises(ValueError, match="empty"):
            EditMessageAction(gp, commit_oid=oids[1], new_message="  ").perform()

    def test_commit_off_branch_rejected(self, git_repo, gp, feature):
        repo, oids = git_repo
        with pytest.raises(ValueError, match="first-parent"):
            EditMessageAction(gp, commit_oid=feature[0], new_message="x").perform()
        assert _head(repo) == oids[3]


class TestSquash:
    def test_squash_middle_of_history(self, git_repo, gp):
        repo, oids = git_repo
        action = SquashAction(
            gp, commit_oids=(oids[2], oids[1]), base_parent_oid=oids[0], message="c2+c3"
        )
        action.perform()

        assert _subjects(repo) == ["c4", "c2+c3", "c1"]
        squashed = repo.head.peel(pygit2.Commit).parents[0]
        assert squashed.tree_id == repo.get(oids[2]).tree_id
        assert [str(p) for p in squashed.parent_ids] == [oids[0]]
        assert gp.is_worktree_clean()

    def test_squash_at_tip(self, git_repo, gp):
        repo, oids = git_repo
        SquashAction(
            gp, commit_oids=(oids[3], oids[2]), base_parent_oid=oids[1], message="top"
        ).perform()
        assert _subjects(repo) == ["top", "c2", "c1"]
        assert tree_files(repo, _head(repo)) == tree_files(repo, oids[3])

    def test_keeps_oldest_author(self, git_repo, gp):
        repo, oids = git_repo
        SquashAction(
            gp, commit_oids=(oids[3], oids[2]), base_parent_oid=oids[1], message="top"
        ).perform()
        assert repo.head.peel(pygit2.Commit).author.name == repo.get(oids[2]).author.name

    def test_non_linear_selection_rejected(self, git_repo, gp):
        repo, oids = git_repo
        with pytest.raises(ValueError, match="linear"):
            SquashAction(
                gp, commit_oids=(oids[3], oids[1]), base_parent_oid=oids[0], message="x"
            ).perform()
        assert _head(repo) == oids[3]

    def test_missing_base_rejected(self, git_repo, gp):
        _, oids = git_repo
        with pytest.raises(ValueError, match="no parent"):
            SquashAction(
                gp, commit_oids=(oids[1], oids[0]), base_parent_oid="", message="x"
            ).perform()

    def test_undo(self, git_repo, gp):
        repo, oids = git_repo
        action = SquashAction(
            gp, commit_oids=(oids[2], oids[1]), base_parent_oid=oids[0], message="x"
        )
        action.perform()
        action.undo()
        assert _head(repo) == oids[3]


class TestCherryPick:
    def test_single(self, git_repo, gp, feature):
        repo, oids = git_repo
        CherryPickAction(gp, commit_oid=feature[0]).perform()

        head = repo.head.peel(pygit2.Commit)
        assert head.message.strip() == "f1"
        assert [str(p) for p in head.parent_ids] == [oids[3]]
        assert tree_files(repo, _head(repo))["e.txt"] == "e\n"
        assert (gp.workdir / "e.txt").read_text() == "e\n"
        assert gp.is_worktree_clean()

    def test_range_applies_oldest_first(self, git_repo, gp, feature):
        repo, oids = git_repo
        f1, f2 = feature
        CherryPickRangeAction(gp, commit_oids=(f2, f1)).perform()
        assert _subjects(repo)[:3] == ["f2", "f1", "c4"]
        assert (gp.workdir / "f.txt").exists()

    def test_conflict_leaves_head_alone(self, git_repo, gp):
        repo, oids = git_repo
        files = {"a.txt": "main change\n", "b.txt": "content 2\n", "c.txt": "content 3\n"}
        files["d.txt"] = "content 4\n"
        main_tip = commit_files(repo, files, "edit a on main", [oids[3]], ref="refs/heads/main")
        repo.reset(pygit2.Oid(hex=main_tip), pygit2.enums.ResetMode.HARD)
        other = commit_files(
            repo, {"a.txt": "feature change\n"}, "edit a on feature", [oids[0]], ref="refs/heads/x"
        )

        with pytest.raises(ValueError, match="conflicts"):
            CherryPickAction(gp, commit_oid=other).perform()
        assert _head(repo) == main_tip
        assert gp.is_worktree_clean()

    def test_dirty_worktree_rejected(self, git_repo, gp, feature):
        repo, oids = git_repo
        (gp.workdir / "a.txt").write_text("dirty\n")
        with pytest.raises(ValueError, match="uncommitted"):
            CherryPickAction(gp, commit_oid=feature[0]).perform()
        assert _head(repo) == oids[3]

    def test_merge_commit_rejected(self, git_repo, gp, feature):
        repo, oids = git_repo
        parents = [feature[1], oids[1]]
        merge = commit_files(repo, {"m.txt": "m\n"}, "merge", parents, ref="refs/heads/m")
        with pytest.raises(ValueError, match="merge"):
            CherryPickAction(gp, commit_oid=merge).perform()

    def test_undo(self, git_repo, gp, feature):
        repo, oids = git_repo
        action = CherryPickAction(gp, commit_oid=feature[0])
        action.perform()
        action.undo()
        assert _head(repo) == oids[3]
        assert not (gp.workdir / "e.txt").exists()


class TestRevert:
    def test_revert_removes_change(self, git_repo, gp):
        repo, oids = git_repo
        RevertAction(gp, commit_oid=oids[2]).perform()

        head = repo.head.peel(pygit2.Commit)
        assert head.message.startswith('Revert "c3"')
        assert oids[2] in head.message
        assert [str(p) for p in head.parent_ids] == [oids[3]]
        assert "c.txt" not in tree_files(repo, _head(repo))
        assert not (gp.workdir / "c.txt").exists()

    def test_undo(self, git_repo, gp):
        repo, oids = git_repo
        action = RevertAction(gp, commit_oid=oids[2])
        action.perform()
        action.undo()
        assert _head(repo) == oids[3]
        assert (gp.workdir / "c.txt").exists()


class TestReset:
    def test_hard(self, git_repo, gp):
        repo, oids = git_repo
        ResetAction(gp, commit_oid=oids[1], mode="hard").perform()
        assert _head(repo) == oids[1]
        assert not (gp.workdir / "d.txt").exists()
        assert gp.is_worktree_clean()

    def test_soft_keeps_changes_staged(self, git_repo, gp):
        repo, oids = git_repo
        ResetAction(gp, commit_oid=oids[1], mode="soft").perform()
        assert _head(repo) == oids[1]
        assert (gp.workdir / "d.txt").exists()
        assert not gp.is_worktree_clean()

    def test_undo_returns_to_previous_head(self, git_repo, gp):
        repo, oids = git_repo
        action = ResetAction(gp, commit_oid=oids[0], mode="hard")
        action.perform()
        action.undo()
        assert _head(repo) == oids[3]
        assert (gp.workdir / "d.txt").exists()

    def test_unknown_mode(self, git_repo, gp):
        _, oids = git_repo
        with pytest.raises(ValueError):
            ResetAction(gp, commit_oid=oids[0], mode="keep").perform()


class TestActionLog:
    def test_perform_records_and_undo_pops(self, git_repo, gp):
        repo, oids = git_repo
        log = GitActionLog()
        action = ResetAction(gp, commit_oid=oids[2], mode="hard")
        log.perform(action)
        assert log.get_actions() == [action]
        assert log.can_undo()

        assert log.undo_last() is action
        assert _head(repo) == oids[3]
        assert not log.can_undo()
        assert log.undo_last() is None

    def test_failed_action_not_recorded(self, git_repo, gp):
        _, oids = git_repo
        log = GitActionLog()
        with pytest.raises(ValueError):
            log.perform(EditMessageAction(gp, commit_oid=oids[1], new_message=""))
        assert not log.can_undo()

    def test_undo_refused_after_branch_moves(self, git_repo, gp):
        """A commit made after the rewrite must not be thrown away by undo."""
        repo, oids = git_repo
        log = GitActionLog()
        action = EditMessageAction(gp, commit_oid=oids[2], new_message="third")
        log.perform(action)
        assert action.result_oid == _head(repo)

        files = tree_files(repo, _head(repo))
        files["e.txt"] = "e\n"
        later = commit_files(repo, files, "c5", [_head(repo)], ref="refs/heads/main")

        with pytest.raises(ValueError, match="HEAD has moved"):
            log.undo_last()
        assert _head(repo) == later
        assert log.can_undo()

    def test_reset_undo_refused_after_head_moves(self, git_repo, gp):
        repo, oids = git_repo
        action = ResetAction(gp, commit_oid=oids[1], mode="soft")
        action.perform()
        assert action.result_oid == oids[1]

        repo.references["refs/heads/main"].set_target(pygit2.Oid(hex=oids[2]))
        with pytest.raises(ValueError):
            action.undo()
        assert _head(repo) == oids[2]

    def test_failed_undo_stays_in_log(self, git_repo, gp, feature):
        _, oids = git_repo
        log = GitActionLog()
        log.perform(CherryPickAction(gp, commit_oid=feature[0]))
        (gp.workdir / "a.txt").write_text("dirty\n")
        with pytest.raises(ValueError):
            log.undo_last()
        assert log.can_undo()


class TestActionForRequest:
    def test_ui_only_requests(self, gp):
        assert action_for_request(gp, ShowDetailsRequest("abc")) is None
        assert action_for_request(gp, CopyHashRequest("abc")) is None

    def test_reset_request(self, gp):
        action = action_for_request(gp, ResetRequest("abc", "soft"))
        assert isinstance(action, ResetAction)
        assert action.mode == "soft"
        assert action.commit_oid == "abc"

    def test_squash_request(self, gp):
        action = action_for_request(gp, SquashRequest(("b", "a"), "p", "msg"))
        assert isinstance(action, SquashAction)
        assert action.commit_oids == ("b", "a")
        assert action.base_parent_oid == "p"
        assert action.message == "msg"

    def test_reset_request_validates_mode(self):
        with pytest.raises(ValueError):
            ResetRequest("abc", "keep")

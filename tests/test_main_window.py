"""
Tests for the main window: request handling, undo, branch filtering and
refresh wiring, against a real repository.
"""

from unittest.mock import patch

import pytest
from conftest import commit_files
from PySide6.QtGui import QGuiApplication

from gitplus.config.settings import Settings
from gitplus.git_backend.repository import GitPlusRepository
from gitplus.graph.requests import (
    CopyHashRequest,
    EditMessageRequest,
    ResetRequest,
    RevertRequest,
    ShowDetailsRequest,
)
from gitplus.graph.selection import SelectionState
from gitplus.ui import main_window as main_window_module
from gitplus.ui.commit_diff_window import CommitDiffWindow
from gitplus.ui.git_graph.branches import ALL_BRANCHES_LABEL, BranchListWidget
from gitplus.ui.main_window import MainWindow


@pytest.fixture
def window(qapp, git_repo, tmp_path):
    repo, _ = git_repo
    window = MainWindow(repo_path=repo.workdir, settings=Settings(tmp_path / "settings.json"))
    yield window
    window.close()
    window.deleteLater()


@pytest.fixture
def warnings():
    with patch.object(main_window_module, "QMessageBox") as message_box:
        yield message_box.warning


class TestMainWindow:
    def test_loads_history(self, window, git_repo):
        _, oids = git_repo
        assert window.graph_view.rowCount() == 4
        assert window.graph_view.commits[0].hash == oids[3]
        assert not window._undo_action.isEnabled()

    def test_reset_then_undo(self, window, git_repo, warnings):
        repo, oids = git_repo
        window.handle_request(ResetRequest(oids[1], "hard"))
        assert str(repo.head.target) == oids[1]
        assert window.graph_view.rowCount() == 2
        assert window._undo_action.isEnabled()

        window.undo_last_action()
        assert str(repo.head.target) == oids[3]
        assert window.graph_view.rowCount() == 4
        warnings.assert_not_called()

    def test_failed_action_shows_warning(self, window, git_repo, warnings):
        repo, oids = git_repo
        window.handle_request(EditMessageRequest(oids[1], "   "))
        warnings.assert_called_once()
        _, title, text = warnings.call_args.args
        assert title == "Git Action Failed"
        assert "empty" in text
        assert str(repo.head.target) == oids[3]
        assert not window.action_log.can_undo()

    def test_successful_action_clears_selection(self, window, git_repo, warnings):
        _, oids = git_repo
        window.graph_view.selection.click(1)
        window.graph_view.selection.click(2, shift=True)
        window.handle_request(RevertRequest(oids[3]))

        warnings.assert_not_called()
        assert window.graph_view.rowCount() == 5
        assert window.graph_view.selection.state == SelectionState.EMPTY

        window.graph_view.selection.click(0)
        window.undo_last_action()
        assert window.graph_view.rowCount() == 4
        assert window.graph_view.selection.state == SelectionState.EMPTY

    def test_failed_action_keeps_selection(self, window, git_repo, warnings):
        _, oids = git_repo
        window.graph_view.selection.click(2)
        window.handle_request(EditMessageRequest(oids[1], ""))
        assert window.graph_view.selection.selected == frozenset({2})

    def test_copy_hash(self, window, git_repo):
        _, oids = git_repo
        window.handle_request(CopyHashRequest(oids[2]))
        assert QGuiApplication.clipboard().text() == oids[2]

    def test_show_details(self, window, git_repo):
        _, oids = git_repo
        window.handle_request(ShowDetailsRequest(oids[0]))
        assert len(window._detail_windows) == 1
        assert window._detail_windows[0].windowTitle().startswith(oids[0][:7])

    def test_branch_filter(self, window, git_repo):
        repo, oids = git_repo
        commit_files(repo, {"a.txt": "content 1\n"}, "f1", [oids[0]], ref="refs/heads/feature")
        window.branch_list.branch_selected.emit("feature")
        assert window.graph_view.rowCount() == 2
        window.branch_list.branch_selected.emit(None)
        assert window.graph_view.rowCount() == 4

    def test_deleted_branch_falls_back_to_head(self, window, git_repo):
        repo, oids = git_repo
        commit_files(repo, {"a.txt": "x\n"}, "f1", [oids[0]], ref="refs/heads/feature")
        window.branch_list.branch_selected.emit("feature")
        repo.branches.local.delete("feature")
        window.refresh()
        assert window.branch is None
        assert window.graph_view.rowCount() == 4

    def test_watches_head_and_debounces(self, window):
        head = str(window.repo.git_dir / "HEAD")
        assert head in window._watcher.files()
        window._schedule_refresh(head)
        assert window._refresh_timer.isActive()
        assert window._refresh_timer.isSingleShot()


class TestBranchList:
    def test_lists_all_entry_then_branches(self, qapp, git_repo):
        repo, oids = git_repo
        repo.branches.local.create("older", repo.get(oids[0]))
        widget = BranchListWidget(GitPlusRepository(repo.workdir))
        names = widget.branch_names()
        assert names[0] is None
        assert set(names[1:]) == {"main", "older"}
        assert widget._list.item(0).text() == ALL_BRANCHES_LABEL
        current = [widget._list.item(i) for i in range(len(names)) if names[i] == "main"][0]
        assert current.font().bold()
        assert current.text().endswith("main")

    def test_emits_selected_branch(self, qapp, git_repo):
        repo, _ = git_repo
        widget = BranchListWidget(GitPlusRepository(repo.workdir))
        received = []
        widget.branch_selected.connect(received.append)
        widget._on_item_clicked(widget._list.item(1))
        assert received == ["main"]


class TestCommitDiffWindow:
    def test_root_commit_lists_added_file(self, qapp, git_repo):
        repo, oids = git_repo
        window = CommitDiffWindow(GitPlusRepository(repo.workdir), oids[0])
        item = window._file_tree.topLevelItem(0)
        assert (item.text(0), item.text(1)) == ("A", "a.txt")
        assert "content 1" in window._diff_view.toPlainText()
        assert "1 file(s) changed" in window._summary.text()

    def test_child_commit_shows_only_its_change(self, qapp, git_repo):
        repo, oids = git_repo
        window = CommitDiffWindow(GitPlusRepository(repo.workdir), oids[2])
        assert window._file_tree.topLevelItemCount() == 1
        assert window._file_tree.topLevelItem(0).text(1) == "c.txt"

    def test_selecting_a_file_shows_its_patch(self, qapp, git_repo):
        repo, oids = git_repo
        files = {name: f"content {i}\n" for i, name in enumerate(["a.txt", "b.txt"], start=1)}
        files["a.txt"] = "changed\n"
        oid = commit_files(repo, files, "edit a", [oids[1]])
        window = CommitDiffWindow(GitPlusRepository(repo.workdir), oid)

        item = window._file_tree.topLevelItem(0)
        assert (item.text(0), item.text(1)) == ("M", "a.txt")
        window._file_tree.setCurrentItem(item)
        assert "+changed" in window._diff_view.toPlainText()

        window.show_full_patch()
        assert window._file_tree.currentItem() is None

    def test_unknown_commit(self, qapp, git_repo):
        repo, _ = git_repo
        with pytest.raises(ValueError):
            CommitDiffWindow(GitPlusRepository(repo.workdir), "0" * 40)

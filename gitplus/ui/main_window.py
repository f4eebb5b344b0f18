"""
Main window for gitplus - branch list, commit graph and action handling
"""

from PySide6.QtCore import QFileSystemWatcher, QTimer
from PySide6.QtGui import QGuiApplication, QKeySequence
from PySide6.QtWidgets import QMainWindow, QMessageBox, QSplitter, QStatusBar

from gitplus.config.settings import Settings
from gitplus.constants import REFRESH_DEBOUNCE_MS, WATCHED_GIT_PATHS
from gitplus.git_backend.actions import GitActionLog, action_for_request
from gitplus.git_backend.repository import GitPlusRepository
from gitplus.graph.requests import ActionRequest, CopyHashRequest, ShowDetailsRequest
from gitplus.ui.commit_diff_window import CommitDiffWindow
from gitplus.ui.git_graph.branches import BranchListWidget
from gitplus.ui.git_graph.widget import GitGraphView


class MainWindow(QMainWindow):
    """Main application window"""

    def __init__(
        self,
        repo_path: str | None = None,
        branch: str | None = None,
        max_commits: int | None = None,
        settings: Settings | None = None,
    ) -> None:
        super().__init__()

        self.settings = settings or Settings()
        name, email = self.settings.get_fallback_author()
        self.repo = GitPlusRepository(repo_path, fallback_name=name, fallback_email=email)

        self.branch = branch
        self.max_commits = max_commits or self.settings.get_max_commits()
        self.action_log = GitActionLog()
        # Keep detail windows alive while they are open
        self._detail_windows: list[CommitDiffWindow] = []

        folder = self.repo.workdir or self.repo.git_dir
        self.setWindowTitle(f"gitplus - {folder.name}")
        width, height = self.settings.get("ui.window_size", [1100, 700])
        self.resize(width, height)

        self._setup_ui()
        self._setup_menus()
        self._setup_watcher()
        self.refresh()

    def _setup_ui(self) -> None:
        splitter = QSplitter()
        self.setCentralWidget(splitter)

        self.branch_list = BranchListWidget(self.repo)
        self.branch_list.branch_selected.connect(self._on_branch_selected)
        splitter.addWidget(self.branch_list)

        self.graph_view = GitGraphView(
            geometry=self.settings.get_geometry(),
            confirm_destructive=self.settings.confirm_destructive(),
        )
        self.graph_view.action_requested.connect(self.handle_request)
        splitter.addWidget(self.graph_view)
        splitter.setStretchFactor(1, 1)

        self.status_bar = QStatusBar()
        self.setStatusBar(self.status_bar)

    def _setup_menus(self) -> None:
        menubar = self.menuBar()

        file_menu = menubar.addMenu("&File")
        refresh_action = file_menu.addAction("&Refresh", self.refresh)
        refresh_action.setShortcut(QKeySequence.StandardKey.Refresh)
        file_menu.addSeparator()
        file_menu.addAction("E&xit", self.close)

        edit_menu = menubar.addMenu("&Edit")
        self._undo_action = edit_menu.addAction("&Undo", self.undo_last_action)
        self._undo_action.setShortcut(QKeySequence.StandardKey.Undo)
        self._undo_action.setEnabled(False)

    def _setup_watcher(self) -> None:
        """Refresh when refs or HEAD change on disk, e.g. after a commit in a terminal."""
        self._refresh_timer = QTimer(self)
        self._refresh_timer.setSingleShot(True)
        self._refresh_timer.setInterval(REFRESH_DEBOUNCE_MS)
        self._refresh_timer.timeout.connect(self.refresh)

        self._watcher = QFileSystemWatcher(self)
        self._watcher.fileChanged.connect(self._schedule_refresh)
        self._watcher.directoryChanged.connect(self._schedule_refresh)
        self._watch_git_paths()

    def _watch_git_paths(self) -> None:
        # Git replaces files on update, which drops them from the watch list
        watched = set(self._watcher.files()) | set(self._watcher.directories())
        for name in WATCHED_GIT_PATHS:
            path = self.repo.git_dir / name
            if path.exists() and str(path) not in watched:
                self._watcher.addPath(str(path))

    def _schedule_refresh(self, _path: str = "") -> None:
        self._refresh_timer.start()

    def refresh(self) -> None:
        """Re-read history and redraw the whole graph."""
        try:
            commits = self.repo.load_commits(branch=self.branch, limit=self.max_commits)
        except ValueError as e:
            # Branch vanished under us - fall back to HEAD
            print(f"Failed to load {self.branch}: {e}")
            self.branch = None
            commits = self.repo.load_commits(limit=self.max_commits)

        self.graph_view.set_commits(commits)
        self.branch_list.load_branches(selected=self.branch)
        self._watch_git_paths()
        self._undo_action.setEnabled(self.action_log.can_undo())
        self.status_bar.showMessage(f"{len(commits)} commits")

    def _on_branch_selected(self, branch: str | None) -> None:
        self.branch = branch
        self.graph_view.selection.clear()
        self.refresh()

    def handle_request(self, request: ActionRequest) -> None:
        """Carry out an action requested from the graph."""
        if isinstance(request, ShowDetailsRequest):
            self.show_commit_details(request.hash)
            return
        if isinstance(request, CopyHashRequest):
            QGuiApplication.clipboard().setText(request.hash)
            self.status_bar.showMessage(f"Copied {request.hash}")
            return

        action = action_for_request(self.repo, request)
        if action is None:
            return

        try:
            self.action_log.perform(action)
        except ValueError as e:
            print(f"{action.description()} failed: {e}")
            QMessageBox.warning(self, "Git Action Failed", str(e))
        else:
            # Selected rows index the old history
            self.graph_view.selection.clear()
            self.status_bar.showMessage(action.description())
        self.refresh()

    def undo_last_action(self) -> None:
        """Undo the most recent action (Ctrl+Z)."""
        try:
            action = self.action_log.undo_last()
        except ValueError as e:
            QMessageBox.warning(self, "Cannot Undo", str(e))
            return
        if action is not None:
            self.graph_view.selection.clear()
            self.status_bar.showMessage(f"Undid: {action.description()}")
        self.refresh()

    def show_commit_details(self, commit_hash: str) -> None:
        try:
            window = CommitDiffWindow(self.repo, commit_hash, self)
        except ValueError as e:
            QMessageBox.warning(self, "Commit Not Found", str(e))
            return
        self._detail_windows = [w for w in self._detail_windows if w.isVisible()]
        self._detail_windows.append(window)
        window.show()

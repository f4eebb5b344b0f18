"""
Commit details window: header, changed files and a colourised patch.
"""

import html

import pygit2
from PySide6.QtCore import Qt
from PySide6.QtGui import QColor, QFont
from PySide6.QtWidgets import (
    QHBoxLayout,
    QLabel,
    QMainWindow,
    QPushButton,
    QSplitter,
    QTextEdit,
    QTreeWidget,
    QTreeWidgetItem,
    QVBoxLayout,
    QWidget,
)

from gitplus.git_backend.repository import (
    SHORT_HASH_LENGTH,
    GitPlusRepository,
    format_signature_time,
)

# DeltaStatus -> (letter, colour)
FILE_STATUS = {
    pygit2.enums.DeltaStatus.ADDED: ("A", "#2e7d32"),
    pygit2.enums.DeltaStatus.DELETED: ("D", "#c62828"),
    pygit2.enums.DeltaStatus.MODIFIED: ("M", "#1565c0"),
    pygit2.enums.DeltaStatus.RENAMED: ("R", "#7b1fa2"),
    pygit2.enums.DeltaStatus.COPIED: ("C", "#555555"),
    pygit2.enums.DeltaStatus.TYPECHANGE: ("T", "#555555"),
}

# First match wins, so file headers come before the +/- rules
DIFF_LINE_STYLES = [
    (("+++", "---"), "color:#666;font-weight:bold"),
    (("diff ", "index ", "new file", "deleted file"), "color:#666"),
    (("@@",), "color:#7b1fa2;font-weight:bold"),
    (("+",), "background:#e6ffe6;color:#2e7d32"),
    (("-",), "background:#ffe6e6;color:#c62828"),
]

STATUS_COLUMN = 0
PATH_COLUMN = 1


def diff_to_html(diff_text: str) -> str:
    """Render a unified diff as preformatted HTML with per-line colouring."""
    rendered = []
    for line in diff_text.splitlines():
        escaped = html.escape(line)
        style = next(
            (css for prefixes, css in DIFF_LINE_STYLES if line.startswith(prefixes)),
            None,
        )
        rendered.append(f'<span style="{style}">{escaped}</span>' if style else escaped)
    return '<pre style="margin:0;padding:8px;">' + "\n".join(rendered) + "</pre>"


def _same_person(a: pygit2.Signature, b: pygit2.Signature) -> bool:
    return (a.name, a.email, a.time) == (b.name, b.email, b.time)


class CommitDiffWindow(QMainWindow):
    """Shows one commit: who, when, the full message and what it changed."""

    def __init__(
        self,
        repo: GitPlusRepository,
        commit_oid: str,
        parent: QWidget | None = None,
    ) -> None:
        super().__init__(parent)
        self.repo = repo
        self.commit_oid = commit_oid
        self._full_patch = ""
        self._patches: dict[str, str] = {}

        commit = self.repo.get_commit(commit_oid)
        self._build_ui()
        self._populate(commit)

    def _build_ui(self) -> None:
        self.resize(900, 700)

        central = QWidget()
        self.setCentralWidget(central)
        layout = QVBoxLayout(central)
        layout.setContentsMargins(8, 8, 8, 8)
        layout.setSpacing(6)

        self._header = QLabel()
        self._header.setWordWrap(True)
        self._header.setTextFormat(Qt.TextFormat.RichText)
        self._header.setTextInteractionFlags(Qt.TextInteractionFlag.TextSelectableByMouse)
        self._header.setStyleSheet(
            "QLabel { background: #f5f5f5; border: 1px solid #ddd;"
            " border-radius: 4px; padding: 8px; }"
        )
        layout.addWidget(self._header)

        summary_row = QHBoxLayout()
        self._summary = QLabel()
        self._summary.setStyleSheet("color: #666;")
        summary_row.addWidget(self._summary, 1)
        self._all_files_button = QPushButton("Show All Files")
        self._all_files_button.clicked.connect(self.show_full_patch)
        summary_row.addWidget(self._all_files_button)
        layout.addLayout(summary_row)

        splitter = QSplitter(Qt.Orientation.Horizontal)
        layout.addWidget(splitter, 1)

        self._file_tree = QTreeWidget()
        self._file_tree.setColumnCount(2)
        self._file_tree.setHeaderLabels(["", "File"])
        self._file_tree.setRootIsDecorated(False)
        self._file_tree.setColumnWidth(STATUS_COLUMN, 24)
        self._file_tree.currentItemChanged.connect(self._on_current_file_changed)
        splitter.addWidget(self._file_tree)

        self._diff_view = QTextEdit()
        self._diff_view.setReadOnly(True)
        self._diff_view.setLineWrapMode(QTextEdit.LineWrapMode.NoWrap)
        self._diff_view.setFont(QFont("monospace", 10))
        splitter.addWidget(self._diff_view)
        splitter.setSizes([260, 640])

    def _populate(self, commit: pygit2.Commit) -> None:
        short = self.commit_oid[:SHORT_HASH_LENGTH]
        subject = commit.message.strip().split("\n")[0]
        self.setWindowTitle(f"{short} - {subject[:50]}")
        self._header.setText(self._header_html(commit))

        if commit.parents:
            diff = self.repo.repo.diff(commit.parents[0], commit)
        else:
            # Root commit, diff against the empty tree
            diff = commit.tree.diff_to_tree(swap=True)
        diff.find_similar()

        for patch in diff:
            delta = patch.delta
            path = delta.new_file.path or delta.old_file.path
            letter, color = FILE_STATUS.get(delta.status, ("?", "#555555"))

            item = QTreeWidgetItem()
            item.setText(STATUS_COLUMN, letter)
            item.setText(PATH_COLUMN, path)
            item.setForeground(STATUS_COLUMN, QColor(color))
            item.setData(PATH_COLUMN, Qt.ItemDataRole.UserRole, path)
            if delta.status == pygit2.enums.DeltaStatus.RENAMED:
                item.setToolTip(PATH_COLUMN, f"{delta.old_file.path} -> {path}")
            self._file_tree.addTopLevelItem(item)
            self._patches[path] = patch.text or ""

        stats = diff.stats
        self._summary.setText(
            f"{stats.files_changed} file(s) changed, "
            f"+{stats.insertions} -{stats.deletions}"
        )
        self._full_patch = diff.patch or ""
        self.show_full_patch()

    def _header_html(self, commit: pygit2.Commit) -> str:
        author, committer = commit.author, commit.committer
        parents = ", ".join(str(p)[:SHORT_HASH_LENGTH] for p in commit.parent_ids)
        rows = [
            ("Commit", str(commit.id)),
            ("Parents", parents or "(root)"),
            ("Author", f"{author.name} <{author.email}>"),
            ("Date", format_signature_time(author)),
        ]
        if not _same_person(author, committer):
            rows.append(("Committer", f"{committer.name}, {format_signature_time(committer)}"))

        table = "".join(
            f"<tr><td><b>{label}:</b></td><td>{html.escape(value)}</td></tr>"
            for label, value in rows
        )
        message = html.escape(commit.message.strip())
        return f'<table cellspacing="2">{table}</table><pre>{message}</pre>'

    def show_full_patch(self) -> None:
        self._file_tree.setCurrentItem(None)
        self._diff_view.setHtml(diff_to_html(self._full_patch))

    def _on_current_file_changed(self, current: QTreeWidgetItem | None, _previous: object) -> None:
        if current is None:
            return
        path = current.data(PATH_COLUMN, Qt.ItemDataRole.UserRole)
        self._diff_view.setHtml(diff_to_html(self._patches.get(path, "")))

"""Branch list for filtering the git graph to one branch."""

from PySide6.QtCore import Qt, Signal
from PySide6.QtGui import QBrush, QColor
from PySide6.QtWidgets import QListWidget, QListWidgetItem, QVBoxLayout, QWidget

from gitplus.git_backend.repository import GitPlusRepository
from gitplus.graph.types import get_lane_color

ALL_BRANCHES_LABEL = "All (HEAD)"
CURRENT_MARKER = "● "

BRANCH_ROLE = Qt.ItemDataRole.UserRole


class BranchListWidget(QWidget):
    """Local branches, most recently committed first; clicking one filters the graph."""

    branch_selected = Signal(object)  # branch name, or None for HEAD history

    def __init__(self, repo: GitPlusRepository, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self.repo = repo

        self._list = QListWidget()
        self._list.setStyleSheet(
            "QListWidget { border: 1px solid #ddd; border-radius: 4px; font-size: 11px; }"
            "QListWidget::item { padding: 2px 4px; }"
            "QListWidget::item:selected { background: #BBDEFB; color: black; }"
        )
        self._list.itemClicked.connect(self._on_item_clicked)

        layout = QVBoxLayout(self)
        layout.setContentsMargins(4, 4, 4, 4)
        layout.addWidget(self._list)
        self.setFixedWidth(180)

        self.load_branches()

    def branch_names(self) -> list[str | None]:
        """Entries in display order; None stands for the HEAD history."""
        return [self._list.item(row).data(BRANCH_ROLE) for row in range(self._list.count())]

    def load_branches(self, selected: str | None = None) -> None:
        self._list.clear()
        checked_out = self.repo.get_checked_out_branch()

        entries: list[tuple[str | None, str, str | None]] = [(None, ALL_BRANCHES_LABEL, None)]
        for i, (name, _) in enumerate(self.repo.get_local_branches()):
            entries.append((name, name, get_lane_color(i)))

        for name, label, color in entries:
            is_current = name is not None and name == checked_out
            item = QListWidgetItem(CURRENT_MARKER + label if is_current else label)
            item.setData(BRANCH_ROLE, name)
            if color is not None:
                item.setForeground(QBrush(QColor(color).darker(120)))
            if is_current:
                font = item.font()
                font.setBold(True)
                item.setFont(font)
                item.setToolTip("Current branch")
            self._list.addItem(item)
            if name == selected:
                self._list.setCurrentItem(item)

    def _on_item_clicked(self, item: QListWidgetItem) -> None:
        self.branch_selected.emit(item.data(BRANCH_ROLE))

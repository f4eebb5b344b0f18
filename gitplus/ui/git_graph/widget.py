"""Git graph view widget - commit table with the lane graph in its first column."""

from PySide6.QtCore import QModelIndex, QPersistentModelIndex, QRectF, QSize, Qt, Signal
from PySide6.QtGui import (
    QBrush,
    QColor,
    QContextMenuEvent,
    QFont,
    QFontMetrics,
    QKeyEvent,
    QMouseEvent,
    QPainter,
    QPixmap,
)
from PySide6.QtWidgets import (
    QAbstractItemView,
    QHeaderView,
    QInputDialog,
    QMenu,
    QMessageBox,
    QStyledItemDelegate,
    QStyleOptionViewItem,
    QTableWidget,
    QTableWidgetItem,
    QWidget,
)

from gitplus.graph.edges import GraphLayout, route_graph
from gitplus.graph.requests import (
    RESET_MODES,
    CherryPickRequest,
    CopyHashRequest,
    EditMessageRequest,
    ResetRequest,
    RevertRequest,
    ShowDetailsRequest,
)
from gitplus.graph.selection import SelectionModel
from gitplus.graph.types import Commit, RowGeometry, parse_ref
from gitplus.ui.git_graph.painter import render_row

GRAPH_COLUMN = 0
MESSAGE_COLUMN = 1
AUTHOR_COLUMN = 2
DATE_COLUMN = 3
HASH_COLUMN = 4
COLUMN_TITLES = ["Graph", "Description", "Author", "Date", "Commit"]

REFS_ROLE = Qt.ItemDataRole.UserRole + 1

SELECTED_BACKGROUND = QColor("#E3F2FD")

BADGE_COLORS = {
    "head": "#4CAF50",
    "tag": "#FF9800",
    "remote": "#9E9E9E",
    "branch": "#2196F3",
}

RESET_CHOICES = {
    "soft": "Soft - keep changes staged",
    "mixed": "Mixed - keep changes unstaged",
    "hard": "Hard - discard all changes",
}

IndexLike = QModelIndex | QPersistentModelIndex


def _paint_background(painter: QPainter, option: QStyleOptionViewItem, index: IndexLike) -> None:
    background = index.data(Qt.ItemDataRole.BackgroundRole)
    if isinstance(background, (QBrush, QColor)):
        painter.fillRect(option.rect, background)  # type: ignore[attr-defined]


class GraphDelegate(QStyledItemDelegate):
    """Draws each row's pre-rendered graph pixmap."""

    def __init__(self, geometry: RowGeometry, parent: QWidget | None = None) -> None:
        super().__init__(parent)
        self._geometry = geometry
        self._layout: GraphLayout | None = None
        # (row, device pixel ratio) -> pixmap
        self._cache: dict[tuple[int, float], QPixmap] = {}

    def set_layout(self, layout: GraphLayout) -> None:
        self._layout = layout
        self._cache.clear()

    def pixmap_for_row(self, row: int, device_pixel_ratio: float) -> QPixmap | None:
        if self._layout is None or not 0 <= row < len(self._layout.rows):
            return None
        key = (row, device_pixel_ratio)
        if key not in self._cache:
            self._cache[key] = render_row(
                self._layout.rows[row],
                self._layout.canvas_width,
                self._geometry,
                device_pixel_ratio,
            )
        return self._cache[key]

    def paint(self, painter: QPainter, option: QStyleOptionViewItem, index: IndexLike) -> None:
        _paint_background(painter, option, index)
        pixmap = self.pixmap_for_row(index.row(), painter.device().devicePixelRatioF())
        if pixmap is not None:
            painter.drawPixmap(option.rect.topLeft(), pixmap)  # type: ignore[attr-defined]

    def sizeHint(self, option: QStyleOptionViewItem, index: IndexLike) -> QSize:  # noqa: N802
        width = self._layout.canvas_width if self._layout else 0
        return QSize(width, self._geometry.row_height)


class MessageDelegate(QStyledItemDelegate):
    """Draws ref badges in front of the commit subject."""

    BADGE_HEIGHT = 16
    BADGE_SPACING = 4

    def paint(self, painter: QPainter, option: QStyleOptionViewItem, index: IndexLike) -> None:
        _paint_background(painter, option, index)
        rect = option.rect  # type: ignore[attr-defined]
        painter.save()
        painter.setRenderHint(QPainter.RenderHint.Antialiasing)

        font = QFont("sans-serif", 8)
        fm = QFontMetrics(font)
        x = rect.left() + self.BADGE_SPACING
        badge_top = rect.top() + (rect.height() - self.BADGE_HEIGHT) / 2

        for ref in index.data(REFS_ROLE) or ():
            badge = parse_ref(ref)
            if badge is None:
                continue
            color = QColor(BADGE_COLORS[badge.kind])
            width = fm.horizontalAdvance(badge.name) + 8
            badge_rect = QRectF(x, badge_top, width, self.BADGE_HEIGHT)

            painter.setBrush(color.lighter(160))
            painter.setPen(color)
            painter.drawRoundedRect(badge_rect, 3, 3)
            painter.setFont(font)
            painter.setPen(color.darker(130))
            painter.drawText(badge_rect, Qt.AlignmentFlag.AlignCenter, badge.name)
            x += width + self.BADGE_SPACING

        painter.setFont(option.font)  # type: ignore[attr-defined]
        painter.setPen(QColor("#333333"))
        text_rect = rect.adjusted(x - rect.left(), 0, -self.BADGE_SPACING, 0)
        text = QFontMetrics(option.font).elidedText(  # type: ignore[attr-defined]
            str(index.data(Qt.ItemDataRole.DisplayRole) or ""),
            Qt.TextElideMode.ElideRight,
            text_rect.width(),
        )
        painter.drawText(
            text_rect, Qt.AlignmentFlag.AlignVCenter | Qt.AlignmentFlag.AlignLeft, text
        )
        painter.restore()


class GitGraphView(QTableWidget):
    """
    Commit list with a lane graph, row selection and commit context menus.

    The view never touches the repository: every menu choice is emitted as
    an action request through action_requested.
    """

    action_requested = Signal(object)  # ActionRequest

    def __init__(
        self,
        geometry: RowGeometry | None = None,
        confirm_destructive: bool = True,
        parent: QWidget | None = None,
    ) -> None:
        super().__init__(0, len(COLUMN_TITLES), parent)
        self._geometry = geometry or RowGeometry()
        self.confirm_destructive = confirm_destructive
        self.commits: list[Commit] = []
        self.selection = SelectionModel()
        self._graph_layout = route_graph([], geometry=self._geometry)

        self.setHorizontalHeaderLabels(COLUMN_TITLES)
        self.verticalHeader().hide()
        self.verticalHeader().setMinimumSectionSize(self._geometry.row_height)
        self.verticalHeader().setDefaultSectionSize(self._geometry.row_height)
        self.setShowGrid(False)
        self.setWordWrap(False)
        self.setSelectionMode(QAbstractItemView.SelectionMode.NoSelection)
        self.setEditTriggers(QAbstractItemView.EditTrigger.NoEditTriggers)
        self.setFocusPolicy(Qt.FocusPolicy.StrongFocus)

        header = self.horizontalHeader()
        header.setSectionResizeMode(GRAPH_COLUMN, QHeaderView.ResizeMode.Fixed)
        header.setSectionResizeMode(MESSAGE_COLUMN, QHeaderView.ResizeMode.Stretch)
        header.setSectionResizeMode(AUTHOR_COLUMN, QHeaderView.ResizeMode.ResizeToContents)
        header.setSectionResizeMode(DATE_COLUMN, QHeaderView.ResizeMode.ResizeToContents)
        header.setSectionResizeMode(HASH_COLUMN, QHeaderView.ResizeMode.ResizeToContents)

        self._graph_delegate = GraphDelegate(self._geometry, self)
        self.setItemDelegateForColumn(GRAPH_COLUMN, self._graph_delegate)
        self._message_delegate = MessageDelegate(self)
        self.setItemDelegateForColumn(MESSAGE_COLUMN, self._message_delegate)

    @property
    def graph_layout(self) -> GraphLayout:
        return self._graph_layout

    def set_commits(self, commits: list[Commit]) -> None:
        """Replace the commit list and recompute the whole layout."""
        self.commits = list(commits)
        self._graph_layout = route_graph(self.commits, geometry=self._geometry)
        self._graph_delegate.set_layout(self._graph_layout)
        self.selection.prune(len(self.commits))

        self.setRowCount(len(self.commits))
        for row, commit in enumerate(self.commits):
            message_item = QTableWidgetItem(commit.message)
            message_item.setData(REFS_ROLE, commit.refs)
            hash_item = QTableWidgetItem(commit.short_hash)
            hash_item.setFont(QFont("monospace", 9))
            hash_item.setToolTip(commit.hash)
            items = [
                QTableWidgetItem(),
                message_item,
                QTableWidgetItem(commit.author),
                QTableWidgetItem(commit.date),
                hash_item,
            ]
            for column, item in enumerate(items):
                item.setFlags(Qt.ItemFlag.ItemIsEnabled)
                self.setItem(row, column, item)

        self.setColumnWidth(GRAPH_COLUMN, max(self._graph_layout.canvas_width, 1))
        self._sync_selection()

    def _sync_selection(self) -> None:
        """Mirror the selection model onto row backgrounds."""
        for row in range(self.rowCount()):
            selected = self.selection.is_selected(row)
            for column in range(self.columnCount()):
                item = self.item(row, column)
                if item is None:
                    continue
                if selected:
                    item.setBackground(SELECTED_BACKGROUND)
                else:
                    item.setData(Qt.ItemDataRole.BackgroundRole, None)
        self.viewport().update()

    # --- Input ---

    def mousePressEvent(self, event: QMouseEvent) -> None:  # noqa: N802
        """Left click selects a row, shift-click extends from the anchor."""
        row = self.rowAt(event.position().toPoint().y())
        if event.button() == Qt.MouseButton.LeftButton and row >= 0:
            shift = bool(event.modifiers() & Qt.KeyboardModifier.ShiftModifier)
            self.selection.click(row, shift=shift)
            self._sync_selection()
            event.accept()
            return
        super().mousePressEvent(event)

    def mouseDoubleClickEvent(self, event: QMouseEvent) -> None:  # noqa: N802
        """Double click opens the commit details."""
        row = self.rowAt(event.position().toPoint().y())
        if event.button() == Qt.MouseButton.LeftButton and row >= 0:
            self.request_details(row)
            event.accept()
            return
        super().mouseDoubleClickEvent(event)

    def keyPressEvent(self, event: QKeyEvent) -> None:  # noqa: N802
        """Escape clears the selection."""
        if event.key() == Qt.Key.Key_Escape:
            self.selection.clear()
            self._sync_selection()
            event.accept()
            return
        super().keyPressEvent(event)

    def contextMenuEvent(self, event: QContextMenuEvent) -> None:  # noqa: N802
        """Show the range menu inside a multi-row selection, else the single menu."""
        row = self.rowAt(event.pos().y())
        if row < 0:
            return
        in_range = self.selection.context_click(row)
        self._sync_selection()
        menu = self.build_range_menu() if in_range else self.build_single_menu(row)
        menu.exec(event.globalPos())

    # --- Menus ---

    def build_single_menu(self, row: int) -> QMenu:
        menu = QMenu(self)
        menu.addAction("Show Commit Details", lambda: self.request_details(row))
        menu.addSeparator()
        menu.addAction("Copy Hash", lambda: self.request_copy_hash(row))
        menu.addSeparator()
        menu.addAction("Cherry Pick", lambda: self.request_cherry_pick(row))
        menu.addAction("Revert Commit", lambda: self.request_revert(row))
        menu.addSeparator()
        menu.addAction("Edit Commit Message...", lambda: self.request_edit_message(row))
        menu.addAction("Reset to Commit...", lambda: self.request_reset(row))
        return menu

    def build_range_menu(self) -> QMenu:
        menu = QMenu(self)
        count = len(self.selection.selected)
        # Squash only makes sense for an unbroken single-parent chain
        if self.selection.can_squash(self.commits):
            menu.addAction(f"Squash {count} Commits...", self.request_squash)
            menu.addSeparator()
        menu.addAction(f"Cherry-pick {count} Commits", self.request_cherry_pick_range)
        return menu

    # --- Prompts (separate so they can be replaced in tests) ---

    def _confirm(self, title: str, text: str) -> bool:
        if not self.confirm_destructive:
            return True
        result = QMessageBox.question(
            self,
            title,
            text,
            QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No,
            QMessageBox.StandardButton.No,
        )
        return result == QMessageBox.StandardButton.Yes

    def _prompt_message(self, title: str, label: str, text: str) -> str | None:
        message, ok = QInputDialog.getMultiLineText(self, title, label, text)
        if not ok or not message.strip():
            return None
        return message

    def _prompt_reset_mode(self, short_hash: str) -> str | None:
        labels = [RESET_CHOICES[mode] for mode in RESET_MODES]
        choice, ok = QInputDialog.getItem(
            self,
            "Reset to Commit",
            f"Reset current branch to {short_hash}:",
            labels,
            labels.index(RESET_CHOICES["mixed"]),
            False,
        )
        if not ok:
            return None
        return RESET_MODES[labels.index(choice)]

    # --- Requests ---

    def request_details(self, row: int) -> None:
        self.action_requested.emit(ShowDetailsRequest(self.commits[row].hash))

    def request_copy_hash(self, row: int) -> None:
        self.action_requested.emit(CopyHashRequest(self.commits[row].hash))

    def request_cherry_pick(self, row: int) -> None:
        self.action_requested.emit(CherryPickRequest(self.commits[row].hash))

    def request_revert(self, row: int) -> None:
        commit = self.commits[row]
        if self._confirm(
            "Revert Commit",
            f"Are you sure you want to revert commit {commit.short_hash}?",
        ):
            self.action_requested.emit(RevertRequest(commit.hash))

    def request_reset(self, row: int) -> None:
        commit = self.commits[row]
        mode = self._prompt_reset_mode(commit.short_hash)
        if mode is None:
            return
        if self._confirm(
            "Reset to Commit",
            f"Are you sure you want to reset to commit {commit.short_hash} ({mode})?",
        ):
            self.action_requested.emit(ResetRequest(commit.hash, mode))

    def request_edit_message(self, row: int) -> None:
        commit = self.commits[row]
        message = self._prompt_message(
            "Edit Commit Message", f"New message for {commit.short_hash}:", commit.message
        )
        if message is not None and message.strip() != commit.message:
            self.action_requested.emit(EditMessageRequest(commit.hash, message))

    def request_squash(self) -> None:
        if not self.selection.can_squash(self.commits):
            return
        count = len(self.selection.selected)
        # Oldest first, the order the squashed changes were made in
        subjects = [self.commits[i].message for i in reversed(self.selection.sorted_indices)]
        message = self._prompt_message(
            "Squash Commits", f"Squash {count} commits into one:", "\n".join(subjects)
        )
        if message is None:
            return
        if self._confirm("Squash Commits", f"Squash {count} commits into one?"):
            request = self.selection.range_request(self.commits, "squash", message)
            self.action_requested.emit(request)

    def request_cherry_pick_range(self) -> None:
        if len(self.selection.selected) < 2:
            return
        self.action_requested.emit(self.selection.range_request(self.commits, "cherry-pick"))

"""Row selection over the commit list and range-operation eligibility."""

from enum import Enum

from gitplus.graph.requests import CherryPickRangeRequest, SquashRequest
from gitplus.graph.types import Commit


class SelectionState(Enum):
    EMPTY = "empty"
    SINGLE = "single"
    RANGE = "range"


def are_commits_consecutive(commits: list[Commit], sorted_indices: list[int]) -> bool:
    """
    Check that selected rows form an unbroken single-parent chain.

    sorted_indices is ascending, so each adjacent pair is (newer, older).
    Every newer commit must have exactly one parent, and that parent must be
    the older commit. Merges, gaps and side branches all fail. Zero or one
    index is trivially consecutive.
    """
    for newer_index, older_index in zip(sorted_indices, sorted_indices[1:]):
        newer = commits[newer_index]
        older = commits[older_index]
        if len(newer.parents) != 1 or newer.parents[0] != older.hash:
            return False
    return True


def squash_base(commits: list[Commit], sorted_indices: list[int]) -> str | None:
    """Parent of the oldest selected commit, or None if it is a root."""
    if not sorted_indices:
        return None
    oldest = commits[sorted_indices[-1]]
    return oldest.parents[0] if oldest.parents else None


class SelectionModel:
    """
    Single/range selection of row indices.

    - Plain click selects one row and makes it the anchor.
    - Shift-click selects the inclusive span from the anchor, which stays put.
    - Context click inside a multi-row selection keeps it; anywhere else it
      collapses to that row.
    """

    def __init__(self) -> None:
        self._anchor: int | None = None
        self._selected: frozenset[int] = frozenset()

    @property
    def anchor(self) -> int | None:
        return self._anchor

    @property
    def selected(self) -> frozenset[int]:
        return self._selected

    @property
    def sorted_indices(self) -> list[int]:
        return sorted(self._selected)

    @property
    def state(self) -> SelectionState:
        if not self._selected:
            return SelectionState.EMPTY
        if len(self._selected) == 1:
            return SelectionState.SINGLE
        return SelectionState.RANGE

    def is_selected(self, row: int) -> bool:
        return row in self._selected

    def click(self, row: int, shift: bool = False) -> None:
        """Handle a primary click on a row."""
        if shift and self._anchor is not None:
            low, high = min(self._anchor, row), max(self._anchor, row)
            self._selected = frozenset(range(low, high + 1))
        else:
            self._select_single(row)

    def context_click(self, row: int) -> bool:
        """
        Handle a secondary click. Returns True when the click landed inside a
        multi-row selection and the range menu applies.
        """
        if len(self._selected) > 1 and row in self._selected:
            return True
        self._select_single(row)
        return False

    def clear(self) -> None:
        self._anchor = None
        self._selected = frozenset()

    def prune(self, row_count: int) -> None:
        """Drop rows that no longer exist after a refresh shortened the list."""
        self._selected = frozenset(r for r in self._selected if r < row_count)
        if self._anchor is not None and self._anchor >= row_count:
            self._anchor = None
        if not self._selected:
            self._anchor = None

    def _select_single(self, row: int) -> None:
        self._anchor = row
        self._selected = frozenset({row})

    # --- Range requests ---

    def selected_hashes(self, commits: list[Commit]) -> tuple[str, ...]:
        """Selected hashes, newest -> oldest."""
        return tuple(commits[i].hash for i in self.sorted_indices)

    def is_consecutive(self, commits: list[Commit]) -> bool:
        return are_commits_consecutive(commits, self.sorted_indices)

    def can_squash(self, commits: list[Commit]) -> bool:
        """Squash needs a consecutive multi-row chain with a parent to land on."""
        indices = self.sorted_indices
        return (
            len(indices) > 1
            and are_commits_consecutive(commits, indices)
            and squash_base(commits, indices) is not None
        )

    def squash_request(self, commits: list[Commit], message: str) -> SquashRequest:
        indices = self.sorted_indices
        if not are_commits_consecutive(commits, indices):
            raise ValueError("Cannot squash: selected commits are not a linear chain")
        base = squash_base(commits, indices)
        if base is None:
            raise ValueError("Cannot squash: oldest selected commit has no parent.")
        return SquashRequest(self.selected_hashes(commits), base, message)

    def cherry_pick_range_request(self, commits: list[Commit]) -> CherryPickRangeRequest:
        return CherryPickRangeRequest(self.selected_hashes(commits))

    def range_request(
        self, commits: list[Commit], kind: str, message: str = ""
    ) -> SquashRequest | CherryPickRangeRequest:
        """Build the request for a range menu entry ("squash" or "cherry-pick")."""
        if kind == "squash":
            return self.squash_request(commits, message)
        if kind == "cherry-pick":
            return self.cherry_pick_range_request(commits)
        raise ValueError(f"Unknown range action: {kind}")

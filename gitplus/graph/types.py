"""Types and constants for commit graph layout."""

from dataclasses import dataclass

# Ref decoration marking the live checkout pointer (`git log %D` format)
HEAD_REF = "HEAD"
HEAD_BRANCH_PREFIX = "HEAD -> "


@dataclass(frozen=True)
class Commit:
    """A commit as displayed in the graph. Immutable per render cycle."""

    hash: str
    short_hash: str
    parents: tuple[str, ...] = ()
    refs: tuple[str, ...] = ()
    message: str = ""
    author: str = ""
    date: str = ""


@dataclass(frozen=True)
class RefBadge:
    """A ref decoration split into its kind and display name."""

    kind: str  # "head", "tag", "remote" or "branch"
    name: str


# Colors for different lanes
LANE_COLORS = [
    "#e8832a",  # Orange
    "#3d9fd4",  # Blue
    "#4faa5e",  # Green
    "#c75dd3",  # Purple
    "#e05c5c",  # Red
    "#1abc9c",  # Turquoise
    "#9b59b6",  # Amethyst
    "#e8b84b",  # Yellow
    "#16a085",  # Teal
    "#d35400",  # Pumpkin
]


def get_lane_color(lane: int) -> str:
    """Get color for a lane. Colors repeat once lanes exceed the palette."""
    return LANE_COLORS[lane % len(LANE_COLORS)]


class CommitIndex:
    """Hash -> row lookup over a commit list.

    Unknown hashes (parents outside the loaded window) resolve to None.
    """

    def __init__(self, commits: list[Commit]) -> None:
        self._rows: dict[str, int] = {}
        for row, commit in enumerate(commits):
            # Keep the first occurrence so duplicate hashes cannot move a row
            self._rows.setdefault(commit.hash, row)
        self._children: dict[str, list[int]] = {}
        for row, commit in enumerate(commits):
            for parent in commit.parents:
                self._children.setdefault(parent, []).append(row)

    def __len__(self) -> int:
        return len(self._rows)

    def __contains__(self, commit_hash: object) -> bool:
        return commit_hash in self._rows

    def row_of(self, commit_hash: str) -> int | None:
        """Row of a commit, or None when it is not in the list."""
        return self._rows.get(commit_hash)

    def child_rows(self, commit_hash: str) -> list[int]:
        """Rows of every commit listing commit_hash as a parent, ascending."""
        return self._children.get(commit_hash, [])


def is_head_ref(ref: str) -> bool:
    """True for a ref marking the checkout pointer (attached or detached)."""
    return ref == HEAD_REF or ref.startswith(HEAD_BRANCH_PREFIX)


def find_current_commit(commits: list[Commit]) -> str | None:
    """Hash of the commit carrying the checkout pointer.

    Falls back to the first commit when no commit carries a HEAD ref.
    """
    for commit in commits:
        if any(is_head_ref(ref) for ref in commit.refs):
            return commit.hash
    return commits[0].hash if commits else None


def parse_ref(ref: str) -> RefBadge | None:
    """Classify a ref decoration for display.

    Returns None for remote HEAD pointers, which are not shown.
    """
    if ref.startswith(HEAD_BRANCH_PREFIX):
        return RefBadge("head", ref[len(HEAD_BRANCH_PREFIX) :])
    if ref == HEAD_REF:
        return RefBadge("head", HEAD_REF)
    if ref.startswith("tag: "):
        return RefBadge("tag", ref[len("tag: ") :])
    if "origin/HEAD" in ref or "upstream/HEAD" in ref:
        return None
    if "origin/" in ref or "upstream/" in ref:
        return RefBadge("remote", ref.replace("refs/remotes/", ""))
    return RefBadge("branch", ref.replace("refs/heads/", ""))


@dataclass
class RowGeometry:
    """Fixed per-row drawing metrics, in logical pixels."""

    lane_width: int = 18
    row_height: int = 28
    lane_offset: int = 10
    commit_radius: int = 5
    line_width: int = 2
    ring_width: int = 2
    ring_center_radius: int = 2
    canvas_padding: int = 12

    def lane_x(self, lane: int) -> float:
        """Unsnapped x of a lane's center line."""
        return lane * self.lane_width + self.lane_offset

    @property
    def mid_y(self) -> float:
        return self.row_height / 2

    def canvas_width(self, max_lane: int) -> int:
        """Width shared by every row's surface."""
        if max_lane < 0:
            return 0
        return (max_lane + 1) * self.lane_width + self.canvas_padding

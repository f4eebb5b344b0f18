"""
Edge routing for the commit graph - turns lane assignments into per-row
drawing instructions.

COORDINATE SYSTEM NOTE:
Every row is drawn on its own surface of fixed height. Newer commits sit in
rows above older ones, so edges always run DOWN from a child (lower row
index) to its parent (higher row index). Within a row:
- y = 0 is the row top, where edges from newer rows enter
- y = row_height / 2 is the commit marker
- y = row_height is the row bottom, where edges to older rows leave

Routing is pure data: nothing here knows about QPainter or any other
drawing API.
"""

import math
from collections.abc import Iterable
from dataclasses import dataclass

from gitplus.graph.lanes import calculate_lanes, max_lane
from gitplus.graph.types import (
    Commit,
    CommitIndex,
    RowGeometry,
    find_current_commit,
    get_lane_color,
)

Point = tuple[float, float]


def snap(value: float) -> float:
    """Snap to a half pixel so 1-2px lines land exactly on pixel boundaries."""
    return math.floor(value + 0.5) + 0.5


def _round(value: float) -> float:
    # Half-up, unlike round() which rounds half to even
    return float(math.floor(value + 0.5))


@dataclass(frozen=True)
class LineSegment:
    """A straight vertical stroke in one lane."""

    start: Point
    end: Point
    color: str
    kind: str  # "passthrough", "incoming" or "outgoing"


@dataclass(frozen=True)
class CurveSegment:
    """A cubic bezier connecting two lanes."""

    start: Point
    control1: Point
    control2: Point
    end: Point
    color: str
    kind: str  # "incoming" or "outgoing"


@dataclass(frozen=True)
class Marker:
    """The commit glyph, drawn on top of every segment."""

    center: Point
    radius: float
    color: str
    hollow: bool  # ring for the current position, disc otherwise


Segment = LineSegment | CurveSegment


@dataclass(frozen=True)
class RowDrawing:
    """Everything needed to paint one commit row."""

    row: int
    commit_hash: str
    lane: int
    color: str
    segments: tuple[Segment, ...]
    marker: Marker


@dataclass(frozen=True)
class GraphLayout:
    """Lane map plus drawing instructions for every row of a commit list."""

    lanes: dict[str, int]
    rows: tuple[RowDrawing, ...]
    current_hash: str | None
    max_lane: int
    canvas_width: int


def spanning_parents(commits: list[Commit], index: CommitIndex, row: int) -> list[str]:
    """Parent hashes of edges that cross `row` without touching it.

    Scans every earlier row, so this is O(row). route_graph() keeps the
    same list incrementally instead.
    """
    spanning: list[str] = []
    for child_row in range(min(row, len(commits))):
        for parent in commits[child_row].parents:
            parent_row = index.row_of(parent)
            if parent_row is not None and parent_row > row:
                spanning.append(parent)
    return spanning


def route_row(
    commits: list[Commit],
    row: int,
    lanes: dict[str, int],
    index: CommitIndex | None = None,
    current_hash: str | None = None,
    geometry: RowGeometry | None = None,
    spanning: Iterable[str] | None = None,
) -> RowDrawing:
    """
    Work out every segment and the marker for the commit at `row`.

    Segments come back in paint order:
    1. Passthrough lines for edges spanning this row in other lanes
    2. This commit's own lane line (upper half if it has a child above,
       lower half if it has a parent below)
    3. Curves from children in other lanes down into this commit
    4. Curves from this commit down to parents in other lanes
    The marker is kept separate and is always painted last.

    Parents missing from the list are treated as "no such row" and produce
    no segment.
    """
    geometry = geometry or RowGeometry()
    index = index or CommitIndex(commits)
    if spanning is None:
        spanning = spanning_parents(commits, index, row)

    commit = commits[row]
    lane = lanes[commit.hash]
    color = get_lane_color(lane)
    x = snap(geometry.lane_x(lane))
    top = 0.0
    mid = geometry.mid_y
    bottom = float(geometry.row_height)

    segments: list[Segment] = []

    # 1. Passthrough lines for lanes active at this row
    drawn_lanes: set[int] = set()
    for parent in spanning:
        parent_lane = lanes.get(parent)
        if parent_lane is None or parent_lane == lane or parent_lane in drawn_lanes:
            continue
        drawn_lanes.add(parent_lane)
        px = snap(geometry.lane_x(parent_lane))
        segments.append(
            LineSegment((px, top), (px, bottom), get_lane_color(parent_lane), "passthrough")
        )

    # 2. This commit's lane line
    child_rows = [r for r in index.child_rows(commit.hash) if r < row]
    parent_rows: list[tuple[str, int]] = []
    for parent in commit.parents:
        parent_row = index.row_of(parent)
        if parent_row is not None and parent_row > row:
            parent_rows.append((parent, parent_row))

    if child_rows:
        segments.append(LineSegment((x, top), (x, mid), color, "incoming"))
    if parent_rows:
        segments.append(LineSegment((x, mid), (x, bottom), color, "outgoing"))

    # 3. Merge/branch connections from children in other lanes
    for child_row in child_rows:
        child_lane = lanes[commits[child_row].hash]
        if child_lane == lane:
            continue
        child_x = snap(geometry.lane_x(child_lane))
        segments.append(
            CurveSegment((child_x, top), (child_x, mid), (x, top), (x, mid), color, "incoming")
        )

    # 4. Connections to parents in other lanes
    for parent, _ in parent_rows:
        parent_lane = lanes.get(parent)
        if parent_lane is None or parent_lane == lane:
            continue
        parent_x = snap(geometry.lane_x(parent_lane))
        segments.append(
            CurveSegment(
                (x, mid), (x, bottom), (parent_x, mid), (parent_x, bottom), color, "outgoing"
            )
        )

    marker = Marker(
        center=(_round(geometry.lane_x(lane)), _round(mid)),
        radius=geometry.commit_radius,
        color=color,
        hollow=commit.hash == current_hash,
    )

    return RowDrawing(
        row=row,
        commit_hash=commit.hash,
        lane=lane,
        color=color,
        segments=tuple(segments),
        marker=marker,
    )


def route_graph(
    commits: list[Commit],
    lanes: dict[str, int] | None = None,
    geometry: RowGeometry | None = None,
) -> GraphLayout:
    """Allocate lanes (unless given) and route every row of the list."""
    geometry = geometry or RowGeometry()
    if lanes is None:
        lanes = calculate_lanes(commits)
    index = CommitIndex(commits)
    current_hash = find_current_commit(commits)

    # Edges still open above the current row, in the order they were opened:
    # (parent_row, parent_hash)
    open_edges: list[tuple[int, str]] = []
    rows: list[RowDrawing] = []

    for row, commit in enumerate(commits):
        open_edges = [edge for edge in open_edges if edge[0] > row]
        rows.append(
            route_row(
                commits,
                row,
                lanes,
                index=index,
                current_hash=current_hash,
                geometry=geometry,
                spanning=[parent for _, parent in open_edges],
            )
        )
        for parent in commit.parents:
            parent_row = index.row_of(parent)
            if parent_row is not None and parent_row > row:
                open_edges.append((parent_row, parent))

    highest = max_lane(lanes)
    return GraphLayout(
        lanes=lanes,
        rows=tuple(rows),
        current_hash=current_hash,
        max_lane=highest,
        canvas_width=geometry.canvas_width(highest) if commits else 0,
    )

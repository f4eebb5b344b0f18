"""Commit graph layout: lane allocation, edge routing and selection."""

from gitplus.graph.edges import GraphLayout, RowDrawing, route_graph, route_row
from gitplus.graph.lanes import calculate_lanes
from gitplus.graph.selection import SelectionModel, are_commits_consecutive
from gitplus.graph.types import Commit, RowGeometry, find_current_commit

__all__ = [
    "Commit",
    "GraphLayout",
    "RowDrawing",
    "RowGeometry",
    "SelectionModel",
    "are_commits_consecutive",
    "calculate_lanes",
    "find_current_commit",
    "route_graph",
    "route_row",
]

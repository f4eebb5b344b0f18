"""Git graph visualization components."""

from gitplus.ui.git_graph.branches import BranchListWidget
from gitplus.ui.git_graph.widget import GitGraphView

__all__ = ["BranchListWidget", "GitGraphView"]

"""Lane allocation - assigns each commit to a horizontal lane of the graph."""

from gitplus.graph.types import Commit


def _lowest_free_lane(reserved: dict[str, int]) -> int:
    """Lowest lane number not held by any pending reservation.

    At most len(reserved) lanes are taken, so the scan stops within
    len(reserved) + 1 steps.
    """
    used = set(reserved.values())
    for lane in range(len(used) + 1):
        if lane not in used:
            return lane
    raise AssertionError("unreachable: a free lane always exists")


def calculate_lanes(commits: list[Commit]) -> dict[str, int]:
    """
    Assign a lane to every commit in a newest-first commit list.

    Single greedy pass, newest to oldest:
    - A commit takes the lane reserved for it by a child, releasing the
      reservation, or else the next never-used lane.
    - Its first parent inherits that lane unless another child already
      reserved one for it (first writer wins).
    - Each further parent without a reservation gets the lowest lane not
      currently reserved.

    Roots leave no reservation, so their lane becomes free for reuse.
    Returns a fresh mapping on every call.
    """
    lanes: dict[str, int] = {}
    reserved: dict[str, int] = {}
    next_lane = 0

    for commit in commits:
        if commit.hash in reserved:
            lane = reserved.pop(commit.hash)
        else:
            lane = next_lane
            next_lane += 1

        lanes[commit.hash] = lane

        if not commit.parents:
            continue

        first_parent = commit.parents[0]
        if first_parent not in reserved:
            reserved[first_parent] = lane

        for parent in commit.parents[1:]:
            if parent in reserved:
                continue
            new_lane = _lowest_free_lane(reserved)
            reserved[parent] = new_lane
            next_lane = max(next_lane, new_lane + 1)

    return lanes


def max_lane(lanes: dict[str, int]) -> int:
    """Highest lane in use, or -1 for an empty map."""
    return max(lanes.values(), default=-1)

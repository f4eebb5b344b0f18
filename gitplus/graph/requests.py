"""
Action requests emitted by the graph.

Each request carries only identifiers. The graph never performs the
mutation itself; gitplus.git_backend.actions turns requests into actions.
"""

from dataclasses import dataclass

RESET_MODES = ("soft", "mixed", "hard")


@dataclass(frozen=True)
class ShowDetailsRequest:
    hash: str


@dataclass(frozen=True)
class CopyHashRequest:
    hash: str


@dataclass(frozen=True)
class CherryPickRequest:
    hash: str


@dataclass(frozen=True)
class RevertRequest:
    hash: str


@dataclass(frozen=True)
class ResetRequest:
    hash: str
    mode: str = "mixed"

    def __post_init__(self) -> None:
        if self.mode not in RESET_MODES:
            raise ValueError(f"Unknown reset mode: {self.mode}")


@dataclass(frozen=True)
class EditMessageRequest:
    hash: str
    new_message: str


@dataclass(frozen=True)
class SquashRequest:
    """Collapse a consecutive chain into one commit on top of base_parent_hash."""

    hashes: tuple[str, ...]  # newest -> oldest
    base_parent_hash: str
    message: str = ""


@dataclass(frozen=True)
class CherryPickRangeRequest:
    hashes: tuple[str, ...]  # newest -> oldest


ActionRequest = (
    ShowDetailsRequest
    | CopyHashRequest
    | CherryPickRequest
    | RevertRequest
    | ResetRequest
    | EditMessageRequest
    | SquashRequest
    | CherryPickRangeRequest
)

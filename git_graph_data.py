# git_graph_data.py

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class CommitRecord:
    """A commit as handed to the layout engine.

    `parents[0]` is the primary parent (same line of history), any further
    entries are merge sources. Parents may name commits that are not part of
    the batch, e.g. when history was read with a limit.
    """

    sha: str
    parents: tuple[str, ...] = ()
    timestamp: Any = None
    message: str = ""
    author_name: str = ""
    author_email: str = ""
    branch_name: str | None = None

    def __post_init__(self):
        # Accept any sequence for parents but store a tuple
        if not isinstance(self.parents, tuple):
            object.__setattr__(self, "parents", tuple(self.parents))

    @property
    def primary_parent(self) -> str | None:
        return self.parents[0] if self.parents else None

    @property
    def merge_parents(self) -> tuple[str, ...]:
        return self.parents[1:]

    @property
    def is_merge(self) -> bool:
        return len(self.parents) > 1

    def __repr__(self) -> str:
        return (
            f"CommitRecord(sha='{self.sha[:7]}', "
            f"parents={[p[:7] for p in self.parents]}, "
            f"message='{self.message[:20]}')"
        )


class FreeSlot:
    """Occupancy of a lane nobody is waiting on."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "FREE"


FREE = FreeSlot()


@dataclass(frozen=True)
class ExpectingSlot:
    """Occupancy of a lane reserved for the commit `sha`."""

    sha: str


LaneSlot = FreeSlot | ExpectingSlot


@dataclass(frozen=True)
class GraphNode:
    commit: CommitRecord
    row: int
    lane: int
    x: float
    y: float
    color: str

    @property
    def sha(self) -> str:
        return self.commit.sha

    @property
    def parents(self) -> tuple[str, ...]:
        return self.commit.parents

    @property
    def message(self) -> str:
        return self.commit.message

    @property
    def author_name(self) -> str:
        return self.commit.author_name

    @property
    def timestamp(self) -> Any:
        return self.commit.timestamp

    def __repr__(self) -> str:
        return f"GraphNode(sha='{self.sha[:7]}', row={self.row}, lane={self.lane}, x={self.x}, y={self.y}, color={self.color})"


@dataclass(frozen=True)
class GraphEdge:
    """A connector from a child commit down to one of its parents."""

    child_sha: str
    parent_sha: str
    x1: float
    y1: float
    x2: float
    y2: float
    color: str
    is_straight: bool = field(init=False)

    def __post_init__(self):
        object.__setattr__(self, "is_straight", self.x1 == self.x2)

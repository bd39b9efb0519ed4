# git_graph_geometry.py

from dataclasses import dataclass
from typing import Iterable

from git_graph_data import CommitRecord, GraphEdge, GraphNode

# --- Configuration for the graph column ---
LANE_WIDTH = 24
LANE_MARGIN = 20
ROW_HEIGHT = 50

GRAPH_COLORS = (
    "#22d3ee",  # cyan
    "#f472b6",  # pink
    "#a78bfa",  # violet
    "#fbbf24",  # amber
    "#34d399",  # emerald
    "#f87171",  # red
    "#60a5fa",  # blue
    "#fb923c",  # orange
    "#a3e635",  # lime
    "#e879f9",  # fuchsia
)

# Space kept for the graph column even when the history is a single lane
MIN_GRAPH_LANES = 4
GRAPH_TEXT_GUTTER = 60


@dataclass(frozen=True)
class GraphConfig:
    lane_width: float = LANE_WIDTH
    lane_margin: float = LANE_MARGIN
    row_height: float = ROW_HEIGHT
    palette: tuple[str, ...] = GRAPH_COLORS

    def __post_init__(self):
        if not isinstance(self.palette, tuple):
            object.__setattr__(self, "palette", tuple(self.palette))
        if not self.palette:
            raise ValueError("palette needs at least one color")
        if self.lane_width <= 0 or self.row_height <= 0:
            raise ValueError(f"lane_width and row_height must be positive, got {self.lane_width}, {self.row_height}")


DEFAULT_CONFIG = GraphConfig()


def lane_x(lane: int, config: GraphConfig = DEFAULT_CONFIG) -> float:
    return lane * config.lane_width + config.lane_margin


def row_y(row: int, config: GraphConfig = DEFAULT_CONFIG) -> float:
    """Vertical center of the row."""
    return row * config.row_height + config.row_height / 2


def lane_color(lane: int, config: GraphConfig = DEFAULT_CONFIG) -> str:
    return config.palette[lane % len(config.palette)]


def project(commit: CommitRecord, row: int, lane: int, config: GraphConfig = DEFAULT_CONFIG) -> GraphNode:
    return GraphNode(
        commit=commit,
        row=row,
        lane=lane,
        x=lane_x(lane, config),
        y=row_y(row, config),
        color=lane_color(lane, config),
    )


def coordinate_map(nodes: Iterable[GraphNode]) -> dict[str, tuple[float, float]]:
    """sha -> (x, y) for every laid out commit, visible or not."""
    return {node.sha: (node.x, node.y) for node in nodes}


def resolve_edges(
    visible_nodes: Iterable[GraphNode], coordinates: dict[str, tuple[float, float]]
) -> list[GraphEdge]:
    """
    Builds the child -> parent connectors for the displayed nodes.

    `coordinates` should come from the full layout so that a visible commit
    still connects to a parent that lies below the displayed window. Parents
    that were never laid out (history cut off when it was read) get no edge.
    """
    edges = []
    for node in visible_nodes:
        for parent_sha in node.parents:
            target = coordinates.get(parent_sha)
            if target is None:
                continue
            edges.append(
                GraphEdge(
                    child_sha=node.sha,
                    parent_sha=parent_sha,
                    x1=node.x,
                    y1=node.y,
                    x2=target[0],
                    y2=target[1],
                    color=node.color,
                )
            )
    return edges


def connector_path(edge: GraphEdge) -> list[tuple[str, tuple[float, ...]]]:
    """
    Drawing instructions for an edge as (command, points) pairs.

    Same-lane edges are a straight segment. Lane changes are drawn as a cubic
    curve that leaves the child vertically and enters the parent vertically,
    both control points sitting at the vertical midpoint.
    """
    start = ("move", (edge.x1, edge.y1))
    if edge.is_straight:
        return [start, ("line", (edge.x2, edge.y2))]
    mid_y = (edge.y1 + edge.y2) / 2
    return [start, ("cubic", (edge.x1, mid_y, edge.x2, mid_y, edge.x2, edge.y2))]


def max_lane(nodes: Iterable[GraphNode]) -> int:
    return max((node.lane for node in nodes), default=-1)


def graph_width(nodes: Iterable[GraphNode], config: GraphConfig = DEFAULT_CONFIG) -> float:
    """Horizontal space reserved for the graph before commit messages start."""
    lanes = max(MIN_GRAPH_LANES, max_lane(nodes) + 1)
    return lanes * config.lane_width + GRAPH_TEXT_GUTTER

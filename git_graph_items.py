# git_graph_items.py

from PyQt6.QtCore import QPointF, Qt
from PyQt6.QtGui import QBrush, QColor, QFont, QPainterPath, QPen
from PyQt6.QtWidgets import QGraphicsEllipseItem, QGraphicsItem, QGraphicsPathItem, QGraphicsTextItem

from git_graph_data import GraphEdge, GraphNode
from git_graph_geometry import connector_path

# --- Configuration for items ---
COMMIT_RADIUS = 6

SELECTED_COMMIT_COLOR = QColor(Qt.GlobalColor.yellow)
HOVER_COMMIT_COLOR = QColor(Qt.GlobalColor.lightGray)
COMMIT_BORDER_COLOR = QColor(Qt.GlobalColor.white)

EDGE_THICKNESS = 2
EDGE_OPACITY = 0.6

# Configuration for CommitMessageItem
COMMIT_MSG_MAX_LENGTH = 60
COMMIT_MSG_COLOR = QColor("#444444")
COMMIT_MSG_FONT_FAMILY = "Arial"
COMMIT_MSG_FONT_SIZE = 9
SHA_DISPLAY_LENGTH = 7


def first_line(message: str) -> str:
    return message.split("\n", 1)[0]


class CommitCircle(QGraphicsEllipseItem):
    def __init__(self, node: GraphNode, parent: QGraphicsItem = None):
        super().__init__(-COMMIT_RADIUS, -COMMIT_RADIUS, 2 * COMMIT_RADIUS, 2 * COMMIT_RADIUS, parent)
        self.node = node
        self.base_color = QColor(node.color)
        self.current_brush_color = self.base_color

        self.setFlag(QGraphicsItem.GraphicsItemFlag.ItemIsSelectable, True)
        self.setAcceptHoverEvents(True)
        self.setZValue(1)

        self.setBrush(QBrush(self.base_color))
        self.setPen(QPen(COMMIT_BORDER_COLOR, 2))
        self.setPos(node.x, node.y)

        self.setToolTip(
            f"SHA: {node.sha}\n"
            f"Author: {node.commit.author_name} <{node.commit.author_email}>\n"
            f"Date: {node.timestamp}\n"
            f"Message: {node.message}"
        )

    def itemChange(self, change, value):
        if change == QGraphicsItem.GraphicsItemChange.ItemSelectedChange:
            self.current_brush_color = SELECTED_COMMIT_COLOR if value else self.base_color
            self.setBrush(QBrush(self.current_brush_color))
        return super().itemChange(change, value)

    def hoverEnterEvent(self, event):
        if not self.isSelected():
            self.setBrush(QBrush(HOVER_COMMIT_COLOR))
        super().hoverEnterEvent(event)

    def hoverLeaveEvent(self, event):
        if not self.isSelected():
            self.setBrush(QBrush(self.current_brush_color))
        super().hoverLeaveEvent(event)


def build_painter_path(edge: GraphEdge) -> QPainterPath:
    path = QPainterPath()
    for command, points in connector_path(edge):
        if command == "move":
            path.moveTo(QPointF(*points))
        elif command == "line":
            path.lineTo(QPointF(*points))
        elif command == "cubic":
            path.cubicTo(QPointF(*points[0:2]), QPointF(*points[2:4]), QPointF(*points[4:6]))
    return path


class EdgeLine(QGraphicsPathItem):
    """Connector from a commit to one of its parents, drawn in the child's color."""

    def __init__(self, edge: GraphEdge, parent: QGraphicsItem = None):
        super().__init__(parent)
        self.edge = edge
        self.line_color = QColor(edge.color)

        self.setPen(
            QPen(
                self.line_color,
                EDGE_THICKNESS,
                Qt.PenStyle.SolidLine,
                Qt.PenCapStyle.RoundCap,
                Qt.PenJoinStyle.RoundJoin,
            )
        )
        self.setOpacity(EDGE_OPACITY)
        self.setZValue(-1)  # Draw edges behind commits
        self.setPath(build_painter_path(edge))


class CommitMessageItem(QGraphicsTextItem):
    def __init__(self, node: GraphNode, parent: QGraphicsItem = None):
        super().__init__(parent)
        self.node = node

        full_message = first_line(node.message)
        if len(full_message) > COMMIT_MSG_MAX_LENGTH:
            display_message = full_message[: COMMIT_MSG_MAX_LENGTH - 3] + "..."
        else:
            display_message = full_message

        self.setPlainText(f"{node.sha[:SHA_DISPLAY_LENGTH]}  {display_message}  ({node.author_name})")

        self.setFont(QFont(COMMIT_MSG_FONT_FAMILY, COMMIT_MSG_FONT_SIZE))
        self.setDefaultTextColor(COMMIT_MSG_COLOR)

        if display_message != node.message:
            self.setToolTip(f"Full message: {node.message}")

# git_graph_view.py

import logging

from PyQt6.QtCore import Qt, pyqtSignal
from PyQt6.QtGui import QAction, QPainter
from PyQt6.QtWidgets import QApplication, QGraphicsScene, QGraphicsView, QMenu

from commit_filter import filter_commits
from git_graph_data import CommitRecord, GraphNode
from git_graph_geometry import DEFAULT_CONFIG, GraphConfig, coordinate_map, graph_width, resolve_edges
from git_graph_items import CommitCircle, CommitMessageItem, EdgeLine
from git_graph_layout import rearm_policy_by_name
from settings import settings
from threads import GraphLoadThread


class GitGraphView(QGraphicsView):
    commit_item_clicked = pyqtSignal(str)
    graph_loaded = pyqtSignal(int)  # number of commits laid out
    load_failed = pyqtSignal(str)

    def __init__(self, parent=None):
        super().__init__(parent)
        self.scene = QGraphicsScene(self)
        self.setScene(self.scene)

        self.setRenderHint(QPainter.RenderHint.Antialiasing)
        self.setDragMode(QGraphicsView.DragMode.ScrollHandDrag)  # Enable panning
        self.setTransformationAnchor(QGraphicsView.ViewportAnchor.AnchorUnderMouse)  # Zoom towards mouse

        self.config: GraphConfig = DEFAULT_CONFIG
        self.nodes: list[GraphNode] = []
        self._commit_items: dict[str, CommitCircle] = {}
        self._edge_items: list[EdgeLine] = []
        self._message_items: list[CommitMessageItem] = []
        self._load_thread: GraphLoadThread | None = None

        self._zoom_factor_base = 1.1

        self.setContextMenuPolicy(Qt.ContextMenuPolicy.CustomContextMenu)
        self.customContextMenuRequested.connect(self._show_context_menu)

    def clear_graph(self):
        self.scene.clear()
        self.nodes = []
        self._commit_items.clear()
        self._edge_items.clear()
        self._message_items.clear()

    def populate_graph(self, nodes: list[GraphNode], visible_rows: int | None = None, config: GraphConfig | None = None):
        """
        Draws the first `visible_rows` nodes (all of them when None).

        Edges are resolved against the whole layout, so a displayed commit whose
        parent lies below the window still gets a connector pointing down to it.
        """
        self.clear_graph()
        self.nodes = list(nodes)
        self.config = config or self.config

        if not self.nodes:
            return

        visible_nodes = self.nodes if visible_rows is None else self.nodes[:visible_rows]
        message_x = graph_width(self.nodes, self.config)

        for node in visible_nodes:
            commit_item = CommitCircle(node)
            self.scene.addItem(commit_item)
            self._commit_items[node.sha] = commit_item

            message_item = CommitMessageItem(node)
            message_item.setPos(message_x, node.y - message_item.boundingRect().height() / 2)
            self.scene.addItem(message_item)
            self._message_items.append(message_item)

        for edge in resolve_edges(visible_nodes, coordinate_map(self.nodes)):
            edge_item = EdgeLine(edge)
            self.scene.addItem(edge_item)
            self._edge_items.append(edge_item)

        self.scene.setSceneRect(self.scene.itemsBoundingRect().adjusted(0, -20, 50, 20))

    @property
    def commits(self) -> list[CommitRecord]:
        """The commits behind the current layout, newest first."""
        return [node.commit for node in self.nodes]

    def load_repository(
        self,
        repo_path: str = ".",
        branches: list[str] | None = None,
        base_commits: list[CommitRecord] | None = None,
    ):
        """
        Reads and lays out the repository history in the background, then draws it.

        `base_commits` are merged in ahead of the new reads, so commits already
        in them keep their branch names.
        """
        if self._load_thread is not None and self._load_thread.isRunning():
            logging.info("Graph load already running, ignoring request for %s", repo_path)
            return

        self.config = settings.get_graph_config()
        self._load_thread = GraphLoadThread(
            repo_path,
            branches,
            config=self.config,
            rearm_policy=rearm_policy_by_name(settings.get_collision_policy()),
            base_commits=base_commits,
            parent=self,
        )
        self._load_thread.finished.connect(self._on_graph_loaded)
        self._load_thread.error.connect(self._on_load_error)
        self._load_thread.start()

    def add_branch(self, repo_path: str, branch: str):
        """Merges another branch into the loaded graph and redraws it."""
        logging.info("Adding branch %s to the graph", branch)
        self.load_repository(repo_path, [branch], base_commits=self.commits)

    def _on_graph_loaded(self, nodes: list[GraphNode]):
        self.populate_graph(nodes, settings.get_visible_rows())
        if not nodes:
            logging.info("No commits to draw")
        self.graph_loaded.emit(len(nodes))

    def _on_load_error(self, message: str):
        self.clear_graph()
        self.load_failed.emit(message)

    def select_matching(self, text: str) -> int:
        """Selects the drawn commits whose message, author or sha contains `text`."""
        self.scene.clearSelection()
        if not text:
            return 0
        drawn = [item.node for item in self._commit_items.values()]
        matches = filter_commits(drawn, text)
        for node in matches:
            self._commit_items[node.sha].setSelected(True)
        if matches:
            self.centerOn(self._commit_items[matches[0].sha])
        return len(matches)

    def commit_item(self, sha: str) -> CommitCircle | None:
        return self._commit_items.get(sha)

    def edge_items(self) -> list[EdgeLine]:
        return list(self._edge_items)

    def wheelEvent(self, event):
        """Handle mouse wheel events for zooming."""
        if event.modifiers() & Qt.KeyboardModifier.ControlModifier:
            if event.angleDelta().y() > 0:
                self.zoom_in()
            else:
                self.zoom_out()
            event.accept()
        else:
            super().wheelEvent(event)

    def zoom_in(self):
        self.scale(self._zoom_factor_base, self._zoom_factor_base)

    def zoom_out(self):
        self.scale(1.0 / self._zoom_factor_base, 1.0 / self._zoom_factor_base)

    def keyPressEvent(self, event):
        """Ctrl +/- zooms."""
        if event.key() in (Qt.Key.Key_Plus, Qt.Key.Key_Equal):
            if event.modifiers() & Qt.KeyboardModifier.ControlModifier:
                self.zoom_in()
        elif event.key() == Qt.Key.Key_Minus:
            if event.modifiers() & Qt.KeyboardModifier.ControlModifier:
                self.zoom_out()
        else:
            super().keyPressEvent(event)

    def mousePressEvent(self, event):
        if event.button() == Qt.MouseButton.LeftButton:
            item = self.itemAt(event.pos())
            if isinstance(item, CommitCircle):
                self.commit_item_clicked.emit(item.node.sha)
        super().mousePressEvent(event)

    def _show_context_menu(self, pos):
        """Show context menu for right-click on a commit circle."""
        scene_pos = self.mapToScene(pos)
        item = self.scene.itemAt(scene_pos, self.transform())

        if isinstance(item, CommitCircle):
            menu = QMenu(self)
            copy_action = QAction("Copy Commit", self)
            copy_action.triggered.connect(lambda: self._copy_commit_sha(item.node.sha))
            menu.addAction(copy_action)
            menu.exec(self.viewport().mapToGlobal(pos))

    def _copy_commit_sha(self, sha):
        """Copy commit SHA to clipboard."""
        QApplication.clipboard().setText(sha)

import logging
import os
import shutil
import tempfile
import unittest
from unittest import mock

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import git
from PyQt6.QtGui import QColor
from PyQt6.QtWidgets import QApplication

from git_graph_data import CommitRecord, GraphEdge
from git_graph_items import CommitCircle, CommitMessageItem, EdgeLine, build_painter_path
from git_graph_layout import calculate_graph
from git_graph_view import GitGraphView
from main import LOG_FORMAT, CommitGraphWindow, setup_logging
from threads import GraphLoadThread


def sample_nodes():
    return calculate_graph(
        [
            CommitRecord("c4", ("c3", "side"), 5, message="Merge side\n\nLonger body", author_name="Alice"),
            CommitRecord("c3", ("c2",), 4, message="Main work", author_name="Bob"),
            CommitRecord("side", ("c2",), 3, message="Side work", author_name="Alice"),
            CommitRecord("c2", ("c1",), 2, message="Second", author_name="Bob"),
            CommitRecord("c1", ("truncated",), 1, message="First", author_name="Bob"),
        ]
    )


class TestGraphItems(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.app = QApplication.instance() or QApplication([])

    def test_commit_circle_position_and_color(self):
        node = sample_nodes()[2]
        circle = CommitCircle(node)
        self.assertEqual((circle.pos().x(), circle.pos().y()), (node.x, node.y))
        self.assertEqual(circle.brush().color(), QColor(node.color))

    def test_painter_paths(self):
        straight = build_painter_path(GraphEdge("a", "b", 20, 25, 20, 75, "#fff"))
        self.assertEqual(straight.elementCount(), 2)
        curved = build_painter_path(GraphEdge("a", "b", 20, 25, 44, 125, "#fff"))
        self.assertEqual(curved.elementCount(), 4)
        self.assertEqual(curved.currentPosition().x(), 44)

    def test_edge_line_style(self):
        edge_item = EdgeLine(GraphEdge("a", "b", 20, 25, 44, 125, "#f472b6"))
        self.assertEqual(edge_item.pen().color(), QColor("#f472b6"))
        self.assertAlmostEqual(edge_item.opacity(), 0.6)
        self.assertEqual(edge_item.zValue(), -1)

    def test_message_item_shows_first_line(self):
        item = CommitMessageItem(sample_nodes()[0])
        self.assertIn("Merge side", item.toPlainText())
        self.assertNotIn("Longer body", item.toPlainText())
        self.assertIn("Alice", item.toPlainText())


class TestGitGraphView(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.app = QApplication.instance() or QApplication([])

    def setUp(self):
        self.view = GitGraphView()
        self.nodes = sample_nodes()

    def tearDown(self):
        self.view.deleteLater()

    def test_populate_all_rows(self):
        self.view.populate_graph(self.nodes)
        for node in self.nodes:
            self.assertIsNotNone(self.view.commit_item(node.sha))
        # c4 has two edges, c3/side/c2 one each, c1's parent was never read
        self.assertEqual(len(self.view.edge_items()), 5)

    def test_visible_window_keeps_edges_to_hidden_parents(self):
        self.view.populate_graph(self.nodes, visible_rows=2)
        self.assertIsNotNone(self.view.commit_item("c3"))
        self.assertIsNone(self.view.commit_item("side"))

        edges = {(item.edge.child_sha, item.edge.parent_sha): item.edge for item in self.view.edge_items()}
        self.assertEqual(set(edges), {("c4", "c3"), ("c4", "side"), ("c3", "c2")})
        side = next(node for node in self.nodes if node.sha == "side")
        self.assertEqual((edges[("c4", "side")].x2, edges[("c4", "side")].y2), (side.x, side.y))

    def test_empty_graph(self):
        self.view.populate_graph(self.nodes)
        self.view.populate_graph([])
        self.assertEqual(self.view.edge_items(), [])
        self.assertIsNone(self.view.commit_item("c4"))

    def test_select_matching(self):
        self.view.populate_graph(self.nodes)
        self.assertEqual(self.view.select_matching("alice"), 2)
        self.assertTrue(self.view.commit_item("side").isSelected())
        self.assertFalse(self.view.commit_item("c3").isSelected())
        self.assertEqual(self.view.select_matching(""), 0)
        self.assertFalse(self.view.commit_item("side").isSelected())


class TestGraphLoadThread(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.app = QApplication.instance() or QApplication([])

    def setUp(self):
        self.repo_path = tempfile.mkdtemp()
        self.repo = git.Repo.init(self.repo_path)
        actor = git.Actor("Test User", "test@example.com")
        for i in range(3):
            date = f"{1704103200 + i * 60} +0000"
            self.repo.index.commit(f"Commit {i}", author=actor, committer=actor, author_date=date, commit_date=date)

    def tearDown(self):
        self.repo.close()
        shutil.rmtree(self.repo_path)

    def test_run_emits_nodes(self):
        results, errors = [], []
        thread = GraphLoadThread(self.repo_path)
        thread.finished.connect(results.append)
        thread.error.connect(errors.append)
        thread.run()

        self.assertEqual(errors, [])
        self.assertEqual(len(results), 1)
        nodes = results[0]
        self.assertEqual([node.message for node in nodes], ["Commit 2", "Commit 1", "Commit 0"])
        self.assertEqual({node.lane for node in nodes}, {0})

    def test_run_reports_layout_errors(self):
        def broken_policy(track, lane, parent_sha):
            raise RuntimeError("boom")

        results, errors = [], []
        thread = GraphLoadThread(self.repo_path, rearm_policy=broken_policy)
        thread.finished.connect(results.append)
        thread.error.connect(errors.append)
        with self.assertLogs(level="ERROR"):
            thread.run()

        self.assertEqual(results, [])
        self.assertEqual(errors, ["boom"])

    def test_base_commits_keep_their_branch_names(self):
        head = self.repo.head.commit
        base = [CommitRecord(head.hexsha, tuple(p.hexsha for p in head.parents), 1704103320, branch_name="feature")]
        results = []
        thread = GraphLoadThread(self.repo_path, base_commits=base)
        thread.finished.connect(results.append)
        thread.run()

        nodes = results[0]
        self.assertEqual(len(nodes), 3)
        branch_names = {node.sha: node.commit.branch_name for node in nodes}
        self.assertEqual(branch_names[head.hexsha], "feature")
        active = self.repo.active_branch.name
        self.assertEqual(sorted(branch_names.values()), sorted(["feature", active, active]))


class TestCommitGraphWindow(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.app = QApplication.instance() or QApplication([])

    def setUp(self):
        self.repo_path = tempfile.mkdtemp()
        self.repo = git.Repo.init(self.repo_path)
        actor = git.Actor("Test User", "test@example.com")
        first = self.repo.index.commit("Initial commit", author=actor, committer=actor)
        self.repo.create_head("topic", first)
        self.window = CommitGraphWindow(self.repo_path)

    def tearDown(self):
        self.window.close()
        self.repo.close()
        shutil.rmtree(self.repo_path)

    def test_branch_picker_lists_local_branches(self):
        names = [self.window.branch_combo.itemText(i) for i in range(self.window.branch_combo.count())]
        self.assertEqual(sorted(names), sorted(head.name for head in self.repo.heads))
        self.assertIn("topic", names)
        # Filling the picker does not schedule a load
        self.assertFalse(self.window.branch_timer.isActive())

    def test_branch_change_is_debounced(self):
        requests = []
        self.window.graph_view.add_branch = lambda repo_path, branch: requests.append(branch)

        self.window.branch_combo.setCurrentText("topic")
        self.assertTrue(self.window.branch_timer.isActive())
        self.assertEqual(self.window.branch_timer.interval(), 500)
        self.assertEqual(requests, [])

        self.window.branch_timer.stop()
        self.window._apply_branch()
        self.assertEqual(requests, ["topic"])

    def test_add_branch_passes_loaded_commits(self):
        view = self.window.graph_view
        view.populate_graph(sample_nodes())
        calls = []
        view.load_repository = lambda repo_path, branches, base_commits=None: calls.append(
            (repo_path, branches, base_commits)
        )

        view.add_branch(self.repo_path, "topic")

        repo_path, branches, base_commits = calls[0]
        self.assertEqual(branches, ["topic"])
        self.assertEqual([c.sha for c in base_commits], ["c4", "c3", "side", "c2", "c1"])


class TestSetupLogging(unittest.TestCase):
    def test_debug_level_from_environment(self):
        with mock.patch.dict(os.environ, {"DEBUG": "1", "LOG_TO_FILE": "0"}):
            with mock.patch("main.logging.basicConfig") as basic_config:
                setup_logging()
        basic_config.assert_called_once_with(level=logging.DEBUG, format=LOG_FORMAT)

    def test_file_handler(self):
        log_dir = tempfile.mkdtemp()
        root = logging.getLogger()
        before = list(root.handlers)
        try:
            with mock.patch.dict(os.environ, {"DEBUG": "0", "LOG_TO_FILE": "1"}):
                with mock.patch("main.LOG_FILE", os.path.join(log_dir, "graph.log")):
                    with mock.patch("main.logging.basicConfig"):
                        setup_logging()
            added = [h for h in root.handlers if h not in before]
            self.assertEqual(len(added), 1)
            self.assertIsInstance(added[0], logging.FileHandler)
        finally:
            for handler in root.handlers:
                if handler not in before:
                    root.removeHandler(handler)
                    handler.close()
            shutil.rmtree(log_dir)


if __name__ == "__main__":
    unittest.main()

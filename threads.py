import logging

from PyQt6.QtCore import QThread, pyqtSignal

from git_graph_data import CommitRecord
from git_graph_geometry import GraphConfig
from git_graph_layout import RearmPolicy, calculate_graph, merge_commit_batches, overwrite_on_collision
from git_log_parser import DEFAULT_LIMIT, read_commit_history


class GraphLoadThread(QThread):
    """在后台读取提交历史并计算提交图布局"""

    finished = pyqtSignal(object)  # list[GraphNode]
    error = pyqtSignal(str)

    def __init__(
        self,
        repo_path: str,
        branches: list[str] | None = None,
        config: GraphConfig | None = None,
        rearm_policy: RearmPolicy = overwrite_on_collision,
        limit: int = DEFAULT_LIMIT,
        base_commits: list[CommitRecord] | None = None,
        parent=None,
    ):
        super().__init__(parent)
        self.repo_path = repo_path
        self.branches = branches
        self.config = config
        self.rearm_policy = rearm_policy
        self.limit = limit
        # 已加载的提交排在前面，保留原来的分支名
        self.base_commits = list(base_commits or [])

    def run(self):
        try:
            commits = read_commit_history(self.repo_path, self.branches, self.limit)
            if self.base_commits:
                commits = merge_commit_batches(self.base_commits, commits)
            nodes = calculate_graph(commits, self.config, self.rearm_policy)
            logging.info("Laid out %d commits from %s", len(nodes), self.repo_path)
            self.finished.emit(nodes)
        except Exception as e:
            logging.error("Failed to load commit graph for %s: %s", self.repo_path, e)
            self.error.emit(str(e))

import logging
import os
import sys

from PyQt6.QtCore import QTimer
from PyQt6.QtWidgets import QApplication, QComboBox, QHBoxLayout, QLabel, QLineEdit, QMainWindow, QVBoxLayout, QWidget

from git_graph_view import GitGraphView
from git_log_parser import list_branches
from settings import settings

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(filename)s:%(lineno)d - %(message)s"
LOG_FILE = "commit_graph.log"


class CommitGraphWindow(QMainWindow):
    def __init__(self, repo_path: str, branches: list[str] | None = None):
        super().__init__()
        self.repo_path = repo_path
        self.branches = branches
        self.setWindowTitle(f"Commit Graph - {os.path.abspath(repo_path)}")
        self.resize(900, 650)

        central = QWidget(self)
        layout = QVBoxLayout(central)
        layout.setContentsMargins(5, 5, 5, 5)

        toolbar = QHBoxLayout()
        self.search_edit = QLineEdit()
        self.search_edit.setPlaceholderText("搜索提交信息、作者或 SHA")
        self.search_edit.setMaximumWidth(350)
        toolbar.addWidget(self.search_edit)

        toolbar.addWidget(QLabel("Branch:"))
        self.branch_combo = QComboBox()
        self.branch_combo.setMinimumWidth(150)
        self.branch_combo.setToolTip("合并显示另一个分支的提交")
        toolbar.addWidget(self.branch_combo)
        toolbar.addStretch()
        layout.addLayout(toolbar)

        self.graph_view = GitGraphView()
        layout.addWidget(self.graph_view)
        self.setCentralWidget(central)

        # 输入停止 500 毫秒后再搜索
        self.search_timer = QTimer(self)
        self.search_timer.setInterval(500)
        self.search_timer.setSingleShot(True)
        self.search_timer.timeout.connect(self._apply_search)
        self.search_edit.textChanged.connect(lambda _text: self.search_timer.start())

        # 切换分支同样等待 500 毫秒，避免连续切换时重复加载
        self.branch_timer = QTimer(self)
        self.branch_timer.setInterval(500)
        self.branch_timer.setSingleShot(True)
        self.branch_timer.timeout.connect(self._apply_branch)
        self.branch_combo.currentTextChanged.connect(lambda _text: self.branch_timer.start())

        self.graph_view.graph_loaded.connect(self._on_graph_loaded)
        self.graph_view.load_failed.connect(self._on_load_failed)

        self.update_branches(list_branches(repo_path), branches[0] if branches else None)

    def update_branches(self, branches: list[str], current_branch: str | None = None):
        """Fills the branch picker without triggering a load."""
        self.branch_combo.blockSignals(True)
        self.branch_combo.clear()
        self.branch_combo.addItems(branches)
        if current_branch and current_branch in branches:
            self.branch_combo.setCurrentText(current_branch)
        else:
            self.branch_combo.setCurrentIndex(-1)
        self.branch_combo.blockSignals(False)
        self.branch_combo.setEnabled(bool(branches))

    def load(self):
        self.statusBar().showMessage("正在加载提交历史...")
        settings.add_recent_repository(os.path.abspath(self.repo_path))
        self.graph_view.load_repository(self.repo_path, self.branches)

    def _apply_branch(self):
        branch = self.branch_combo.currentText()
        if not branch:
            return
        self.statusBar().showMessage(f"正在加载分支 {branch}...")
        self.graph_view.add_branch(self.repo_path, branch)

    def _apply_search(self):
        count = self.graph_view.select_matching(self.search_edit.text().strip())
        if self.search_edit.text().strip():
            self.statusBar().showMessage(f"找到 {count} 个匹配的提交")

    def _on_graph_loaded(self, count: int):
        self.statusBar().showMessage(f"共 {count} 个提交")

    def _on_load_failed(self, message: str):
        self.statusBar().showMessage(f"加载失败：{message}")


def setup_logging():
    # 根据环境变量设置日志级别
    log_level = logging.DEBUG if os.getenv("DEBUG") == "1" else logging.INFO

    # 配置日志
    logging.basicConfig(level=log_level, format=LOG_FORMAT)
    # add file handler
    if os.getenv("LOG_TO_FILE") == "1":
        file_handler = logging.FileHandler(LOG_FILE)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logging.getLogger().addHandler(file_handler)


def main():
    setup_logging()
    app = QApplication(sys.argv)

    args = sys.argv[1:]
    repo_path = args[0] if args else (settings.get_last_repository() or ".")
    branches = args[1:] or None

    window = CommitGraphWindow(repo_path, branches)
    window.show()
    window.load()

    sys.exit(app.exec())


if __name__ == "__main__":
    main()

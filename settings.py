import json
import logging
import os
from pathlib import Path

from git_graph_geometry import GRAPH_COLORS, LANE_MARGIN, LANE_WIDTH, ROW_HEIGHT, GraphConfig
from git_graph_layout import DEFAULT_REARM_POLICY, REARM_POLICIES

DEFAULT_VISIBLE_ROWS = 10


def default_graph_settings() -> dict:
    return {
        "lane_width": LANE_WIDTH,
        "lane_margin": LANE_MARGIN,
        "row_height": ROW_HEIGHT,
        "palette": list(GRAPH_COLORS),
        "visible_rows": DEFAULT_VISIBLE_ROWS,
        "collision_policy": DEFAULT_REARM_POLICY,
    }


class Settings:
    def __init__(self, config_dir: str | None = None):
        # 配置目录，首次保存时才创建
        self.config_dir = config_dir or os.path.join(str(Path.home()), ".commit_graph")
        self.config_file = os.path.join(self.config_dir, "settings.json")

        # 默认设置
        self.settings = {
            "recent_repositories": [],  # 最近打开的仓库列表
            "last_repository": None,  # 上次打开的仓库
            "max_recent": 10,  # 最大记录数
            "graph": default_graph_settings(),  # 提交图绘制参数
        }

        self.load_settings()

    def load_settings(self):
        """加载设置"""
        if not os.path.exists(self.config_file):
            return
        try:
            with open(self.config_file, "r", encoding="utf-8") as f:
                saved_settings = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logging.error("加载设置失败：%s", e)
            return
        if not isinstance(saved_settings, dict):
            logging.error("加载设置失败：%s 不是 JSON 对象", self.config_file)
            return

        saved_graph = saved_settings.pop("graph", None)
        self.settings.update(saved_settings)
        if isinstance(saved_graph, dict):
            self.settings["graph"].update(saved_graph)

    def save_settings(self):
        """保存设置"""
        try:
            os.makedirs(self.config_dir, exist_ok=True)
            with open(self.config_file, "w", encoding="utf-8") as f:
                json.dump(self.settings, f, ensure_ascii=False, indent=2)
        except OSError as e:
            logging.error("保存设置失败：%s", e)

    def add_recent_repository(self, repo_path):
        """添加最近打开的仓库"""
        self.settings["last_repository"] = repo_path

        recent = self.settings["recent_repositories"]
        if repo_path in recent:
            recent.remove(repo_path)
        recent.insert(0, repo_path)
        self.settings["recent_repositories"] = recent[: self.settings["max_recent"]]

        self.save_settings()

    def get_recent_repositories(self):
        """获取最近仓库列表"""
        return self.settings["recent_repositories"]

    def get_last_repository(self):
        """获取上次打开的仓库"""
        return self.settings["last_repository"]

    def get_graph_config(self) -> GraphConfig:
        """
        Builds the graph geometry from the saved values. A saved value that
        does not make a valid configuration falls back to the defaults.
        """
        graph = self.settings["graph"]
        try:
            return GraphConfig(
                lane_width=float(graph.get("lane_width", LANE_WIDTH)),
                lane_margin=float(graph.get("lane_margin", LANE_MARGIN)),
                row_height=float(graph.get("row_height", ROW_HEIGHT)),
                palette=tuple(graph.get("palette") or GRAPH_COLORS),
            )
        except (TypeError, ValueError) as e:
            logging.warning("Invalid graph settings, using defaults: %s", e)
            return GraphConfig()

    def set_palette(self, palette):
        """设置提交图配色"""
        self.settings["graph"]["palette"] = list(palette)
        self.save_settings()

    def get_visible_rows(self) -> int:
        """获取提交图显示的行数"""
        value = self.settings["graph"].get("visible_rows", DEFAULT_VISIBLE_ROWS)
        return value if isinstance(value, int) and value > 0 else DEFAULT_VISIBLE_ROWS

    def set_visible_rows(self, rows: int):
        """设置提交图显示的行数"""
        self.settings["graph"]["visible_rows"] = rows
        self.save_settings()

    def get_collision_policy(self) -> str:
        """
        获取车道冲突策略名称

        注意：assign_lanes 在重新分配前已释放当前车道，"new_lane" 与
        "overwrite" 得到的布局相同，这个设置目前不会改变图形。
        """
        name = self.settings["graph"].get("collision_policy", DEFAULT_REARM_POLICY)
        return name if name in REARM_POLICIES else DEFAULT_REARM_POLICY

    def set_collision_policy(self, name: str):
        """设置车道冲突策略名称"""
        if name not in REARM_POLICIES:
            raise ValueError(f"Unknown collision policy: {name}")
        self.settings["graph"]["collision_policy"] = name
        self.save_settings()


# 创建全局settings实例
settings = Settings()

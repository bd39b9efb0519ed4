# commit_filter.py

from typing import Iterable, TypeVar

from git_graph_data import CommitRecord, GraphNode

T = TypeVar("T", CommitRecord, GraphNode)


def matches(commit: CommitRecord | GraphNode, text: str) -> bool:
    needle = text.lower()
    return (
        needle in commit.message.lower()
        or needle in commit.author_name.lower()
        or needle in commit.sha.lower()
    )


def filter_commits(commits: Iterable[T], text: str) -> list[T]:
    """Keeps commits whose message, author or sha contains `text` (case-insensitive)."""
    if not text:
        return list(commits)
    return [commit for commit in commits if matches(commit, text)]

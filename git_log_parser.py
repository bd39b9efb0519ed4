# git_log_parser.py

import logging

import git
from git import GitCommandError

from git_graph_data import CommitRecord
from git_graph_layout import merge_commit_batches

# Delimiters for parsing git log output
FIELD_SEP = "\x01"
ENTRY_SEP = "\x02"

# Git log format string
# %H: commit hash
# %P: parent hashes (space separated)
# %an: author name
# %ae: author email
# %aI: author date (ISO 8601 strict)
# %s: subject
GIT_LOG_FORMAT = f"%H{FIELD_SEP}%P{FIELD_SEP}%an{FIELD_SEP}%ae{FIELD_SEP}%aI{FIELD_SEP}%s{ENTRY_SEP}"

PREFERRED_MAINLINE_NAMES = ("main", "master")
DEFAULT_LIMIT = 200


def parse_log_output(log_output: str, branch_name: str | None = None) -> list[CommitRecord]:
    """
    Parses `git log` output produced with GIT_LOG_FORMAT into CommitRecords,
    keeping git's order. Malformed entries are skipped.
    """
    commits: list[CommitRecord] = []
    if not log_output.strip():
        return commits

    for entry in log_output.split(ENTRY_SEP):
        entry = entry.strip()
        if not entry:
            continue

        parts = entry.split(FIELD_SEP)
        if len(parts) < 6:
            logging.debug("Skipping malformed git log entry: %r", entry[:80])
            continue

        sha, parent_hashes, author_name, author_email, author_date, subject = parts[:6]
        commits.append(
            CommitRecord(
                sha=sha,
                parents=tuple(parent_hashes.split()),
                timestamp=author_date,
                message=subject,
                author_name=author_name,
                author_email=author_email,
                branch_name=branch_name,
            )
        )
    return commits


def default_branches(repo: git.Repo) -> list[str]:
    """The checked out branch plus main/master when they exist."""
    if not repo.head.is_valid():
        return []  # no commits yet

    branches = []
    if repo.head.is_detached:
        branches.append("HEAD")
    else:
        branches.append(repo.active_branch.name)

    local_names = {head.name for head in repo.heads}
    for name in PREFERRED_MAINLINE_NAMES:
        if name in local_names and name not in branches:
            branches.append(name)
    return branches


def read_branch_log(repo: git.Repo, branch: str, limit: int = DEFAULT_LIMIT) -> list[CommitRecord]:
    output = repo.git.log(branch, f"--max-count={limit}", f"--pretty=format:{GIT_LOG_FORMAT}")
    return parse_log_output(output, branch_name=branch)


def read_commit_history(
    repo_path: str = ".", branches: list[str] | None = None, limit: int = DEFAULT_LIMIT
) -> list[CommitRecord]:
    """
    Reads the history of several branches of a local repository and merges
    them into one batch. A commit reachable from more than one branch keeps
    the name of the first branch it was read from.
    """
    try:
        repo = git.Repo(repo_path)
    except (git.InvalidGitRepositoryError, git.NoSuchPathError):
        logging.error("Not a git repository: %s", repo_path)
        return []

    with repo:
        if not branches:
            branches = default_branches(repo)

        batches = []
        for branch in branches:
            try:
                batch = read_branch_log(repo, branch, limit)
            except GitCommandError as e:
                logging.warning("Failed to read history of %s: %s", branch, e)
                continue
            logging.debug("Read %d commits from %s", len(batch), branch)
            batches.append(batch)

    return merge_commit_batches(*batches)


def list_branches(repo_path: str = ".") -> list[str]:
    """Names of the local branches, for the branch picker."""
    try:
        repo = git.Repo(repo_path)
    except (git.InvalidGitRepositoryError, git.NoSuchPathError):
        logging.error("Not a git repository: %s", repo_path)
        return []

    with repo:
        return [head.name for head in repo.heads]


def add_branch_history(
    commits: list[CommitRecord], repo_path: str, branch: str, limit: int = DEFAULT_LIMIT
) -> list[CommitRecord]:
    """
    Reads one more branch and merges it into already loaded commits. Commits
    that were loaded before keep their branch name; only commits new to the
    batch are tagged with `branch`.
    """
    return merge_commit_batches(commits, read_commit_history(repo_path, [branch], limit))

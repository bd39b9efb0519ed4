# git_graph_layout.py

import logging
import math
from datetime import datetime, timezone
from typing import Callable, Iterable, Sequence

from git_graph_data import FREE, CommitRecord, ExpectingSlot, GraphNode, LaneSlot
from git_graph_geometry import DEFAULT_CONFIG, GraphConfig, project


# --- Input normalization ---


def timestamp_key(value) -> float:
    """
    Converts a commit timestamp into epoch seconds for ordering.

    Accepts datetimes (naive ones are taken as UTC), epoch numbers and
    ISO-8601 strings. Anything that cannot be read counts as the epoch so the
    commit sorts last instead of breaking the whole graph.
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.timestamp()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            seconds = float(value)
        except OverflowError:
            seconds = math.nan  # int beyond float range
        if math.isfinite(seconds):
            return seconds
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return timestamp_key(datetime.fromisoformat(text))
        except ValueError:
            pass
    if value is not None:
        logging.debug("Unreadable commit timestamp %r, ordering it as epoch 0", value)
    return 0.0


def dedupe_commits(commits: Iterable[CommitRecord]) -> list[CommitRecord]:
    """Drops repeated shas, keeping the first occurrence."""
    seen: set[str] = set()
    unique = []
    for commit in commits:
        if commit.sha in seen:
            continue
        seen.add(commit.sha)
        unique.append(commit)
    return unique


def merge_commit_batches(*batches: Iterable[CommitRecord]) -> list[CommitRecord]:
    """Concatenates several history reads (one per branch tip, say) without duplicates."""
    return dedupe_commits(commit for batch in batches for commit in batch)


def normalize_commits(commits: Iterable[CommitRecord]) -> list[CommitRecord]:
    """Deduplicates and orders commits newest first; ties keep their input order."""
    unique = dedupe_commits(commits)
    # sorted() is stable with reverse=True as well
    return sorted(unique, key=lambda c: timestamp_key(c.timestamp), reverse=True)


# --- Lane allocation ---


class LaneTrack:
    """Lane slots for a single layout run. Slots are never removed, only freed."""

    def __init__(self):
        self.slots: list[LaneSlot] = []

    def __len__(self) -> int:
        return len(self.slots)

    def find_expecting(self, sha: str) -> int | None:
        wanted = ExpectingSlot(sha)
        for index, slot in enumerate(self.slots):
            if slot == wanted:
                return index
        return None

    def find_free(self) -> int | None:
        for index, slot in enumerate(self.slots):
            if slot is FREE:
                return index
        return None

    def free_or_append(self) -> int:
        """Leftmost free lane, or a new one at the right edge."""
        index = self.find_free()
        if index is None:
            self.slots.append(FREE)
            index = len(self.slots) - 1
        return index

    def claim(self, sha: str) -> int:
        index = self.find_expecting(sha)
        if index is None:
            # Branch tip: no newer commit reserved a lane for it
            index = self.free_or_append()
        return index

    def release(self, lane: int):
        self.slots[lane] = FREE

    def expect(self, lane: int, sha: str):
        self.slots[lane] = ExpectingSlot(sha)

    def is_free(self, lane: int) -> bool:
        return self.slots[lane] is FREE

    def active_count(self) -> int:
        return sum(1 for slot in self.slots if slot is not FREE)


RearmPolicy = Callable[[LaneTrack, int, str], int]


def overwrite_on_collision(track: LaneTrack, lane: int, parent_sha: str) -> int:
    """Keeps the primary parent in the child's lane, replacing whatever that lane expected."""
    track.expect(lane, parent_sha)
    return lane


def new_lane_on_collision(track: LaneTrack, lane: int, parent_sha: str) -> int:
    """
    Keeps the primary parent in the child's lane unless the lane already waits for another commit.

    Inside assign_lanes this gives the same layout as overwrite_on_collision:
    the claimed lane is released right before the re-arm, so it is always free
    when the policy runs. Only callers that re-arm an occupied lane see a
    difference.
    """
    if track.is_free(lane) or track.slots[lane] == ExpectingSlot(parent_sha):
        track.expect(lane, parent_sha)
        return lane
    other = track.free_or_append()
    track.expect(other, parent_sha)
    return other


REARM_POLICIES: dict[str, RearmPolicy] = {
    "overwrite": overwrite_on_collision,
    "new_lane": new_lane_on_collision,
}
DEFAULT_REARM_POLICY = "overwrite"


def rearm_policy_by_name(name: str | None) -> RearmPolicy:
    policy = REARM_POLICIES.get(name or DEFAULT_REARM_POLICY)
    if policy is None:
        logging.warning("Unknown lane collision policy %r, using %r", name, DEFAULT_REARM_POLICY)
        policy = REARM_POLICIES[DEFAULT_REARM_POLICY]
    return policy


def assign_lanes(
    commits: Sequence[CommitRecord], rearm_policy: RearmPolicy = overwrite_on_collision
) -> list[tuple[int, int]]:
    """
    Assigns a lane to every commit of an already ordered (newest first) list.

    Each lane holds the sha it is waiting for. A commit takes the lane that
    waits for it, or the leftmost free one if it is a branch tip, then hands
    that lane down to its primary parent so a line of history stays in one
    column. Merge parents that nobody waits for yet open a lane of their own.

    Returns (row, lane) pairs in input order.
    """
    track = LaneTrack()
    placements = []

    for row, commit in enumerate(commits):
        lane = track.claim(commit.sha)
        track.release(lane)

        if commit.parents:
            rearm_policy(track, lane, commit.parents[0])
            for parent_sha in commit.merge_parents:
                if track.find_expecting(parent_sha) is None:
                    track.expect(track.free_or_append(), parent_sha)

        placements.append((row, lane))

    logging.debug("Assigned %d commits to %d lanes", len(placements), len(track))
    return placements


def calculate_graph(
    commits: Iterable[CommitRecord],
    config: GraphConfig | None = None,
    rearm_policy: RearmPolicy = overwrite_on_collision,
) -> list[GraphNode]:
    """Normalizes the commits, lays them out and returns the positioned nodes, newest first."""
    config = config or DEFAULT_CONFIG
    ordered = normalize_commits(commits)
    placements = assign_lanes(ordered, rearm_policy)
    return [project(commit, row, lane, config) for commit, (row, lane) in zip(ordered, placements)]

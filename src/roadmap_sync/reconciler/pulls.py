"""Pull request filtering by state."""

from __future__ import annotations

from collections.abc import Iterable

from roadmap_sync.config import PRStateFilter
from roadmap_sync.github.models import IssueState, PullRequest


def matches_state(pr: PullRequest, state: PRStateFilter) -> bool:
    """Check a PR against a state filter.

    The merge flag wins over the raw state: a merged PR is never "closed".
    """
    match state:
        case PRStateFilter.ALL:
            return True
        case PRStateFilter.OPEN:
            return pr.state == IssueState.OPEN and not pr.merged
        case PRStateFilter.CLOSED:
            return pr.state == IssueState.CLOSED and not pr.merged
        case PRStateFilter.MERGED:
            return pr.merged
    raise ValueError(f"Unknown PR state filter: {state}")


def filter_pulls(pulls: Iterable[PullRequest], state: PRStateFilter) -> list[PullRequest]:
    """Return the PRs matching ``state``, in input order."""
    return [pr for pr in pulls if matches_state(pr, state)]

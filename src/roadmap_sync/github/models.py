"""Data models for GitHub issues and pull requests."""

from dataclasses import dataclass, field
from enum import StrEnum


class IssueState(StrEnum):
    """GitHub issue/PR state."""

    OPEN = "open"
    CLOSED = "closed"


@dataclass(frozen=True)
class Issue:
    """GitHub issue summary."""

    id: int
    number: int
    title: str
    url: str  # html_url
    state: IssueState
    labels: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class PullRequest(Issue):
    """GitHub pull request summary.

    ``merged`` is derived from ``merged_at``; a merged PR is also ``closed``.
    """

    draft: bool = False
    merged: bool = False

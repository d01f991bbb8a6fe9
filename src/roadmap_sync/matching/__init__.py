"""Matching helpers shared by the tracker clients and the reconciler."""

from roadmap_sync.matching.labels import matches_all, normalize_labels
from roadmap_sync.matching.links import (
    GITHUB_ISSUE_URL_PATTERN,
    find_issue_link,
    is_github_issue_url,
)

__all__ = [
    "GITHUB_ISSUE_URL_PATTERN",
    "find_issue_link",
    "is_github_issue_url",
    "matches_all",
    "normalize_labels",
]

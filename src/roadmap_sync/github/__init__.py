"""GitHub client - fetches issues and pull requests and creates issues."""

from roadmap_sync.github.auth import TokenProvider
from roadmap_sync.github.client import GitHubClient
from roadmap_sync.github.exceptions import (
    GitHubAPIError,
    GitHubError,
    IssueCreationError,
    TokenError,
)
from roadmap_sync.github.models import Issue, IssueState, PullRequest

__all__ = [
    "GitHubAPIError",
    "GitHubClient",
    "GitHubError",
    "Issue",
    "IssueCreationError",
    "IssueState",
    "PullRequest",
    "TokenError",
    "TokenProvider",
]

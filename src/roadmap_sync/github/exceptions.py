"""Custom exceptions for the GitHub client."""


class GitHubError(Exception):
    """Base exception for GitHub client errors."""


class GitHubAPIError(GitHubError):
    """GitHub REST request failed."""


class IssueCreationError(GitHubError):
    """Error creating an issue."""


class TokenError(GitHubError):
    """GitHub token could not be obtained."""

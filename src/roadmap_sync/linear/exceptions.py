"""Custom exceptions for the Linear client."""


class LinearError(Exception):
    """Base exception for Linear client errors."""


class LinearAPIError(LinearError):
    """Linear GraphQL request failed or returned errors."""


class TeamNotFoundError(LinearError):
    """Team identifier does not match any Linear team."""

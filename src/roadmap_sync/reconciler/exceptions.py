"""Exceptions for the Reconciler module."""


class ReconcilerError(Exception):
    """Base exception for reconciler errors."""

    pass


class MissingIssueCreatorError(ReconcilerError):
    """Issue creation was requested but no creator was configured."""

    pass

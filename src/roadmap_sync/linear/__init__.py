"""Linear client - fetches tickets from the Linear GraphQL API."""

from roadmap_sync.linear.client import LinearClient
from roadmap_sync.linear.exceptions import LinearAPIError, LinearError, TeamNotFoundError
from roadmap_sync.linear.models import Attachment, Ticket, WorkflowState

__all__ = [
    "Attachment",
    "LinearAPIError",
    "LinearClient",
    "LinearError",
    "TeamNotFoundError",
    "Ticket",
    "WorkflowState",
]

"""Data models for Linear tickets."""

from dataclasses import dataclass, field
from enum import StrEnum


class WorkflowState(StrEnum):
    """Lifecycle category of a Linear workflow state."""

    BACKLOG = "backlog"
    UNSTARTED = "unstarted"
    STARTED = "started"
    COMPLETED = "completed"
    CANCELED = "canceled"
    TRIAGE = "triage"


@dataclass(frozen=True)
class Attachment:
    """A link attached to a Linear ticket."""

    url: str
    title: str | None = None
    subtitle: str | None = None


@dataclass(frozen=True)
class Ticket:
    """Represents an issue from Linear.

    Attributes:
        id: Linear's opaque issue ID.
        identifier: Human-facing key, e.g. "TEAM-123".
        title: Ticket title.
        url: Link to the ticket in Linear.
        state: Display name of the workflow state (e.g. "In Review").
        workflow_state: Lifecycle category of the state.
        priority: 0 or None means no priority, 1 is most urgent.
        tags: Label names as shown in Linear.
        attachments: Links attached to the ticket.
    """

    id: str
    identifier: str
    title: str
    url: str | None = None
    state: str | None = None
    workflow_state: WorkflowState | None = None
    priority: int | None = None
    tags: list[str] = field(default_factory=list)
    attachments: list[Attachment] = field(default_factory=list)

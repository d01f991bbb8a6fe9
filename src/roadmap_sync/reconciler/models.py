"""Data models for the Reconciler module."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, ClassVar

if TYPE_CHECKING:
    from roadmap_sync.config import SyncOptions
    from roadmap_sync.github.models import Issue, PullRequest
    from roadmap_sync.linear.models import Ticket


@dataclass(frozen=True)
class LinkedItem:
    """A Linear ticket together with the GitHub issue it links to."""

    kind: ClassVar[str] = "linked"

    ticket: Ticket
    issue: Issue
    title: str

    @property
    def priority(self) -> int | None:
        return self.ticket.priority


@dataclass(frozen=True)
class TicketItem:
    """A Linear ticket with no matching GitHub issue."""

    kind: ClassVar[str] = "ticket"

    ticket: Ticket
    title: str

    @property
    def issue(self) -> None:
        return None

    @property
    def priority(self) -> int | None:
        return self.ticket.priority


@dataclass(frozen=True)
class IssueItem:
    """A GitHub issue no Linear ticket links to."""

    kind: ClassVar[str] = "issue"

    issue: Issue
    title: str

    @property
    def ticket(self) -> None:
        return None

    @property
    def priority(self) -> None:
        return None


MergedRoadmapItem = LinkedItem | TicketItem | IssueItem


@dataclass(frozen=True)
class CreationFailure:
    """An issue that could not be created for a ticket."""

    ticket: Ticket
    message: str


@dataclass
class ReconcileResult:
    """Result of a reconciliation.

    Attributes:
        tickets: Tickets left after the lifecycle filter.
        merged_items: Roadmap items in final order.
        filtered_pulls: Pull requests matching the requested state.
        created_issues: Issues created during this run, in ticket order.
        failures: Tickets whose issue could not be created.
    """

    tickets: list[Ticket] = field(default_factory=list)
    merged_items: list[MergedRoadmapItem] = field(default_factory=list)
    filtered_pulls: list[PullRequest] = field(default_factory=list)
    created_issues: list[Issue] = field(default_factory=list)
    failures: list[CreationFailure] = field(default_factory=list)


@dataclass(frozen=True)
class RoadmapContext:
    """Everything the template sees.

    ``linear_tickets``, ``github_issues`` and ``github_pulls`` are the
    collections as fetched; the derived views are ``merged_items`` and
    ``filtered_pulls``.
    """

    generated_at: datetime
    linear_tickets: list[Ticket]
    github_issues: list[Issue]
    github_pulls: list[PullRequest]
    filtered_pulls: list[PullRequest]
    merged_items: list[MergedRoadmapItem]
    options: SyncOptions
    created_issues: list[Issue] = field(default_factory=list)
    creation_failures: list[CreationFailure] = field(default_factory=list)

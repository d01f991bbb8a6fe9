"""Reconciler package - Links tickets to issues and orders the roadmap."""

from roadmap_sync.reconciler.exceptions import MissingIssueCreatorError, ReconcilerError
from roadmap_sync.reconciler.models import (
    CreationFailure,
    IssueItem,
    LinkedItem,
    MergedRoadmapItem,
    ReconcileResult,
    RoadmapContext,
    TicketItem,
)
from roadmap_sync.reconciler.priority import compare_priority, effective_priority, sort_by_priority
from roadmap_sync.reconciler.pulls import filter_pulls, matches_state
from roadmap_sync.reconciler.reconciler import (
    IssueCreator,
    Reconciler,
    build_context,
    filter_active_tickets,
    issue_body,
    link_items,
    needs_issue,
)

__all__ = [
    "CreationFailure",
    "IssueCreator",
    "IssueItem",
    "LinkedItem",
    "MergedRoadmapItem",
    "MissingIssueCreatorError",
    "ReconcileResult",
    "Reconciler",
    "ReconcilerError",
    "RoadmapContext",
    "TicketItem",
    "build_context",
    "compare_priority",
    "effective_priority",
    "filter_active_tickets",
    "filter_pulls",
    "issue_body",
    "link_items",
    "matches_state",
    "needs_issue",
    "sort_by_priority",
]

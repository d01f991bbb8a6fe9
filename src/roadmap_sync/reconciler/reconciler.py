"""Reconciler - Merges Linear tickets and GitHub issues into roadmap items."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable, Sequence
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Protocol

import click

from roadmap_sync.linear.models import WorkflowState
from roadmap_sync.matching import find_issue_link
from roadmap_sync.reconciler.exceptions import MissingIssueCreatorError
from roadmap_sync.reconciler.models import (
    CreationFailure,
    IssueItem,
    LinkedItem,
    MergedRoadmapItem,
    ReconcileResult,
    RoadmapContext,
    TicketItem,
)
from roadmap_sync.reconciler.priority import sort_by_priority
from roadmap_sync.reconciler.pulls import filter_pulls

if TYPE_CHECKING:
    from roadmap_sync.config import SyncOptions
    from roadmap_sync.github.models import Issue, PullRequest
    from roadmap_sync.linear.models import Ticket

logger = logging.getLogger(__name__)

INACTIVE_STATES = frozenset({WorkflowState.COMPLETED, WorkflowState.CANCELED})


class IssueCreator(Protocol):
    """Anything that can create a GitHub issue (GitHubClient in production)."""

    async def create_issue(
        self, repo: str, title: str, body: str, labels: Sequence[str]
    ) -> Issue: ...


def filter_active_tickets(tickets: Sequence[Ticket]) -> list[Ticket]:
    """Drop tickets whose workflow is completed or canceled."""
    return [t for t in tickets if t.workflow_state not in INACTIVE_STATES]


def needs_issue(ticket: Ticket) -> bool:
    """True if none of the ticket's attachments links to a GitHub issue."""
    return find_issue_link(ticket.attachments) is None


def issue_body(ticket: Ticket) -> str:
    """Body of a GitHub issue created for ``ticket``."""
    state = ticket.state if ticket.state is not None else "Unknown"
    priority = ticket.priority if ticket.priority is not None else "None"
    return f"Linear ticket: {ticket.url or ''}\n\nState: {state}\nPriority: {priority}"


def link_items(tickets: Sequence[Ticket], issues: Sequence[Issue]) -> list[MergedRoadmapItem]:
    """Pair tickets with the issues their attachments point at.

    Ticket-derived items come first, in ticket order, followed by every issue
    no ticket claimed, in issue order. Each issue is used at most once.
    """
    linked_urls: set[str] = set()
    items: list[MergedRoadmapItem] = []

    for ticket in tickets:
        link = find_issue_link(ticket.attachments)
        issue = None
        if link is not None:
            issue = next(
                (i for i in issues if i.url == link.url and i.url not in linked_urls), None
            )
        if issue is not None:
            linked_urls.add(issue.url)
            items.append(LinkedItem(ticket=ticket, issue=issue, title=ticket.title))
        else:
            items.append(TicketItem(ticket=ticket, title=ticket.title))

    for issue in issues:
        if issue.url not in linked_urls:
            items.append(IssueItem(issue=issue, title=issue.title))

    return items


class Reconciler:
    """Builds the roadmap item list from fetched tracker data.

    ``reconcile`` is pure. ``sync`` additionally creates GitHub issues for
    unlinked tickets when the options ask for it; each creation is isolated,
    so one failing ticket never stops the others.
    """

    def __init__(
        self,
        issue_creator: IssueCreator | None = None,
        max_concurrency: int | None = None,
        echo: Callable[..., None] = click.echo,
    ) -> None:
        """Initialize the Reconciler.

        Args:
            issue_creator: Used to create GitHub issues; required only for creation.
            max_concurrency: Cap on simultaneous creation calls (None = unbounded).
            echo: Writes progress lines; called with ``err=True`` for failures.
        """
        self.issue_creator = issue_creator
        self.max_concurrency = max_concurrency
        self.echo = echo

    def reconcile(
        self,
        tickets: Sequence[Ticket],
        issues: Sequence[Issue],
        pulls: Sequence[PullRequest],
        options: SyncOptions,
    ) -> ReconcileResult:
        """Merge tickets and issues without creating anything."""
        active = filter_active_tickets(tickets)
        return self._merge(active, list(issues), pulls, options)

    async def sync(
        self,
        tickets: Sequence[Ticket],
        issues: Sequence[Issue],
        pulls: Sequence[PullRequest],
        options: SyncOptions,
    ) -> ReconcileResult:
        """Merge tickets and issues, creating missing issues first if enabled.

        Creation only happens with ``create_github_issues`` set and
        ``dry_run`` unset.

        Raises:
            MissingIssueCreatorError: If creation is enabled without an issue creator.
        """
        active = filter_active_tickets(tickets)
        working_issues = list(issues)
        created: list[Issue] = []
        failures: list[CreationFailure] = []

        if options.create_github_issues and not options.dry_run:
            created, failures = await self.create_missing_issues(active, options)
            working_issues.extend(created)
        elif options.create_github_issues:
            logger.info("Dry run: skipping GitHub issue creation")

        result = self._merge(active, working_issues, pulls, options)
        result.created_issues = created
        result.failures = failures
        return result

    async def create_missing_issues(
        self, tickets: Sequence[Ticket], options: SyncOptions
    ) -> tuple[list[Issue], list[CreationFailure]]:
        """Create a GitHub issue for every ticket without an issue link.

        All creations run concurrently. Results are collected only after the
        whole batch finishes.

        Returns:
            Created issues and failures, both in ticket order.
        """
        if self.issue_creator is None:
            raise MissingIssueCreatorError("GitHub issue creation requires an issue creator")

        pending = [t for t in tickets if needs_issue(t)]
        logger.info("%d ticket(s) need a GitHub issue", len(pending))
        if not pending:
            return [], []

        semaphore = asyncio.Semaphore(self.max_concurrency) if self.max_concurrency else None
        outcomes = await asyncio.gather(
            *(
                self._create_one(self.issue_creator, ticket, options, semaphore)
                for ticket in pending
            )
        )

        created = [o for o in outcomes if not isinstance(o, CreationFailure)]
        failures = [o for o in outcomes if isinstance(o, CreationFailure)]
        if failures:
            logger.info("Failed to create %d of %d issue(s)", len(failures), len(pending))
        return created, failures

    async def _create_one(
        self,
        issue_creator: IssueCreator,
        ticket: Ticket,
        options: SyncOptions,
        semaphore: asyncio.Semaphore | None,
    ) -> Issue | CreationFailure:
        guard = semaphore if semaphore is not None else contextlib.nullcontext()
        async with guard:
            try:
                self.echo(f"Creating GitHub issue for {ticket.identifier}: {ticket.title}")
                issue = await issue_creator.create_issue(
                    options.github_repo,
                    ticket.title,
                    issue_body(ticket),
                    list(options.github_tags),
                )
            except Exception as e:
                logger.debug("Failed to create issue for %s: %s", ticket.identifier, e)
                self.echo(f"  Failed to create issue for {ticket.identifier}: {e}", err=True)
                return CreationFailure(ticket=ticket, message=str(e))

        self.echo(f"  Created: {issue.url}")
        if ticket.url:
            self.echo(
                f"  Note: Link this GitHub issue back to Linear ticket manually at {ticket.url}"
            )
        return issue

    def _merge(
        self,
        tickets: list[Ticket],
        issues: list[Issue],
        pulls: Sequence[PullRequest],
        options: SyncOptions,
    ) -> ReconcileResult:
        items = sort_by_priority(link_items(tickets, issues), key=lambda item: item.priority)
        pulls_kept = filter_pulls(pulls, options.github_pr_state)
        logger.info(
            "Reconciled %d ticket(s) and %d issue(s) into %d item(s); %d of %d PR(s) kept",
            len(tickets),
            len(issues),
            len(items),
            len(pulls_kept),
            len(pulls),
        )
        return ReconcileResult(tickets=tickets, merged_items=items, filtered_pulls=pulls_kept)


def build_context(
    tickets: Sequence[Ticket],
    issues: Sequence[Issue],
    pulls: Sequence[PullRequest],
    result: ReconcileResult,
    options: SyncOptions,
    generated_at: datetime | None = None,
) -> RoadmapContext:
    """Assemble the template context for one run."""
    return RoadmapContext(
        generated_at=generated_at or datetime.now(UTC),
        linear_tickets=list(tickets),
        github_issues=list(issues),
        github_pulls=list(pulls),
        filtered_pulls=result.filtered_pulls,
        merged_items=result.merged_items,
        options=options,
        created_issues=result.created_issues,
        creation_failures=result.failures,
    )

"""Unit tests for the Reconciler."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from roadmap_sync.config import PRStateFilter
from roadmap_sync.github import IssueCreationError, IssueState
from roadmap_sync.linear import WorkflowState
from roadmap_sync.logging import setup_logging
from roadmap_sync.reconciler import (
    IssueItem,
    LinkedItem,
    MissingIssueCreatorError,
    Reconciler,
    TicketItem,
    build_context,
    issue_body,
    link_items,
)


@pytest.fixture
def echo() -> MagicMock:
    """Capture progress lines."""
    return MagicMock()


@pytest.fixture
def creator(make_issue) -> AsyncMock:
    """Issue creator returning a fresh issue per call."""
    creator = AsyncMock()
    numbers = iter(range(100, 200))

    async def _create(repo, title, body, labels):
        return make_issue(next(numbers), title=title)

    creator.create_issue.side_effect = _create
    return creator


@pytest.mark.unit
class TestLinkItems:
    """Tests for link_items."""

    def test_links_ticket_to_issue_by_attachment_url(self, make_ticket, make_issue) -> None:
        """Matching attachment URL produces one linked item."""
        issue = make_issue(10)
        ticket = make_ticket("TEST-1", links=[issue.url])

        items = link_items([ticket], [issue])

        assert items == [LinkedItem(ticket=ticket, issue=issue, title=ticket.title)]
        assert items[0].kind == "linked"

    def test_unreferenced_issue_becomes_issue_only(self, make_issue) -> None:
        """Issues nobody links to are kept as standalone items."""
        issue = make_issue(10)

        items = link_items([], [issue])

        assert items == [IssueItem(issue=issue, title=issue.title)]
        assert items[0].ticket is None

    def test_non_github_attachment_gives_ticket_only(self, make_ticket, make_issue) -> None:
        """Attachments that are not issue links never link."""
        ticket = make_ticket("TEST-1", links=["https://example.com/issue/10"])

        items = link_items([ticket], [make_issue(10)])

        assert items[0] == TicketItem(ticket=ticket, title=ticket.title)
        assert items[0].issue is None
        assert isinstance(items[1], IssueItem)

    def test_issue_link_to_unknown_issue_gives_ticket_only(self, make_ticket) -> None:
        """An issue link with no fetched issue leaves the ticket unlinked."""
        ticket = make_ticket("TEST-1", links=["https://github.com/owner/repo/issues/99"])

        items = link_items([ticket], [])

        assert items == [TicketItem(ticket=ticket, title=ticket.title)]

    def test_only_first_issue_link_is_considered(self, make_ticket, make_issue) -> None:
        """The first issue-shaped attachment decides the link."""
        first, second = make_issue(1), make_issue(2)
        ticket = make_ticket("TEST-1", links=[first.url, second.url])

        items = link_items([ticket], [first, second])

        assert items[0].issue == first
        assert items[1] == IssueItem(issue=second, title=second.title)

    def test_issue_is_linked_at_most_once(self, make_ticket, make_issue) -> None:
        """A second ticket pointing at a claimed issue stays unlinked."""
        issue = make_issue(10)
        t1 = make_ticket("TEST-1", links=[issue.url])
        t2 = make_ticket("TEST-2", links=[issue.url])

        items = link_items([t1, t2], [issue])

        assert [item.kind for item in items] == ["linked", "ticket"]

    def test_linked_title_comes_from_ticket(self, make_ticket, make_issue) -> None:
        """Linear supplies the display title of a linked pair."""
        issue = make_issue(10, title="GitHub title")
        ticket = make_ticket("TEST-1", title="Linear title", links=[issue.url])

        assert link_items([ticket], [issue])[0].title == "Linear title"


@pytest.mark.unit
class TestReconcile:
    """Tests for Reconciler.reconcile."""

    def test_drops_completed_and_canceled_tickets(self, make_ticket, make_options) -> None:
        """Closed-out work is left out of the roadmap."""
        tickets = [
            make_ticket("TEST-1", workflow_state=WorkflowState.COMPLETED),
            make_ticket("TEST-2", workflow_state=WorkflowState.CANCELED),
            make_ticket("TEST-3", workflow_state=WorkflowState.STARTED),
            make_ticket("TEST-4", workflow_state=WorkflowState.UNSTARTED),
            make_ticket("TEST-5", workflow_state=WorkflowState.BACKLOG),
            make_ticket("TEST-6", workflow_state=WorkflowState.TRIAGE),
            make_ticket("TEST-7"),
        ]

        result = Reconciler().reconcile(tickets, [], [], make_options())

        identifiers = [item.ticket.identifier for item in result.merged_items]
        assert identifiers == ["TEST-3", "TEST-4", "TEST-5", "TEST-6", "TEST-7"]
        assert [t.identifier for t in result.tickets] == identifiers

    def test_sorts_by_priority(self, make_ticket, make_options) -> None:
        """Lower priority value first; zero and missing last in input order."""
        tickets = [
            make_ticket("TEST-1", priority=4),
            make_ticket("TEST-2", priority=0),
            make_ticket("TEST-3", priority=1),
            make_ticket("TEST-4"),
            make_ticket("TEST-5", priority=2),
        ]

        result = Reconciler().reconcile(tickets, [], [], make_options())

        assert [item.ticket.identifier for item in result.merged_items] == [
            "TEST-3",
            "TEST-5",
            "TEST-1",
            "TEST-2",
            "TEST-4",
        ]

    def test_issue_only_items_follow_unprioritized_tickets(
        self, make_ticket, make_issue, make_options
    ) -> None:
        """Issue-only items have no priority and come after ticket items."""
        tickets = [make_ticket("TEST-1"), make_ticket("TEST-2", priority=3)]
        issues = [make_issue(20), make_issue(21)]

        result = Reconciler().reconcile(tickets, issues, [], make_options())

        assert [item.title for item in result.merged_items] == [
            "Ticket TEST-2",
            "Ticket TEST-1",
            "Issue 20",
            "Issue 21",
        ]

    def test_filters_pulls_by_option(self, make_pull, make_options) -> None:
        """PR filter uses the configured state."""
        pulls = [make_pull(1), make_pull(2, IssueState.CLOSED, merged=True)]

        result = Reconciler().reconcile([], [], pulls, make_options(github_pr_state="merged"))

        assert [pr.number for pr in result.filtered_pulls] == [2]
        assert make_options().github_pr_state == PRStateFilter.OPEN

    def test_is_idempotent(self, make_ticket, make_issue, make_pull, make_options) -> None:
        """Same input, same output."""
        issue = make_issue(10)
        tickets = [
            make_ticket("TEST-1", priority=2, links=[issue.url]),
            make_ticket("TEST-2"),
            make_ticket("TEST-3", priority=1),
        ]
        issues = [issue, make_issue(11)]
        pulls = [make_pull(1)]
        reconciler = Reconciler()

        first = reconciler.reconcile(tickets, issues, pulls, make_options())
        second = reconciler.reconcile(tickets, issues, pulls, make_options())

        assert first == second


@pytest.mark.unit
class TestSync:
    """Tests for Reconciler.sync (issue creation)."""

    @pytest.mark.asyncio
    async def test_does_not_create_issues_by_default(
        self, creator, echo, make_ticket, make_options
    ) -> None:
        """Creation is opt-in."""
        reconciler = Reconciler(issue_creator=creator, echo=echo)

        await reconciler.sync([make_ticket("TEST-1")], [], [], make_options())

        creator.create_issue.assert_not_called()

    @pytest.mark.asyncio
    async def test_dry_run_skips_creation(self, creator, echo, make_ticket, make_options) -> None:
        """Dry run never calls the creator."""
        reconciler = Reconciler(issue_creator=creator, echo=echo)
        options = make_options(create_github_issues=True, dry_run=True)

        result = await reconciler.sync([make_ticket("TEST-1")], [], [], options)

        creator.create_issue.assert_not_called()
        assert result.created_issues == []

    @pytest.mark.asyncio
    async def test_creates_issues_for_unlinked_tickets(
        self, creator, echo, make_ticket, make_issue, make_options
    ) -> None:
        """Only tickets without an issue link get a new issue, which is then linked."""
        existing = make_issue(10)
        linked = make_ticket("TEST-1", links=[existing.url])
        unlinked = make_ticket(
            "TEST-2",
            title="Needs issue",
            priority=2,
            state="Todo",
            links=["https://github.com/owner/repo/pull/5"],
        )
        options = make_options(create_github_issues=True, github_tags=["roadmap"])
        reconciler = Reconciler(issue_creator=creator, echo=echo)

        result = await reconciler.sync([linked, unlinked], [existing], [], options)

        creator.create_issue.assert_awaited_once_with(
            "owner/repo", "Needs issue", issue_body(unlinked), ["roadmap"]
        )
        assert [issue.number for issue in result.created_issues] == [100]
        # The new issue is not attached to the ticket in Linear, so it shows up on its own
        assert [item.kind for item in result.merged_items] == ["ticket", "linked", "issue"]
        assert result.merged_items[2].issue.number == 100
        echo.assert_any_call("Creating GitHub issue for TEST-2: Needs issue")
        echo.assert_any_call("  Created: https://github.com/owner/repo/issues/100")

    @pytest.mark.asyncio
    async def test_failure_is_isolated(self, make_issue, echo, make_ticket, make_options) -> None:
        """One failing creation does not stop the others or the run."""
        creator = AsyncMock()
        creator.create_issue.side_effect = [
            IssueCreationError("boom"),
            make_issue(101, title="Second"),
        ]
        tickets = [make_ticket("TEST-1", title="First"), make_ticket("TEST-2", title="Second")]
        reconciler = Reconciler(issue_creator=creator, echo=echo)

        result = await reconciler.sync(
            tickets, [], [], make_options(create_github_issues=True)
        )

        assert creator.create_issue.await_count == 2
        assert [issue.number for issue in result.created_issues] == [101]
        assert any(item.issue and item.issue.number == 101 for item in result.merged_items)
        assert len(result.failures) == 1
        assert result.failures[0].ticket.identifier == "TEST-1"
        assert result.failures[0].message == "boom"
        error_lines = [c for c in echo.call_args_list if c.kwargs.get("err")]
        assert len(error_lines) == 1
        assert "Failed to create issue for TEST-1: boom" in error_lines[0].args[0]

    @pytest.mark.asyncio
    async def test_failure_prints_one_line_with_logging_enabled(
        self, make_issue, make_ticket, make_options, monkeypatch, capsys
    ) -> None:
        """With default logging set up, stderr names a failed ticket once."""
        monkeypatch.delenv("ROADMAP_SYNC_LOG_DIR", raising=False)
        monkeypatch.delenv("ROADMAP_SYNC_LOG_LEVEL", raising=False)
        logger = setup_logging()
        creator = AsyncMock()
        creator.create_issue.side_effect = [
            IssueCreationError("boom"),
            make_issue(101, title="Second"),
        ]
        tickets = [make_ticket("TEST-1", title="First"), make_ticket("TEST-2", title="Second")]

        try:
            await Reconciler(issue_creator=creator).sync(
                tickets, [], [], make_options(create_github_issues=True)
            )
        finally:
            for handler in list(logger.handlers):
                handler.close()
            logger.handlers.clear()

        err_lines = [line for line in capsys.readouterr().err.splitlines() if "TEST-1" in line]
        assert err_lines == ["  Failed to create issue for TEST-1: boom"]

    @pytest.mark.asyncio
    async def test_note_omitted_without_ticket_url(
        self, creator, echo, make_ticket, make_options
    ) -> None:
        """The manual-link note needs a ticket URL."""
        reconciler = Reconciler(issue_creator=creator, echo=echo)

        await reconciler.sync(
            [make_ticket("TEST-1", url=None)], [], [], make_options(create_github_issues=True)
        )

        lines = [c.args[0] for c in echo.call_args_list]
        assert "  Created: https://github.com/owner/repo/issues/100" in lines
        assert not any("Note:" in line for line in lines)

    @pytest.mark.asyncio
    async def test_concurrency_cap(self, creator, echo, make_ticket, make_options) -> None:
        """A cap still creates every issue."""
        tickets = [make_ticket(f"TEST-{n}") for n in range(1, 6)]
        reconciler = Reconciler(issue_creator=creator, max_concurrency=2, echo=echo)

        result = await reconciler.sync(
            tickets, [], [], make_options(create_github_issues=True)
        )

        assert len(result.created_issues) == 5

    @pytest.mark.asyncio
    async def test_creation_without_creator_raises(self, make_ticket, make_options) -> None:
        """Enabling creation without a creator is a programming error."""
        with pytest.raises(MissingIssueCreatorError):
            await Reconciler().sync(
                [make_ticket()], [], [], make_options(create_github_issues=True)
            )


@pytest.mark.unit
class TestIssueBody:
    """Tests for issue_body."""

    def test_body_embeds_ticket_details(self, make_ticket) -> None:
        """URL, state and priority are included."""
        ticket = make_ticket("TEST-1", priority=2, state="In Progress")

        assert issue_body(ticket) == (
            "Linear ticket: https://linear.app/test/issue/TEST-1\n\n"
            "State: In Progress\nPriority: 2"
        )

    def test_body_defaults(self, make_ticket) -> None:
        """Missing state and priority get placeholders; zero is shown as is."""
        assert issue_body(make_ticket("TEST-1")).endswith("State: Unknown\nPriority: None")
        assert issue_body(make_ticket("TEST-2", priority=0)).endswith("Priority: 0")


@pytest.mark.unit
class TestBuildContext:
    """Tests for build_context."""

    def test_keeps_raw_collections(self, make_ticket, make_pull, make_options) -> None:
        """Raw inputs are kept next to the derived views."""
        tickets = [make_ticket("TEST-1", workflow_state=WorkflowState.COMPLETED)]
        pulls = [make_pull(1, IssueState.CLOSED)]
        options = make_options()
        result = Reconciler().reconcile(tickets, [], pulls, options)
        now = datetime(2025, 1, 1, tzinfo=UTC)

        context = build_context(tickets, [], pulls, result, options, generated_at=now)

        assert context.generated_at == now
        assert context.linear_tickets == tickets
        assert context.github_pulls == pulls
        assert context.filtered_pulls == []
        assert context.merged_items == []
        assert context.options is options

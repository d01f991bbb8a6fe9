"""Shared pytest fixtures and configuration."""

from collections.abc import Callable
from typing import Any

import pytest

from roadmap_sync.config import SyncOptions
from roadmap_sync.github import Issue, IssueState, PullRequest
from roadmap_sync.linear import Attachment, Ticket, WorkflowState


# Register custom markers
def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers for test categorization."""
    config.addinivalue_line("markers", "unit: fast tests with no external dependencies")
    config.addinivalue_line("markers", "integration: component interaction tests")
    config.addinivalue_line("markers", "real: calls the live Linear and GitHub APIs (local only)")


# Shared fixtures


@pytest.fixture
def make_ticket() -> Callable[..., Ticket]:
    """Build a Ticket; ``links`` become attachments."""

    def _make(
        identifier: str = "TEST-1",
        title: str | None = None,
        priority: int | None = None,
        workflow_state: WorkflowState | None = None,
        links: list[str] | None = None,
        **kwargs: Any,
    ) -> Ticket:
        number = identifier.rsplit("-", 1)[-1]
        return Ticket(
            id=kwargs.pop("id", f"id-{number}"),
            identifier=identifier,
            title=title if title is not None else f"Ticket {identifier}",
            url=kwargs.pop("url", f"https://linear.app/test/issue/{identifier}"),
            priority=priority,
            workflow_state=workflow_state,
            attachments=[Attachment(url=link) for link in links or []],
            **kwargs,
        )

    return _make


@pytest.fixture
def make_issue() -> Callable[..., Issue]:
    """Build an open Issue in owner/repo."""

    def _make(number: int = 10, title: str | None = None, **kwargs: Any) -> Issue:
        return Issue(
            id=kwargs.pop("id", 1000 + number),
            number=number,
            title=title if title is not None else f"Issue {number}",
            url=kwargs.pop("url", f"https://github.com/owner/repo/issues/{number}"),
            state=kwargs.pop("state", IssueState.OPEN),
            **kwargs,
        )

    return _make


@pytest.fixture
def make_pull() -> Callable[..., PullRequest]:
    """Build a PullRequest in owner/repo."""

    def _make(
        number: int = 1,
        state: IssueState = IssueState.OPEN,
        merged: bool = False,
        **kwargs: Any,
    ) -> PullRequest:
        return PullRequest(
            id=kwargs.pop("id", 2000 + number),
            number=number,
            title=kwargs.pop("title", f"PR {number}"),
            url=kwargs.pop("url", f"https://github.com/owner/repo/pull/{number}"),
            state=state,
            merged=merged,
            **kwargs,
        )

    return _make


@pytest.fixture
def make_options() -> Callable[..., SyncOptions]:
    """Build SyncOptions with test defaults."""

    def _make(**overrides: Any) -> SyncOptions:
        values: dict[str, Any] = {
            "linear_team": "TEST",
            "linear_api_key": "lin_api_test",
            "github_repo": "owner/repo",
        }
        values.update(overrides)
        return SyncOptions.build(**values)

    return _make

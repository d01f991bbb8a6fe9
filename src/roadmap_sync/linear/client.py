"""LinearClient - Fetches team tickets from the Linear GraphQL API."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from roadmap_sync.linear.exceptions import LinearAPIError, LinearError, TeamNotFoundError
from roadmap_sync.linear.models import Attachment, Ticket, WorkflowState
from roadmap_sync.logging import sanitize_for_log, truncate_output
from roadmap_sync.matching import matches_all

logger = logging.getLogger(__name__)

LINEAR_API_URL = "https://api.linear.app/graphql"
PAGE_SIZE = 50

TEAMS_QUERY = """
query($first: Int!, $after: String) {
    teams(first: $first, after: $after) {
        nodes {
            id
            key
            name
        }
        pageInfo {
            hasNextPage
            endCursor
        }
    }
}
"""

ISSUES_QUERY = """
query($teamId: ID!, $first: Int!, $after: String) {
    issues(filter: { team: { id: { eq: $teamId } } }, first: $first, after: $after) {
        nodes {
            id
            identifier
            title
            url
            priority
            state {
                name
                type
            }
            labels(first: 50) {
                nodes {
                    name
                }
                pageInfo {
                    hasNextPage
                    endCursor
                }
            }
            attachments(first: 50) {
                nodes {
                    url
                    title
                    subtitle
                }
                pageInfo {
                    hasNextPage
                    endCursor
                }
            }
        }
        pageInfo {
            hasNextPage
            endCursor
        }
    }
}
"""

ISSUE_LABELS_QUERY = """
query($issueId: String!, $first: Int!, $after: String) {
    issue(id: $issueId) {
        labels(first: $first, after: $after) {
            nodes {
                name
            }
            pageInfo {
                hasNextPage
                endCursor
            }
        }
    }
}
"""

ISSUE_ATTACHMENTS_QUERY = """
query($issueId: String!, $first: Int!, $after: String) {
    issue(id: $issueId) {
        attachments(first: $first, after: $after) {
            nodes {
                url
                title
                subtitle
            }
            pageInfo {
                hasNextPage
                endCursor
            }
        }
    }
}
"""


def _dig(data: dict[str, Any], path: tuple[str, ...]) -> dict[str, Any]:
    node: Any = data
    for key in path:
        node = (node or {}).get(key)
    if not isinstance(node, dict):
        raise LinearAPIError(f"Unexpected response shape at {'.'.join(path)}")
    return node


class LinearClient:
    """Async client for the parts of the Linear API the roadmap needs.

    Usage:
        async with LinearClient(api_key) as linear:
            tickets = await linear.fetch_tickets("ENG", ["roadmap"])
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = LINEAR_API_URL,
        page_size: int = PAGE_SIZE,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the Linear client.

        Args:
            api_key: Linear personal API key.
            base_url: GraphQL endpoint (overridable for tests).
            page_size: Number of nodes requested per page.
            transport: Optional httpx transport (used by tests).
        """
        self.api_key = api_key
        self.base_url = base_url
        self.page_size = page_size
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create HTTP client for the GraphQL API."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                headers={
                    "Authorization": self.api_key,
                    "Content-Type": "application/json",
                },
                timeout=30.0,
                transport=self._transport,
            )
        return self._client

    async def aclose(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> LinearClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def _graphql(self, query: str, variables: dict[str, Any]) -> dict[str, Any]:
        """Execute a GraphQL query.

        Raises:
            LinearAPIError: On transport failure, non-200 status or GraphQL errors.
        """
        try:
            response = await self.client.post(
                self.base_url, json={"query": query, "variables": variables}
            )
        except httpx.HTTPError as e:
            raise LinearAPIError(f"Linear request failed: {e}") from e

        if response.status_code != 200:
            body = sanitize_for_log(truncate_output(response.text, 500))
            logger.debug("Linear request failed: %s - %s", response.status_code, body)
            raise LinearAPIError(
                f"Linear request failed: {response.status_code} - {body}"
            )

        data: dict[str, Any] = response.json()
        if data.get("errors"):
            messages = "; ".join(str(err.get("message", err)) for err in data["errors"])
            raise LinearAPIError(f"Linear GraphQL errors: {messages}")

        return dict(data.get("data") or {})

    async def _collect(
        self, query: str, variables: dict[str, Any], path: tuple[str, ...]
    ) -> list[dict[str, Any]]:
        """Follow a connection's pageInfo until every node is collected."""
        nodes: list[dict[str, Any]] = []
        after: str | None = None
        while True:
            data = await self._graphql(
                query, {**variables, "first": self.page_size, "after": after}
            )
            connection = _dig(data, path)
            nodes.extend(connection.get("nodes") or [])
            page_info = connection.get("pageInfo") or {}
            if not page_info.get("hasNextPage"):
                return nodes
            after = page_info.get("endCursor")

    async def _nested(
        self, issue: dict[str, Any], field: str, query: str
    ) -> list[dict[str, Any]]:
        """Return every node of an issue's nested connection."""
        connection = issue.get(field) or {}
        if not (connection.get("pageInfo") or {}).get("hasNextPage"):
            return list(connection.get("nodes") or [])
        logger.debug("Paginating %s for issue %s", field, issue.get("identifier"))
        return await self._collect(query, {"issueId": issue["id"]}, ("issue", field))

    async def resolve_team(self, team_identifier: str) -> dict[str, Any]:
        """Find a team by ID, then key, then name (case-insensitive).

        Raises:
            LinearError: If the identifier is empty.
            TeamNotFoundError: If no team matches.
        """
        normalized = team_identifier.strip().lower()
        if not normalized:
            raise LinearError("Linear team identifier must not be empty.")

        teams = await self._collect(TEAMS_QUERY, {}, ("teams",))
        for field in ("id", "key", "name"):
            for team in teams:
                if (team.get(field) or "").lower() == normalized:
                    logger.debug("Resolved Linear team %r by %s", team_identifier, field)
                    return team

        raise TeamNotFoundError(f'Unable to resolve Linear team for "{team_identifier}"')

    async def fetch_tickets(self, team_identifier: str, tags: list[str]) -> list[Ticket]:
        """Fetch every ticket of a team that carries all of ``tags``.

        Args:
            team_identifier: Team ID, key or name.
            tags: Required label names; empty means no filtering.

        Returns:
            Tickets in the order Linear returned them.
        """
        team = await self.resolve_team(team_identifier)
        issues = await self._collect(ISSUES_QUERY, {"teamId": team["id"]}, ("issues",))
        logger.info("Fetched %d Linear issue(s) for team %s", len(issues), team.get("key"))

        tickets = []
        for issue in issues:
            labels = await self._nested(issue, "labels", ISSUE_LABELS_QUERY)
            label_names = [label["name"] for label in labels if label.get("name")]
            if not matches_all(label_names, tags):
                continue
            attachments = await self._nested(issue, "attachments", ISSUE_ATTACHMENTS_QUERY)
            tickets.append(self._to_ticket(issue, label_names, attachments))

        logger.info("Kept %d Linear ticket(s) after tag filter %s", len(tickets), tags)
        return tickets

    @staticmethod
    def _to_ticket(
        issue: dict[str, Any], label_names: list[str], attachments: list[dict[str, Any]]
    ) -> Ticket:
        state = issue.get("state") or {}
        state_type = state.get("type")
        workflow_state = (
            WorkflowState(state_type) if state_type in WorkflowState._value2member_map_ else None
        )
        return Ticket(
            id=issue["id"],
            identifier=issue["identifier"],
            title=issue.get("title") or "",
            url=issue.get("url"),
            state=state.get("name") or None,
            workflow_state=workflow_state,
            priority=issue.get("priority"),
            tags=label_names,
            attachments=[
                Attachment(
                    url=att["url"],
                    title=att.get("title") or None,
                    subtitle=att.get("subtitle") or None,
                )
                for att in attachments
                if att.get("url")
            ],
        )

"""GitHubClient - Reads issues and pull requests and creates issues via the REST API."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

import httpx

from roadmap_sync.config import parse_repo
from roadmap_sync.github.auth import TokenProvider
from roadmap_sync.github.exceptions import GitHubAPIError, IssueCreationError
from roadmap_sync.github.models import Issue, IssueState, PullRequest
from roadmap_sync.logging import sanitize_for_log, truncate_output
from roadmap_sync.matching import matches_all

logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"
PER_PAGE = 100


def _label_names(raw_labels: list[Any] | None) -> list[str]:
    names = []
    for label in raw_labels or []:
        name = label if isinstance(label, str) else (label.get("name") or "")
        name = name.strip()
        if name:
            names.append(name)
    return names


def _issue_from_json(data: dict[str, Any]) -> Issue:
    return Issue(
        id=data["id"],
        number=data["number"],
        title=data.get("title") or "",
        url=data.get("html_url") or "",
        state=IssueState(data["state"]),
        labels=_label_names(data.get("labels")),
    )


def _pull_from_json(data: dict[str, Any]) -> PullRequest:
    return PullRequest(
        id=data["id"],
        number=data["number"],
        title=data.get("title") or "",
        url=data.get("html_url") or "",
        state=IssueState(data["state"]),
        labels=_label_names(data.get("labels")),
        draft=bool(data.get("draft")),
        merged=data.get("merged_at") is not None,
    )


class GitHubClient:
    """Async client for GitHub issues and pull requests.

    The token is fetched from the TokenProvider on each request, so the
    provider decides when ``gh auth token`` runs.
    """

    def __init__(
        self,
        token_provider: TokenProvider,
        base_url: str = GITHUB_API_URL,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the GitHub client.

        Args:
            token_provider: Source of the GitHub token.
            base_url: GitHub API base URL (for testing/enterprise)
            transport: Optional httpx transport (used by tests).
        """
        self.token_provider = token_provider
        self.base_url = base_url.rstrip("/")
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create HTTP client for GitHub API."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers={
                    "Accept": "application/vnd.github+json",
                    "X-GitHub-Api-Version": "2022-11-28",
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

    async def __aenter__(self) -> GitHubClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        token = await self.token_provider.get_token()
        headers = {"Authorization": f"Bearer {token}"}
        try:
            return await self.client.request(method, url, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            raise GitHubAPIError(f"GitHub request failed: {method} {url}: {e}") from e

    async def _paginate(self, path: str, params: dict[str, Any]) -> list[dict[str, Any]]:
        """GET every page of a list endpoint, following Link rel="next"."""
        items: list[dict[str, Any]] = []
        url: str | None = path
        request_params: dict[str, Any] | None = params
        while url:
            response = await self._request("GET", url, params=request_params)
            if response.status_code != 200:
                body = sanitize_for_log(truncate_output(response.text, 500))
                logger.debug("GitHub request failed: %s - %s", response.status_code, body)
                raise GitHubAPIError(
                    f"GitHub request failed: {response.status_code} - {body}"
                )
            items.extend(response.json())
            url = response.links.get("next", {}).get("url")
            # The next link already carries the query string
            request_params = None
        return items

    async def fetch_issues(self, repo: str, labels: Sequence[str]) -> list[Issue]:
        """List every issue (open and closed) carrying all of ``labels``.

        Pull requests returned by the issues endpoint are skipped.

        Args:
            repo: Repository as "owner/name".
            labels: Required label names; empty means no filtering.

        Returns:
            Issues in the order GitHub returned them.
        """
        owner, name = parse_repo(repo)
        params: dict[str, Any] = {"state": "all", "per_page": PER_PAGE}
        if labels:
            params["labels"] = ",".join(labels)

        raw = await self._paginate(f"/repos/{owner}/{name}/issues", params)
        issues = [
            _issue_from_json(item)
            for item in raw
            if "pull_request" not in item and matches_all(_label_names(item.get("labels")), labels)
        ]
        logger.info("Fetched %d GitHub issue(s) from %s", len(issues), repo)
        return issues

    async def fetch_pull_requests(self, repo: str, labels: Sequence[str]) -> list[PullRequest]:
        """List every pull request (open and closed) of a repository.

        ``labels`` is accepted for symmetry with fetch_issues but not applied;
        pull requests are narrowed down by state, not label.
        """
        owner, name = parse_repo(repo)
        raw = await self._paginate(
            f"/repos/{owner}/{name}/pulls", {"state": "all", "per_page": PER_PAGE}
        )
        pulls = [_pull_from_json(item) for item in raw]
        logger.info("Fetched %d GitHub pull request(s) from %s", len(pulls), repo)
        return pulls

    async def create_issue(
        self, repo: str, title: str, body: str, labels: Sequence[str]
    ) -> Issue:
        """Create an issue.

        Args:
            repo: Repository as "owner/name".
            title: Issue title.
            body: Issue body (markdown).
            labels: Labels applied to the new issue.

        Returns:
            The created Issue.

        Raises:
            IssueCreationError: If GitHub does not create the issue.
        """
        owner, name = parse_repo(repo)
        logger.info("Creating issue in %s: %s", repo, title)
        try:
            response = await self._request(
                "POST",
                f"/repos/{owner}/{name}/issues",
                json={"title": title, "body": body, "labels": list(labels)},
            )
        except GitHubAPIError as e:
            raise IssueCreationError(str(e)) from e

        if response.status_code != 201:
            body_text = sanitize_for_log(truncate_output(response.text, 500))
            logger.debug("Failed to create issue: %s", body_text)
            raise IssueCreationError(
                f"Failed to create issue: {response.status_code} - {body_text}"
            )

        issue = _issue_from_json(response.json())
        logger.info("Created issue #%d: %s", issue.number, issue.url)
        return issue

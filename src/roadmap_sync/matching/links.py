"""Recognition of canonical GitHub issue URLs.

Only the exact shape ``https://github.com/<owner>/<repo>/issues/<number>`` is
accepted. Pull request, commit and query-string variants are rejected so that
an attachment pointing somewhere else on GitHub never claims an issue.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from typing import Protocol, TypeVar

GITHUB_ISSUE_URL_PATTERN = re.compile(r"^https://github\.com/[^/]+/[^/]+/issues/\d+$")


class _HasURL(Protocol):
    url: str


A = TypeVar("A", bound=_HasURL)


def is_github_issue_url(url: str) -> bool:
    """Return True if ``url`` is a canonical GitHub issue URL."""
    return GITHUB_ISSUE_URL_PATTERN.fullmatch(url) is not None


def find_issue_link(attachments: Iterable[A]) -> A | None:
    """Return the first attachment that links to a GitHub issue, if any."""
    for attachment in attachments:
        if is_github_issue_url(attachment.url):
            return attachment
    return None

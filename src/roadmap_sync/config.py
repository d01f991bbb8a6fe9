"""Run configuration for roadmap-sync.

All options are validated here, before any network call is made.
"""

from __future__ import annotations

import os
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

LINEAR_API_KEY_ENV = "LINEAR_API_KEY"
DEFAULT_OUTPUT_FILE = "ROADMAP.md"


class ConfigError(ValueError):
    """Raised when configuration is invalid or missing."""


class PRStateFilter(StrEnum):
    """Which pull requests end up in the roadmap."""

    ALL = "all"
    OPEN = "open"
    CLOSED = "closed"
    MERGED = "merged"

    @classmethod
    def parse(cls, value: str | PRStateFilter) -> PRStateFilter:
        """Parse a user-supplied PR state.

        Raises:
            ConfigError: If the value is not one of all, open, closed, merged.
        """
        try:
            return cls(value)
        except ValueError:
            choices = ", ".join(member.value for member in cls)
            raise ConfigError(
                f"Invalid --github-pr-state value: {value}. Must be one of: {choices}"
            ) from None


def parse_repo(repo: str) -> tuple[str, str]:
    """Split an "owner/name" repository identifier.

    Raises:
        ConfigError: If the identifier does not have exactly two non-empty parts.
    """
    parts = [part.strip() for part in repo.split("/")]
    parts = [part for part in parts if part]
    if len(parts) != 2:
        raise ConfigError(
            f'GitHub repository must be provided as "owner/name", received "{repo}"'
        )
    return parts[0], parts[1]


def resolve_api_key(value: str | None) -> str:
    """Return the Linear API key from the flag or the LINEAR_API_KEY variable.

    Raises:
        ConfigError: If neither provides a key.
    """
    key = value or os.environ.get(LINEAR_API_KEY_ENV)
    if not key or not key.strip():
        raise ConfigError(
            "Linear API key is required. Provide via --linear-api-key or "
            f"{LINEAR_API_KEY_ENV} env variable."
        )
    return key.strip()


class SyncOptions(BaseModel):
    """Options for a single roadmap sync run.

    Attributes:
        linear_team: Linear team id, key or name.
        linear_api_key: Linear personal API key.
        linear_tags: Labels every Linear ticket must carry.
        github_repo: Repository as "owner/name".
        github_tags: Labels every GitHub issue must carry; also applied to created issues.
        github_pr_state: Which pull requests to list.
        output_file: Destination of the rendered roadmap.
        template_file: Optional template overriding the built-in one.
        dry_run: Print the roadmap instead of writing it, and never create issues.
        create_github_issues: Create issues for tickets without a linked issue.
    """

    model_config = ConfigDict(frozen=True)

    linear_team: str
    linear_api_key: str = Field(repr=False)
    linear_tags: tuple[str, ...] = ()
    github_repo: str
    github_tags: tuple[str, ...] = ()
    github_pr_state: PRStateFilter = PRStateFilter.OPEN
    output_file: str = DEFAULT_OUTPUT_FILE
    template_file: str | None = None
    dry_run: bool = False
    create_github_issues: bool = False

    @field_validator("linear_team")
    @classmethod
    def _check_team(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ConfigError("Linear team identifier must not be empty.")
        return value

    @field_validator("linear_api_key")
    @classmethod
    def _check_api_key(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ConfigError("Linear API key must not be empty.")
        return value

    @field_validator("github_repo")
    @classmethod
    def _check_repo(cls, value: str) -> str:
        owner, name = parse_repo(value)
        return f"{owner}/{name}"

    @field_validator("github_pr_state", mode="before")
    @classmethod
    def _check_pr_state(cls, value: str) -> PRStateFilter:
        return PRStateFilter.parse(value)

    @field_validator("linear_tags", "github_tags", mode="before")
    @classmethod
    def _drop_empty_tags(cls, value: list[str] | tuple[str, ...] | None) -> tuple[str, ...]:
        return tuple(tag for tag in (value or ()) if tag and tag.strip())

    @classmethod
    def build(cls, **values: object) -> SyncOptions:
        """Validate options, reporting the first problem as a ConfigError."""
        try:
            return cls(**values)  # type: ignore[arg-type]
        except ValidationError as e:
            error = e.errors()[0]
            original = (error.get("ctx") or {}).get("error")
            if isinstance(original, ConfigError):
                raise original from e
            field = ".".join(str(part) for part in error["loc"])
            raise ConfigError(f"Invalid {field}: {error['msg']}") from e

"""CLI entry point for linear-roadmap-sync."""

from __future__ import annotations

import asyncio
import sys

import click
from dotenv import load_dotenv

from roadmap_sync.config import DEFAULT_OUTPUT_FILE, ConfigError, SyncOptions, resolve_api_key
from roadmap_sync.github import GitHubError
from roadmap_sync.linear import LinearError
from roadmap_sync.logging import setup_logging
from roadmap_sync.reconciler import ReconcilerError
from roadmap_sync.sync import run
from roadmap_sync.template import TemplateError


@click.command(name="linear-roadmap-sync")
@click.version_option(package_name="linear-roadmap-sync")
@click.option(
    "-t",
    "--linear-team",
    required=True,
    help="Linear team id, key, or name to pull issues from",
)
@click.option(
    "-k",
    "--linear-api-key",
    help="Linear API key (falls back to LINEAR_API_KEY env variable)",
)
@click.option(
    "-T",
    "--linear-tag",
    "linear_tags",
    multiple=True,
    help="Filter Linear issues by tag (can be used multiple times)",
)
@click.option(
    "-r",
    "--github-repo",
    required=True,
    help="GitHub repository in the form owner/name",
)
@click.option(
    "-g",
    "--github-tag",
    "github_tags",
    multiple=True,
    help="Filter GitHub issues by label (can be used multiple times)",
)
@click.option(
    "--github-pr-state",
    default="open",
    show_default=True,
    help="Filter GitHub PRs by state: all, open, closed, merged",
)
@click.option(
    "-o",
    "--output-file",
    default=DEFAULT_OUTPUT_FILE,
    show_default=True,
    help="Destination markdown file",
)
@click.option(
    "-p",
    "--template-file",
    help="Optional template file to override the built-in roadmap template",
)
@click.option(
    "--create-github-issues",
    is_flag=True,
    help="Create GitHub issues for Linear tickets without linked issues",
)
@click.option(
    "--dry-run",
    is_flag=True,
    help="Print the generated roadmap instead of writing to disk",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def main(
    linear_team: str,
    linear_api_key: str | None,
    linear_tags: tuple[str, ...],
    github_repo: str,
    github_tags: tuple[str, ...],
    github_pr_state: str,
    output_file: str,
    template_file: str | None,
    create_github_issues: bool,
    dry_run: bool,
    verbose: bool,
) -> None:
    """Generate a roadmap markdown file from Linear issues and GitHub artifacts."""
    load_dotenv()
    setup_logging(level="DEBUG" if verbose else None)

    try:
        options = SyncOptions.build(
            linear_team=linear_team,
            linear_api_key=resolve_api_key(linear_api_key),
            linear_tags=linear_tags,
            github_repo=github_repo,
            github_tags=github_tags,
            github_pr_state=github_pr_state,
            output_file=output_file,
            template_file=template_file,
            dry_run=dry_run,
            create_github_issues=create_github_issues,
        )
        asyncio.run(run(options))
    except (
        ConfigError,
        LinearError,
        GitHubError,
        TemplateError,
        ReconcilerError,
        OSError,
    ) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()

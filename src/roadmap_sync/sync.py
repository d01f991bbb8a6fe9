"""Sync runner - fetches both trackers, reconciles and writes the roadmap."""

from __future__ import annotations

import asyncio
from pathlib import Path

import click

from roadmap_sync.config import SyncOptions
from roadmap_sync.github import GitHubClient, Issue, PullRequest, TokenProvider
from roadmap_sync.linear import LinearClient, Ticket
from roadmap_sync.logging import get_logger
from roadmap_sync.reconciler import Reconciler, RoadmapContext, build_context
from roadmap_sync.template import load_template, render_template

logger = get_logger("sync")


async def _fetch_all(
    options: SyncOptions, linear: LinearClient, github: GitHubClient
) -> tuple[list[Ticket], list[Issue], list[PullRequest], str]:
    """Load everything the run needs; the first failure cancels the rest."""
    try:
        async with asyncio.TaskGroup() as tg:
            tickets = tg.create_task(
                linear.fetch_tickets(options.linear_team, list(options.linear_tags))
            )
            issues = tg.create_task(github.fetch_issues(options.github_repo, options.github_tags))
            pulls = tg.create_task(
                github.fetch_pull_requests(options.github_repo, options.github_tags)
            )
            template = tg.create_task(load_template(options.template_file))
    except ExceptionGroup as eg:
        raise eg.exceptions[0]
    return tickets.result(), issues.result(), pulls.result(), template.result()


async def run(
    options: SyncOptions,
    *,
    linear: LinearClient | None = None,
    github: GitHubClient | None = None,
    max_concurrency: int | None = None,
) -> RoadmapContext:
    """Generate the roadmap for ``options``.

    Tickets, issues, pull requests and the template are loaded concurrently;
    the first failure there cancels the other loads and aborts the run.
    Clients created here are closed before returning; clients passed in are
    left to the caller.

    Args:
        options: Validated run options.
        linear: Linear client to use instead of a new one.
        github: GitHub client to use instead of a new one.
        max_concurrency: Cap on simultaneous issue creations.

    Returns:
        The context the roadmap was rendered from.
    """
    owned: list[LinearClient | GitHubClient] = []
    if linear is None:
        linear = LinearClient(options.linear_api_key)
        owned.append(linear)
    if github is None:
        github = GitHubClient(TokenProvider())
        owned.append(github)

    try:
        tickets, issues, pulls, template = await _fetch_all(options, linear, github)

        reconciler = Reconciler(issue_creator=github, max_concurrency=max_concurrency)
        result = await reconciler.sync(tickets, issues, pulls, options)
    finally:
        for client in owned:
            await client.aclose()

    context = build_context(tickets, issues, pulls, result, options)
    output = render_template(template, context)

    if options.dry_run:
        click.echo(output)
        return context

    output_path = Path.cwd() / options.output_file
    await asyncio.to_thread(output_path.write_text, output, encoding="utf-8")
    logger.info("Wrote %d bytes to %s", len(output.encode("utf-8")), output_path)
    click.echo(f"Roadmap written to {output_path.resolve()}")
    return context

"""Roadmap template loading and rendering (Jinja2)."""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

import jinja2

from roadmap_sync.template.exceptions import TemplateLoadError, TemplateRenderError

if TYPE_CHECKING:
    from roadmap_sync.reconciler.models import RoadmapContext

logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE = """\
# Product Roadmap

Generated at: {{ generated_at }}

## Issues

### Started
{% for item in merged_items if item.ticket and item.ticket.workflow_state == "started" %}
- [{{ item.ticket.identifier }}]({{ item.ticket.url }}){% if item.issue %} / [#{{ item.issue.number }}]({{ item.issue.url }}){% endif %}: {{ item.title }} ({{ item.ticket.state }})
{% endfor %}

### Unstarted
{% for item in merged_items if item.ticket and item.ticket.workflow_state == "unstarted" %}
- [{{ item.ticket.identifier }}]({{ item.ticket.url }}){% if item.issue %} / [#{{ item.issue.number }}]({{ item.issue.url }}){% endif %}: {{ item.title }} ({{ item.ticket.state }})
{% endfor %}

### Backlog
{% for item in merged_items if item.ticket and item.ticket.workflow_state == "backlog" %}
- [{{ item.ticket.identifier }}]({{ item.ticket.url }}){% if item.issue %} / [#{{ item.issue.number }}]({{ item.issue.url }}){% endif %}: {{ item.title }} ({{ item.ticket.state }})
{% endfor %}

### GitHub Only
{% for item in merged_items if item.kind == "issue" %}
- [#{{ item.issue.number }}]({{ item.issue.url }}): {{ item.title }}
{% endfor %}

## GitHub Pull Requests
{% for pr in filtered_pulls %}
- [#{{ pr.number }}]({{ pr.url }}): {{ pr.title }}{% if pr.draft %} (draft){% endif %}

{% endfor %}
"""


def _blank_none(value: Any) -> Any:
    return "" if value is None else value


_environment = jinja2.Environment(
    autoescape=False,
    keep_trailing_newline=True,
    trim_blocks=True,
    lstrip_blocks=True,
    finalize=_blank_none,
    undefined=jinja2.Undefined,
)


def format_timestamp(value: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision, e.g. 2025-01-01T00:00:00.000Z."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


async def load_template(template_file: str | Path | None = None) -> str:
    """Return the template text.

    Args:
        template_file: Template path; the built-in template is used when None.

    Raises:
        TemplateLoadError: If the file cannot be read.
    """
    if not template_file:
        return DEFAULT_TEMPLATE

    try:
        contents = await asyncio.to_thread(Path(template_file).read_text, encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise TemplateLoadError(f'Failed to load template from "{template_file}": {e}') from e

    logger.debug("Loaded template from %s", template_file)
    return contents


def render_template(template: str, context: RoadmapContext) -> str:
    """Render ``template`` against the roadmap context.

    Missing fields and None values render as empty text.

    Raises:
        TemplateRenderError: If the template is invalid or fails while rendering.
    """
    variables = {
        "generated_at": format_timestamp(context.generated_at),
        "linear_tickets": context.linear_tickets,
        "github_issues": context.github_issues,
        "github_pulls": context.github_pulls,
        "filtered_pulls": context.filtered_pulls,
        "merged_items": context.merged_items,
        "created_issues": context.created_issues,
        "creation_failures": context.creation_failures,
        "options": context.options,
    }
    try:
        return _environment.from_string(template).render(variables)
    except jinja2.TemplateError as e:
        raise TemplateRenderError(f"Failed to render template: {e}") from e

"""Template package - Loads and renders the roadmap template."""

from roadmap_sync.template.exceptions import TemplateError, TemplateLoadError, TemplateRenderError
from roadmap_sync.template.renderer import DEFAULT_TEMPLATE, load_template, render_template

__all__ = [
    "DEFAULT_TEMPLATE",
    "TemplateError",
    "TemplateLoadError",
    "TemplateRenderError",
    "load_template",
    "render_template",
]

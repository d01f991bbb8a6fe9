"""Custom exceptions for template loading and rendering."""


class TemplateError(Exception):
    """Base exception for template errors."""


class TemplateLoadError(TemplateError):
    """Template file could not be read."""


class TemplateRenderError(TemplateError):
    """Template could not be compiled or rendered."""

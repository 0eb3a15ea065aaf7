"""Rich renderers for CLI output."""

from .quote_renderer import describe_formula, render_quote

__all__ = ["describe_formula", "render_quote"]

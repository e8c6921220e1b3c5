"""Page rendering for mdblog.

Every page is a pair of Jinja2 templates: a page fragment (``home.html``,
``post.html``, ...) rendered first, and the shared base layout rendered around
it with the fragment available as ``page_content``.

Key classes:
- PageRenderer: Renders page fragments inside the base layout.
- RenderError: Raised when a template cannot be loaded or executed.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from jinja2 import (
    Environment,
    FileSystemLoader,
    TemplateError,
    TemplateNotFound,
    TemplateSyntaxError,
    select_autoescape,
)
from markupsafe import Markup

TEMPLATE_SUFFIX = ".html"
BASE_TEMPLATE = "base"


class RenderError(Exception):
    """Error while rendering a template.

    Attributes:
        template: Name of the template that failed.
        message: Human-readable error message.
        original_error: The original exception.
    """

    def __init__(
        self,
        template: str,
        message: str,
        original_error: Exception | None = None,
    ):
        self.template = template
        self.message = message
        self.original_error = original_error
        super().__init__(f"{template}: {message}")


def _format_error_message(exc: Exception) -> str:
    """Format a template exception into a user-friendly error message."""
    if isinstance(exc, TemplateNotFound):
        return f"Template not found: {exc.name}"
    if isinstance(exc, TemplateSyntaxError):
        return f"Template syntax error on line {exc.lineno}: {exc.message}"
    error_type = type(exc).__name__
    if error_type == "UndefinedError":
        return f"Undefined variable: {exc}"
    if error_type == "TypeError":
        return f"Type error: {exc}"
    if error_type == "AttributeError":
        return f"Attribute error: {exc}"
    return f"{error_type}: {exc}"


class PageRenderer:
    """Template renderer using Jinja2.

    Attributes:
        templates_dir: Directory containing the templates.
        data: Site data exposed to templates as ``data``.
        highlight_css: Stylesheet returned by the ``pygments_css()`` global.
        env: Jinja2 environment.
    """

    def __init__(
        self,
        templates_dir: Path,
        data: dict[str, Any] | None = None,
        highlight_css: str = "",
    ):
        """Initialize the renderer.

        Args:
            templates_dir: Directory with the base layout and page fragments.
            data: Global site data.
            highlight_css: CSS for highlighted code blocks.
        """
        self.templates_dir = templates_dir
        self.data = data or {}
        self.highlight_css = highlight_css
        self.env = Environment(
            loader=FileSystemLoader(str(templates_dir)),
            autoescape=select_autoescape(["html", "xml"]),
            enable_async=False,
        )
        self._install_globals()

    def _install_globals(self) -> None:
        """Install global variables and functions in the Jinja environment."""
        self.env.globals["data"] = self.data
        self.env.globals["url_for"] = self._url_for
        self.env.globals["pygments_css"] = self._pygments_css

    def _pygments_css(self) -> Markup:
        return Markup(self.highlight_css)

    @staticmethod
    def _url_for(path: str) -> str:
        """Generate a root-relative URL for a path.

        Args:
            path: Path to generate URL for.

        Returns:
            The path with a leading slash; absolute URLs are returned as-is.
        """
        if path.startswith(("http://", "https://", "//")):
            return path
        return path if path.startswith("/") else f"/{path}"

    def has_template(self, page: str) -> bool:
        """Return True if a fragment template exists for ``page``."""
        try:
            self.env.get_template(f"{page}{TEMPLATE_SUFFIX}")
        except TemplateNotFound:
            return False
        except TemplateError:
            # Present but broken; render() reports the error.
            return True
        return True

    def render(
        self, page: str, context: dict[str, Any], base: str = BASE_TEMPLATE
    ) -> str:
        """Render a page fragment inside the base layout.

        Args:
            page: Fragment template name without extension (e.g. ``"home"``).
            context: Variables for both templates.
            base: Layout template name without extension.

        Returns:
            Rendered HTML string.

        Raises:
            RenderError: If either template is missing or fails to execute.
        """
        body_html = self._render_template(page, context)
        return self._render_template(base, {**context, "page_content": body_html})

    def _render_template(self, name: str, context: dict[str, Any]) -> Markup:
        template_name = f"{name}{TEMPLATE_SUFFIX}"
        try:
            template = self.env.get_template(template_name)
            return Markup(template.render(**context))
        except Exception as exc:
            raise RenderError(template_name, _format_error_message(exc), exc) from exc


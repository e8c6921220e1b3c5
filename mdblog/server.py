"""HTTP server for mdblog.

Serves the blog straight from the source files:
- ``/`` lists every post, newest first.
- ``/post/<slug>`` and ``/posts/<slug>`` render a single post.
- ``/about`` and ``/contact`` render fixed Markdown pages.

Each request builds its own loader and renderer, so requests share no mutable
state. Failures are turned into 404/500 responses for that request only; the
server keeps running.

Key classes:
- BlogApp: Maps request paths to rendered pages and status codes.
- BlogServer: Binds a ThreadingHTTPServer to a BlogApp.
- _BlogHandler: HTTP request handler that delegates to BlogApp.
"""

from __future__ import annotations

import logging
import re
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from typing import Any
from urllib.parse import unquote, urlsplit

from . import __version__
from .config import load_config, resolve_dir
from .content import ContentError, PostLoader, PostNotFoundError
from .renderers import DEFAULT_STYLE, MarkdownRenderer
from .templates import PageRenderer, RenderError

logger = logging.getLogger(__name__)

# Static page name -> page title. Content comes from <pages_dir>/<name>.md.
STATIC_PAGES = {
    "about": "About Me",
    "contact": "Contact Me",
}

ROUTES = [
    (re.compile(r"^/$"), "_home"),
    (re.compile(r"^/posts?/(?P<slug>[^/]+)/?$"), "_post"),
    (re.compile(r"^/(?P<name>about|contact)/?$"), "_static_page"),
]

_NOT_FOUND_HTML = "<!doctype html><title>404 Not Found</title><h1>404 Not Found</h1>"
_SERVER_ERROR_HTML = (
    "<!doctype html><title>500 Internal Server Error</title>"
    "<h1>500 Internal Server Error</h1>"
)


class BlogApp:
    """Turns request paths into (status, HTML) pairs.

    Attributes:
        project_root: Root directory of the blog project.
        config: Loaded configuration.
        posts_dir: Directory of post Markdown files.
        pages_dir: Directory holding the static page Markdown files.
        templates_dir: Directory of Jinja2 templates.
    """

    def __init__(self, project_root: Path, config: dict[str, Any] | None = None):
        self.project_root = project_root
        self.config = config if config is not None else load_config(project_root)
        self.posts_dir = resolve_dir(project_root, self.config, "posts_dir")
        self.pages_dir = resolve_dir(project_root, self.config, "pages_dir")
        self.templates_dir = resolve_dir(project_root, self.config, "templates_dir")

    def new_loader(self) -> PostLoader:
        style = str(self.config.get("highlight_style") or DEFAULT_STYLE)
        markdown = MarkdownRenderer(style)
        return PostLoader(
            self.posts_dir,
            renderer=markdown,
            skip_invalid=bool(self.config.get("skip_invalid_posts", False)),
        )

    def _new_renderer(self, loader: PostLoader) -> PageRenderer:
        data = {"site_title": self.config.get("site_title", "")}
        return PageRenderer(
            self.templates_dir, data=data, highlight_css=loader.renderer.css()
        )

    def dispatch(self, raw_path: str) -> tuple[int, str]:
        """Render the page for a request path.

        Args:
            raw_path: Request target, possibly with a query string.

        Returns:
            Tuple of (HTTP status code, HTML body).
        """
        path = urlsplit(raw_path).path or "/"
        loader = self.new_loader()
        renderer = self._new_renderer(loader)
        for pattern, handler_name in ROUTES:
            match = pattern.match(path)
            if not match:
                continue
            handler = getattr(self, handler_name)
            try:
                return HTTPStatus.OK, handler(loader, renderer, **match.groupdict())
            except PostNotFoundError as exc:
                logger.info("Not found: %s", exc.source_path)
                return self._not_found(renderer)
            except (ContentError, RenderError, OSError):
                logger.exception("Failed to render %s", path)
                return HTTPStatus.INTERNAL_SERVER_ERROR, _SERVER_ERROR_HTML
        return self._not_found(renderer)

    def _home(self, loader: PostLoader, renderer: PageRenderer) -> str:
        posts = loader.load_posts()
        context = {"title": self.config.get("site_title", ""), "posts": posts}
        return renderer.render("home", context)

    def _post(self, loader: PostLoader, renderer: PageRenderer, slug: str) -> str:
        post = loader.load_post(unquote(slug))
        return renderer.render("post", {"title": post.title, "post": post})

    def _static_page(
        self, loader: PostLoader, renderer: PageRenderer, name: str
    ) -> str:
        source = self.pages_dir / f"{name}.md"
        content, frontmatter = loader.render_markdown_file(source)
        context = {
            "title": STATIC_PAGES[name],
            "content": content,
            "frontmatter": frontmatter,
        }
        return renderer.render(name, context)

    def _not_found(self, renderer: PageRenderer) -> tuple[int, str]:
        """Render 404.html inside the layout when present, else a plain page."""
        if renderer.has_template("404"):
            try:
                return HTTPStatus.NOT_FOUND, renderer.render(
                    "404", {"title": "Page Not Found"}
                )
            except RenderError:
                logger.exception("Failed to render 404 page")
        return HTTPStatus.NOT_FOUND, _NOT_FOUND_HTML


class _BlogHandler(BaseHTTPRequestHandler):
    """HTTP request handler that delegates rendering to a BlogApp.

    Attributes:
        app: BlogApp instance, set on a per-server subclass.
    """

    app: BlogApp
    server_version = f"mdblog/{__version__}"

    def do_GET(self):
        status, body = self.app.dispatch(self.path)
        self._send_html(status, body, include_body=True)

    def do_HEAD(self):
        status, body = self.app.dispatch(self.path)
        self._send_html(status, body, include_body=False)

    def _send_html(self, status: int, body: str, include_body: bool) -> None:
        encoded = body.encode("utf-8")
        self.send_response(status)
        self.send_header("Content-type", "text/html; charset=utf-8")
        self.send_header("Content-Length", str(len(encoded)))
        self.end_headers()
        if include_body:
            self.wfile.write(encoded)

    def log_message(self, format, *args):  # noqa: A002 - stdlib signature
        logger.info("%s - %s", self.address_string(), format % args)


class BlogServer:
    """HTTP server for a blog project.

    Attributes:
        project_root: Root directory of the project.
        config: Site configuration.
        host: Address to bind.
        port: Port to bind.
        app: BlogApp answering requests.
    """

    def __init__(
        self, project_root: Path, host: str | None = None, port: int | None = None
    ):
        """Initialize the server.

        Args:
            project_root: Root directory of the project.
            host: Optional override for the bind address.
            port: Optional override for the HTTP port.
        """
        self.project_root = project_root
        self.config = load_config(project_root)
        self.host = host if host is not None else str(self.config.get("host", ""))
        self.port = int(port if port is not None else self.config.get("port", 8090))
        self.app = BlogApp(project_root, self.config)

    def make_server(self) -> ThreadingHTTPServer:
        """Bind and return the HTTP server without serving."""
        handler_cls = type("_BlogHandlerForApp", (_BlogHandler,), {"app": self.app})
        return ThreadingHTTPServer((self.host, self.port), handler_cls)

    def start(self) -> None:  # pragma: no cover - integration path
        httpd = self.make_server()
        host, port = httpd.server_address[:2]
        logger.info(
            "Serving %s at http://%s:%s", self.project_root, host or "localhost", port
        )
        try:
            httpd.serve_forever()
        except KeyboardInterrupt:
            logger.info("Shutting down")
        finally:
            httpd.server_close()

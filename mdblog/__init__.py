"""mdblog Markdown blog server.

This package serves a small blog straight from a directory of Markdown files.
Posts are converted to HTML on every request and rendered through Jinja2
templates; there is no database and no cache.

The main entry point is the CLI module, which provides commands for scaffolding
new projects, listing posts, creating posts and running the server.
"""

__all__ = ["__version__"]
__version__ = "0.1.0"

import os
import threading
import urllib.error
import urllib.request
from concurrent.futures import ThreadPoolExecutor

import pytest

from mdblog.server import BlogApp, BlogServer


def write(path, text, mtime=None):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    if mtime is not None:
        os.utime(path, (mtime, mtime))


@pytest.fixture
def project(tmp_path):
    root = tmp_path / "blog"
    templates = root / "templates"
    write(
        templates / "base.html",
        "<html><title>{{ title }}</title><body>{{ page_content }}</body></html>",
    )
    write(
        templates / "home.html",
        '{% for post in posts %}<a href="/post/{{ post.slug }}">{{ post.title }}</a>\n'
        "{% endfor %}",
    )
    write(
        templates / "post.html",
        '<article data-slug="{{ post.slug }}">{{ post.content }}</article>',
    )
    write(templates / "about.html", "<section>{{ content }}</section>")
    write(templates / "contact.html", "<section>{{ content }}</section>")
    write(root / "nav" / "about.md", "About *me*")
    write(root / "nav" / "contact.md", "Mail me")
    write(
        root / "post" / "first-post.md",
        "---\nsecret: do-not-show\n---\nFirst body",
        1_600_000_000,
    )
    write(root / "post" / "second_post.md", "Second body", 1_700_000_000)
    return root


def test_home_lists_posts_newest_first(project):
    status, body = BlogApp(project).dispatch("/")
    assert status == 200
    assert "<title>My Blog</title>" in body
    assert body.index("Second Post") < body.index("First Post")
    assert body.count("<a href=") == 2


def test_post_routes(project):
    app = BlogApp(project)
    for path in ["/post/first-post", "/posts/first-post", "/post/first-post/"]:
        status, body = app.dispatch(path)
        assert status == 200, path
        assert '<article data-slug="first-post">' in body
        assert "<title>First Post</title>" in body
        assert "do-not-show" not in body

    status, body = app.dispatch("/post/second_post?ref=home")
    assert status == 200
    assert "<p>Second body</p>" in body


def test_static_pages(project):
    app = BlogApp(project)
    status, body = app.dispatch("/about")
    assert status == 200
    assert "<title>About Me</title>" in body
    assert "<section><p>About <em>me</em></p>\n</section>" in body

    status, body = app.dispatch("/contact/")
    assert status == 200
    assert "<title>Contact Me</title>" in body


@pytest.mark.parametrize(
    "path",
    [
        "/post/missing",
        "/post/..%2Fnav%2Fabout",
        "/nope",
        "/post/",
        "/about/x",
        "/post/" + "a" * 300,
    ],
)
def test_not_found(project, path):
    status, body = BlogApp(project).dispatch(path)
    assert status == 404
    assert "404 Not Found" in body


def test_not_found_uses_template_when_present(project):
    write(project / "templates" / "404.html", "<p>Lost: {{ title }}</p>")
    status, body = BlogApp(project).dispatch("/post/missing")
    assert status == 404
    assert "<title>Page Not Found</title>" in body
    assert "<p>Lost: Page Not Found</p>" in body


def test_broken_post_fails_only_its_requests(project):
    write(project / "post" / "broken.md", "---\ntitle: [oops\n---\nBody")
    app = BlogApp(project)
    assert app.dispatch("/")[0] == 500
    assert app.dispatch("/post/broken")[0] == 500
    status, body = app.dispatch("/post/first-post")
    assert status == 200
    assert "First body" in body


def test_skip_invalid_posts_config(project):
    write(project / "post" / "broken.md", "---\ntitle: [oops\n---\nBody")
    write(project / "mdblog.yaml", "skip_invalid_posts: true\nsite_title: Notes\n")
    status, body = BlogApp(project).dispatch("/")
    assert status == 200
    assert "<title>Notes</title>" in body
    assert "Broken" not in body


def test_template_and_filesystem_errors_are_500(project):
    (project / "templates" / "home.html").unlink()
    (project / "nav" / "contact.md").unlink()
    app = BlogApp(project)
    status, body = app.dispatch("/")
    assert status == 500
    assert "500 Internal Server Error" in body
    assert app.dispatch("/contact")[0] == 500
    assert app.dispatch("/about")[0] == 200


def test_template_runtime_errors_are_500(project):
    write(project / "templates" / "post.html", "{{ post.date.strftime(1) }}")
    write(project / "templates" / "contact.html", "{{ 1 // 0 }}")
    app = BlogApp(project)
    status, body = app.dispatch("/post/first-post")
    assert status == 500
    assert "500 Internal Server Error" in body
    assert app.dispatch("/contact")[0] == 500
    assert app.dispatch("/")[0] == 200


def test_toml_and_json_metadata_blocks_are_stripped(project):
    write(project / "post" / "toml.md", '+++\nsecret = "tomlsecret"\n+++\nToml body')
    write(project / "post" / "json.md", '{\n  "secret": "jsonsecret"\n}\nJson body')
    app = BlogApp(project)
    status, body = app.dispatch("/post/toml")
    assert status == 200
    assert "<p>Toml body</p>" in body
    assert "tomlsecret" not in body
    status, body = app.dispatch("/post/json")
    assert status == 200
    assert "<p>Json body</p>" in body
    assert "jsonsecret" not in body


def test_missing_posts_directory_is_500(project, tmp_path):
    write(project / "mdblog.yaml", f"posts_dir: {tmp_path / 'nowhere'}\n")
    assert BlogApp(project).dispatch("/")[0] == 500


def _fetch(port, path, method="GET"):
    request = urllib.request.Request(f"http://127.0.0.1:{port}{path}", method=method)
    try:
        with urllib.request.urlopen(request, timeout=10) as resp:
            return resp.status, dict(resp.headers), resp.read().decode("utf-8")
    except urllib.error.HTTPError as exc:
        return exc.code, dict(exc.headers), exc.read().decode("utf-8")


@pytest.fixture
def running_server(project):
    httpd = BlogServer(project, host="127.0.0.1", port=0).make_server()
    thread = threading.Thread(target=httpd.serve_forever, daemon=True)
    thread.start()
    try:
        yield httpd.server_address[1]
    finally:
        httpd.shutdown()
        httpd.server_close()
        thread.join(timeout=5)


def test_http_responses(running_server):
    status, headers, body = _fetch(running_server, "/about")
    assert status == 200
    assert headers["Content-type"] == "text/html; charset=utf-8"
    assert int(headers["Content-Length"]) == len(body.encode("utf-8"))

    status, headers, body = _fetch(running_server, "/about", method="HEAD")
    assert status == 200
    assert int(headers["Content-Length"]) > 0
    assert body == ""

    status, _, _ = _fetch(running_server, "/post/missing")
    assert status == 404


def test_http_template_failure_is_500(project, running_server):
    write(project / "templates" / "about.html", "{{ 1 // 0 }}")
    status, _, body = _fetch(running_server, "/about")
    assert status == 500
    assert "500 Internal Server Error" in body
    assert _fetch(running_server, "/contact")[0] == 200


def test_concurrent_requests_are_independent(running_server):
    paths = ["/", "/post/first-post", "/post/second_post", "/about", "/post/x"] * 8
    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(lambda p: (p, *_fetch(running_server, p)), paths))

    assert len(results) == len(paths)
    for path, status, _, body in results:
        if path == "/":
            assert status == 200
            assert body.index("Second Post") < body.index("First Post")
        elif path == "/post/first-post":
            assert status == 200
            assert 'data-slug="first-post"' in body
            assert "Second body" not in body
        elif path == "/post/second_post":
            assert status == 200
            assert 'data-slug="second_post"' in body
            assert "First body" not in body
        elif path == "/about":
            assert status == 200
            assert "About Me" in body
        else:
            assert status == 404

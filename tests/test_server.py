import asyncio
import io
from pathlib import Path

from marquee.content import ContentSchemaError
from marquee.server import DevServer, _ChangeHandler, _inject, _ReloadHandler


class DummyEvent:
    def __init__(self, path, is_directory=False):
        self.src_path = path
        self.is_directory = is_directory


def test_change_handler_skips_output(tmp_path):
    server = DevServer(tmp_path)
    called = {}

    def fake_rebuild(strict):
        called["strict"] = strict

    server.rebuild = fake_rebuild
    handler = _ChangeHandler(server, strict=False)

    handler.on_any_event(DummyEvent(str(server.output_dir / "index.html")))
    handler.on_any_event(DummyEvent(str(server._staging_dir / "index.html")))
    handler.on_any_event(DummyEvent(str(tmp_path / "content"), is_directory=True))
    assert not called

    handler.on_any_event(DummyEvent(str(tmp_path / "content" / "post.md")))
    assert called["strict"] is False


def test_async_broadcast_drops_stale_clients():
    server = DevServer(Path("."))

    class GoodWS:
        def __init__(self):
            self.messages = []

        async def send(self, msg):
            self.messages.append(msg)

    class BadWS:
        async def send(self, msg):
            raise RuntimeError("fail")

    good = GoodWS()
    bad = BadWS()
    server._ws_clients = {good, bad}
    asyncio.run(server._async_broadcast("hello"))
    assert good.messages == ["hello"]
    assert bad not in server._ws_clients


def test_dev_server_ports(tmp_path):
    server = DevServer(tmp_path)
    assert server.http_port == 4000
    assert server.ws_port == 4001

    override = DevServer(tmp_path, http_port=5055)
    assert override.ws_port == 5056

    explicit = DevServer(tmp_path, http_port=5055, ws_port=6000)
    assert explicit.ws_port == 6000
    assert ":6000" in explicit._reload_script

    (tmp_path / "marquee.yaml").write_text("port: 8000\nws_port: 9000\n", encoding="utf-8")
    configured = DevServer(tmp_path)
    assert (configured.http_port, configured.ws_port) == (8000, 9000)


def _write_post(project: Path) -> None:
    blog = project / "content" / "blog"
    blog.mkdir(parents=True, exist_ok=True)
    (blog / "a.md").write_text(
        "---\npath: /blog/a\ndate: 2019-01-01\ntitle: A\ntype: full\nversion: none\n---\n\nHi\n",
        encoding="utf-8",
    )


def test_rebuild_builds_into_staging_and_reloads(monkeypatch, tmp_path):
    _write_post(tmp_path)
    server = DevServer(tmp_path)
    server._post_build_delay = 0
    reloads = []
    server._broadcast_reload = lambda: reloads.append(True)

    server.rebuild(strict=None)
    assert reloads == [True]
    assert (server.output_dir / "blog" / "a" / "index.html").exists()
    assert not server._staging_dir.exists()

    # unchanged sources don't trigger another build
    server._last_rebuild_at = 0
    server.rebuild(strict=None)
    assert reloads == [True]


def test_rebuild_keeps_output_on_content_error(monkeypatch, tmp_path, capsys):
    server = DevServer(tmp_path)
    server._post_build_delay = 0
    server._broadcast_reload = lambda: None

    def failing_build(*args, **kwargs):
        raise ContentSchemaError(tmp_path / "bad.md", "missing front-matter block")

    monkeypatch.setattr("marquee.server.build_site", failing_build)
    _write_post(tmp_path)
    server.rebuild(strict=True)
    assert "Rebuild failed" in capsys.readouterr().out
    assert server._rebuilding is False


def test_inject_reload_script():
    assert _inject("<body>x</body>", "<s>") == "<body>x<s></body>"
    assert _inject("plain", "<s>") == "plain<s>"


def _make_handler(directory: Path, request_path: str) -> _ReloadHandler:
    handler = _ReloadHandler.__new__(_ReloadHandler)
    handler.directory = str(directory)
    handler.path = request_path
    handler.wfile = io.BytesIO()
    handler.headers_sent = []
    handler.status = None

    def send_response(code, message=None):
        handler.status = code

    handler.send_response = send_response
    handler.send_header = lambda key, value: handler.headers_sent.append((key, value))
    handler.end_headers = lambda: None
    handler.translate_path = lambda path: str(directory / path.lstrip("/"))
    return handler


def test_reload_handler_serves_html_with_script(tmp_path):
    (tmp_path / "blog").mkdir()
    (tmp_path / "blog" / "index.html").write_text("<body>post</body>", encoding="utf-8")
    handler = _make_handler(tmp_path, "/blog/")
    handler.send_head()
    body = handler.wfile.getvalue().decode("utf-8")
    assert handler.status == 200
    assert "post" in body
    assert "new WebSocket" in body


def test_reload_handler_serves_404_page(tmp_path):
    (tmp_path / "404.html").write_text("<body>missing</body>", encoding="utf-8")
    handler = _make_handler(tmp_path, "/blog/nope")
    handler.send_head()
    assert handler.status == 404
    assert "missing" in handler.wfile.getvalue().decode("utf-8")


def test_reload_handler_without_404_page(tmp_path):
    handler = _make_handler(tmp_path, "/nope")
    errors = []
    handler.send_error = lambda code, message=None: errors.append(code)
    handler.send_head()
    assert errors == [404]

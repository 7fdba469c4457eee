from pathlib import Path

from click.testing import CliRunner

from marquee.cli import cli

POST = (
    "---\npath: {path}\ndate: 2019-02-01\ntitle: {title}\ntype: full\n"
    "version: none\n---\n\nBody text.\n"
)


def create_project(root: Path) -> Path:
    blog = root / "content" / "blog"
    blog.mkdir(parents=True)
    (blog / "hello.md").write_text(
        POST.format(path="/blog/hello", title="Hello"), encoding="utf-8"
    )
    return root


def test_cli_build(monkeypatch, tmp_path):
    project = create_project(tmp_path)
    monkeypatch.chdir(project)
    result = CliRunner().invoke(cli, ["build"], catch_exceptions=False)
    assert result.exit_code == 0
    assert "Built 3 pages (1 posts)" in result.output
    assert (project / "output" / "blog" / "hello" / "index.html").exists()


def test_cli_build_reports_schema_error(monkeypatch, tmp_path):
    project = create_project(tmp_path)
    (project / "content" / "blog" / "bad.md").write_text("oops", encoding="utf-8")
    monkeypatch.chdir(project)
    runner = CliRunner()

    result = runner.invoke(cli, ["build"])
    assert result.exit_code == 1
    assert "Build failed" in result.output
    assert "content/blog/bad.md" in result.output
    assert "missing front-matter" in result.output

    result = runner.invoke(cli, ["build", "--lenient"])
    assert result.exit_code == 0
    assert "Skipped content/blog/bad.md" in result.output


def test_cli_build_reports_duplicate_paths(monkeypatch, tmp_path):
    project = create_project(tmp_path)
    (project / "content" / "blog" / "copy.md").write_text(
        POST.format(path="/blog/hello", title="Copy"), encoding="utf-8"
    )
    monkeypatch.chdir(project)
    result = CliRunner().invoke(cli, ["build"])
    assert result.exit_code == 1
    assert "duplicate post path '/blog/hello'" in result.output


def test_cli_check(monkeypatch, tmp_path):
    project = create_project(tmp_path)
    monkeypatch.chdir(project)
    runner = CliRunner()
    result = runner.invoke(cli, ["check"])
    assert result.exit_code == 0
    assert "/blog/hello  2019-02-01  [full]  Hello" in result.output
    assert "1 posts OK" in result.output

    (project / "content" / "blog" / "bad.md").write_text("oops", encoding="utf-8")
    result = runner.invoke(cli, ["check", "--lenient"])
    assert result.exit_code == 1
    assert "Skipped" in result.output


def test_cli_serve_passes_options(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    called = {}

    class DummyServer:
        def __init__(self, root, http_port=None, ws_port=None):
            called["port"] = http_port
            called["ws_port"] = ws_port

        def start(self, strict=None):
            called["strict"] = strict

    monkeypatch.setattr("marquee.server.DevServer", DummyServer)
    result = CliRunner().invoke(
        cli, ["serve", "--lenient", "--port", "5050", "--ws-port", "5051"],
        catch_exceptions=False,
    )
    assert result.exit_code == 0
    assert called == {"port": 5050, "ws_port": 5051, "strict": False}


class _Answer:
    def __init__(self, value):
        self.value = value

    def ask(self):
        return self.value


def test_cli_post_creates_file(monkeypatch, tmp_path):
    project = create_project(tmp_path)
    monkeypatch.chdir(project)
    monkeypatch.setattr(
        "marquee.cli.questionary.text",
        lambda message, **kwargs: _Answer(
            "My New Post" if message == "Title:" else kwargs["default"]
        ),
    )
    monkeypatch.setattr("marquee.cli.questionary.select", lambda *a, **k: _Answer("full"))

    result = CliRunner().invoke(cli, ["post"], catch_exceptions=False)
    assert result.exit_code == 0
    created = project / "content" / "blog" / "my-new-post.md"
    assert created.exists()
    text = created.read_text(encoding="utf-8")
    assert text.startswith("---\npath: /blog/my-new-post\n")
    assert "type: full" in text

    result = CliRunner().invoke(cli, ["check"])
    assert result.exit_code == 0
    assert "2 posts OK" in result.output


def test_cli_post_rejects_taken_path(monkeypatch, tmp_path):
    project = create_project(tmp_path)
    monkeypatch.chdir(project)
    monkeypatch.setattr(
        "marquee.cli.questionary.text",
        lambda message, **kwargs: _Answer("Hello" if message == "Title:" else "hello"),
    )
    monkeypatch.setattr("marquee.cli.questionary.select", lambda *a, **k: _Answer("full"))
    result = CliRunner().invoke(cli, ["post"])
    assert result.exit_code != 0
    assert "already uses /blog/hello" in result.output


def test_cli_post_abort(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr("marquee.cli.questionary.text", lambda *a, **k: _Answer(None))
    result = CliRunner().invoke(cli, ["post"])
    assert result.exit_code == 1


def test_module_main_entrypoint():
    from marquee.__main__ import main

    assert callable(main)


def test_cli_post_reports_duplicate_paths(monkeypatch, tmp_path):
    project = create_project(tmp_path)
    (project / "content" / "blog" / "copy.md").write_text(
        POST.format(path="/blog/hello", title="Copy"), encoding="utf-8"
    )
    monkeypatch.chdir(project)
    monkeypatch.setattr(
        "marquee.cli.questionary.text",
        lambda message, **kwargs: _Answer("Fresh" if message == "Title:" else "fresh"),
    )
    monkeypatch.setattr("marquee.cli.questionary.select", lambda *a, **k: _Answer("full"))
    result = CliRunner().invoke(cli, ["post"])
    assert result.exit_code == 1
    assert "Cannot create post:" in result.output
    assert "duplicate post path '/blog/hello'" in result.output
    assert not (project / "content" / "blog" / "fresh.md").exists()

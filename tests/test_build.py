from pathlib import Path

import pytest

from marquee.build import (
    BuildError,
    BuildResult,
    _format_error_message,
    build_site,
    load_config,
    load_data,
)
from marquee.content import ContentSchemaError


def create_project(tmp_path: Path) -> Path:
    project = tmp_path
    (project / "content" / "blog").mkdir(parents=True)
    (project / "data").mkdir()
    (project / "marquee.yaml").write_text(
        "output_dir: public\ninstall_url: https://store.example/ext\n",
        encoding="utf-8",
    )
    (project / "data" / "site.yaml").write_text(
        "title: Test Site\nurl: https://example.com\n", encoding="utf-8"
    )
    (project / "data" / "nav.yaml").write_text(
        "- label: Home\n  url: /\n", encoding="utf-8"
    )
    (project / "content" / "blog" / "hello.md").write_text(
        "---\npath: /blog/hello\ndate: 2019-02-01\ntitle: Hello\ntype: full\n"
        "version: none\n---\n\nWelcome! See [the blog](/blog).\n",
        encoding="utf-8",
    )
    return project


def test_load_config_defaults_and_overrides(tmp_path):
    config = load_config(tmp_path)
    assert config["content_dir"] == "content"
    assert config["output_dir"] == "output"
    assert config["strict"] is True
    project = create_project(tmp_path)
    config = load_config(project)
    assert config["output_dir"] == "public"
    assert config["install_url"] == "https://store.example/ext"


def test_load_data_merges_site_yaml(tmp_path):
    project = create_project(tmp_path)
    data = load_data(project)
    assert data["title"] == "Test Site"
    assert data["nav"] == [{"label": "Home", "url": "/"}]
    assert load_data(tmp_path / "missing") == {}


def test_build_site_writes_every_route(tmp_path):
    project = create_project(tmp_path)
    result = build_site(project)
    assert isinstance(result, BuildResult)
    out = project / "public"
    assert result.output_dir == out
    assert result.urls == ["/", "/blog", "/blog/hello"]
    assert result.feeds == ["sitemap.xml", "rss.xml"]

    index = (out / "index.html").read_text(encoding="utf-8")
    assert "Finish your code reviews faster" in index
    assert 'href="https://store.example/ext"' in index
    post = (out / "blog" / "hello" / "index.html").read_text(encoding="utf-8")
    assert "<h1>Hello</h1>" in post
    assert (out / "blog" / "index.html").exists()
    assert "Page not found" in (out / "404.html").read_text(encoding="utf-8")
    assert (out / "sitemap.xml").exists()
    assert (out / "rss.xml").exists()


def test_build_absolutizes_links_with_root_url(tmp_path):
    project = create_project(tmp_path)
    build_site(project, root_url="https://cdn.example")
    post = (project / "public" / "blog" / "hello" / "index.html").read_text(
        encoding="utf-8"
    )
    assert 'href="https://cdn.example/blog"' in post


def test_build_cleans_output(tmp_path):
    project = create_project(tmp_path)
    stale = project / "public" / "stale.html"
    stale.parent.mkdir()
    stale.write_text("old", encoding="utf-8")
    build_site(project)
    assert not stale.exists()

    stale.write_text("old", encoding="utf-8")
    build_site(project, clean_output=False)
    assert stale.exists()


def test_build_output_override(tmp_path):
    project = create_project(tmp_path)
    target = tmp_path / "elsewhere"
    result = build_site(project, output_dir_override=target)
    assert result.output_dir == target
    assert (target / "index.html").exists()


def test_strict_build_fails_on_schema_error(tmp_path):
    project = create_project(tmp_path)
    (project / "content" / "blog" / "bad.md").write_text(
        "---\npath: /blog/bad\ntitle: Bad\n---\n", encoding="utf-8"
    )
    with pytest.raises(ContentSchemaError):
        build_site(project)

    result = build_site(project, strict=False)
    assert len(result.store) == 1
    assert len(result.store.errors) == 1


def test_dot_segment_path_never_escapes_output(tmp_path):
    project = create_project(tmp_path)
    (project / "content" / "blog" / "escape.md").write_text(
        "---\npath: /../escaped\ndate: 2019-02-02\ntitle: Escape\ntype: full\n"
        "version: none\n---\n\nBody.\n",
        encoding="utf-8",
    )
    with pytest.raises(ContentSchemaError, match="segments"):
        build_site(project)

    result = build_site(project, strict=False)
    assert result.urls == ["/", "/blog", "/blog/hello"]
    assert "segments" in result.store.errors[0].message
    assert not (project / "escaped").exists()


def test_strict_config_value(tmp_path):
    project = create_project(tmp_path)
    (project / "marquee.yaml").write_text("strict: false\n", encoding="utf-8")
    (project / "content" / "blog" / "bad.md").write_text("no front-matter", encoding="utf-8")
    result = build_site(project)
    assert result.urls == ["/", "/blog", "/blog/hello"]


def test_template_error_raises_build_error(tmp_path):
    project = create_project(tmp_path)
    (project / "layouts").mkdir()
    (project / "layouts" / "post.html.jinja").write_text(
        "{% if %}", encoding="utf-8"
    )
    with pytest.raises(BuildError) as excinfo:
        build_site(project)
    assert excinfo.value.url == "/blog/hello"
    assert excinfo.value.source_path == project / "content" / "blog" / "hello.md"
    assert "Template syntax error on line 1" in excinfo.value.message


def test_runtime_template_error_is_wrapped(tmp_path):
    project = create_project(tmp_path)
    (project / "layouts").mkdir()
    (project / "layouts" / "blog.html.jinja").write_text(
        "{{ missing.attribute }}", encoding="utf-8"
    )
    with pytest.raises(BuildError) as excinfo:
        build_site(project)
    assert excinfo.value.url == "/blog"
    assert excinfo.value.source_path is None
    assert excinfo.value.message.startswith("Undefined variable")


def test_format_error_message():
    assert _format_error_message(ValueError("bad")) == "ValueError: bad"


def test_build_shipped_site(tmp_path):
    repo = Path(__file__).resolve().parent.parent
    result = build_site(repo, output_dir_override=tmp_path / "out")
    assert "/blog/browser-extensions-react" in result.urls
    page = tmp_path / "out" / "blog" / "browser-extensions-react" / "index.html"
    assert "Building browser extensions with React" in page.read_text(encoding="utf-8")

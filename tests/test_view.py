"""Tests for page views."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import Mock

import pytest

from mdpages.models import QuerySpec, ResultEnvelope
from mdpages.view.processors import ProcessorNotFoundError, ProcessorRegistry
from mdpages.view.templates import TemplateStore
from mdpages.view.view import Page, RenderError, View, load_page_data


@pytest.fixture
def templates(tmp_path: Path) -> TemplateStore:
    template_dir = tmp_path / "templates"
    template_dir.mkdir()
    (template_dir / "post.html").write_text("<h1>{{ title }}</h1>{{ host }}")
    (template_dir / "broken.html").write_text("{% if %}")
    (template_dir / "blocks.html").write_text("{% if true %}\nX\n{% endif %}\n")
    (template_dir / "site1").mkdir()
    (template_dir / "site1" / "post.html").write_text("site1:{{ title }}")
    return TemplateStore(template_dir)


@pytest.fixture
def processors() -> ProcessorRegistry:
    registry = ProcessorRegistry()
    registry.add("append-a", lambda data, raw: raw + "-a")
    registry.add("append-b", lambda data, raw: raw + "-b")
    registry.add("title", lambda data, raw: raw + "|" + data["title"])
    return registry


class TestPage:
    """Test Page configuration helpers."""

    def test_template_name_strips_extension(self) -> None:
        assert Page(name="post", template="post.html").template_name == "post"

    def test_template_name_uses_host_key(self) -> None:
        assert Page(name="post", template="post.html", host_key="site1/").template_name == "site1/post"

    def test_processor_names_include_global(self) -> None:
        page = Page(name="p", template="p.html", post_processors=["a"], global_post_processors=["g"])

        assert page.processor_names() == ["a", "g"]

    def test_processing_disabled(self) -> None:
        page = Page(name="p", template="p.html", post_processors=False, global_post_processors=["g"])

        assert page.processor_names() == []


class TestViewRender:
    """Test View.render."""

    def test_render_without_processors(self, templates: TemplateStore) -> None:
        view = View(Page(name="post", template="post.html", host_key=""), templates)
        view.set_data({"title": "Hello"})

        processed, raw = view.render()

        assert raw == "<h1>Hello</h1>"
        assert processed == raw

    def test_host_key_exposed_to_template(self, templates: TemplateStore) -> None:
        view = View(Page(name="post", template="post.html", host_key="site1/"), templates)
        view.set_data({"title": "Hello"})

        processed, _ = view.render()

        assert processed == "site1:Hello"

    def test_processors_applied_in_sequence(
        self, templates: TemplateStore, processors: ProcessorRegistry
    ) -> None:
        """Each processor receives the previous processor's output."""
        page = Page(
            name="post",
            template="post.html",
            post_processors=["append-a"],
            global_post_processors=["append-b"],
        )
        view = View(page, templates, processors)
        view.set_data({"title": "Hi"})

        processed, raw = view.render()

        assert raw == "<h1>Hi</h1>"
        assert processed == "<h1>Hi</h1>-a-b"

    def test_processors_receive_original_data(
        self, templates: TemplateStore, processors: ProcessorRegistry
    ) -> None:
        view = View(Page(name="post", template="post.html", post_processors=["title"]), templates, processors)
        view.set_data({"title": "Hi"})

        processed, _ = view.render()

        assert processed == "<h1>Hi</h1>|Hi"

    def test_processing_disabled_skips_global(
        self, templates: TemplateStore, processors: ProcessorRegistry
    ) -> None:
        page = Page(
            name="post",
            template="post.html",
            post_processors=False,
            global_post_processors=["append-b"],
        )
        view = View(page, templates, processors)
        view.set_data({"title": "Hi"})

        assert view.render() == ("<h1>Hi</h1>", "<h1>Hi</h1>")

    def test_processor_error_propagates(self, templates: TemplateStore) -> None:
        registry = ProcessorRegistry()
        error = ValueError("boom")

        def explode(data, raw):
            raise error

        registry.add("explode", explode)
        view = View(Page(name="post", template="post.html", post_processors=["explode"]), templates, registry)

        with pytest.raises(ValueError) as excinfo:
            view.render()

        assert excinfo.value is error

    def test_unknown_processor(self, templates: TemplateStore) -> None:
        view = View(Page(name="post", template="post.html", post_processors=["nope"]), templates)

        with pytest.raises(ProcessorNotFoundError):
            view.render()

    def test_template_syntax_error(self, templates: TemplateStore) -> None:
        view = View(Page(name="broken", template="broken.html"), templates)

        with pytest.raises(RenderError) as excinfo:
            view.render()

        assert excinfo.value.status_code == 500

    def test_missing_template(self, templates: TemplateStore) -> None:
        view = View(Page(name="gone", template="gone.html"), templates)

        with pytest.raises(RenderError) as excinfo:
            view.render()

        assert excinfo.value.status_code == 500

    def test_runtime_error_in_template(self, templates: TemplateStore) -> None:
        """Errors raised while the template runs carry the 500 marker too."""
        (templates.template_dir / "divide.html").write_text("{{ 1 / 0 }}")
        view = View(Page(name="divide", template="divide.html"), templates)

        with pytest.raises(RenderError) as excinfo:
            view.render()

        assert excinfo.value.status_code == 500
        assert isinstance(excinfo.value.__cause__, ZeroDivisionError)

    def test_error_from_data_object(self, templates: TemplateStore) -> None:
        class Exploding:
            @property
            def title(self) -> str:
                raise KeyError("no title")

        (templates.template_dir / "item.html").write_text("{{ item.title }}")
        view = View(Page(name="item", template="item.html"), templates)
        view.set_data({"item": Exploding()})

        with pytest.raises(RenderError) as excinfo:
            view.render()

        assert excinfo.value.status_code == 500

    def test_keep_whitespace(self, templates: TemplateStore) -> None:
        trimmed, _ = View(Page(name="b", template="blocks.html"), templates).render()
        kept, _ = View(Page(name="b", template="blocks.html", keep_whitespace=True), templates).render()

        assert trimmed.strip() == "X"
        assert not trimmed.startswith("\n")
        assert kept.startswith("\n")

    def test_autoescape(self, templates: TemplateStore) -> None:
        view = View(Page(name="post", template="post.html"), templates)
        view.set_data({"title": "<b>"})

        processed, _ = view.render()

        assert processed == "<h1>&lt;b&gt;</h1>"


class TestTemplateStore:
    """Test template discovery."""

    def test_names(self, templates: TemplateStore) -> None:
        assert templates.names() == ["blocks", "broken", "post", "site1/post"]

    def test_get_accepts_extension(self, templates: TemplateStore) -> None:
        assert templates.get("post.html").filename == "post.html"
        assert templates.get("post").filename == "post.html"


class TestLoadPageData:
    """Test loading datasource data for a page."""

    def test_without_datasource(self) -> None:
        source = Mock()

        assert load_page_data(Page(name="p", template="p.html"), source) == {}
        source.load.assert_not_called()

    def test_with_datasource(self) -> None:
        query = QuerySpec(count=1)
        source = Mock()
        source.load.return_value = ResultEnvelope(results=[{"title": "A"}])

        data = load_page_data(Page(name="p", template="p.html", datasource=query), source)

        source.load.assert_called_once_with(query)
        assert data == {"results": [{"title": "A"}], "metadata": None}

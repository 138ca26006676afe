"""Tests for application configuration."""

from __future__ import annotations

from pathlib import Path

from mdpages.config import AppConfig


class TestAppConfig:
    """Test AppConfig dataclass."""

    def test_default_config(self) -> None:
        """Should create config with default values."""
        config = AppConfig()

        assert config.source_path == Path("content")
        assert config.extension == "md"
        assert config.templates_path == Path("templates")
        assert config.template_extension == ".html"
        assert config.processors_path is None
        assert config.global_post_processors == []

    def test_extension_leading_dot_stripped(self) -> None:
        """Should accept extensions with or without a leading dot."""
        assert AppConfig(extension=".markdown").extension == "markdown"
        assert AppConfig(extension="txt").extension == "txt"

    def test_template_extension_gets_dot(self) -> None:
        """Should normalize the template extension to start with a dot."""
        assert AppConfig(template_extension="j2").template_extension == ".j2"

    def test_resolve_source_path_absolute(self) -> None:
        """Should return absolute path as-is."""
        config = AppConfig(source_path=Path("/srv/posts"))

        assert config.resolve_source_path(Path("/base")) == Path("/srv/posts")

    def test_resolve_source_path_relative_no_base(self) -> None:
        """Should return relative path when no base_dir provided."""
        config = AppConfig(source_path=Path("posts"))

        assert config.resolve_source_path() == Path("posts")

    def test_resolve_templates_path_relative_with_base(self) -> None:
        """Should resolve relative path against base_dir."""
        config = AppConfig(templates_path=Path("site/templates"))

        resolved = config.resolve_templates_path(base_dir=Path("/project"))

        assert resolved == Path("/project/site/templates")

    def test_resolve_processors_path_unset(self) -> None:
        """Should return None when no processor directory is configured."""
        assert AppConfig().resolve_processors_path(Path("/project")) is None

    def test_resolve_processors_path_relative(self) -> None:
        """Should resolve the processor directory like the other paths."""
        config = AppConfig(processors_path=Path("processors"))

        assert config.resolve_processors_path(Path("/project")) == Path("/project/processors")

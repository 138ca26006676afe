"""Application configuration defaults."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_EXTENSION = "md"
DEFAULT_TEMPLATE_EXTENSION = ".html"


@dataclass(slots=True)
class AppConfig:
    source_path: Path = Path("content")
    extension: str = DEFAULT_EXTENSION
    templates_path: Path = Path("templates")
    template_extension: str = DEFAULT_TEMPLATE_EXTENSION
    processors_path: Path | None = None
    global_post_processors: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        # Accept "md" and ".md" alike; the source matches on the bare suffix.
        self.extension = self.extension.lstrip(".") or DEFAULT_EXTENSION
        if not self.template_extension.startswith("."):
            self.template_extension = "." + self.template_extension

    @staticmethod
    def resolve_path(path: Path, base_dir: Path | None = None) -> Path:
        if Path(path).is_absolute() or base_dir is None:
            return Path(path)
        return base_dir / path

    def resolve_source_path(self, base_dir: Path | None = None) -> Path:
        return self.resolve_path(self.source_path, base_dir)

    def resolve_templates_path(self, base_dir: Path | None = None) -> Path:
        return self.resolve_path(self.templates_path, base_dir)

    def resolve_processors_path(self, base_dir: Path | None = None) -> Path | None:
        if self.processors_path is None:
            return None
        return self.resolve_path(self.processors_path, base_dir)

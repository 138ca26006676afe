"""Jinja2 template loading."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping

from jinja2 import Environment, FileSystemLoader, select_autoescape

from mdpages.config import DEFAULT_TEMPLATE_EXTENSION


class Template:
    """A named template that can render with or without whitespace trimming."""

    def __init__(self, store: "TemplateStore", filename: str) -> None:
        self.store = store
        self.filename = filename

    def render(self, data: Mapping[str, Any], *, keep_whitespace: bool = False) -> str:
        env = self.store.environment(keep_whitespace)
        return env.get_template(self.filename).render(**data)


class TemplateStore:
    """Resolves template names to files under a templates directory."""

    def __init__(
        self, template_dir: Path, extension: str = DEFAULT_TEMPLATE_EXTENSION
    ) -> None:
        self.template_dir = Path(template_dir)
        self.extension = extension if extension.startswith(".") else "." + extension
        loader = FileSystemLoader(str(self.template_dir))
        autoescape = select_autoescape(["html", "xml"])
        self._trimmed = Environment(
            loader=loader,
            autoescape=autoescape,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self._verbatim = Environment(loader=loader, autoescape=autoescape)

    def environment(self, keep_whitespace: bool) -> Environment:
        return self._verbatim if keep_whitespace else self._trimmed

    def get(self, name: str) -> Template:
        filename = name if name.endswith(self.extension) else name + self.extension
        return Template(self, filename)

    def names(self) -> list[str]:
        return sorted(
            path.relative_to(self.template_dir).as_posix()[: -len(self.extension)]
            for path in self.template_dir.rglob("*" + self.extension)
            if path.is_file()
        )

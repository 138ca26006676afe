"""Page view: render a template and run its post-processors."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Literal, Tuple

from mdpages.models import QuerySpec
from mdpages.view.processors import ProcessorRegistry
from mdpages.view.templates import TemplateStore

if TYPE_CHECKING:
    from mdpages.index.loader import MarkdownSource

LOGGER = logging.getLogger(__name__)


class RenderError(Exception):
    """Raised when the template engine fails to render a page."""

    status_code = 500


@dataclass(slots=True)
class Page:
    name: str
    template: str
    host_key: str = ""
    keep_whitespace: bool = False
    post_processors: List[str] | Literal[False] = field(default_factory=list)
    global_post_processors: List[str] = field(default_factory=list)
    datasource: QuerySpec | None = None

    @property
    def template_name(self) -> str:
        return self.host_key + self.template.partition(".")[0]

    def processor_names(self) -> List[str]:
        if self.post_processors is False:
            return []
        return list(self.post_processors) + list(self.global_post_processors)


class View:
    """Renders one page with the data assigned to it."""

    def __init__(
        self,
        page: Page,
        templates: TemplateStore,
        processors: ProcessorRegistry | None = None,
    ) -> None:
        self.page = page
        self.templates = templates
        self.processors = processors or ProcessorRegistry()
        self.data: Dict[str, Any] = {}
        self.template = templates.get(page.template_name)

    def set_data(self, data: Dict[str, Any]) -> None:
        self.data = data

    def render(self) -> Tuple[str, str]:
        """Return ``(processed, raw)`` output for the page.

        Template failures raise :class:`RenderError`; a failing post-processor
        propagates its own exception and no output is returned.
        """
        template_data = {**self.data, "host": self.page.host_key}
        try:
            raw = self.template.render(template_data, keep_whitespace=self.page.keep_whitespace)
        except Exception as exc:
            LOGGER.error("Failed to render template %s: %s", self.page.template_name, exc)
            raise RenderError(f"Failed to render {self.page.template_name}: {exc}") from exc

        processed = raw
        for name in self.page.processor_names():
            processed = self.processors.get(name)(self.data, processed)
        return processed, raw


def load_page_data(page: Page, source: MarkdownSource | None) -> Dict[str, Any]:
    """Run the page's datasource query, if it has one, and return template data."""
    if page.datasource is None or source is None:
        return {}
    return source.load(page.datasource).to_dict()

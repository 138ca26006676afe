"""FastAPI application serving datasource queries and rendered pages."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping

from fastapi import FastAPI, HTTPException
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, Field

from mdpages import __version__
from mdpages.config import AppConfig
from mdpages.index.loader import MarkdownSource
from mdpages.ingestion.frontmatter import FrontMatterError
from mdpages.models import QuerySpec
from mdpages.view.processors import ProcessorRegistry
from mdpages.view.templates import TemplateStore
from mdpages.view.view import Page, RenderError, View, load_page_data

LOGGER = logging.getLogger(__name__)


class QueryPayload(BaseModel):
    sort: Dict[str, int] = Field(default_factory=dict)
    search: Dict[str, Any] | None = None
    filter: Dict[str, Any] | None = None
    fields: List[str] = Field(default_factory=list)
    count: int | None = None
    page: int = 1

    def to_query(self) -> QuerySpec:
        return QuerySpec(
            sort=self.sort,
            search=self.search,
            filter=self.filter,
            fields=self.fields,
            count=self.count,
            page=self.page,
        )


def _render_page(
    page: Page, source: MarkdownSource, templates: TemplateStore, processors: ProcessorRegistry
) -> str:
    view = View(page, templates, processors)
    view.set_data(load_page_data(page, source))
    processed, _raw = view.render()
    return processed


def create_app(
    config: AppConfig,
    pages: Mapping[str, Page] | None = None,
    processors: ProcessorRegistry | None = None,
    base_dir: Path | None = None,
) -> FastAPI:
    """Build the web app around an explicit configuration."""
    source = MarkdownSource(config.resolve_source_path(base_dir), config.extension)
    templates = TemplateStore(config.resolve_templates_path(base_dir), config.template_extension)
    registry = processors or ProcessorRegistry()
    processors_path = config.resolve_processors_path(base_dir)
    if processors is None and processors_path is not None:
        registry.load_directory(processors_path)
    known_pages = dict(pages or {})

    app = FastAPI(title="mdpages", version=__version__)

    @app.on_event("startup")
    async def startup_event() -> None:
        logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")

    @app.post("/query")
    async def query_source(payload: QueryPayload) -> dict[str, Any]:
        if not source.source_path.is_dir():
            raise HTTPException(
                status_code=404, detail=f"Source directory not found: {source.source_path}"
            )
        try:
            envelope = await asyncio.to_thread(source.load, payload.to_query())
        except FrontMatterError as exc:
            LOGGER.error("Query failed: %s", exc)
            raise HTTPException(status_code=422, detail=str(exc))
        return envelope.to_dict()

    @app.get("/pages/{name}", response_class=HTMLResponse)
    async def render_page(name: str) -> HTMLResponse:
        page = known_pages.get(name)
        if page is None:
            raise HTTPException(status_code=404, detail=f"Page not found: {name}")
        # Page rendering is synchronous; run it off the event loop.
        try:
            html = await asyncio.to_thread(_render_page, page, source, templates, registry)
        except RenderError as exc:
            raise HTTPException(status_code=exc.status_code, detail=str(exc))
        except Exception as exc:
            LOGGER.error("Failed to render page %s: %s", name, exc)
            raise HTTPException(status_code=500, detail=str(exc))
        return HTMLResponse(content=html)

    return app

"""Command line interface for mdpages."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
import yaml
from rich.console import Console
from rich.table import Table

from mdpages.config import AppConfig
from mdpages.index.loader import MarkdownSource
from mdpages.models import QuerySpec, Record, ResultEnvelope
from mdpages.view.processors import ProcessorRegistry
from mdpages.view.templates import TemplateStore
from mdpages.view.view import Page, View, load_page_data


console = Console()
app = typer.Typer(help="mdpages - Markdown datasources and page rendering")


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _parse_sort(values: List[str]) -> Dict[str, int]:
    sort: Dict[str, int] = {}
    for value in values:
        name, _, direction = value.partition(":")
        if not name:
            raise typer.BadParameter(f"Invalid sort option: {value!r}")
        try:
            sort[name] = int(direction) if direction else 1
        except ValueError as exc:
            raise typer.BadParameter(f"Invalid sort direction in {value!r}") from exc
    return sort


def _parse_pairs(values: List[str]) -> Optional[Dict[str, Any]]:
    """Parse ``key=value`` options; values are read as YAML scalars."""
    if not values:
        return None
    pairs: Dict[str, Any] = {}
    for value in values:
        key, sep, raw = value.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"Expected key=value, got {value!r}")
        pairs[key] = yaml.safe_load(raw) if raw else ""
    return pairs


def _build_query(
    sort: List[str],
    search: List[str],
    filter_: List[str],
    fields: List[str],
    count: Optional[int],
    page: int,
) -> QuerySpec:
    return QuerySpec(
        sort=_parse_sort(sort),
        search=_parse_pairs(search),
        filter=_parse_pairs(filter_),
        fields=fields,
        count=count,
        page=page,
    )


def _print_table(envelope: ResultEnvelope) -> None:
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Handle")
    table.add_column("Attributes")

    for item in envelope.results:
        if isinstance(item, Record):
            table.add_row(item.meta.handle, json.dumps(item.attributes, default=str))
        else:
            table.add_row("-", json.dumps(item, default=str))

    console.print(table)
    if envelope.metadata is not None:
        meta = envelope.metadata
        console.print(
            f"Page {meta.page} of {meta.total_pages} ({meta.total_count} records, {meta.limit} per page)"
        )


@app.command()
def query(
    source: Path = typer.Argument(..., help="Directory of Markdown files.", resolve_path=True),
    extension: str = typer.Option(AppConfig().extension, "--ext", help="File extension to load"),
    sort: List[str] = typer.Option([], "--sort", help="field[:1|-1], repeatable"),
    search: List[str] = typer.Option([], "--search", help="Top-level key=value, repeatable"),
    filter_: List[str] = typer.Option([], "--filter", help="Attribute key=value, repeatable"),
    fields: List[str] = typer.Option([], "--field", help="Field to keep, repeatable"),
    count: Optional[int] = typer.Option(None, help="Records per page"),
    page: int = typer.Option(1, help="Page number"),
    as_json: bool = typer.Option(False, "--json", help="Print the result envelope as JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Load a directory of Markdown files and run a query over it."""
    _setup_logging(verbose)
    if not source.is_dir():
        raise typer.BadParameter(f"Source directory not found: {source}")

    spec = _build_query(sort, search, filter_, fields, count, page)
    envelope = MarkdownSource(source, extension).load(spec)

    if as_json:
        typer.echo(json.dumps(envelope.to_dict(), indent=2, default=str))
        return
    if not envelope.results:
        console.print("[yellow]No matching records.[/yellow]")
        return
    _print_table(envelope)


@app.command()
def render(
    template: str = typer.Argument(..., help="Template file name, e.g. post.html"),
    templates: Path = typer.Option(AppConfig().templates_path, "--templates", help="Templates directory"),
    source: Optional[Path] = typer.Option(None, "--source", help="Directory of Markdown files"),
    extension: str = typer.Option(AppConfig().extension, "--ext", help="File extension to load"),
    processors: Optional[Path] = typer.Option(None, "--processors", help="Post-processor directory"),
    post_processor: List[str] = typer.Option([], "--post-processor", help="Post-processor name, repeatable"),
    sort: List[str] = typer.Option([], "--sort", help="field[:1|-1], repeatable"),
    filter_: List[str] = typer.Option([], "--filter", help="Attribute key=value, repeatable"),
    count: Optional[int] = typer.Option(None, help="Records per page"),
    page: int = typer.Option(1, help="Page number"),
    keep_whitespace: bool = typer.Option(False, "--keep-whitespace", help="Do not trim block whitespace"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Render one template with datasource data and print the processed output."""
    _setup_logging(verbose)
    config = AppConfig(
        source_path=source if source is not None else AppConfig().source_path,
        extension=extension,
        templates_path=templates,
        processors_path=processors,
    )

    registry = ProcessorRegistry()
    processors_path = config.resolve_processors_path(Path.cwd())
    if processors_path is not None:
        registry.load_directory(processors_path)

    page_config = Page(
        name=template,
        template=template,
        keep_whitespace=keep_whitespace,
        post_processors=list(post_processor),
        global_post_processors=list(config.global_post_processors),
        datasource=_build_query(sort, [], filter_, [], count, page) if source is not None else None,
    )
    markdown_source = MarkdownSource(config.resolve_source_path(Path.cwd()), config.extension)
    view = View(
        page_config,
        TemplateStore(config.resolve_templates_path(Path.cwd()), config.template_extension),
        registry,
    )
    view.set_data(load_page_data(page_config, markdown_source))
    processed, _raw = view.render()
    typer.echo(processed)


def _discover_pages(store: TemplateStore, config: AppConfig, with_datasource: bool) -> Dict[str, Page]:
    """One page per top-level template; nested names cannot be routed."""
    return {
        name: Page(
            name=name,
            template=name + config.template_extension,
            global_post_processors=list(config.global_post_processors),
            datasource=QuerySpec() if with_datasource else None,
        )
        for name in store.names()
        if "/" not in name
    }


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", help="Host interface"),
    port: int = typer.Option(8000, help="Server port"),
    source: Path = typer.Option(AppConfig().source_path, "--source", help="Directory of Markdown files"),
    templates: Path = typer.Option(AppConfig().templates_path, "--templates", help="Templates directory"),
    processors: Optional[Path] = typer.Option(None, "--processors", help="Post-processor directory"),
) -> None:
    """Start the web interface, one page per template."""
    try:
        import uvicorn
    except ImportError as exc:  # pragma: no cover - defensive
        raise typer.BadParameter(
            "uvicorn is not installed. Install the web extras with \"python -m pip install '.[web]'\""
        ) from exc

    from mdpages.web.app import create_app

    config = AppConfig(source_path=source, templates_path=templates, processors_path=processors)
    store = TemplateStore(config.resolve_templates_path(Path.cwd()), config.template_extension)
    source_exists = config.resolve_source_path(Path.cwd()).is_dir()
    if not source_exists:
        console.print("[yellow]Warning: source directory not found, pages render without data.[/yellow]")
    pages = _discover_pages(store, config, source_exists)

    console.print(f"Starting web interface on http://{host}:{port} ({len(pages)} pages)")
    uvicorn.run(
        create_app(config, pages, base_dir=Path.cwd()),
        host=host,
        port=port,
        reload=False,
        log_level="info",
    )

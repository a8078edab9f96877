from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

import orjson
import typer
from pydantic import ValidationError as DocumentValidationError
from rich.console import Console

from adapters.execution.worker import CallerThreadExecutor
from adapters.filesystem.graph_document_repository import FileSystemGraphDocumentRepository
from app.config import AppSettings, load_settings
from app.wiring import build_layout_context
from domain.documents import GraphDocument, build_graph
from domain.errors import GraphLayoutError
from domain.services.encode_dot_graph import encode_dot_graph

app = typer.Typer(no_args_is_help=True)
console = Console()
err_console = Console(stderr=True)

ConfigOption = typer.Option(None, "--config", help="YAML settings file.")


def _settings(config: Optional[Path]) -> AppSettings:
    settings = load_settings(config)
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return settings


def _load_document(input_path: Path) -> GraphDocument:
    if not input_path.exists():
        err_console.print(f"[red]File not found:[/] {input_path}")
        raise typer.Exit(code=1)
    try:
        return FileSystemGraphDocumentRepository().load(input_path)
    except (DocumentValidationError, orjson.JSONDecodeError) as exc:
        err_console.print(f"[red]Invalid graph document:[/] {exc}")
        raise typer.Exit(code=1) from exc


@app.command("layout")
def layout(
    input_path: Path = typer.Argument(..., help="Graph document (JSON)."),
    output: Optional[Path] = typer.Option(None, help="Write the layout JSON here."),
    dpi: Optional[float] = typer.Option(None, help="Override layout.dpi from settings."),
    run_async: bool = typer.Option(
        False, "--async/--sync", help="Run the engine on the layout worker thread."
    ),
    config: Optional[Path] = ConfigOption,
) -> None:
    settings = _settings(config)
    if dpi is not None:
        settings = settings.model_copy(
            update={"layout": settings.layout.model_copy(update={"dpi": dpi})}
        )
    document = _load_document(input_path)
    context = build_layout_context(settings)

    try:
        graph, by_key = build_graph(document, context.sink, settings.layout.dpi)
        with context.worker:
            if run_async:
                caller = CallerThreadExecutor()
                done = context.service.layout_async(graph, caller)
                caller.run_until(done)
                done.result()
            else:
                context.service.layout(graph)
    except GraphLayoutError as exc:
        err_console.print(f"[red]Layout failed:[/] {exc}")
        raise typer.Exit(code=1) from exc

    payload: dict[str, Any] = {
        "vertex_ids": {key: vertex.id for key, vertex in by_key.items()},
        **context.sink.snapshot(),
    }
    if output is None:
        typer.echo(orjson.dumps(payload, option=orjson.OPT_INDENT_2).decode("utf-8"))
        return
    FileSystemGraphDocumentRepository().save_layout(payload, output)
    console.print(f"[green]Wrote[/] {output}")


@app.command("dot")
def dot(
    input_path: Path = typer.Argument(..., help="Graph document (JSON)."),
    config: Optional[Path] = ConfigOption,
) -> None:
    settings = _settings(config)
    document = _load_document(input_path)
    context = build_layout_context(settings)
    try:
        graph, _ = build_graph(document, context.sink, settings.layout.dpi)
    except GraphLayoutError as exc:
        err_console.print(f"[red]Invalid graph:[/] {exc}")
        raise typer.Exit(code=1) from exc
    typer.echo(encode_dot_graph(graph), nl=False)


@app.command("validate")
def validate(input_path: Path = typer.Argument(..., help="Graph document to validate.")) -> None:
    document = _load_document(input_path)
    console.print(
        f"[green]Valid graph document:[/] {input_path} "
        f"({len(document.vertices)} vertices, {len(document.edges)} edges)"
    )


if __name__ == "__main__":
    app()

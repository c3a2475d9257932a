"""Command-line utilities for the goa_protogen package."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
import ujson as json
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from . import get_version
from .api import build, render_text
from .config import GeneratorConfig, load_config
from .errors import GoaError, PipelineError

app = typer.Typer(help="Generate protobuf call/result messages from goa-export'ed Go functions")
console = Console()
err_console = Console(stderr=True)

ConfigOption = Annotated[
    Path | None,
    typer.Option("--config", "-c", help="YAML/JSON generator config.", exists=True),
]


def _load(config_path: Path | None, **overrides: object) -> GeneratorConfig:
    try:
        config = load_config(config_path) if config_path else GeneratorConfig()
    except GoaError as exc:
        raise typer.BadParameter(str(exc)) from exc
    updates = {key: value for key, value in overrides.items() if value is not None}
    if not updates:
        return config
    try:
        return GeneratorConfig(**{**config.model_dump(), **updates})
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc


def _fail(prefix: str, exc: GoaError) -> typer.Exit:
    err_console.print(f"[bold red]{prefix}:[/] {escape(str(exc))}")
    return typer.Exit(code=1)


@app.command()
def version() -> None:
    """Print the installed package version."""
    typer.echo(get_version())


@app.command()
def generate(
    go_file: Annotated[
        Path,
        typer.Argument(help="Go file to generate stubs for.", exists=True, readable=True),
    ],
    output: Annotated[Path | None, typer.Option("--output", "-o", help="Schema path.")] = None,
    config: ConfigOption = None,
    no_compile: Annotated[
        bool, typer.Option("--no-compile", help="Only write the schema; skip protoc.")
    ] = False,
    strict: Annotated[bool, typer.Option(help="Fail on unsupported field types.")] = False,
    package: Annotated[str | None, typer.Option(help="Protobuf package name.")] = None,
    go_package: Annotated[str | None, typer.Option(help="option go_package value.")] = None,
) -> None:
    """Write the protobuf schema for GO_FILE and compile it with protoc."""
    cfg = _load(
        config,
        output=output,
        compile_stubs=False if no_compile else None,
        strict=True if strict else None,
        package=package,
        go_package=go_package,
    )
    try:
        build(go_file, cfg)
    except PipelineError as exc:
        if exc.stage == "compile":
            raise _fail("Generating message stubs failed", exc) from exc
        raise _fail("Generating ProtoBuf file failed", exc) from exc


@app.command()
def exports(
    go_file: Annotated[Path, typer.Argument(exists=True, readable=True)],
    config: ConfigOption = None,
) -> None:
    """List the exported functions of GO_FILE and their message fields."""
    cfg = _load(config)
    try:
        _, records = render_text(go_file, cfg)
    except GoaError as exc:
        raise _fail("Scanning exports failed", exc) from exc
    table = Table(title=f"Exports ({go_file})")
    table.add_column("Function")
    table.add_column("Export")
    table.add_column("Call fields")
    table.add_column("Result fields")
    for record in records:
        table.add_row(
            record.source_name,
            record.exported_name,
            ", ".join(f"{f.id}:{f.cardinality} {f.schema_type} {f.name}" for f in record.params),
            ", ".join(f"{f.id}:{f.cardinality} {f.schema_type} {f.name}" for f in record.results),
        )
    console.print(table)


@app.command()
def render(
    go_file: Annotated[Path, typer.Argument(exists=True, readable=True)],
    config: ConfigOption = None,
) -> None:
    """Print the schema for GO_FILE without writing or compiling it."""
    cfg = _load(config)
    try:
        text, _ = render_text(go_file, cfg)
    except GoaError as exc:
        raise _fail("Rendering failed", exc) from exc
    typer.echo(text, nl=False)


@app.command("config-schema")
def config_schema(
    out: Annotated[Path, typer.Argument(help="Output path (usually .json).")],
) -> None:
    """Write the JSON Schema of the generator config, for editors and CI."""
    out.write_text(json.dumps(GeneratorConfig.model_json_schema(), indent=2))
    console.print(f"[green]Config schema written:[/] {escape(str(out))}")


def main() -> None:
    """Entry point for `python -m goa_protogen.cli`."""
    app()


if __name__ == "__main__":
    main()

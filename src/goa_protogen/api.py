"""Public API: one Go file in, one schema file (and protoc stubs) out."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TextIO

from rich.console import Console
from rich.markup import escape

from .compiler import compile_schema
from .config import GeneratorConfig, load_config
from .errors import GoaError, PipelineError
from .golang import SourceFile, parse_source
from .mapper import ExportRecord, map_export
from .render import render_schema
from .scanner import duplicate_exports, scan_exports, unseparated_markers

__all__ = [
    "GeneratorConfig",
    "load_config",
    "read_source",
    "collect_exports",
    "render_text",
    "generate_schema",
    "compile_schema",
    "build",
]

console = Console(stderr=True)


@contextmanager
def stage(name: str) -> Iterator[None]:
    """Re-raise any generator or I/O error as a PipelineError for ``name``."""
    try:
        yield
    except PipelineError:
        raise
    except (GoaError, OSError, UnicodeDecodeError) as exc:
        raise PipelineError(name, exc) from exc


def read_source(source: str | Path | TextIO) -> tuple[str, str | None]:
    """Return (text, display name) for a path or an open text stream."""
    if isinstance(source, (str, Path)):
        path = Path(source)
        return path.read_text(encoding="utf-8-sig"), path.name
    return source.read(), getattr(source, "name", None)


def collect_exports(text: str, config: GeneratorConfig | None = None) -> list[ExportRecord]:
    """Parse, scan and map ``text`` without writing anything."""
    config = config or GeneratorConfig()
    with stage("parse"):
        tree: SourceFile = parse_source(text)
    with stage("scan"):
        exports = scan_exports(tree, marker=config.marker)
    for func_name, line, doc_line in unseparated_markers(tree, marker=config.marker):
        console.print(
            f"[yellow]Not an export marker (no space after {escape(config.marker)}):[/] "
            f"{escape(doc_line)} on {func_name}, line {line}"
        )
    for name in duplicate_exports(exports):
        console.print(f"[yellow]Exported name used more than once:[/] {name}")
    with stage("map"):
        return [map_export(export, strict=config.strict) for export in exports]


def render_text(
    source: str | Path | TextIO, config: GeneratorConfig | None = None
) -> tuple[str, list[ExportRecord]]:
    """Render the schema for ``source`` into a string."""
    config = config or GeneratorConfig()
    with stage("read"):
        text, source_name = read_source(source)
    records = collect_exports(text, config)
    with stage("render"):
        rendered = render_schema(
            records,
            package=config.package,
            go_package=config.go_package,
            source_name=source_name,
        )
    return rendered or "", records


def generate_schema(
    source: str | Path | TextIO,
    output_path: str | Path | None = None,
    config: GeneratorConfig | None = None,
) -> list[ExportRecord]:
    """Write the schema for ``source`` to ``output_path`` (default ``def.proto``).

    The output file is created before the source is parsed and is closed on
    every exit path. On failure it may hold partial content and must not be
    compiled.
    """
    config = config or GeneratorConfig()
    out = Path(output_path) if output_path is not None else config.output
    with stage("write"):
        out.parent.mkdir(parents=True, exist_ok=True)
        handle = out.open("w", encoding="utf-8")
    with handle:
        with stage("read"):
            text, source_name = read_source(source)
        records = collect_exports(text, config)
        with stage("render"):
            render_schema(
                records,
                handle,
                package=config.package,
                go_package=config.go_package,
                source_name=source_name,
            )
    console.print(f"[bold green]Schema written:[/] {escape(str(out))} ({len(records)} exports)")
    return records


def build(
    source: str | Path | TextIO,
    config: GeneratorConfig | None = None,
) -> list[ExportRecord]:
    """Generate the schema and, if configured, compile it with protoc."""
    config = config or GeneratorConfig()
    records = generate_schema(source, config.output, config)
    if config.compile_stubs:
        with stage("compile"):
            compile_schema(config.output, config)
    return records

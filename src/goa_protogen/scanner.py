"""Find the functions marked for export in a parsed Go file."""

from __future__ import annotations

import re
from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass

from .config import DEFAULT_MARKER
from .errors import ExportConfigError
from .golang import FieldGroup, FuncDecl, SourceFile

_IDENT = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


@dataclass(frozen=True)
class ExportDecl:
    """A marked function: its Go name, exported name and raw signature."""

    source_name: str
    exported_name: str
    params: tuple[FieldGroup, ...]
    results: tuple[FieldGroup, ...]


def marker_name(line: str, marker: str = DEFAULT_MARKER) -> str | None:
    """Return the exported name if ``line`` carries the marker, else None.

    The marker must be followed by whitespace or the end of the line, so
    ``goa-exporter`` is not a match.
    """
    if not line.startswith(marker):
        return None
    rest = line[len(marker) :]
    if rest and not rest[0].isspace():
        return None
    return rest.strip()


def _receiver_text(decl: FuncDecl) -> str:
    return "(" + ", ".join(str(group) for group in decl.receiver) + ")"


def exports_for(decl: FuncDecl, marker: str = DEFAULT_MARKER) -> list[ExportDecl]:
    """Return one ExportDecl per marker line in the declaration's doc."""
    found: list[ExportDecl] = []
    for comment in decl.doc:
        for line in comment.lines():
            name = marker_name(line, marker)
            if name is None:
                continue
            if decl.is_method:
                msg = (
                    f"Methods cannot be exported: {_receiver_text(decl)}.{decl.name} "
                    f"(line {comment.line}) carries '{marker}'"
                )
                raise ExportConfigError(msg)
            if not _IDENT.match(name):
                msg = (
                    f"Invalid exported name {name!r} for {decl.name} (line {comment.line}); "
                    f"expected '{marker} <Identifier>'"
                )
                raise ExportConfigError(msg)
            found.append(
                ExportDecl(
                    source_name=decl.name,
                    exported_name=name,
                    params=decl.params,
                    results=decl.results,
                )
            )
    return found


def scan_exports(source: SourceFile, marker: str = DEFAULT_MARKER) -> list[ExportDecl]:
    """Collect export declarations in source order.

    Unmarked functions are skipped. A marked method raises
    :class:`ExportConfigError` and stops the scan.
    """
    exports: list[ExportDecl] = []
    for decl in source.decls:
        if not decl.doc:
            continue
        exports.extend(exports_for(decl, marker))
    return exports


def unseparated_markers(
    source: SourceFile, marker: str = DEFAULT_MARKER
) -> list[tuple[str, int, str]]:
    """Return (function, line, text) for doc lines like ``goa-exportPing``.

    Such lines start with the marker but are not markers, so the function
    is not exported.
    """
    found: list[tuple[str, int, str]] = []
    for decl in source.decls:
        for comment in decl.doc:
            for line in comment.lines():
                if line.startswith(marker) and marker_name(line, marker) is None:
                    found.append((decl.name, comment.line, line))
    return found


def duplicate_exports(exports: Iterable[ExportDecl]) -> list[str]:
    """Return exported names used by more than one export, in first-seen order."""
    counts = Counter(export.exported_name for export in exports)
    return [name for name, count in counts.items() if count > 1]

"""Render export records into a protobuf schema document."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import TextIO

from jinja2 import (
    Environment,
    FileSystemLoader,
    StrictUndefined,
    TemplateError,
    select_autoescape,
)

from .errors import RenderError
from .mapper import ExportRecord

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"
SCHEMA_TEMPLATE = "def.proto.j2"


def _environment() -> Environment:
    return Environment(
        loader=FileSystemLoader(str(TEMPLATES_DIR)),
        autoescape=select_autoescape(enabled_extensions=()),
        undefined=StrictUndefined,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )


def render_schema(
    records: Sequence[ExportRecord],
    stream: TextIO | None = None,
    *,
    package: str | None = None,
    go_package: str | None = None,
    source_name: str | None = None,
) -> str | None:
    """Render ``records`` as a proto2 document.

    With ``stream`` the text is written chunk by chunk, so a failure leaves
    whatever was rendered so far in it and ``None`` is returned. Without a
    stream the whole document is returned.
    """
    context = {
        "records": records,
        "package": package,
        "go_package": go_package,
        "source_name": source_name,
    }
    try:
        template = _environment().get_template(SCHEMA_TEMPLATE)
        if stream is None:
            return template.render(**context)
        template.stream(**context).dump(stream)
    except TemplateError as exc:
        raise RenderError(f"Protobuf rendering failed: {exc}") from exc
    return None

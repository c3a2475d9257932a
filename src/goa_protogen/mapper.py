"""Map Go parameter/result lists onto numbered protobuf fields."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Literal

from .errors import RenderError
from .golang import ArrayType, FieldGroup, FieldShape, ScalarType
from .scanner import ExportDecl

Cardinality = Literal["required", "repeated"]

UNSUPPORTED = "<unsupported>"
# Field 1 of every message is the call id; mapped fields start after it.
FIRST_FIELD_ID = 2

# Go's int is platform sized; the wire type is not.
_NORMALIZED = {"int": "int64"}
# Identifiers with no message counterpart.
_UNSUPPORTED_NAMES = frozenset({"error"})


@dataclass(frozen=True)
class FieldSpec:
    id: int
    cardinality: Cardinality
    schema_type: str
    name: str


@dataclass(frozen=True)
class ExportRecord:
    source_name: str
    exported_name: str
    params: tuple[FieldSpec, ...]
    results: tuple[FieldSpec, ...]


def schema_type(go_name: str) -> str | None:
    """Return the schema type for a Go identifier type, or None if it has none."""
    if go_name in _UNSUPPORTED_NAMES:
        return None
    return _NORMALIZED.get(go_name, go_name)


def classify(shape: FieldShape, strict: bool = False) -> tuple[Cardinality, str]:
    """Return (cardinality, schema type) for one field shape.

    Shapes other than identifiers and arrays of identifiers, and identifiers
    with no schema counterpart such as ``error``, map to ``UNSUPPORTED`` unless
    ``strict`` is set. An array whose element is not an identifier cannot be
    expressed at all and raises :class:`RenderError`.
    """
    cardinality: Cardinality = "required"
    mapped: str | None = None
    if isinstance(shape, ScalarType):
        mapped = schema_type(shape.name)
    elif isinstance(shape, ArrayType):
        if not isinstance(shape.element, ScalarType):
            msg = f"malformed field: array element '{shape.element}' is not an identifier"
            raise RenderError(msg)
        cardinality = "repeated"
        mapped = schema_type(shape.element.name)
    if mapped is not None:
        return cardinality, mapped
    if strict:
        raise RenderError(f"unsupported field type '{shape}'")
    return cardinality, UNSUPPORTED


def map_fields(groups: Iterable[FieldGroup], strict: bool = False) -> list[FieldSpec]:
    """Number the fields of one parameter or result list, starting at 2."""
    specs: list[FieldSpec] = []
    field_id = FIRST_FIELD_ID
    for group in groups:
        cardinality, type_name = classify(group.shape, strict=strict)
        if not group.names:
            # Anonymous fields (e.g. most result lists)
            specs.append(FieldSpec(field_id, cardinality, type_name, f"f_{field_id}"))
            field_id += 1
            continue
        for name in group.names:
            specs.append(FieldSpec(field_id, cardinality, type_name, name))
            field_id += 1
    return specs


def map_export(export: ExportDecl, strict: bool = False) -> ExportRecord:
    return ExportRecord(
        source_name=export.source_name,
        exported_name=export.exported_name,
        params=tuple(map_fields(export.params, strict=strict)),
        results=tuple(map_fields(export.results, strict=strict)),
    )

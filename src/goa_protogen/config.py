"""Typed generator configuration."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

import ujson as json
import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from .errors import ConfigError

OUTPUT_FILE = "def.proto"
DEFAULT_MARKER = "goa-export"

_IDENT = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
# Import path, optionally followed by ";name". Quoted into the schema verbatim.
_GO_PACKAGE = re.compile(r'^[^\s"\\;]+(;[A-Za-z_][A-Za-z0-9_]*)?$')


def _default_targets() -> dict[str, str]:
    return {"java": ".", "go": "."}


class GeneratorConfig(BaseModel):
    """Settings for one generation run."""

    output: Path = Path(OUTPUT_FILE)
    marker: str = DEFAULT_MARKER
    protoc: str = "protoc"
    # language -> output directory, passed as --<language>_out=<dir>
    targets: dict[str, str] = Field(default_factory=_default_targets)
    package: str | None = None
    go_package: str | None = None
    # Reject unsupported field types instead of emitting the sentinel type.
    strict: bool = False
    compile_stubs: bool = True

    model_config = {"extra": "forbid"}

    @field_validator("marker")
    @classmethod
    def validate_marker(cls, value: str) -> str:
        value = value.strip()
        if not value or any(ch.isspace() for ch in value):
            raise ValueError("marker must be a single non-empty token")
        return value

    @field_validator("package")
    @classmethod
    def validate_package(cls, value: str | None) -> str | None:
        if value is None:
            return value
        if not all(_IDENT.match(part) for part in value.split(".")):
            raise ValueError(f"package '{value}' is not a dotted identifier")
        return value

    @field_validator("go_package")
    @classmethod
    def validate_go_package(cls, value: str | None) -> str | None:
        if value is None:
            return value
        if not _GO_PACKAGE.match(value):
            msg = f"go_package '{value}' must be an import path without quotes or spaces"
            raise ValueError(msg)
        return value

    @field_validator("targets")
    @classmethod
    def validate_targets(cls, value: dict[str, str]) -> dict[str, str]:
        for lang in value:
            if not _IDENT.match(lang):
                raise ValueError(f"target language '{lang}' is not an identifier")
        return value

    @model_validator(mode="after")
    def require_targets_when_compiling(self) -> GeneratorConfig:
        if self.compile_stubs and not self.targets:
            raise ValueError("compile_stubs=true requires at least one target")
        return self

    def compiler_args(self, schema_path: Path) -> list[str]:
        """Return the protoc argv for ``schema_path``."""
        args = [self.protoc, f"--proto_path={schema_path.parent}"]
        args.extend(f"--{lang}_out={out}" for lang, out in self.targets.items())
        args.append(str(schema_path))
        return args


def load_config(path: str | Path) -> GeneratorConfig:
    """Load a config from YAML or JSON."""
    path = Path(path)
    data: Any
    try:
        text = path.read_text()
    except OSError as exc:
        raise ConfigError(f"Could not read config {path}: {exc}") from exc
    try:
        if path.suffix in {".yaml", ".yml"}:
            data = yaml.safe_load(text) or {}
        else:
            data = json.loads(text)
    except (yaml.YAMLError, ValueError) as exc:
        raise ConfigError(f"Could not decode config {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid config {path}: expected a mapping")
    try:
        return GeneratorConfig(**data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid config {path}") from exc


def save_config(config: GeneratorConfig, path: str | Path) -> None:
    """Persist a config as YAML or JSON based on file suffix."""
    path = Path(path)
    payload = config.model_dump(mode="json", exclude_none=True)
    if path.suffix in {".yaml", ".yml"}:
        path.write_text(yaml.safe_dump(payload, sort_keys=False))
    else:
        path.write_text(json.dumps(payload, indent=2))

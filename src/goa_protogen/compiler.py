"""Run protoc on a generated schema."""

from __future__ import annotations

import subprocess
from pathlib import Path

from rich.console import Console
from rich.markup import escape

from .config import GeneratorConfig
from .errors import CompilerError

console = Console(stderr=True)


def compile_schema(schema_path: str | Path, config: GeneratorConfig | None = None) -> None:
    """Emit per-language stubs for ``schema_path``.

    protoc inherits stdin/stdout/stderr, so its diagnostics pass through
    untouched. Only the exit status is interpreted.
    """
    config = config or GeneratorConfig()
    schema_path = Path(schema_path)
    if not schema_path.exists():
        raise CompilerError(f"Schema file not found: {schema_path}")
    for out_dir in config.targets.values():
        Path(out_dir).mkdir(parents=True, exist_ok=True)
    args = config.compiler_args(schema_path)
    console.print(f"[cyan]Running[/] {escape(' '.join(args))}")
    try:
        result = subprocess.run(args, check=False)  # noqa: S603 - argv built from config
    except FileNotFoundError as exc:
        raise CompilerError(f"{config.protoc} not found on PATH") from exc
    if result.returncode != 0:
        msg = f"{config.protoc} exited with status {result.returncode}"
        raise CompilerError(msg, returncode=result.returncode)

"""Exception hierarchy shared by the generator stages."""

from __future__ import annotations


class GoaError(Exception):
    """Base class for every error raised by goa_protogen."""


class ConfigError(GoaError):
    """Generator configuration could not be loaded or validated."""


class SourceParseError(GoaError):
    """The Go source could not be read or parsed."""

    def __init__(self, message: str, line: int | None = None, column: int | None = None) -> None:
        self.line = line
        self.column = column
        if line is not None:
            message = f"line {line}" + (f", column {column}" if column else "") + f": {message}"
        super().__init__(message)


class ExportConfigError(GoaError):
    """A ``goa-export`` marker is attached somewhere it cannot be honoured."""


class RenderError(GoaError):
    """The schema document could not be rendered."""


class CompilerError(GoaError):
    """The external schema compiler failed or could not be started."""

    def __init__(self, message: str, returncode: int | None = None) -> None:
        self.returncode = returncode
        super().__init__(message)


class PipelineError(GoaError):
    """A generation run failed; ``stage`` names the step that broke."""

    def __init__(self, stage: str, cause: BaseException) -> None:
        self.stage = stage
        self.cause = cause
        super().__init__(f"{stage} failed: {cause}")

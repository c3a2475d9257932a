"""Parse the top-level declarations of a Go source file.

Only what schema generation needs is modelled: the package name and every
function declaration with its receiver, parameter and result lists and its
doc comment group. Function bodies and ``import``/``type``/``var``/``const``
declarations are consumed as balanced token groups and dropped.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field, replace
from functools import lru_cache
from typing import NamedTuple

from lark import Lark, Token, Transformer, v_args
from lark.exceptions import UnexpectedInput, VisitError
from lark.lark import PostLex

from .errors import SourceParseError


@dataclass(frozen=True)
class ScalarType:
    """A plain identifier type such as ``int`` or ``Request``."""

    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class ArrayType:
    """A slice ``[]T`` or fixed-size array ``[N]T``."""

    element: FieldShape

    def __str__(self) -> str:
        return f"[]{self.element}"


@dataclass(frozen=True)
class OtherType:
    """Any other type shape; ``text`` is a readable rendering of it."""

    text: str

    def __str__(self) -> str:
        return self.text


FieldShape = ScalarType | ArrayType | OtherType


@dataclass(frozen=True)
class FieldGroup:
    """One entry of a parameter or result list.

    ``names`` is empty for anonymous entries; ``a, b int`` is a single group
    with two names sharing one shape.
    """

    names: tuple[str, ...]
    shape: FieldShape

    def __str__(self) -> str:
        if not self.names:
            return str(self.shape)
        return f"{', '.join(self.names)} {self.shape}"


@dataclass(frozen=True)
class Comment:
    text: str
    line: int
    end_line: int
    # True when code precedes the comment on its first line.
    trailing: bool = False

    def lines(self) -> list[str]:
        """Return the comment text per line with delimiters stripped."""
        if self.text.startswith("//"):
            return [self.text.strip("/\t\r ")]
        body = self.text[2:-2]
        return [line.strip().lstrip("*").strip() for line in body.splitlines()]


@dataclass(frozen=True)
class FuncDecl:
    name: str
    params: tuple[FieldGroup, ...]
    results: tuple[FieldGroup, ...]
    receiver: tuple[FieldGroup, ...] = ()
    doc: tuple[Comment, ...] = ()
    line: int = 0

    @property
    def is_method(self) -> bool:
        return bool(self.receiver)


@dataclass(frozen=True)
class SourceFile:
    package: str
    decls: tuple[FuncDecl, ...] = field(default_factory=tuple)
    comments: tuple[Comment, ...] = field(default_factory=tuple)


# Token types after which a newline ends the statement.
_SEMI_TRIGGERS = frozenset(
    {"NAME", "NUMBER", "STRING", "RAW_STRING", "RUNE", "_RPAR", "_RSQB", "_RBRACE"}
)
_SEMI_TRIGGER_OPS = frozenset({"++", "--"})


class GoSemicolons(PostLex):
    """Apply Go's automatic semicolon insertion and collect comments.

    Comments never reach the parser; they are kept on ``self.comments`` for
    the most recent ``process`` call.
    """

    always_accept = ("NEWLINE", "LINE_COMMENT", "BLOCK_COMMENT")

    def __init__(self) -> None:
        self.comments: list[Comment] = []

    @staticmethod
    def _ends_statement(tok: Token | None) -> bool:
        if tok is None:
            return False
        if tok.type == "OP":
            return str(tok) in _SEMI_TRIGGER_OPS
        return tok.type in _SEMI_TRIGGERS

    def process(self, stream: Iterator[Token]) -> Iterator[Token]:
        self.comments = []
        last: Token | None = None
        code_line = 0
        for tok in stream:
            if tok.type in ("LINE_COMMENT", "BLOCK_COMMENT"):
                end_line = tok.end_line or tok.line
                self.comments.append(
                    Comment(
                        text=str(tok),
                        line=tok.line,
                        end_line=end_line,
                        trailing=code_line == tok.line,
                    )
                )
                # A block comment spanning lines acts like a newline.
                if end_line > tok.line and self._ends_statement(last):
                    last = Token.new_borrow_pos("_SEMI", ";", tok)
                    yield last
                continue
            if tok.type == "NEWLINE":
                if self._ends_statement(last):
                    last = Token.new_borrow_pos("_SEMI", ";", tok)
                    yield last
                continue
            code_line = tok.end_line or tok.line
            last = tok
            yield tok
        if self._ends_statement(last):
            yield Token.new_borrow_pos("_SEMI", ";", last)


def _mixed_params(meta) -> SourceParseError:
    return SourceParseError(
        "mixed named and unnamed parameters",
        getattr(meta, "line", None),
        getattr(meta, "column", None),
    )


class _Entry(NamedTuple):
    name: str | None
    shape: FieldShape


class _Receiver(NamedTuple):
    groups: tuple[FieldGroup, ...]


class _Signature(NamedTuple):
    params: tuple[FieldGroup, ...]
    results: tuple[FieldGroup, ...]


class DeclBuilder(Transformer):
    """Turn the parse tree into :class:`FuncDecl` values."""

    def start(self, items):
        package = items[0]
        decls = tuple(item for item in items[1:] if isinstance(item, FuncDecl))
        return package, decls

    def package_clause(self, items):
        return str(items[1])

    def other_decl(self, items):
        return None

    def block(self, items):
        return "{...}"

    def pgroup(self, items):
        return None

    def bgroup(self, items):
        return None

    def type_args(self, items):
        return "[...]"

    def func_decl(self, items):
        func_tok = items[0]
        receiver: tuple[FieldGroup, ...] = ()
        name = ""
        signature = _Signature((), ())
        for item in items[1:]:
            if isinstance(item, _Receiver):
                receiver = item.groups
            elif isinstance(item, Token) and item.type == "NAME":
                name = str(item)
            elif isinstance(item, _Signature):
                signature = item
        return FuncDecl(
            name=name,
            params=signature.params,
            results=signature.results,
            receiver=receiver,
            line=func_tok.line,
        )

    def receiver(self, items):
        return _Receiver(items[0])

    def type_params(self, items):
        return None

    def signature(self, items):
        results = items[1] if len(items) > 1 else ()
        return _Signature(items[0], results)

    def result(self, items):
        (value,) = items
        if isinstance(value, tuple):
            return value
        return (FieldGroup((), value),)

    @v_args(meta=True)
    def parameters(self, meta, items):
        entries: list[_Entry] = items
        if not any(entry.name for entry in entries):
            return tuple(FieldGroup((), entry.shape) for entry in entries)
        # Named list: bare identifiers are names waiting for the next type.
        groups: list[FieldGroup] = []
        pending: list[str] = []
        for entry in entries:
            if entry.name is None:
                if not isinstance(entry.shape, ScalarType):
                    raise _mixed_params(meta)
                pending.append(entry.shape.name)
                continue
            groups.append(FieldGroup((*pending, entry.name), entry.shape))
            pending = []
        if pending:
            raise _mixed_params(meta)
        return tuple(groups)

    def param_entry(self, items):
        return _Entry(None, items[0])

    def named_param(self, items):
        return _Entry(str(items[0]), items[1])

    def named_variadic(self, items):
        return _Entry(str(items[0]), OtherType(f"...{items[1]}"))

    def variadic(self, items):
        return _Entry(None, OtherType(f"...{items[0]}"))

    def type_name(self, items):
        names = [str(item) for item in items if isinstance(item, Token) and item.type == "NAME"]
        type_args = "".join(item for item in items if not isinstance(item, Token))
        if len(names) == 1 and not type_args:
            return ScalarType(names[0])
        return OtherType(".".join(names) + type_args)

    def slice_type(self, items):
        return ArrayType(items[-1])

    def array_type(self, items):
        return ArrayType(items[-1])

    def pointer_type(self, items):
        return OtherType(f"*{items[-1]}")

    def map_type(self, items):
        return OtherType(f"map[{items[1]}]{items[2]}")

    def chan_type(self, items):
        return OtherType(f"chan {items[-1]}")

    def func_type(self, items):
        signature: _Signature = items[1]
        params = ", ".join(str(group) for group in signature.params)
        results = ", ".join(str(group) for group in signature.results)
        text = f"func({params})"
        if results:
            text += f" ({results})" if len(signature.results) > 1 else f" {results}"
        return OtherType(text)

    def struct_type(self, items):
        return OtherType("struct{...}")

    def interface_type(self, items):
        return OtherType("interface{...}")


class GoParser:
    """LALR parser for Go top-level declarations."""

    def __init__(self) -> None:
        self._postlex = GoSemicolons()
        self._lark = Lark.open(
            "go.lark",
            rel_to=__file__,
            parser="lalr",
            lexer="contextual",
            postlex=self._postlex,
            propagate_positions=True,
            maybe_placeholders=False,
        )

    def parse(self, text: str) -> SourceFile:
        # A leading byte order mark is not part of the source.
        text = text.removeprefix("\ufeff")
        try:
            tree = self._lark.parse(text)
            package, decls = DeclBuilder().transform(tree)
        except UnexpectedInput as exc:
            context = exc.get_context(text).rstrip()
            raise SourceParseError(
                f"{type(exc).__name__}\n{context}",
                getattr(exc, "line", None),
                getattr(exc, "column", None),
            ) from exc
        except VisitError as exc:
            if isinstance(exc.orig_exc, SourceParseError):
                raise exc.orig_exc from exc
            raise
        comments = tuple(self._postlex.comments)
        return SourceFile(
            package=package,
            decls=tuple(_attach_docs(decls, comments)),
            comments=comments,
        )


def comment_groups(comments: tuple[Comment, ...]) -> list[tuple[Comment, ...]]:
    """Group comments that sit on adjacent lines.

    A trailing comment (code before it on the same line) always starts a new
    group, and only comments on that same line join it.
    """
    groups: list[list[Comment]] = []
    for comment in comments:
        if groups:
            prev = groups[-1]
            if prev[0].trailing:
                joins = comment.line == prev[-1].end_line
            else:
                joins = not comment.trailing and comment.line <= prev[-1].end_line + 1
            if joins:
                prev.append(comment)
                continue
        groups.append([comment])
    return [tuple(group) for group in groups]


def _attach_docs(decls: tuple[FuncDecl, ...], comments: tuple[Comment, ...]) -> Iterator[FuncDecl]:
    """Attach the comment group ending on the line right above each ``func``."""
    lead: dict[int, tuple[Comment, ...]] = {}
    for group in comment_groups(comments):
        if not group[0].trailing:
            lead[group[-1].end_line] = group
    for decl in decls:
        doc = lead.get(decl.line - 1)
        yield replace(decl, doc=doc) if doc else decl


@lru_cache(maxsize=1)
def _default_parser() -> GoParser:
    return GoParser()


def parse_source(text: str) -> SourceFile:
    """Parse Go source text into its package name and function declarations."""
    return _default_parser().parse(text)

import pytest

from goa_protogen.errors import SourceParseError
from goa_protogen.golang import (
    ArrayType,
    FieldGroup,
    OtherType,
    ScalarType,
    comment_groups,
    parse_source,
)

SERVICE = """// Package main is a demo.
package main

import (
	"fmt"
	"strings"
)

const greeting = "hello {world}"

var (
	counter = 0
	lookup  = map[string]int{"a": 1}
)

type Server struct {
	Name string
	tags []string
}

// goa-export Ping
func Ping(count int) (int, error) {
	if count < 0 {
		return 0, fmt.Errorf("negative: %d", count)
	}
	return count * 2, nil
}

func helper(s string) string {
	r := '}'
	raw := `{{ not a block`
	_ = r
	counter++
	return strings.ToUpper(s) + raw
}

// Status reports the server state.
func (s *Server) Status() string { return s.Name }

func Generic[T any](v T) T { return v }
"""


def test_parse_source_collects_functions_in_order() -> None:
    source = parse_source(SERVICE)
    assert source.package == "main"
    assert [decl.name for decl in source.decls] == ["Ping", "helper", "Status", "Generic"]


def test_parse_source_reads_signatures() -> None:
    ping = parse_source(SERVICE).decls[0]
    assert ping.params == (FieldGroup(("count",), ScalarType("int")),)
    assert ping.results == (
        FieldGroup((), ScalarType("int")),
        FieldGroup((), ScalarType("error")),
    )
    assert not ping.is_method


def test_parse_source_records_receiver() -> None:
    status = parse_source(SERVICE).decls[2]
    assert status.is_method
    assert status.receiver == (FieldGroup(("s",), OtherType("*Server")),)
    assert status.results == (FieldGroup((), ScalarType("string")),)


def test_shared_type_names_form_one_group() -> None:
    source = parse_source("package p\n\nfunc Add(a, b int, scale float64) (sum int) { return }\n")
    add = source.decls[0]
    assert add.params == (
        FieldGroup(("a", "b"), ScalarType("int")),
        FieldGroup(("scale",), ScalarType("float64")),
    )
    assert add.results == (FieldGroup(("sum",), ScalarType("int")),)


def test_type_shapes() -> None:
    text = (
        "package p\n"
        "func F(a []string, b [4]byte, c *T, d map[string]int, e pkg.Type,\n"
        "\tf chan int, g func(int) error, h struct{ X int }, i ...int) {}\n"
    )
    (decl,) = parse_source(text).decls
    shapes = {group.names[0]: group.shape for group in decl.params}
    assert shapes["a"] == ArrayType(ScalarType("string"))
    assert shapes["b"] == ArrayType(ScalarType("byte"))
    assert shapes["c"] == OtherType("*T")
    assert shapes["d"] == OtherType("map[string]int")
    assert shapes["e"] == OtherType("pkg.Type")
    assert shapes["f"] == OtherType("chan int")
    assert shapes["g"] == OtherType("func(int) error")
    assert shapes["h"] == OtherType("struct{...}")
    assert shapes["i"] == OtherType("...int")


def test_nested_slice_keeps_inner_shape() -> None:
    (decl,) = parse_source("package p\nfunc Grid() [][]int { return nil }\n").decls
    assert decl.results == (FieldGroup((), ArrayType(ArrayType(ScalarType("int")))),)


def test_instantiated_generic_types() -> None:
    text = "package p\nfunc (l *List[T]) Merge(m Map[K, V], xs []int) List[T] { return l }\n"
    (decl,) = parse_source(text).decls
    assert decl.is_method
    assert decl.receiver == (FieldGroup(("l",), OtherType("*List[...]")),)
    assert decl.params == (
        FieldGroup(("m",), OtherType("Map[...]")),
        FieldGroup(("xs",), ArrayType(ScalarType("int"))),
    )
    assert decl.results == (FieldGroup((), OtherType("List[...]")),)


def test_doc_comment_must_touch_the_declaration() -> None:
    text = (
        "package p\n"
        "\n"
        "// goa-export Detached\n"
        "\n"
        "func Detached() {}\n"
        "\n"
        "func trailing() {} // goa-export Trailing\n"
        "func Next() {}\n"
        "\n"
        "// Sum adds numbers.\n"
        "//\n"
        "// goa-export Sum\n"
        "func Sum(a, b int) int { return a + b }\n"
    )
    decls = {decl.name: decl for decl in parse_source(text).decls}
    assert decls["Detached"].doc == ()
    assert decls["Next"].doc == ()
    assert [c.lines()[0] for c in decls["Sum"].doc] == ["Sum adds numbers.", "", "goa-export Sum"]


def test_block_comment_lines_are_stripped() -> None:
    text = "package p\n\n/*\n * goa-export Block\n */\nfunc Block() {}\n"
    (decl,) = parse_source(text).decls
    (comment,) = decl.doc
    assert "goa-export Block" in comment.lines()


def test_comment_groups_split_on_blank_lines() -> None:
    source = parse_source("package p\n\n// a\n// b\n\n// c\nfunc F() {}\n")
    groups = comment_groups(source.comments)
    assert [[c.text for c in group] for group in groups] == [["// a", "// b"], ["// c"]]


def test_leading_byte_order_mark_is_skipped() -> None:
    source = parse_source("\ufeffpackage p\n// goa-export F\nfunc F() {}\n")
    assert source.package == "p"
    assert [(d.name, d.params, d.results) for d in source.decls] == [("F", (), ())]
    assert source.decls[0].doc[0].text == "// goa-export F"


def test_syntax_error_reports_line() -> None:
    with pytest.raises(SourceParseError) as info:
        parse_source("package p\n\nfunc Broken(a int {\n}\n")
    assert info.value.line == 3


def test_missing_package_clause_is_an_error() -> None:
    with pytest.raises(SourceParseError):
        parse_source("func F() {}\n")


def test_mixed_named_and_unnamed_parameters_rejected() -> None:
    with pytest.raises(SourceParseError, match="mixed named and unnamed"):
        parse_source("package p\nfunc F(a int, []string) {}\n")

import re
from collections.abc import Callable
from pathlib import Path

import pytest

PING_SOURCE = """package main

// goa-export Ping
func Ping(count int) (int, error) {
	return count, nil
}
"""

BATCH_SOURCE = """package main

// goa-export Batch
func Batch(names []string) []int {
	out := make([]int, len(names))
	return out
}

func unexported(x int) int { return x }
"""

_MESSAGE = re.compile(r"message\s+(\w+)\s*\{(.*?)\}", re.S)
_FIELD = re.compile(r"(required|repeated)\s+(\S+)\s+(\w+)\s*=\s*(\d+);")


def _parse_messages(text: str) -> dict[str, list[tuple[int, str, str, str]]]:
    messages: dict[str, list[tuple[int, str, str, str]]] = {}
    for name, body in _MESSAGE.findall(text):
        messages[name] = [
            (int(field_id), rule, type_, field_name)
            for rule, type_, field_name, field_id in _FIELD.findall(body)
        ]
    return messages


@pytest.fixture()
def proto_messages() -> Callable[[str], dict[str, list[tuple[int, str, str, str]]]]:
    """Parse rendered schema text into {message: [(id, rule, type, name), ...]}."""
    return _parse_messages


@pytest.fixture()
def write_go(tmp_path: Path) -> Callable[[str, str], Path]:
    def _write(source: str, name: str = "service.go") -> Path:
        path = tmp_path / name
        path.write_text(source)
        return path

    return _write


@pytest.fixture()
def ping_source() -> str:
    return PING_SOURCE


@pytest.fixture()
def batch_source() -> str:
    return BATCH_SOURCE

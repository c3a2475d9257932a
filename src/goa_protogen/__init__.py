"""
goa_protogen
============

Derives protobuf call/result messages from Go functions marked with a
``goa-export`` comment and hands the schema to ``protoc``.
"""

from importlib.metadata import PackageNotFoundError, version


def get_version() -> str:
    """Return the installed package version or '0.0.0' when unavailable."""
    try:
        return version("goa-protogen")
    except PackageNotFoundError:
        return "0.0.0"


__all__ = ["get_version"]

"""Parsing of the output of the ``file`` type-identification tool."""

from __future__ import annotations

COMMAND = "file"


def parse_output(fileout: str) -> str:
    """Return the description part of a ``path: description`` line."""
    parts = fileout.split(": ")
    if len(parts) > 1:
        return parts[1].removesuffix("\n")
    return ""
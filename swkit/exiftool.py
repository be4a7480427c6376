"""Parsing of exiftool's human-readable output."""

from __future__ import annotations

COMMAND = "exiftool"

_IGNORED_TAGS = frozenset({"Directory", "File Name", "File Permissions"})


def _is_delimiter(ch: str) -> bool:
    return ch in "-_" or ch.isspace()


def camel_case(s: str) -> str:
    """Convert a space, dash or underscore separated phrase to CamelCase."""
    s = s.strip()
    out: list[str] = []
    prev = ""
    for curr in s:
        if not _is_delimiter(curr):
            if not prev or _is_delimiter(prev):
                out.append(curr.upper())
            elif prev.islower():
                out.append(curr)
            else:
                out.append(curr.lower())
        prev = curr
    return "".join(out)


def parse_output(exifout: str) -> dict[str, str] | None:
    """Turn exiftool output into a tag-to-value mapping.

    Returns None when the output reports that the file was not found.
    """
    lines = exifout.split("\n")
    if "File not found" in lines:
        return None
    result: dict[str, str] = {}
    for line in lines:
        parts = line.split(":")
        if len(parts) != 2:
            continue
        key, value = parts
        if key.strip() not in _IGNORED_TAGS:
            result[camel_case(key).strip()] = value.strip()
    return result
"""Loading of per-environment service configuration files."""

from __future__ import annotations

import dataclasses
import json
import os
import tomllib
import typing
from pathlib import Path
from typing import Any, Callable

VERSION = "0.4.0"

_KNOWN_ENVIRONMENTS = frozenset({"local", "dev", "prod"})
_DEFAULT_ENVIRONMENT = "local"
_TRUE_WORDS = frozenset({"1", "t", "true", "yes", "on"})
_FALSE_WORDS = frozenset({"0", "f", "false", "no", "off", ""})

_NAMED_TYPES: dict[str, Any] = {
    "str": str,
    "int": int,
    "float": float,
    "bool": bool,
    "list": list,
    "dict": dict,
    "set": set,
    "tuple": tuple,
    "List": list,
    "Dict": dict,
    "Set": set,
    "Tuple": tuple,
}


class ConfigError(Exception):
    """Raised when a configuration file cannot be found, read or decoded."""


def config_name(env: str) -> str:
    """Return the configuration file base name for a deployment kind."""
    return env if env in _KNOWN_ENVIRONMENTS else _DEFAULT_ENVIRONMENT


def _read_json(path: Path) -> Any:
    return json.loads(path.read_text(encoding="utf-8"))


def _read_toml(path: Path) -> Any:
    with path.open("rb") as fh:
        return tomllib.load(fh)


_READERS: tuple[tuple[str, Callable[[Path], Any]], ...] = (
    ("json", _read_json),
    ("toml", _read_toml),
)


def _find_config(directory: Path, name: str) -> tuple[Path, Callable[[Path], Any]]:
    for ext, reader in _READERS:
        candidate = directory / f"{name}.{ext}"
        if candidate.is_file():
            return candidate, reader
    raise ConfigError(f'config file "{name}" not found in "{directory}"')


def _resolve(tp: Any) -> Any:
    """Map a field annotation, possibly written as a string, to a type."""
    if not isinstance(tp, str):
        return tp
    text = tp.strip()
    if "|" in text or text.startswith(("Optional", "typing.Optional")):
        return Any
    base = text.split("[", 1)[0].strip()
    if base.startswith("typing."):
        base = base[len("typing."):]
    return _NAMED_TYPES.get(base, Any)


def _zero(tp: Any) -> Any:
    if tp in (str, int, float, bool):
        return tp()
    if dataclasses.is_dataclass(tp) and isinstance(tp, type):
        return _decode(tp, {})
    origin = typing.get_origin(tp) or tp
    if origin in (list, dict, set, tuple):
        return origin()
    return None


def _to_bool(value: Any, name: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        word = value.strip().lower()
        if word in _TRUE_WORDS:
            return True
        if word in _FALSE_WORDS:
            return False
    raise ConfigError(f"cannot decode {name!r} as a boolean: {value!r}")


def _to_int(value: Any, name: str) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip(), 0)
        except ValueError:
            pass
    raise ConfigError(f"cannot decode {name!r} as an integer: {value!r}")


def _to_float(value: Any, name: str) -> float:
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            pass
    raise ConfigError(f"cannot decode {name!r} as a number: {value!r}")


def _to_str(value: Any, name: str) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, (int, float)):
        return str(value)
    raise ConfigError(f"cannot decode {name!r} as a string: {value!r}")


_CONVERTERS: dict[Any, Callable[[Any, str], Any]] = {
    bool: _to_bool,
    int: _to_int,
    float: _to_float,
    str: _to_str,
}


def _convert(tp: Any, value: Any, name: str) -> Any:
    if dataclasses.is_dataclass(tp) and isinstance(tp, type):
        if not isinstance(value, dict):
            raise ConfigError(f"cannot decode {name!r} as a table: {value!r}")
        return _decode(tp, value)
    converter = _CONVERTERS.get(tp)
    if converter is not None:
        return converter(value, name)
    return value


def _decode(schema: type, data: dict[str, Any]) -> Any:
    lowered = {str(key).lower(): value for key, value in data.items()}
    kwargs: dict[str, Any] = {}
    for f in dataclasses.fields(schema):
        if not f.init:
            continue
        key = str(f.metadata.get("key", f.name)).lower()
        tp = _resolve(f.type)
        if key in lowered:
            kwargs[f.name] = _convert(tp, lowered[key], f.name)
        elif f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING:
            kwargs[f.name] = _zero(tp)
    return schema(**kwargs)


def load(path: str | os.PathLike[str], env: str, schema: type | None = None) -> Any:
    """Load ``<path>/<name>.json`` or ``<path>/<name>.toml`` for ``env``.

    With a dataclass ``schema`` the values are decoded into an instance of
    it, matching keys case-insensitively; fields absent from the file keep
    their default or the zero value of their type. Without a schema the raw
    mapping is returned.
    """
    directory = Path(path)
    candidate, reader = _find_config(directory, config_name(env))
    try:
        data = reader(candidate)
    except (OSError, ValueError) as exc:
        raise ConfigError(f"failed to read {candidate}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"{candidate} does not hold a table of settings")
    if schema is None:
        return data
    if not (dataclasses.is_dataclass(schema) and isinstance(schema, type)):
        raise TypeError("schema must be a dataclass type")
    return _decode(schema, data)
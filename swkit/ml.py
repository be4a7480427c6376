"""Client for the machine-learning classification service."""

from __future__ import annotations

import json
import urllib.error
import urllib.request
from dataclasses import dataclass, field
from typing import Any

STATIC_PE_ENDPOINT = "/api/static/pe"
STATIC_STRINGS_ENDPOINT = "/api/static/strings"
CLIENT_TIMEOUT = 15.0


def _require_mapping(data: Any) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise ValueError(f"expected a JSON object, got {type(data).__name__}")
    return data


def _get_str(data: dict[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"{key!r} must be a string, got {value!r}")
    return value


def _get_float(data: dict[str, Any], key: str) -> float:
    value = data.get(key)
    if value is None:
        return 0.0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{key!r} must be a number, got {value!r}")
    return float(value)


def _get_str_list(data: dict[str, Any], key: str) -> list[str]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValueError(f"{key!r} must be a list of strings, got {value!r}")
    return list(value)


@dataclass(frozen=True)
class ClassifierPrediction:
    """Result of the PE classifier."""

    predicted_class: str = ""
    probability: float = 0.0
    score: str = ""
    sha256: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> ClassifierPrediction:
        """Build a prediction from the service's JSON object."""
        data = _require_mapping(data)
        return cls(
            predicted_class=_get_str(data, "predicted_class"),
            probability=_get_float(data, "predicted_probability"),
            score=_get_str(data, "predicted_score"),
            sha256=_get_str(data, "sha256"),
        )


@dataclass
class StringsRanker:
    """Strings ordered by relevance by the ranking model."""

    strings: list[str] = field(default_factory=list)
    sha256: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> StringsRanker:
        """Build a ranking from the service's JSON object."""
        data = _require_mapping(data)
        return cls(strings=_get_str_list(data, "strings"), sha256=_get_str(data, "sha256"))


def _post(server: str, endpoint: str, buff: bytes) -> Any:
    request = urllib.request.Request(
        server + endpoint,
        data=bytes(buff),
        method="POST",
        headers={"Content-Type": "application/json; charset=utf-8"},
    )
    try:
        with urllib.request.urlopen(request, timeout=CLIENT_TIMEOUT) as response:
            body = response.read()
    except urllib.error.HTTPError as exc:
        try:
            body = exc.read()
        finally:
            exc.close()
    return json.loads(body)


def pe_class_prediction(server: str, buff: bytes) -> ClassifierPrediction:
    """Send PE features to the classifier and return its prediction."""
    return ClassifierPrediction.from_dict(_post(server, STATIC_PE_ENDPOINT, buff))


def rank_strings(server: str, buff: bytes) -> StringsRanker:
    """Send a list of strings to the ranker and return the ranked result."""
    return StringsRanker.from_dict(_post(server, STATIC_STRINGS_ENDPOINT, buff))
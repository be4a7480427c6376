"""Reusable hashing service returning hex digests."""

from __future__ import annotations

import hashlib
from collections.abc import Callable
from typing import Any


class Hasher:
    """Hashes byte strings with a fixed algorithm, returning hex digests."""

    def __init__(self, algorithm: str | Callable[[], Any] = "sha256") -> None:
        if isinstance(algorithm, str):
            hashlib.new(algorithm)
            name = algorithm
            self._factory: Callable[[], Any] = lambda: hashlib.new(name)
        else:
            self._factory = algorithm

    def hash(self, data: bytes) -> str:
        """Return the hex digest of ``data``, independent of earlier calls."""
        h = self._factory()
        h.update(data)
        return h.hexdigest()
"""File hashing: checksums, cryptographic digests and ssdeep fuzzy hashes."""

from __future__ import annotations

import hashlib
import json
import logging
import sys
import zlib
from dataclasses import dataclass

_log = logging.getLogger(__name__)

_ROLLING_WINDOW = 7
_BLOCK_MIN = 3
_SPAMSUM_LENGTH = 64
_MIN_FILE_SIZE = 4096
_HASH_PRIME = 0x01000193
_HASH_INIT = 0x28021967
_B64 = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/"
_MASK = 0xFFFFFFFF


class SSDeepError(Exception):
    """Raised when a fuzzy hash cannot be computed."""


class FileTooSmallError(SSDeepError):
    """Raised when the input is too small for a meaningful fuzzy hash."""

    def __init__(self) -> None:
        super().__init__(
            "did not process files large enough to produce meaningful results"
        )


class BlockSizeTooSmallError(SSDeepError):
    """Raised when no usable block size can be found for the input."""

    def __init__(self) -> None:
        super().__init__("unable to establish a sufficient block size")


@dataclass(frozen=True)
class HashResult:
    """All hashes computed for one buffer."""

    crc32: str
    md5: str
    sha1: str
    sha256: str
    sha512: str
    ssdeep: str

    def to_dict(self) -> dict[str, str]:
        """Return the hashes keyed by their conventional names."""
        return {
            "CRC32": self.crc32,
            "MD5": self.md5,
            "SHA1": self.sha1,
            "SHA256": self.sha256,
            "SHA512": self.sha512,
            "SSDeep": self.ssdeep,
        }


def get_crc32(data: bytes) -> str:
    """Return the IEEE CRC32 checksum as a 0x-prefixed hex string."""
    return f"0x{zlib.crc32(data) & _MASK:x}"


def get_md5(data: bytes) -> str:
    """Return the MD5 hex digest."""
    return hashlib.md5(data).hexdigest()


def get_sha1(data: bytes) -> str:
    """Return the SHA1 hex digest."""
    return hashlib.sha1(data).hexdigest()


def get_sha256(data: bytes) -> str:
    """Return the SHA256 hex digest."""
    return hashlib.sha256(data).hexdigest()


def get_sha512(data: bytes) -> str:
    """Return the SHA512 hex digest."""
    return hashlib.sha512(data).hexdigest()


class _RollingHash:
    __slots__ = ("window", "h1", "h2", "h3", "n")

    def __init__(self) -> None:
        self.window = bytearray(_ROLLING_WINDOW)
        self.h1 = 0
        self.h2 = 0
        self.h3 = 0
        self.n = 0

    def update(self, c: int) -> int:
        self.h2 = (self.h2 - self.h1 + _ROLLING_WINDOW * c) & _MASK
        self.h1 = (self.h1 + c - self.window[self.n]) & _MASK
        self.window[self.n] = c
        self.n = (self.n + 1) % _ROLLING_WINDOW
        self.h3 = ((self.h3 << 5) & _MASK) ^ c
        return (self.h1 + self.h2 + self.h3) & _MASK


def _digest_pass(data: bytes, block_size: int) -> tuple[list[str], list[str], int, int, int]:
    roll = _RollingHash()
    h1 = h2 = _HASH_INIT
    sig1: list[str] = []
    sig2: list[str] = []
    rh = 0
    double = block_size * 2
    for c in data:
        h1 = ((h1 * _HASH_PRIME) & _MASK) ^ c
        h2 = ((h2 * _HASH_PRIME) & _MASK) ^ c
        rh = roll.update(c)
        if rh % block_size == block_size - 1:
            if len(sig1) < _SPAMSUM_LENGTH - 1:
                sig1.append(_B64[h1 % 64])
                h1 = _HASH_INIT
            if rh % double == double - 1 and len(sig2) < _SPAMSUM_LENGTH // 2 - 1:
                sig2.append(_B64[h2 % 64])
                h2 = _HASH_INIT
    return sig1, sig2, h1, h2, rh


def get_ssdeep(data: bytes) -> str:
    """Return the ssdeep fuzzy hash of ``data``.

    Raises FileTooSmallError for inputs under 4096 bytes.
    """
    data = bytes(data)
    size = len(data)
    if size < _MIN_FILE_SIZE:
        raise FileTooSmallError()

    block_size = _BLOCK_MIN
    while block_size * _SPAMSUM_LENGTH < size:
        block_size *= 2

    while True:
        sig1, sig2, h1, h2, rh = _digest_pass(data, block_size)
        if block_size < _BLOCK_MIN:
            raise BlockSizeTooSmallError()
        if len(sig1) < _SPAMSUM_LENGTH // 2:
            block_size //= 2
            continue
        if rh != 0:
            sig1.append(_B64[h1 % 64])
            sig2.append(_B64[h2 % 64])
        return f"{block_size}:{''.join(sig1)}:{''.join(sig2)}"


def hash_bytes(data: bytes) -> HashResult:
    """Compute every supported hash of ``data``."""
    try:
        fuzzy = get_ssdeep(data)
    except FileTooSmallError:
        fuzzy = ""
    except SSDeepError as exc:
        _log.warning("get_ssdeep() failed, got %s", exc)
        fuzzy = ""
    return HashResult(
        crc32=get_crc32(data),
        md5=get_md5(data),
        sha1=get_sha1(data),
        sha256=get_sha256(data),
        sha512=get_sha512(data),
        ssdeep=fuzzy,
    )


def main(argv: list[str] | None = None) -> int:
    """Print the hashes of one file as indented JSON."""
    args = sys.argv[1:] if argv is None else list(argv)
    if len(args) != 1:
        print("Usage: crypto <filepath>")
        return 0
    try:
        with open(args[0], "rb") as fh:
            data = fh.read()
    except OSError as exc:
        print(exc, file=sys.stderr)
        return 1
    sys.stdout.write(json.dumps(hash_bytes(data).to_dict(), indent=2))
    sys.stdout.flush()
    return 0
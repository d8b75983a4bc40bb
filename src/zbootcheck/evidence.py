"""Artifact evidence - bounded identity hashes and capability scans.

Both operations read from the start of a file or raw device and stop at
a fixed limit, so pointing them at a multi-terabyte disk costs no more
than pointing them at the boot code itself. Handles are opened and
closed inside each call.
"""
from __future__ import annotations

import hashlib
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

LOGGER = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 4096
# gptzfsboot is usually < 200KB; 1MB leaves headroom for newer builds.
DEFAULT_SCAN_LIMIT = 1024 * 1024
DEFAULT_HASH_ALGORITHM = "md5"


@dataclass(frozen=True)
class HashResult:
    """Digest over a bounded prefix. ``digest`` is meaningless unless ``ok``."""
    path: str
    limit: int
    digest: str
    bytes_read: int
    ok: bool

    def matches(self, other: "HashResult") -> bool:
        return (
            self.ok
            and other.ok
            and self.limit == other.limit
            and self.digest == other.digest
        )


def _new_hash(algorithm: str):
    return hashlib.new(algorithm, usedforsecurity=False)


def open_error(path: str | Path) -> OSError | None:
    """The error opening ``path`` for reading raises, or None if it opens."""
    try:
        with open(path, "rb"):
            pass
    except OSError as e:
        return e
    return None


def artifact_size(path: str | Path) -> int:
    """Size reported by stat(). Raises OSError."""
    return os.stat(path).st_size


def partial_hash(
    path: str | Path,
    limit: int,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    algorithm: str = DEFAULT_HASH_ALGORITHM,
) -> HashResult:
    """Hash exactly ``limit`` bytes from the start of ``path``.

    Returns ``ok=False`` on open/read errors or when fewer than
    ``limit`` bytes are available.
    """
    hasher = _new_hash(algorithm)
    total = 0
    if limit <= 0:
        return HashResult(str(path), limit, hasher.hexdigest(), 0, False)

    try:
        with open(path, "rb") as f:
            while total < limit:
                data = f.read(min(chunk_size, limit - total))
                if not data:
                    break
                hasher.update(data)
                total += len(data)
    except OSError as e:
        LOGGER.debug("hash read of %s failed after %d bytes: %s", path, total, e)
        return HashResult(str(path), limit, hasher.hexdigest(), total, False)

    if total != limit:
        LOGGER.debug("short read on %s: %d of %d bytes", path, total, limit)
    return HashResult(str(path), limit, hasher.hexdigest(), total, total == limit)


def read_prefix(path: str | Path, limit: int, chunk_size: int = DEFAULT_CHUNK_SIZE) -> bytes:
    """Read at most ``limit`` bytes from the start of ``path``. Raises OSError."""
    if limit <= 0:
        return b""
    buf = bytearray()
    with open(path, "rb") as f:
        while len(buf) < limit:
            data = f.read(min(chunk_size, limit - len(buf)))
            if not data:
                break
            buf += data
    return bytes(buf)


def scan_tokens(
    path: str | Path,
    tokens: Iterable[bytes],
    scan_limit: int = DEFAULT_SCAN_LIMIT,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> dict[bytes, bool] | None:
    """Search one bounded window of ``path`` for several tokens.

    Returns None when nothing could be read (open failure or empty
    artifact), otherwise a token -> found mapping.
    """
    try:
        window = read_prefix(path, scan_limit, chunk_size)
    except OSError as e:
        LOGGER.debug("scan of %s failed: %s", path, e)
        return None
    if not window:
        LOGGER.debug("scan of %s read zero bytes", path)
        return None

    found: dict[bytes, bool] = {}
    for token in tokens:
        # find() on a window shorter than the token is simply -1
        found[token] = bool(token) and len(window) >= len(token) and window.find(token) != -1
    return found


def contains_token(
    path: str | Path,
    token: bytes,
    scan_limit: int = DEFAULT_SCAN_LIMIT,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> bool:
    """True iff ``token`` occurs within the first ``scan_limit`` bytes of ``path``."""
    if isinstance(token, str):
        token = token.encode("utf-8")
    if not token or scan_limit < len(token):
        return False
    found = scan_tokens(path, [token], scan_limit, chunk_size)
    return bool(found and found[token])

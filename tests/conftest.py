"""Pytest configuration and fixtures for zbootcheck tests."""
from __future__ import annotations

from pathlib import Path

import pytest

from zbootcheck.oracle import StaticOracle

ZSTD_GUID = b"org.freebsd:zstd_compress"
LZ4_GUID = b"org.illumos:lz4_compress"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep host configuration out of every test."""
    for name in (
        "ZBOOTCHECK_HOME",
        "ZBOOTCHECK_REFERENCE",
        "ZBOOTCHECK_SCAN_LIMIT",
        "ZBOOTCHECK_ZPOOL",
        "ZBOOTCHECK_BOOT_METHOD",
        "ZBOOTCHECK_HASH",
        "ZBOOTCHECK_PARALLEL",
    ):
        monkeypatch.delenv(name, raising=False)


def build_boot_code(*tokens: bytes, size: int = 8192) -> bytes:
    """Fake gptzfsboot image: filler with the given tokens embedded."""
    body = b"\x90" * 512
    for token in tokens:
        body += token + b"\x00" * 64
    if len(body) < size:
        body += b"\xcc" * (size - len(body))
    return body


@pytest.fixture
def write_file(tmp_path):
    """Write bytes to a file under tmp_path and return its path."""
    def _write(name: str, data: bytes) -> Path:
        path = tmp_path / name
        path.write_bytes(data)
        return path
    return _write


@pytest.fixture
def reference(write_file) -> Path:
    """Installed boot code that supports zstd and lz4."""
    return write_file("gptzfsboot", build_boot_code(ZSTD_GUID, LZ4_GUID))


@pytest.fixture
def make_disk(write_file, reference):
    """Disk image whose prefix is the given boot code, padded like a partition."""
    def _make(name: str, boot_code: bytes | None = None, padding: int = 4096) -> Path:
        code = reference.read_bytes() if boot_code is None else boot_code
        return write_file(name, code + b"\x00" * padding)
    return _make


@pytest.fixture
def zstd_oracle() -> StaticOracle:
    return StaticOracle({"tank": {"zstd_compress": "active", "lz4_compress": "disabled"}})


@pytest.fixture
def empty_oracle() -> StaticOracle:
    return StaticOracle({"tank": {}})

from __future__ import annotations

from pathlib import Path

from zbootcheck.evidence import (
    artifact_size,
    contains_token,
    partial_hash,
    read_prefix,
    scan_tokens,
)


def test_partial_hash_short_read_is_not_ok(write_file) -> None:
    path = write_file("small.bin", b"a" * 100)
    result = partial_hash(path, 101)
    assert result.ok is False
    assert result.bytes_read == 100


def test_partial_hash_exact_size_is_ok(write_file) -> None:
    path = write_file("exact.bin", b"abc" * 5000)
    result = partial_hash(path, artifact_size(path))
    assert result.ok is True
    assert result.bytes_read == 15000


def test_partial_hash_only_covers_prefix(write_file) -> None:
    a = write_file("a.bin", b"x" * 10000 + b"tail-a")
    b = write_file("b.bin", b"x" * 10000 + b"different tail")
    assert partial_hash(a, 10000).matches(partial_hash(b, 10000))


def test_partial_hash_detects_single_byte_difference(write_file) -> None:
    data = bytearray(b"\x00" * 9000)
    a = write_file("a.bin", bytes(data))
    data[8191] = 1
    b = write_file("b.bin", bytes(data))
    assert not partial_hash(a, 9000).matches(partial_hash(b, 9000))


def test_partial_hash_chunk_size_does_not_change_digest(write_file) -> None:
    path = write_file("c.bin", bytes(range(256)) * 40)
    assert partial_hash(path, 10240, chunk_size=7).digest == partial_hash(path, 10240).digest


def test_matches_requires_same_limit(write_file) -> None:
    path = write_file("d.bin", b"z" * 200)
    assert not partial_hash(path, 100).matches(partial_hash(path, 200))


def test_partial_hash_missing_file(tmp_path: Path) -> None:
    result = partial_hash(tmp_path / "nope", 10)
    assert result.ok is False
    assert result.bytes_read == 0


def test_partial_hash_zero_limit_is_not_ok(write_file) -> None:
    assert partial_hash(write_file("e.bin", b"abc"), 0).ok is False


def test_partial_hash_sha256(write_file) -> None:
    path = write_file("f.bin", b"hello")
    assert partial_hash(path, 5, algorithm="sha256").digest == (
        "2cf24dba5fb0a30e26e83b2ac5b9e29e1b161e5c1fa7425e73043362938b9824"
    )


def test_read_prefix_is_capped(write_file) -> None:
    path = write_file("big.bin", b"q" * 50000)
    assert len(read_prefix(path, 1000)) == 1000
    assert len(read_prefix(path, 10**9)) == 50000
    assert read_prefix(path, 0) == b""


def test_contains_token_found_and_absent(write_file) -> None:
    path = write_file("boot.bin", b"\x00" * 3000 + b"org.freebsd:zstd_compress" + b"\x00" * 10)
    assert contains_token(path, b"zstd_compress", 1024 * 1024) is True
    assert contains_token(path, b"blake3", 1024 * 1024) is False


def test_contains_token_accepts_str(write_file) -> None:
    path = write_file("boot.bin", b"..large_blocks..")
    assert contains_token(path, "large_blocks") is True


def test_contains_token_respects_scan_limit(write_file) -> None:
    path = write_file("late.bin", b"\x00" * 5000 + b"zstd_compress")
    assert contains_token(path, b"zstd_compress", 5000) is False
    assert contains_token(path, b"zstd_compress", 5013) is True


def test_contains_token_at_end_of_window(write_file) -> None:
    path = write_file("end.bin", b"zstd_compress")
    assert contains_token(path, b"zstd_compress", 13) is True


def test_contains_token_across_chunk_boundary(write_file) -> None:
    path = write_file("split.bin", b"ab" + b"zstd_compress" + b"cd")
    assert contains_token(path, b"zstd_compress", 100, chunk_size=4) is True


def test_contains_token_limit_smaller_than_token(write_file) -> None:
    path = write_file("tiny.bin", b"zstd_compress")
    assert contains_token(path, b"zstd_compress", 4) is False


def test_contains_token_file_shorter_than_token(write_file) -> None:
    path = write_file("short.bin", b"zstd")
    assert contains_token(path, b"zstd_compress") is False


def test_contains_token_unreadable_is_false(tmp_path: Path, write_file) -> None:
    assert contains_token(tmp_path / "missing", b"zstd_compress") is False
    assert contains_token(write_file("empty.bin", b""), b"zstd_compress") is False


def test_scan_tokens_reports_each_token(write_file) -> None:
    path = write_file("multi.bin", b"--lz4_compress--skein--")
    found = scan_tokens(path, [b"lz4_compress", b"skein", b"edonr"])
    assert found == {b"lz4_compress": True, b"skein": True, b"edonr": False}


def test_scan_tokens_none_when_unreadable(tmp_path: Path, write_file) -> None:
    assert scan_tokens(tmp_path / "missing", [b"x"]) is None
    assert scan_tokens(write_file("empty.bin", b""), [b"x"]) is None

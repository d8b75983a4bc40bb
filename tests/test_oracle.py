from __future__ import annotations

import subprocess

import pytest

from zbootcheck.oracle import StaticOracle, ZpoolOracle, parse_feature_state


@pytest.mark.parametrize(
    "text,expected",
    [
        ("active", True),
        ("enabled", True),
        ("active\n", True),
        ("enabled  \n", True),
        ("disabled\n", False),
        ("", False),
        (None, False),
        ("-\n", False),
        ("Active", False),
        ("inactive", False),
        ("\nactive\n", False),
    ],
)
def test_parse_feature_state(text, expected) -> None:
    assert parse_feature_state(text) is expected


class FakeRunner:
    def __init__(self, stdout: str = "", returncode: int = 0, exc: Exception | None = None):
        self.stdout = stdout
        self.returncode = returncode
        self.exc = exc
        self.calls: list[list[str]] = []

    def __call__(self, cmd, timeout=None):
        self.calls.append(cmd)
        if self.exc is not None:
            raise self.exc
        return subprocess.CompletedProcess(cmd, self.returncode, stdout=self.stdout, stderr="")


def test_zpool_oracle_builds_argv() -> None:
    runner = FakeRunner("active\n")
    oracle = ZpoolOracle(runner=runner)
    assert oracle.is_feature_enabled("zroot", "zstd_compress") is True
    assert runner.calls == [
        ["zpool", "get", "-H", "-o", "value", "feature@zstd_compress", "zroot"]
    ]


def test_zpool_oracle_custom_command() -> None:
    runner = FakeRunner("enabled\n")
    oracle = ZpoolOracle(zpool_command="/sbin/zpool", runner=runner)
    oracle.is_feature_enabled("tank", "large_blocks")
    assert runner.calls[0][0] == "/sbin/zpool"


def test_zpool_oracle_memoizes_per_pool_and_feature() -> None:
    runner = FakeRunner("active\n")
    oracle = ZpoolOracle(runner=runner)
    oracle.is_feature_enabled("zroot", "zstd_compress")
    oracle.is_feature_enabled("zroot", "zstd_compress")
    oracle.is_feature_enabled("tank", "zstd_compress")
    assert len(runner.calls) == 2


def test_zpool_oracle_nonzero_exit_is_not_enabled() -> None:
    runner = FakeRunner("active\n", returncode=1)
    assert ZpoolOracle(runner=runner).is_feature_enabled("nopool", "zstd_compress") is False


@pytest.mark.parametrize(
    "exc",
    [FileNotFoundError("zpool"), subprocess.TimeoutExpired(["zpool"], 30)],
)
def test_zpool_oracle_command_failure_is_not_enabled(exc) -> None:
    assert ZpoolOracle(runner=FakeRunner(exc=exc)).is_feature_enabled("zroot", "zstd_compress") is False


def test_static_oracle_per_pool() -> None:
    oracle = StaticOracle({"zroot": {"zstd_compress": "active", "skein": True, "sha512": "disabled"}})
    assert oracle.is_feature_enabled("zroot", "zstd_compress") is True
    assert oracle.is_feature_enabled("zroot", "skein") is True
    assert oracle.is_feature_enabled("zroot", "sha512") is False
    assert oracle.is_feature_enabled("other", "zstd_compress") is False
    assert oracle.queries[0] == ("zroot", "zstd_compress")


def test_static_oracle_flat_set() -> None:
    oracle = StaticOracle({"zstd_compress"})
    assert oracle.is_feature_enabled("anything", "zstd_compress") is True
    assert oracle.is_feature_enabled("anything", "blake3") is False

"""Pool feature oracle - which optional features does the pool use?

The authority is ``zpool get``. Its answer is reduced to a boolean:
``active`` and ``enabled`` mean the boot code must understand the
feature, anything else (``disabled``, no output, an error, an unknown
pool) means it need not.
"""
from __future__ import annotations

import logging
import subprocess
from abc import ABC, abstractmethod
from typing import Callable, Iterable, Mapping

from .utils import run_subprocess

LOGGER = logging.getLogger(__name__)

ENABLING_STATES = frozenset({"active", "enabled"})


def parse_feature_state(text: str | None) -> bool:
    """Interpret ``zpool get -H -o value`` output."""
    lines = (text or "").splitlines()
    if not lines:
        return False
    return lines[0].strip() in ENABLING_STATES


class PoolFeatureOracle(ABC):
    """Answers whether a named feature is enabled on a named pool."""

    @abstractmethod
    def is_feature_enabled(self, pool: str, feature: str) -> bool:
        ...


class ZpoolOracle(PoolFeatureOracle):
    """Queries the zpool command line tool, one call per (pool, feature)."""

    def __init__(
        self,
        zpool_command: str = "zpool",
        timeout: float = 30.0,
        runner: Callable[..., "subprocess.CompletedProcess[str]"] = run_subprocess,
    ):
        self.zpool_command = zpool_command
        self.timeout = timeout
        self._runner = runner
        self._cache: dict[tuple[str, str], bool] = {}

    def command_for(self, pool: str, feature: str) -> list[str]:
        return [self.zpool_command, "get", "-H", "-o", "value", f"feature@{feature}", pool]

    def is_feature_enabled(self, pool: str, feature: str) -> bool:
        key = (pool, feature)
        if key not in self._cache:
            self._cache[key] = self._query(pool, feature)
        return self._cache[key]

    def _query(self, pool: str, feature: str) -> bool:
        cmd = self.command_for(pool, feature)
        try:
            result = self._runner(cmd, timeout=self.timeout)
        except (OSError, subprocess.SubprocessError) as e:
            LOGGER.debug("%s failed: %s", " ".join(cmd), e)
            return False
        if result.returncode != 0:
            LOGGER.debug("%s exited %d: %s", " ".join(cmd), result.returncode,
                          (result.stderr or "").strip())
            return False
        enabled = parse_feature_state(result.stdout)
        LOGGER.debug("pool %s feature@%s -> %r (%s)", pool, feature,
                     (result.stdout or "").strip(), enabled)
        return enabled


class StaticOracle(PoolFeatureOracle):
    """Oracle backed by known answers instead of a live pool.

    ``states`` is either ``{pool: {feature: state}}`` where state is a
    bool or a zpool status token, or an iterable of feature names that
    are enabled on every pool.
    """

    def __init__(self, states: Mapping[str, Mapping[str, bool | str]] | Iterable[str]):
        self._per_pool: dict[str, dict[str, bool]] | None = None
        self._everywhere: frozenset[str] = frozenset()
        if isinstance(states, Mapping):
            self._per_pool = {
                pool: {name: _coerce_state(value) for name, value in features.items()}
                for pool, features in states.items()
            }
        else:
            self._everywhere = frozenset(states)
        self.queries: list[tuple[str, str]] = []

    def is_feature_enabled(self, pool: str, feature: str) -> bool:
        self.queries.append((pool, feature))
        if self._per_pool is None:
            return feature in self._everywhere
        return self._per_pool.get(pool, {}).get(feature, False)


def _coerce_state(value: bool | str) -> bool:
    if isinstance(value, str):
        return parse_feature_state(value)
    return bool(value)

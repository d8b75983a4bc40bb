"""Verifier - cross-reference pool feature state against boot code on disk.

Runs:  gate → pool state → reference → per-disk identity + capability → tier

The verifier never raises for a single disk: unreadable devices,
identity mismatches and missing capability tokens all become
DiskOutcome entries and feed the severity tier. Only a missing or
unreadable reference artifact aborts the run (PreconditionError).
"""
from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Iterable, Optional, Sequence

from .catalog import FeatureCatalog, PoolFeatureState
from .config import Settings
from .contracts import ExitCode, FailureKind, Severity, classify_severity
from .errors import PreconditionError
from .evidence import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_HASH_ALGORITHM,
    DEFAULT_SCAN_LIMIT,
    HashResult,
    artifact_size,
    open_error,
    partial_hash,
    scan_tokens,
)
from .gate import is_bios, read_boot_method, resolve_boot_method
from .oracle import PoolFeatureOracle, ZpoolOracle

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class FeatureCheck:
    """Capability evidence for one needed feature on one artifact."""
    name: str
    token: bytes
    present: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "token": self.token.decode("utf-8", errors="replace"),
            "present": self.present,
        }


@dataclass
class DiskOutcome:
    """Result of checking one candidate disk.

    ``failures`` lists every failure kind observed, identity first;
    ``failure`` is the primary one.
    """
    path: str
    failures: list[FailureKind] = field(default_factory=list)
    checks: list[FeatureCheck] = field(default_factory=list)
    details: list[str] = field(default_factory=list)
    duration_ms: float = 0.0

    @property
    def passed(self) -> bool:
        return not self.failures

    @property
    def failure(self) -> FailureKind | None:
        return self.failures[0] if self.failures else None

    @property
    def missing_features(self) -> list[str]:
        return [c.name for c in self.checks if not c.present]

    @property
    def detail(self) -> str:
        return "; ".join(self.details)

    def fail(self, kind: FailureKind, detail: str) -> None:
        self.failures.append(kind)
        self.details.append(detail)

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "passed": self.passed,
            "failure": self.failure.value if self.failure else None,
            "failures": [f.value for f in self.failures],
            "missing_features": self.missing_features,
            "checks": [c.to_dict() for c in self.checks],
            "detail": self.detail,
            "remediation": [f.remediation for f in self.failures],
            "duration_ms": round(self.duration_ms, 3),
        }


@dataclass
class ReferenceInfo:
    """The installed boot code every disk is compared against."""
    path: str
    size: int
    digest: HashResult
    # needed feature -> token present in the reference itself
    capabilities: dict[str, bool] = field(default_factory=dict)

    def lacking(self) -> list[str]:
        return [name for name, present in self.capabilities.items() if not present]

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "size": self.size,
            "digest": self.digest.digest,
            "capabilities": dict(self.capabilities),
        }


@dataclass
class RunResult:
    """Aggregate outcome of one invocation."""
    pool: str
    applicable: bool = True
    boot_method: str | None = None
    pool_state: PoolFeatureState | None = None
    reference: ReferenceInfo | None = None
    outcomes: list[DiskOutcome] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.outcomes)

    @property
    def failed_count(self) -> int:
        return sum(1 for o in self.outcomes if not o.passed)

    @property
    def passed_count(self) -> int:
        return self.total - self.failed_count

    @property
    def severity(self) -> Severity:
        return classify_severity(self.total, self.failed_count)

    @property
    def exit_code(self) -> ExitCode:
        return self.severity.exit_code

    def to_dict(self) -> dict[str, Any]:
        return {
            "pool": self.pool,
            "applicable": self.applicable,
            "boot_method": self.boot_method,
            "severity": self.severity.value,
            "exit_code": self.exit_code.value,
            "total": self.total,
            "passed": self.passed_count,
            "failed": self.failed_count,
            "pool_features": self.pool_state.to_dict() if self.pool_state else {},
            "reference": self.reference.to_dict() if self.reference else None,
            "disks": [o.to_dict() for o in self.outcomes],
        }


class Verifier:
    """Classifies candidate disks against one pool's feature requirements."""

    def __init__(
        self,
        oracle: PoolFeatureOracle,
        catalog: FeatureCatalog,
        scan_limit: int = DEFAULT_SCAN_LIMIT,
        reference_path: str | Path | None = None,
        identity_check: bool = True,
        hash_algorithm: str = DEFAULT_HASH_ALGORITHM,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        parallel: bool = False,
    ):
        self.oracle = oracle
        self.catalog = catalog
        self.scan_limit = scan_limit
        self.reference_path = str(reference_path) if reference_path else None
        self.identity_check = identity_check and self.reference_path is not None
        self.hash_algorithm = hash_algorithm
        self.chunk_size = chunk_size
        self.parallel = parallel

    @classmethod
    def from_settings(cls, settings: Settings, oracle: PoolFeatureOracle,
                      catalog: FeatureCatalog | None = None) -> "Verifier":
        return cls(
            oracle=oracle,
            catalog=catalog if catalog is not None else settings.catalog(),
            scan_limit=settings.scan_limit,
            reference_path=settings.reference_path,
            identity_check=settings.identity_check,
            hash_algorithm=settings.hash_algorithm,
            chunk_size=settings.chunk_size,
            parallel=settings.parallel,
        )

    def collect_pool_state(self, pool: str) -> PoolFeatureState:
        """Query the oracle once per catalog feature."""
        states = {name: self.oracle.is_feature_enabled(pool, name) for name in self.catalog.names()}
        state = PoolFeatureState.from_mapping(pool, self.catalog, states)
        LOGGER.info("pool %s needs: %s", pool, ", ".join(state.needed()) or "(none)")
        return state

    def load_reference(self) -> ReferenceInfo:
        """Stat and hash the reference boot code. Raises PreconditionError."""
        path = self.reference_path
        if path is None:
            raise PreconditionError("<unset>", "no reference boot code configured")
        try:
            size = artifact_size(path)
        except OSError as e:
            raise PreconditionError(path, f"reference boot code missing ({e.strerror or e})") from e
        if size <= 0:
            raise PreconditionError(path, "reference boot code is empty")

        digest = partial_hash(path, size, self.chunk_size, self.hash_algorithm)
        if not digest.ok:
            raise PreconditionError(path, _read_failure_reason(path, digest))
        LOGGER.info("reference %s: %d bytes, %s %s", path, size, self.hash_algorithm, digest.digest)
        return ReferenceInfo(path=path, size=size, digest=digest)

    def reference_capabilities(self, reference: ReferenceInfo, pool_state: PoolFeatureState) -> dict[str, bool]:
        """Which needed features the installed boot code itself supports."""
        needed = pool_state.needed()
        if not needed:
            return {}
        tokens = [self.catalog.get(name).token for name in needed]
        found = scan_tokens(reference.path, tokens, self.scan_limit, self.chunk_size)
        if found is None:
            raise PreconditionError(reference.path, "reference boot code could not be scanned")
        return {name: found[self.catalog.get(name).token] for name in needed}

    def check_disk(self, path: str, pool_state: PoolFeatureState,
                   reference: ReferenceInfo | None = None) -> DiskOutcome:
        """Identity (optional) then capability evidence for one disk."""
        t0 = time.perf_counter()
        outcome = self._check_disk(str(path), pool_state, reference)
        outcome.duration_ms = (time.perf_counter() - t0) * 1000
        if outcome.passed:
            LOGGER.info("disk %s passed", outcome.path)
        else:
            LOGGER.info("disk %s failed (%s): %s", outcome.path,
                        ", ".join(f.value for f in outcome.failures), outcome.detail)
        return outcome

    def _check_disk(self, path: str, pool_state: PoolFeatureState,
                    reference: ReferenceInfo | None) -> DiskOutcome:
        outcome = DiskOutcome(path=path)

        if reference is not None:
            candidate = partial_hash(path, reference.size, self.chunk_size, self.hash_algorithm)
            if not candidate.ok:
                outcome.fail(
                    FailureKind.READ_ERROR,
                    f"read {candidate.bytes_read} of {reference.size} bytes for identity check",
                )
                return outcome
            if not reference.digest.matches(candidate):
                outcome.fail(FailureKind.IDENTITY_MISMATCH,
                             f"boot code is not identical to {reference.path}")

        needed = pool_state.needed()
        if not needed:
            return outcome

        descriptors = [self.catalog.get(name) for name in needed]
        found = scan_tokens(path, [d.token for d in descriptors], self.scan_limit, self.chunk_size)
        if found is None:
            outcome.fail(FailureKind.READ_ERROR, "could not read boot code for capability scan")
            return outcome

        outcome.checks = [FeatureCheck(d.name, d.token, found[d.token]) for d in descriptors]
        missing = outcome.missing_features
        if missing:
            outcome.fail(
                FailureKind.CAPABILITY_MISSING,
                f"pool {pool_state.pool} needs {', '.join(missing)}; boot code lacks support",
            )
        return outcome

    def verify(self, pool: str, disks: Sequence[str | Path]) -> RunResult:
        """Check every disk and aggregate into one tiered result."""
        if not disks:
            raise ValueError("at least one disk is required")

        reference = self.load_reference() if self.identity_check else None
        pool_state = self.collect_pool_state(pool)
        if reference is not None:
            reference.capabilities = self.reference_capabilities(reference, pool_state)
            for name in reference.lacking():
                LOGGER.warning("reference %s itself lacks %s", reference.path, name)

        paths = [str(d) for d in disks]
        if self.parallel and len(paths) > 1:
            outcomes = self._check_parallel(paths, pool_state, reference)
        else:
            outcomes = [self.check_disk(p, pool_state, reference) for p in paths]

        return RunResult(pool=pool, pool_state=pool_state, reference=reference, outcomes=outcomes)

    def _check_parallel(self, paths: list[str], pool_state: PoolFeatureState,
                        reference: ReferenceInfo | None) -> list[DiskOutcome]:
        results: dict[int, DiskOutcome] = {}
        with ThreadPoolExecutor(max_workers=len(paths)) as executor:
            futures = {
                executor.submit(self.check_disk, path, pool_state, reference): idx
                for idx, path in enumerate(paths)
            }
            for future in as_completed(futures):
                results[futures[future]] = future.result()
        # Input order, regardless of completion order
        return [results[idx] for idx in range(len(paths))]


def _read_failure_reason(path: str, digest: HashResult) -> str:
    error = open_error(path)
    if error is not None:
        return f"reference boot code unreadable ({error.strerror or error})"
    return f"short read on reference boot code ({digest.bytes_read} of {digest.limit} bytes)"


def run_check(
    pool: str,
    disks: Sequence[str | Path],
    settings: Settings,
    oracle: Optional[PoolFeatureOracle] = None,
    features: Iterable[str] | None = None,
    force: bool = False,
    probe: Callable[[], str | None] = read_boot_method,
) -> RunResult:
    """Gate, then verify. Returns a not-applicable result when gated off."""
    boot_method = resolve_boot_method(settings.boot_method, probe)
    if not force and not is_bios(boot_method):
        LOGGER.info("boot method %r is not BIOS; skipping checks", boot_method)
        return RunResult(pool=pool, applicable=False, boot_method=boot_method)

    if oracle is None:
        oracle = ZpoolOracle(settings.zpool_command, settings.zpool_timeout)
    catalog = settings.catalog()
    if features:
        catalog = catalog.subset(features)

    result = Verifier.from_settings(settings, oracle, catalog).verify(pool, disks)
    result.boot_method = boot_method
    return result

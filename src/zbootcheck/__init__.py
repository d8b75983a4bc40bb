"""zbootcheck - boot-compatibility verification for ZFS pools.

Checks that the legacy BIOS boot code written to each boot disk can
read every optional on-disk feature the pool has enabled, before a pool
upgrade leaves the machine unbootable.

Public API:
    from zbootcheck import Verifier, ZpoolOracle, DEFAULT_CATALOG

    verifier = Verifier(ZpoolOracle(), DEFAULT_CATALOG, reference_path="/boot/gptzfsboot")
    result = verifier.verify("zroot", ["/dev/ada0p1"])
"""
from __future__ import annotations

__version__ = "0.1.0"

from zbootcheck.catalog import DEFAULT_CATALOG, FeatureCatalog, FeatureDescriptor, PoolFeatureState
from zbootcheck.config import Settings, load_settings
from zbootcheck.contracts import ExitCode, FailureKind, Severity, classify_severity
from zbootcheck.errors import BootCheckError, ConfigError, PreconditionError
from zbootcheck.evidence import HashResult, contains_token, partial_hash, scan_tokens
from zbootcheck.gate import applies, read_boot_method
from zbootcheck.oracle import PoolFeatureOracle, StaticOracle, ZpoolOracle, parse_feature_state
from zbootcheck.verifier import DiskOutcome, FeatureCheck, ReferenceInfo, RunResult, Verifier, run_check


__all__ = [
    "__version__",
    # Catalog
    "DEFAULT_CATALOG",
    "FeatureCatalog",
    "FeatureDescriptor",
    "PoolFeatureState",
    # Config
    "Settings",
    "load_settings",
    # Contracts and errors
    "ExitCode",
    "FailureKind",
    "Severity",
    "classify_severity",
    "BootCheckError",
    "ConfigError",
    "PreconditionError",
    # Evidence
    "HashResult",
    "contains_token",
    "partial_hash",
    "scan_tokens",
    # Gate and oracle
    "applies",
    "read_boot_method",
    "PoolFeatureOracle",
    "StaticOracle",
    "ZpoolOracle",
    "parse_feature_state",
    # Verifier
    "DiskOutcome",
    "FeatureCheck",
    "ReferenceInfo",
    "RunResult",
    "Verifier",
    "run_check",
]

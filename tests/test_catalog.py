from __future__ import annotations

import pytest

from zbootcheck.catalog import (
    DEFAULT_CATALOG,
    FeatureCatalog,
    FeatureDescriptor,
    PoolFeatureState,
)
from zbootcheck.errors import ConfigError


def test_token_defaults_to_name() -> None:
    assert FeatureDescriptor("zstd_compress").token == b"zstd_compress"
    assert FeatureDescriptor("x", "org.example:x").token == b"org.example:x"


def test_empty_name_rejected() -> None:
    with pytest.raises(ValueError):
        FeatureDescriptor("")


@pytest.mark.parametrize("token", [b"", ""])
def test_explicit_empty_token_rejected(token) -> None:
    with pytest.raises(ValueError, match="scan token"):
        FeatureDescriptor("x", token)


def test_duplicate_names_rejected() -> None:
    with pytest.raises(ValueError):
        FeatureCatalog([FeatureDescriptor("a"), FeatureDescriptor("a")])


def test_default_catalog_contents() -> None:
    names = DEFAULT_CATALOG.names()
    assert names[0] == "zstd_compress"
    assert "large_blocks" in DEFAULT_CATALOG
    assert len(set(names)) == len(names)


def test_with_overrides_returns_new_catalog() -> None:
    updated = DEFAULT_CATALOG.with_overrides({"zstd_compress": "org.freebsd:zstd_compress", "vdev_zaps_v2": "zaps"})
    assert updated.get("zstd_compress").token == b"org.freebsd:zstd_compress"
    assert updated.names()[-1] == "vdev_zaps_v2"
    assert DEFAULT_CATALOG.get("zstd_compress").token == b"zstd_compress"
    assert "vdev_zaps_v2" not in DEFAULT_CATALOG


def test_subset_keeps_catalog_order() -> None:
    sub = DEFAULT_CATALOG.subset(["skein", "zstd_compress"])
    assert sub.names() == ("zstd_compress", "skein")
    with pytest.raises(ConfigError, match="not_a_feature"):
        DEFAULT_CATALOG.subset(["not_a_feature"])


def test_pool_feature_state_needed_in_catalog_order() -> None:
    catalog = DEFAULT_CATALOG.subset(["zstd_compress", "lz4_compress", "skein"])
    state = PoolFeatureState.from_mapping("zroot", catalog, {"skein": True, "zstd_compress": True})
    assert state.needed() == ["zstd_compress", "skein"]
    assert state.is_needed("lz4_compress") is False
    assert state.to_dict() == {"zstd_compress": True, "lz4_compress": False, "skein": True}

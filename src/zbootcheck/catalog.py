"""Feature catalog - which pool features matter to legacy boot code.

A feature is identified by the name the pool reports it under
(``zpool get feature@<name>``) and by the byte token expected inside
boot code that can read it. The two usually coincide, because the boot
code embeds the feature GUID (``org.freebsd:zstd_compress``) and the
short name is a substring of it, but the token is kept as a separate
field so a feature whose signature differs can be described without
touching the verifier.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, Mapping

from .errors import ConfigError


@dataclass(frozen=True)
class FeatureDescriptor:
    """One optional on-disk feature and its boot-code signature."""
    name: str
    token: bytes | None = None

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("feature name must be non-empty")
        if self.token is None:
            object.__setattr__(self, "token", self.name.encode("utf-8"))
        elif isinstance(self.token, str):
            object.__setattr__(self, "token", self.token.encode("utf-8"))
        if not self.token:
            raise ValueError(f"feature {self.name!r}: scan token must be non-empty")

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "token": self.token.decode("utf-8", errors="replace")}


class FeatureCatalog:
    """Immutable, ordered set of feature descriptors."""

    __slots__ = ("_features", "_by_name")

    def __init__(self, features: Iterable[FeatureDescriptor]):
        items = tuple(features)
        by_name: dict[str, FeatureDescriptor] = {}
        for feature in items:
            if feature.name in by_name:
                raise ValueError(f"duplicate feature in catalog: {feature.name}")
            by_name[feature.name] = feature
        self._features = items
        self._by_name = by_name

    def __iter__(self) -> Iterator[FeatureDescriptor]:
        return iter(self._features)

    def __len__(self) -> int:
        return len(self._features)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __repr__(self) -> str:
        return f"FeatureCatalog({list(self.names())!r})"

    def names(self) -> tuple[str, ...]:
        return tuple(f.name for f in self._features)

    def get(self, name: str) -> FeatureDescriptor:
        return self._by_name[name]

    def with_overrides(self, tokens: Mapping[str, str | bytes]) -> "FeatureCatalog":
        """Return a new catalog with tokens replaced; unknown names are appended."""
        updated = [
            FeatureDescriptor(f.name, tokens[f.name]) if f.name in tokens else f
            for f in self._features
        ]
        for name, token in tokens.items():
            if name not in self._by_name:
                updated.append(FeatureDescriptor(name, token))
        return FeatureCatalog(updated)

    def subset(self, names: Iterable[str]) -> "FeatureCatalog":
        """Restrict to the named features, keeping catalog order."""
        wanted = set(names)
        unknown = wanted - set(self._by_name)
        if unknown:
            raise ConfigError(f"unknown feature(s): {', '.join(sorted(unknown))}")
        return FeatureCatalog(f for f in self._features if f.name in wanted)


# Read-path features that gptzfsboot has to understand to load the kernel.
DEFAULT_CATALOG = FeatureCatalog(
    FeatureDescriptor(name)
    for name in (
        "zstd_compress",
        "lz4_compress",
        "large_blocks",
        "large_dnode",
        "sha512",
        "skein",
        "edonr",
        "blake3",
        "embedded_data",
        "hole_birth",
    )
)


@dataclass(frozen=True)
class PoolFeatureState:
    """Per-run record of which catalog features the pool needs."""
    pool: str
    flags: tuple[tuple[str, bool], ...]

    @classmethod
    def from_mapping(cls, pool: str, catalog: FeatureCatalog,
                     states: Mapping[str, bool]) -> "PoolFeatureState":
        return cls(pool=pool, flags=tuple((name, bool(states.get(name, False)))
                                          for name in catalog.names()))

    def is_needed(self, name: str) -> bool:
        return dict(self.flags).get(name, False)

    def needed(self) -> list[str]:
        return [name for name, flag in self.flags if flag]

    def to_dict(self) -> dict[str, bool]:
        return dict(self.flags)

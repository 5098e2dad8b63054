# Copyright (c) Syntropy Systems
"""Ordered registry of garbage-collector configurations."""
from __future__ import annotations

from collections.abc import Iterator, Sequence
from typing import TYPE_CHECKING, cast

from typing_extensions import override

from gcbench.models.results import GCConfiguration

if TYPE_CHECKING:
    from gcbench.config import BenchConfig

# General-purpose first, then progressively lower-latency or experimental
DEFAULT_GC_CONFIGS: tuple[GCConfiguration, ...] = (
    GCConfiguration(
        name="Generational GC",
        flags=("-X", "gcbench.gc=generational"),
    ),
    GCConfiguration(
        name="Tuned GC",
        flags=("-X", "gcbench.gc=generational", "-X", "gcbench.threshold=50000,50,100"),
    ),
    GCConfiguration(
        name="Frozen Heap GC",
        flags=("-X", "gcbench.gc=generational", "-X", "gcbench.freeze=1"),
    ),
    GCConfiguration(
        name="GC Disabled",
        flags=("-X", "gcbench.gc=off"),
    ),
    GCConfiguration(
        name="Free-threaded GC",
        flags=("-X", "gil=0"),
    ),
    GCConfiguration(
        name="Debug Allocator",
        flags=("-X", "dev"),
    ),
)


class GCRegistry(Sequence[GCConfiguration]):
    """Read-only, ordered sequence of collector configurations."""

    _configs: tuple[GCConfiguration, ...]
    _baselines: tuple[str, str] | None

    def __init__(
        self,
        configs: Sequence[GCConfiguration] = DEFAULT_GC_CONFIGS,
        baselines: tuple[str, str] | None = None,
    ) -> None:
        seen: set[str] = set()
        for config in configs:
            if config.name in seen:
                msg = f"Duplicate GC configuration name: {config.name}"
                raise ValueError(msg)
            seen.add(config.name)

        if baselines is not None:
            missing = [name for name in baselines if name not in seen]
            if missing:
                msg = f"Unknown baseline configuration(s): {', '.join(missing)}"
                raise ValueError(msg)

        self._configs = tuple(configs)
        self._baselines = baselines

    @classmethod
    def from_config(cls, config: BenchConfig) -> GCRegistry:
        """Build the registry, honouring gc_configs and baselines overrides."""
        if config.gc_configs is None:
            return cls(DEFAULT_GC_CONFIGS, baselines=config.baselines)

        configs: list[GCConfiguration] = []
        for entry in config.gc_configs:
            flags = entry.get("flags", [])
            if isinstance(flags, str):
                flags = flags.split()
            configs.append(
                GCConfiguration(
                    name=str(entry.get("name", "")),
                    flags=tuple(str(f) for f in cast("list[object]", flags)),
                )
            )
        return cls(configs, baselines=config.baselines)

    @override
    def __getitem__(self, index):  # type: ignore[override]
        return self._configs[index]

    @override
    def __len__(self) -> int:
        return len(self._configs)

    @override
    def __iter__(self) -> Iterator[GCConfiguration]:
        return iter(self._configs)

    def names(self) -> list[str]:
        return [c.name for c in self._configs]

    def get(self, name: str) -> GCConfiguration | None:
        for config in self._configs:
            if config.name == name:
                return config
        return None

    def baselines(self) -> tuple[str, str] | None:
        """The two configurations compared head-to-head.

        Defaults to the first two entries; None when fewer than two exist.
        """
        if self._baselines is not None:
            return self._baselines
        if len(self._configs) < 2:
            return None
        return (self._configs[0].name, self._configs[1].name)

"""Tests for the GC configuration registry."""

import pytest

from gcbench.config import BenchConfig
from gcbench.models import GCConfiguration
from gcbench.registry import DEFAULT_GC_CONFIGS, GCRegistry


class TestDefaultRegistry:
    """Tests for the built-in configuration list."""

    def test_order(self):
        """Test that the general-purpose collector comes first."""
        registry = GCRegistry()

        assert registry.names() == [
            "Generational GC",
            "Tuned GC",
            "Frozen Heap GC",
            "GC Disabled",
            "Free-threaded GC",
            "Debug Allocator",
        ]

    def test_default_baselines_are_first_two(self):
        """Test that the first two configurations are the baselines."""
        assert GCRegistry().baselines() == ("Generational GC", "Tuned GC")

    def test_sequence_protocol(self):
        """Test that the registry indexes and iterates like a sequence."""
        registry = GCRegistry()

        assert len(registry) == len(DEFAULT_GC_CONFIGS)
        assert registry[0].name == "Generational GC"
        assert registry[-1].name == "Debug Allocator"
        assert list(registry) == list(DEFAULT_GC_CONFIGS)

    def test_get(self):
        """Test lookup by name."""
        registry = GCRegistry()

        disabled = registry.get("GC Disabled")
        assert disabled is not None
        assert disabled.flags == ("-X", "gcbench.gc=off")
        assert registry.get("ZGC") is None

    def test_safe_names_unique(self):
        """Test that per-configuration log files never collide."""
        safe_names = [c.safe_name for c in GCRegistry()]

        assert len(set(safe_names)) == len(safe_names)


class TestCustomRegistry:
    """Tests for registries built from configuration."""

    def test_duplicate_names_rejected(self):
        """Test that duplicate names raise ValueError."""
        configs = [GCConfiguration(name="A"), GCConfiguration(name="A")]

        with pytest.raises(ValueError, match="Duplicate"):
            GCRegistry(configs)

    def test_unknown_baseline_rejected(self):
        """Test that a baseline missing from the registry raises ValueError."""
        configs = [GCConfiguration(name="A"), GCConfiguration(name="B")]

        with pytest.raises(ValueError, match="Unknown baseline"):
            GCRegistry(configs, baselines=("A", "Z"))

    def test_single_config_has_no_baselines(self):
        """Test that one configuration has no head-to-head pair."""
        assert GCRegistry([GCConfiguration(name="Only")]).baselines() is None

    def test_from_config_overrides(self):
        """Test gc_configs and baselines from the YAML config."""
        config = BenchConfig(
            gc_configs=[
                {"name": "Plain", "flags": []},
                {"name": "Off", "flags": "-X gcbench.gc=off"},
                {"name": "Low threshold", "flags": ["-X", "gcbench.threshold=10"]},
            ],
            baselines=("Off", "Plain"),
        )

        registry = GCRegistry.from_config(config)

        assert registry.names() == ["Plain", "Off", "Low threshold"]
        off = registry.get("Off")
        assert off is not None
        assert off.flags == ("-X", "gcbench.gc=off")
        assert registry.baselines() == ("Off", "Plain")

    def test_from_config_defaults(self):
        """Test that a config without gc_configs keeps the defaults."""
        registry = GCRegistry.from_config(BenchConfig())

        assert registry.names()[0] == "Generational GC"

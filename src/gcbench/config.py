# Copyright (c) Syntropy Systems
"""Configuration management for gcbench."""
from __future__ import annotations

import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import cast

import yaml

from gcbench.errors import SetupError

CONFIG_DIR_NAME = ".gcbench"
CONFIG_FILE_NAME = "config.yaml"


@dataclass
class BenchConfig:
    """Configuration for a benchmark suite run."""

    # Interpreter used for the availability probe and the harness
    runtime: str = field(default_factory=lambda: sys.executable)

    log_dir: Path = Path("log")
    result_dir: Path = Path("result")

    # Harness iteration counts, reduced to bound total suite wall-time
    warmup_iterations: int = 1
    measurement_iterations: int = 2
    forks: int = 1
    threads: int = 1

    # Seconds each measurement iteration keeps invoking the benchmark
    iteration_time: float = 1.0

    heap_max: str = "512m"
    heap_min: str = "128m"

    # None keeps the harness unbounded; a hung harness then hangs the suite
    run_timeout: float | None = None

    # Grace period before SIGKILL after SIGTERM (seconds)
    kill_grace_period: float = 10.0

    # Names of the two configurations compared head-to-head
    baselines: tuple[str, str] | None = None

    # Raw {name, flags} entries overriding the built-in registry
    gc_configs: list[dict[str, object]] | None = None


def find_config_dir(start_path: Path | None = None) -> Path | None:
    """Find the nearest .gcbench directory by walking up from start_path.

    Returns None if no .gcbench directory is found.
    """
    if start_path is None:
        start_path = Path.cwd()

    current = start_path.resolve()

    while current != current.parent:
        config_dir = current / CONFIG_DIR_NAME
        if config_dir.is_dir():
            return config_dir
        current = current.parent

    # Check root
    config_dir = current / CONFIG_DIR_NAME
    if config_dir.is_dir():
        return config_dir

    return None


def get_global_config_dir() -> Path:
    """Get the global gcbench config directory (~/.gcbench)."""
    return Path.home() / CONFIG_DIR_NAME


def _resolve_config_path(config_path: Path | None) -> Path | None:
    if config_path is not None:
        return config_path

    found_dir = find_config_dir()
    if found_dir is not None:
        return found_dir / CONFIG_FILE_NAME

    global_config = get_global_config_dir() / CONFIG_FILE_NAME
    if global_config.exists():
        return global_config
    return None


def _int_value(data: dict[str, object], key: str, default: int) -> int:
    value = data.get(key)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return int(value)
    return default


def _float_value(data: dict[str, object], key: str, default: float | None) -> float | None:
    value = data.get(key)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    return default


def load_config(config_path: Path | None = None) -> BenchConfig:
    """Load configuration from YAML or defaults.

    Looks for config in:
    1. Provided config_path (must exist)
    2. Nearest .gcbench/config.yaml walking up
    3. ~/.gcbench/config.yaml
    4. Defaults
    """
    config = BenchConfig()

    explicit = config_path is not None
    path = _resolve_config_path(config_path)
    if path is None:
        return config
    if not path.exists():
        if explicit:
            msg = f"Config file not found: {path}"
            raise SetupError(msg)
        return config

    try:
        with path.open() as f:
            loaded = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        msg = f"Cannot read config file {path}: {e}"
        raise SetupError(msg) from e

    if loaded is None:
        return config
    if not isinstance(loaded, dict):
        msg = f"Config file {path} must contain a mapping"
        raise SetupError(msg)
    data = cast("dict[str, object]", loaded)

    runtime = data.get("runtime")
    if isinstance(runtime, str) and runtime:
        config.runtime = runtime
    log_dir = data.get("log_dir")
    if isinstance(log_dir, str):
        config.log_dir = Path(log_dir)
    result_dir = data.get("result_dir")
    if isinstance(result_dir, str):
        config.result_dir = Path(result_dir)

    config.warmup_iterations = _int_value(data, "warmup_iterations", config.warmup_iterations)
    config.measurement_iterations = _int_value(
        data, "measurement_iterations", config.measurement_iterations
    )
    config.forks = _int_value(data, "forks", config.forks)
    config.threads = _int_value(data, "threads", config.threads)

    iteration_time = _float_value(data, "iteration_time", config.iteration_time)
    if iteration_time is not None:
        config.iteration_time = iteration_time
    config.run_timeout = _float_value(data, "run_timeout", config.run_timeout)
    grace = _float_value(data, "kill_grace_period", config.kill_grace_period)
    if grace is not None:
        config.kill_grace_period = grace

    heap_max = data.get("heap_max")
    if isinstance(heap_max, str):
        config.heap_max = heap_max
    heap_min = data.get("heap_min")
    if isinstance(heap_min, str):
        config.heap_min = heap_min

    baselines = data.get("baselines")
    if isinstance(baselines, list) and len(baselines) == 2:
        config.baselines = (str(baselines[0]), str(baselines[1]))

    gc_configs = data.get("gc_configs")
    if isinstance(gc_configs, list):
        config.gc_configs = [
            cast("dict[str, object]", entry)
            for entry in gc_configs
            if isinstance(entry, dict)
        ]

    return config


def ensure_output_dirs(config: BenchConfig) -> None:
    """Create the log and result directories, raising SetupError on failure."""
    for directory in (config.log_dir, config.result_dir):
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            msg = f"Failed to create directory {directory}: {e}"
            raise SetupError(msg) from e

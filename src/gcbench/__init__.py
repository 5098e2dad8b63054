"""
gcbench - Garbage-collector comparison benchmarks.

Run synthetic workloads under each collector configuration, compare results.
"""

from gcbench.collector import ResultsAggregate
from gcbench.models import GCConfiguration, GCRunResult, RunState, WorkloadResult
from gcbench.registry import DEFAULT_GC_CONFIGS, GCRegistry

__version__ = "0.1.0"
__all__ = [
    "DEFAULT_GC_CONFIGS",
    "GCConfiguration",
    "GCRegistry",
    "GCRunResult",
    "ResultsAggregate",
    "RunState",
    "WorkloadResult",
    "__version__",
]

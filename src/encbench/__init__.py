"""
encbench - Speed-level benchmarks for AV1 encoders.

Probe encoders, sweep presets with hyperfine, collect one workbook.
"""

from encbench.orchestrator import BenchmarkReport, FailurePolicy, Orchestrator
from encbench.workbook import Sheet, Workbook

__version__ = "0.3.0"
__all__ = [
    "BenchmarkReport",
    "FailurePolicy",
    "Orchestrator",
    "Sheet",
    "Workbook",
    "__version__",
]

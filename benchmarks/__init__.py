"""
Benchmarks package for copy-on-write B+ trees.

This package contains ASV benchmarks for performance testing of:
- BTree point operations (set, get, remove)
- Ordered scans and range updates
- Lazy clones followed by mutation of one side
- Bulk loading versus incremental construction

The benchmarks are designed to be robust against CPU and memory load variations
by using multiple iterations, deterministic test data, and proper statistical analysis.
"""

# Import benchmark utilities for easier access
from .benchmark_utils import BaseBenchmark, BenchmarkUtils

__all__ = ["BaseBenchmark", "BenchmarkUtils"]

"""
Phase-separated benchmark runner for copy-on-write B+ trees.

Each repetition builds a random tree (not timed), then times point lookups,
a full ordered scan, a lazy clone followed by writes to the clone, and the
structural stats pass.

Usage:
    python -m benchmarks.runner --sizes 1000 10000 --node-sizes 8 64
    BENCHMARK_VERIFY_ONLY=true python -m benchmarks.runner
"""

import argparse
import logging
import math
import os
import random
import sys
import time
from dataclasses import dataclass, field
from statistics import mean
from typing import Any, List, Optional, Sequence, Tuple

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from cow_btree import BTree, Stats, btree_stats_

from .utils import random_btree_of_size
from .verify import verify_contents, verify_invariants


@dataclass
class BenchmarkConfig:
    seed: int = 42
    sizes: List[int] = field(default_factory=lambda: [100, 1000, 10000])
    node_sizes: List[int] = field(default_factory=lambda: [4, 32, 64])
    repetitions: int = 20
    lookups: int = 1000
    # keys removed from the lazy clone in the clone+write phase
    clone_writes: int = 100
    verify_only: bool = False
    skip_warmup: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "BenchmarkConfig":
        env = os.environ
        return cls(
            seed=int(env.get("BENCHMARK_SEED", "42")),
            verify_only=env.get("BENCHMARK_VERIFY_ONLY", "").lower() == "true",
            skip_warmup=env.get("BENCHMARK_SKIP_WARMUP", "").lower() == "true",
            log_level=env.get("BENCHMARK_LOG_LEVEL", "INFO"),
        )


@dataclass
class BenchmarkResult:
    """Results from a single benchmark run."""
    stats: Stats
    lookup_time: float
    scan_time: float
    clone_write_time: float
    stats_time: float

Trees = List[Tuple[BTree, List[Tuple[Any, Any]]]]


def _mean_var(values: Sequence[float]) -> Tuple[float, float]:
    avg = mean(values)
    return avg, mean((v - avg) ** 2 for v in values)


class BenchmarkRunner:
    """
    Runs the setup, warmup, timed and verify phases for one (n, M) pair.

    Only the timed phase touches the clock. The measured tree is never
    mutated; the clone+write phase writes to a lazy clone, so the verify
    phase still sees the generated pairs.
    """

    def __init__(self, config: BenchmarkConfig):
        self.config = config
        if logging.getLogger("cow_btree").getEffectiveLevel() < logging.INFO:
            logging.warning("cow_btree debug logging is enabled; timings will be inflated")

    def setup(self, size: int, max_node_size: int, repetitions: int) -> Trees:
        # different but deterministic tree per repetition
        return [random_btree_of_size(size, max_node_size, self.config.seed + i) for i in range(repetitions)]

    def warmup(self, trees: Trees) -> None:
        for tree, pairs in trees[:5]:
            btree_stats_(tree)
            for key, _ in pairs[:100]:
                tree.get(key)

    def run_single(self, tree: BTree, pairs: List[Tuple[Any, Any]], seed: int) -> BenchmarkResult:
        rng = random.Random(seed)
        lookups = [key for key, _ in rng.sample(pairs, k=min(len(pairs), self.config.lookups))]

        t0 = time.perf_counter()
        get = tree.get
        for key in lookups:
            get(key)
        lookup_time = time.perf_counter() - t0

        t0 = time.perf_counter()
        for _ in tree.entries():
            pass
        scan_time = time.perf_counter() - t0

        t0 = time.perf_counter()
        clone = tree.clone()
        for key in lookups[: self.config.clone_writes]:
            clone.remove(key)
        clone_write_time = time.perf_counter() - t0

        t0 = time.perf_counter()
        stats = btree_stats_(tree)
        stats_time = time.perf_counter() - t0

        return BenchmarkResult(stats, lookup_time, scan_time, clone_write_time, stats_time)

    def run_benchmark(self, size: int, max_node_size: int, repetitions: Optional[int] = None) -> List[BenchmarkResult]:
        """
        Run all repetitions for one tree size and node size.

        In verify-only mode every tree is checked against its pairs and
        the outcome is logged; a failure is logged at ERROR level.
        """
        repetitions = repetitions or self.config.repetitions
        trees = self.setup(size, max_node_size, repetitions)
        if not self.config.skip_warmup:
            self.warmup(trees)

        results = []
        failed = 0
        for i, (tree, pairs) in enumerate(trees):
            result = self.run_single(tree, pairs, self.config.seed + i)
            results.append(result)
            if self.config.verify_only:
                if not (verify_invariants(tree, result.stats) and verify_contents(tree, pairs)):
                    failed += 1

        if self.config.verify_only:
            if failed:
                logging.error("%d of %d trees failed verification for n=%d, M=%d",
                              failed, repetitions, size, max_node_size)
            else:
                logging.info("All %d trees verified for n=%d, M=%d", repetitions, size, max_node_size)
        return results

    def report(self, results: List[BenchmarkResult], size: int, max_node_size: int) -> None:
        # levels above fully packed leaves
        perfect_height = max(math.ceil(math.log(size, max_node_size)) - 1, 0) if size > 1 else 0

        logging.info("")
        logging.info("n=%d  M=%d  repetitions=%d  seed=%d", size, max_node_size, len(results), self.config.seed)
        logging.info(f"{'Structure':<16} {'Avg':>12} {'(Var)':>12}")
        for name, values in (
            ("Height", [r.stats.height for r in results]),
            ("Node count", [r.stats.node_count for r in results]),
            ("Leaf count", [r.stats.leaf_count for r in results]),
            ("Fill factor", [r.stats.fill_factor for r in results]),
        ):
            avg, var = _mean_var(values)
            logging.info(f"{name:<16} {avg:12.2f} {'(%.2f)' % var:>12}")
        logging.info(f"{'Perfect height':<16} {perfect_height:12d}")

        phases = (
            ("Lookup", [r.lookup_time for r in results]),
            ("Scan", [r.scan_time for r in results]),
            ("Clone+write", [r.clone_write_time for r in results]),
            ("Stats", [r.stats_time for r in results]),
        )
        total = sum(sum(times) for _, times in phases)
        logging.info(f"{'Phase':<16}{'Avg(s)':>12}{'Var(s)':>12}{'%Total':>9}")
        for name, times in phases:
            avg, var = _mean_var(times)
            pct = sum(times) / total * 100 if total else 0
            logging.info(f"{name:<16}{avg:12.6f}{var:12.6f}{pct:8.2f}%")


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Time lookups, scans and clone+write on copy-on-write B+ trees.")
    parser.add_argument("--sizes", type=int, nargs="+")
    parser.add_argument("--node-sizes", type=int, nargs="+")
    parser.add_argument("--repetitions", type=int)
    parser.add_argument("--verify-only", action="store_true")
    args = parser.parse_args(argv)

    config = BenchmarkConfig.from_env()
    config.sizes = args.sizes or config.sizes
    config.node_sizes = args.node_sizes or config.node_sizes
    config.repetitions = args.repetitions or config.repetitions
    config.verify_only = config.verify_only or args.verify_only

    logging.basicConfig(level=getattr(logging, config.log_level.upper(), logging.INFO),
                        format="%(asctime)s [%(levelname)s] %(message)s", force=True)

    runner = BenchmarkRunner(config)
    for size in config.sizes:
        for m in config.node_sizes:
            results = runner.run_benchmark(size, m)
            if not config.verify_only:
                runner.report(results, size, m)
    return 0


if __name__ == "__main__":
    sys.exit(main())

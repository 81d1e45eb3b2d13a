"""Statistics for copy-on-write B+ trees."""

import argparse
import logging
import math
import os
import time
from datetime import datetime
from statistics import mean

import numpy as np

from cow_btree.btree_base import BTree
from cow_btree.factory import create_btree
from cow_btree.invariants import assert_tree_invariants_raise
from cow_btree.tree_stats import btree_stats_

logger = logging.getLogger(__name__)


def random_btree_of_size(n: int, max_node_size: int, rng: np.random.Generator, churn: float = 0.0) -> BTree:
    """
    Build a tree of n random keys by inserting them one at a time.

    With churn > 0 that share of the keys is removed again afterwards, in
    random order, so the tree also reflects the merge and borrow paths.
    """
    # we need at least n unique values; 2^24 = 16 777 216 > 1 000 000
    space = 1 << 24
    if space <= n:
        raise ValueError(f"Key-space too small! Required: {n + 1}, Available: {space}")

    keys = rng.choice(space, size=n, replace=False).tolist()
    tree = create_btree(((k, "val") for k in keys), max_node_size=max_node_size)
    if churn > 0:
        doomed = rng.permutation(keys)[: int(n * churn)].tolist()
        tree.remove_keys(doomed)
    return tree


def repeated_experiment(
    size: int,
    repetitions: int,
    max_node_size: int,
    churn: float,
    rng: np.random.Generator,
) -> None:
    """
    Repeatedly builds random BTrees and aggregates structural statistics
    and timings over all of them.
    """
    t_all_0 = time.perf_counter()

    results = []
    times_build = []
    times_stats = []
    times_clone = []

    for _ in range(repetitions):
        t0 = time.perf_counter()
        tree = random_btree_of_size(size, max_node_size, rng, churn)
        times_build.append(time.perf_counter() - t0)

        t0 = time.perf_counter()
        stats = btree_stats_(tree)
        times_stats.append(time.perf_counter() - t0)

        t0 = time.perf_counter()
        tree.clone(force=True)
        times_clone.append(time.perf_counter() - t0)

        results.append(stats)
        assert_tree_invariants_raise(tree, stats)

    live = size - int(size * churn)
    # Perfect height: internal levels above fully packed leaves
    perfect_height = max(math.ceil(math.log(live, max_node_size)) - 1, 0) if live > 1 else 0

    avg_height = mean(s.height for s in results)
    avg_node_count = mean(s.node_count for s in results)
    avg_leaf_count = mean(s.leaf_count for s in results)
    avg_item_count = mean(s.item_count for s in results)
    avg_item_slot_count = mean(s.item_slot_count for s in results)
    avg_fill = mean(s.fill_factor for s in results)
    avg_space_amp = mean((s.item_slot_count / s.item_count) for s in results if s.item_count) if live else 0

    avg_build_time = mean(times_build)
    avg_stats_time = mean(times_stats)
    avg_clone_time = mean(times_clone)

    var_height = mean((s.height - avg_height) ** 2 for s in results)
    var_node_count = mean((s.node_count - avg_node_count) ** 2 for s in results)
    var_leaf_count = mean((s.leaf_count - avg_leaf_count) ** 2 for s in results)
    var_item_slot_count = mean((s.item_slot_count - avg_item_slot_count) ** 2 for s in results)
    var_fill = mean((s.fill_factor - avg_fill) ** 2 for s in results)

    var_build_time = mean((t - avg_build_time) ** 2 for t in times_build)
    var_stats_time = mean((t - avg_stats_time) ** 2 for t in times_stats)
    var_clone_time = mean((t - avg_clone_time) ** 2 for t in times_clone)

    rows = [
        ("Item count", avg_item_count, None),
        ("Item slot count", avg_item_slot_count, var_item_slot_count),
        ("Space amplification", avg_space_amp, None),
        ("Fill factor", avg_fill, var_fill),
        ("Node count", avg_node_count, var_node_count),
        ("Leaf count", avg_leaf_count, var_leaf_count),
        ("Height", avg_height, var_height),
        ("Perfect height", perfect_height, None),
    ]

    header = f"{'Metric':<20} {'Avg':>15} {'(Var)':>15}"
    sep_line = "-" * len(header)

    logger.info(header)
    logger.info(sep_line)
    for name, avg, var in rows:
        if var is None:
            logger.info(f"{name:<20} {avg:>15}")
        else:
            var_str = f"({var:.2f})"
            avg_fmt = f"{avg:15.2f}"
            logger.info(f"{name:<20} {avg_fmt} {var_str:>15}")

    sum_build = sum(times_build)
    sum_stats = sum(times_stats)
    sum_clone = sum(times_clone)
    total_sum = sum_build + sum_stats + sum_clone

    pct_build = (sum_build / total_sum * 100) if total_sum else 0
    pct_stats = (sum_stats / total_sum * 100) if total_sum else 0
    pct_clone = (sum_clone / total_sum * 100) if total_sum else 0

    perf_rows = [
        ("Build time (s)", avg_build_time, var_build_time, sum_build, pct_build),
        ("Stats time (s)", avg_stats_time, var_stats_time, sum_stats, pct_stats),
        ("Deep clone (s)", avg_clone_time, var_clone_time, sum_clone, pct_clone),
    ]

    header = f"{'Metric':<20}{'Avg(s)':>13}{'Var(s)':>13}{'Total(s)':>13}{'%Total':>10}"
    sep = "-" * len(header)

    logger.info("")
    logger.info("Performance summary:")
    logger.info(header)
    logger.info(sep)
    for name, avg, var, total, pct in perf_rows:
        logger.info(f"{name:<20}{avg:13.6f}{var:13.6f}{total:13.6f}{pct:10.2f}%")

    logger.info(sep)
    t_all_1 = time.perf_counter() - t_all_0
    logger.info("Execution time: %.3f seconds", t_all_1)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Run statistics experiments for copy-on-write B+ trees.")
    parser.add_argument(
        "--sizes", type=int, nargs="+", default=[10, 100, 1000, 10_000, 100_000], help="List of tree sizes to test."
    )
    parser.add_argument(
        "--node-sizes", type=int, nargs="+", default=[4, 16, 64], help="List of max node sizes to test."
    )
    parser.add_argument("--repetitions", type=int, default=1, help="Number of repetitions for each experiment.")
    parser.add_argument("--churn", type=float, default=0.0, help="Share of keys removed after building (0..1).")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for reproducibility.")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default="INFO",
        help="Set the logging level (default: INFO)",
    )

    args = parser.parse_args()
    rng = np.random.default_rng(args.seed)

    log_dir = os.path.join(os.getcwd(), "stats/logs/btree_logs")
    os.makedirs(log_dir, exist_ok=True)

    ts = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_path = os.path.join(log_dir, f"run_{ts}.log")

    log_level = getattr(logging, args.log_level)
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=[
            logging.FileHandler(log_path, mode="w"),
            logging.StreamHandler(),
        ],
        force=True,  # Override any existing logging configuration
    )

    # The library logger does not propagate; give it the chosen level too
    logging.getLogger("cow_btree").setLevel(log_level)

    for n in args.sizes:
        for m in args.node_sizes:
            logger.info("")
            logger.info("---------------- NOW RUNNING EXPERIMENT: n = %d, M = %d, repetitions = %d ----------------",
                        n, m, args.repetitions)
            repeated_experiment(size=n, repetitions=args.repetitions, max_node_size=m, churn=args.churn, rng=rng)

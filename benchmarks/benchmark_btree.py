"""
ASV benchmarks for BTree operations.

Covers incremental versus bulk construction, point lookups, ordered
scans, range updates and the cost of mutating one side of a lazy clone.
"""

import gc

from cow_btree import BTree, DELETE, ScanAction, create_btree
from benchmarks.benchmark_utils import BaseBenchmark, BenchmarkUtils


class BTreeConstructionBenchmarks(BaseBenchmark):
    """Benchmarks for building a tree one pair at a time and bottom-up."""

    params = [
        [4, 32, 64, 256],                               # max node size
        [1000, 10000],                                  # number of pairs
        ['uniform', 'sequential', 'descending'],        # data distributions
    ]
    param_names = ['max_node_size', 'size', 'distribution']

    min_run_count = 5

    def setup(self, max_node_size, size, distribution):
        super().setup(max_node_size, size, distribution)
        keys = BenchmarkUtils.generate_deterministic_keys(
            size=size,
            seed=42 + hash((max_node_size, size, distribution)) % 1000,
            distribution=distribution,
        )
        self.pairs = BenchmarkUtils.create_test_pairs(keys)
        self.sorted_pairs = sorted(self.pairs)
        gc.collect()
        gc.disable()

    def time_incremental_set(self, max_node_size, size, distribution):
        tree = BTree(max_node_size=max_node_size)
        tree_set = tree.set
        for key, value in self.pairs:
            tree_set(key, value)

    def time_bulk_load(self, max_node_size, size, distribution):
        create_btree(self.sorted_pairs, max_node_size=max_node_size, presorted=True)


class BTreeLookupBenchmarks(BaseBenchmark):
    """Benchmarks for get() with a mix of hits and misses."""

    params = [
        [4, 32, 64, 256],
        [1000, 10000],
        [0.2, 0.8],                                     # hit ratio
    ]
    param_names = ['max_node_size', 'size', 'hit_ratio']

    def setup(self, max_node_size, size, hit_ratio):
        super().setup(max_node_size, size, hit_ratio)
        keys = BenchmarkUtils.generate_deterministic_keys(size=size)
        self.tree = create_btree(
            sorted(BenchmarkUtils.create_test_pairs(keys)),
            max_node_size=max_node_size,
            presorted=True,
        )
        self.lookups = BenchmarkUtils.create_lookup_keys(keys, hit_ratio=hit_ratio)
        gc.collect()
        gc.disable()

    def time_get(self, max_node_size, size, hit_ratio):
        get = self.tree.get
        for key in self.lookups:
            get(key)


class BTreeScanBenchmarks(BaseBenchmark):
    """Benchmarks for iteration and range callbacks."""

    params = [
        [4, 32, 64, 256],
        [10000],
    ]
    param_names = ['max_node_size', 'size']

    def setup(self, max_node_size, size):
        super().setup(max_node_size, size)
        self.pairs = BenchmarkUtils.create_test_pairs(range(size))
        self.tree = create_btree(self.pairs, max_node_size=max_node_size, presorted=True)
        self.size = size
        gc.collect()
        gc.disable()

    def time_entries(self, max_node_size, size):
        for _ in self.tree.entries():
            pass

    def time_reversed(self, max_node_size, size):
        for _ in self.tree.reversed():
            pass

    def time_range_for_each(self, max_node_size, size):
        self.tree.range_for_each(0, size, False, lambda k, v, c: None)

    def time_range_update_on_clone(self, max_node_size, size):
        clone = self.tree.clone()
        clone.range_update(0, size, False, lambda k, v, c: ScanAction.replace(c))

    def time_remove_every_other_on_clone(self, max_node_size, size):
        clone = self.tree.clone()
        clone.range_update(0, size, False, lambda k, v, c: DELETE if k % 2 else None)


class BTreeCloneBenchmarks(BaseBenchmark):
    """Benchmarks for lazy versus forced clones followed by a few writes."""

    params = [
        [32, 64],
        [10000, 100000],
        [False, True],                                  # force
    ]
    param_names = ['max_node_size', 'size', 'force']

    def setup(self, max_node_size, size, force):
        super().setup(max_node_size, size, force)
        self.tree = create_btree(
            BenchmarkUtils.create_test_pairs(range(size)),
            max_node_size=max_node_size,
            presorted=True,
        )
        self.writes = BenchmarkUtils.create_lookup_keys(list(range(size)), hit_ratio=0.5, num_lookups=100)
        gc.collect()
        gc.disable()

    def time_clone_and_write(self, max_node_size, size, force):
        clone = self.tree.clone(force=force)
        clone_set = clone.set
        for key in self.writes:
            clone_set(key, key)

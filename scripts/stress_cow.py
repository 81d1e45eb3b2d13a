#!/usr/bin/env python3
"""
Randomized differential stress run: drives several BTrees and their lazy
clones through random operations and compares each against a dict model.
"""
import argparse
import logging
import random
import sys

from tqdm import tqdm, trange

from cow_btree import DELETE, BTree, InvariantError, ScanAction

logger = logging.getLogger(__name__)


def check_against_model(tree: BTree, model: dict, label: str) -> None:
    expected = sorted(model.items())
    actual = tree.to_array()
    if actual != expected:
        raise AssertionError(f"{label}: contents diverged ({len(actual)} vs {len(expected)} pairs)")
    tree.check_valid()


def random_step(rng: random.Random, tree: BTree, model: dict, key_space: int) -> None:
    """Apply one random mutation to both the tree and its model."""
    key = rng.randrange(key_space)
    op = rng.random()
    if op < 0.45:
        tree.set(key, op)
        model[key] = op
    elif op < 0.55:
        if tree.add(key):
            model[key] = None
    elif op < 0.85:
        tree.remove(key)
        model.pop(key, None)
    elif op < 0.95:
        high = key + rng.randrange(key_space // 20 + 1)
        tree.range_update(key, high, False, lambda k, v, c: DELETE if k % 3 == 0 else ScanAction.replace(c))
        counter = 0
        for k in sorted(model):
            if key <= k < high:
                if k % 3 == 0:
                    del model[k]
                else:
                    model[k] = counter
                counter += 1
    else:
        high = key + rng.randrange(key_space // 10 + 1)
        tree.remove_range(key, high, True)
        for k in [k for k in model if key <= k <= high]:
            del model[k]


def run(seed: int, steps: int, max_node_size: int, key_space: int, clone_every: int) -> int:
    rng = random.Random(seed)
    trees = [(BTree(max_node_size=max_node_size), {})]
    failures = 0

    for step in trange(steps, desc=f"M={max_node_size}", leave=False):
        index = rng.randrange(len(trees))
        tree, model = trees[index]
        random_step(rng, tree, model, key_space)

        if clone_every and step % clone_every == 0 and len(trees) < 16:
            trees.append((tree.clone(), dict(model)))

        if step % 500 == 0:
            for i, (t, m) in enumerate(trees):
                try:
                    check_against_model(t, m, f"tree #{i} at step {step}")
                except (AssertionError, InvariantError) as exc:
                    logger.error("%s", exc)
                    failures += 1

    for i, (t, m) in enumerate(tqdm(trees, desc="final check", leave=False)):
        try:
            check_against_model(t, m, f"tree #{i} at end")
        except (AssertionError, InvariantError) as exc:
            logger.error("%s", exc)
            failures += 1
    return failures


def main() -> int:
    parser = argparse.ArgumentParser(description="Randomized stress test for copy-on-write B+ trees.")
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument("--steps", type=int, default=20_000)
    parser.add_argument("--node-sizes", type=int, nargs="+", default=[4, 5, 8, 32])
    parser.add_argument("--key-space", type=int, default=2_000)
    parser.add_argument("--clone-every", type=int, default=1_000, help="Clone a random tree every N steps (0: never).")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")

    failures = 0
    for m in tqdm(args.node_sizes, desc="node sizes"):
        failures += run(args.seed, args.steps, m, args.key_space, args.clone_every)

    if failures:
        logger.error("%d consistency check(s) failed", failures)
        return 1
    logger.info("All consistency checks passed")
    return 0


if __name__ == "__main__":
    sys.exit(main())

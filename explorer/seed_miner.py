from __future__ import annotations

import argparse
import json
import logging
import os
import time
from concurrent.futures import ProcessPoolExecutor, ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Optional

from explorer.engine import ExploreLimits, draw_group_arg, explore_seed
from explorer.moves import MovePolicy

logger = logging.getLogger(__name__)


def _default_workers() -> int:
    return max(1, (os.cpu_count() or 1) - 1)


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Batch reachability runs over consecutive Klondike seeds.")
    parser.add_argument("--start-seed", type=int, required=True, help="Start seed (inclusive).")
    parser.add_argument("--count", type=int, required=True, help="How many seeds to run.")
    parser.add_argument("--max-states", type=int, default=200_000, help="Per-seed state limit.")
    parser.add_argument("--max-seconds", type=float, default=10.0, help="Per-seed time limit.")
    parser.add_argument("--draw-group", type=draw_group_arg, default=3, help="Draw pile group size.")
    parser.add_argument("--strict-runs", action="store_true", help="Validate moved tableau runs.")
    parser.add_argument("--workers", type=int, default=1, help=f"Parallel workers (this machine: {_default_workers()}).")
    parser.add_argument("--jsonl", type=str, default="", help="Optional output jsonl path.")
    return parser.parse_args(argv)


def run_seed(seed: int, limits: ExploreLimits, policy: MovePolicy) -> dict:
    t0 = time.perf_counter()
    result = explore_seed(seed, limits=limits, policy=policy)
    payload = result.to_dict()
    payload["seed"] = seed
    payload["wall_ms"] = round((time.perf_counter() - t0) * 1000.0, 3)
    return payload


def _run_one(
    seed: int,
    max_states: Optional[int],
    max_seconds: Optional[float],
    draw_group: int,
    strict_runs: bool,
) -> dict:
    limits = ExploreLimits(max_states=max_states, max_seconds=max_seconds)
    return run_seed(seed, limits, MovePolicy(draw_group=draw_group, strict_runs=strict_runs))


def run_seeds(
    seeds: list[int],
    max_states: Optional[int] = None,
    max_seconds: Optional[float] = None,
    draw_group: int = 3,
    strict_runs: bool = False,
    workers: int = 1,
) -> list[dict]:
    """Run every seed and return the payloads ordered by seed."""
    job = (max_states, max_seconds, draw_group, strict_runs)
    if workers <= 1:
        return sorted((_run_one(seed, *job) for seed in seeds), key=lambda row: row["seed"])

    rows: list[dict] = []
    try:
        with ProcessPoolExecutor(max_workers=workers) as exe:
            futures = [exe.submit(_run_one, seed, *job) for seed in seeds]
            for fut in as_completed(futures):
                rows.append(fut.result())
        return sorted(rows, key=lambda row: row["seed"])
    except PermissionError:
        logger.warning("process pool unavailable in current environment; fallback to thread pool")

    rows = []
    with ThreadPoolExecutor(max_workers=workers) as exe:
        futures = [exe.submit(_run_one, seed, *job) for seed in seeds]
        for fut in as_completed(futures):
            rows.append(fut.result())
    return sorted(rows, key=lambda row: row["seed"])


def main() -> None:
    args = parse_args()
    logging.basicConfig(level=logging.WARNING)

    out_path = Path(args.jsonl).expanduser() if args.jsonl else None
    if out_path is not None:
        out_path.parent.mkdir(parents=True, exist_ok=True)

    started = time.perf_counter()
    seeds = [args.start_seed + i for i in range(args.count)]
    rows = run_seeds(
        seeds,
        max_states=args.max_states or None,
        max_seconds=args.max_seconds or None,
        draw_group=args.draw_group,
        strict_runs=args.strict_runs,
        workers=max(1, args.workers),
    )

    exhausted = 0
    stopped = 0
    for payload in rows:
        if out_path is not None:
            with out_path.open("a", encoding="utf-8") as f:
                f.write(json.dumps(payload, ensure_ascii=False) + "\n")

        if payload["status"] == "exhausted":
            exhausted += 1
        else:
            stopped += 1

        print(
            f"seed={payload['seed']} status={payload['status']} reason={payload['stop_reason']} "
            f"wall_ms={payload['wall_ms']:.1f} unique={payload['unique_states']} "
            f"duplicates={payload['duplicate_states_skipped']} depth={payload['max_depth']}"
        )

    total_ms = (time.perf_counter() - started) * 1000.0
    print(f"summary scanned={exhausted + stopped} exhausted={exhausted} stopped={stopped} total_ms={total_ms:.1f}")


if __name__ == "__main__":
    main()

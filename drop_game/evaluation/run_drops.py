"""
Headless Drop Harness
=====================

Runs seeded batches of droppers through the engine without a display and
summarizes how they landed.

Usage:
    python -m drop_game.evaluation.run_drops [--droppers 8] [--cut-probability 0.3]
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
import time
from dataclasses import asdict, dataclass
from typing import List, Optional
import numpy as np

from drop_game.drop_core.config_loader import GameConfig, load_config
from drop_game.drop_core.engine import DropEngine
from drop_game.logging_config import configure_logging

logger = logging.getLogger(__name__)


@dataclass
class RunResult:
    """Result for a single seed."""
    seed: int
    drops: int
    hits: int
    misses: int
    displaced: int
    winner_name: Optional[str]
    winner_score: float
    frames: int
    elapsed_time: float


@dataclass
class RunSummary:
    """Summary across all seeds."""
    mean_winner_score: float
    std_winner_score: float
    hit_rate: float
    total_drops: int
    total_displaced: int
    total_time: float
    results: List[RunResult]


def load_seed_bank(path: Optional[str] = None) -> List[int]:
    """
    Load the seed bank.

    Args:
        path: Path to seed_bank.json. Uses default if None.

    Returns:
        List of seeds.
    """
    if path is None:
        path = os.path.join(os.path.dirname(__file__), "seed_bank.json")

    with open(path, "r") as f:
        data = json.load(f)

    return data["seeds"]


def run_single_seed(
    seed: int,
    config: GameConfig,
    num_droppers: int = 8,
    cut_probability: float = 0.0,
    spawn_window_ms: float = 3000.0,
    max_frames: int = 20000
) -> RunResult:
    """
    Drop a batch of droppers with one seed and run until they all land.

    Spawn times and cut decisions come from a player RNG seeded alongside
    the engine, so a seed replays exactly.

    Args:
        seed: Random seed.
        config: Game configuration.
        num_droppers: Droppers launched in this run.
        cut_probability: Chance that each dropper cuts its chute.
        spawn_window_ms: Spawns are spread uniformly over this window.
        max_frames: Hard cap on simulated frames.

    Returns:
        RunResult for this seed.
    """
    start = time.time()
    engine = DropEngine(config=config, seed=seed)
    player_rng = np.random.default_rng(seed)

    dt = config.engine.frame_time_ms
    window_frames = max(1, int(spawn_window_ms / dt))
    spawn_frames = np.sort(player_rng.integers(0, window_frames, size=num_droppers))
    cut_frames = {
        f"player{i}": int(spawn_frames[i] + player_rng.integers(1, window_frames + 1))
        for i in range(num_droppers)
        if player_rng.random() < cut_probability
    }

    next_spawn = 0
    frame = 0
    while frame < max_frames:
        while next_spawn < num_droppers and spawn_frames[next_spawn] <= frame:
            engine.drop(f"player{next_spawn}")
            next_spawn += 1

        for name, cut_frame in cut_frames.items():
            if cut_frame == frame:
                engine.cut(name)

        engine.advance(dt)
        frame += 1

        if next_spawn >= num_droppers and not any(d.falling for d in engine.droppers):
            break

    winner = engine.target.winner
    tally = engine.results
    return RunResult(
        seed=seed,
        drops=tally.drops,
        hits=tally.hits,
        misses=tally.misses,
        displaced=tally.displaced,
        winner_name=winner.name if winner is not None else None,
        winner_score=winner.drop_score if winner is not None else 0.0,
        frames=frame,
        elapsed_time=time.time() - start
    )


def run_batch(
    seeds: Optional[List[int]] = None,
    config: Optional[GameConfig] = None,
    num_droppers: int = 8,
    cut_probability: float = 0.0,
    verbose: bool = True
) -> RunSummary:
    """
    Run every seed and summarize.

    Args:
        seeds: Seeds to run. Uses seed bank if None.
        config: Game configuration. Loads the default if None.
        num_droppers: Droppers launched per seed.
        cut_probability: Chance that each dropper cuts its chute.
        verbose: If True, print progress.

    Returns:
        RunSummary with per-seed results.
    """
    if seeds is None:
        seeds = load_seed_bank()
    if config is None:
        config = load_config()

    start = time.time()
    results: List[RunResult] = []

    if verbose:
        print(f"Running {len(seeds)} seeds with {num_droppers} droppers each...")

    for i, seed in enumerate(seeds):
        result = run_single_seed(seed, config, num_droppers, cut_probability)
        results.append(result)
        if verbose:
            print(f"[{i+1}/{len(seeds)}] seed {seed}: hits={result.hits}/{result.drops}, "
                  f"winner={result.winner_name} ({result.winner_score:.3f})")

    winner_scores = np.array([r.winner_score for r in results if r.winner_name is not None])
    total_drops = sum(r.drops for r in results)
    total_hits = sum(r.hits for r in results)

    summary = RunSummary(
        mean_winner_score=float(np.mean(winner_scores)) if len(winner_scores) else 0.0,
        std_winner_score=float(np.std(winner_scores)) if len(winner_scores) else 0.0,
        hit_rate=total_hits / total_drops if total_drops else 0.0,
        total_drops=total_drops,
        total_displaced=sum(r.displaced for r in results),
        total_time=time.time() - start,
        results=results
    )

    if verbose:
        print()
        print("=" * 50)
        print("DROP SUMMARY")
        print("=" * 50)
        print(f"Seeds run:          {len(seeds)}")
        print(f"Total drops:        {summary.total_drops}")
        print(f"Hit rate:           {summary.hit_rate:.1%}")
        print(f"Displaced:          {summary.total_displaced}")
        print(f"Mean winner score:  {summary.mean_winner_score:.3f}")
        print(f"Std deviation:      {summary.std_winner_score:.3f}")
        print(f"Total time:         {summary.total_time:.2f}s")

    return summary


def save_results(summary: RunSummary, output_path: str) -> None:
    """Save a summary to JSON."""
    with open(output_path, "w") as f:
        json.dump(asdict(summary), f, indent=2)
    logger.info("Results saved to %s", output_path)


def main():
    parser = argparse.ArgumentParser(description="Run headless parachute drops")
    parser.add_argument(
        "--seeds",
        type=str,
        default=None,
        help="Path to seed bank JSON (uses default if not specified)"
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to drop_config.yaml (uses default if not specified)"
    )
    parser.add_argument(
        "--droppers",
        type=int,
        default=8,
        help="Droppers launched per seed"
    )
    parser.add_argument(
        "--cut-probability",
        type=float,
        default=0.0,
        help="Chance that each dropper cuts its chute"
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Path to save results JSON"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        help="Log level (defaults to DROP_LOG_LEVEL or WARNING)"
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Reduce output verbosity"
    )

    args = parser.parse_args()
    configure_logging(level=args.log_level)

    try:
        config = load_config(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error loading config: {e}")
        return 1

    seeds = load_seed_bank(args.seeds)

    summary = run_batch(
        seeds=seeds,
        config=config,
        num_droppers=args.droppers,
        cut_probability=args.cut_probability,
        verbose=not args.quiet
    )

    if args.output:
        save_results(summary, args.output)

    return 0


if __name__ == "__main__":
    sys.exit(main())

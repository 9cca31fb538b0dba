from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Sequence

from evosim.core import SimulationConfig, SimulationEngine
from evosim.core.statistics import history_frame
from evosim.errors import EvolutionError


def parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Headless evolutionary population simulator")
    parser.add_argument(
        "--generations",
        type=int,
        default=100,
        help="Number of generations to process (default: 100)",
    )
    parser.add_argument(
        "--population",
        type=int,
        default=None,
        help="Initial population size (default: from config)",
    )
    parser.add_argument(
        "--max-population",
        type=int,
        default=None,
        help="Population cap (default: from config)",
    )
    parser.add_argument(
        "--mode",
        choices=("randomized", "fixed"),
        default=None,
        help="Initial trait mode",
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument(
        "--history-csv",
        type=str,
        help="Write the statistics history to this CSV file",
    )
    parser.add_argument(
        "--log-generations",
        action="store_true",
        help="Log a summary line for every generation",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> SimulationConfig:
    config = SimulationConfig()
    sim = config.simulation
    if args.population is not None:
        sim.initial_population = args.population
        sim.max_population = max(sim.max_population, args.population)
    if args.max_population is not None:
        sim.max_population = args.max_population
    if args.mode is not None:
        sim.initial_mode = args.mode
    sim.seed = args.seed
    sim.log_generations = args.log_generations
    return config.validate()


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(list(argv if argv is not None else sys.argv[1:]))
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        engine = SimulationEngine(build_config(args))
        reports = engine.run(args.generations)
    except EvolutionError as exc:
        logging.getLogger("evosim").error("%s", exc)
        return 1

    stats = engine.get_statistics()
    print(
        f"generations={len(reports)} population={stats.total_population} "
        f"variants={stats.unique_variants} extinct={engine.extinct}"
    )
    if args.history_csv:
        path = Path(args.history_csv).expanduser()
        history_frame(engine.get_history()).to_csv(path, index=False)
        print(f"history written to {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())

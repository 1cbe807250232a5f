"""Entry point for ``python -m colonist``.

Loads the default YAML config, sets up a named scenario and runs it
headless, printing a survival summary at the end.
"""

from __future__ import annotations

import argparse
import logging
import pathlib

from colonist.simulation.config import SimulationConfig
from colonist.simulation.scenarios import SCENARIOS, build_scenario

_DEFAULT_CONFIG = (
    pathlib.Path(__file__).resolve().parent.parent / "config" / "default.yaml"
)


def main() -> None:
    """Parse CLI args, build the scenario, run it, print the summary."""
    parser = argparse.ArgumentParser(
        prog="colonist",
        description="Colonist - colony production scheduler simulator",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=pathlib.Path,
        default=_DEFAULT_CONFIG,
        help="Path to YAML config file (default: config/default.yaml)",
    )
    parser.add_argument(
        "-s",
        "--scenario",
        default="full-wipe",
        choices=sorted(SCENARIOS),
        help="Starting scenario (default: full-wipe)",
    )
    parser.add_argument(
        "-t",
        "--ticks",
        type=int,
        default=None,
        help="Ticks to simulate (default: from config)",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: WARNING)",
    )
    parser.add_argument(
        "--list",
        action="store_true",
        help="List available scenarios and exit",
    )
    args = parser.parse_args()

    if args.list:
        for scenario in SCENARIOS.values():
            print(f"{scenario.name:<22} {scenario.description}")
        return

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )

    config = SimulationConfig.from_yaml(args.config)
    engine = build_scenario(args.scenario, config)
    result = engine.run(args.ticks if args.ticks is not None else config.ticks)

    print(f"scenario:          {args.scenario}")
    print(result.summary())


if __name__ == "__main__":
    main()

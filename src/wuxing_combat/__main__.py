from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from . import __version__
from .combat.engine import BattleEngine
from .combat.snapshot import load_encounter
from .config import CombatTuning
from .errors import WuxingCombatError
from .logging_config import configure_logging

logger = logging.getLogger(__name__)


def _level(verbosity: int) -> int:
    if verbosity == 1:
        return logging.INFO
    if verbosity >= 2:
        return logging.DEBUG
    return logging.WARNING


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="wuxing-combat",
        description="Resolve a Wuxing combat encounter and print its events as JSON",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("encounter", type=Path, help="Encounter YAML file")
    parser.add_argument("--seed", type=int, default=None, help="RNG seed (overrides the file's seed)")
    parser.add_argument("--tuning", type=Path, default=None, help="YAML overlay for combat tuning")
    parser.add_argument("--indent", type=int, default=2, help="JSON indentation (0 for compact)")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="Increase log verbosity (-v, -vv)")

    args = parser.parse_args(argv)
    configure_logging(_level(args.verbose))

    try:
        encounter = load_encounter(args.encounter)
        tuning = CombatTuning.load(args.tuning)
        seed = args.seed if args.seed is not None else encounter.seed
        engine = BattleEngine(
            [c.to_combatant() for c in encounter.combatants],
            config=encounter.config.to_config(),
            rng=seed,
            tuning=tuning,
        )
        result = engine.run()
    except WuxingCombatError as exc:
        message = exc.to_human() if hasattr(exc, "to_human") else str(exc)
        print(f"error: {message}", file=sys.stderr)
        return 2
    except OSError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    payload = result.to_dict()
    payload["seed"] = seed
    print(json.dumps(payload, indent=args.indent or None, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())

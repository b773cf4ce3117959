from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

import yaml

from . import __version__
from .config import ConfigProvider, load_config
from .engine.context import EngineContext
from .engine.loop import ReactionLoop
from .exceptions import ConfigError
from .logging_config import configure_logging

logger = logging.getLogger(__name__)


def _level_for(verbosity: int) -> int:
    if verbosity >= 2:
        return logging.DEBUG
    if verbosity == 1:
        return logging.INFO
    return logging.WARNING


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="elemental-reactions",
        description="Validate reaction configs and run the tick loop headless",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--config", default=None, help="YAML file merged over the built-in defaults")
    parser.add_argument("--strict", action="store_true", help="Fail instead of falling back to defaults")
    parser.add_argument("--dump-config", action="store_true", help="Print the effective config as YAML and exit")
    parser.add_argument("--max-steps", type=int, default=None, help="Stop after N ticks")
    parser.add_argument("--tick-rate", type=float, default=None, help="Target tick rate (Hz); 0 runs unthrottled")
    parser.add_argument("--seed", default=None, help="Master seed for reaction rolls")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="Increase log verbosity (-v, -vv)")

    args = parser.parse_args(argv)
    configure_logging(_level_for(args.verbose))

    try:
        config = load_config(args.config, strict=args.strict)
    except ConfigError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    if args.dump_config:
        print(yaml.safe_dump(config.model_dump(mode="json"), sort_keys=False), end="")
        return 0

    loop_settings = config.loop
    if args.max_steps is not None or args.tick_rate is not None:
        loop_settings = loop_settings.model_copy(
            update={
                k: v
                for k, v in (("max_steps", args.max_steps), ("tick_rate", args.tick_rate))
                if v is not None
            }
        )
    if loop_settings.max_steps is None:
        print("error: --max-steps (or loop.max_steps) is required for a headless run", file=sys.stderr)
        return 2

    ctx = EngineContext.create(provider=ConfigProvider(config), seed=args.seed)
    loop = ReactionLoop(ctx, loop_settings)
    loop.run()
    print(f"ran {loop.steps} ticks (seed {ctx.rngs.get_master_seed_hex()})")
    return 0


if __name__ == "__main__":
    sys.exit(main())

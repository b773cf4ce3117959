import logging
import os

ENV_LOG_LEVEL = "ELEMENTAL_REACTIONS_LOG_LEVEL"


def configure_logging(default_level: int = logging.WARNING) -> None:
    """Configure the root logger for command-line use.

    Respects ELEMENTAL_REACTIONS_LOG_LEVEL if present. The engine itself never
    installs handlers; embedding hosts configure logging their own way.
    """
    level_name = os.getenv(ENV_LOG_LEVEL)
    level = default_level
    if level_name:
        level = getattr(logging, level_name.upper(), default_level)
    logging.basicConfig(
        level=level,
        format="[%(asctime)s] [%(levelname)s] %(name)s: %(message)s",
    )

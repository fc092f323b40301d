import logging

from parthbot import config


def configure_logging(level: str | None = None) -> None:
    """Configure basic logging for the game and the engine."""
    level_str = level or config.LOG_LEVEL
    numeric_level = getattr(logging, level_str.upper(), logging.INFO)
    logging.basicConfig(level=numeric_level,
                        format="%(asctime)s - %(levelname)s - %(name)s - %(message)s")
    logging.getLogger().setLevel(numeric_level)
    logging.getLogger(__name__).debug("logging configured at %s", logging.getLevelName(numeric_level))

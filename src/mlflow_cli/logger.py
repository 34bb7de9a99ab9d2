"""Logging configuration for mlflow-cli."""

import logging
import sys

# Create logger for mlflow-cli
logger = logging.getLogger("mlflow_cli")


def setup_logger(level: int = logging.INFO) -> None:
    """Setup the mlflow-cli logger with default configuration.

    Log records go to stderr so that stdout stays reserved for command output
    (e.g. the run ID printed by ``run start``).

    Args:
        level: Logging level (default: INFO)
    """
    if logger.handlers:
        # Already configured
        return

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)

    formatter = logging.Formatter("mlflow-cli: %(message)s")
    handler.setFormatter(formatter)

    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False


def set_level(level: int) -> None:
    """Change the level of the mlflow-cli logger and its handlers."""
    logger.setLevel(level)
    for handler in logger.handlers:
        handler.setLevel(level)


# Initialize logger on import
setup_logger()

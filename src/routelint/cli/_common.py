"""Configuration and logging setup shared by the file-based commands."""

import argparse
import logging
import sys
from pathlib import Path

from routelint.config import LintConfig, load_config
from routelint.errors import ConfigurationError

logger = logging.getLogger("routelint.cli")


def configure(args: argparse.Namespace) -> LintConfig:
    """Load the lint configuration and set up logging.

    Exits with status 2 on configuration errors.
    """
    try:
        if args.config is not None:
            config = load_config(path=Path(args.config))
        else:
            config = load_config(Path(args.paths[0]))
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(2) from exc

    level = args.log_level or config.log_level
    logging.basicConfig(
        level=level.upper(),
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    logger.debug("Configuration: %s", config)
    return config

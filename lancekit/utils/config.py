"""
Configuration loading utility for lancekit.

This module provides a function to safely load, parse and validate the
YAML file that lists the LanceDB tables to register.
"""

import yaml
from pathlib import Path
import logging
from pydantic import ValidationError
import sys

from .config_models import LanceKitConfig

logger = logging.getLogger(__name__)


def load_config(config_path: str) -> LanceKitConfig:
    """
    Loads and validates a YAML configuration file from the specified path.

    If the file is not found, unreadable, or fails validation, it logs a
    detailed error and terminates the program.

    Args:
        config_path (str): The path to the YAML configuration file.

    Returns:
        LanceKitConfig: The validated configuration, with defaults applied.
    """
    path = Path(config_path)
    if not path.is_file():
        logger.error(f"Configuration file not found or is not a file: '{path}'")
        sys.exit(1)

    logger.debug(f"Attempting to load and validate configuration from: {path}")

    try:
        with open(path, "r", encoding="utf-8") as f:
            raw_config = yaml.safe_load(f)
        if not raw_config:
            logger.error(f"Configuration file is empty: '{path}'")
            sys.exit(1)

        config = LanceKitConfig.model_validate(raw_config)

        logger.info(
            f"Successfully loaded configuration for {len(config.tables)} table(s) from: '{path}'"
        )
        return config

    except (yaml.YAMLError, IOError) as e:
        logger.error(
            f"Error reading or parsing YAML file '{path}': {e}", exc_info=True
        )
        sys.exit(1)
    except ValidationError as e:
        logger.error(f"Configuration validation failed:\n{e}")
        sys.exit(1)


def find_table(config: LanceKitConfig, table_name: str):
    """Returns the registration for `table_name`, or None if it is not configured."""
    for table in config.tables:
        if table.table_name == table_name:
            return table
    return None

"""
Logging setup

Purpose: configure the root logger once for the web app and the terminal entry point.

Input: optional level name; defaults to config.LOG_LEVEL.

Output: none (side effect on the logging module).

Example: setup_logging("DEBUG") → request bodies and payloads become visible.
"""
import logging
from typing import Optional

import config


def setup_logging(level: Optional[str] = None) -> None:
    logging.basicConfig(
        level=(level or config.LOG_LEVEL).upper(),
        format=config.LOG_FORMAT,
    )

"""
Configuration settings for Topic Explorer.

Centralized configuration for the transport, the registry and the views.
"""

import os
from pathlib import Path

# Project paths
PROJECT_ROOT = Path(__file__).parent.parent
OUTPUT_ROOT = PROJECT_ROOT / "output"

# Transport
ZENOH_CONFIG_PATH = os.getenv("TOPIC_EXPLORER_CONFIG") or None  # None = Zenoh defaults
KEY_EXPR = "**"  # Subscribe to all topics
ZENOH_LOG_LEVEL = os.getenv("ZENOH_LOG_LEVEL", "error")  # Used when RUST_LOG is unset

# Topic tree
TOPIC_DELIMITER = "/"
TREE_ROOT_NAME = "root"

# Views
DEFAULT_MODE = "explorer"  # "explorer" or "table"
REFRESH_INTERVAL_SECONDS = 1.0  # Explorer redraw period
MESSAGE_TIME_FORMAT = "%H:%M:%S"
TABLE_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"
SHUTDOWN_TIMEOUT_SECONDS = 1.0  # Max wait for the ingestion thread on exit

# Logging
LOG_LEVEL = os.getenv("TOPIC_EXPLORER_LOG_LEVEL", "WARNING")  # DEBUG, INFO, WARNING, ERROR
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FILE = "topic_explorer.log"
LOG_TO_STDERR = False  # stderr carries only fatal one-line diagnostics

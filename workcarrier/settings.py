"""
This module contains the configuration settings for WorkCarrier.
It defines process titles, fork/respawn tuning, shutdown timeouts and logging
options. Values can be overridden through environment variables (or a .env file).
"""

import os
import pathlib
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv(override=True)

#* --- Core Paths ---
BASE_DIR = pathlib.Path(__file__).resolve().parent.parent  # Project Root
OVERRIDES_JSON_PATH = pathlib.Path(
    os.getenv("WORKCARRIER_OVERRIDES", str(BASE_DIR / "workcarrier.overrides.json"))
)

#* --- Process Titles ---
PROCESS_TITLE_PREFIX = os.getenv("WORKCARRIER_TITLE", "WorkCarrier")

#* --- Fork Settings ---
FORK_RETRY_ATTEMPTS = int(os.getenv("WORKCARRIER_FORK_RETRIES", "3"))
FORK_RETRY_BACKOFF = float(os.getenv("WORKCARRIER_FORK_BACKOFF", "0.5"))  # seconds, doubled per attempt
RESPAWN_DELAY = float(os.getenv("WORKCARRIER_RESPAWN_DELAY", "0"))        # seconds before each refill

#* --- Daemon Settings ---
DAEMON_NEW_SESSION = os.getenv("WORKCARRIER_NEW_SESSION", "true").lower() in ("true", "1", "yes")
KILL_WAIT_TIMEOUT = float(os.getenv("WORKCARRIER_KILL_WAIT_TIMEOUT", "5"))          # seconds to reap killed workers
STOP_TIMEOUT = float(os.getenv("WORKCARRIER_STOP_TIMEOUT", "10"))                  # seconds the 'stop' command waits for the daemon
PID_FILE_WAIT_TIMEOUT = float(os.getenv("WORKCARRIER_PID_FILE_WAIT_TIMEOUT", "5"))  # seconds a new daemon waits to be recorded

#* --- Logging ---
LOG_LEVEL = os.getenv("WORKCARRIER_LOG_LEVEL", "INFO").upper()
LOG_FILE_PATH = pathlib.Path(os.environ["WORKCARRIER_LOG_FILE"]) if os.getenv("WORKCARRIER_LOG_FILE") else None

#* --- Runtime Overrides ---
# Only these keys may be changed from the overrides JSON file.
MODIFIABLE_SETTINGS = {
    "FORK_RETRY_ATTEMPTS",
    "FORK_RETRY_BACKOFF",
    "RESPAWN_DELAY",
    "KILL_WAIT_TIMEOUT",
    "STOP_TIMEOUT",
    "PID_FILE_WAIT_TIMEOUT",
    "LOG_LEVEL",
}

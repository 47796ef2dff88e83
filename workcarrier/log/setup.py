import logging
import sys
from typing import Optional

from workcarrier.config import effective_settings as config


class MainFormatter(logging.Formatter):
    """
    Formatter that tags every line with the emitting pid.

    Supervisor, daemon and workers usually share one stream, so the pid is
    the only way to tell their lines apart.
    """

    def __init__(self) -> None:
        super().__init__('%(asctime)s - %(levelname)-8s - [%(name)s:%(process)d] - %(message)s')


def setup_logging(console_level: Optional[int] = None) -> None:
    """
    Configures the root logger for the application.
    This sets up a console handler and, when LOG_FILE_PATH is set, a file
    handler, clearing any previously configured handlers to prevent duplication.

    :param console_level: The logging level for the console output. Defaults to LOG_LEVEL.
    """
    if console_level is None:
        console_level = logging.getLevelName(config.LOG_LEVEL)
        if not isinstance(console_level, int):
            console_level = logging.INFO

    root_logger = logging.getLogger()
    # Set root level to lowest to capture all messages for handler filtering
    root_logger.setLevel(logging.DEBUG)

    # Clear any existing handlers to prevent re-adding them on re-runs
    if root_logger.hasHandlers():
        root_logger.handlers.clear()

    # --- Console Handler ---
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(MainFormatter())
    root_logger.addHandler(console_handler)

    # --- File Handler (conditional) ---
    # A detached daemon outlives the terminal it was started from.
    if config.LOG_FILE_PATH:
        try:
            config.LOG_FILE_PATH.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(config.LOG_FILE_PATH)
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(MainFormatter())
            root_logger.addHandler(file_handler)
        except OSError as e:
            root_logger.error(f"Failed to initialize file logging handler: {e}. Logging to file will be disabled.")

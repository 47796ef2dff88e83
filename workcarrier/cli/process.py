import logging
from typing import List
from workcarrier.cli.handler import display_status, print_help, stop_daemon

log = logging.getLogger(__name__)


def execute_command(command: str, args: List[str]) -> bool:
    """
    Executes a single console command.

    :param command: The main command string (e.g., 'stop').
    :param args: A list of arguments for the command.
    :return bool: True if the command succeeded.
    """
    log.debug(f"Executing command: {command}, args: {args}")
    command_map = {
        "status": display_status,
        "stop": stop_daemon,
        "help": print_help,
    }

    if command in command_map:
        return command_map[command](args)

    log.info(f"Unknown command: '{command}'. Type 'help' for a list of commands.")
    return False

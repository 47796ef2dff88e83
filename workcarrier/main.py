import sys
import logging

import workcarrier.cli as cli
from workcarrier.log.setup import setup_logging


def main() -> None:
    """The entry point of the management console."""
    args = sys.argv[1:]
    if "--verbose" in args:
        args.remove("--verbose")
        setup_logging(logging.DEBUG)
    else:
        setup_logging()

    if not args:
        cli.execute_command("help", [])
        sys.exit(1)

    command, command_args = args[0].lower(), args[1:]
    sys.exit(0 if cli.execute_command(command, command_args) else 1)


if __name__ == "__main__":
    main()

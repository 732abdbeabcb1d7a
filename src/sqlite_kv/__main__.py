"""
sqlite-kv Package Main Entry Point

Runs the CLI when the package is executed with ``python -m sqlite_kv``.
"""

import logging
import sys

from sqlite_kv.cli.typer_app import app
from sqlite_kv.shared.constants import CLIDefaults, CLIHelp

logger = logging.getLogger(__name__)


if __name__ == "__main__":
    try:
        app(prog_name=CLIHelp.APP_NAME)
    except KeyboardInterrupt:
        logger.info("Command interrupted by user")
        sys.exit(CLIDefaults.EXIT_ERROR)

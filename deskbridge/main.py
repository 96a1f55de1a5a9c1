# SPDX-FileCopyrightText: 2024-present The Deskbridge Authors
#
# SPDX-License-Identifier: MIT

import logging
import sys

# Follows reverse domain name notation
APP_ID = "io.github.Deskbridge"

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def run(argv=None):
    """
    Initializes and runs the Deskbridge application.

    Args:
        argv (list): Command line arguments, including the program name.

    Returns:
        int: The exit status of the application.
    """
    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)

    # Import after logging is configured so module loggers inherit it
    from .application import Application

    app = Application(application_id=APP_ID)
    return app.run(sys.argv if argv is None else argv)


def main():
    sys.exit(run())

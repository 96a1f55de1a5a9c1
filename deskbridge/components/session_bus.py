# SPDX-FileCopyrightText: 2024-present The Deskbridge Authors
#
# SPDX-License-Identifier: MIT

import logging

import gi

gi.require_version("Gio", "2.0")
from gi.repository import Gio, GLib

logger = logging.getLogger(__name__)


def get_session_bus():
    """Returns the shared session bus connection, or None if it cannot be reached."""
    try:
        bus = Gio.bus_get_sync(Gio.BusType.SESSION, None)
    except GLib.Error as e:
        logger.error(f"Failed to connect to D-Bus session bus: {e}")
        return None
    logger.debug("D-Bus session connection retrieved.")
    return bus

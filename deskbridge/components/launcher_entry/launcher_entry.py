# SPDX-FileCopyrightText: 2024-present The Deskbridge Authors
#
# SPDX-License-Identifier: MIT

import logging
import os

import gi

gi.require_version("GLib", "2.0")
from gi.repository import GLib

from deskbridge.components.session_bus import get_session_bus
from deskbridge.config import DEFAULT_DESKTOP_FILE_ID, DESKTOP_ENTRY_ENV

logger = logging.getLogger(__name__)

LAUNCHER_ENTRY_INTERFACE = "com.canonical.Unity.LauncherEntry"


def launcher_entry_uri(desktop_file_id=DEFAULT_DESKTOP_FILE_ID, environ=None):
    """
    Builds the application:// id docks use to match the badge to a launcher.

    The CHROME_DESKTOP hint wins over desktop_file_id when set.
    """
    environ = os.environ if environ is None else environ
    desktop_id = environ.get(DESKTOP_ENTRY_ENV) or desktop_file_id
    if not desktop_id.endswith(".desktop"):
        desktop_id = f"{desktop_id}.desktop"
    return f"application://{desktop_id}"


def update_launcher_count(count, connection=None, desktop_file_id=DEFAULT_DESKTOP_FILE_ID):
    """
    Broadcasts a LauncherEntry Update signal carrying a badge count.

    A count of 0 hides the badge.

    Returns:
        bool: False if the bus is unreachable or the signal could not be sent.
    """
    bus = connection or get_session_bus()
    if not bus:
        return False

    app_uri = launcher_entry_uri(desktop_file_id)
    properties = {
        'count': GLib.Variant('x', count),
        'count-visible': GLib.Variant('b', count != 0),
    }
    try:
        bus.emit_signal(
            None, # broadcast
            "/",
            LAUNCHER_ENTRY_INTERFACE,
            "Update",
            GLib.Variant("(sa{sv})", (app_uri, properties))
        )
        # Signals are queued; push them out before a short-lived caller exits
        bus.flush_sync(None)
    except GLib.Error as e:
        logger.error(f"Failed to emit LauncherEntry Update signal: {e}")
        return False
    logger.debug(f"Launcher count for {app_uri} set to {count}")
    return True

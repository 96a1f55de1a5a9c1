# SPDX-FileCopyrightText: 2024-present The Deskbridge Authors
#
# SPDX-License-Identifier: MIT

import logging

import gi

gi.require_version("Gio", "2.0")
from gi.repository import Gio, GLib

from deskbridge.components.session_bus import get_session_bus
from deskbridge.config import DEFAULT_CALL_TIMEOUT

logger = logging.getLogger(__name__)

PORTAL_SERVICE = "org.freedesktop.portal.Desktop"
PORTAL_PATH = "/org/freedesktop/portal/desktop"
BACKGROUND_INTERFACE = "org.freedesktop.portal.Background"


def build_background_options(autostart, commandline=None):
    """Options for RequestBackground; 'commandline' is only sent when non-empty."""
    options = {'autostart': GLib.Variant('b', bool(autostart))}
    if commandline:
        options['commandline'] = GLib.Variant('as', list(commandline))
    return options


def request_background(autostart, commandline=None, connection=None, timeout=DEFAULT_CALL_TIMEOUT):
    """
    Asks the Background portal to let the application keep running in the
    background.

    The portal answers asynchronously through a Request object; only the
    call itself is checked here.

    Args:
        autostart (bool): Whether to start the application on login.
        commandline (list[str], optional): Command used for autostart.

    Returns:
        bool: True if the portal accepted the call.
    """
    bus = connection or get_session_bus()
    if not bus:
        return False

    options = build_background_options(autostart, commandline)
    try:
        bus.call_sync(
            PORTAL_SERVICE,
            PORTAL_PATH,
            BACKGROUND_INTERFACE,
            "RequestBackground",
            GLib.Variant("(sa{sv})", ("", options)), # no parent window
            None,
            Gio.DBusCallFlags.NONE,
            timeout,
            None
        )
    except GLib.Error as e:
        logger.error(f"Failed to call RequestBackground: {e}")
        return False
    logger.info(f"Requested background permission (autostart={bool(autostart)}).")
    return True

# SPDX-FileCopyrightText: 2024-present The Deskbridge Authors
#
# SPDX-License-Identifier: MIT

import logging
import math

import gi

gi.require_version("Gio", "2.0")
from gi.repository import Gio, GLib

from deskbridge.components.session_bus import get_session_bus
from deskbridge.config import DEFAULT_CALL_TIMEOUT

logger = logging.getLogger(__name__)

PORTAL_SERVICE = "org.freedesktop.portal.Desktop"
PORTAL_PATH = "/org/freedesktop/portal/desktop"
SETTINGS_INTERFACE = "org.freedesktop.portal.Settings"
APPEARANCE_NAMESPACE = "org.freedesktop.appearance"
ACCENT_COLOR_KEY = "accent-color"


def _channel_to_byte(value):
    """Scales a [0, 1] channel to 0-255, or None when it is out of range."""
    if not math.isfinite(value) or value < 0.0 or value > 1.0:
        return None
    # Round half away from zero
    return int(math.floor(value * 255.0 + 0.5))


def decode_accent_color(value):
    """
    Decodes the value returned by Settings.Read into a packed 0xRRGGBB integer.

    Portals wrap the (ddd) tuple in one or more variant layers, all of which
    are peeled off here.

    Args:
        value (GLib.Variant): The Read reply, either the ``(v)`` tuple or
            the variant it contains.

    Returns:
        int | None: The color, or None for any unexpected shape or value.
    """
    inner = value
    if inner.get_type_string() == "(v)":
        inner = inner.get_child_value(0)
    while inner.get_type_string() == "v":
        inner = inner.get_variant()

    type_string = inner.get_type_string()
    if not type_string.startswith("(") or inner.n_children() < 3:
        logger.warning(f"Accent color is not a tuple of 3 doubles: {type_string}")
        return None

    channels = []
    for index in range(3):
        child = inner.get_child_value(index)
        if child.get_type_string() != "d":
            logger.warning(f"Accent color channel {index} has type {child.get_type_string()}, expected d")
            return None
        channel = _channel_to_byte(child.get_double())
        if channel is None:
            logger.warning(f"Accent color channel {index} out of range: {child.get_double()}")
            return None
        channels.append(channel)

    red, green, blue = channels
    return (red << 16) | (green << 8) | blue


def get_accent_color(connection=None, timeout=DEFAULT_CALL_TIMEOUT):
    """
    Reads the desktop accent color from the settings portal.

    Returns:
        int | None: The color as 0xRRGGBB, or None if unavailable.
    """
    bus = connection or get_session_bus()
    if not bus:
        return None

    try:
        reply = bus.call_sync(
            PORTAL_SERVICE,
            PORTAL_PATH,
            SETTINGS_INTERFACE,
            "Read",
            GLib.Variant("(ss)", (APPEARANCE_NAMESPACE, ACCENT_COLOR_KEY)),
            GLib.VariantType.new("(v)"),
            Gio.DBusCallFlags.NONE,
            timeout,
            None
        )
    except GLib.Error as e:
        logger.error(f"Failed to read accent color from settings portal: {e}")
        return None

    color = decode_accent_color(reply)
    if color is not None:
        logger.debug(f"Accent color: #{color:06x}")
    return color

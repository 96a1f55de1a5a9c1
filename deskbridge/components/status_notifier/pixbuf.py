# SPDX-FileCopyrightText: 2024-present The Deskbridge Authors
#
# SPDX-License-Identifier: MIT

import logging

import gi

gi.require_version("GdkPixbuf", "2.0")
from gi.repository import GdkPixbuf, GLib

from deskbridge.components.status_notifier.icon_pixmap import BYTES_PER_PIXEL, pack_icon_pixmap

logger = logging.getLogger(__name__)

DEFAULT_ICON_SIZE = 22


def icon_pixmap_from_pixbuf(pixbuf: GdkPixbuf.Pixbuf) -> bytes:
    """
    Converts a pixbuf into an icon buffer.

    GdkPixbuf stores RGBA rows padded to the rowstride; StatusNotifierItem
    wants tightly packed ARGB rows.
    """
    if not pixbuf.get_has_alpha():
        pixbuf = pixbuf.add_alpha(False, 0, 0, 0)

    width = pixbuf.get_width()
    height = pixbuf.get_height()
    rowstride = pixbuf.get_rowstride()
    pixels = pixbuf.get_pixels()
    row_size = width * BYTES_PER_PIXEL

    argb = bytearray(row_size * height)
    for y in range(height):
        row = pixels[y * rowstride:y * rowstride + row_size]
        start = y * row_size
        end = start + row_size
        argb[start:end:4] = row[3::4]     # A
        argb[start + 1:end:4] = row[0::4] # R
        argb[start + 2:end:4] = row[1::4] # G
        argb[start + 3:end:4] = row[2::4] # B
    return pack_icon_pixmap(width, height, argb)


def icon_pixmap_from_file(path, size=None):
    """
    Loads an image file into an icon buffer, optionally scaled to size x size.

    Returns:
        bytes | None: None if the image cannot be loaded.
    """
    try:
        if size:
            pixbuf = GdkPixbuf.Pixbuf.new_from_file_at_size(path, size, size)
        else:
            pixbuf = GdkPixbuf.Pixbuf.new_from_file(path)
    except GLib.Error as e:
        logger.error(f"Failed to load icon image {path}: {e}")
        return None
    logger.debug(f"Loaded icon {path} ({pixbuf.get_width()}x{pixbuf.get_height()})")
    return icon_pixmap_from_pixbuf(pixbuf)


def solid_icon_pixmap(rgb, size=DEFAULT_ICON_SIZE):
    """Renders an opaque size x size square filled with a 0xRRGGBB color."""
    pixbuf = GdkPixbuf.Pixbuf.new(GdkPixbuf.Colorspace.RGB, True, 8, size, size)
    pixbuf.fill(((rgb & 0xFFFFFF) << 8) | 0xFF)
    return icon_pixmap_from_pixbuf(pixbuf)

# SPDX-FileCopyrightText: 2024-present The Deskbridge Authors
#
# SPDX-License-Identifier: MIT

"""
Icon buffer layout shared with the host:

    int32 width | int32 height | width * height * 4 bytes of ARGB32

Both integers use host byte order. The pixel rows are passed through to
the ``IconPixmap`` property (``a(iiay)``) as they are.
"""

import logging
import struct

import gi

gi.require_version("GLib", "2.0")
from gi.repository import GLib

logger = logging.getLogger(__name__)

HEADER = struct.Struct("=ii")
BYTES_PER_PIXEL = 4


def pack_icon_pixmap(width, height, argb):
    """Builds an icon buffer from dimensions and ARGB32 pixel data."""
    return HEADER.pack(width, height) + bytes(argb)


def unpack_icon_pixmap(buffer):
    """
    Splits an icon buffer into its header and pixel data.

    Returns:
        tuple | None: (width, height, pixels), or None if the buffer is
        too short to hold the header.
    """
    if len(buffer) < HEADER.size:
        return None
    width, height = HEADER.unpack_from(buffer, 0)
    return width, height, bytes(buffer[HEADER.size:])


def check_icon_pixmap(buffer):
    """
    Logs a warning when the declared size disagrees with the pixel data.

    The buffer is never rejected or corrected; matching the header to the
    data is up to the caller.
    """
    unpacked = unpack_icon_pixmap(buffer)
    if unpacked is None:
        if buffer:
            logger.warning(f"Icon buffer of {len(buffer)} bytes has no room for a header, treating as no icon.")
        return False
    width, height, pixels = unpacked
    expected = width * height * BYTES_PER_PIXEL
    if width < 0 or height < 0 or expected != len(pixels):
        logger.warning(f"Icon buffer declares {width}x{height} ({expected} bytes) "
                       f"but carries {len(pixels)} bytes of pixel data.")
        return False
    return True


def icon_pixmap_variant(buffer):
    """Wire encoding of the ``IconPixmap`` property: one (iiay) entry, or an empty array."""
    unpacked = unpack_icon_pixmap(buffer)
    if unpacked is None:
        return GLib.Variant("a(iiay)", [])
    width, height, pixels = unpacked
    # Wrap the pixel bytes directly instead of building 'ay' one byte at a time
    data = GLib.Variant.new_from_bytes(GLib.VariantType.new("ay"), GLib.Bytes.new(pixels), True)
    entry = GLib.VariantBuilder.new(GLib.VariantType.new("(iiay)"))
    entry.add_value(GLib.Variant.new_int32(width))
    entry.add_value(GLib.Variant.new_int32(height))
    entry.add_value(data)
    pixmaps = GLib.VariantBuilder.new(GLib.VariantType.new("a(iiay)"))
    pixmaps.add_value(entry.end())
    return pixmaps.end()

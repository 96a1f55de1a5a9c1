"""
Icon conversion through GdkPixbuf.

Needs the GdkPixbuf 2.0 typelib (gir1.2-gdkpixbuf-2.0 or equivalent); the
application module imports these helpers too, so it is a hard requirement
of the test suite rather than an optional one.
"""

import struct

import gi

gi.require_version("GdkPixbuf", "2.0")

from gi.repository import GdkPixbuf, GLib

from deskbridge.components.status_notifier.icon_pixmap import unpack_icon_pixmap
from deskbridge.components.status_notifier.pixbuf import (
    icon_pixmap_from_file,
    icon_pixmap_from_pixbuf,
    solid_icon_pixmap,
)


def pixbuf_from_rgba(width, height, data, has_alpha=True, rowstride=None):
    channels = 4 if has_alpha else 3
    rowstride = rowstride or width * channels
    return GdkPixbuf.Pixbuf.new_from_bytes(
        GLib.Bytes.new(data), GdkPixbuf.Colorspace.RGB, has_alpha, 8, width, height, rowstride)


class TestIconPixmapFromPixbuf:
    """RGBA pixbuf rows to packed ARGB."""

    def test_reorders_channels(self):
        # red, then semi-transparent blue
        pixbuf = pixbuf_from_rgba(2, 1, bytes([0xFF, 0x00, 0x00, 0xFF, 0x00, 0x00, 0xFF, 0x80]))
        width, height, pixels = unpack_icon_pixmap(icon_pixmap_from_pixbuf(pixbuf))
        assert (width, height) == (2, 1)
        assert pixels == bytes([0xFF, 0xFF, 0x00, 0x00, 0x80, 0x00, 0x00, 0xFF])

    def test_rgb_becomes_opaque(self):
        pixbuf = pixbuf_from_rgba(1, 1, bytes([0x10, 0x20, 0x30, 0x00]), has_alpha=False, rowstride=4)
        _w, _h, pixels = unpack_icon_pixmap(icon_pixmap_from_pixbuf(pixbuf))
        assert pixels == bytes([0xFF, 0x10, 0x20, 0x30])

    def test_skips_row_padding(self):
        rows = (bytes([1, 2, 3, 4]) + b"\xee" * 4) + bytes([5, 6, 7, 8])
        pixbuf = pixbuf_from_rgba(1, 2, rows, rowstride=8)
        _w, _h, pixels = unpack_icon_pixmap(icon_pixmap_from_pixbuf(pixbuf))
        assert pixels == bytes([4, 1, 2, 3, 8, 5, 6, 7])


class TestIconFiles:

    def test_solid_icon(self):
        buffer = solid_icon_pixmap(0x3584E4, size=4)
        assert buffer[:8] == struct.pack("=ii", 4, 4)
        assert buffer[8:] == bytes([0xFF, 0x35, 0x84, 0xE4]) * 16

    def test_missing_file(self, tmp_path):
        assert icon_pixmap_from_file(str(tmp_path / "missing.png")) is None

import struct

from deskbridge.components.status_notifier.icon_pixmap import (
    check_icon_pixmap,
    icon_pixmap_variant,
    pack_icon_pixmap,
    unpack_icon_pixmap,
)


class TestIconBuffer:
    """Header parsing of the icon buffer."""

    def test_pack_uses_host_order_header(self):
        buffer = pack_icon_pixmap(3, 2, b"\xff" * 24)
        assert buffer[:8] == struct.pack("=ii", 3, 2)
        assert len(buffer) == 32

    def test_unpack(self):
        pixels = bytes(range(16))
        assert unpack_icon_pixmap(pack_icon_pixmap(2, 2, pixels)) == (2, 2, pixels)

    def test_short_buffer_is_no_icon(self):
        assert unpack_icon_pixmap(b"") is None
        assert unpack_icon_pixmap(b"\x01" * 7) is None

    def test_header_only(self):
        assert unpack_icon_pixmap(struct.pack("=ii", 0, 0)) == (0, 0, b"")

    def test_check_accepts_consistent_buffer(self):
        assert check_icon_pixmap(pack_icon_pixmap(1, 1, b"\x00" * 4))

    def test_check_flags_mismatch(self, caplog):
        assert not check_icon_pixmap(pack_icon_pixmap(8, 8, b"\x00" * 4))
        assert "declares 8x8 (256 bytes) but carries 4 bytes" in caplog.text

    def test_check_flags_negative_size(self):
        assert not check_icon_pixmap(struct.pack("=ii", -1, 1))

    def test_empty_buffer_is_not_warned(self, caplog):
        assert not check_icon_pixmap(b"")
        assert caplog.text == ""


class TestIconPixmapVariant:

    def test_empty(self):
        variant = icon_pixmap_variant(b"\x00" * 4)
        assert variant.get_type_string() == "a(iiay)"
        assert variant.n_children() == 0

    def test_single_entry(self):
        pixels = b"\xff\x00\x00\xff\xff\x00\xff\x00"
        variant = icon_pixmap_variant(pack_icon_pixmap(2, 1, pixels))
        assert variant.get_type_string() == "a(iiay)"
        assert variant.n_children() == 1
        entry = variant.get_child_value(0)
        assert entry.get_child_value(0).get_int32() == 2
        assert entry.get_child_value(1).get_int32() == 1
        assert entry.get_child_value(2).get_data_as_bytes().get_data() == pixels

    def test_header_only_has_empty_pixels(self):
        variant = icon_pixmap_variant(pack_icon_pixmap(0, 0, b""))
        entry = variant.get_child_value(0)
        assert entry.get_child_value(2).n_children() == 0

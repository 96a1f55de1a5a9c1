from deskbridge.components.portals.background import (
    BACKGROUND_INTERFACE,
    build_background_options,
    request_background,
)


class TestBackgroundOptions:

    def test_autostart_only(self):
        options = build_background_options(True)
        assert set(options) == {"autostart"}
        assert options["autostart"].get_boolean() is True

    def test_empty_commandline_is_omitted(self):
        assert set(build_background_options(False, [])) == {"autostart"}

    def test_commandline(self):
        options = build_background_options(True, ["deskbridge", "--minimized"])
        assert options["commandline"].get_type_string() == "as"
        assert options["commandline"].unpack() == ["deskbridge", "--minimized"]


class TestRequestBackground:

    def test_calls_portal(self, connection):
        assert request_background(True, ["deskbridge"], connection=connection, timeout=800)

        call = connection.calls_to("RequestBackground")[0]
        assert call["interface"] == BACKGROUND_INTERFACE
        assert call["bus_name"] == "org.freedesktop.portal.Desktop"
        assert call["timeout"] == 800
        parent_window, options = call["parameters"].unpack()
        assert parent_window == ""
        assert options == {"autostart": True, "commandline": ["deskbridge"]}

    def test_without_commandline(self, connection):
        assert request_background(False, connection=connection)
        _parent, options = connection.calls_to("RequestBackground")[0]["parameters"].unpack()
        assert options == {"autostart": False}

    def test_portal_error(self, connection):
        connection.failures.add((BACKGROUND_INTERFACE, "RequestBackground"))
        assert request_background(True, connection=connection) is False

    def test_no_bus(self, monkeypatch):
        monkeypatch.setattr("deskbridge.components.portals.background.get_session_bus", lambda: None)
        assert request_background(True) is False

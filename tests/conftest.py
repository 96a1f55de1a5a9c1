"""Shared fixtures: an in-memory stand-in for Gio.DBusConnection."""

import pytest

import gi

gi.require_version("Gio", "2.0")
from gi.repository import Gio, GLib

from deskbridge.config import Settings


class FakeConnection:
    """
    Records what the code under test does with the bus.

    call_sync answers from ``replies`` keyed by (interface, method) and
    raises GLib.Error for keys listed in ``failures``.
    """
    def __init__(self):
        self.objects = {}
        self.unregistered = []
        self.signals = []
        self.calls = []
        self.replies = {
            ("org.freedesktop.DBus", "RequestName"): GLib.Variant("(u)", (1,)),
        }
        self.failures = set()
        self.fail_register = False
        self.fail_emit = False
        self.flushed = 0
        self._next_id = 1

    def register_object(self, object_path, interface_info, method_call_closure,
                        get_property_closure, set_property_closure):
        if self.fail_register:
            raise GLib.Error("An object is already exported for the interface")
        registration_id = self._next_id
        self._next_id += 1
        self.objects[registration_id] = {
            "path": object_path,
            "interface": interface_info,
            "method_call": method_call_closure,
            "get_property": get_property_closure,
        }
        return registration_id

    def unregister_object(self, registration_id):
        self.unregistered.append(registration_id)
        return self.objects.pop(registration_id, None) is not None

    def emit_signal(self, destination, object_path, interface_name, signal_name, parameters):
        if self.fail_emit:
            raise GLib.Error("The connection is closed")
        self.signals.append((destination, object_path, interface_name, signal_name, parameters))
        return True

    def call_sync(self, bus_name, object_path, interface_name, method_name, parameters,
                  reply_type, flags, timeout_msec, cancellable):
        self.calls.append({
            "bus_name": bus_name,
            "object_path": object_path,
            "interface": interface_name,
            "method": method_name,
            "parameters": parameters,
            "timeout": timeout_msec,
        })
        key = (interface_name, method_name)
        if key in self.failures:
            raise GLib.Error(f"The name {bus_name} was not provided by any .service files")
        return self.replies.get(key, GLib.Variant("()", ()))

    def flush_sync(self, cancellable):
        self.flushed += 1
        return True

    def signal_names(self):
        return [signal[3] for signal in self.signals]

    def calls_to(self, method_name):
        return [call for call in self.calls if call["method"] == method_name]


class FakeInvocation:
    def __init__(self):
        self.returned = []
        self.errors = []

    def return_value(self, value):
        self.returned.append(value)

    def return_error_literal(self, domain, code, message):
        self.errors.append((domain, code, message))


@pytest.fixture
def connection():
    return FakeConnection()


@pytest.fixture
def settings():
    return Settings(item_id="deskbridge-test", title="Deskbridge Test", call_timeout=1234)


@pytest.fixture
def invocation():
    return FakeInvocation()


@pytest.fixture(autouse=True)
def _no_desktop_hint(monkeypatch):
    monkeypatch.delenv("CHROME_DESKTOP", raising=False)

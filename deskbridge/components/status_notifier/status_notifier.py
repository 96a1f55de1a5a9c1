# SPDX-FileCopyrightText: 2024-present The Deskbridge Authors
#
# SPDX-License-Identifier: MIT

import enum
import logging
import os
import threading

import gi

gi.require_version("Gio", "2.0")
from gi.repository import Gio, GLib, GObject

from deskbridge.components.session_bus import get_session_bus
from deskbridge.components.status_notifier.icon_pixmap import check_icon_pixmap, icon_pixmap_variant
from deskbridge.config import load_settings

logger = logging.getLogger(__name__)

SNI_INTERFACE = "org.kde.StatusNotifierItem"
SNI_OBJECT_PATH = "/StatusNotifierItem"
WATCHER_SERVICE = "org.kde.StatusNotifierWatcher"
WATCHER_PATH = "/StatusNotifierWatcher"
# Placeholder, no dbusmenu object is exported
MENU_OBJECT_PATH = "/MenuBar"

# org.freedesktop.DBus.RequestName flags and replies
NAME_FLAG_ALLOW_REPLACEMENT = 0x1
NAME_FLAG_REPLACE_EXISTING = 0x2
NAME_REPLY_PRIMARY_OWNER = 1
NAME_REPLY_ALREADY_OWNER = 4

# Reference: https://freedesktop.org/wiki/Specifications/StatusNotifierItem/
STATUS_NOTIFIER_ITEM_INTERFACE_XML = """
<node>
  <interface name="org.kde.StatusNotifierItem">
    <property name="Category" type="s" access="read"/>
    <property name="Id" type="s" access="read"/>
    <property name="Title" type="s" access="read"/>
    <property name="Status" type="s" access="read"/>
    <property name="IconName" type="s" access="read"/>
    <property name="IconPixmap" type="a(iiay)" access="read"/>
    <property name="AttentionIconName" type="s" access="read"/>
    <property name="ToolTip" type="(sa(iiay)ss)" access="read"/>
    <property name="ItemIsMenu" type="b" access="read"/>
    <property name="Menu" type="o" access="read"/>

    <method name="Activate">
      <arg direction="in" name="x" type="i"/>
      <arg direction="in" name="y" type="i"/>
    </method>
    <method name="SecondaryActivate">
      <arg direction="in" name="x" type="i"/>
      <arg direction="in" name="y" type="i"/>
    </method>
    <method name="ContextMenu">
      <arg direction="in" name="x" type="i"/>
      <arg direction="in" name="y" type="i"/>
    </method>
    <method name="Scroll">
      <arg direction="in" name="delta" type="i"/>
      <arg direction="in" name="orientation" type="s"/>
    </method>

    <signal name="NewIcon"/>
    <signal name="NewTitle"/>
    <signal name="NewStatus">
      <arg name="status" type="s"/>
    </signal>
  </interface>
</node>
"""

# D-Bus method name -> GObject signal re-emitted for the host
METHOD_SIGNALS = {
    "Activate": "activate",
    "SecondaryActivate": "secondary-activate",
    "ContextMenu": "context-menu",
    "Scroll": "scroll",
}


class ItemStatus(enum.Enum):
    ACTIVE = "Active"
    PASSIVE = "Passive"
    NEEDS_ATTENTION = "NeedsAttention"


class StatusNotifierItem(GObject.Object):
    """
    A tray icon exported on the session bus using the StatusNotifierItem D-Bus protocol.

    The object is exported and the per-process bus name is claimed by
    initialize(). Registration with the StatusNotifierWatcher is deferred
    until the first icon arrives, since no watcher may be running at
    startup; a failed registration is retried by the next icon update.

    Property reads arrive from the GDBus dispatch context while updates
    come from the host, so the presentation state is guarded by a lock.
    """
    __gtype_name__ = 'DeskbridgeStatusNotifierItem'

    __gsignals__ = {
        'activate': (GObject.SignalFlags.RUN_FIRST, None, (int, int)),
        'secondary-activate': (GObject.SignalFlags.RUN_FIRST, None, (int, int)),
        'context-menu': (GObject.SignalFlags.RUN_FIRST, None, (int, int)),
        'scroll': (GObject.SignalFlags.RUN_FIRST, None, (int, str)),
    }

    @GObject.Property(type=str)
    def title(self):
        with self._lock:
            return self._title

    @GObject.Property(type=str, default=ItemStatus.ACTIVE.value)
    def status(self):
        with self._lock:
            return self._status.value

    @GObject.Property(type=bool, default=False)
    def registered(self):
        """Whether the StatusNotifierWatcher has accepted this item."""
        with self._lock:
            return self._registered

    def __init__(self, connection=None, settings=None):
        super().__init__()
        self._settings = settings or load_settings()
        self._lock = threading.Lock()
        self._registration_lock = threading.Lock()
        self._registration_id: int = 0
        self._registered: bool = False
        self._status: ItemStatus = ItemStatus.ACTIVE
        self._title: str = self._settings.title
        self._icon_pixmap: bytes = b""
        self._bus_name: str | None = None
        self._object_path: str | None = None

        self._bus: Gio.DBusConnection | None = connection or get_session_bus()
        if not self._bus:
            logger.error("No session bus available, StatusNotifierItem stays inactive.")
            return

        # Format: org.kde.StatusNotifierItem-<PID>-<instance>
        self._bus_name = f"{SNI_INTERFACE}-{os.getpid()}-1"
        self._object_path = SNI_OBJECT_PATH

    @property
    def bus_name(self):
        return self._bus_name

    @property
    def object_path(self):
        return self._object_path

    @property
    def icon_pixmap(self):
        with self._lock:
            return self._icon_pixmap

    def initialize(self):
        """
        Exports the item on the bus and claims its well-known name.

        Returns:
            bool: True if both steps succeeded. On failure nothing stays
            exported and the instance should be discarded.
        """
        if not self._bus:
            return False

        try:
            node_info = Gio.DBusNodeInfo.new_for_xml(STATUS_NOTIFIER_ITEM_INTERFACE_XML)
        except GLib.Error as e:
            logger.error(f"Failed to parse D-Bus interface XML: {e}")
            return False
        interface_info = node_info.lookup_interface(SNI_INTERFACE)

        try:
            self._registration_id = self._bus.register_object(
                object_path=self._object_path,
                interface_info=interface_info,
                method_call_closure=self._handle_method_call,
                get_property_closure=self._handle_get_property,
                set_property_closure=None # Properties are read-only
            )
        except GLib.Error as e:
            logger.error(f"Failed to register StatusNotifierItem object: {e}")
            self._registration_id = 0
            return False
        if self._registration_id <= 0:
            logger.error("Failed to register StatusNotifierItem object.")
            self._registration_id = 0
            return False
        logger.info(f"Registered StatusNotifierItem object at {self._object_path}")

        if not self._request_name():
            self._unregister_object()
            return False
        return True

    def _request_name(self):
        """Claims the per-process bus name, letting a later instance replace us."""
        flags = NAME_FLAG_ALLOW_REPLACEMENT | NAME_FLAG_REPLACE_EXISTING
        try:
            reply = self._bus.call_sync(
                "org.freedesktop.DBus",
                "/org/freedesktop/DBus",
                "org.freedesktop.DBus",
                "RequestName",
                GLib.Variant("(su)", (self._bus_name, flags)),
                GLib.VariantType.new("(u)"),
                Gio.DBusCallFlags.NONE,
                self._settings.call_timeout,
                None
            )
        except GLib.Error as e:
            logger.error(f"Failed to request D-Bus name '{self._bus_name}': {e}")
            return False

        result = reply.get_child_value(0).get_uint32()
        if result not in (NAME_REPLY_PRIMARY_OWNER, NAME_REPLY_ALREADY_OWNER):
            logger.error(f"Could not become owner of '{self._bus_name}' (RequestName reply {result}).")
            return False
        logger.info(f"Acquired D-Bus name: {self._bus_name}")
        return True

    def _register_with_watcher(self):
        """
        Register this item with the StatusNotifierWatcher, at most once.

        Returns:
            tuple[bool, bool]: (ok, registered by this call). A caller that
            lost the race to another registration gets (True, False).
        """
        if not self._bus:
            return True, False

        with self._registration_lock:
            with self._lock:
                if self._registered:
                    return True, False
                status = self._status.value

            logger.debug(f"Calling RegisterStatusNotifierItem for '{self._bus_name}'.")
            try:
                self._bus.call_sync(
                    WATCHER_SERVICE,
                    WATCHER_PATH,
                    WATCHER_SERVICE,
                    "RegisterStatusNotifierItem",
                    GLib.Variant("(s)", (self._bus_name,)),
                    None,
                    Gio.DBusCallFlags.NONE,
                    self._settings.call_timeout,
                    None
                )
            except GLib.Error as e:
                # Common reason: no watcher running (no tray host or extension)
                logger.error(f"Failed to register with StatusNotifierWatcher: {e}")
                return False, False

            with self._lock:
                self._registered = True
        logger.info(f"Registered with StatusNotifierWatcher as {self._bus_name}")
        self.notify("registered")
        self._emit_signal("NewStatus", GLib.Variant("(s)", (status,)))
        return True, True

    def set_icon_pixmap(self, pixmap_data):
        """
        Stores a new icon buffer and announces it.

        The first successful call registers with the watcher instead of
        emitting NewIcon; later calls emit NewIcon.

        Args:
            pixmap_data (bytes): Icon buffer, see icon_pixmap.pack_icon_pixmap.

        Returns:
            bool: False if there is no bus, registration failed or the
            signal could not be emitted.
        """
        if not self._bus:
            return False

        check_icon_pixmap(pixmap_data)
        with self._lock:
            # Stored before registering so a retry announces the latest icon
            self._icon_pixmap = bytes(pixmap_data)
            registered = self._registered

        if not registered:
            ok, newly_registered = self._register_with_watcher()
            if not ok:
                logger.warning("Icon stored, but registration with the watcher failed; will retry on next update.")
                return False
            if newly_registered:
                return True
            # Another update registered meanwhile; this icon still needs announcing
        return self._emit_signal("NewIcon")

    def set_title(self, title):
        """Updates the title, emitting NewTitle only when it actually changes."""
        if not self._bus:
            return True
        with self._lock:
            if title == self._title:
                return True
            self._title = title
        self.notify("title")
        return self._emit_signal("NewTitle")

    def lookup_property(self, property_name):
        """
        Returns the wire value of a StatusNotifierItem property.

        Returns:
            GLib.Variant | None: None for unknown properties.
        """
        with self._lock:
            title = self._title
            status = self._status.value
            icon_pixmap = self._icon_pixmap

        if property_name == "Category":
            return GLib.Variant("s", self._settings.category)
        elif property_name == "Id":
            return GLib.Variant("s", self._settings.item_id)
        elif property_name == "Title":
            return GLib.Variant("s", title)
        elif property_name == "Status":
            return GLib.Variant("s", status)
        elif property_name in ("IconName", "AttentionIconName"):
            # The icon is sent as pixel data, not a theme name
            return GLib.Variant("s", "")
        elif property_name == "IconPixmap":
            return icon_pixmap_variant(icon_pixmap)
        elif property_name == "ToolTip":
            # (icon name, icon pixmaps, title, description)
            return GLib.Variant("(sa(iiay)ss)", ("", [], title, ""))
        elif property_name == "ItemIsMenu":
            return GLib.Variant("b", False)
        elif property_name == "Menu":
            return GLib.Variant("o", MENU_OBJECT_PATH)
        logger.warning(f"GetProperty request for unknown SNI property: {property_name}")
        return None

    def invoke_method(self, method_name, parameters):
        """
        Dispatches a StatusNotifierItem method call.

        Every known method is acknowledged with an empty reply; the call is
        re-emitted as a GObject signal for the host to act on.

        Returns:
            bool: False if the method is not part of the interface.
        """
        signal_name = METHOD_SIGNALS.get(method_name)
        if signal_name is None:
            return False
        args = parameters.unpack() if parameters is not None else ()
        logger.debug(f"{method_name} requested with {args}")
        self.emit(signal_name, *args)
        return True

    def _handle_method_call(self, connection, sender, object_path, interface_name,
                            method_name, parameters, invocation):
        """Handles incoming D-Bus method calls for StatusNotifierItem."""
        logger.debug(f"_handle_method_call: Received call {interface_name}.{method_name} from {sender} on {object_path}")
        if interface_name == SNI_INTERFACE and self.invoke_method(method_name, parameters):
            invocation.return_value(None)
            return
        logger.warning(f"Received unknown method call: {interface_name}.{method_name}")
        invocation.return_error_literal(Gio.dbus_error_quark(), Gio.DBusError.UNKNOWN_METHOD,
                                        f"Unknown method {method_name}")

    def _handle_get_property(self, connection, sender, object_path, interface_name, property_name):
        """Handles incoming D-Bus property get requests."""
        logger.debug(f"_handle_get_property: Received request for {interface_name}.{property_name} from {sender}")
        if interface_name != SNI_INTERFACE:
            logger.warning(f"GetProperty request for unknown interface: {interface_name}")
            return None
        return self.lookup_property(property_name)

    def _emit_signal(self, signal_name, parameters=None):
        """Helper to emit a D-Bus signal on the StatusNotifierItem interface."""
        if not self._bus or self._registration_id == 0:
            logger.warning(f"Cannot emit signal '{signal_name}', D-Bus not fully setup.")
            return False
        try:
            self._bus.emit_signal(
                None, # destination_bus_name (None for broadcast)
                self._object_path,
                SNI_INTERFACE,
                signal_name,
                parameters
            )
        except GLib.Error as e:
            logger.error(f"Error emitting D-Bus signal {signal_name}: {e}")
            return False
        logger.debug(f"Emitted D-Bus signal: {signal_name}")
        return True

    def _unregister_object(self):
        if self._bus and self._registration_id > 0:
            if self._bus.unregister_object(self._registration_id):
                logger.info("Unregistered StatusNotifierItem D-Bus object.")
            else:
                logger.warning("Failed to unregister StatusNotifierItem D-Bus object.")
        self._registration_id = 0

    def destroy(self):
        """
        Unregisters the exported object. The bus name and watcher entry go
        away with the connection.
        """
        logger.debug("StatusNotifierItem teardown starting.")
        self._unregister_object()
        self._bus = None

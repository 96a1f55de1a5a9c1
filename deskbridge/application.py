# SPDX-FileCopyrightText: 2024-present The Deskbridge Authors
#
# SPDX-License-Identifier: MIT

import logging
import os
import shlex
import signal

import gi

gi.require_version("Gio", "2.0")
from gi.repository import Gio, GLib

from deskbridge.bridge import DesktopBridge
from deskbridge.components.status_notifier.pixbuf import icon_pixmap_from_file, solid_icon_pixmap

logger = logging.getLogger(__name__)

# Used for the generated icon when no accent color is available
FALLBACK_ICON_COLOR = 0x3584E4


class Application(Gio.Application):
    """
    Command line front end for the desktop bridge.

    One-shot options (--accent-color, --badge, --request-background) are
    answered in handle-local-options; otherwise the application keeps a
    tray item alive until it is interrupted.
    """
    def __init__(self, bridge=None, **kwargs):
        super().__init__(flags=Gio.ApplicationFlags.NON_UNIQUE, **kwargs)
        self.bridge = bridge
        self.icon_path = None
        self.title = None

        self.add_main_option("verbose", ord("v"), GLib.OptionFlags.NONE, GLib.OptionArg.NONE,
                             "Enable debug logging", None)
        self.add_main_option("accent-color", 0, GLib.OptionFlags.NONE, GLib.OptionArg.NONE,
                             "Print the desktop accent color and exit", None)
        self.add_main_option("badge", 0, GLib.OptionFlags.NONE, GLib.OptionArg.INT,
                             "Set the launcher badge count and exit", "COUNT")
        self.add_main_option("request-background", 0, GLib.OptionFlags.NONE, GLib.OptionArg.NONE,
                             "Ask the portal for permission to run in the background and exit", None)
        self.add_main_option("autostart", 0, GLib.OptionFlags.NONE, GLib.OptionArg.NONE,
                             "With --request-background: start on login", None)
        self.add_main_option("autostart-command", 0, GLib.OptionFlags.NONE, GLib.OptionArg.STRING,
                             "With --request-background: command line used for autostart", "COMMAND")
        self.add_main_option("icon", ord("i"), GLib.OptionFlags.NONE, GLib.OptionArg.FILENAME,
                             "Image shown in the tray", "FILE")
        self.add_main_option("title", ord("t"), GLib.OptionFlags.NONE, GLib.OptionArg.STRING,
                             "Tray item title", "TITLE")

        self.connect('handle-local-options', self.on_handle_local_options)
        self.connect('startup', self.on_startup)
        self.connect('activate', self.on_activate)
        self.connect('shutdown', self.on_shutdown)

    def on_handle_local_options(self, app, options):
        """Runs one-shot commands; returns an exit code, or -1 to keep going."""
        if options.contains("verbose"):
            logging.getLogger().setLevel(logging.DEBUG)
            logger.debug("Debug logging enabled.")

        if self.bridge is None:
            self.bridge = DesktopBridge()

        if options.contains("accent-color"):
            color = self.bridge.get_accent_color()
            if color is None:
                print("Accent color unavailable.")
                return 1
            print(f"#{color:06x}")
            return 0

        badge = options.lookup_value("badge", GLib.VariantType.new("i"))
        if badge is not None:
            return 0 if self.bridge.update_launcher_count(badge.get_int32()) else 1

        if options.contains("request-background"):
            command = options.lookup_value("autostart-command", GLib.VariantType.new("s"))
            commandline = shlex.split(command.get_string()) if command is not None else []
            ok = self.bridge.request_background(options.contains("autostart"), commandline)
            return 0 if ok else 1

        icon = options.lookup_value("icon", GLib.VariantType.new("ay"))
        if icon is not None:
            self.icon_path = os.fsdecode(icon.get_bytestring())
        title = options.lookup_value("title", GLib.VariantType.new("s"))
        if title is not None:
            self.title = title.get_string()
        return -1

    def on_startup(self, app):
        """Called once when the application first starts."""
        logger.info("Application starting up.")
        if not self.bridge.init_service():
            logger.error("Could not start the tray item, quitting.")
            self.quit()
            return

        service = self.bridge.service
        for signal_name in ("activate", "secondary-activate", "context-menu"):
            service.connect(signal_name, self._on_item_clicked, signal_name)
        service.connect("scroll", self._on_item_scrolled)

        GLib.unix_signal_add(GLib.PRIORITY_DEFAULT, signal.SIGINT, self._on_quit_signal)
        GLib.unix_signal_add(GLib.PRIORITY_DEFAULT, signal.SIGTERM, self._on_quit_signal)
        # Keep running without any window
        self.hold()

    def on_activate(self, app):
        """Pushes the icon and title into the tray item."""
        if not self.bridge.service:
            return
        pixmap = self._load_icon()
        if pixmap is None or not self.bridge.set_icon(pixmap):
            logger.warning("Tray icon not shown yet; is a StatusNotifierWatcher running?")
        if self.title is not None:
            self.bridge.set_title(self.title)

    def on_shutdown(self, app):
        """Called when the application is shutting down."""
        logger.info("Application shutting down.")
        if self.bridge:
            self.bridge.destroy_service()

    def _load_icon(self):
        if self.icon_path:
            return icon_pixmap_from_file(self.icon_path)
        color = self.bridge.get_accent_color()
        return solid_icon_pixmap(FALLBACK_ICON_COLOR if color is None else color)

    def _on_item_clicked(self, item, x, y, signal_name):
        logger.info(f"Tray item {signal_name} at ({x}, {y})")

    def _on_item_scrolled(self, item, delta, orientation):
        logger.info(f"Tray item scrolled {delta} ({orientation})")

    def _on_quit_signal(self):
        logger.info("Interrupted, quitting.")
        self.release()
        self.quit()
        return GLib.SOURCE_REMOVE

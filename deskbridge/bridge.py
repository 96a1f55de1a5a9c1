# SPDX-FileCopyrightText: 2024-present The Deskbridge Authors
#
# SPDX-License-Identifier: MIT

import logging

from deskbridge.components.launcher_entry.launcher_entry import update_launcher_count
from deskbridge.components.portals.accent_color import get_accent_color
from deskbridge.components.portals.background import request_background
from deskbridge.components.session_bus import get_session_bus
from deskbridge.components.status_notifier.status_notifier import StatusNotifierItem
from deskbridge.config import load_settings

logger = logging.getLogger(__name__)

# Badge counts travel as int32 on the host side
INT32_MIN = -2**31
INT32_MAX = 2**31 - 1


class DesktopBridge:
    """
    Host-facing entry points for the desktop integration.

    Owns at most one StatusNotifierItem at a time; the host creates the
    bridge, calls init_service() once the bus is wanted and
    destroy_service() before dropping it. Bus failures are reported as
    False or None, never raised.
    """
    def __init__(self, settings=None, connection_factory=get_session_bus):
        self.settings = settings or load_settings()
        self._connection_factory = connection_factory
        self._service: StatusNotifierItem | None = None

    @property
    def service(self):
        return self._service

    def update_launcher_count(self, count):
        if isinstance(count, bool) or not isinstance(count, int):
            raise TypeError(f"Expected int count, got {type(count).__name__}")
        if not INT32_MIN <= count <= INT32_MAX:
            logger.warning(f"Launcher count {count} is out of range, ignoring.")
            return False
        bus = self._connection_factory()
        if not bus:
            return False
        return update_launcher_count(count, connection=bus, desktop_file_id=self.settings.desktop_file_id)

    def get_accent_color(self):
        bus = self._connection_factory()
        if not bus:
            return None
        return get_accent_color(connection=bus, timeout=self.settings.call_timeout)

    def request_background(self, autostart, commandline=()):
        if not isinstance(autostart, bool):
            raise TypeError(f"Expected bool autostart, got {type(autostart).__name__}")
        # Non-string entries are dropped rather than rejected
        commandline = [arg for arg in commandline if isinstance(arg, str)]
        bus = self._connection_factory()
        if not bus:
            return False
        return request_background(autostart, commandline, connection=bus, timeout=self.settings.call_timeout)

    def init_service(self):
        """Creates and initializes the tray item; a no-op if one is already running."""
        if self._service:
            return True

        bus = self._connection_factory()
        if not bus:
            return False
        service = StatusNotifierItem(connection=bus, settings=self.settings)
        if not service.initialize():
            logger.error("StatusNotifierItem initialization failed.")
            service.destroy()
            return False
        self._service = service
        logger.info("StatusNotifierItem service started.")
        return True

    def set_icon(self, pixmap_data):
        if not isinstance(pixmap_data, (bytes, bytearray, memoryview)):
            raise TypeError(f"Expected bytes icon buffer, got {type(pixmap_data).__name__}")
        if not self._service:
            logger.warning("set_icon called before init_service.")
            return False
        return self._service.set_icon_pixmap(bytes(pixmap_data))

    def set_title(self, title):
        if not isinstance(title, str):
            raise TypeError(f"Expected str title, got {type(title).__name__}")
        if not self._service:
            logger.warning("set_title called before init_service.")
            return False
        return self._service.set_title(title)

    def destroy_service(self):
        if self._service:
            logger.info("Cleaning up StatusNotifierItem service.")
            self._service.destroy()
            self._service = None

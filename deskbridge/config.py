# SPDX-FileCopyrightText: 2024-present The Deskbridge Authors
#
# SPDX-License-Identifier: MIT

import logging

import gi

gi.require_version("Gio", "2.0")
from gi.repository import Gio

logger = logging.getLogger(__name__)

# Define the GSettings schema ID
SCHEMA_ID = "io.github.Deskbridge"

# Electron-style hosts export the desktop file name here (e.g. "vesktop.desktop")
DESKTOP_ENTRY_ENV = "CHROME_DESKTOP"

DEFAULT_ITEM_ID = "deskbridge"
DEFAULT_TITLE = "Deskbridge"
DEFAULT_CATEGORY = "Communications"
DEFAULT_DESKTOP_FILE_ID = "deskbridge"
DEFAULT_CALL_TIMEOUT = 5000 # milliseconds


class Settings:
    """
    Runtime configuration shared by the bus components.

    Attributes:
        item_id (str): Value of the StatusNotifierItem ``Id`` property.
        title (str): Initial tray title.
        category (str): Value of the StatusNotifierItem ``Category`` property.
        desktop_file_id (str): Fallback desktop file id for launcher badges.
        call_timeout (int): Timeout in milliseconds for every blocking bus call.
    """
    def __init__(self, item_id=DEFAULT_ITEM_ID, title=DEFAULT_TITLE,
                 category=DEFAULT_CATEGORY, desktop_file_id=DEFAULT_DESKTOP_FILE_ID,
                 call_timeout=DEFAULT_CALL_TIMEOUT):
        self.item_id = item_id
        self.title = title
        self.category = category
        self.desktop_file_id = desktop_file_id
        self.call_timeout = call_timeout

    @classmethod
    def from_gsettings(cls, gsettings):
        """Builds a Settings instance from a Gio.Settings object bound to SCHEMA_ID."""
        timeout = gsettings.get_int("call-timeout")
        if timeout <= 0:
            logger.warning(f"Ignoring non-positive call-timeout {timeout}, using {DEFAULT_CALL_TIMEOUT} ms")
            timeout = DEFAULT_CALL_TIMEOUT
        return cls(
            item_id=gsettings.get_string("item-id"),
            title=gsettings.get_string("title"),
            category=gsettings.get_string("category"),
            desktop_file_id=gsettings.get_string("desktop-file-id"),
            call_timeout=timeout,
        )

    def __repr__(self):
        return (f"Settings(item_id={self.item_id!r}, title={self.title!r}, category={self.category!r}, "
                f"desktop_file_id={self.desktop_file_id!r}, call_timeout={self.call_timeout!r})")


def load_settings():
    """
    Reads settings from GSettings, falling back to the built-in defaults
    when the schema is not installed.

    Returns:
        Settings: The loaded configuration.
    """
    source = Gio.SettingsSchemaSource.get_default()
    schema = source.lookup(SCHEMA_ID, True) if source else None
    if schema is None:
        logger.info(f"GSettings schema '{SCHEMA_ID}' not installed, using defaults.")
        return Settings()

    gsettings = Gio.Settings.new_full(schema, None, None)
    settings = Settings.from_gsettings(gsettings)
    logger.debug(f"Loaded settings from GSettings: {settings}")
    return settings

# pathway_transfer/managers/settings_manager.py
import logging
from typing import Any, Callable, Dict, List, Optional, Union
from dataclasses import dataclass
from enum import Enum
from PyQt6.QtCore import QObject, pyqtSignal, QSettings, QTimer

from ..utils.config import (
    APP_NAME, ORGANIZATION_NAME, DEFAULT_PASTE_OFFSET, DEFAULT_PAYLOAD_PRETTY_PRINT
)

logger = logging.getLogger(__name__)

LOG_LEVEL_NAMES = ["DEBUG", "INFO", "WARNING", "ERROR"]


class SettingCategory(Enum):
    """Enumeration of setting categories."""
    CLIPBOARD = "clipboard"
    REMAPPING = "remapping"
    DIAGNOSTICS = "diagnostics"


@dataclass
class SettingDefinition:
    """Definition of a setting with metadata."""
    key: str
    default_value: Any
    category: SettingCategory
    description: str = ""
    validator: Optional[Callable[[Any], bool]] = None
    min_value: Optional[Union[int, float]] = None
    max_value: Optional[Union[int, float]] = None
    allowed_values: Optional[List[Any]] = None

    def validate(self, value: Any) -> bool:
        """Validate a value against this setting's constraints."""
        if self.validator:
            return self.validator(value)

        # bool is an int subclass; don't let it pass as a number
        if isinstance(value, bool) != isinstance(self.default_value, bool):
            return False
        if isinstance(self.default_value, float) and isinstance(value, int):
            value = float(value)
        if not isinstance(value, type(self.default_value)):
            return False

        if isinstance(value, (int, float)) and not isinstance(value, bool):
            if self.min_value is not None and value < self.min_value:
                return False
            if self.max_value is not None and value > self.max_value:
                return False

        if self.allowed_values and value not in self.allowed_values:
            return False

        return True


class SettingsManager(QObject):
    """Persistent user settings for copy/paste behavior, with validation and caching."""

    settingChanged = pyqtSignal(str, object)
    settingsReset = pyqtSignal()

    SETTING_DEFINITIONS = {
        "paste_offset": SettingDefinition(
            "paste_offset", DEFAULT_PASTE_OFFSET, SettingCategory.CLIPBOARD,
            "Offset added per repeated paste of the same clipboard data",
            min_value=0.0, max_value=500.0
        ),
        "payload_pretty_print": SettingDefinition(
            "payload_pretty_print", DEFAULT_PAYLOAD_PRETTY_PRINT, SettingCategory.CLIPBOARD,
            "Indent the GPML written to the clipboard"
        ),
        "keep_live_alias_refs": SettingDefinition(
            "keep_live_alias_refs", True, SettingCategory.REMAPPING,
            "Let a copied alias keep its group if the paste target already holds that group"
        ),
        "log_level": SettingDefinition(
            "log_level", "INFO", SettingCategory.DIAGNOSTICS,
            "Logging level", allowed_values=LOG_LEVEL_NAMES
        ),
    }

    DEFAULTS = {key: definition.default_value
                for key, definition in SETTING_DEFINITIONS.items()}

    def __init__(self, app_name=APP_NAME, organization=ORGANIZATION_NAME, parent=None):
        super().__init__(parent)
        self.app_name = app_name
        self.settings = QSettings(QSettings.Format.IniFormat, QSettings.Scope.UserScope,
                                  organization, app_name)

        self._cache: Dict[str, Any] = {}

        self._sync_timer = QTimer(self)
        self._sync_timer.setSingleShot(True)
        self._sync_timer.timeout.connect(self._perform_sync)
        self._sync_timer.setInterval(1000)

        logger.info(f"Settings will be loaded/saved at: {self.settings.fileName()}")
        self._init_defaults()

    def _init_defaults(self):
        """Initialize settings with defaults if they don't exist."""
        for key, definition in self.SETTING_DEFINITIONS.items():
            if not self.settings.contains(key):
                logger.debug(f"Setting '{key}' not found, initializing with default: {definition.default_value}")
                self.settings.setValue(key, definition.default_value)
        self.settings.sync()

    def get(self, key: str, default_override=None) -> Any:
        """Get a setting value with caching and type conversion."""
        if key in self._cache:
            return self._cache[key]

        definition = self.SETTING_DEFINITIONS.get(key)
        if not definition:
            logger.warning(f"Unknown setting key: '{key}'")
            return default_override

        value = self.settings.value(key)
        default_value = default_override if default_override is not None else definition.default_value
        if value is None:
            self._cache[key] = default_value
            return default_value

        try:
            converted_value = self._convert_value(value, definition.default_value)
            if not definition.validate(converted_value):
                logger.warning(f"Setting '{key}' value '{converted_value}' failed validation. Using default.")
                converted_value = default_value
            self._cache[key] = converted_value
            return converted_value
        except (ValueError, TypeError) as e:
            logger.warning(f"Could not convert setting '{key}' with value '{value}'. Error: {e}. Using default.")
            self._cache[key] = default_value
            return default_value

    def _convert_value(self, value: Any, default_value: Any) -> Any:
        """Convert a stored value (INI files store strings) to the type of the default."""
        if isinstance(default_value, bool):
            if isinstance(value, str):
                return value.lower() in ('true', '1', 't', 'y', 'yes')
            return bool(value)
        elif isinstance(default_value, int):
            return int(value)
        elif isinstance(default_value, float):
            return float(value)
        return value

    def set(self, key: str, value: Any, save_immediately: bool = True) -> bool:
        """Set a setting value after validation. Returns False if it was rejected."""
        definition = self.SETTING_DEFINITIONS.get(key)
        if not definition:
            logger.error(f"Unknown setting key: '{key}'. Not setting.")
            return False
        if not definition.validate(value):
            logger.error(f"Setting '{key}' value '{value}' failed validation. Not setting.")
            return False
        if isinstance(definition.default_value, float):
            value = float(value)

        if self.get(key) == value:
            logger.debug(f"Setting '{key}' set to same value: {value}. No change.")
            return True

        self._cache[key] = value
        self.settings.setValue(key, value)
        if save_immediately:
            self._schedule_sync()
        self.settingChanged.emit(key, value)
        logger.info(f"Setting '{key}' changed to: {value}")
        return True

    def get_by_category(self, category: SettingCategory) -> Dict[str, Any]:
        return {key: self.get(key)
                for key, definition in self.SETTING_DEFINITIONS.items()
                if definition.category == category}

    def _schedule_sync(self):
        """Schedule a sync to avoid frequent disk writes."""
        self._sync_timer.start()

    def _perform_sync(self):
        self.settings.sync()
        logger.debug("Settings synced to disk.")

    def reset_to_defaults(self):
        """Reset all settings to their defaults."""
        logger.info("Resetting all settings to defaults.")
        self._cache.clear()
        for key, definition in self.SETTING_DEFINITIONS.items():
            self.settings.setValue(key, definition.default_value)
            self._cache[key] = definition.default_value
            self.settingChanged.emit(key, definition.default_value)
        self.save_settings()
        self.settingsReset.emit()

    def is_default_value(self, key: str) -> bool:
        definition = self.SETTING_DEFINITIONS.get(key)
        if not definition:
            return False
        return self.get(key) == definition.default_value

    def save_settings(self):
        """Force immediate save of all settings."""
        self._sync_timer.stop()
        self._perform_sync()

    def clear_cache(self):
        self._cache.clear()

"""
settings.py

Persistent settings management for the Gherkin field editor.

Handles cross-platform settings storage using TOML format with platformdirs
for proper user config directory detection.

Settings file location:
    - Windows: %APPDATA%/gherkin-field/settings.toml
    - macOS: ~/Library/Application Support/gherkin-field/settings.toml
    - Linux: ~/.config/gherkin-field/settings.toml

Default values are documented in comments throughout this file.
If settings.toml is corrupted, these defaults will be used.
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import platformdirs

# TOML reading - use tomllib for Python 3.11+, tomli for earlier versions
if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

import tomli_w

APP_NAME = "gherkin-field"

# Global settings manager instance (singleton)
_settings_manager: Optional["SettingsManager"] = None


def get_settings() -> "SettingsManager":
    """Get the global settings manager instance.

    Returns:
        The singleton SettingsManager instance.
    """
    global _settings_manager
    if _settings_manager is None:
        _settings_manager = SettingsManager()
    return _settings_manager


# =============================================================================
# Editor Settings
# =============================================================================

@dataclass
class EditorFontSettings:
    """Editor font settings.

    Defaults:
        family: "Consolas"
        size: 10
        tab_width: 4
    """
    family: str = "Consolas"  # Default: "Consolas"
    size: int = 10            # Default: 10 points
    tab_width: int = 4        # Default: 4 characters


@dataclass
class EditorLineNumberSettings:
    """Line number gutter settings.

    Defaults:
        left_margin: 8
        right_margin: 4
    """
    left_margin: int = 8    # Default: 8 pixels
    right_margin: int = 4   # Default: 4 pixels


@dataclass
class EditorSyntaxSettings:
    """Gherkin syntax highlighting colors (the theme's tag→color mapping).

    Defaults:
        keyword_color: "#0000FF"
        keyword_bold: True
        string_color: "#A31515"
        comment_color: "#008000"
        comment_italic: True
        text_color: "#000000"
    """
    keyword_color: str = "#0000FF"   # Default: blue
    keyword_bold: bool = True        # Default: True
    string_color: str = "#A31515"    # Default: dark red
    comment_color: str = "#008000"   # Default: green
    comment_italic: bool = True      # Default: True
    text_color: str = "#000000"      # Default: black


@dataclass
class EditorIndentSettings:
    """Auto-indent settings.

    Defaults:
        unit: "    "
    """
    unit: str = "    "  # Default: four spaces per level


@dataclass
class EditorSettings:
    """All editor-related settings.

    Contains nested settings for font, line numbers, syntax and indentation.
    """
    font: EditorFontSettings = field(default_factory=EditorFontSettings)
    line_numbers: EditorLineNumberSettings = field(default_factory=EditorLineNumberSettings)
    syntax: EditorSyntaxSettings = field(default_factory=EditorSyntaxSettings)
    indent: EditorIndentSettings = field(default_factory=EditorIndentSettings)


# =============================================================================
# Field Binding Settings
# =============================================================================

@dataclass
class FieldSettings:
    """External field binding settings.

    Defaults:
        read_field_key: "GherkinField"
        field_name_option: "FieldName"
    """
    # Well-known key the initial value is read from
    read_field_key: str = "GherkinField"
    # Host configuration option naming the field that edits are written to
    field_name_option: str = "FieldName"


# =============================================================================
# Main App Settings
# =============================================================================

@dataclass
class AppSettings:
    """Application settings with default values.

    Attributes:
        theme: The UI theme name (must match a key in styles.STYLES).
        editor: Editor-related settings.
        field: External field binding settings.
    """
    # UI Settings
    theme: str = "Light"  # Default: "Light"

    # Nested settings categories
    editor: EditorSettings = field(default_factory=EditorSettings)
    field: FieldSettings = field(default_factory=FieldSettings)


# =============================================================================
# Settings Manager
# =============================================================================

class SettingsManager:
    """Manages loading, saving, and accessing application settings.

    Settings are stored in a TOML file at the platform-appropriate location.
    If the settings file doesn't exist, defaults are used and the file is
    created on first save.

    Args:
        app_name: Application name used for the config directory.
        settings_dir: Explicit directory to use instead of the platform one.
    """

    def __init__(self, app_name: str = APP_NAME, settings_dir: Optional[Path] = None):
        if settings_dir is None:
            settings_dir = Path(platformdirs.user_config_dir(app_name))
        self.settings_dir = Path(settings_dir)
        self.settings_file = self.settings_dir / "settings.toml"
        self.settings = self.load()
        self._needs_save = not self.settings_file.exists()  # Save if file didn't exist

    def ensure_file_complete(self) -> None:
        """Ensure settings file exists with all sections. Call once at startup."""
        if self._needs_save or not self.settings_file.exists():
            self.save()
            self._needs_save = False

    def load(self) -> AppSettings:
        """Load settings from the TOML file.

        Returns:
            AppSettings instance with values from file or defaults if file
            doesn't exist or is invalid.
        """
        if not self.settings_file.exists():
            return AppSettings()

        try:
            with open(self.settings_file, "rb") as f:
                data = tomllib.load(f)

            return self._parse_toml(data)
        except (OSError, tomllib.TOMLDecodeError, AttributeError, TypeError):
            # If file is corrupted or invalid, return defaults
            return AppSettings()

    def _parse_toml(self, data: Dict[str, Any]) -> AppSettings:
        """Parse TOML data into AppSettings.

        Args:
            data: Parsed TOML dictionary.

        Returns:
            AppSettings instance populated from TOML data.
        """
        settings = AppSettings()

        # General section
        general = data.get("general", {})
        settings.theme = general.get("theme", settings.theme)

        # Editor section
        editor = data.get("editor", {})
        if "font" in editor:
            font = editor["font"]
            settings.editor.font.family = font.get("family", settings.editor.font.family)
            settings.editor.font.size = font.get("size", settings.editor.font.size)
            settings.editor.font.tab_width = font.get("tab_width", settings.editor.font.tab_width)
        if "line_numbers" in editor:
            ln = editor["line_numbers"]
            settings.editor.line_numbers.left_margin = ln.get("left_margin", settings.editor.line_numbers.left_margin)
            settings.editor.line_numbers.right_margin = ln.get("right_margin", settings.editor.line_numbers.right_margin)
        if "syntax" in editor:
            syn = editor["syntax"]
            settings.editor.syntax.keyword_color = syn.get("keyword_color", settings.editor.syntax.keyword_color)
            settings.editor.syntax.keyword_bold = syn.get("keyword_bold", settings.editor.syntax.keyword_bold)
            settings.editor.syntax.string_color = syn.get("string_color", settings.editor.syntax.string_color)
            settings.editor.syntax.comment_color = syn.get("comment_color", settings.editor.syntax.comment_color)
            settings.editor.syntax.comment_italic = syn.get("comment_italic", settings.editor.syntax.comment_italic)
            settings.editor.syntax.text_color = syn.get("text_color", settings.editor.syntax.text_color)
        if "indent" in editor:
            ind = editor["indent"]
            settings.editor.indent.unit = ind.get("unit", settings.editor.indent.unit)

        # Field section
        fld = data.get("field", {})
        settings.field.read_field_key = fld.get("read_field_key", settings.field.read_field_key)
        settings.field.field_name_option = fld.get("field_name_option", settings.field.field_name_option)

        return settings

    def save(self) -> None:
        """Save current settings to the TOML file.

        Creates the settings directory if it doesn't exist.
        """
        # Ensure directory exists
        self.settings_dir.mkdir(parents=True, exist_ok=True)

        # Convert settings to TOML structure
        data = self._to_toml_dict()

        with open(self.settings_file, "wb") as f:
            tomli_w.dump(data, f)

    def _to_toml_dict(self) -> Dict[str, Any]:
        """Convert settings to a TOML-compatible dictionary structure.

        Returns:
            Dictionary organized by TOML sections.
        """
        s = self.settings
        return {
            "general": {
                "theme": s.theme,
            },
            "editor": {
                "font": {
                    "family": s.editor.font.family,
                    "size": s.editor.font.size,
                    "tab_width": s.editor.font.tab_width,
                },
                "line_numbers": {
                    "left_margin": s.editor.line_numbers.left_margin,
                    "right_margin": s.editor.line_numbers.right_margin,
                },
                "syntax": {
                    "keyword_color": s.editor.syntax.keyword_color,
                    "keyword_bold": s.editor.syntax.keyword_bold,
                    "string_color": s.editor.syntax.string_color,
                    "comment_color": s.editor.syntax.comment_color,
                    "comment_italic": s.editor.syntax.comment_italic,
                    "text_color": s.editor.syntax.text_color,
                },
                "indent": {
                    "unit": s.editor.indent.unit,
                },
            },
            "field": {
                "read_field_key": s.field.read_field_key,
                "field_name_option": s.field.field_name_option,
            },
        }

    def to_toml(self) -> str:
        """Convert current settings to a TOML-formatted string.

        Returns:
            TOML representation of the current settings.
        """
        data = self._to_toml_dict()
        return tomli_w.dumps(data)

    def get_settings_path(self) -> Path:
        """Get the path to the settings file.

        Returns:
            Path object pointing to the settings file location.
        """
        return self.settings_file

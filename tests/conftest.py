"""Shared fixtures: project root on sys.path, offscreen Qt, isolated settings."""
from __future__ import annotations

import os
import sys

import pytest

# Ensure project root is on sys.path so imports work
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

# Widgets are created without a display
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import settings as settings_module  # noqa: E402
from settings import SettingsManager  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def isolated_settings(tmp_path_factory):
    """Point the settings singleton at a throwaway directory."""
    previous = settings_module._settings_manager
    settings_module._settings_manager = SettingsManager(settings_dir=tmp_path_factory.mktemp("settings"))
    yield settings_module._settings_manager
    settings_module._settings_manager = previous


@pytest.fixture(scope="session")
def qapp():
    """Provide a single QApplication for the entire test session."""
    from PyQt6.QtWidgets import QApplication
    app = QApplication.instance() or QApplication(sys.argv)
    yield app

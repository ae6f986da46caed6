"""
main.py

Gherkin Field Editor - standalone application

Runs the field editor against an in-process host so the language support
and the field synchronization can be used outside a host application.
The host's fields and configuration come from an optional JSON document:

    {
        "configuration": {"FieldName": "Steps"},
        "fields": {"GherkinField": "Feature: ..."}
    }

When a document is given, the fields are written back to it on exit.

Usage:
    python main.py [DOCUMENT] [--field-name NAME] [--latency SECONDS]

Dependencies:
    pip install PyQt6 qasync platformdirs tomli-w typer
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
import traceback
from pathlib import Path
from typing import Any, Dict, Optional

import qasync
import typer
from PyQt6.QtWidgets import QApplication, QMainWindow

from debug_trace import close_log, trace, trace_exception
from editor.field_editor import FieldEditorWidget
from settings import SettingsManager, get_settings
from styles import DEFAULT_STYLE, STYLES
from sync.host import InMemoryHost
from sync.session import EditorSession

log = logging.getLogger(__name__)

_APP = typer.Typer(name="gherkin-field", help="Edit a Gherkin field with syntax support")


class MainWindow(QMainWindow):
    """Main window holding a single field editor.

    Args:
        settings_manager: The SettingsManager instance for application settings.
        host: Host the editor session talks to.
    """

    def __init__(self, settings_manager: SettingsManager, host: InMemoryHost):
        super().__init__()
        self.settings_manager = settings_manager
        self.host = host
        self.setWindowTitle("Gherkin Field Editor")
        self.on_close = None

        self.session = EditorSession(host, field_settings=settings_manager.settings.field)
        self.field_editor = FieldEditorWidget(self.session, self)
        self.field_editor.apply_style(settings_manager.settings.theme)
        self.setCentralWidget(self.field_editor)

        self.field_editor.state_changed.connect(
            lambda state: self.statusBar().showMessage(f"Session: {state}"))

    async def run_session(self) -> bool:
        return await self.field_editor.start()

    async def shutdown(self) -> None:
        await self.field_editor.close_session()

    def closeEvent(self, event):
        if self.on_close is not None:
            self.on_close()
        super().closeEvent(event)


def load_document(path: Optional[Path]) -> Dict[str, Any]:
    """Read the host document, or an empty one if there is no file."""
    if path is None or not path.exists():
        return {"configuration": {}, "fields": {}}
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"{path}: document must be a JSON object")
    data.setdefault("configuration", {})
    data.setdefault("fields", {})
    return data


def save_document(path: Path, host: InMemoryHost) -> None:
    data = {"configuration": host.configuration, "fields": host.fields}
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


async def _run(window: MainWindow) -> None:
    closed = asyncio.Event()
    window.on_close = closed.set
    window.show()
    await window.run_session()
    await closed.wait()
    await window.shutdown()


@_APP.command()
def run(
    document: Optional[Path] = typer.Argument(None, help="JSON document holding the host fields"),
    field_name: Optional[str] = typer.Option(None, "--field-name", help="Field that edits are written to"),
    latency: float = typer.Option(0.0, "--latency", help="Simulated host latency in seconds"),
) -> None:
    """Open the field editor."""
    trace("Application starting", "MAIN")
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    app = QApplication(sys.argv)
    # The loop ends after the session has been torn down, not on window close
    app.setQuitOnLastWindowClosed(False)

    # Load settings (use singleton to ensure single instance)
    trace("Loading settings", "MAIN")
    settings_manager = get_settings()
    settings_manager.ensure_file_complete()

    # Apply saved theme (or default if not set)
    initial_style = settings_manager.settings.theme
    if initial_style not in STYLES:
        initial_style = DEFAULT_STYLE
        settings_manager.settings.theme = initial_style
    app.setStyleSheet(STYLES[initial_style])

    data = load_document(document)
    configuration = dict(data["configuration"])
    if field_name:
        configuration[settings_manager.settings.field.field_name_option] = field_name
    host = InMemoryHost(data["fields"], configuration, latency=latency)

    trace("Creating MainWindow", "MAIN")
    window = MainWindow(settings_manager, host)
    window.resize(900, 640)

    loop = qasync.QEventLoop(app)
    asyncio.set_event_loop(loop)
    trace("Entering event loop", "MAIN")
    with loop:
        loop.run_until_complete(_run(window))

    trace("Saving settings on exit", "MAIN")
    settings_manager.save()
    if document is not None:
        save_document(document, host)
        log.info("Fields written to %s", document)
    close_log()


def _excepthook(exc_type, exc_value, exc_tb):
    """Trace uncaught exceptions before the default handler prints them."""
    trace("UNCAUGHT EXCEPTION:", "CRASH")
    trace("".join(traceback.format_exception(exc_type, exc_value, exc_tb)), "CRASH")
    close_log()
    sys.__excepthook__(exc_type, exc_value, exc_tb)


def main():
    """Application entry point, also used by the gherkin-field script."""
    # Set up global exception handler to catch crashes
    sys.excepthook = _excepthook
    try:
        _APP()
    except Exception as e:
        trace(f"FATAL: {type(e).__name__}: {e}", "CRASH")
        trace_exception("Fatal exception")
        close_log()
        raise


if __name__ == "__main__":
    main()

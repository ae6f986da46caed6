"""
editor/field_editor.py

Widget hosting the Gherkin editor for one external field.

The code editor stays hidden until the session is bound; after that every
user edit goes to the session, which writes it back to the host.
"""

from __future__ import annotations

import logging

from PyQt6.QtCore import pyqtSignal
from PyQt6.QtWidgets import QLabel, QVBoxLayout, QWidget

from debug_trace import trace
from editor.code_editor import GherkinCodeEditor
from styles import LINE_NUMBER_COLORS
from sync.errors import SyncError, WriteFailure
from sync.session import EditorSession, SessionState

log = logging.getLogger(__name__)


class FieldEditorWidget(QWidget):
    """
    Editor widget bound to one host field through an EditorSession.

    Signals:
        state_changed(str): SessionState value after each transition
        write_failed(str): Message of a failed write
    """

    state_changed = pyqtSignal(str)
    write_failed = pyqtSignal(str)

    def __init__(self, session: EditorSession, parent=None):
        super().__init__(parent)
        self.session = session
        session.on_state_changed = self._on_session_state_changed
        session.on_write_failed = self._on_session_write_failed

        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)

        # Language registration happens before the editor wires highlighting
        self.editor = GherkinCodeEditor(before_language_init=session.ensure_language)
        self.editor.setPlaceholderText("Feature: ...")
        self.editor.setVisible(False)
        layout.addWidget(self.editor)

        self.status = QLabel("Loading...")
        self.status.setObjectName("statusLabel")
        layout.addWidget(self.status)

        # Flag to prevent echoing session-originated text back as an edit
        self._syncing_from_session = False

        self.editor.textChanged.connect(self._on_editor_text_changed)

    def apply_style(self, style: str) -> None:
        """Apply gutter colors for UI theme ``style``."""
        colors = LINE_NUMBER_COLORS.get(style)
        if colors:
            self.editor.set_line_number_colors(colors)

    async def start(self) -> bool:
        """Start the session and show the editor once it is bound.

        Returns:
            False if the session could not start; the editor stays hidden and
            the status shows the error.
        """
        try:
            text = await self.session.start()
        except SyncError as e:
            self._set_status(f"Could not load field: {e}", error=True)
            return False
        if not self.session.is_bound:
            # Closed while loading
            return False
        self._set_text_programmatically(text)
        self.editor.setVisible(True)
        self.editor.setFocus()
        self._set_status(f"Editing '{self.session.field_name}'")
        return True

    async def close_session(self) -> None:
        """Tear down the session, letting queued writes complete."""
        self.editor.setReadOnly(True)
        await self.session.close()

    def text(self) -> str:
        return self.editor.toPlainText()

    def _set_text_programmatically(self, text: str) -> None:
        """Set editor text without routing it back to the field."""
        self._syncing_from_session = True
        try:
            self.editor.setPlainText(text)
        finally:
            self._syncing_from_session = False

    def _on_editor_text_changed(self):
        if self._syncing_from_session:
            return
        self.session.on_content_change(self.editor.toPlainText())

    def _on_session_state_changed(self, state: SessionState):
        trace(f"Field editor sees state {state.value}", "EDITOR")
        if state == SessionState.SYNCING:
            self._set_status("Saving...")
        elif state == SessionState.BOUND and self.session.ready:
            if self.session.last_write_error is None:
                self._set_status(f"Saved to '{self.session.field_name}'")
        elif state == SessionState.UNBOUND:
            self._set_status("Closed")
        self.state_changed.emit(state.value)

    def _on_session_write_failed(self, failure: WriteFailure):
        log.warning("Write failed: %s", failure)
        self._set_status(f"Save failed: {failure}", error=True)
        self.write_failed.emit(str(failure))

    def _set_status(self, message: str, error: bool = False) -> None:
        self.status.setText(message)
        self.status.setProperty("error", error)
        # Re-polish so the [error="true"] selector takes effect
        self.status.style().unpolish(self.status)
        self.status.style().polish(self.status)

"""
tests/test_editor_widgets.py

Code editor and field editor widgets (offscreen Qt).
"""

from __future__ import annotations

import asyncio

import pytest
from PyQt6.QtCore import Qt
from PyQt6.QtGui import QTextCursor
from PyQt6.QtTest import QTest

from editor.code_editor import GherkinCodeEditor, word_until_position
from editor.field_editor import FieldEditorWidget
from editor.highlighter import theme_formats
from language.completion import CompletionRange
from language.definition import LanguageRegistry
from language.gherkin import build_gherkin_definition, build_theme, register_gherkin
from language.tokens import COMMENT, KEYWORD, STRING
from settings import EditorSyntaxSettings
from sync.host import InMemoryHost
from sync.session import EditorSession, SessionState


@pytest.fixture
def editor(qapp):
    ed = GherkinCodeEditor(before_language_init=build_gherkin_definition)
    yield ed
    ed.deleteLater()


def _type_at_end(editor: GherkinCodeEditor, text: str) -> None:
    editor.moveCursor(QTextCursor.MoveOperation.End)
    editor.insertPlainText(text)


def _formats(editor: GherkinCodeEditor, line_number: int):
    block = editor.document().findBlockByNumber(line_number)
    return {(r.start, r.length): r.format for r in block.layout().formats()}


# =============================================================================
# Highlighting
# =============================================================================

class TestHighlighting:
    def test_theme_formats(self):
        formats = theme_formats(build_theme(EditorSyntaxSettings()))
        assert formats[KEYWORD].font().bold()
        assert formats[COMMENT].fontItalic()
        assert formats[STRING].foreground().color().name() == "#a31515"

    def test_keyword_and_comment_formats(self, editor):
        editor.setPlainText("Feature: cart\n  Given 'x' # note")
        editor.highlighter.rehighlight()

        first = _formats(editor, 0)
        assert first[(0, 7)].foreground().color().name() == "#0000ff"

        second = _formats(editor, 1)
        assert second[(2, 5)].foreground().color().name() == "#0000ff"
        assert second[(8, 3)].foreground().color().name() == "#a31515"
        assert second[(12, 6)].foreground().color().name() == "#008000"


# =============================================================================
# Completion
# =============================================================================

class TestCompletion:
    @pytest.mark.parametrize("line, column, expected", [
        ("  Giv", 5, (2, 5)),
        ("  ", 2, (2, 2)),
        ("Given x", 3, (0, 3)),
        ("", 0, (0, 0)),
    ])
    def test_word_until_position(self, line, column, expected):
        assert word_until_position(line, column) == expected

    def test_language_initialised_once(self, qapp):
        calls = []

        def init():
            calls.append(1)
            return build_gherkin_definition()

        ed = GherkinCodeEditor(before_language_init=init)
        assert calls == [1]
        assert ed.language is not None
        assert ed.highlighter is not None

    def test_empty_line_offers_given(self, editor):
        result = editor.request_completions()
        given = result.find("Given")
        assert given.insert_text == "Given "
        assert given.range == CompletionRange(1, 1, 1, 1)

    def test_range_is_one_based(self, editor):
        editor.setPlainText("Feature: x\n  Sce")
        editor.moveCursor(QTextCursor.MoveOperation.End)
        assert editor.word_range_at_cursor() == CompletionRange(2, 2, 3, 6)

    def test_insert_completion_replaces_word(self, editor):
        editor.setPlainText("  Giv")
        editor.moveCursor(QTextCursor.MoveOperation.End)
        editor.request_completions()
        assert editor.insert_completion("Given") is True
        assert editor.toPlainText() == "  Given "

    def test_insert_unknown_label(self, editor):
        editor.request_completions()
        assert editor.insert_completion("Nope") is False
        assert editor.toPlainText() == ""

    def test_without_language_nothing_is_offered(self, qapp):
        assert GherkinCodeEditor().request_completions() is None


# =============================================================================
# Indentation and comments
# =============================================================================

class TestIndentation:
    def test_step_indents_next_line(self, editor):
        _type_at_end(editor, "Given a step")
        editor.insert_newline_with_indent()
        assert editor.toPlainText() == "Given a step\n    "

    def test_following_step_is_outdented(self, editor):
        _type_at_end(editor, "Given a step")
        editor.insert_newline_with_indent()
        _type_at_end(editor, "When b")
        editor.insert_newline_with_indent()
        assert editor.toPlainText() == "Given a step\nWhen b\n    "

    def test_manual_indentation_is_kept(self, editor):
        editor.setPlainText("Feature: f\n  Given x")
        editor.moveCursor(QTextCursor.MoveOperation.End)
        editor.insert_newline_with_indent()
        assert editor.toPlainText() == "Feature: f\n  Given x\n      "

    def test_return_key_uses_policy(self, editor):
        _type_at_end(editor, "Then done")
        QTest.keyClick(editor, Qt.Key.Key_Return)
        assert editor.toPlainText() == "Then done\n    "


class TestLineComment:
    def test_toggle_round_trip(self, editor):
        editor.setPlainText("Given a\n  When b\n\nThen c")
        editor.selectAll()
        editor.toggle_line_comment()
        assert editor.toPlainText() == "# Given a\n  # When b\n\n# Then c"
        editor.selectAll()
        editor.toggle_line_comment()
        assert editor.toPlainText() == "Given a\n  When b\n\nThen c"

    def test_ctrl_slash_comments_cursor_line(self, editor):
        editor.setPlainText("Given a\nWhen b")
        editor.moveCursor(QTextCursor.MoveOperation.End)
        QTest.keyClick(editor, Qt.Key.Key_Slash, Qt.KeyboardModifier.ControlModifier)
        assert editor.toPlainText() == "Given a\n# When b"


# =============================================================================
# Field editor
# =============================================================================

def _widget(host: InMemoryHost) -> FieldEditorWidget:
    registry = LanguageRegistry()
    session = EditorSession(host, registry=registry)
    return FieldEditorWidget(session)


class TestFieldEditor:
    def test_language_registered_on_construction(self, qapp):
        registry = LanguageRegistry()
        session = EditorSession(InMemoryHost(), register_language=lambda: register_gherkin(registry))
        widget = FieldEditorWidget(session)
        assert registry.is_registered("gherkin")
        assert widget.editor.language is registry.definition("gherkin")

    @pytest.mark.asyncio
    async def test_editor_hidden_until_bound(self, qapp):
        host = InMemoryHost({"GherkinField": "Feature: a"}, {"FieldName": "Steps"})
        widget = _widget(host)
        assert widget.editor.isHidden()

        assert await widget.start() is True
        assert not widget.editor.isHidden()
        assert widget.text() == "Feature: a"
        await widget.session.flush()
        assert host.writes == []

    @pytest.mark.asyncio
    async def test_user_edit_reaches_field(self, qapp):
        host = InMemoryHost({"GherkinField": "Feature: a"}, {"FieldName": "Steps"})
        widget = _widget(host)
        states = []
        widget.state_changed.connect(states.append)
        await widget.start()

        widget.editor.setPlainText("Feature: b")
        await widget.session.flush()

        assert host.fields["Steps"] == "Feature: b"
        assert widget.session.current_text == "Feature: b"
        assert SessionState.SYNCING.value in states
        assert widget.status.text() == "Saved to 'Steps'"

    @pytest.mark.asyncio
    async def test_failed_start_keeps_editor_hidden(self, qapp):
        host = InMemoryHost({}, {"FieldName": "Steps"})
        host.fail_reads = OSError("unreachable")
        widget = _widget(host)

        assert await widget.start() is False
        assert widget.editor.isHidden()
        assert widget.status.text().startswith("Could not load")
        assert widget.status.property("error") is True
        assert host.loaded_calls == 0

    @pytest.mark.asyncio
    async def test_write_failure_is_shown(self, qapp):
        host = InMemoryHost({}, {"FieldName": "Steps"})
        host.fail_writes = 1
        widget = _widget(host)
        failures = []
        widget.write_failed.connect(failures.append)
        await widget.start()

        widget.editor.setPlainText("Given x")
        await widget.session.flush()

        assert len(failures) == 1
        assert widget.status.text().startswith("Save failed")
        assert widget.session.current_text == "Given x"

    @pytest.mark.asyncio
    async def test_close_session(self, qapp):
        host = InMemoryHost({}, {"FieldName": "Steps"})
        widget = _widget(host)
        await widget.start()
        await widget.close_session()
        assert widget.editor.isReadOnly()
        assert widget.session.state == SessionState.UNBOUND
        assert widget.status.text() == "Closed"

    @pytest.mark.asyncio
    async def test_closed_while_loading_stays_hidden(self, qapp):
        host = InMemoryHost({"GherkinField": "Feature: a"}, {"FieldName": "Steps"}, latency=0.05)
        widget = _widget(host)

        task = asyncio.ensure_future(widget.start())
        await asyncio.sleep(0.01)
        await widget.close_session()

        assert await task is False
        assert widget.editor.isHidden()
        assert widget.text() == ""
        assert host.loaded_calls == 0

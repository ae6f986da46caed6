"""
editor/code_editor.py

Gherkin code editor with line numbers, auto-indent, keyword completion and
line-comment toggling.
"""

from __future__ import annotations

import re
from typing import Callable, Dict, List, Optional

from PyQt6.QtCore import QSize, QStringListModel, Qt
from PyQt6.QtGui import QColor, QFont, QPainter, QTextCursor
from PyQt6.QtWidgets import QCompleter, QPlainTextEdit, QWidget

from debug_trace import trace
from editor.highlighter import GherkinHighlighter
from language.completion import CompletionList, CompletionRange
from language.definition import LanguageDefinition
from language.indent import leading_whitespace
from settings import get_settings

_WORD_CHARS = re.compile(r"\w+$")
_WORD_TAIL = re.compile(r"^\w+")


# =============================================================================
# Cached editor settings - initialized once to avoid repeated lookups during paint
# =============================================================================

class _CachedEditorSettings:
    """Cache for editor settings values to avoid repeated lookups during paint."""

    _instance = None

    def __init__(self):
        self._initialized = False
        # Default values (used if settings unavailable)
        self.left_margin = 8
        self.right_margin = 4
        self.font_family = "Consolas"
        self.font_size = 10
        self.tab_width = 4
        self.indent_unit = "    "

    def _ensure_initialized(self):
        """Load settings on first access."""
        if self._initialized:
            return
        s = get_settings().settings.editor
        self.left_margin = s.line_numbers.left_margin
        self.right_margin = s.line_numbers.right_margin
        self.font_family = s.font.family
        self.font_size = s.font.size
        self.tab_width = s.font.tab_width
        self.indent_unit = s.indent.unit
        self._initialized = True

    @classmethod
    def get(cls) -> "_CachedEditorSettings":
        """Get the singleton instance."""
        if cls._instance is None:
            cls._instance = cls()
        cls._instance._ensure_initialized()
        return cls._instance


def word_until_position(line: str, column: int) -> tuple[int, int]:
    """Locate the word that ends at ``column`` on ``line``.

    Args:
        line: Text of the cursor line.
        column: 0-based cursor offset into ``line``.

    Returns:
        ``(start, end)`` 0-based offsets; equal when the cursor is not
        preceded by a word character.
    """
    m = _WORD_CHARS.search(line[:column])
    start = m.start() if m else column
    return start, column


class LineNumberArea(QWidget):
    """Widget that displays line numbers alongside the code editor."""

    def __init__(self, editor: "GherkinCodeEditor"):
        super().__init__(editor)
        self.editor = editor

    def sizeHint(self):
        return self.editor.line_number_area_size_hint()

    def paintEvent(self, event):
        self.editor.line_number_area_paint_event(event)


class GherkinCodeEditor(QPlainTextEdit):
    """
    Plain-text editor for Gherkin with:
    - Line numbers
    - Syntax highlighting from the registered language
    - Auto-indent on Enter from the language's indent policy
    - Completion popup (Ctrl+Space, or while typing a word)
    - Line comment toggle (Ctrl+/)

    Args:
        parent: Parent widget.
        before_language_init: Called once before the language is wired in;
            must register the language and return its definition.
    """

    # Default line number colors (Light theme)
    DEFAULT_LINE_COLORS = {
        "background": "#f3f3f3",
        "text": "#237893",
        "text_active": "#0b216f",
        "current_line_bg": "#e8e8e8",
    }

    def __init__(self, parent=None,
                 before_language_init: Optional[Callable[[], LanguageDefinition]] = None):
        super().__init__(parent)

        self.line_number_area = LineNumberArea(self)
        self._line_colors = dict(self.DEFAULT_LINE_COLORS)

        self.language: Optional[LanguageDefinition] = None
        self._highlighter: Optional[GherkinHighlighter] = None
        self._last_completions: Optional[CompletionList] = None

        # Completion popup; prefix filtering is done by QCompleter
        self._completer = QCompleter(self)
        self._completer.setWidget(self)
        self._completer.setModel(QStringListModel([], self._completer))
        self._completer.setCompletionMode(QCompleter.CompletionMode.PopupCompletion)
        self._completer.setCaseSensitivity(Qt.CaseSensitivity.CaseInsensitive)
        self._completer.activated.connect(self.insert_completion)

        self.blockCountChanged.connect(self._update_margins)
        self.updateRequest.connect(self._update_line_number_area)
        self.cursorPositionChanged.connect(self.line_number_area.update)

        self._update_margins()

        cached = _CachedEditorSettings.get()
        font = QFont(cached.font_family, cached.font_size)
        font.setStyleHint(QFont.StyleHint.Monospace)
        self.setFont(font)
        self.setTabStopDistance(self.fontMetrics().horizontalAdvance(' ') * cached.tab_width)
        self.setLineWrapMode(QPlainTextEdit.LineWrapMode.NoWrap)

        if before_language_init is not None:
            self.set_language(before_language_init())

    # -------------------------------------------------------------------------
    # Language wiring
    # -------------------------------------------------------------------------

    def set_language(self, definition: LanguageDefinition) -> None:
        """Install highlighting and completion for ``definition``."""
        trace(f"Editor language set to '{definition.language_id}'", "EDITOR")
        self.language = definition
        if self._highlighter is not None:
            self._highlighter.setDocument(None)
        self._highlighter = GherkinHighlighter(self.document(), definition.tokenizer, definition.theme)
        labels = [entry.label for entry in definition.completion.entries]
        self._completer.model().setStringList(labels)

    @property
    def highlighter(self) -> Optional[GherkinHighlighter]:
        return self._highlighter

    # -------------------------------------------------------------------------
    # Line numbers
    # -------------------------------------------------------------------------

    def set_line_number_colors(self, colors: Dict[str, str]):
        """
        Set the line number area colors.

        Args:
            colors: Dict with keys: background, text, text_active, current_line_bg
        """
        self._line_colors = dict(self.DEFAULT_LINE_COLORS)
        self._line_colors.update(colors)
        self.line_number_area.update()

    def line_number_area_width(self) -> int:
        """Calculate the width needed for line numbers."""
        digits = len(str(max(1, self.blockCount())))
        cached = _CachedEditorSettings.get()
        return cached.left_margin + cached.right_margin + self.fontMetrics().horizontalAdvance('9') * digits

    def line_number_area_size_hint(self):
        return QSize(self.line_number_area_width(), 0)

    def _update_margins(self):
        """Update the viewport margins to make room for line numbers."""
        self.setViewportMargins(self.line_number_area_width(), 0, 0, 0)

    def _update_line_number_area(self, rect, dy):
        """Update line number area when scrolling or content changes."""
        if dy:
            self.line_number_area.scroll(0, dy)
        else:
            self.line_number_area.update(0, rect.y(), self.line_number_area.width(), rect.height())

        if rect.contains(self.viewport().rect()):
            self._update_margins()

    def resizeEvent(self, event):
        super().resizeEvent(event)
        cr = self.contentsRect()
        self.line_number_area.setGeometry(cr.left(), cr.top(), self.line_number_area_width(), cr.height())

    def line_number_area_paint_event(self, event):
        """Paint the line numbers, emphasising the cursor line."""
        painter = QPainter(self.line_number_area)
        colors = self._line_colors
        painter.fillRect(event.rect(), QColor(colors["background"]))

        block = self.firstVisibleBlock()
        block_number = block.blockNumber()
        top = int(self.blockBoundingGeometry(block).translated(self.contentOffset()).top())
        bottom = top + int(self.blockBoundingRect(block).height())

        current_block = self.textCursor().block().blockNumber()
        right_margin = _CachedEditorSettings.get().right_margin
        width = self.line_number_area.width()

        while block.isValid() and top <= event.rect().bottom():
            if block.isVisible() and bottom >= event.rect().top():
                block_height = int(self.blockBoundingRect(block).height())
                if block_number == current_block:
                    painter.fillRect(0, top, width, block_height, QColor(colors["current_line_bg"]))
                    painter.setPen(QColor(colors["text_active"]))
                else:
                    painter.setPen(QColor(colors["text"]))
                painter.drawText(0, top, width - right_margin, block_height,
                                 Qt.AlignmentFlag.AlignRight | Qt.AlignmentFlag.AlignVCenter,
                                 str(block_number + 1))

            block = block.next()
            top = bottom
            bottom = top + int(self.blockBoundingRect(block).height())
            block_number += 1

        painter.end()

    # -------------------------------------------------------------------------
    # Completion
    # -------------------------------------------------------------------------

    def word_range_at_cursor(self) -> CompletionRange:
        """Range of the word ending at the cursor, 1-based like editor columns."""
        cursor = self.textCursor()
        line = cursor.block().text()
        start, end = word_until_position(line, cursor.positionInBlock())
        line_number = cursor.blockNumber() + 1
        return CompletionRange.on_line(line_number, start + 1, end + 1)

    def request_completions(self) -> Optional[CompletionList]:
        """Ask the language's completion provider for items at the cursor."""
        if self.language is None:
            return None
        self._last_completions = self.language.completion.provide_completion_items(
            self.word_range_at_cursor())
        return self._last_completions

    def show_completions(self) -> None:
        completions = self.request_completions()
        if completions is None:
            return
        cursor = self.textCursor()
        rng = completions.suggestions[0].range if completions.suggestions else None
        prefix = ""
        if rng is not None:
            prefix = cursor.block().text()[rng.start_column - 1:rng.end_column - 1]
        self._completer.setCompletionPrefix(prefix)
        if self._completer.completionCount() == 0:
            self._completer.popup().hide()
            return
        popup = self._completer.popup()
        popup.setCurrentIndex(self._completer.completionModel().index(0, 0))
        rect = self.cursorRect()
        rect.setWidth(popup.sizeHintForColumn(0) + popup.verticalScrollBar().sizeHint().width())
        self._completer.complete(rect)

    def insert_completion(self, label: str) -> bool:
        """Replace the item's range with its insert text.

        Returns:
            False if ``label`` is not among the last offered items.
        """
        if self._last_completions is None:
            self.request_completions()
        item = self._last_completions.find(label) if self._last_completions else None
        if item is None:
            return False
        rng = item.range
        block = self.document().findBlockByNumber(rng.start_line_number - 1)
        cursor = QTextCursor(block)
        cursor.setPosition(block.position() + rng.start_column - 1)
        cursor.setPosition(block.position() + rng.end_column - 1, QTextCursor.MoveMode.KeepAnchor)
        # Also swallow the rest of a word the cursor sits inside
        tail = _WORD_TAIL.match(block.text()[rng.end_column - 1:])
        if tail:
            cursor.movePosition(QTextCursor.MoveOperation.Right, QTextCursor.MoveMode.KeepAnchor,
                                len(tail.group(0)))
        cursor.insertText(item.insert_text)
        self.setTextCursor(cursor)
        self._last_completions = None
        return True

    # -------------------------------------------------------------------------
    # Indentation and comments
    # -------------------------------------------------------------------------

    def insert_newline_with_indent(self) -> None:
        """Break the line at the cursor and indent the new line.

        If the finished line was auto-indented and the policy asks to
        decrease it, it is outdented first.
        """
        cursor = self.textCursor()
        if self.language is None:
            cursor.insertText("\n")
            return
        policy = self.language.configuration.indentation
        unit = _CachedEditorSettings.get().indent_unit
        block = cursor.block()
        line = block.text()
        previous = block.previous()

        cursor.beginEditBlock()
        if previous.isValid() and policy.evaluate(line).decrease:
            current = leading_whitespace(line)
            if current == policy.indent_after(previous.text(), unit):
                wanted = policy.indent_for(line, previous.text(), unit)
                if wanted != current:
                    edit = QTextCursor(block)
                    edit.setPosition(block.position() + len(current), QTextCursor.MoveMode.KeepAnchor)
                    edit.insertText(wanted)
                    line = wanted + line[len(current):]
        head = line[:cursor.positionInBlock()]
        cursor.insertText("\n" + policy.indent_after(head, unit))
        cursor.endEditBlock()
        self.setTextCursor(cursor)

    def toggle_line_comment(self) -> None:
        """Comment or uncomment the lines touched by the selection."""
        if self.language is None:
            return
        marker = self.language.configuration.line_comment
        cursor = self.textCursor()
        doc = self.document()
        first = doc.findBlock(cursor.selectionStart())
        last = doc.findBlock(cursor.selectionEnd())
        if cursor.hasSelection() and last.position() == cursor.selectionEnd() and last != first:
            last = last.previous()

        blocks: List = []
        block = first
        while block.isValid():
            blocks.append(block)
            if block == last:
                break
            block = block.next()

        lines = [b.text() for b in blocks]
        non_empty = [t for t in lines if t.strip()]
        uncomment = bool(non_empty) and all(t.lstrip().startswith(marker) for t in non_empty)

        cursor.beginEditBlock()
        for b, text in zip(blocks, lines):
            if not text.strip():
                continue
            indent = leading_whitespace(text)
            edit = QTextCursor(b)
            edit.setPosition(b.position() + len(indent))
            if uncomment:
                remove = len(marker)
                if text[len(indent) + remove:len(indent) + remove + 1] == " ":
                    remove += 1
                edit.setPosition(b.position() + len(indent) + remove, QTextCursor.MoveMode.KeepAnchor)
                edit.removeSelectedText()
            else:
                edit.insertText(marker + " ")
        cursor.endEditBlock()

    # -------------------------------------------------------------------------
    # Keys
    # -------------------------------------------------------------------------

    def keyPressEvent(self, event):
        popup = self._completer.popup()
        if popup.isVisible() and event.key() in (
                Qt.Key.Key_Enter, Qt.Key.Key_Return, Qt.Key.Key_Tab,
                Qt.Key.Key_Backtab, Qt.Key.Key_Escape):
            # Let the completer handle it
            event.ignore()
            return

        ctrl = bool(event.modifiers() & Qt.KeyboardModifier.ControlModifier)
        if ctrl and event.key() == Qt.Key.Key_Space:
            self.show_completions()
            return
        if ctrl and event.key() == Qt.Key.Key_Slash:
            self.toggle_line_comment()
            return
        if event.key() in (Qt.Key.Key_Enter, Qt.Key.Key_Return) and not event.modifiers():
            self.insert_newline_with_indent()
            return

        super().keyPressEvent(event)

        text = event.text()
        if text and (text.isalnum() or text == "_"):
            self.show_completions()
        elif popup.isVisible():
            popup.hide()


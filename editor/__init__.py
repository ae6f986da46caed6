"""
editor package

Gherkin code editor with syntax highlighting, line numbers, completion and
auto-indent, and the field editor widget that binds it to a host field.
"""

from editor.highlighter import GherkinHighlighter
from editor.code_editor import LineNumberArea, GherkinCodeEditor
from editor.field_editor import FieldEditorWidget

__all__ = [
    "GherkinHighlighter",
    "LineNumberArea",
    "GherkinCodeEditor",
    "FieldEditorWidget",
]

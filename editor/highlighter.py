"""
editor/highlighter.py

Gherkin syntax highlighter for the code editor.
"""

from __future__ import annotations

from typing import Dict

from PyQt6.QtGui import QColor, QFont, QSyntaxHighlighter, QTextCharFormat

from debug_trace import trace
from language.definition import Theme
from language.tokens import TokenRuleSet


def theme_formats(theme: Theme) -> Dict[str, QTextCharFormat]:
    """Build one QTextCharFormat per styled tag of ``theme``."""
    formats: Dict[str, QTextCharFormat] = {}
    for rule in theme.rules:
        f = QTextCharFormat()
        f.setForeground(QColor(rule.foreground))
        if rule.bold:
            f.setFontWeight(QFont.Weight.Bold)
        if rule.italic:
            f.setFontItalic(True)
        formats[rule.tag] = f
    return formats


class GherkinHighlighter(QSyntaxHighlighter):
    """
    Syntax highlighter driven by a registered tokenizer and theme.

    Each text block is one line, so the tokenizer output maps directly onto
    setFormat() calls. Tags without a theme rule keep the default format.
    """

    def __init__(self, document, tokenizer: TokenRuleSet, theme: Theme):
        super().__init__(document)
        self.tokenizer = tokenizer
        self.theme = theme
        self.formats = theme_formats(theme)

    def highlightBlock(self, text: str) -> None:
        """Apply token formats to a block of text."""
        tokens = self.tokenizer.tokenize_line(text)
        trace(f"highlight block {self.currentBlock().blockNumber()}: {len(tokens)} tokens", "PAINT")
        for token in tokens:
            f = self.formats.get(token.tag)
            if f is not None:
                self.setFormat(token.start, token.length, f)

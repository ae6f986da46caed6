"""
language/gherkin.py

The Gherkin language definition: keywords, strings and comments for the
tokenizer, Given/When/Then indentation, the keyword/snippet completion list
and the theme colors taken from settings.
"""

from __future__ import annotations

from typing import List, Optional

from language.completion import CompletionCatalog, CompletionEntry, CompletionKind
from language.definition import (
    LanguageConfiguration,
    LanguageDefinition,
    LanguageRegistry,
    Theme,
    ThemeRule,
    get_language_registry,
)
from language.indent import DECREASE, INCREASE, IndentPolicy, IndentRule
from language.tokens import COMMENT, KEYWORD, STRING, TEXT, TokenRule, TokenRuleSet

LANGUAGE_ID = "gherkin"
THEME_ID = "gherkin-theme"
LINE_COMMENT = "#"

# Structural keywords in tokenizer priority order. Longer spellings must
# precede their prefixes ("ScenarioOutline" before "Scenario").
KEYWORDS = [
    "Feature",
    "Background",
    "ScenarioOutline",
    "ScenarioTemplate",
    "Scenario Outline",
    "Scenario Template",
    "Scenario",
    "Examples",
    "Rule",
    "Given",
    "When",
    "Then",
    "And",
    "But",
]

# Keywords offered by completion, in menu order
COMPLETION_KEYWORDS = [
    "Feature",
    "Background",
    "Scenario",
    "ScenarioOutline",
    "ScenarioTemplate",
    "Examples",
    "Rule",
    "Given",
    "When",
    "Then",
    "And",
    "But",
]

DATATABLE_SNIPPET = (
    "Examples:\n"
    "    | column | column |\n"
    "    |    x   |    x   |\n"
    "    |    x   |    x   |"
)

# Same trigger for both directions. The editor only applies the decrease to
# indentation it inserted itself, so manual indentation is never removed.
STEP_INDENT_PATTERN = r"^(\s)*(Given|When|Then)"


def build_token_rules() -> TokenRuleSet:
    rules: List[TokenRule] = [
        TokenRule(r"^\s*(" + kw + r")", KEYWORD, group=1) for kw in KEYWORDS
    ]
    # String bodies exclude the comment marker
    rules.append(TokenRule(r"'[^'#\r\n]+'", STRING))
    rules.append(TokenRule(r'"[^"#\r\n]+"', STRING))
    rules.append(TokenRule(r"#.*$", COMMENT))
    return TokenRuleSet(rules)


def build_indent_policy() -> IndentPolicy:
    return IndentPolicy([
        IndentRule(STEP_INDENT_PATTERN, INCREASE),
        IndentRule(STEP_INDENT_PATTERN, DECREASE),
    ])


def build_completion_catalog() -> CompletionCatalog:
    entries = [
        CompletionEntry(kw, CompletionKind.KEYWORD, kw + " ") for kw in COMPLETION_KEYWORDS
    ]
    entries.append(CompletionEntry("Datatable", CompletionKind.SNIPPET, DATATABLE_SNIPPET))
    return CompletionCatalog(entries)


def build_theme(syntax=None) -> Theme:
    """Build the theme from editor syntax settings.

    Args:
        syntax: An EditorSyntaxSettings; defaults to the current settings.
    """
    if syntax is None:
        from settings import get_settings
        syntax = get_settings().settings.editor.syntax
    return Theme(
        theme_id=THEME_ID,
        base="vs",
        inherit=True,
        rules=(
            ThemeRule(KEYWORD, syntax.keyword_color, bold=syntax.keyword_bold),
            ThemeRule(STRING, syntax.string_color),
            ThemeRule(COMMENT, syntax.comment_color, italic=syntax.comment_italic),
            ThemeRule(TEXT, syntax.text_color),
        ),
    )


def build_gherkin_definition(syntax=None) -> LanguageDefinition:
    return LanguageDefinition(
        language_id=LANGUAGE_ID,
        tokenizer=build_token_rules(),
        theme=build_theme(syntax),
        configuration=LanguageConfiguration(
            line_comment=LINE_COMMENT,
            indentation=build_indent_policy(),
        ),
        completion=build_completion_catalog(),
    )


def register_gherkin(registry: Optional[LanguageRegistry] = None) -> LanguageDefinition:
    """Make sure the Gherkin language is installed and return its definition.

    Safe to call from every editor that opens; only the first call does any
    work.
    """
    registry = registry or get_language_registry()
    if not registry.is_registered(LANGUAGE_ID):
        registry.register(build_gherkin_definition())
    return registry.definition(LANGUAGE_ID)

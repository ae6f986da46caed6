"""
language package

Gherkin language support for the field editor: line tokenizer, indent
policy, completion catalog, theme, and the process-wide registry.
"""

from language.tokens import Token, TokenRule, TokenRuleSet
from language.indent import IndentAction, IndentPolicy, IndentRule
from language.completion import (
    CompletionCatalog,
    CompletionEntry,
    CompletionItem,
    CompletionKind,
    CompletionList,
    CompletionRange,
)
from language.definition import (
    LanguageConfiguration,
    LanguageDefinition,
    LanguageRegistry,
    RegistrationConflict,
    Theme,
    ThemeRule,
    get_language_registry,
)
from language.gherkin import LANGUAGE_ID, THEME_ID, build_gherkin_definition, register_gherkin

__all__ = [
    "Token",
    "TokenRule",
    "TokenRuleSet",
    "IndentAction",
    "IndentPolicy",
    "IndentRule",
    "CompletionCatalog",
    "CompletionEntry",
    "CompletionItem",
    "CompletionKind",
    "CompletionList",
    "CompletionRange",
    "LanguageConfiguration",
    "LanguageDefinition",
    "LanguageRegistry",
    "RegistrationConflict",
    "Theme",
    "ThemeRule",
    "get_language_registry",
    "LANGUAGE_ID",
    "THEME_ID",
    "build_gherkin_definition",
    "register_gherkin",
]

"""
language/definition.py

LanguageDefinition aggregate and the process-wide registry editors read it
from.

Registration installs, in this order: the language id, the line tokenizer,
the theme, the language configuration (comment marker + indent policy) and
the completion provider. The registry refuses to install a second, different
definition under an id it already holds, and silently ignores a repeat of
the same one, so callers can request registration as often as they like.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from debug_trace import trace
from language.completion import CompletionCatalog
from language.indent import IndentPolicy
from language.tokens import TOKEN_TAGS, TokenRuleSet

log = logging.getLogger(__name__)

# Registration steps, in the order they are applied
STEP_LANGUAGE = "language"
STEP_TOKENIZER = "tokenizer"
STEP_THEME = "theme"
STEP_CONFIGURATION = "configuration"
STEP_COMPLETION = "completion"

REGISTRATION_STEPS = (
    STEP_LANGUAGE,
    STEP_TOKENIZER,
    STEP_THEME,
    STEP_CONFIGURATION,
    STEP_COMPLETION,
)


class RegistrationConflict(Exception):
    """A different definition was offered for an already registered language id."""


@dataclass(frozen=True)
class ThemeRule:
    """Styling for one token tag."""
    tag: str
    foreground: str
    bold: bool = False
    italic: bool = False

    def __post_init__(self):
        if self.tag not in TOKEN_TAGS:
            raise ValueError(f"Unknown token tag: {self.tag!r}")


@dataclass(frozen=True)
class Theme:
    """Named tag→color mapping layered on a base editor theme.

    Attributes:
        theme_id: Unique theme identifier (e.g. "gherkin-theme").
        base: Base theme name the rules refine ("vs" is the light theme).
        inherit: Whether unstyled tags fall back to the base theme.
        rules: One ThemeRule per styled tag.
    """
    theme_id: str
    base: str = "vs"
    inherit: bool = True
    rules: Tuple[ThemeRule, ...] = ()

    def rule_for(self, tag: str) -> Optional[ThemeRule]:
        for rule in self.rules:
            if rule.tag == tag:
                return rule
        return None

    def color_map(self) -> Dict[str, str]:
        return {rule.tag: rule.foreground for rule in self.rules}


@dataclass(frozen=True)
class LanguageConfiguration:
    """Editor behaviour tied to a language: comment marker and indentation."""
    line_comment: str
    indentation: IndentPolicy


@dataclass(frozen=True)
class LanguageDefinition:
    """Everything an editor needs to support one language."""
    language_id: str
    tokenizer: TokenRuleSet
    theme: Theme
    configuration: LanguageConfiguration
    completion: CompletionCatalog

    @property
    def theme_id(self) -> str:
        return self.theme.theme_id


class LanguageRegistry:
    """Holds installed languages. Read-only for editors once populated."""

    def __init__(self):
        self._definitions: Dict[str, LanguageDefinition] = {}
        self._tokenizers: Dict[str, TokenRuleSet] = {}
        self._themes: Dict[str, Theme] = {}
        self._configurations: Dict[str, LanguageConfiguration] = {}
        self._completion_providers: Dict[str, CompletionCatalog] = {}
        # (step, language_id) for every step actually performed
        self.history: List[Tuple[str, str]] = []

    def register(self, definition: LanguageDefinition) -> bool:
        """Install ``definition`` unless it is already installed.

        Returns:
            True if the definition was installed by this call, False if the
            identical definition was already present.

        Raises:
            RegistrationConflict: A different definition already owns the
                language id or the theme id.
        """
        lang = definition.language_id
        existing = self._definitions.get(lang)
        if existing is not None:
            if existing == definition:
                trace(f"Language '{lang}' already registered, skipping", "REGISTRY")
                return False
            raise RegistrationConflict(f"Language '{lang}' is already registered with a different definition")

        theme = self._themes.get(definition.theme_id)
        if theme is not None and theme != definition.theme:
            raise RegistrationConflict(f"Theme '{definition.theme_id}' is already defined differently")

        trace(f"Registering language '{lang}'", "REGISTRY")
        self._definitions[lang] = definition
        self._step(STEP_LANGUAGE, lang)

        self._tokenizers[lang] = definition.tokenizer
        self._step(STEP_TOKENIZER, lang)

        self._themes[definition.theme_id] = definition.theme
        self._step(STEP_THEME, lang)

        self._configurations[lang] = definition.configuration
        self._step(STEP_CONFIGURATION, lang)

        self._completion_providers[lang] = definition.completion
        self._step(STEP_COMPLETION, lang)

        log.info("Registered language %s (theme %s)", lang, definition.theme_id)
        return True

    def _step(self, step: str, language_id: str) -> None:
        self.history.append((step, language_id))
        trace(f"  {step} installed for '{language_id}'", "REGISTRY")

    def is_registered(self, language_id: str) -> bool:
        return language_id in self._definitions

    def definition(self, language_id: str) -> LanguageDefinition:
        return self._definitions[language_id]

    def tokenizer(self, language_id: str) -> TokenRuleSet:
        return self._tokenizers[language_id]

    def theme(self, theme_id: str) -> Theme:
        return self._themes[theme_id]

    def configuration(self, language_id: str) -> LanguageConfiguration:
        return self._configurations[language_id]

    def completion_provider(self, language_id: str) -> CompletionCatalog:
        return self._completion_providers[language_id]

    def languages(self) -> List[str]:
        return list(self._definitions)


# Global registry instance (singleton)
_registry: Optional[LanguageRegistry] = None


def get_language_registry() -> LanguageRegistry:
    """Get the process-wide language registry."""
    global _registry
    if _registry is None:
        _registry = LanguageRegistry()
    return _registry

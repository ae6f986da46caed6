"""
language/tokens.py

Line tokenizer for the Gherkin editor.

A TokenRuleSet is an ordered list of regex rules. Each line is scanned once
from left to right; at every position not yet covered, the rules are tried
in order against the raw line and the first match wins. Whatever no rule
claims is reported as plain text, so the returned tokens always cover the
whole line.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable, List, Pattern, Tuple

# Semantic tags understood by themes
KEYWORD = "keyword"
STRING = "string"
COMMENT = "comment"
TEXT = "text"

TOKEN_TAGS = (KEYWORD, STRING, COMMENT, TEXT)


@dataclass(frozen=True)
class Token:
    """A tagged span of one line. ``end`` is exclusive."""
    start: int
    end: int
    tag: str

    @property
    def length(self) -> int:
        return self.end - self.start

    def text(self, line: str) -> str:
        """Return the slice of ``line`` covered by this token."""
        return line[self.start:self.end]


@dataclass(frozen=True)
class TokenRule:
    """One lexical rule.

    Attributes:
        pattern: Regular expression source. Patterns starting with ``^`` only
            fire at the beginning of a line.
        tag: Semantic tag applied to the matched span (one of TOKEN_TAGS).
        group: Capture group that receives the tag. Text matched before the
            group (e.g. leading indentation) is reported as plain text.
    """
    pattern: str
    tag: str
    group: int = 0
    regex: Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        if self.tag not in TOKEN_TAGS:
            raise ValueError(f"Unknown token tag: {self.tag!r}")
        compiled = re.compile(self.pattern)
        if self.group > compiled.groups:
            raise ValueError(f"Pattern {self.pattern!r} has no group {self.group}")
        object.__setattr__(self, "regex", compiled)

    def match_at(self, line: str, pos: int) -> Tuple[int, int, int] | None:
        """Try the rule at ``pos``.

        Returns:
            ``(tagged_start, tagged_end, match_end)`` or None. The match must
            consume at least one character.
        """
        m = self.regex.match(line, pos)
        if m is None or m.end() == pos:
            return None
        start, end = m.span(self.group)
        if start < 0 or start == end:
            return None
        return start, end, m.end()


class TokenRuleSet:
    """Ordered, immutable collection of TokenRules."""

    def __init__(self, rules: Iterable[TokenRule]):
        self._rules: Tuple[TokenRule, ...] = tuple(rules)

    @property
    def rules(self) -> Tuple[TokenRule, ...]:
        return self._rules

    def __len__(self) -> int:
        return len(self._rules)

    def __eq__(self, other) -> bool:
        if not isinstance(other, TokenRuleSet):
            return NotImplemented
        return self._rules == other._rules

    def __hash__(self) -> int:
        return hash(self._rules)

    def tokenize_line(self, line: str) -> List[Token]:
        """Split one line into tagged spans covering it completely.

        Args:
            line: A single line without its line terminator.

        Returns:
            Tokens in order. Adjacent plain-text spans are merged. An empty
            line yields an empty list.
        """
        tokens: List[Token] = []
        text_start = -1
        pos = 0
        n = len(line)

        def flush_text(upto: int):
            nonlocal text_start
            if text_start >= 0 and upto > text_start:
                tokens.append(Token(text_start, upto, TEXT))
            text_start = -1

        while pos < n:
            for rule in self._rules:
                hit = rule.match_at(line, pos)
                if hit is None:
                    continue
                tagged_start, tagged_end, match_end = hit
                if tagged_start > pos and text_start < 0:
                    text_start = pos
                if rule.tag == TEXT:
                    if text_start < 0:
                        text_start = tagged_start
                else:
                    flush_text(tagged_start)
                    tokens.append(Token(tagged_start, tagged_end, rule.tag))
                    if match_end > tagged_end:
                        text_start = tagged_end
                pos = match_end
                break
            else:
                if text_start < 0:
                    text_start = pos
                pos += 1

        flush_text(n)
        return tokens

    def tokenize(self, text: str) -> List[List[Token]]:
        """Tokenize every line of ``text``. Strings never span lines."""
        return [self.tokenize_line(line) for line in text.splitlines()]

"""
language/indent.py

Auto-indent policy. Purely advisory: the editor asks it how to indent
a line, nothing is ever rejected.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable, Pattern, Tuple

INCREASE = "increase"
DECREASE = "decrease"

_LEADING_WS = re.compile(r"^[ \t]*")


@dataclass(frozen=True)
class IndentRule:
    """A pattern and the indent direction it triggers."""
    pattern: str
    direction: str
    regex: Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        if self.direction not in (INCREASE, DECREASE):
            raise ValueError(f"Unknown indent direction: {self.direction!r}")
        object.__setattr__(self, "regex", re.compile(self.pattern))

    def matches(self, line: str) -> bool:
        return self.regex.search(line) is not None


@dataclass(frozen=True)
class IndentAction:
    """Outcome of evaluating one line. Both flags may be set at once."""
    increase: bool = False
    decrease: bool = False


def leading_whitespace(line: str) -> str:
    return _LEADING_WS.match(line).group(0)


class IndentPolicy:
    """Evaluates every IndentRule independently against a line."""

    def __init__(self, rules: Iterable[IndentRule]):
        self._rules: Tuple[IndentRule, ...] = tuple(rules)

    @property
    def rules(self) -> Tuple[IndentRule, ...]:
        return self._rules

    def __eq__(self, other) -> bool:
        if not isinstance(other, IndentPolicy):
            return NotImplemented
        return self._rules == other._rules

    def __hash__(self) -> int:
        return hash(self._rules)

    def evaluate(self, line: str) -> IndentAction:
        """Report whether ``line`` increases the indent after it, decreases
        its own indent, both, or neither."""
        increase = any(r.matches(line) for r in self._rules if r.direction == INCREASE)
        decrease = any(r.matches(line) for r in self._rules if r.direction == DECREASE)
        return IndentAction(increase=increase, decrease=decrease)

    def indent_after(self, line: str, unit: str) -> str:
        """Indentation for a new line opened after ``line``."""
        indent = leading_whitespace(line)
        if self.evaluate(line).increase:
            indent += unit
        return indent

    def indent_for(self, line: str, previous_line: str, unit: str) -> str:
        """Indentation ``line`` should carry given the line above it.

        Starts from what ``previous_line`` asks for and removes one unit when
        ``line`` itself triggers a decrease.
        """
        indent = self.indent_after(previous_line, unit)
        if self.evaluate(line).decrease:
            indent = dedent_once(indent, unit)
        return indent


def dedent_once(indent: str, unit: str) -> str:
    """Drop one indent level from the end of ``indent``."""
    if unit and indent.endswith(unit):
        return indent[:-len(unit)]
    if indent.endswith("\t"):
        return indent[:-1]
    # Mixed or partial indentation: trim up to one unit's worth of spaces
    width = len(unit) if unit else 4
    stripped = indent.rstrip(" ")
    removed = len(indent) - len(stripped)
    if removed > width:
        return indent[:-width]
    return stripped

"""
language/completion.py

Static completion catalog.

The catalog ignores the document entirely: every request gets the same
entries, stamped with the word range the editor computed at the cursor.
Prefix filtering is left to the editor widget.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Tuple


class CompletionKind(str, Enum):
    KEYWORD = "Keyword"
    SNIPPET = "Snippet"


@dataclass(frozen=True)
class CompletionRange:
    """Replacement range on a single line, 1-based columns, end exclusive."""
    start_line_number: int
    end_line_number: int
    start_column: int
    end_column: int

    @classmethod
    def on_line(cls, line_number: int, start_column: int, end_column: int) -> "CompletionRange":
        return cls(line_number, line_number, start_column, end_column)


@dataclass(frozen=True)
class CompletionEntry:
    """One catalog entry. ``insert_text`` may span several lines."""
    label: str
    kind: CompletionKind
    insert_text: str


@dataclass(frozen=True)
class CompletionItem:
    """A catalog entry bound to the range it replaces."""
    label: str
    kind: CompletionKind
    insert_text: str
    range: CompletionRange


@dataclass(frozen=True)
class CompletionList:
    suggestions: Tuple[CompletionItem, ...]

    def labels(self) -> List[str]:
        return [s.label for s in self.suggestions]

    def find(self, label: str) -> CompletionItem | None:
        for s in self.suggestions:
            if s.label == label:
                return s
        return None


class CompletionCatalog:
    """Completion provider backed by a fixed list of entries."""

    def __init__(self, entries: Iterable[CompletionEntry]):
        self._entries: Tuple[CompletionEntry, ...] = tuple(entries)

    @property
    def entries(self) -> Tuple[CompletionEntry, ...]:
        return self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other) -> bool:
        if not isinstance(other, CompletionCatalog):
            return NotImplemented
        return self._entries == other._entries

    def __hash__(self) -> int:
        return hash(self._entries)

    def provide_completion_items(self, word_range: CompletionRange) -> CompletionList:
        """Return every entry, each targeting ``word_range``."""
        return CompletionList(tuple(
            CompletionItem(e.label, e.kind, e.insert_text, word_range)
            for e in self._entries
        ))

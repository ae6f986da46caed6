"""
debug_trace.py

Category tracing for following the editor/field sync flow.

GHERKIN_FIELD_TRACE selects what is traced:
    1, true, yes, on, all   every category except PAINT
    SYNC,SESSION            only the listed categories (PAINT may be listed)

GHERKIN_FIELD_TRACE_FILE optionally names a file that receives a copy of
every trace line.
"""

import os
import sys
import traceback
from datetime import datetime
from typing import FrozenSet, Optional, TextIO

ALL = "*"

# Highlighter passes fire per block; only traced when asked for by name
VERBOSE_CATEGORIES = frozenset({"PAINT"})

_TRUTHY = ("1", "true", "yes", "on", "all")


def parse_categories(value: Optional[str]) -> FrozenSet[str]:
    """Turn a GHERKIN_FIELD_TRACE value into the set of enabled categories.

    Returns:
        An empty set when tracing is off, ``{ALL}`` for the switch values,
        otherwise the upper-cased category names.
    """
    value = (value or "").strip()
    if not value or value.lower() in ("0", "false", "no", "off"):
        return frozenset()
    if value.lower() in _TRUTHY:
        return frozenset({ALL})
    return frozenset(part.strip().upper() for part in value.split(",") if part.strip())


class _TraceSink:
    """Writes trace lines to stderr and, when configured, to a file."""

    def __init__(self, categories: FrozenSet[str], path: Optional[str]):
        self.categories = categories
        self.path = path
        self._file: Optional[TextIO] = None
        self._file_failed = False

    def enabled(self, category: str) -> bool:
        if category in self.categories:
            return True
        return ALL in self.categories and category not in VERBOSE_CATEGORIES

    def write(self, line: str) -> None:
        print(line, file=sys.stderr, flush=True)
        f = self._open()
        if f is None:
            return
        try:
            f.write(line + "\n")
            f.flush()
        except OSError:
            self._file_failed = True

    def _open(self) -> Optional[TextIO]:
        if self._file is None and self.path and not self._file_failed:
            try:
                self._file = open(self.path, "w", encoding="utf-8")
            except OSError:
                self._file_failed = True
        return self._file

    def close(self) -> None:
        if self._file is not None:
            try:
                self._file.close()
            except OSError:
                pass
            self._file = None


_sink = _TraceSink(parse_categories(os.environ.get("GHERKIN_FIELD_TRACE")),
                   os.environ.get("GHERKIN_FIELD_TRACE_FILE") or None)


def trace(msg: str, category: str = "INFO"):
    """Emit ``msg`` under ``category`` if that category is enabled."""
    if not _sink.enabled(category):
        return
    timestamp = datetime.now().strftime("%H:%M:%S.%f")[:-3]
    _sink.write(f"[{timestamp}] [{category}] {msg}")


def trace_exception(msg: str = "Exception"):
    """Trace the exception currently being handled."""
    trace(f"{msg}: {traceback.format_exc()}", "ERROR")


def close_log():
    """Close the trace file, if one was opened."""
    _sink.close()

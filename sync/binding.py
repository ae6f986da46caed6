"""
sync/binding.py

Binding between the editor text and one external field.

Writes go through a single-slot channel: every edit replaces the pending
value and bumps a sequence number, and one drain task writes whatever is
pending, one write at a time. A write therefore never starts before the
previous one has completed, so a slow early write cannot land after a newer
one. Values superseded while a write is in flight are skipped; the field
always ends on the latest edit.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Optional, Tuple

from debug_trace import trace
from sync.errors import InitialReadFailure, WriteFailure
from sync.host import FieldStore

log = logging.getLogger(__name__)


def coerce_initial_value(value: Any) -> str:
    """Turn a raw field value into editor text.

    An empty (None) field seeds an empty document. Anything that is not text
    is rejected rather than guessed at.
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    raise InitialReadFailure(f"Field value has unsupported type {type(value).__name__}")


class FieldBinding:
    """Ordered write channel to one external field.

    Must be created while an asyncio loop is running; writes are scheduled
    on that loop.

    Args:
        store: The host's field store.
        field_key: Field that edits are written to.
        read_key: Field the initial value is read from.
        on_write_failed: Called with a WriteFailure whenever a write fails.
        on_busy_changed: Called with True when a write starts draining and
            False when the channel is empty again.
    """

    def __init__(self, store: FieldStore, field_key: str, read_key: str,
                 on_write_failed: Optional[Callable[[WriteFailure], None]] = None,
                 on_busy_changed: Optional[Callable[[bool], None]] = None):
        self.store = store
        self.external_field_key = field_key
        self.read_key = read_key
        self.on_write_failed = on_write_failed
        self.on_busy_changed = on_busy_changed

        self.pending_value: str = ""
        self.last_error: Optional[WriteFailure] = None

        self._loop = asyncio.get_running_loop()
        self._slot: Optional[Tuple[int, str]] = None
        self._drain_task: Optional[asyncio.Task] = None
        self._issued_seq = 0
        self._applied_seq = 0
        self._closed = False

    @property
    def issued_sequence(self) -> int:
        """Sequence number of the most recent accepted edit."""
        return self._issued_seq

    @property
    def applied_sequence(self) -> int:
        """Sequence number of the most recent write that reached the store."""
        return self._applied_seq

    @property
    def busy(self) -> bool:
        return self._drain_task is not None and not self._drain_task.done()

    @property
    def closed(self) -> bool:
        return self._closed

    async def read_initial(self) -> str:
        """Read the seed value from the read key.

        Raises:
            InitialReadFailure: The read failed or returned a non-text value.
        """
        trace(f"Reading initial value from '{self.read_key}'", "SYNC")
        try:
            raw = await self.store.get_field_value(self.read_key)
        except Exception as e:
            raise InitialReadFailure(f"Could not read field '{self.read_key}': {e}") from e
        value = coerce_initial_value(raw)
        self.pending_value = value
        return value

    def submit(self, value: str) -> int:
        """Queue ``value`` as the newest content of the field.

        Returns:
            The sequence number assigned to the edit, or 0 if the binding is
            closed and the edit was dropped.
        """
        if self._closed:
            log.warning("Dropping edit for '%s': binding is closed", self.external_field_key)
            return 0
        self._issued_seq += 1
        self._slot = (self._issued_seq, value)
        self.pending_value = value
        trace(f"Edit #{self._issued_seq} queued for '{self.external_field_key}'", "SYNC")
        if not self.busy:
            self._drain_task = self._loop.create_task(self._drain())
            self._notify_busy(True)
        return self._issued_seq

    async def _drain(self) -> None:
        try:
            while self._slot is not None:
                seq, value = self._slot
                self._slot = None
                await self._write(seq, value)
        finally:
            self._drain_task = None
            self._notify_busy(False)

    async def _write(self, seq: int, value: str) -> None:
        trace(f"Writing #{seq} to '{self.external_field_key}'", "SYNC")
        try:
            await self.store.set_field_value(self.external_field_key, value)
        except Exception as e:
            failure = WriteFailure(f"Write #{seq} to '{self.external_field_key}' failed: {e}",
                                   field_key=self.external_field_key, sequence=seq)
            failure.__cause__ = e
            self.last_error = failure
            log.warning("%s", failure)
            if self.on_write_failed is not None:
                try:
                    self.on_write_failed(failure)
                except Exception:
                    log.exception("Write failure handler raised for '%s'", self.external_field_key)
            return
        self._applied_seq = seq
        if self.last_error is not None and self.last_error.sequence < seq:
            # A newer value reached the field; the failure is superseded
            self.last_error = None
        trace(f"Write #{seq} applied", "SYNC")

    def _notify_busy(self, busy: bool) -> None:
        if self.on_busy_changed is not None:
            self.on_busy_changed(busy)

    async def flush(self) -> None:
        """Wait until every accepted edit has been written (or failed)."""
        while self._drain_task is not None:
            await asyncio.shield(self._drain_task)

    def stop(self) -> None:
        """Refuse all further edits. Writes already accepted still run."""
        if not self._closed:
            trace(f"Closing binding for '{self.external_field_key}'", "SYNC")
        self._closed = True

    async def close(self) -> None:
        """Stop accepting edits and let already accepted ones finish."""
        self.stop()
        await self.flush()

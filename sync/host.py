"""
sync/host.py

Interfaces to the host application, plus an in-process host.

The host owns two services the editor depends on: the loading handshake
(init / notify loaded) together with the widget's configuration inputs, and
the field store (get / set a named value). Both are async.
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional, Protocol, Tuple, runtime_checkable

from debug_trace import trace
from sync.errors import HandshakeFailure


@runtime_checkable
class HostHandshake(Protocol):
    """Startup protocol between the hosted editor and its host."""

    async def init(self) -> None:
        """Signal that loading has started."""
        ...

    async def notify_loaded(self) -> None:
        """Signal that the editor is ready and may be shown. Called once."""
        ...

    async def notify_load_failed(self, message: str) -> None:
        """Signal that the editor could not start."""
        ...

    def get_configuration(self) -> Dict[str, Any]:
        """Inputs the host configured for this widget."""
        ...


@runtime_checkable
class FieldStore(Protocol):
    """Named-value storage owned by the host."""

    async def get_field_value(self, field_key: str) -> Any:
        ...

    async def set_field_value(self, field_key: str, value: str) -> Any:
        ...


def resolve_field_name(configuration: Dict[str, Any], option: str = "FieldName") -> str:
    """Return the write key named by ``option`` in the host configuration.

    Raises:
        HandshakeFailure: The option is missing or not a non-empty string.
    """
    value = configuration.get(option) if isinstance(configuration, dict) else None
    if not isinstance(value, str) or not value.strip():
        raise HandshakeFailure(f"Host configuration has no usable '{option}' option")
    return value


class InMemoryHost:
    """Host and field store living in the same process.

    Used by the standalone application and by the tests. Writes can be given
    a per-call latency to reproduce out-of-order completion.

    Args:
        fields: Initial field values.
        configuration: Widget inputs returned by get_configuration().
        latency: Default delay, in seconds, applied to every store call.
    """

    def __init__(self, fields: Optional[Dict[str, Any]] = None,
                 configuration: Optional[Dict[str, Any]] = None,
                 latency: float = 0.0):
        self.fields: Dict[str, Any] = dict(fields or {})
        self.configuration: Dict[str, Any] = dict(configuration or {})
        self.latency = latency

        # Scripted behaviour
        self.write_latencies: List[float] = []   # consumed one per write, overrides latency
        self.fail_init: Optional[Exception] = None
        self.fail_reads: Optional[Exception] = None
        self.fail_writes: int = 0                # number of upcoming writes to fail

        # Observations
        self.init_calls = 0
        self.loaded_calls = 0
        self.load_failures: List[str] = []
        self.writes: List[Tuple[str, str]] = []  # (key, value) in completion order

    async def init(self) -> None:
        self.init_calls += 1
        await self._delay(self.latency)
        if self.fail_init is not None:
            raise self.fail_init

    async def notify_loaded(self) -> None:
        self.loaded_calls += 1
        trace("Host notified: loaded", "SESSION")

    async def notify_load_failed(self, message: str) -> None:
        self.load_failures.append(message)
        trace(f"Host notified: load failed ({message})", "SESSION")

    def get_configuration(self) -> Dict[str, Any]:
        return dict(self.configuration)

    async def get_field_value(self, field_key: str) -> Any:
        await self._delay(self.latency)
        if self.fail_reads is not None:
            raise self.fail_reads
        return self.fields.get(field_key)

    async def set_field_value(self, field_key: str, value: str) -> bool:
        delay = self.write_latencies.pop(0) if self.write_latencies else self.latency
        await self._delay(delay)
        if self.fail_writes > 0:
            self.fail_writes -= 1
            raise OSError(f"Simulated write failure for '{field_key}'")
        self.fields[field_key] = value
        self.writes.append((field_key, value))
        return True

    @staticmethod
    async def _delay(seconds: float) -> None:
        if seconds > 0:
            await asyncio.sleep(seconds)
        else:
            await asyncio.sleep(0)

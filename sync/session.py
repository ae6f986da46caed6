"""
sync/session.py

EditorSession: the coordinator between the host, the language registry and
the field binding.

States::

    UNINITIALIZED -> AWAITING_HOST_READY -> BOUND <-> SYNCING -> UNBOUND
                                 |-> FAILED
                                 \\-> UNBOUND (closed before binding)

The editor must stay hidden until the session is BOUND. Once bound, every
edit updates ``current_text`` synchronously and is handed to the binding,
which writes to the host in edit order.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, NoReturn, Optional

from debug_trace import trace
from language.definition import LanguageDefinition, LanguageRegistry
from language.gherkin import register_gherkin
from settings import FieldSettings
from sync.binding import FieldBinding
from sync.errors import HandshakeFailure, InitialReadFailure, SyncError, WriteFailure
from sync.host import FieldStore, HostHandshake, resolve_field_name

log = logging.getLogger(__name__)


class SessionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    AWAITING_HOST_READY = "awaiting_host_ready"
    BOUND = "bound"
    SYNCING = "syncing"
    UNBOUND = "unbound"
    FAILED = "failed"


_LIVE_STATES = (SessionState.BOUND, SessionState.SYNCING)


class EditorSession:
    """One editor instance bound to one external field.

    Args:
        host: Handshake side of the host.
        store: Field store; defaults to ``host`` when it implements both.
        registry: Language registry to register into; defaults to the
            process-wide one.
        field_settings: Read key and configuration option name.
        register_language: Callable performing the (idempotent) language
            registration and returning the definition.
        on_state_changed: Called with the new SessionState after each change.
        on_write_failed: Called with each WriteFailure.
    """

    def __init__(self, host: HostHandshake, store: Optional[FieldStore] = None,
                 registry: Optional[LanguageRegistry] = None,
                 field_settings: Optional[FieldSettings] = None,
                 register_language: Optional[Callable[[], LanguageDefinition]] = None,
                 on_state_changed: Optional[Callable[[SessionState], None]] = None,
                 on_write_failed: Optional[Callable[[WriteFailure], None]] = None):
        self.host = host
        self.store: FieldStore = store if store is not None else host
        self.field_settings = field_settings or FieldSettings()
        self._register_language = register_language or (lambda: register_gherkin(registry))
        self.on_state_changed = on_state_changed
        self.on_write_failed = on_write_failed

        self.current_text: str = ""
        self.ready: bool = False
        self.error: Optional[SyncError] = None
        self.last_write_error: Optional[WriteFailure] = None
        self.field_name: str = ""
        self.binding: Optional[FieldBinding] = None
        self._language: Optional[LanguageDefinition] = None
        self._state = SessionState.UNINITIALIZED
        # Set once teardown begins, even while start() is still awaiting
        self._closing = False

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    def _set_state(self, state: SessionState) -> None:
        if state == self._state:
            return
        trace(f"Session {self._state.value} -> {state.value}", "SESSION")
        self._state = state
        if self.on_state_changed is not None:
            self.on_state_changed(state)

    @property
    def is_bound(self) -> bool:
        return self._state in _LIVE_STATES

    # -------------------------------------------------------------------------
    # Language
    # -------------------------------------------------------------------------

    def ensure_language(self) -> LanguageDefinition:
        """Request language registration; only the first request in the
        process does any work."""
        if self._language is None:
            self._language = self._register_language()
        return self._language

    @property
    def language(self) -> LanguageDefinition:
        return self.ensure_language()

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def start(self) -> str:
        """Run the handshake, bind the field and seed ``current_text``.

        If close() is called while this is still awaiting the host, the
        session stays UNBOUND: no binding is kept and the host is never told
        the editor loaded.

        Returns:
            The initial text, or "" if the session was closed before it
            could bind.

        Raises:
            HandshakeFailure: The host handshake failed or the configuration
                does not name a field.
            InitialReadFailure: The initial value could not be read.
        """
        if self._state != SessionState.UNINITIALIZED:
            raise RuntimeError(f"Session already started (state: {self._state.value})")

        self._set_state(SessionState.AWAITING_HOST_READY)
        try:
            await self.host.init()
        except Exception as e:
            if self._closing:
                return self._abandon_start()
            await self._fail(HandshakeFailure(f"Host handshake failed: {e}"), e)
        if self._closing:
            return self._abandon_start()

        self.ensure_language()

        try:
            self.field_name = resolve_field_name(self.host.get_configuration(),
                                                 self.field_settings.field_name_option)
        except HandshakeFailure as e:
            await self._fail(e)

        self.binding = FieldBinding(
            self.store,
            field_key=self.field_name,
            read_key=self.field_settings.read_field_key,
            on_write_failed=self._on_write_failed,
            on_busy_changed=self._on_busy_changed,
        )
        try:
            value = await self.binding.read_initial()
        except InitialReadFailure as e:
            if self._closing:
                return self._abandon_start()
            await self._fail(e, e.__cause__)
        if self._closing:
            return self._abandon_start()

        self.current_text = value
        self.ready = True
        self._set_state(SessionState.BOUND)
        log.info("Editor bound: reading '%s', writing '%s'",
                 self.field_settings.read_field_key, self.field_name)
        await self.host.notify_loaded()
        return value

    def _abandon_start(self) -> str:
        """Drop a start that was overtaken by close()."""
        if self.binding is not None:
            self.binding.stop()
            self.binding = None
        self._set_state(SessionState.UNBOUND)
        log.info("Session closed before it was bound; not binding '%s'",
                 self.field_name or self.field_settings.read_field_key)
        return ""

    async def _fail(self, error: SyncError, cause: Optional[BaseException] = None) -> NoReturn:
        """Enter FAILED, tell the host, and raise ``error``."""
        self.error = error
        self.binding = None
        self._set_state(SessionState.FAILED)
        log.error("Editor session failed: %s", error)
        notify = getattr(self.host, "notify_load_failed", None)
        if notify is not None:
            try:
                await notify(str(error))
            except Exception:
                log.exception("Host rejected load failure notification")
        if cause is not None:
            raise error from cause
        raise error

    def on_content_change(self, new_value: str) -> bool:
        """Record an edit and queue its write.

        Returns:
            True if the edit was accepted, False if the session is not bound.
        """
        if not self.is_bound or self.binding is None:
            log.warning("Ignoring edit while session is %s", self._state.value)
            return False
        self.current_text = new_value
        return self.binding.submit(new_value) > 0

    async def flush(self) -> None:
        """Wait for all queued writes to finish."""
        if self.binding is not None:
            await self.binding.flush()

    async def close(self) -> None:
        """Tear down: refuse further edits, let queued writes finish.

        May be called at any point, including while start() is still
        waiting on the host.
        """
        self._closing = True
        if self._state == SessionState.UNBOUND:
            return
        binding = self.binding
        if binding is not None:
            binding.stop()
        if self._state != SessionState.FAILED:
            self._set_state(SessionState.UNBOUND)
        if binding is not None:
            await binding.flush()

    # -------------------------------------------------------------------------
    # Binding callbacks
    # -------------------------------------------------------------------------

    def _on_busy_changed(self, busy: bool) -> None:
        if not busy and self.binding is not None:
            self.last_write_error = self.binding.last_error
        if self._state not in _LIVE_STATES:
            return
        self._set_state(SessionState.SYNCING if busy else SessionState.BOUND)

    def _on_write_failed(self, failure: WriteFailure) -> None:
        self.last_write_error = failure
        if self.on_write_failed is not None:
            self.on_write_failed(failure)

"""
tests/test_session.py

EditorSession lifecycle: handshake, binding, edits and teardown.
"""

from __future__ import annotations

import asyncio

import pytest

from language.definition import REGISTRATION_STEPS, LanguageRegistry
from language.gherkin import LANGUAGE_ID
from settings import FieldSettings
from sync.errors import HandshakeFailure, InitialReadFailure
from sync.host import InMemoryHost, resolve_field_name
from sync.session import EditorSession, SessionState


def _host(**fields) -> InMemoryHost:
    return InMemoryHost(fields, {"FieldName": "Steps"})


def _session(host: InMemoryHost, states=None, registry=None) -> EditorSession:
    return EditorSession(
        host,
        registry=registry or LanguageRegistry(),
        on_state_changed=states.append if states is not None else None,
    )


class TestStart:
    @pytest.mark.asyncio
    async def test_happy_path(self):
        host = _host(GherkinField="Feature: login")
        states = []
        registry = LanguageRegistry()
        session = _session(host, states, registry)
        assert session.state == SessionState.UNINITIALIZED

        text = await session.start()

        assert text == "Feature: login"
        assert session.current_text == "Feature: login"
        assert session.ready is True
        assert session.field_name == "Steps"
        assert states == [SessionState.AWAITING_HOST_READY, SessionState.BOUND]
        assert host.init_calls == 1
        assert host.loaded_calls == 1
        assert registry.is_registered(LANGUAGE_ID)

    @pytest.mark.asyncio
    async def test_edit_written_to_configured_field(self):
        host = _host()
        session = _session(host)
        await session.start()
        assert session.current_text == ""

        assert session.on_content_change("x") is True
        await session.flush()
        assert host.fields["Steps"] == "x"
        assert "GherkinField" not in host.fields

    @pytest.mark.asyncio
    async def test_custom_field_settings(self):
        host = InMemoryHost({"Seed": "Given a"}, {"Target": "Out"})
        session = EditorSession(host, registry=LanguageRegistry(),
                                field_settings=FieldSettings(read_field_key="Seed", field_name_option="Target"))
        assert await session.start() == "Given a"
        session.on_content_change("Given b")
        await session.flush()
        assert host.fields["Out"] == "Given b"

    @pytest.mark.asyncio
    async def test_start_twice_rejected(self):
        session = _session(_host())
        await session.start()
        with pytest.raises(RuntimeError):
            await session.start()

    @pytest.mark.asyncio
    async def test_sessions_share_one_registration(self):
        registry = LanguageRegistry()
        first = _session(_host(), registry=registry)
        second = _session(_host(), registry=registry)
        await first.start()
        await second.start()
        assert first.language is second.language
        assert len(registry.history) == len(REGISTRATION_STEPS)


class TestStartFailures:
    @pytest.mark.asyncio
    async def test_handshake_failure(self):
        host = _host()
        host.fail_init = ConnectionError("host gone")
        states = []
        session = _session(host, states)

        with pytest.raises(HandshakeFailure) as exc_info:
            await session.start()

        assert isinstance(exc_info.value.__cause__, ConnectionError)
        assert session.state == SessionState.FAILED
        assert states[-1] == SessionState.FAILED
        assert session.ready is False
        assert host.loaded_calls == 0
        assert len(host.load_failures) == 1

    @pytest.mark.asyncio
    async def test_missing_field_name(self):
        host = InMemoryHost({}, {})
        session = _session(host)
        with pytest.raises(HandshakeFailure):
            await session.start()
        assert session.state == SessionState.FAILED
        assert host.loaded_calls == 0

    @pytest.mark.asyncio
    async def test_read_failure(self):
        host = _host()
        host.fail_reads = OSError("disk")
        session = _session(host)
        with pytest.raises(InitialReadFailure) as exc_info:
            await session.start()
        assert isinstance(exc_info.value.__cause__, OSError)
        assert session.state == SessionState.FAILED
        assert session.error is exc_info.value
        assert host.loaded_calls == 0

    @pytest.mark.asyncio
    async def test_non_text_initial_value(self):
        session = _session(_host(GherkinField={"steps": []}))
        with pytest.raises(InitialReadFailure):
            await session.start()
        assert session.on_content_change("x") is False

    def test_resolve_field_name(self):
        assert resolve_field_name({"FieldName": "A"}) == "A"
        with pytest.raises(HandshakeFailure):
            resolve_field_name({"FieldName": "  "})
        with pytest.raises(HandshakeFailure):
            resolve_field_name({"FieldName": 3})


class TestEdits:
    def test_edit_before_start_dropped(self):
        host = _host()
        session = _session(host)
        assert session.on_content_change("early") is False
        assert session.current_text == ""

    @pytest.mark.asyncio
    async def test_syncing_state_while_writing(self):
        host = _host()
        states = []
        session = _session(host, states)
        await session.start()
        session.on_content_change("Given a")
        assert session.state == SessionState.SYNCING
        await session.flush()
        assert session.state == SessionState.BOUND
        assert states == [
            SessionState.AWAITING_HOST_READY,
            SessionState.BOUND,
            SessionState.SYNCING,
            SessionState.BOUND,
        ]

    @pytest.mark.asyncio
    async def test_latest_edit_wins(self):
        host = _host()
        host.write_latencies = [0.05, 0.0, 0.0]
        session = _session(host)
        await session.start()

        session.on_content_change("E1")
        await asyncio.sleep(0)
        session.on_content_change("E2")
        await session.flush()

        assert [value for _, value in host.writes] == ["E1", "E2"]
        assert host.fields["Steps"] == session.current_text == "E2"

    @pytest.mark.asyncio
    async def test_write_failure_keeps_text_and_recovers(self):
        host = _host()
        host.fail_writes = 1
        failures = []
        session = _session(host)
        session.on_write_failed = failures.append
        await session.start()

        session.on_content_change("first")
        await session.flush()
        assert session.current_text == "first"
        assert session.state == SessionState.BOUND
        assert session.last_write_error is failures[0]

        session.on_content_change("second")
        await session.flush()
        assert host.fields["Steps"] == "second"
        assert session.last_write_error is None


class TestClose:
    @pytest.mark.asyncio
    async def test_close_finishes_in_flight_write_and_rejects_edits(self):
        host = _host()
        host.write_latencies = [0.05]
        states = []
        session = _session(host, states)
        await session.start()

        session.on_content_change("E1")
        await asyncio.sleep(0)
        await session.close()

        assert session.state == SessionState.UNBOUND
        assert host.fields["Steps"] == "E1"
        assert session.on_content_change("E2") is False
        assert host.fields["Steps"] == "E1"
        assert states[-1] == SessionState.UNBOUND

    @pytest.mark.asyncio
    async def test_close_after_failure_stays_failed(self):
        host = _host()
        host.fail_init = RuntimeError("no")
        session = _session(host)
        with pytest.raises(HandshakeFailure):
            await session.start()
        await session.close()
        assert session.state == SessionState.FAILED


class _GatedReadHost(InMemoryHost):
    """Host whose initial read waits until released."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.read_started = asyncio.Event()
        self.release_read = asyncio.Event()

    async def get_field_value(self, field_key):
        self.read_started.set()
        await self.release_read.wait()
        return await super().get_field_value(field_key)


class TestCloseBeforeBound:
    @pytest.mark.asyncio
    async def test_close_during_handshake_never_binds(self):
        host = InMemoryHost({"GherkinField": "Feature: a"}, {"FieldName": "Steps"}, latency=0.05)
        states = []
        session = _session(host, states)

        task = asyncio.ensure_future(session.start())
        await asyncio.sleep(0.01)
        await session.close()
        assert await task == ""

        assert session.state == SessionState.UNBOUND
        assert session.binding is None
        assert session.ready is False
        assert host.loaded_calls == 0
        assert session.on_content_change("after teardown") is False
        await session.flush()
        assert "Steps" not in host.fields
        assert SessionState.BOUND not in states

    @pytest.mark.asyncio
    async def test_close_during_initial_read_drops_binding(self):
        host = _GatedReadHost({"GherkinField": "Feature: a"}, {"FieldName": "Steps"})
        session = _session(host)

        task = asyncio.ensure_future(session.start())
        await host.read_started.wait()
        await session.close()
        host.release_read.set()
        assert await task == ""

        assert session.state == SessionState.UNBOUND
        assert session.binding is None
        assert session.current_text == ""
        assert host.loaded_calls == 0
        assert session.on_content_change("x") is False
        assert host.writes == []

    @pytest.mark.asyncio
    async def test_failure_after_close_is_not_reported(self):
        host = InMemoryHost({}, {"FieldName": "Steps"}, latency=0.05)
        host.fail_init = ConnectionError("host gone")
        session = _session(host)

        task = asyncio.ensure_future(session.start())
        await asyncio.sleep(0.01)
        await session.close()
        assert await task == ""
        assert session.state == SessionState.UNBOUND
        assert host.load_failures == []

    @pytest.mark.asyncio
    async def test_closed_session_cannot_start(self):
        host = _host()
        session = _session(host)
        await session.close()
        assert session.state == SessionState.UNBOUND
        with pytest.raises(RuntimeError):
            await session.start()
        assert host.init_calls == 0

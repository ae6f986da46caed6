"""
sync package

Keeps the editor text and one external host field in step: host handshake,
initial read, and ordered asynchronous writes.
"""

from sync.errors import HandshakeFailure, InitialReadFailure, SyncError, WriteFailure
from sync.host import FieldStore, HostHandshake, InMemoryHost, resolve_field_name
from sync.binding import FieldBinding
from sync.session import EditorSession, SessionState

__all__ = [
    "SyncError",
    "HandshakeFailure",
    "InitialReadFailure",
    "WriteFailure",
    "FieldStore",
    "HostHandshake",
    "InMemoryHost",
    "resolve_field_name",
    "FieldBinding",
    "EditorSession",
    "SessionState",
]

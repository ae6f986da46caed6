"""
sync/errors.py

Failure taxonomy for the field editor session.

HandshakeFailure and InitialReadFailure are fatal for the session that hits
them. WriteFailure is recoverable: it is reported and the next successful
write supersedes it. RegistrationConflict is a programming error raised by
the language registry.
"""

from __future__ import annotations

from language.definition import RegistrationConflict


class SyncError(Exception):
    """Base class for field synchronization failures."""


class HandshakeFailure(SyncError):
    """The host handshake did not complete, or the host configuration is unusable."""


class InitialReadFailure(SyncError):
    """The bound field's initial value could not be read."""


class WriteFailure(SyncError):
    """A single write to the external field failed.

    Attributes:
        field_key: Field that was being written.
        sequence: Sequence number of the failed write.
    """

    def __init__(self, message: str, field_key: str = "", sequence: int = 0):
        super().__init__(message)
        self.field_key = field_key
        self.sequence = sequence


__all__ = [
    "SyncError",
    "HandshakeFailure",
    "InitialReadFailure",
    "WriteFailure",
    "RegistrationConflict",
]

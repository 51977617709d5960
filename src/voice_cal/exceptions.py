"""Custom exceptions for the voice-cal workflow.

Every failure a user action can trigger maps onto one of these types so the
session layer can report it and leave committed state untouched.

Exception hierarchy::

    VoiceCalError
    +-- CapabilityUnavailable  (no speech-recognition source)
    +-- ValidationError        (empty or malformed user input)
    +-- ExtractionFailed       (LLM service or response-parse failure)
    +-- EncodingFailed         (calendar file could not be produced)
    +-- StorageError           (client-local storage read/write failure)
    +-- InvalidStateError      (operation not allowed in current flow state)
    +-- ShareError             (email transport failure)
"""

from __future__ import annotations


class VoiceCalError(Exception):
    """Base class for all voice-cal errors."""


class CapabilityUnavailable(VoiceCalError):
    """Raised when speech recognition cannot be started."""


class ValidationError(VoiceCalError):
    """Raised for empty or malformed input (transcript text, date edits)."""


class ExtractionFailed(VoiceCalError):
    """Raised when event extraction fails.

    Covers network/API failures, timeouts, and responses that cannot be
    parsed into an event.  Nothing is retried automatically.

    Attributes:
        raw_response: The raw LLM output that failed to parse, or ``""``
            when the call itself failed.
    """

    def __init__(self, message: str, raw_response: str = "") -> None:
        super().__init__(message)
        self.raw_response = raw_response


class EncodingFailed(VoiceCalError):
    """Raised when an event cannot be encoded into a calendar file."""


class StorageError(VoiceCalError):
    """Raised when client-local storage cannot be read or written.

    Treated as non-fatal by the history store, which degrades to
    in-memory history for the rest of the session.
    """


class InvalidStateError(VoiceCalError):
    """Raised when a confirmation-flow operation is used in the wrong state."""


class ShareError(VoiceCalError):
    """Raised when an event invite cannot be sent by email."""

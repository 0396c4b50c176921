"""Exception hierarchy for bencanon.

Every failure raised while encoding derives from BencodeEncodeError so callers
can catch a single type, while tests and tooling can still tell the kinds
apart.
"""

from __future__ import annotations

from typing import Any


class BencanonError(Exception):
    """Base exception for all bencanon errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        """Initialize bencanon error."""
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.details:
            return f"{self.message} (Details: {self.details})"
        return self.message


class ConfigurationError(BencanonError):
    """Configuration validation errors."""


class BencodeError(BencanonError):
    """Bencode encoding errors."""


class BencodeEncodeError(BencodeError):
    """A value could not be encoded."""


class DepthLimitExceededError(BencodeEncodeError):
    """Nesting would exceed the encoder's depth ceiling."""

    def __init__(self, max_depth: int):
        """Initialize with the ceiling that was hit."""
        super().__init__(
            f"Nesting depth limit of {max_depth} exceeded",
            {"max_depth": max_depth},
        )
        self.max_depth = max_depth


class EncoderStateError(BencodeEncodeError):
    """The encoder was used outside its single-use lifecycle."""


class AlreadyEmittedError(EncoderStateError):
    """A second top-level emission was attempted."""


class NotYetEmittedError(EncoderStateError):
    """Output was requested before an emission completed."""


class WriteFailureError(BencodeEncodeError):
    """The output buffer could not accept more bytes."""


class UnsupportedTypeError(BencodeEncodeError):
    """The value has no bencode representation."""

    def __init__(self, value: Any, reason: str | None = None):
        """Initialize with the offending value."""
        type_name = type(value).__name__
        message = f"Cannot bencode object of type {type_name}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, {"type": type_name})
        self.value = value


class UnboundedDepthError(BencodeEncodeError):
    """A type carries no static nesting bound."""


class DuplicateKeyError(BencodeEncodeError):
    """Two dictionary keys encode to the same bytes."""


class KeyOrderError(BencodeEncodeError):
    """Dictionary keys were emitted out of ascending order."""


class DepthDeclarationError(BencodeEncodeError):
    """A type nested deeper than its declared MAX_DEPTH."""


class EmissionProtocolError(BencodeEncodeError):
    """An emission slot was written zero times or more than once."""

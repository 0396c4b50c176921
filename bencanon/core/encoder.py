"""Streaming bencode encoder.

An :class:`Encoder` performs exactly one top-level emission. Values write
themselves into a :class:`SingleItemEncoder`, a single-use handle bound to one
slot of the output; lists and dicts hand out :class:`ListEncoder` and
:class:`DictEncoder` sub-contexts for their children. The encoder tracks the
current nesting depth and refuses to open a container past its ceiling.
"""

from __future__ import annotations

import contextlib
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable, Iterable, Iterator

from bencanon.core.encodable import Encodable, encode_value, key_to_bytes
from bencanon.models import DEFAULT_MAX_DEPTH, MAX_CONFIGURABLE_DEPTH, EncoderConfig
from bencanon.utils.exceptions import (
    AlreadyEmittedError,
    DepthDeclarationError,
    DepthLimitExceededError,
    DuplicateKeyError,
    EmissionProtocolError,
    EncoderStateError,
    KeyOrderError,
    NotYetEmittedError,
    UnsupportedTypeError,
    WriteFailureError,
)
from bencanon.utils.logging_config import get_logger

if TYPE_CHECKING:
    from collections.abc import Buffer

logger = get_logger(__name__)


class EncoderState(str, Enum):
    """Lifecycle of an :class:`Encoder`."""

    EMPTY = "empty"
    EMITTING = "emitting"
    DONE = "done"
    FINALIZED = "finalized"
    FAILED = "failed"


class Encoder:
    """Single-use driver for one bencode emission.

    Example::

        encoder = Encoder().with_max_depth(2)
        encoder.emit({"spam": [1, 2]})
        encoder.get_output()  # b"d4:spamli1ei2eee"

    """

    def __init__(
        self,
        max_depth: int = DEFAULT_MAX_DEPTH,
        *,
        debug_checks: bool = False,
        check_key_order: bool = False,
    ):
        """Initialize encoder.

        Args:
            max_depth: Maximum number of nested list/dict levels
            debug_checks: Verify each Encodable's declared MAX_DEPTH against
                the nesting it actually produces
            check_key_order: Reject dict keys emitted out of ascending order

        """
        self._check_max_depth(max_depth)
        self._max_depth = max_depth
        self.debug_checks = debug_checks
        self.check_key_order = check_key_order

        self._output = bytearray()
        self._result: bytes | None = None
        self._state = EncoderState.EMPTY
        self._depth = 0
        # Deepest level reached since the innermost debug check started
        self._peak = 0
        self._poisoned = False

    @classmethod
    def from_config(cls, config: EncoderConfig | None = None) -> Encoder:
        """Create an encoder from configuration (the global one by default)."""
        if config is None:
            from bencanon.config import get_config

            config = get_config().encoder
        return cls(
            config.max_depth,
            debug_checks=config.debug_checks,
            check_key_order=config.check_key_order,
        )

    @property
    def max_depth(self) -> int:
        """Configured nesting ceiling."""
        return self._max_depth

    @property
    def depth(self) -> int:
        """Current nesting depth."""
        return self._depth

    @property
    def state(self) -> EncoderState:
        """Current lifecycle state."""
        return self._state

    def with_max_depth(self, max_depth: int) -> Encoder:
        """Set the nesting ceiling and return this encoder."""
        self._check_max_depth(max_depth)
        if self._state is not EncoderState.EMPTY:
            msg = f"Cannot reconfigure encoder in state {self._state.value}"
            raise EncoderStateError(msg)
        self._max_depth = max_depth
        return self

    def emit(self, value: Any) -> None:
        """Emit ``value`` as the single top-level item."""
        self.emit_with(lambda e: e.emit(value))

    def emit_with(self, fn: Callable[[SingleItemEncoder], None]) -> None:
        """Run ``fn`` against the top-level slot.

        ``fn`` must write exactly one value into the slot it is given.
        """
        if self._state is EncoderState.FAILED:
            msg = "Encoder cannot be reused after a failed emission"
            raise EncoderStateError(msg)
        if self._state is not EncoderState.EMPTY:
            msg = "Encoder already performed its top-level emission"
            raise AlreadyEmittedError(msg, {"state": self._state.value})

        self._state = EncoderState.EMITTING
        slot = SingleItemEncoder(self)
        try:
            fn(slot)
            slot.finish()
            if self._poisoned:
                msg = "A nested emission failed; the output is incomplete"
                raise EncoderStateError(msg)
        except DepthLimitExceededError:
            logger.warning("Rejected value nesting deeper than %d", self._max_depth)
            self._fail()
            raise
        except RecursionError as e:
            logger.warning(
                "Interpreter stack exhausted below ceiling %d", self._max_depth
            )
            self._fail()
            raise DepthLimitExceededError(self._max_depth) from e
        except Exception:
            self._fail()
            raise

        self._state = EncoderState.DONE
        logger.debug(
            "Encoded %d bytes (max depth %d)", len(self._output), self._max_depth
        )

    def get_output(self) -> bytes:
        """Return the encoded bytes of the completed emission."""
        if self._state is EncoderState.FINALIZED:
            assert self._result is not None
            return self._result
        if self._state is EncoderState.FAILED:
            msg = "Emission failed; no output available"
            raise EncoderStateError(msg)
        if self._state is not EncoderState.DONE:
            msg = "No emission has completed yet"
            raise NotYetEmittedError(msg, {"state": self._state.value})

        self._result = bytes(self._output)
        self._output = bytearray()
        self._state = EncoderState.FINALIZED
        return self._result

    # Internal helpers used by the emission contexts

    def _write(self, data: bytes) -> None:
        try:
            self._output += data
        except (MemoryError, OSError) as e:
            msg = f"Output buffer could not grow past {len(self._output)} bytes"
            raise WriteFailureError(msg) from e

    @contextlib.contextmanager
    def _container(self, opener: bytes) -> Iterator[None]:
        if self._depth >= self._max_depth:
            self._poisoned = True
            raise DepthLimitExceededError(self._max_depth)
        self._depth += 1
        self._peak = max(self._peak, self._depth)
        try:
            self._write(opener)
            yield
            self._write(b"e")
        except Exception:
            # The container is half written; nothing after this is valid
            self._poisoned = True
            raise
        finally:
            self._depth -= 1

    def _fail(self) -> None:
        self._state = EncoderState.FAILED
        self._output = bytearray()
        self._depth = 0

    @staticmethod
    def _check_max_depth(max_depth: int) -> None:
        if isinstance(max_depth, bool) or not isinstance(max_depth, int):
            msg = f"max_depth must be an int, got {type(max_depth).__name__}"
            raise TypeError(msg)
        if not 0 <= max_depth <= MAX_CONFIGURABLE_DEPTH:
            msg = (
                f"max_depth must be between 0 and {MAX_CONFIGURABLE_DEPTH}, "
                f"got {max_depth}"
            )
            raise ValueError(msg)


class SingleItemEncoder:
    """Handle for exactly one value slot in the output stream."""

    __slots__ = ("_encoder", "_used")

    def __init__(self, encoder: Encoder):
        self._encoder = encoder
        self._used = False

    def emit(self, value: Any) -> None:
        """Encode ``value`` into this slot."""
        if isinstance(value, Encodable):
            if self._encoder.debug_checks:
                self._emit_checked(value)
            else:
                value.encode(self)
        else:
            encode_value(value, self)

    def emit_str(self, text: str) -> None:
        """Emit text as a UTF-8 byte string."""
        try:
            data = text.encode("utf-8")
        except UnicodeEncodeError as e:
            raise UnsupportedTypeError(text, "text is not valid UTF-8") from e
        self.emit_bytes(data)

    def emit_bytes(self, data: bytes | Buffer) -> None:
        """Emit a length-prefixed byte string."""
        if not isinstance(data, bytes):
            try:
                with memoryview(data) as view:
                    data = view.tobytes()
            except TypeError as e:
                raise UnsupportedTypeError(data, "not a bytes-like object") from e
        self._claim()
        self._encoder._write(b"%d:" % len(data))
        self._encoder._write(data)

    def emit_int(self, value: int) -> None:
        """Emit an integer token."""
        if isinstance(value, bool) or not isinstance(value, int):
            raise UnsupportedTypeError(value, "expected an integer")
        self._claim()
        self._encoder._write(b"i%de" % value)

    def emit_list(self, body: Callable[[ListEncoder], None]) -> None:
        """Emit a list whose elements are written by ``body``."""
        self._claim()
        with self._encoder._container(b"l"):
            body(ListEncoder(self._encoder))

    def emit_dict(self, body: Callable[[DictEncoder], None]) -> None:
        """Emit a dict whose entries are written by ``body``.

        Keys must be emitted in ascending byte order by the caller.
        """
        self._claim()
        with self._encoder._container(b"d"):
            body(DictEncoder(self._encoder))

    def emit_unsorted_dict(self, pairs: Iterable[tuple[Any, Any]]) -> None:
        """Emit a dict from pairs in any order, sorting by raw key bytes."""

        def body(e: DictEncoder) -> None:
            entries = sorted(
                ((key_to_bytes(key), value) for key, value in pairs),
                key=lambda entry: entry[0],
            )
            for (prev, _), (key, _) in zip(entries, entries[1:]):
                if prev == key:
                    msg = f"Duplicate dictionary key {key!r}"
                    raise DuplicateKeyError(msg)
            for key, value in entries:
                e.emit_pair(key, value)

        self.emit_dict(body)

    def finish(self) -> None:
        """Check that a value was written into this slot."""
        if not self._used:
            msg = "Nothing was emitted into the slot"
            raise EmissionProtocolError(msg)

    def _claim(self) -> None:
        if self._used:
            msg = "A value was already emitted into this slot"
            raise EmissionProtocolError(msg)
        self._used = True

    def _emit_checked(self, value: Encodable) -> None:
        encoder = self._encoder
        declared = type(value).MAX_DEPTH
        outer_peak = encoder._peak
        start = encoder._depth
        encoder._peak = start
        value.encode(self)
        observed = encoder._peak - start
        encoder._peak = max(outer_peak, encoder._peak)
        if observed > declared:
            msg = (
                f"{type(value).__name__} declares MAX_DEPTH {declared} "
                f"but nested {observed} levels"
            )
            raise DepthDeclarationError(
                msg, {"declared": declared, "observed": observed}
            )


class ListEncoder:
    """Sub-context writing the elements of one list."""

    __slots__ = ("_encoder",)

    def __init__(self, encoder: Encoder):
        self._encoder = encoder

    def emit(self, value: Any) -> None:
        """Append one element."""
        slot = SingleItemEncoder(self._encoder)
        slot.emit(value)
        slot.finish()

    def emit_with(self, fn: Callable[[SingleItemEncoder], None]) -> None:
        """Append one element written by ``fn``."""
        slot = SingleItemEncoder(self._encoder)
        fn(slot)
        slot.finish()


class DictEncoder:
    """Sub-context writing the entries of one dict."""

    __slots__ = ("_encoder", "_last_key")

    def __init__(self, encoder: Encoder):
        self._encoder = encoder
        self._last_key: bytes | None = None

    def emit_pair(self, key: Any, value: Any) -> None:
        """Write one ``key``/``value`` entry."""
        self.emit_pair_with(key, lambda e: e.emit(value))

    def emit_pair_with(
        self, key: Any, fn: Callable[[SingleItemEncoder], None]
    ) -> None:
        """Write one entry whose value is written by ``fn``."""
        raw_key = key_to_bytes(key)
        if (
            self._encoder.check_key_order
            and self._last_key is not None
            and raw_key <= self._last_key
        ):
            msg = f"Key {raw_key!r} emitted after {self._last_key!r}"
            raise KeyOrderError(msg)
        self._last_key = raw_key

        encoder = self._encoder
        encoder._write(b"%d:" % len(raw_key))
        encoder._write(raw_key)
        slot = SingleItemEncoder(encoder)
        try:
            fn(slot)
            slot.finish()
        except Exception:
            # The key is already written without its value
            encoder._poisoned = True
            raise

"""The Encodable capability and the builtin type mappings.

A value is encodable when its type subclasses :class:`Encodable` or has an
implementation registered with :func:`encode_value`. Every encodable type
carries a nesting bound that is known without looking at instance data:
``MAX_DEPTH`` for Encodable subclasses, or :func:`max_depth_of` for type
hints such as ``dict[str, list[int]]``. Leaves do not consume a level, so
``"spam"`` has depth 0 and ``["spam"]`` has depth 1. Integers declare 1.
"""

from __future__ import annotations

import functools
import types
import typing
import weakref
from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, ClassVar, Generic, TypeVar

from bencanon.utils.exceptions import UnboundedDepthError, UnsupportedTypeError

if TYPE_CHECKING:
    from bencanon.core.encoder import ListEncoder, SingleItemEncoder

T = TypeVar("T")

# Nesting bounds of types with a registered encoder, keyed by class
_DECLARED_DEPTHS: dict[type, int] = {
    str: 0,
    bytes: 0,
    bytearray: 0,
    memoryview: 0,
    int: 1,
}


class Encodable(ABC):
    """An object that can be encoded into a single bencode value."""

    #: Upper bound on the list/dict levels ``encode`` can open
    MAX_DEPTH: ClassVar[int]

    @abstractmethod
    def encode(self, encoder: SingleItemEncoder) -> None:
        """Write exactly one value into ``encoder``."""

    def to_bytes(self) -> bytes:
        """Encode this object with its own MAX_DEPTH as the ceiling."""
        from bencanon.core.encoder import Encoder

        encoder = Encoder().with_max_depth(type(self).MAX_DEPTH)
        encoder.emit(self)
        return encoder.get_output()


@functools.total_ordering
@dataclass(frozen=True)
class AsString(Encodable, Generic[T]):
    """Encode a byte-sequence-like value as a bencode byte string.

    Lists of small ints, ``array.array`` buffers and similar values would
    otherwise encode as a list of integers::

        encode([113, 117, 120])            # b"li113ei117ei120ee"
        encode(AsString([113, 117, 120]))  # b"3:qux"

    """

    value: T

    MAX_DEPTH: ClassVar[int] = 1

    @classmethod
    def from_bytes(
        cls, content: bytes, factory: Callable[[bytes], T] = bytes  # type: ignore[assignment]
    ) -> AsString[T]:
        """Build a wrapper around ``factory(content)``."""
        return cls(factory(content))

    def as_bytes(self) -> bytes:
        """Return the raw bytes view of the wrapped value."""
        return _coerce_bytes(self.value)

    def __bytes__(self) -> bytes:
        return self.as_bytes()

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, AsString):
            return NotImplemented
        return self.as_bytes() < other.as_bytes()

    def encode(self, encoder: SingleItemEncoder) -> None:
        encoder.emit_bytes(self.as_bytes())


def _coerce_bytes(value: Any) -> bytes:
    if isinstance(value, bytes):
        return value
    if isinstance(value, str):
        try:
            return value.encode("utf-8")
        except UnicodeEncodeError as e:
            raise UnsupportedTypeError(value, "text is not valid UTF-8") from e
    if isinstance(value, int):
        raise UnsupportedTypeError(value, "not a byte sequence")
    try:
        with memoryview(value) as view:
            return view.tobytes()
    except TypeError:
        pass
    try:
        return bytes(value)
    except (TypeError, ValueError) as e:
        raise UnsupportedTypeError(value, "not a byte sequence") from e


def key_to_bytes(key: Any) -> bytes:
    """Return the raw bytes of a dictionary key."""
    if isinstance(key, bytes):
        return key
    if isinstance(key, str):
        try:
            return key.encode("utf-8")
        except UnicodeEncodeError as e:
            raise UnsupportedTypeError(key, "key is not valid UTF-8") from e
    if isinstance(key, (bytearray, memoryview)):
        return bytes(key)
    if isinstance(key, AsString):
        return key.as_bytes()
    raise UnsupportedTypeError(key, "dictionary keys must be byte strings or text")


@functools.singledispatch
def encode_value(value: Any, encoder: SingleItemEncoder) -> None:
    """Encode a value that is not an :class:`Encodable` into ``encoder``."""
    raise UnsupportedTypeError(value)


def register_encoder(
    cls: type[T], max_depth: int
) -> Callable[[Callable[[T, SingleItemEncoder], None]], Callable[[T, SingleItemEncoder], None]]:
    """Register an encoding for ``cls`` together with its nesting bound.

    Example::

        @register_encoder(Decimal, max_depth=0)
        def _encode_decimal(value, encoder):
            encoder.emit_str(str(value))

    """

    def decorator(
        func: Callable[[T, SingleItemEncoder], None],
    ) -> Callable[[T, SingleItemEncoder], None]:
        encode_value.register(cls, func)
        _DECLARED_DEPTHS[cls] = max_depth
        return func

    return decorator


@encode_value.register(str)
def _encode_str(value: str, encoder: SingleItemEncoder) -> None:
    encoder.emit_str(value)


@encode_value.register(bytes)
@encode_value.register(bytearray)
@encode_value.register(memoryview)
def _encode_bytes(value: bytes, encoder: SingleItemEncoder) -> None:
    encoder.emit_bytes(value)


@encode_value.register(int)
def _encode_int(value: int, encoder: SingleItemEncoder) -> None:
    encoder.emit_int(value)


@encode_value.register(bool)
def _encode_bool(value: bool, encoder: SingleItemEncoder) -> None:
    raise UnsupportedTypeError(value, "booleans have no bencode form")


@encode_value.register(weakref.ref)
def _encode_weakref(value: weakref.ref, encoder: SingleItemEncoder) -> None:
    target = value()
    if target is None:
        raise UnsupportedTypeError(value, "weak reference is dead")
    encoder.emit(target)


@encode_value.register(Sequence)
def _encode_sequence(value: Sequence[Any], encoder: SingleItemEncoder) -> None:
    def body(e: ListEncoder) -> None:
        for item in value:
            e.emit(item)

    encoder.emit_list(body)


@encode_value.register(Mapping)
def _encode_mapping(value: Mapping[Any, Any], encoder: SingleItemEncoder) -> None:
    encoder.emit_unsorted_dict(value.items())


def max_depth_of(tp: Any) -> int:
    """Return the static nesting bound of a type or type hint.

    Raises:
        UnboundedDepthError: if the bound cannot be derived from the type
            alone, e.g. for ``Any`` or an unparameterised ``list``.

    """
    origin = typing.get_origin(tp)
    args = typing.get_args(tp)

    if origin is typing.Annotated:
        return max_depth_of(args[0])
    if origin is typing.Union or origin is types.UnionType:
        arms = [arm for arm in args if arm is not type(None)]
        if not arms:
            msg = f"No static nesting bound for {tp!r}"
            raise UnboundedDepthError(msg)
        return max(max_depth_of(arm) for arm in arms)
    if origin is typing.Literal:
        return max(1 if isinstance(arg, int) else 0 for arg in args)

    target = origin if origin is not None else tp
    if not isinstance(target, type):
        msg = f"No static nesting bound for {tp!r}"
        raise UnboundedDepthError(msg)

    if issubclass(target, bool):
        msg = "bool has no bencode form"
        raise UnboundedDepthError(msg)
    if issubclass(target, Encodable):
        try:
            return target.MAX_DEPTH
        except AttributeError:
            msg = f"{target.__name__} does not declare MAX_DEPTH"
            raise UnboundedDepthError(msg) from None
    for klass in target.__mro__:
        if klass in _DECLARED_DEPTHS:
            return _DECLARED_DEPTHS[klass]

    if issubclass(target, weakref.ref) and args:
        return max_depth_of(args[0])
    if issubclass(target, Mapping) and len(args) == 2:
        return max_depth_of(args[1]) + 1
    if issubclass(target, tuple) and args:
        if len(args) == 2 and args[1] is Ellipsis:
            return max_depth_of(args[0]) + 1
        return max(max_depth_of(arg) for arg in args) + 1
    if issubclass(target, Sequence) and len(args) == 1:
        return max_depth_of(args[0]) + 1

    msg = f"No static nesting bound for {tp!r}"
    raise UnboundedDepthError(msg)

"""Dataclass records that encode as bencode dictionaries.

Mix :class:`EncodableRecord` into a dataclass to get an ``encode`` that
writes the fields as a dict in canonical key order, and a ``MAX_DEPTH``
derived from the field type hints::

    @dataclass
    class FileEntry(EncodableRecord):
        length: int
        path: list[str]
        md5sum: str | None = bencode_field(default=None)

Fields holding ``None`` are left out of the output.
"""

from __future__ import annotations

import dataclasses
import typing
from typing import TYPE_CHECKING, Any, ClassVar

from bencanon.core.encodable import Encodable, key_to_bytes, max_depth_of
from bencanon.utils.exceptions import DuplicateKeyError, UnboundedDepthError

if TYPE_CHECKING:
    from bencanon.core.encoder import DictEncoder, SingleItemEncoder

BENCODE_KEY = "bencode_key"


def bencode_field(*, key: str | bytes | None = None, **kwargs: Any) -> Any:
    """Declare a dataclass field, optionally under a different dict key."""
    metadata = dict(kwargs.pop("metadata", None) or {})
    if key is not None:
        metadata[BENCODE_KEY] = key
    return dataclasses.field(metadata=metadata, **kwargs)


_IN_PROGRESS = -1


class _RecordDepth:
    """Computes a record's MAX_DEPTH from its type hints on first access."""

    def __get__(self, instance: object, owner: type) -> int:
        cached = owner.__dict__.get("_bencode_max_depth")
        if cached == _IN_PROGRESS:
            msg = f"{owner.__name__} is self-referential; declare MAX_DEPTH explicitly"
            raise UnboundedDepthError(msg)
        if cached is not None:
            return cached

        owner._bencode_max_depth = _IN_PROGRESS  # type: ignore[attr-defined]
        try:
            hints = typing.get_type_hints(owner, include_extras=True)
            depths = [max_depth_of(hints[f.name]) for f in dataclasses.fields(owner)]
        finally:
            del owner._bencode_max_depth  # type: ignore[attr-defined]
        depth = max(depths, default=0) + 1
        owner._bencode_max_depth = depth  # type: ignore[attr-defined]
        return depth


class EncodableRecord(Encodable):
    """Dataclass mixin encoding the fields as a key-sorted dict."""

    MAX_DEPTH: ClassVar[int] = _RecordDepth()  # type: ignore[assignment]

    @classmethod
    def _bencode_layout(cls) -> list[tuple[bytes, str]]:
        layout = cls.__dict__.get("_bencode_layout_cache")
        if layout is not None:
            return layout
        if not dataclasses.is_dataclass(cls):
            msg = f"{cls.__name__} must be a dataclass to encode as a record"
            raise TypeError(msg)

        layout = sorted(
            (key_to_bytes(f.metadata.get(BENCODE_KEY, f.name)), f.name)
            for f in dataclasses.fields(cls)
        )
        for (prev, _), (key, name) in zip(layout, layout[1:]):
            if prev == key:
                msg = f"{cls.__name__}.{name} reuses dictionary key {key!r}"
                raise DuplicateKeyError(msg)
        cls._bencode_layout_cache = layout  # type: ignore[attr-defined]
        return layout

    def encode(self, encoder: SingleItemEncoder) -> None:
        layout = self._bencode_layout()

        def body(e: DictEncoder) -> None:
            for key, name in layout:
                value = getattr(self, name)
                if value is not None:
                    e.emit_pair(key, value)

        encoder.emit_dict(body)

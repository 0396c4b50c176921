"""Bencoding module.

This module provides a convenient interface to the core encoder for callers
that just want bytes for a value.
"""

from __future__ import annotations

from typing import Any

from bencanon.core.encoder import Encoder
from bencanon.models import EncoderConfig
from bencanon.utils.exceptions import BencodeEncodeError, BencodeError


class BencodeEncoder:
    """Encodes values to canonical bencode, one fresh Encoder per call."""

    def __init__(
        self,
        max_depth: int | None = None,
        config: EncoderConfig | None = None,
    ):
        """Initialize encoder.

        Args:
            max_depth: Nesting ceiling; overrides the configured one
            config: Encoder configuration. If None, the global config is used

        """
        if config is None:
            from bencanon.config import get_config

            config = get_config().encoder
        self.config = config
        self.max_depth = config.max_depth if max_depth is None else max_depth

    def encode(self, obj: Any) -> bytes:
        """Encode ``obj`` to bencoded bytes."""
        encoder = Encoder.from_config(self.config).with_max_depth(self.max_depth)
        encoder.emit(obj)
        return encoder.get_output()


def encode(obj: Any, *, max_depth: int | None = None) -> bytes:
    """Encode a value to canonical bencode."""
    return BencodeEncoder(max_depth=max_depth).encode(obj)


__all__ = ["BencodeEncodeError", "BencodeEncoder", "BencodeError", "encode"]

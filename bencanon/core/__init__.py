"""Core bencode encoding engine.

This module contains the encoding components:
- The Encodable capability and builtin type mappings
- The single-use Encoder and its emission contexts
- Dataclass records
"""

from __future__ import annotations

from bencanon.core.encodable import (
    AsString,
    Encodable,
    encode_value,
    key_to_bytes,
    max_depth_of,
    register_encoder,
)
from bencanon.core.encoder import (
    DictEncoder,
    Encoder,
    EncoderState,
    ListEncoder,
    SingleItemEncoder,
)
from bencanon.core.records import EncodableRecord, bencode_field

__all__ = [
    "AsString",
    "DictEncoder",
    "Encodable",
    "EncodableRecord",
    "Encoder",
    "EncoderState",
    "ListEncoder",
    "SingleItemEncoder",
    "bencode_field",
    "encode_value",
    "key_to_bytes",
    "max_depth_of",
    "register_encoder",
]

"""bencanon - canonical bencode encoding.

Deterministic bencode output for hashing and protocol exchange: equal
values always encode to identical bytes.
"""

from __future__ import annotations

from bencanon.bencode import BencodeEncoder, encode
from bencanon.core.encodable import AsString, Encodable, max_depth_of, register_encoder
from bencanon.core.encoder import Encoder, SingleItemEncoder
from bencanon.core.records import EncodableRecord, bencode_field
from bencanon.utils.exceptions import (
    AlreadyEmittedError,
    BencodeEncodeError,
    BencodeError,
    DepthLimitExceededError,
    EncoderStateError,
    NotYetEmittedError,
    UnsupportedTypeError,
)

__version__ = "0.1.0"

__all__ = [
    "AlreadyEmittedError",
    "AsString",
    "BencodeEncodeError",
    "BencodeEncoder",
    "BencodeError",
    "DepthLimitExceededError",
    "Encodable",
    "EncodableRecord",
    "Encoder",
    "EncoderStateError",
    "NotYetEmittedError",
    "SingleItemEncoder",
    "UnsupportedTypeError",
    "bencode_field",
    "encode",
    "max_depth_of",
    "register_encoder",
]

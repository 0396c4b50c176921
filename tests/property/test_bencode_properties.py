"""Property-based tests for canonical bencode encoding.

Tests determinism, key ordering and depth enforcement using Hypothesis for
automatic test case generation.
"""

from __future__ import annotations

import random

import pytest
from hypothesis import given
from hypothesis import strategies as st

from bencanon.bencode import encode
from bencanon.core.encodable import AsString
from bencanon.core.encoder import Encoder
from bencanon.utils.exceptions import DepthLimitExceededError

pytestmark = [pytest.mark.property]

leaves = st.one_of(st.binary(max_size=16), st.text(max_size=8), st.integers())
values = st.recursive(
    leaves,
    lambda children: st.one_of(
        st.lists(children, max_size=4),
        st.dictionaries(st.binary(max_size=6), children, max_size=4),
    ),
    max_leaves=20,
)


def reference_string(data: bytes) -> bytes:
    """Encode a byte string independently of the encoder."""
    return str(len(data)).encode("ascii") + b":" + data


def nesting(value) -> int:
    """Count container levels of a generated value."""
    if isinstance(value, dict):
        return 1 + max((nesting(v) for v in value.values()), default=0)
    if isinstance(value, list):
        return 1 + max((nesting(v) for v in value), default=0)
    return 0


def shuffled(value, rng: random.Random):
    """Rebuild every dict in ``value`` with a shuffled insertion order."""
    if isinstance(value, dict):
        items = list(value.items())
        rng.shuffle(items)
        return {k: shuffled(v, rng) for k, v in items}
    if isinstance(value, list):
        return [shuffled(v, rng) for v in value]
    return value


class TestBencodeProperties:
    """Property-based tests for canonical encoding."""

    @given(st.binary())
    def test_string_encoding(self, data):
        """Test byte strings are length-prefixed with no leading zeros."""
        assert encode(data) == reference_string(data)

    @given(st.text())
    def test_text_encoding(self, text):
        """Test text is encoded as its UTF-8 bytes."""
        assert encode(text) == reference_string(text.encode("utf-8"))

    @given(st.integers())
    def test_integer_encoding(self, i):
        """Test integers are wrapped in 'i' and 'e' with canonical digits."""
        assert encode(i) == b"i" + str(i).encode("ascii") + b"e"

    @given(st.dictionaries(st.binary(), st.binary()))
    def test_dict_keys_ascending(self, dct):
        """Test dict entries follow ascending raw key order."""
        expected = b"".join(
            reference_string(k) + reference_string(dct[k]) for k in sorted(dct)
        )
        assert encode(dct) == b"d" + expected + b"e"

    @given(values, st.randoms(use_true_random=False))
    def test_deterministic(self, value, rng):
        """Test insertion order never changes the output."""
        assert encode(value) == encode(shuffled(value, rng))

    @given(values)
    def test_depth_enforcement(self, value):
        """Test values succeed exactly when they fit under the ceiling."""
        depth = nesting(value)

        encoder = Encoder().with_max_depth(depth)
        encoder.emit(value)
        assert encoder.get_output() == encode(value)

        if depth > 0:
            encoder = Encoder().with_max_depth(depth - 1)
            with pytest.raises(DepthLimitExceededError):
                encoder.emit(value)

    @given(st.lists(st.integers(min_value=0, max_value=255)))
    def test_as_string_single_token(self, ints):
        """Test wrapped int lists always give one byte string."""
        assert encode(AsString(ints)) == reference_string(bytes(ints))

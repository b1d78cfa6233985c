"""
Tests for the score matrix codec in network/matrix.py.

Covers decoding of the big-endian uint16 payload, pair ordering, size
validation and the encoder used to produce payloads.

Run: pytest tests/test_matrix.py -v
"""

import numpy as np
import pytest

from genenet.network import MalformedMatrix, decode_scores, encode_scores
from genenet.network.matrix import expected_pair_count


def _raw(*values: int) -> bytes:
    return b"".join(v.to_bytes(2, "big") for v in values)


class TestDecodeScores:
    """Decoding of the wire format."""

    def test_centre_and_scale(self) -> None:
        """(value - 32768) / 1000 for each entry."""
        scores = decode_scores(_raw(32768, 34268, 30518), 3)
        np.testing.assert_allclose(scores, [0.0, 1.5, -2.25])

    def test_extremes(self) -> None:
        scores = decode_scores(_raw(0, 65535, 32768), 3)
        assert scores[0] == pytest.approx(-32.768)
        assert scores[1] == pytest.approx(32.767)

    def test_row_major_upper_triangle_order(self) -> None:
        """Entry k belongs to the k-th pair of (0,1), (0,2), (0,3), (1,2), (1,3), (2,3)."""
        values = [32768 + 1000 * (k + 1) for k in range(6)]
        scores = decode_scores(_raw(*values), 4)
        np.testing.assert_allclose(scores, [1.0, 2.0, 3.0, 4.0, 5.0, 6.0])

    def test_big_endian(self) -> None:
        """0x8001 is 32769, not 0x0180."""
        scores = decode_scores(bytes([0x80, 0x01]), 2)
        assert scores[0] == pytest.approx(0.001)

    @pytest.mark.parametrize("node_count", [0, 1])
    def test_no_pairs(self, node_count: int) -> None:
        assert decode_scores(b"", node_count).size == 0

    def test_wrong_length_raises(self) -> None:
        with pytest.raises(MalformedMatrix):
            decode_scores(_raw(1, 2), 3)

    def test_odd_byte_count_raises(self) -> None:
        with pytest.raises(MalformedMatrix):
            decode_scores(b"\x00\x00\x00\x00\x00", 3)

    def test_single_gene_with_payload_raises(self) -> None:
        with pytest.raises(MalformedMatrix):
            decode_scores(_raw(32768), 1)

    def test_accepts_bytearray(self) -> None:
        scores = decode_scores(bytearray(_raw(33768)), 2)
        assert scores[0] == pytest.approx(1.0)


class TestEncodeScores:
    """Encoding back into the wire format."""

    def test_round_trip_within_quantisation_step(self) -> None:
        rng = np.random.default_rng(7)
        n = 12
        original = rng.uniform(-30.0, 30.0, size=expected_pair_count(n))
        decoded = decode_scores(encode_scores(original), n)
        assert np.max(np.abs(decoded - original)) <= 0.0005 + 1e-12

    def test_clips_to_representable_range(self) -> None:
        decoded = decode_scores(encode_scores([100.0, -100.0, 0.0]), 3)
        np.testing.assert_allclose(decoded, [32.767, -32.768, 0.0])

    def test_payload_size(self) -> None:
        assert len(encode_scores(np.zeros(10))) == 20


class TestExpectedPairCount:
    @pytest.mark.parametrize(("n", "pairs"), [(0, 0), (1, 0), (2, 1), (5, 10), (6, 15)])
    def test_counts(self, n: int, pairs: int) -> None:
        assert expected_pair_count(n) == pairs

    def test_negative_raises(self) -> None:
        with pytest.raises(MalformedMatrix):
            expected_pair_count(-1)

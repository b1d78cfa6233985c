"""Binary codec for the upper-triangular Z-score matrix.

The payload holds one big-endian unsigned 16-bit integer per unordered gene
pair, in row-major upper-triangle order: (0, 1), (0, 2), ..., (0, N-1),
(1, 2), ... Each integer maps to a score as ``(value - 32768) / 1000``.
"""

import logging

import numpy as np
from numpy.typing import ArrayLike, NDArray

from .errors import MalformedMatrix
from .models import SCORE_OFFSET, SCORE_SCALE

logger = logging.getLogger(__name__)

WIRE_DTYPE = np.dtype(">u2")


def expected_pair_count(node_count: int) -> int:
    """Number of upper-triangle entries for ``node_count`` genes."""
    if node_count < 0:
        raise MalformedMatrix(f"Negative gene count: {node_count}")
    return node_count * (node_count - 1) // 2


def decode_scores(buffer: bytes | bytearray | memoryview, node_count: int) -> NDArray[np.float64]:
    """Decode a score payload into a flat array of Z-scores.

    Args:
        buffer: Raw payload, two bytes per gene pair.
        node_count: Number of genes the matrix was computed for.

    Returns:
        Float array of length N*(N-1)/2 in row-major upper-triangle order.

    Raises:
        MalformedMatrix: If the payload size does not match ``node_count``.
    """
    n_pairs = expected_pair_count(node_count)
    expected_bytes = n_pairs * WIRE_DTYPE.itemsize
    if len(buffer) != expected_bytes:
        raise MalformedMatrix(
            f"Score buffer has {len(buffer)} bytes, expected {expected_bytes} "
            f"for {node_count} genes ({n_pairs} pairs)"
        )

    raw = np.frombuffer(buffer, dtype=WIRE_DTYPE)
    scores = (raw.astype(np.float64) - SCORE_OFFSET) / SCORE_SCALE
    logger.debug(f"Decoded {n_pairs} scores for {node_count} genes")
    return scores


def encode_scores(scores: ArrayLike) -> bytes:
    """Encode Z-scores into the wire format.

    Scores are rounded to the nearest 1/1000 and clipped to the representable
    range [-32.768, 32.767].
    """
    values = np.rint(np.asarray(scores, dtype=np.float64) * SCORE_SCALE) + SCORE_OFFSET
    values = np.clip(values, 0, np.iinfo(np.uint16).max)
    return values.astype(WIRE_DTYPE).tobytes()

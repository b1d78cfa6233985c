"""Edge materialisation from the decoded score matrix."""

import logging

import numpy as np
from numpy.typing import ArrayLike

from .errors import InvalidDimensions
from .network import EdgeSet, NetworkEdge, NodeIndex

logger = logging.getLogger(__name__)


def build_edges(scores: ArrayLike, node_index: NodeIndex, threshold: float) -> EdgeSet:
    """Collect every gene pair whose absolute score reaches the threshold.

    Edges keep the signed score as weight and come out in payload order.
    Called once per network load and again on every threshold change with
    the same cached scores.

    Args:
        scores: Decoded upper-triangle scores, one per gene pair.
        node_index: Gene ordering the scores were decoded with.
        threshold: Minimum ``abs(score)`` for an edge.

    Returns:
        EdgeSet with the edges and per-gene connected flags.

    Raises:
        InvalidDimensions: If the score count does not match the gene count.
    """
    values = np.asarray(scores, dtype=np.float64)
    if values.ndim != 1 or values.size != node_index.pair_count:
        raise InvalidDimensions(
            f"Got {values.size} scores for {len(node_index)} genes, "
            f"expected {node_index.pair_count}"
        )

    rows, cols = node_index.pair_indices()
    hits = np.flatnonzero(np.abs(values) >= threshold)

    connected = np.zeros(len(node_index), dtype=bool)
    connected[rows[hits]] = True
    connected[cols[hits]] = True

    ids = node_index.ids
    edges = tuple(
        NetworkEdge(source=ids[rows[k]], target=ids[cols[k]], weight=float(values[k]))
        for k in hits
    )

    logger.debug(
        f"Threshold {threshold:.3f}: {len(edges)} edges, "
        f"{int(connected.sum())}/{len(node_index)} genes connected"
    )
    return EdgeSet(edges=edges, connected=tuple(bool(c) for c in connected), node_index=node_index)

"""Default edge threshold selection.

The default threshold is an order statistic of the decoded scores chosen so
that roughly ``density_factor * n_genes`` of the strongest pairs pass it.
"""

import logging

import numpy as np
from numpy.typing import ArrayLike

from .models import EDGE_VALUE_SCALES

logger = logging.getLogger(__name__)

DEFAULT_DENSITY_FACTOR = 2


def select_default_threshold(
    scores: ArrayLike,
    node_count: int,
    value_scale_ceiling: float = EDGE_VALUE_SCALES[0][-1],
    density_factor: int = DEFAULT_DENSITY_FACTOR,
) -> float:
    """Pick the default threshold for a freshly decoded network.

    Args:
        scores: Decoded upper-triangle scores. Left untouched.
        node_count: Number of genes in the network.
        value_scale_ceiling: Top of the positive legend scale.
        density_factor: Target number of edges per gene.

    Returns:
        ``min(value_scale_ceiling - 1, sorted(scores)[len - density_factor * N])``
        with the index floored at 0, or ``value_scale_ceiling`` when there
        are no gene pairs.
    """
    values = np.asarray(scores, dtype=np.float64)
    if node_count <= 1 or values.size == 0:
        return float(value_scale_ceiling)

    target_index = max(0, values.size - node_count * density_factor)
    # np.sort returns a copy, positions in ``scores`` identify gene pairs
    ranked = np.sort(values)
    threshold = min(value_scale_ceiling - 1, float(ranked[target_index]))
    logger.debug(
        f"Default threshold {threshold:.3f} from rank {target_index} of {values.size} scores"
    )
    return float(threshold)

"""Constants, type aliases and parameters for network construction."""

import os
from collections.abc import Mapping
from dataclasses import dataclass

# Type aliases for domain clarity
GeneId = str
GroupId = int | str

# Scores are (uint16 - 32768) / 1000 on the wire
SCORE_OFFSET: int = 32768
SCORE_SCALE: float = 1000.0
MIN_SCORE: float = -SCORE_OFFSET / SCORE_SCALE  # -32.768
MAX_SCORE: float = (2**16 - 1 - SCORE_OFFSET) / SCORE_SCALE  # 32.767

# Legend scales: positive weights first, negative second
EDGE_VALUE_SCALES: tuple[tuple[float, ...], ...] = ((0, 12, 15), (0, -12, -15))
EDGE_COLOR_SCALES: tuple[tuple[str, ...], ...] = (
    ("#ffffff", "#000000", "#ff3c00"),
    ("#ffffff", "#00a0d2", "#7a18ec"),
)

ALL_GENES_GROUP = "All genes"
SELECTION_GROUP = "My selection"
CLUSTER_NAME_PREFIX = "Cluster"

ENV_PREFIX = "GENENET_"


@dataclass(frozen=True)
class NetworkParams:
    """Tunable parameters for network construction.

    The defaults reproduce the behaviour of the gene network viewer. The
    density factor and the ceiling clamp are empirical choices.

    Attributes:
        density_factor: Aim for roughly ``density_factor * n_genes`` edges
            when picking the default threshold.
        value_scale_ceiling: Top of the positive legend scale. The default
            threshold is clamped to ``value_scale_ceiling - 1``.
        min_clustering_nodes: Smallest network that gets clustered.
        preference_floor: Affinity propagation preference on the first attempt.
        damping: Affinity propagation damping factor.
        max_iter: Maximum number of affinity propagation iterations.
        convergence_iter: Iterations without change that count as converged.
        random_state: Seed for the tie-breaking noise added by scikit-learn.
        clustering_timeout: Seconds to wait for clustering, or None to wait
            indefinitely.
    """

    density_factor: int = 2
    value_scale_ceiling: float = EDGE_VALUE_SCALES[0][-1]
    min_clustering_nodes: int = 5
    preference_floor: float = MIN_SCORE
    damping: float = 0.8
    max_iter: int = 200
    convergence_iter: int = 15
    random_state: int | None = 0
    clustering_timeout: float | None = None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "NetworkParams":
        """Create params from ``GENENET_*`` environment variables.

        ``GENENET_DAMPING=0.9`` overrides ``damping`` and so on. Unset
        variables keep their defaults. An empty value disables the optional
        ``random_state`` and ``clustering_timeout`` fields.
        """
        environ = os.environ if environ is None else environ
        overrides: dict[str, int | float | None] = {}
        for name, convert in _ENV_CONVERTERS.items():
            raw = environ.get(ENV_PREFIX + name.upper())
            if raw is None:
                continue
            raw = raw.strip()
            if not raw and name in _OPTIONAL_FIELDS:
                overrides[name] = None
            else:
                overrides[name] = convert(raw)
        return cls(**overrides)


_ENV_CONVERTERS = {
    "density_factor": int,
    "value_scale_ceiling": float,
    "min_clustering_nodes": int,
    "preference_floor": float,
    "damping": float,
    "max_iter": int,
    "convergence_iter": int,
    "random_state": int,
    "clustering_timeout": float,
}
_OPTIONAL_FIELDS = frozenset({"random_state", "clustering_timeout"})

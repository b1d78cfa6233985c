"""Affinity propagation clustering of the co-expression matrix.

Clustering runs as a two-step state machine::

    FIXED_PREFERENCE --(single exemplar)--> MIN_PREFERENCE --> FINAL
           |                                                    ^
           +-------------------(otherwise)----------------------+

The first attempt uses the lowest representable Z-score as preference. If the
whole network collapses into one cluster, a single retry uses the lowest
score observed in the data. Whatever the retry returns is final.
"""

import logging
import math
import threading
import time
import warnings
from enum import Enum
from typing import NamedTuple, Protocol

import numpy as np
from numpy.typing import ArrayLike, NDArray
from sklearn.cluster import affinity_propagation
from sklearn.exceptions import ConvergenceWarning

from .errors import ClusteringFailed, ClusteringInProgress
from .models import MIN_SCORE
from .network import ClusterResult

logger = logging.getLogger(__name__)

# Preference placeholder resolved to the minimum similarity in the data
PREFERENCE_MIN = "min"
DEFAULT_DAMPING = 0.8


class AffinityResult(NamedTuple):
    """Raw affinity propagation output: exemplar indices and per-node exemplar."""

    exemplars: list[int]
    clusters: list[int]


class AffinityFunction(Protocol):
    """Clustering collaborator over a flattened similarity matrix."""

    def __call__(
        self,
        similarities: NDArray[np.float64],
        *,
        symmetric: bool,
        preference: float | str,
        damping: float,
    ) -> AffinityResult: ...


class ClusteringStage(str, Enum):
    """States of the clustering retry policy."""

    FIXED_PREFERENCE = "fixed_preference"
    MIN_PREFERENCE = "min_preference"
    FINAL = "final"


def next_stage(stage: ClusteringStage, num_exemplars: int) -> ClusteringStage:
    """Transition after an attempt in ``stage`` found ``num_exemplars`` clusters."""
    if stage is ClusteringStage.FIXED_PREFERENCE and num_exemplars == 1:
        return ClusteringStage.MIN_PREFERENCE
    return ClusteringStage.FINAL


def square_from_triangle(similarities: NDArray[np.float64]) -> NDArray[np.float64]:
    """Expand row-major upper-triangle entries into a symmetric square matrix.

    The diagonal is left at zero; affinity propagation overwrites it with the
    preference.
    """
    m = similarities.size
    n = (1 + math.isqrt(1 + 8 * m)) // 2
    if n * (n - 1) // 2 != m:
        raise ClusteringFailed(f"{m} similarities do not form an upper triangle")
    S = np.zeros((n, n), dtype=np.float64)
    rows, cols = np.triu_indices(n, k=1)
    S[rows, cols] = similarities
    S[cols, rows] = similarities
    return S


def min_similarity(S: NDArray[np.float64]) -> float:
    """Lowest similarity between two distinct genes; the diagonal is ignored."""
    off_diagonal = S[~np.eye(S.shape[0], dtype=bool)]
    return float(off_diagonal.min()) if off_diagonal.size else MIN_SCORE


class SklearnAffinityPropagation:
    """AffinityFunction backed by :func:`sklearn.cluster.affinity_propagation`."""

    def __init__(
        self,
        max_iter: int = 200,
        convergence_iter: int = 15,
        random_state: int | None = 0,
    ) -> None:
        self.max_iter = max_iter
        self.convergence_iter = convergence_iter
        self.random_state = random_state

    def __call__(
        self,
        similarities: NDArray[np.float64],
        *,
        symmetric: bool,
        preference: float | str,
        damping: float,
    ) -> AffinityResult:
        values = np.asarray(similarities, dtype=np.float64)
        if symmetric:
            S = square_from_triangle(values)
        else:
            n = math.isqrt(values.size)
            if n * n != values.size:
                raise ClusteringFailed(f"{values.size} similarities do not form a square matrix")
            S = values.reshape(n, n)

        if preference == PREFERENCE_MIN:
            preference = min_similarity(S)

        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always", ConvergenceWarning)
            try:
                centers, labels = affinity_propagation(
                    S,
                    preference=preference,
                    damping=damping,
                    max_iter=self.max_iter,
                    convergence_iter=self.convergence_iter,
                    random_state=self.random_state,
                )
            except ValueError as e:
                raise ClusteringFailed(f"Affinity propagation rejected input: {e}") from e

        for w in caught:
            logger.debug(f"affinity_propagation: {w.message}")
        if any(issubclass(w.category, ConvergenceWarning) for w in caught):
            raise ClusteringFailed(
                f"Affinity propagation did not converge within {self.max_iter} iterations"
            )

        exemplars = [int(c) for c in centers]
        clusters = [exemplars[label] for label in labels] if exemplars else []
        return AffinityResult(exemplars=exemplars, clusters=clusters)


class ClusteringEngine:
    """Runs affinity propagation with the single-retry degeneracy policy.

    At most one clustering call runs per engine; a concurrent second call is
    rejected with ClusteringInProgress. The score array is only read.
    """

    def __init__(
        self,
        affinity: AffinityFunction | None = None,
        preference_floor: float = MIN_SCORE,
        damping: float = DEFAULT_DAMPING,
    ) -> None:
        self.affinity = affinity if affinity is not None else SklearnAffinityPropagation()
        self.preference_floor = preference_floor
        self.damping = damping
        self._lock = threading.Lock()

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    def cluster(self, scores: ArrayLike) -> ClusterResult:
        """Cluster genes from their upper-triangle scores.

        Raises:
            ClusteringFailed: If the algorithm fails, does not converge or
                returns no exemplars.
            ClusteringInProgress: If another call on this engine is running.
        """
        if not self._lock.acquire(blocking=False):
            raise ClusteringInProgress("A clustering run is already in progress")
        try:
            return self._run(np.asarray(scores, dtype=np.float64))
        finally:
            self._lock.release()

    def _run(self, scores: NDArray[np.float64]) -> ClusterResult:
        stage = ClusteringStage.FIXED_PREFERENCE
        attempts = 0
        while True:
            preference = self._preference_for(stage)
            start_time = time.perf_counter()
            result = self._attempt(scores, preference)
            attempts += 1
            logger.info(
                f"Affinity propagation ({stage.value}, preference={preference}) found "
                f"{len(result.exemplars)} clusters in {time.perf_counter() - start_time:.3f}s"
            )
            following = next_stage(stage, len(result.exemplars))
            if following is ClusteringStage.FINAL:
                break
            logger.info("Single cluster found, retrying with the minimum observed score")
            stage = following

        return ClusterResult(
            exemplars=tuple(result.exemplars),
            clusters=tuple(result.clusters),
            preference=preference,
            attempts=attempts,
        )

    def _preference_for(self, stage: ClusteringStage) -> float | str:
        if stage is ClusteringStage.FIXED_PREFERENCE:
            return self.preference_floor
        return PREFERENCE_MIN

    def _attempt(self, scores: NDArray[np.float64], preference: float | str) -> AffinityResult:
        result = self.affinity(scores, symmetric=True, preference=preference, damping=self.damping)
        exemplars = [int(e) for e in result.exemplars]
        clusters = [int(c) for c in result.clusters]

        if not exemplars:
            raise ClusteringFailed("Affinity propagation returned no exemplars")
        n_genes = (1 + math.isqrt(1 + 8 * scores.size)) // 2
        if len(clusters) != n_genes:
            raise ClusteringFailed(
                f"Affinity propagation labelled {len(clusters)} genes, expected {n_genes}"
            )
        known = set(exemplars)
        if any(c not in known for c in clusters):
            raise ClusteringFailed("Affinity propagation assigned genes to unknown exemplars")
        return AffinityResult(exemplars=exemplars, clusters=clusters)

import numpy as np
import pytest

from genenet.network.clustering import AffinityResult


class FakeAffinity:
    """Affinity function returning canned results and recording its calls.

    Each result is an ``(exemplars, clusters)`` pair or an exception to raise.
    """

    def __init__(self, *results):
        self.results = list(results)
        self.calls: list[dict] = []

    def __call__(self, similarities, *, symmetric, preference, damping):
        self.calls.append(
            {
                "size": len(similarities),
                "symmetric": symmetric,
                "preference": preference,
                "damping": damping,
            }
        )
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        exemplars, clusters = result
        return AffinityResult(exemplars=list(exemplars), clusters=list(clusters))


@pytest.fixture
def two_block_scores() -> np.ndarray:
    """Upper triangle for 6 genes: {0, 1, 2} and {3, 4, 5} strongly co-expressed."""
    n = 6
    S = np.full((n, n), -20.0)
    S[0, 1], S[0, 2], S[1, 2] = 9.0, 8.0, 7.0
    S[3, 4], S[3, 5], S[4, 5] = 9.0, 8.0, 7.5
    S[0, 3], S[1, 4], S[2, 5] = -21.0, -22.0, -20.5
    rows, cols = np.triu_indices(n, k=1)
    return S[rows, cols]

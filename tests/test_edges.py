"""
Tests for edge materialisation in network/edges.py and the NodeIndex mapping.

Run: pytest tests/test_edges.py -v
"""

import numpy as np
import pytest

from genenet.network import InvalidDimensions, NetworkEdge, NodeIndex, build_edges

# ── Fixtures ─────────────────────────────────────────────────────────────────


@pytest.fixture
def six_genes() -> NodeIndex:
    return NodeIndex([f"g{i}" for i in range(6)])


@pytest.fixture
def single_strong_pair() -> np.ndarray:
    """15 weak scores except pair (2, 4) at position 10 with 5.2."""
    return np.array(
        [0.3, -0.8, 1.1, -1.9, 0.0, 2.4, -0.2, 0.9, 1.5, -2.2, 5.2, 0.4, -1.0, 0.7, 3.1]
    )


# ── NodeIndex ────────────────────────────────────────────────────────────────


class TestNodeIndex:
    def test_bidirectional_lookup(self, six_genes: NodeIndex) -> None:
        assert six_genes.id_of(4) == "g4"
        assert six_genes.index_of("g4") == 4
        assert "g5" in six_genes
        assert "g6" not in six_genes

    def test_pair_indices_follow_payload_order(self) -> None:
        rows, cols = NodeIndex(["a", "b", "c", "d"]).pair_indices()
        assert list(zip(rows.tolist(), cols.tolist(), strict=True)) == [
            (0, 1),
            (0, 2),
            (0, 3),
            (1, 2),
            (1, 3),
            (2, 3),
        ]

    @pytest.mark.parametrize(("n", "pairs"), [(0, 0), (1, 0), (2, 1), (6, 15)])
    def test_pair_count(self, n: int, pairs: int) -> None:
        assert NodeIndex([str(i) for i in range(n)]).pair_count == pairs

    def test_duplicate_ids_raise(self) -> None:
        with pytest.raises(InvalidDimensions):
            NodeIndex(["a", "b", "a"])


# ── build_edges ──────────────────────────────────────────────────────────────


class TestBuildEdges:
    """Thresholding the decoded scores into edges."""

    def test_single_edge_and_isolated_genes(
        self, six_genes: NodeIndex, single_strong_pair: np.ndarray
    ) -> None:
        edge_set = build_edges(single_strong_pair, six_genes, 5.0)
        assert edge_set.edges == (NetworkEdge(source="g2", target="g4", weight=5.2),)
        assert edge_set.isolated_ids == ["g0", "g1", "g3", "g5"]
        assert edge_set.connected_ids == ["g2", "g4"]

    def test_negative_scores_keep_sign(self, six_genes: NodeIndex) -> None:
        scores = np.zeros(15)
        scores[0] = -6.0
        edge_set = build_edges(scores, six_genes, 5.0)
        assert edge_set.edges == (NetworkEdge(source="g0", target="g1", weight=-6.0),)

    def test_threshold_is_inclusive(self, six_genes: NodeIndex) -> None:
        scores = np.zeros(15)
        scores[14] = 4.0
        edge_set = build_edges(scores, six_genes, 4.0)
        assert [(e.source, e.target) for e in edge_set.edges] == [("g4", "g5")]

    def test_edges_in_payload_order(
        self, six_genes: NodeIndex, single_strong_pair: np.ndarray
    ) -> None:
        edge_set = build_edges(single_strong_pair, six_genes, 2.0)
        assert [(e.source, e.target) for e in edge_set.edges] == [
            ("g1", "g2"),
            ("g2", "g3"),
            ("g2", "g4"),
            ("g4", "g5"),
        ]

    def test_lower_threshold_never_loses_edges(
        self, six_genes: NodeIndex, single_strong_pair: np.ndarray
    ) -> None:
        high = set(build_edges(single_strong_pair, six_genes, 2.0).edges)
        low = set(build_edges(single_strong_pair, six_genes, 1.0).edges)
        assert high <= low

    def test_weights_are_floats(self, six_genes: NodeIndex, single_strong_pair: np.ndarray) -> None:
        edge_set = build_edges(single_strong_pair, six_genes, 5.0)
        assert type(edge_set.edges[0].weight) is float

    @pytest.mark.parametrize("genes", [[], ["only"]])
    def test_no_pairs_no_edges(self, genes: list[str]) -> None:
        edge_set = build_edges([], NodeIndex(genes), 0.0)
        assert edge_set.num_edges == 0
        assert edge_set.connected == tuple(False for _ in genes)

    def test_length_mismatch_raises(self, six_genes: NodeIndex) -> None:
        with pytest.raises(InvalidDimensions):
            build_edges(np.zeros(14), six_genes, 1.0)

    def test_matrix_shaped_scores_raise(self) -> None:
        with pytest.raises(InvalidDimensions):
            build_edges(np.zeros((1, 1)), NodeIndex(["a", "b"]), 1.0)

"""Composition root: turns a score payload and gene list into a network graph."""

import logging
import time
from collections.abc import Iterable, Mapping, Sequence
from concurrent.futures import Future, ThreadPoolExecutor, wait
from concurrent.futures import TimeoutError as FuturesTimeoutError
from dataclasses import replace
from types import MappingProxyType
from typing import Any

import numpy as np
from numpy.typing import NDArray

from .clustering import ClusteringEngine, SklearnAffinityPropagation
from .edges import build_edges
from .errors import ClusteringFailed, NetworkError
from .groups import annotate_custom_groups, assemble_groups
from .matrix import decode_scores
from .models import GeneId, NetworkParams
from .network import (
    ClusterResult,
    CustomGroupDescriptor,
    EdgeSet,
    GeneNode,
    NetworkGraph,
    NodeIndex,
)
from .thresholds import select_default_threshold

logger = logging.getLogger(__name__)

GeneRecord = GeneId | Mapping[str, Any]
GroupRecord = CustomGroupDescriptor | Mapping[str, Any]


def make_nodes(genes: Iterable[GeneRecord]) -> list[GeneNode]:
    """Create nodes from gene ids or ``{"id": ..., **metadata}`` records."""
    nodes: list[GeneNode] = []
    for i, gene in enumerate(genes):
        if isinstance(gene, Mapping):
            metadata = {k: v for k, v in gene.items() if k != "id"}
            nodes.append(
                GeneNode(gene_id=str(gene["id"]), index=i, metadata=MappingProxyType(metadata))
            )
        else:
            nodes.append(GeneNode(gene_id=str(gene), index=i))
    return nodes


def make_custom_groups(groups: Iterable[GroupRecord]) -> list[CustomGroupDescriptor]:
    return [
        g if isinstance(g, CustomGroupDescriptor) else CustomGroupDescriptor.from_dict(g)
        for g in groups
    ]


class NetworkModel:
    """Owns one network view: decoded scores, edges and groups.

    ``build`` decodes the payload, picks the default threshold, builds the
    edges, clusters the genes and assembles the group list. ``rethreshold``
    recomputes only the edges from the cached scores and never waits on
    clustering.

    Clustering runs on a single background worker, so at most one clustering
    computation is active per model. A run abandoned after ``clustering_timeout``
    keeps the worker busy; the next ``build`` waits for it to finish before
    submitting, and only then starts its own timeout.
    """

    def __init__(
        self,
        params: NetworkParams | None = None,
        engine: ClusteringEngine | None = None,
    ) -> None:
        self.params = params or NetworkParams()
        self.engine = engine or ClusteringEngine(
            affinity=SklearnAffinityPropagation(
                max_iter=self.params.max_iter,
                convergence_iter=self.params.convergence_iter,
                random_state=self.params.random_state,
            ),
            preference_floor=self.params.preference_floor,
            damping=self.params.damping,
        )
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="genenet-cluster")
        self._pending: Future[ClusterResult] | None = None
        self._scores: NDArray[np.float64] | None = None
        self._node_index: NodeIndex | None = None
        self._graph: NetworkGraph | None = None

    def __enter__(self) -> "NetworkModel":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        """Shut down the clustering worker without waiting for it.

        Queued runs are cancelled, but a run that already started cannot be
        interrupted. Its thread is still joined when the interpreter exits.
        """
        self._executor.shutdown(wait=False, cancel_futures=True)

    @property
    def graph(self) -> NetworkGraph:
        if self._graph is None:
            raise NetworkError("Network has not been built yet")
        return self._graph

    @property
    def threshold(self) -> float:
        return self.graph.threshold

    @property
    def scores(self) -> NDArray[np.float64]:
        """Decoded scores of the current network (read-only)."""
        if self._scores is None:
            raise NetworkError("Network has not been built yet")
        return self._scores

    def build(
        self,
        buffer: bytes | bytearray | memoryview,
        genes: Sequence[GeneRecord],
        custom_groups: Iterable[GroupRecord] = (),
    ) -> NetworkGraph:
        """Construct the network graph for ``genes`` from a score payload.

        Args:
            buffer: Upper-triangle score payload for the genes, in their order.
            genes: Gene ids or records with an ``id`` key plus metadata.
            custom_groups: User-defined groups (descriptors or
                ``{"id", "name", "genes"}`` mappings).

        Returns:
            The network graph. Clustering problems never fail the build; the
            graph then has no cluster groups.

        Raises:
            MalformedMatrix: If the payload does not match the gene count.
            InvalidDimensions: If gene ids are duplicated.
        """
        start_time = time.perf_counter()

        nodes = make_nodes(genes)
        node_index = NodeIndex(node.gene_id for node in nodes)
        scores = decode_scores(buffer, len(node_index))
        scores.setflags(write=False)

        threshold = select_default_threshold(
            scores,
            len(node_index),
            value_scale_ceiling=self.params.value_scale_ceiling,
            density_factor=self.params.density_factor,
        )
        edge_set = build_edges(scores, node_index, threshold)

        descriptors = make_custom_groups(custom_groups)
        nodes = annotate_custom_groups(nodes, descriptors)
        logger.debug(f"Network decoded in {time.perf_counter() - start_time:.3f}s")

        cluster_result = self._cluster(scores, len(node_index))
        groups = assemble_groups(node_index, descriptors, cluster_result)

        self._scores = scores
        self._node_index = node_index
        self._graph = NetworkGraph(
            nodes=nodes,
            edges=list(edge_set.edges),
            groups=groups,
            threshold=threshold,
            connected=list(edge_set.connected),
        )

        logger.info(
            f"Network built with {len(nodes)} genes, {edge_set.num_edges} edges "
            f"(threshold {threshold:.3f}) and {len(groups)} groups "
            f"in {time.perf_counter() - start_time:.3f}s"
        )
        return self._graph

    def rethreshold(self, threshold: float) -> EdgeSet:
        """Recompute the edges of the current network for a new threshold.

        Groups and clusters are left untouched.
        """
        if self._scores is None or self._node_index is None or self._graph is None:
            raise NetworkError("Network has not been built yet")

        edge_set = build_edges(self._scores, self._node_index, threshold)
        self._graph = replace(
            self._graph,
            edges=list(edge_set.edges),
            connected=list(edge_set.connected),
            threshold=float(threshold),
        )
        logger.debug(f"Rethresholded to {threshold:.3f}: {edge_set.num_edges} edges")
        return edge_set

    def adjust_threshold(self, delta: float) -> EdgeSet:
        """Step the current threshold by ``delta`` and recompute the edges."""
        return self.rethreshold(self.threshold + delta)

    def _cluster(self, scores: NDArray[np.float64], node_count: int) -> ClusterResult | None:
        if node_count < self.params.min_clustering_nodes:
            logger.debug(
                f"Skipping clustering for {node_count} genes "
                f"(minimum {self.params.min_clustering_nodes})"
            )
            return None

        if self._pending is not None and not self._pending.done():
            logger.info("Waiting for the previous clustering run to finish")
            wait([self._pending])

        # The timeout counts from submission, never from time spent behind a stale run
        future = self._executor.submit(self.engine.cluster, scores)
        self._pending = future
        try:
            return future.result(timeout=self.params.clustering_timeout)
        except FuturesTimeoutError:
            logger.warning(
                f"Clustering did not finish within {self.params.clustering_timeout}s, "
                f"continuing without clusters"
            )
        except ClusteringFailed as e:
            logger.warning(f"Clustering failed, continuing without clusters: {e}")
        return None

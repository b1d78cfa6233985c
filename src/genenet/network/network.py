"""Domain models for co-expression network entities."""

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any

import networkx as nx
import numpy as np
from numpy.typing import NDArray

from .errors import InvalidDimensions
from .models import EDGE_COLOR_SCALES, EDGE_VALUE_SCALES, GeneId, GroupId


class NodeIndex:
    """Bidirectional mapping between gene ids and matrix positions.

    The score matrix is addressed by position, so the gene order used to
    decode it must be the order used to read edges and clusters back out.
    """

    def __init__(self, gene_ids: Iterable[GeneId]) -> None:
        self._ids: tuple[GeneId, ...] = tuple(gene_ids)
        self._positions: dict[GeneId, int] = {}
        for i, gene_id in enumerate(self._ids):
            if gene_id in self._positions:
                raise InvalidDimensions(f"Duplicate gene id in network: {gene_id}")
            self._positions[gene_id] = i

    def __len__(self) -> int:
        return len(self._ids)

    def __iter__(self) -> Iterator[GeneId]:
        return iter(self._ids)

    def __contains__(self, gene_id: object) -> bool:
        return gene_id in self._positions

    @property
    def ids(self) -> tuple[GeneId, ...]:
        """Gene ids in matrix order."""
        return self._ids

    @property
    def pair_count(self) -> int:
        """Number of upper-triangle entries, N*(N-1)/2."""
        n = len(self._ids)
        return n * (n - 1) // 2 if n > 1 else 0

    def id_of(self, index: int) -> GeneId:
        return self._ids[index]

    def index_of(self, gene_id: GeneId) -> int:
        return self._positions[gene_id]

    def pair_indices(self) -> tuple[NDArray[np.intp], NDArray[np.intp]]:
        """Row and column of every upper-triangle entry, in payload order.

        Position k of the flat score array holds the pair
        ``(rows[k], cols[k])``: (0, 1), (0, 2), ..., (1, 2), ...
        """
        return np.triu_indices(len(self._ids), k=1)


@dataclass(frozen=True)
class GeneNode:
    """A gene in the network."""

    gene_id: GeneId
    index: int
    metadata: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    custom_groups: tuple[GroupId, ...] = ()  # Ids of custom groups containing this gene

    def to_dict(self) -> dict[str, Any]:
        data = {**self.metadata, "id": self.gene_id, "index_": self.index}
        if self.custom_groups:
            data["customGroups"] = list(self.custom_groups)
        return data


@dataclass(frozen=True)
class NetworkEdge:
    """An undirected edge between two genes carrying the signed Z-score."""

    source: GeneId
    target: GeneId
    weight: float


@dataclass(frozen=True)
class EdgeSet:
    """Edges passing a threshold, plus which genes they touch."""

    edges: tuple[NetworkEdge, ...]
    connected: tuple[bool, ...]
    node_index: NodeIndex = field(repr=False, compare=False)

    @property
    def num_edges(self) -> int:
        return len(self.edges)

    @property
    def connected_ids(self) -> list[GeneId]:
        return [g for g, c in zip(self.node_index.ids, self.connected, strict=True) if c]

    @property
    def isolated_ids(self) -> list[GeneId]:
        """Genes without any edge at the current threshold."""
        return [g for g, c in zip(self.node_index.ids, self.connected, strict=True) if not c]


class GroupType(str, Enum):
    """Origin of a group of genes."""

    AUTO = "auto"
    CUSTOM = "custom"
    CLUSTER = "cluster"


@dataclass
class NetworkGroup:
    """A named set of genes shown in the group list."""

    name: str
    nodes: list[GeneId]
    group_type: GroupType
    index: GroupId | None = None  # External id for custom groups, rank for clusters
    exemplar: GeneId | None = None  # Cluster groups only

    @property
    def size(self) -> int:
        return len(self.nodes)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "nodes": list(self.nodes),
            "type": self.group_type.value,
        }
        if self.index is not None:
            data["index_"] = self.index
        if self.exemplar is not None:
            data["exemplar"] = self.exemplar
        return data


@dataclass(frozen=True)
class CustomGroupDescriptor:
    """A user-defined gene group as supplied with the network request."""

    group_id: GroupId
    name: str
    genes: tuple[GeneId, ...]

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CustomGroupDescriptor":
        return cls(group_id=data["id"], name=data["name"], genes=tuple(data["genes"]))


@dataclass(frozen=True)
class ClusterResult:
    """Outcome of affinity propagation over the score matrix.

    Attributes:
        exemplars: Node indices chosen as exemplars, in discovery order.
        clusters: For every node index, the exemplar index representing it.
        preference: Preference value of the accepted attempt.
        attempts: Number of clustering runs performed (1 or 2).
    """

    exemplars: tuple[int, ...]
    clusters: tuple[int, ...]
    preference: float | str
    attempts: int = 1

    @property
    def num_clusters(self) -> int:
        return len(self.exemplars)

    def members(self) -> dict[int, list[int]]:
        """Map each exemplar to its member node indices, in exemplar order."""
        by_exemplar: dict[int, list[int]] = {e: [] for e in self.exemplars}
        for node, exemplar in enumerate(self.clusters):
            by_exemplar[exemplar].append(node)
        return by_exemplar


@dataclass
class NetworkGraph:
    """Graph-shaped result consumed by the visualisation layer."""

    nodes: list[GeneNode]
    edges: list[NetworkEdge]
    groups: list[NetworkGroup]
    threshold: float
    connected: list[bool] = field(default_factory=list)
    edge_value_scales: tuple[tuple[float, ...], ...] = EDGE_VALUE_SCALES
    edge_color_scales: tuple[tuple[str, ...], ...] = EDGE_COLOR_SCALES

    @property
    def num_nodes(self) -> int:
        return len(self.nodes)

    @property
    def num_edges(self) -> int:
        return len(self.edges)

    @property
    def cluster_groups(self) -> list[NetworkGroup]:
        return [g for g in self.groups if g.group_type is GroupType.CLUSTER]

    def to_dict(self) -> dict[str, Any]:
        """Serialise to plain JSON-compatible structures."""
        return {
            "elements": {
                "nodes": [{"data": n.to_dict()} for n in self.nodes],
                "edges": [
                    {"data": {"source": e.source, "target": e.target, "weight": e.weight}}
                    for e in self.edges
                ],
                "groups": [g.to_dict() for g in self.groups],
            },
            "threshold": self.threshold,
            "isConnected": list(self.connected),
            "edgeValueScales": [list(s) for s in self.edge_value_scales],
            "edgeColorScales": [list(s) for s in self.edge_color_scales],
        }

    def to_networkx(self) -> nx.Graph:
        """Build an undirected networkx graph with node metadata and signed weights."""
        G = nx.Graph(threshold=self.threshold)
        for node in self.nodes:
            attrs = {
                **node.metadata,
                "index": node.index,
                "custom_groups": list(node.custom_groups),
            }
            G.add_node(node.gene_id, **attrs)
        G.add_edges_from((e.source, e.target, {"weight": e.weight}) for e in self.edges)
        return G

from .clustering import ClusteringEngine, SklearnAffinityPropagation
from .edges import build_edges
from .errors import (
    ClusteringFailed,
    ClusteringInProgress,
    InvalidDimensions,
    MalformedMatrix,
    NetworkError,
)
from .groups import annotate_custom_groups, assemble_groups
from .matrix import decode_scores, encode_scores
from .model import NetworkModel
from .models import NetworkParams
from .network import (
    ClusterResult,
    CustomGroupDescriptor,
    EdgeSet,
    GeneNode,
    GroupType,
    NetworkEdge,
    NetworkGraph,
    NetworkGroup,
    NodeIndex,
)
from .thresholds import select_default_threshold

__all__ = [
    "ClusterResult",
    "ClusteringEngine",
    "ClusteringFailed",
    "ClusteringInProgress",
    "CustomGroupDescriptor",
    "EdgeSet",
    "GeneNode",
    "GroupType",
    "InvalidDimensions",
    "MalformedMatrix",
    "NetworkEdge",
    "NetworkError",
    "NetworkGraph",
    "NetworkGroup",
    "NetworkModel",
    "NetworkParams",
    "NodeIndex",
    "SklearnAffinityPropagation",
    "annotate_custom_groups",
    "assemble_groups",
    "build_edges",
    "decode_scores",
    "encode_scores",
    "select_default_threshold",
]

"""Gene co-expression network construction.

Turns a compact pairwise Z-score matrix over a gene list into a displayable
graph: nodes, thresholded edges and the group list (all genes, custom groups,
affinity-propagation clusters, selection).
"""

from .network import NetworkModel, NetworkParams

__all__ = ["NetworkModel", "NetworkParams"]

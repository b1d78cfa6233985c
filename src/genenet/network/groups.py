"""Group list assembly and custom-group back-annotation.

The group list always has the same shape::

    All genes | custom groups... | Cluster 1, Cluster 2, ... | My selection

The visualisation layer relies on "All genes" being first and "My selection"
being last.
"""

import logging
from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import replace

from .models import ALL_GENES_GROUP, CLUSTER_NAME_PREFIX, SELECTION_GROUP, GroupId
from .network import (
    ClusterResult,
    CustomGroupDescriptor,
    GeneNode,
    GroupType,
    NetworkGroup,
    NodeIndex,
)

logger = logging.getLogger(__name__)


def annotate_custom_groups(
    nodes: Sequence[GeneNode],
    custom_groups: Iterable[CustomGroupDescriptor],
) -> list[GeneNode]:
    """Return copies of ``nodes`` listing the custom groups each gene is in.

    Group ids are appended in the order the groups are supplied. Existing
    annotations on the input nodes are replaced, so calling this twice with
    the same groups gives the same result. Genes named by a group but missing
    from the network are skipped.

    Args:
        nodes: Network genes.
        custom_groups: User-defined groups.

    Returns:
        New list of nodes, same order as ``nodes``.
    """
    known = {node.gene_id for node in nodes}
    memberships: dict[str, list[GroupId]] = defaultdict(list)
    for group in custom_groups:
        missing = 0
        for gene_id in group.genes:
            if gene_id not in known:
                missing += 1
                continue
            memberships[gene_id].append(group.group_id)
        if missing:
            logger.warning(
                f"Custom group '{group.name}' ({group.group_id}) names {missing} "
                f"genes that are not in the network"
            )

    return [
        replace(node, custom_groups=tuple(memberships.get(node.gene_id, ()))) for node in nodes
    ]


def build_cluster_groups(
    node_index: NodeIndex, cluster_result: ClusterResult
) -> list[NetworkGroup]:
    """Turn a clustering into named groups, largest first.

    Ties keep the order in which exemplars were discovered.
    """
    groups = [
        NetworkGroup(
            name="",
            nodes=[node_index.id_of(i) for i in members],
            group_type=GroupType.CLUSTER,
            exemplar=node_index.id_of(exemplar),
        )
        for exemplar, members in cluster_result.members().items()
    ]
    groups.sort(key=lambda g: -g.size)
    for i, group in enumerate(groups):
        group.name = f"{CLUSTER_NAME_PREFIX} {i + 1}"
        group.index = i
    return groups


def assemble_groups(
    node_index: NodeIndex,
    custom_groups: Iterable[CustomGroupDescriptor] = (),
    cluster_result: ClusterResult | None = None,
) -> list[NetworkGroup]:
    """Build the ordered group list for a network.

    Args:
        node_index: Network genes in matrix order.
        custom_groups: User-defined groups, kept in the supplied order with
            their gene lists verbatim.
        cluster_result: Clustering of the network, or None when clustering
            was skipped or failed.

    Returns:
        All genes, custom groups, cluster groups, then the empty selection.
    """
    groups = [
        NetworkGroup(name=ALL_GENES_GROUP, nodes=list(node_index.ids), group_type=GroupType.AUTO)
    ]

    groups.extend(
        NetworkGroup(
            name=group.name,
            nodes=list(group.genes),
            group_type=GroupType.CUSTOM,
            index=group.group_id,
        )
        for group in custom_groups
    )

    if cluster_result is not None:
        groups.extend(build_cluster_groups(node_index, cluster_result))

    groups.append(NetworkGroup(name=SELECTION_GROUP, nodes=[], group_type=GroupType.AUTO))
    return groups

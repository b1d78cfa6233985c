"""Utilities for reading network inputs and writing network graphs to disk."""

import csv
import json
import logging
from pathlib import Path
from typing import Any

import pandas as pd

from .network import CustomGroupDescriptor, NetworkGraph

logger = logging.getLogger(__name__)

GENE_ID_COLUMN = "id"


def read_genes(path: Path) -> list[dict[str, Any]]:
    """Read the gene list and its metadata from a TSV or CSV file.

    The gene id is taken from the ``id`` column, or the first column when
    there is none. Every other column becomes node metadata.

    Raises:
        FileNotFoundError: If the file cannot be read.
    """
    sep = "," if path.suffix.lower() == ".csv" else "\t"
    try:
        df = pd.read_csv(path, sep=sep, dtype=str, keep_default_na=False)
    except Exception as e:
        logger.error(f"Error reading gene list: {e}")
        raise FileNotFoundError(f"Could not read gene list: {path}") from e

    id_column = GENE_ID_COLUMN if GENE_ID_COLUMN in df.columns else df.columns[0]
    df = df.rename(columns={id_column: GENE_ID_COLUMN})
    genes = df.to_dict(orient="records")
    logger.info(f"Loaded {len(genes)} genes from {path}")
    return genes


def read_custom_groups(path: Path) -> list[CustomGroupDescriptor]:
    """Read user-defined groups from a JSON list of ``{id, name, genes}`` objects."""
    with path.open(encoding="utf-8") as f:
        data = json.load(f)
    groups = [CustomGroupDescriptor.from_dict(item) for item in data]
    logger.info(f"Loaded {len(groups)} custom groups from {path}")
    return groups


def read_matrix(path: Path) -> bytes:
    """Read a raw score payload."""
    if not path.exists():
        raise FileNotFoundError(f"No score matrix found at {path}")
    return path.read_bytes()


def write_nodes(path: Path, graph: NetworkGraph) -> None:
    """Write genes with their metadata and connectivity to CSV."""
    metadata_keys: list[str] = []
    for node in graph.nodes:
        for key in node.metadata:
            if key not in metadata_keys:
                metadata_keys.append(key)

    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8", newline="") as f:
        w = csv.writer(f)
        w.writerow(["node_id", "index", *metadata_keys, "custom_groups", "is_connected"])
        for node, connected in zip(graph.nodes, graph.connected, strict=True):
            w.writerow(
                [
                    node.gene_id,
                    node.index,
                    *(node.metadata.get(key, "") for key in metadata_keys),
                    ";".join(str(g) for g in node.custom_groups),
                    str(connected),
                ]
            )


def write_edges(path: Path, graph: NetworkGraph) -> None:
    """Write edges to CSV."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8", newline="") as f:
        w = csv.writer(f)
        w.writerow(["source", "target", "weight"])
        for edge in graph.edges:
            w.writerow([edge.source, edge.target, edge.weight])


def write_groups(path: Path, graph: NetworkGraph) -> None:
    """Write group membership as tab-delimited ``group, type, gene`` rows.

    Empty groups are skipped.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8", newline="") as f:
        w = csv.writer(f, delimiter="\t")
        w.writerow(["group", "type", "gene"])
        for group in graph.groups:
            for gene_id in group.nodes:
                w.writerow([group.name, group.group_type.value, gene_id])


def write_graph_json(path: Path, graph: NetworkGraph) -> None:
    """Write the full graph in the shape consumed by the network viewer."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(graph.to_dict(), f, indent=2)

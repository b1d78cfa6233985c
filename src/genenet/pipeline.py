import logging
import time
from pathlib import Path

from genenet.network import NetworkGraph, NetworkModel, NetworkParams
from genenet.network.io import (
    read_custom_groups,
    read_genes,
    read_matrix,
    write_edges,
    write_graph_json,
    write_groups,
    write_nodes,
)

logger = logging.getLogger(__name__)


class NetworkPipeline:
    """
    Builds a co-expression network from files in a dataset directory.

    Expects ``genes.tsv``, ``matrix.bin`` and optionally ``groups.json`` under
    ``dataset_path`` and writes the graph to ``dataset_path / "network"``.
    """

    def __init__(
        self,
        dataset_path: Path,
        params: NetworkParams | None = None,
        threshold: float | None = None,
    ) -> None:
        self.dataset_path = dataset_path
        self.params = params or NetworkParams()
        self.threshold = threshold

        self.files = {
            "genes": dataset_path / "genes.tsv",
            "matrix": dataset_path / "matrix.bin",
            "groups": dataset_path / "groups.json",
        }
        self.output_dir = dataset_path / "network"
        self.timings: dict[str, float] = {}

    def run(self) -> NetworkGraph:
        """Execute the full pipeline."""
        logger.info(f"Starting network pipeline on {self.dataset_path}")
        start_time = time.perf_counter()

        genes = read_genes(self.files["genes"])
        buffer = read_matrix(self.files["matrix"])
        custom_groups = (
            read_custom_groups(self.files["groups"]) if self.files["groups"].exists() else []
        )

        with NetworkModel(self.params) as model:
            t0 = time.perf_counter()
            graph = model.build(buffer, genes, custom_groups)
            self.timings["Network Construction"] = time.perf_counter() - t0

            if self.threshold is not None:
                t0 = time.perf_counter()
                model.rethreshold(self.threshold)
                graph = model.graph
                self.timings["Rethreshold"] = time.perf_counter() - t0

        self._write_outputs(graph)

        total_elapsed = time.perf_counter() - start_time
        logger.info(f"Pipeline completed in {total_elapsed:.2f} seconds")
        self._print_timings()
        return graph

    def _write_outputs(self, graph: NetworkGraph) -> None:
        write_nodes(self.output_dir / "network_nodes.csv", graph)
        write_edges(self.output_dir / "network_edges.csv", graph)
        write_groups(self.output_dir / "network_groups.tsv", graph)
        write_graph_json(self.output_dir / "network.json", graph)
        logger.info(
            f"Network with {graph.num_nodes} nodes and {graph.num_edges} edges "
            f"written to {self.output_dir}"
        )

    def _print_timings(self) -> None:
        """Print table of computation times."""
        print("\n" + "=" * 40)
        print(f"{'Step':<25} | {'Time (ms)':<10}")
        print("-" * 40)
        for step, duration in self.timings.items():
            print(f"{step:<25} | {duration * 1000:<10.4f}")
        print("=" * 40 + "\n")

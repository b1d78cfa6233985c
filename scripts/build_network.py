import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path

import dotenv

from genenet.network import NetworkParams
from genenet.pipeline import NetworkPipeline

dotenv.load_dotenv()


def main():
    default_root = Path(__file__).parents[1] / "datasets/test"

    parser = argparse.ArgumentParser(description="Build a gene co-expression network.")
    parser.add_argument(
        "dataset_path",
        nargs="?",
        type=Path,
        default=default_root,
        help=(
            "Directory with genes.tsv, matrix.bin and optional groups.json "
            f"(default: {default_root})"
        ),
    )
    parser.add_argument(
        "--threshold",
        type=float,
        default=None,
        help="Edge threshold to use instead of the default (default: derived from the data)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help=(
            "Seconds to wait for clustering before writing the network without clusters "
            "(default: no limit). This bounds when output is written, not how long the "
            "process runs: an abandoned clustering run still finishes before exit"
        ),
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    logger = logging.getLogger(__name__)

    params = NetworkParams.from_env()
    if args.timeout is not None:
        params = replace(params, clustering_timeout=args.timeout)

    try:
        pipeline = NetworkPipeline(
            dataset_path=args.dataset_path,
            params=params,
            threshold=args.threshold,
        )
        pipeline.run()
    except Exception as e:
        logger.error(f"Pipeline failed: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()

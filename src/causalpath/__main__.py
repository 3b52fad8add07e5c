"""Command line entry point for the causality search.

Usage:
    python -m causalpath --relations relations.tsv --data data.tsv --output causative.tsv
    python -m causalpath --relations relations.tsv --data data.tsv --output conflicting.tsv --conflicting
    python -m causalpath ... --config search.yaml --correlation
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from causalpath.detectors import CorrelationDetector
from causalpath.io import load_data, load_relations
from causalpath.searcher import CausalitySearcher, SearcherConfig


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Match experiment data with prior-knowledge relations",
    )
    parser.add_argument("--relations", type=Path, required=True, help="Relation TSV file")
    parser.add_argument("--data", type=Path, required=True, help="Experiment data TSV file")
    parser.add_argument("--output", type=Path, required=True, help="Where to write the evidence report")
    parser.add_argument("--config", type=Path, help="YAML file with search options")
    parser.add_argument(
        "--conflicting",
        action="store_true",
        help="Search for relations that conflict with the data instead of explaining it",
    )
    parser.add_argument(
        "--correlation",
        action="store_true",
        help="Compare data by correlation of per-sample values instead of change signs",
    )
    parser.add_argument(
        "--p-threshold",
        type=float,
        default=0.05,
        help="Significance threshold for change and correlation calls (default: 0.05)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = SearcherConfig.from_yaml(args.config) if args.config else SearcherConfig()
        if args.conflicting:
            config.causal = False

        genes = load_data(args.data, p_threshold=args.p_threshold)
        detector = CorrelationDetector(p_threshold=args.p_threshold) if args.correlation else None
        relations = load_relations(args.relations, genes, change_detector=detector)
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    searcher = CausalitySearcher(config)
    results = searcher.run(relations)
    try:
        searcher.write_results(args.output)
    except OSError as e:
        print(f"Error writing report: {e}", file=sys.stderr)
        return 1

    mode = "causal" if config.causal else "conflicting"
    print(f"{len(results)} of {len(relations)} relations are {mode}")
    if searcher.data_needs_annotation:
        print(f"{len(searcher.data_needs_annotation)} data need effect annotation")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

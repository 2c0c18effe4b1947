"""
grnconsensus infer - Consensus network inference from an expression table.

Outputs (in --output):
    consensus.csv     every scored edge, ordered by combined rank
    network.csv       the selected, most scale-free prefix of the consensus
    fit_history.csv   power-law fit of every candidate network
    edges_<name>.csv  per-scorer edge lists (with --keep-scorer-output)
    manifest.json     scorers run, failures, selected size and fit, config
"""

import argparse
import logging
from pathlib import Path

from grnconsensus.inference.types import ScorerName


def register_parser(subparsers: argparse._SubParsersAction) -> None:
    """Register the infer subcommand."""
    parser = subparsers.add_parser(
        "infer",
        help="Infer a consensus regulatory network",
        description=(
            "Score regulator-target edges with several inference methods, "
            "combine their rankings and keep the network size whose regulator "
            "out-degree distribution best fits a power law."
        )
    )

    # Input/output
    parser.add_argument("--input", "-i", type=Path, default=None,
                        help="Expression table (genes x samples, CSV or TSV)")
    parser.add_argument("--regulators", "-r", type=Path, default=None,
                        help="Regulator list (one ID per line, or first column of a table)")
    parser.add_argument("--output", "-o", type=Path, default=Path("results/grn"),
                        help="Output directory (default: results/grn)")
    parser.add_argument("--config", "-c", type=Path, default=None,
                        help="Path to YAML/JSON config file (optional, CLI args override config values)")

    # Scorers
    parser.add_argument("--methods", "-m", nargs="+", default=None,
                        choices=[n.value for n in ScorerName],
                        help="Scorers to run (default: genie3 clr aracne)")
    parser.add_argument("--n-trees", type=int, default=None,
                        help="Trees per GENIE3 model (default: 1000)")
    parser.add_argument("--seed", type=int, default=None,
                        help="Random seed for GENIE3")
    parser.add_argument("--on-failure", choices=["skip", "abort"], default="skip",
                        help="What to do when a scorer fails (default: skip)")
    parser.add_argument("--timeout", type=float, default=None,
                        help="Seconds each scorer may run before it counts as failed")
    parser.add_argument("--workers", type=int, default=4,
                        help="Parallel scorer threads (default: 4)")
    parser.add_argument("--sequential", action="store_true",
                        help="Run scorers one after another")

    # Topology filter
    parser.add_argument("--n-steps", type=int, default=10,
                        help="Number of candidate network sizes (default: 10)")
    parser.add_argument("--policy", choices=["best", "first"], default="best",
                        help="Candidate selection: highest KS p-value or first passing --alpha (default: best)")
    parser.add_argument("--alpha", type=float, default=0.05,
                        help="KS p-value cutoff for --policy first (default: 0.05)")

    parser.add_argument("--keep-scorer-output", action="store_true",
                        help="Also write each scorer's edge list")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Debug logging")

    parser.set_defaults(func=run_infer)


def run_infer(args: argparse.Namespace) -> int:
    """Execute the infer command."""
    from grnconsensus.cli._logging import configure_logging
    from grnconsensus.cli.config import build_pipeline_config, merge_config_with_args
    from grnconsensus.config import load_config
    from grnconsensus.core.errors import GRNInferenceError
    from grnconsensus.io import load_expression, load_regulators, write_edge_list, write_manifest
    from grnconsensus.pipeline import infer_network

    configure_logging(args.verbose)
    logger = logging.getLogger(__name__)

    config = {}
    if args.config:
        print(f"Loading configuration from: {args.config}")
        try:
            config = load_config(args.config)
            args = merge_config_with_args(config, args, getattr(args, 'cli_args', None))
        except (FileNotFoundError, ValueError) as e:
            print(f"ERROR: Config file error: {e}")
            return 1

    if not args.input:
        print("ERROR: --input is required (via CLI or config file)")
        return 1
    if not args.regulators:
        print("ERROR: --regulators is required (via CLI or config file)")
        return 1

    try:
        pipeline_config = build_pipeline_config(args, config)
    except ValueError as e:
        print(f"ERROR: Invalid configuration: {e}")
        return 1

    print(f"\n{'='*70}")
    print("  Consensus Gene Regulatory Network Inference")
    print(f"{'='*70}\n")

    logger.info(f"Loading: {args.input}")
    try:
        matrix = load_expression(args.input)
        regulators = load_regulators(args.regulators)
    except (FileNotFoundError, ValueError) as e:
        print(f"ERROR: {e}")
        return 1

    try:
        result = infer_network(matrix, regulators, pipeline_config)
    except (GRNInferenceError, ValueError) as e:
        print(f"ERROR: Inference failed: {e}")
        return 1

    output = Path(args.output)
    output.mkdir(parents=True, exist_ok=True)
    write_edge_list(result.consensus, output / "consensus.csv")
    write_edge_list(result.network, output / "network.csv")
    write_edge_list(result.history, output / "fit_history.csv")
    if args.keep_scorer_output:
        for name, edges in sorted(result.edge_lists.items()):
            write_edge_list(edges, output / f"edges_{name}.csv")
    write_manifest(result.manifest.to_dict(), output / "manifest.json")

    manifest = result.manifest
    print(f"\n{'='*70}")
    print("  Summary")
    print(f"{'='*70}")
    print(f"  Scorers succeeded: {', '.join(manifest.succeeded)}")
    for name, message in manifest.failed.items():
        print(f"  Scorer failed:     {name} ({message})")
    print(f"  Consensus edges:   {manifest.n_consensus_edges:,}")
    if manifest.filtered:
        print(f"  Selected edges:    {manifest.n_edges:,} "
              f"(exponent={manifest.exponent:.3f}, KS p={manifest.ks_pvalue:.4g})")
    else:
        print(f"  Selected edges:    {manifest.n_edges:,} (unfiltered: {manifest.fallback_reason})")
    print(f"  Output:            {output}")

    return 0

"""
grnconsensus sft - Scale-free topology check of a network.
"""

import argparse
from pathlib import Path


def register_parser(subparsers: argparse._SubParsersAction) -> None:
    """Register the sft subcommand."""
    parser = subparsers.add_parser(
        "sft",
        help="Test a network for scale-free topology",
        description=(
            "Fit a discrete power law to the degree distribution of an edge "
            "list (or a correlation matrix with --matrix) and report the "
            "Kolmogorov-Smirnov goodness of fit."
        )
    )
    parser.add_argument("--input", "-i", type=Path, required=True,
                        help="Edge list (first two columns are the endpoints)")
    parser.add_argument("--net-type", choices=["grn", "gcn", "ppi"], default="grn",
                        help="grn: regulator out-degree; gcn/ppi: undirected degree (default: grn)")
    parser.add_argument("--matrix", action="store_true",
                        help="Input is a square correlation matrix instead of an edge list")
    parser.add_argument("--min-weight", type=float, default=None,
                        help="With --matrix, keep edges with |weight| >= this value")
    parser.add_argument("--regulators", "-r", type=Path, default=None,
                        help="For grn, only test these regulators")
    parser.add_argument("--alpha", type=float, default=0.05,
                        help="Significance level (default: 0.05)")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="Debug logging")
    parser.set_defaults(func=run_sft)


def run_sft(args: argparse.Namespace) -> int:
    """Execute the sft command."""
    import pandas as pd

    from grnconsensus.cli._logging import configure_logging
    from grnconsensus.core.errors import DegenerateDistributionError
    from grnconsensus.io import delimiter_for, load_regulators
    from grnconsensus.topology import check_scale_free, cormat_to_edgelist

    configure_logging(args.verbose)

    try:
        if args.matrix:
            matrix = pd.read_csv(args.input, sep=delimiter_for(args.input), index_col=0)
            edges = cormat_to_edgelist(matrix)
            if args.min_weight is not None:
                edges = edges[edges["Weight"].abs() >= args.min_weight]
        else:
            edges = pd.read_csv(args.input, sep=delimiter_for(args.input))
        regulators = load_regulators(args.regulators) if args.regulators else None
    except (FileNotFoundError, ValueError) as e:
        print(f"ERROR: {e}")
        return 1

    try:
        fit = check_scale_free(edges, net_type=args.net_type, regulators=regulators, alpha=args.alpha)
    except (DegenerateDistributionError, ValueError) as e:
        print(f"ERROR: Cannot fit a power law: {e}")
        return 1

    verdict = "fits" if fit.is_scale_free(args.alpha) else "does not fit"
    print(f"Network {verdict} the scale-free topology (alpha={args.alpha})")
    for key, value in fit.to_dict().items():
        print(f"  {key:<15}{value}")
    return 0

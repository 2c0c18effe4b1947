"""
grnconsensus hubs - Hub regulators of a network.
"""

import argparse
from pathlib import Path


def register_parser(subparsers: argparse._SubParsersAction) -> None:
    """Register the hubs subcommand."""
    parser = subparsers.add_parser(
        "hubs",
        help="Report hub regulators",
        description="Rank regulators by out-degree and report the top ones."
    )
    parser.add_argument("--input", "-i", type=Path, required=True,
                        help="Edge list (Regulator, Target, ...)")
    group = parser.add_mutually_exclusive_group()
    group.add_argument("--top-percentile", type=float, default=0.1,
                       help="Fraction of regulators to report (default: 0.1)")
    group.add_argument("--top-n", type=int, default=None,
                       help="Number of hubs to report")
    parser.add_argument("--output", "-o", type=Path, default=None,
                        help="Write hubs to this CSV instead of printing")
    parser.set_defaults(func=run_hubs)


def run_hubs(args: argparse.Namespace) -> int:
    """Execute the hubs command."""
    import pandas as pd

    from grnconsensus.cli._logging import configure_logging
    from grnconsensus.io import delimiter_for, write_edge_list
    from grnconsensus.topology import get_hubs

    configure_logging()

    try:
        edges = pd.read_csv(args.input, sep=delimiter_for(args.input))
        hubs = get_hubs(edges, top_percentile=args.top_percentile, top_n=args.top_n)
    except (FileNotFoundError, ValueError) as e:
        print(f"ERROR: {e}")
        return 1

    if args.output:
        write_edge_list(hubs, args.output)
    else:
        print(hubs.to_string(index=False))
    return 0

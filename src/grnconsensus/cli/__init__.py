"""
grnconsensus CLI - Command-line interface for consensus GRN inference.

Commands:
    grnconsensus infer  - Infer a consensus regulatory network from expression data
    grnconsensus sft    - Test an edge list for scale-free topology
    grnconsensus hubs   - Report hub regulators of an edge list
"""

import argparse
import sys
from typing import Optional, List


def main(args: Optional[List[str]] = None) -> int:
    """Main CLI dispatcher for grnconsensus."""
    parser = argparse.ArgumentParser(
        prog="grnconsensus",
        description="Ensemble gene regulatory network inference with scale-free filtering",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  infer   Run GENIE3/CLR/ARACNE, aggregate ranks, keep the most scale-free network
  sft     Fit a power law to the degree distribution of an edge list
  hubs    List the regulators with the highest out-degree

Examples:
  grnconsensus infer --input expr.csv --regulators tfs.txt --output results/grn
  grnconsensus infer --input expr.csv --regulators tfs.txt --config grn.yaml --n-steps 20
  grnconsensus sft --input results/grn/network.csv --net-type grn
  grnconsensus hubs --input results/grn/network.csv --top-n 10
        """
    )

    parser.add_argument(
        "--version", "-V",
        action="version",
        version="%(prog)s 0.1.0"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    from grnconsensus.cli import infer, sft, hubs
    infer.register_parser(subparsers)
    sft.register_parser(subparsers)
    hubs.register_parser(subparsers)

    raw_args = list(args) if args is not None else sys.argv[1:]
    parsed_args = parser.parse_args(raw_args)

    if parsed_args.command is None:
        parser.print_help()
        return 0

    # Subcommands use the raw arguments to tell explicit options from defaults
    parsed_args.cli_args = raw_args[1:]
    return parsed_args.func(parsed_args)


if __name__ == "__main__":
    sys.exit(main())

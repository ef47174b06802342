"""
Command line interface: solve one CLSP instance file.

Examples:
    clsp-solve -f data/G30.dat
    clsp-solve -f data/G30.dat -t 60 -i 4 --excel plan.xlsx
    clsp-solve -f data/G30.dat --solver cbc --mip-gap 0.01
"""

from typing import List, Optional
import argparse
import logging
import sys

from pydantic import ValidationError

from .analysis.plan_report import format_capacity, format_plan, format_plan_summary
from .constants import DEFAULT_HOP_HORIZON, DEFAULT_RESULTS_PATH, DEFAULT_TIME_LIMIT_SECONDS
from .exceptions import LotSizingError
from .models.run_config import RunConfig, TrigeiroFormatPolicy
from .pipeline import LotSizingPipeline

logger = logging.getLogger(__name__)

BANNER_RULE = "-" * 37


def build_parser() -> argparse.ArgumentParser:
    """Argument parser for clsp-solve."""
    parser = argparse.ArgumentParser(
        prog="clsp-solve",
        description="Solve a capacitated lot-sizing instance and verify the plan",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    clsp-solve -f data/G30.dat
    clsp-solve -f data/G30.dat -t 60 -i 4 --excel plan.xlsx
        """,
    )

    parser.add_argument(
        "-f", "--file",
        required=True,
        help="Instance file in Trigeiro format",
    )

    parser.add_argument(
        "-t", "--time-limit",
        type=float,
        default=DEFAULT_TIME_LIMIT_SECONDS,
        help=f"Solver time limit in seconds (default: {DEFAULT_TIME_LIMIT_SECONDS})",
    )

    parser.add_argument(
        "-i", "--hop",
        type=int,
        default=DEFAULT_HOP_HORIZON,
        help=f"Hop horizon: periods of future demand inventory may cover (default: {DEFAULT_HOP_HORIZON})",
    )

    parser.add_argument(
        "--solver",
        default=None,
        help="Solver name, e.g. appsi_highs, highs, cbc (default: best available)",
    )

    parser.add_argument(
        "--mip-gap",
        type=float,
        default=None,
        help="Relative MIP gap (default: solver default)",
    )

    parser.add_argument(
        "--results",
        default=DEFAULT_RESULTS_PATH,
        help=f"Tab-separated file the run record is appended to (default: {DEFAULT_RESULTS_PATH})",
    )

    parser.add_argument(
        "--no-results",
        action="store_true",
        help="Do not append a run record",
    )

    parser.add_argument(
        "--excel",
        default=None,
        help="Write the plan to this Excel workbook",
    )

    parser.add_argument(
        "--use-file-production-time",
        action="store_true",
        help="Keep the production time column of the file instead of normalizing it to 1",
    )

    parser.add_argument(
        "--no-initial-inventory",
        action="store_true",
        help="Forbid penalized initial inventory (demand must be met from production)",
    )

    parser.add_argument(
        "--tee",
        action="store_true",
        help="Stream solver output",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Debug logging",
    )

    return parser


def print_options(args: argparse.Namespace, item_count: int, period_count: int) -> None:
    """Print the run banner."""
    print(BANNER_RULE)
    print("- OPTIONS : ")
    print(BANNER_RULE)
    print(f"  DATA FILE   =  {args.file}")
    print(f"  TIME LIMIT  =  {args.time_limit:g}")
    print(f"  HOP         =  {args.hop}")
    print(f"  N. ITEMS    =  {item_count}")
    print(f"  N. PERIODS  =  {period_count}")
    print(BANNER_RULE)
    print()


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point. Returns the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = RunConfig(
            time_limit_seconds=args.time_limit,
            hop_horizon=args.hop,
            solver_name=args.solver,
            mip_gap=args.mip_gap,
            tee=args.tee,
            allow_initial_inventory=not args.no_initial_inventory,
            results_path=None if args.no_results else args.results,
            excel_path=args.excel,
        )
    except ValidationError as e:
        parser.error(f"invalid options: {e}")

    policy = TrigeiroFormatPolicy(override_unit_production_time=not args.use_file_production_time)
    pipeline = LotSizingPipeline(config)

    try:
        instance = pipeline.load(args.file, policy)
        print_options(args, instance.item_count, instance.period_count)

        run = pipeline.run(instance, strict=False)

        print(format_plan(instance, run.solution))
        print()
        print(format_capacity(run.report.capacity_rows))
        print()
        print(format_plan_summary(
            instance,
            run.report.cost_breakdown,
            run.result.objective_value,
            run.elapsed_seconds,
        ))

        pipeline.write_outputs(run)
        run.report.raise_for_mismatch()

    except LotSizingError as e:
        logger.debug(e.format_message())
        print(f"\n❌ {e.stage} failed: {e.message}", file=sys.stderr)
        for key, value in e.context.items():
            print(f"   {key}: {value}", file=sys.stderr)
        return e.exit_code

    except OSError as e:
        print(f"\n❌ Writing outputs failed: {e}", file=sys.stderr)
        return 1

    print(f"\n✅ Plan verified: z* = {run.result.objective_value:,.4f} in {run.elapsed_seconds:.2f} seconds")
    return 0


if __name__ == "__main__":
    sys.exit(main())

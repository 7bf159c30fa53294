"""
Hive Economy Simulator - CLI Entry Point
==========================================
Usage:
    python cli.py simulate <file> [--duration 300] [--export-json out.json]
    python cli.py compare <file1> <file2> [...]
    python cli.py timing --producer 20 0 15 [--allocated 3] [--speed 6]
    python cli.py web [--port 8080]
"""

import argparse
import logging
import sys

from hive_sim.arc import arc_length, compute_timing
from hive_sim.compare import compare_and_print
from hive_sim.constants import (
    ARC_SEGMENTS, DEFAULT_ARC_ALTITUDE, DEFAULT_CARRIER_SPEED,
    DEFAULT_SNAPSHOT_INTERVAL, DEFAULT_TICK_SECONDS,
)
from hive_sim.engine import SimulationEngine
from hive_sim.errors import SimError
from hive_sim.format import print_full_report, print_route_timing
from hive_sim.io import load_scenario
from hive_sim.models import Vec3


def cmd_simulate(args):
    sc = load_scenario(args.file)
    engine = SimulationEngine(sc, strict=not args.lenient,
                              snapshot_interval=args.snapshot_interval)
    result = engine.run(args.duration, args.dt)
    print_full_report(result)

    if args.export_json:
        from hive_sim.io import export_result_json
        export_result_json(result, args.export_json)
        print(f"\nExported JSON to {args.export_json}")


def cmd_compare(args):
    results = []
    for f in args.files:
        try:
            sc = load_scenario(f)
            results.append(SimulationEngine(sc).run(args.duration, args.dt))
        except (OSError, SimError) as e:
            print(f"Error loading {f}: {e}")
    if results:
        compare_and_print(results)


def cmd_timing(args):
    length = arc_length(Vec3.from_seq(args.producer), Vec3.from_seq(args.hub),
                        args.altitude, args.segments)
    timing = compute_timing(length, args.speed, args.allocated, args.speed_modifier)
    print_route_timing(timing)


def _configure_logging(args):
    if args.verbose:
        level = logging.DEBUG
    elif args.quiet:
        level = logging.ERROR
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format="[%(levelname)s] %(name)s: %(message)s")


def main():
    parser = argparse.ArgumentParser(
        description="Hive Economy Simulator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("--verbose", "-v", action="store_true",
                           help="Log every spawn, start and skip")
    verbosity.add_argument("--quiet", "-q", action="store_true",
                           help="Only log errors")
    sub = parser.add_subparsers(dest="command", help="Command to run")

    # simulate
    p_sim = sub.add_parser("simulate", aliases=["sim"],
                           help="Simulate a scenario from YAML")
    p_sim.add_argument("file", help="Path to scenario YAML file")
    p_sim.add_argument("--duration", "-d", type=float, default=300.0,
                       help="Simulation duration in seconds (default: 300)")
    p_sim.add_argument("--dt", type=float, default=DEFAULT_TICK_SECONDS,
                       help=f"Tick length in seconds (default: {DEFAULT_TICK_SECONDS})")
    p_sim.add_argument("--snapshot-interval", type=float, default=DEFAULT_SNAPSHOT_INTERVAL,
                       help=f"Seconds between snapshots (default: {DEFAULT_SNAPSHOT_INTERVAL:.0f})")
    p_sim.add_argument("--lenient", action="store_true",
                       help="Clamp and log invariant breaches instead of aborting")
    p_sim.add_argument("--export-json", default=None,
                       help="Export the result as JSON")

    # compare
    p_cmp = sub.add_parser("compare", aliases=["cmp"],
                           help="Compare multiple scenarios")
    p_cmp.add_argument("files", nargs="+", help="Scenario YAML files")
    p_cmp.add_argument("--duration", "-d", type=float, default=300.0,
                       help="Simulation duration in seconds (default: 300)")
    p_cmp.add_argument("--dt", type=float, default=DEFAULT_TICK_SECONDS,
                       help=f"Tick length in seconds (default: {DEFAULT_TICK_SECONDS})")

    # timing
    p_tim = sub.add_parser("timing", help="Route timing calculator")
    p_tim.add_argument("--producer", type=float, nargs=3, required=True,
                       metavar=("X", "Y", "Z"), help="Producer position")
    p_tim.add_argument("--hub", type=float, nargs=3, default=[0.0, 0.0, 0.0],
                       metavar=("X", "Y", "Z"), help="Hub position (default: origin)")
    p_tim.add_argument("--altitude", type=float, default=DEFAULT_ARC_ALTITUDE,
                       help=f"Arc altitude (default: {DEFAULT_ARC_ALTITUDE})")
    p_tim.add_argument("--speed", type=float, default=DEFAULT_CARRIER_SPEED,
                       help=f"Carrier base speed (default: {DEFAULT_CARRIER_SPEED})")
    p_tim.add_argument("--speed-modifier", type=float, default=1.0,
                       help="Seasonal speed modifier (default: 1.0)")
    p_tim.add_argument("--allocated", "-n", type=int, default=1,
                       help="Carriers allocated to the route (default: 1)")
    p_tim.add_argument("--segments", type=int, default=ARC_SEGMENTS,
                       help=f"Arc length samples (default: {ARC_SEGMENTS})")

    # web
    p_web = sub.add_parser("web", aliases=["serve"],
                           help="Start the web API")
    p_web.add_argument("--port", type=int, default=8080,
                       help="Port to serve on (default: 8080)")

    args = parser.parse_args()
    _configure_logging(args)

    try:
        if args.command in ("simulate", "sim"):
            cmd_simulate(args)
        elif args.command in ("compare", "cmp"):
            cmd_compare(args)
        elif args.command == "timing":
            cmd_timing(args)
        elif args.command in ("web", "serve"):
            from hive_sim.web import start_server
            start_server(port=args.port)
        else:
            parser.print_help()
    except (OSError, SimError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()

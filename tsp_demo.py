import argparse
import logging
import sys
from typing import List, Optional

import settings
from held_karp import CapacityExceededError, Result, solve
from locations import Location, read_locations


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(
        description="Print the shortest round trip through a list of locations (Held-Karp)."
    )
    ap.add_argument("input", nargs="?", default="-",
                    help="CSV-like file with a header line and id,name,...,lat,lon records (default: stdin)")
    ap.add_argument("--start", help="Index of the start location", type=int, default=0)
    ap.add_argument("--max-nodes", help="Refuse inputs with more locations than this",
                    type=int, default=None)
    ap.add_argument("--log-level", help="Logging level", type=str.upper, default=settings.TSP_LOG_LEVEL,
                    choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])
    return ap.parse_args(argv)


def load(path: str) -> List[Location]:
    if path == "-":
        return read_locations(sys.stdin)
    with open(path, encoding="utf-8") as f:
        return read_locations(f)


def print_tour(start: Location, result: Result) -> None:
    last_location = start
    print(" " * 17 + last_location.name)
    for next_location in result:
        print(" -> %7.2fkm -> %s" % (last_location.distance_to(next_location), next_location.name))
        last_location = next_location
    print("total: %.2fkm" % result.total_distance)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=args.log_level, format="%(levelname)s %(name)s: %(message)s")

    try:
        locations = load(args.input)
        result = solve(locations, args.start, max_nodes=args.max_nodes)
    except (OSError, ValueError, CapacityExceededError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    if not result.is_feasible:
        print("error: no feasible tour through these locations", file=sys.stderr)
        return 1

    print_tour(locations[args.start], result)
    return 0


if __name__ == "__main__":
    sys.exit(main())

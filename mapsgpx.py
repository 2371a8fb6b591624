#!/usr/bin/env python3
"""
gmaps-gpx — Convert Google Maps route URLs to GPX
==================================================

Usage:
    python mapsgpx.py "https://www.google.com/maps/dir/Sydney/Melbourne/..."
    python mapsgpx.py "https://maps.app.goo.gl/..." -n "Weekend Trip"
    python mapsgpx.py "https://maps.app.goo.gl/..." -o custom-output.gpx
"""

from __future__ import annotations
import argparse
import logging
import sys
from typing import List, Optional

from extractor import ExtractionError, extract
from gpx import SOFT_NAME, SOFT_VERSION, write_gpx
from models import RouteData
from naming import suggested_filename
from resolver import DEFAULT_TIMEOUT, ResolutionError, expand_url, is_short_url


def format_distance(meters: float) -> str:
    """Format distance in human-readable form."""
    if meters >= 1000:
        return f"{meters / 1000:.2f} km"
    return f"{meters:.0f} m"


def show_route(route: RouteData):
    print(f"   Route: {route.route_name}")
    for i, pt in enumerate(route, start=1):
        print(f"   [{i}] {pt.lat:.6f}, {pt.lng:.6f}  {pt.name or ''}".rstrip())
    if len(route) > 1:
        print(f"   Straight-line distance: {format_distance(route.total_distance())}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mapsgpx",
        description=f"{SOFT_NAME} v{SOFT_VERSION} — Convert Google Maps route URLs to GPX",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s "https://www.google.com/maps/dir/Sydney/Melbourne"
  %(prog)s "https://maps.app.goo.gl/..." -n "Weekend Trip"
  %(prog)s "https://maps.app.goo.gl/..." -o custom-output.gpx
        """)
    parser.add_argument("url", nargs="?", help="Google Maps route URL (full or shortened)")
    parser.add_argument("--output", "-o", help="Output file path (default: route-<timestamp>.gpx)")
    parser.add_argument("--name", "-n",
                        help="Route name in the GPX file; also names the output <name-slug>-<timestamp>.gpx")
    parser.add_argument("--timeout", "-t", type=float, default=DEFAULT_TIMEOUT,
                        help=f"Short link resolution timeout in seconds (default: {DEFAULT_TIMEOUT:g})")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.url:
        print("Error: No Google Maps URL provided.", file=sys.stderr)
        parser.print_usage(sys.stderr)
        return 1

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    output_path = args.output or suggested_filename(args.name)

    try:
        print("Fetching route data...")
        url = args.url
        if is_short_url(url):
            print("Expanding shortened URL...")
            url = expand_url(url, args.timeout)
            print(f"Expanded URL: {url}")

        route = extract(url)
        print(f"Found {len(route)} waypoint(s)")
        if args.verbose:
            show_route(route)

        write_gpx(output_path, route, args.name)
    except (ExtractionError, ResolutionError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(f"GPX file saved to: {output_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())

"""
gmaps-gpx — Google Maps URL parsing

A route URL can carry its coordinates in three independent ways:

  1. /maps/dir/<a>/<b>/...       place names or "lat,lng" path segments
  2. data=...!1d<lng>!2d<lat>...  the encoded data blob (query or path)
  3. @<lat>,<lng>,<zoom>z        the map viewport

Each strategy is a pure function. ``extract()`` combines them in priority
order: data blob first, then literal path pairs, then the viewport.
"""

from __future__ import annotations
import logging
import re
import urllib.parse
from typing import List, Optional, Tuple

from models import Coordinate, RouteData

logger = logging.getLogger(__name__)

DEFAULT_ROUTE_NAME = "Google Maps Route"

_DIR_PATH_RE = re.compile(r"/maps/dir/([^@?#]+)")
_PAIR_RE = re.compile(r"^(-?\d+\.?\d*),(-?\d+\.?\d*)$", re.ASCII)
_DATA_PATH_RE = re.compile(r"/data=([^?]+)")
_DATA_COORD_RE = re.compile(r"!1d(-?\d+\.?\d*)!2d(-?\d+\.?\d*)", re.ASCII)
_VIEWPORT_RE = re.compile(r"@(-?\d+\.?\d*),(-?\d+\.?\d*)", re.ASCII)


class ExtractionError(ValueError):
    """No usable coordinate could be recovered from a URL."""


# ─────────────────────────────────────────────────────────────
# Strategies
# ─────────────────────────────────────────────────────────────

def parse_dir_path(url: str) -> Tuple[List[Coordinate], List[str]]:
    """
    Split the /maps/dir/ path into literal coordinate pairs and place names.
    Place names are returned separately; they only become waypoint labels.
    """
    coords: List[Coordinate] = []
    names: List[str] = []
    m = _DIR_PATH_RE.search(url)
    if not m:
        return coords, names

    for segment in m.group(1).split("/"):
        if not segment.strip() or segment.startswith("data="):
            continue
        pair = _PAIR_RE.match(segment)
        if pair:
            coords.append(Coordinate(float(pair.group(1)), float(pair.group(2))))
        else:
            names.append(urllib.parse.unquote_plus(segment))
    return coords, names


def find_data_param(url: str) -> Optional[str]:
    """Return the decoded data blob from the query string or the path."""
    query = urllib.parse.urlsplit(url).query
    values = urllib.parse.parse_qs(query).get("data")
    if values:
        return values[0]
    m = _DATA_PATH_RE.search(url)
    if m:
        return urllib.parse.unquote(m.group(1))
    return None


def parse_data_param(url: str) -> List[Coordinate]:
    """All !1d<lng>!2d<lat> pairs of the data blob, in stream order."""
    data = find_data_param(url)
    if not data:
        return []
    return [Coordinate(lat=float(lat_s), lng=float(lng_s))
            for lng_s, lat_s in _DATA_COORD_RE.findall(data)]


def parse_viewport(url: str) -> List[Coordinate]:
    """The first @lat,lng marker as a single unnamed waypoint."""
    m = _VIEWPORT_RE.search(url)
    if not m:
        return []
    return [Coordinate(float(m.group(1)), float(m.group(2)))]


# ─────────────────────────────────────────────────────────────
# Combination
# ─────────────────────────────────────────────────────────────

def label_waypoints(coords: List[Coordinate], names: List[str]) -> List[Coordinate]:
    """Attach path names positionally; unnamed slots get Start / Via i / End."""
    last = len(coords) - 1
    labelled = []
    for i, pt in enumerate(coords):
        if i < len(names):
            name = names[i]
        elif i == 0:
            name = "Start"
        elif i == last:
            name = "End"
        else:
            name = f"Via {i}"
        labelled.append(pt.with_name(name))
    return labelled


def route_name_for(waypoints: List[Coordinate], names: List[str]) -> str:
    if len(names) >= 2:
        return f"{names[0]} to {names[-1]}"
    if len(waypoints) >= 2:
        first = waypoints[0].name or "Start"
        last = waypoints[-1].name or "End"
        return f"{first} to {last}"
    return DEFAULT_ROUTE_NAME


def extract(url: str) -> RouteData:
    """Parse a resolved Google Maps URL into ordered, named waypoints."""
    path_coords, names = parse_dir_path(url)
    data_coords = parse_data_param(url)
    logger.debug("dir path: %d pair(s), %d name(s); data blob: %d pair(s)",
                 len(path_coords), len(names), len(data_coords))

    if data_coords:
        waypoints = label_waypoints(data_coords, names)
    elif path_coords:
        waypoints = path_coords
    else:
        waypoints = parse_viewport(url)
        logger.debug("falling back to viewport marker: %d point(s)", len(waypoints))

    # (0, 0) is treated as a missing coordinate, not a real point
    waypoints = [pt for pt in waypoints if pt]
    if not waypoints:
        raise ExtractionError(
            "no coordinates found in the Google Maps URL; the URL format may "
            "not be supported or the route data is not accessible")

    return RouteData(waypoints, route_name_for(waypoints, names))

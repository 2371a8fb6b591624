"""
gmaps-gpx — GPX 1.1 track writer

Renders a RouteData as a single <trk> with a single <trkseg>. The document is
assembled as text; all five XML special characters are escaped in names.
"""

from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from models import RouteData
from extractor import extract
from naming import suggested_filename
import resolver

SOFT_NAME = "gmaps-gpx"
SOFT_VERSION = "1.0"

GPX_NS = "http://www.topografix.com/GPX/1/1"
XSI_NS = "http://www.w3.org/2001/XMLSchema-instance"

_GPX_HEADER = f"""<?xml version="1.0" encoding="UTF-8"?>
<gpx version="1.1" creator="{SOFT_NAME}"
  xmlns="{GPX_NS}"
  xmlns:xsi="{XSI_NS}"
  xsi:schemaLocation="{GPX_NS} {GPX_NS}/gpx.xsd">
"""

# Order matters: "&" first so later entities are not escaped twice
_XML_ESCAPES = (
    ("&", "&amp;"),
    ("<", "&lt;"),
    (">", "&gt;"),
    ('"', "&quot;"),
    ("'", "&apos;"),
)


def escape_xml(s: str) -> str:
    for char, entity in _XML_ESCAPES:
        s = s.replace(char, entity)
    return s


def format_degrees(value: float) -> str:
    """Coordinate in plain decimal notation, never exponent form."""
    text = repr(float(value))
    if "e" in text or "E" in text:
        text = format(Decimal(text), "f")
    return text


def serialize(route: RouteData, name_override: Optional[str] = None) -> str:
    """GPX document for ``route``; a non-empty ``name_override`` replaces the track name."""
    lines = [
        _GPX_HEADER,
        "  <trk>\n",
        f"    <name>{escape_xml(name_override or route.route_name)}</name>\n",
        "    <trkseg>\n",
    ]
    for i, pt in enumerate(route, start=1):
        name = pt.name or f"Waypoint {i}"
        lines.append(f'      <trkpt lat="{format_degrees(pt.lat)}" lon="{format_degrees(pt.lng)}">\n'
                     f"        <name>{escape_xml(name)}</name>\n"
                     f"      </trkpt>\n")
    lines.append("    </trkseg>\n  </trk>\n</gpx>\n")
    return "".join(lines)


def write_gpx(filepath: str, route: RouteData, name: Optional[str] = None):
    """Write GPX file."""
    content = serialize(route, name)
    with open(filepath, "w", encoding="utf-8") as f:
        f.write(content)


@dataclass(frozen=True)
class ConversionResult:
    gpx: str
    route: RouteData
    suggested_filename: str


def convert_url(url: str, route_name: Optional[str] = None,
                timeout: float = resolver.DEFAULT_TIMEOUT) -> ConversionResult:
    """Resolve, parse and serialize a Google Maps link in one call."""
    full_url = resolver.resolve(url, timeout)
    route = extract(full_url)
    return ConversionResult(
        gpx=serialize(route, route_name),
        route=route,
        suggested_filename=suggested_filename(route_name or route.route_name),
    )

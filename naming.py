"""
gmaps-gpx — Output file naming helpers
"""

from __future__ import annotations
import re
from datetime import datetime
from typing import Optional

_UNSAFE_RE = re.compile(r"[^\w\s-]", re.ASCII)
_SEPARATOR_RE = re.compile(r"[\s_-]+")


def slugify(text: str) -> str:
    """Lowercase, hyphen-separated, filesystem-safe form of ``text``."""
    text = _UNSAFE_RE.sub("", text.lower().strip())
    return _SEPARATOR_RE.sub("-", text).strip("-")


def timestamp(now: Optional[datetime] = None) -> str:
    """Local time as YYYYMMDD-HHMMSS."""
    return (now or datetime.now()).strftime("%Y%m%d-%H%M%S")


def suggested_filename(name: Optional[str] = None, now: Optional[datetime] = None) -> str:
    ts = timestamp(now)
    if name:
        return f"{slugify(name)}-{ts}.gpx"
    return f"route-{ts}.gpx"

"""
NASA FIRMS CSV parsing.

Turns the text returned by the FIRMS area API into `Hotspot` records.
Bad rows (unparseable or out-of-range coordinates, broken date/time,
wrong column count) are skipped and counted; they never abort the batch.
"""

import csv
import logging
import math
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from io import StringIO
from typing import Dict, List, Optional, Sequence, Tuple

from .classifier import normalize_confidence

log = logging.getLogger(__name__)

# canonical field -> accepted header names, in order of preference
HEADER_ALIASES: Dict[str, Tuple[str, ...]] = {
    "latitude": ("latitude", "lat"),
    "longitude": ("longitude", "lon", "lng"),
    "acq_date": ("acq_date",),
    "acq_time": ("acq_time",),
    "satellite": ("satellite",),
    "instrument": ("instrument",),
    "confidence": ("confidence",),
    "version": ("version",),
    "frp": ("frp",),
    "brightness": ("brightness", "bright_ti4"),
    "bright_t31": ("bright_t31", "bright_ti5"),
    "scan": ("scan",),
    "track": ("track",),
    "daynight": ("daynight",),
}

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_TIME_RE = re.compile(r"^\d{1,4}$")


@dataclass(frozen=True)
class Hotspot:
    """One satellite thermal-anomaly detection, validated."""

    latitude: float
    longitude: float
    acq_date: str  # YYYY-MM-DD
    acq_time: str  # HHMM, zero padded, UTC
    satellite: str = "VIIRS"
    confidence: str = "nominal"
    frp: float = 0.0
    brightness: float = 0.0
    bright_t31: float = 0.0
    scan: float = 0.0
    track: float = 0.0
    daynight: str = "D"
    instrument: str = ""
    version: str = ""

    @property
    def detected_at(self) -> datetime:
        """Acquisition date + time as an aware UTC datetime."""
        dt = datetime.strptime(self.acq_date + self.acq_time, "%Y-%m-%d%H%M")
        return dt.replace(tzinfo=timezone.utc)


@dataclass
class ParseResult:
    hotspots: List[Hotspot] = field(default_factory=list)
    rows_total: int = 0
    rows_malformed: int = 0
    rows_out_of_bounds: int = 0

    @property
    def rows_accepted(self) -> int:
        return len(self.hotspots)

    def __len__(self) -> int:
        return len(self.hotspots)

    def __iter__(self):
        return iter(self.hotspots)


class _RowError(ValueError):
    pass


def normalize_header(name: str) -> str:
    # some exports start with a UTF-8 byte-order mark
    return name.strip().lstrip("\ufeff").strip().lower()


def resolve_columns(header: Sequence[str]) -> Dict[str, int]:
    """Map canonical field names to column indexes using HEADER_ALIASES."""
    positions = {normalize_header(h): i for i, h in enumerate(header)}
    columns = {}
    for canonical, aliases in HEADER_ALIASES.items():
        for alias in aliases:
            if alias in positions:
                columns[canonical] = positions[alias]
                break
    return columns


def has_coordinate_columns(header_line: str) -> bool:
    """True if a CSV header line carries latitude and longitude under any known alias."""
    header = next(csv.reader([header_line]), [])
    columns = resolve_columns(header)
    return "latitude" in columns and "longitude" in columns


def _finite_float(value: Optional[str]) -> Optional[float]:
    if value is None:
        return None
    try:
        f = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(f):
        return None
    return f


def _optional_float(value: Optional[str]) -> float:
    f = _finite_float(value)
    return 0.0 if f is None else f


def _parse_acq_time(value: Optional[str]) -> str:
    value = (value or "").strip()
    if not _TIME_RE.match(value):
        raise _RowError(f"bad acq_time {value!r}")
    padded = value.zfill(4)
    if int(padded[:2]) > 23 or int(padded[2:]) > 59:
        raise _RowError(f"bad acq_time {value!r}")
    return padded


def _parse_acq_date(value: Optional[str]) -> str:
    value = (value or "").strip()
    if not _DATE_RE.match(value):
        raise _RowError(f"bad acq_date {value!r}")
    try:
        datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        raise _RowError(f"bad acq_date {value!r}")
    return value


def in_bbox(lat: float, lon: float, bbox: Tuple[float, float, float, float]) -> bool:
    west, south, east, north = bbox
    return south <= lat <= north and west <= lon <= east


def parse_csv(
    csv_text: str,
    bbox: Optional[Tuple[float, float, float, float]] = None,
) -> ParseResult:
    """
    Parse FIRMS CSV text into Hotspots, in input order.

    bbox is (west, south, east, north); rows outside it are dropped.
    """
    result = ParseResult()
    if not csv_text or not csv_text.strip():
        return result

    reader = csv.reader(StringIO(csv_text.strip()))
    header = next(reader, None)
    if not header:
        return result

    columns = resolve_columns(header)
    if "latitude" not in columns or "longitude" not in columns:
        log.warning("[FIRMS] CSV header has no latitude/longitude columns: %s", header)
        return result

    def get(values: Sequence[str], name: str) -> Optional[str]:
        idx = columns.get(name)
        if idx is None:
            return None
        return values[idx].strip()

    for line_no, values in enumerate(reader, start=2):
        if not values or not any(v.strip() for v in values):
            continue
        result.rows_total += 1

        try:
            if len(values) != len(header):
                raise _RowError(f"expected {len(header)} fields, got {len(values)}")

            lat = _finite_float(get(values, "latitude"))
            lon = _finite_float(get(values, "longitude"))
            if lat is None or lon is None:
                raise _RowError("unparseable coordinates")
            if not (-90 <= lat <= 90 and -180 <= lon <= 180):
                raise _RowError(f"coordinates out of range ({lat}, {lon})")

            acq_date = _parse_acq_date(get(values, "acq_date"))
            acq_time = _parse_acq_time(get(values, "acq_time"))
        except _RowError as e:
            result.rows_malformed += 1
            log.debug("[FIRMS] Skipping CSV line %d: %s", line_no, e)
            continue

        if bbox is not None and not in_bbox(lat, lon, bbox):
            result.rows_out_of_bounds += 1
            continue

        daynight = (get(values, "daynight") or "").upper()

        result.hotspots.append(
            Hotspot(
                latitude=lat,
                longitude=lon,
                acq_date=acq_date,
                acq_time=acq_time,
                satellite=get(values, "satellite") or "VIIRS",
                confidence=normalize_confidence(get(values, "confidence")),
                frp=_optional_float(get(values, "frp")),
                brightness=_optional_float(get(values, "brightness")),
                bright_t31=_optional_float(get(values, "bright_t31")),
                scan=_optional_float(get(values, "scan")),
                track=_optional_float(get(values, "track")),
                daynight=daynight if daynight in ("D", "N") else "D",
                instrument=get(values, "instrument") or "",
                version=get(values, "version") or "",
            )
        )

    if result.rows_malformed:
        log.warning(
            "[FIRMS] Skipped %d malformed CSV rows out of %d",
            result.rows_malformed,
            result.rows_total,
        )
    log.info(
        "[FIRMS] Parsed %d hotspots from %d rows (%d outside bbox)",
        result.rows_accepted,
        result.rows_total,
        result.rows_out_of_bounds,
    )
    return result

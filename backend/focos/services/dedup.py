# focos/services/dedup.py

from dataclasses import dataclass, field
from typing import Iterable, List, NamedTuple, Optional, Set

import numpy as np

from .firms_parser import Hotspot
from .geo import haversine_km

DEFAULT_RADIUS_KM = 0.5


class ExistingReport(NamedTuple):
    latitude: float
    longitude: float
    source_id: Optional[str] = None


def source_id_for(hotspot: Hotspot) -> str:
    """
    Idempotency key for a FIRMS detection:
    acq_date + acq_time + coordinates rounded to 3 decimals (~111 m).
    """
    # + 0.0 folds -0.0 into 0.0 so both sides of the equator/meridian agree
    lat = round(hotspot.latitude, 3) + 0.0
    lon = round(hotspot.longitude, 3) + 0.0
    return f"{hotspot.acq_date}_{hotspot.acq_time}_{lat:.3f}_{lon:.3f}"


@dataclass
class DedupResult:
    new: List[Hotspot] = field(default_factory=list)
    exact_duplicates: int = 0
    proximity_duplicates: int = 0

    @property
    def skipped(self) -> int:
        return self.exact_duplicates + self.proximity_duplicates


class Deduplicator:
    """
    Filters a batch of hotspots down to the ones not already stored.

    Two checks per hotspot, in order:
      1. exact source_id match against the known ids
      2. nearest known report closer than `radius_km`

    With `within_batch` on, every hotspot kept is added to the known set,
    so repeated detections inside one response are also dropped.
    """

    def __init__(
        self,
        existing_ids: Iterable[str],
        existing_coords: Iterable[tuple],
        radius_km: float = DEFAULT_RADIUS_KM,
        within_batch: bool = True,
    ):
        self.radius_km = radius_km
        self.within_batch = within_batch
        self._ids: Set[str] = {sid for sid in existing_ids if sid}

        coords = [(float(lat), float(lon)) for lat, lon in existing_coords]
        self._lats = np.array([c[0] for c in coords], dtype=float)
        self._lons = np.array([c[1] for c in coords], dtype=float)

    @classmethod
    def from_reports(cls, reports: Iterable[ExistingReport], **kwargs) -> "Deduplicator":
        reports = list(reports)
        return cls(
            existing_ids=(r.source_id for r in reports),
            existing_coords=((r.latitude, r.longitude) for r in reports),
            **kwargs,
        )

    def nearest_km(self, hotspot: Hotspot) -> Optional[float]:
        if self._lats.size == 0:
            return None
        d = haversine_km(hotspot.latitude, hotspot.longitude, self._lats, self._lons)
        return float(np.min(d))

    def _remember(self, sid: str, hotspot: Hotspot) -> None:
        self._ids.add(sid)
        self._lats = np.append(self._lats, hotspot.latitude)
        self._lons = np.append(self._lons, hotspot.longitude)

    def filter(self, hotspots: Iterable[Hotspot]) -> DedupResult:
        result = DedupResult()

        for hotspot in hotspots:
            sid = source_id_for(hotspot)
            if sid in self._ids:
                result.exact_duplicates += 1
                continue

            nearest = self.nearest_km(hotspot)
            if nearest is not None and nearest < self.radius_km:
                result.proximity_duplicates += 1
                continue

            result.new.append(hotspot)
            if self.within_batch:
                self._remember(sid, hotspot)

        return result


def deduplicate(
    hotspots: Iterable[Hotspot],
    existing_ids: Iterable[str],
    existing_coords: Iterable[tuple],
    radius_km: float = DEFAULT_RADIUS_KM,
    within_batch: bool = True,
) -> List[Hotspot]:
    """Convenience wrapper returning only the hotspots that are new."""
    dedup = Deduplicator(existing_ids, existing_coords, radius_km, within_batch)
    return dedup.filter(hotspots).new

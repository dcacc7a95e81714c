import os
from functools import lru_cache
from dataclasses import dataclass, field
from typing import Optional, Tuple

from dotenv import load_dotenv

# Argentina (approximate): west, south, east, north
ARGENTINA_BBOX = (-73.5, -55.0, -53.5, -21.5)

FIRMS_BASE_URL = "https://firms.modaps.eosdis.nasa.gov/api/area/csv"
FIRMS_SOURCE = "VIIRS_SNPP_NRT"

# FIRMS area API accepts 1..10 day windows
MAX_FETCH_DAYS = 10


def _parse_bool(value: Optional[str], default: bool) -> bool:
    if value is None or not value.strip():
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _parse_bbox(value: Optional[str]) -> Tuple[float, float, float, float]:
    if not value:
        return ARGENTINA_BBOX
    parts = [float(p) for p in value.split(",")]
    if len(parts) != 4:
        raise ValueError(f"FIRMS_BBOX needs 4 values (west,south,east,north), got {value!r}")
    return tuple(parts)


@dataclass(frozen=True)
class Settings:
    """
    Everything the FIRMS ingestion job and the HTTP layer need.

    Built once (usually by `load_settings()`) and handed to the client,
    the job and the routers; nothing below this reads os.environ.
    """

    database_url: str = "sqlite:///./focos.db"
    firms_map_key: Optional[str] = None
    cron_secret: Optional[str] = None

    firms_base_url: str = FIRMS_BASE_URL
    firms_source: str = FIRMS_SOURCE
    bbox: Tuple[float, float, float, float] = ARGENTINA_BBOX

    # 2 days fetched, 3 days of buffer on the existing-reports query
    fetch_days: int = 2
    lookback_buffer_days: int = 3

    dedup_radius_km: float = 0.5
    dedup_within_batch: bool = True

    http_timeout: float = 20.0
    db_statement_timeout_ms: int = 15000
    firms_cache_ttl: int = 900

    cors_origins: Tuple[str, ...] = field(default=("http://localhost:3000",))
    log_level: str = "INFO"

    def __post_init__(self):
        if not 1 <= self.fetch_days <= MAX_FETCH_DAYS:
            raise ValueError(
                f"fetch_days must be between 1 and {MAX_FETCH_DAYS}, got {self.fetch_days}"
            )
        if self.lookback_buffer_days < self.fetch_days:
            raise ValueError(
                "lookback_buffer_days must be >= fetch_days "
                f"({self.lookback_buffer_days} < {self.fetch_days})"
            )
        if self.dedup_radius_km <= 0:
            raise ValueError("dedup_radius_km must be positive")

        west, south, east, north = self.bbox
        if not (-180 <= west < east <= 180 and -90 <= south < north <= 90):
            raise ValueError(f"invalid bbox {self.bbox}")

    @property
    def lookback_days(self) -> int:
        """Window for the existing-reports query: fetch window plus buffer."""
        return self.fetch_days + self.lookback_buffer_days


def load_settings(env_file: Optional[str] = None) -> Settings:
    load_dotenv(env_file)

    origins = os.getenv("CORS_ORIGINS")
    return Settings(
        database_url=os.getenv("DATABASE_URL", "sqlite:///./focos.db"),
        firms_map_key=os.getenv("NASA_FIRMS_MAP_KEY") or None,
        cron_secret=os.getenv("CRON_SECRET") or None,
        firms_base_url=os.getenv("FIRMS_BASE_URL", FIRMS_BASE_URL),
        firms_source=os.getenv("FIRMS_SOURCE", FIRMS_SOURCE),
        bbox=_parse_bbox(os.getenv("FIRMS_BBOX")),
        fetch_days=int(os.getenv("FIRMS_FETCH_DAYS", "2")),
        lookback_buffer_days=int(os.getenv("FIRMS_LOOKBACK_BUFFER_DAYS", "3")),
        dedup_radius_km=float(os.getenv("FIRMS_DEDUP_RADIUS_KM", "0.5")),
        dedup_within_batch=_parse_bool(os.getenv("FIRMS_DEDUP_WITHIN_BATCH"), True),
        http_timeout=float(os.getenv("FIRMS_HTTP_TIMEOUT", "20")),
        db_statement_timeout_ms=int(os.getenv("DB_STATEMENT_TIMEOUT_MS", "15000")),
        firms_cache_ttl=int(os.getenv("FIRMS_CACHE_TTL", "900")),
        cors_origins=tuple(o.strip() for o in origins.split(",") if o.strip())
        if origins
        else ("http://localhost:3000",),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
    )


@lru_cache
def get_settings() -> Settings:
    return load_settings()

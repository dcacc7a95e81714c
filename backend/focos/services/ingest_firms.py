# focos/services/ingest_firms.py

import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from ..config import Settings
from ..models.fire_reports import ReportSource, ReportStatus
from .classifier import confidence_to_intensity, describe_hotspot
from .dedup import Deduplicator, source_id_for
from .firms_client import FirmsClient, FirmsError
from .firms_parser import Hotspot
from .report_store import FireReportStore

log = logging.getLogger(__name__)

ERROR_NO_API_KEY = "no_api_key"
ERROR_UPSTREAM = "upstream_error"
ERROR_INTERNAL = "internal_error"


@dataclass
class IngestResult:
    success: bool
    message: str
    imported: int = 0
    total_found: int = 0
    duplicates_skipped: int = 0
    error: Optional[str] = None
    error_code: Optional[str] = None

    def to_dict(self) -> Dict:
        return {k: v for k, v in asdict(self).items() if v is not None}


def hotspot_to_row(hotspot: Hotspot) -> Dict:
    """fire_reports row for a new nasa_firms detection."""
    return {
        "latitude": hotspot.latitude,
        "longitude": hotspot.longitude,
        "source": ReportSource.NASA_FIRMS.value,
        "source_id": source_id_for(hotspot),
        "status": ReportStatus.PENDING.value,
        "intensity": confidence_to_intensity(hotspot.confidence, hotspot.frp).value,
        "description": describe_hotspot(hotspot),
        "detected_at": hotspot.detected_at,
        "reported_by": None,
        "verified_at": None,
        "verified_by": None,
        "image_url": None,
    }


async def ingest_firms_once(
    db: Session,
    settings: Settings,
    client: Optional[FirmsClient] = None,
    now: Optional[datetime] = None,
    dry_run: bool = False,
) -> IngestResult:
    """
    One FIRMS ingestion cycle: fetch -> parse -> dedupe -> insert.

    Idempotent across runs: every hotspot already stored (same source_id,
    or within `dedup_radius_km` of a recent nasa_firms report) is skipped.
    Errors never escape; they come back as a failed IngestResult.
    """
    client = client or FirmsClient(settings)
    now = now or datetime.now(timezone.utc)

    try:
        log.info("[FIRMS Cron] Starting data fetch (%d days)...", settings.fetch_days)
        parsed = await client.fetch_hotspots(settings.fetch_days)
        hotspots = parsed.hotspots

        if not hotspots:
            log.info("[FIRMS Cron] No hotspots found")
            return IngestResult(success=True, message="No hotspots found")

        log.info("[FIRMS Cron] Found %d hotspots from NASA FIRMS", len(hotspots))

        store = FireReportStore(db)
        since = now - timedelta(days=settings.lookback_days)
        # Session is synchronous; keep it off the event loop
        existing = await run_in_threadpool(
            store.recent_reports, ReportSource.NASA_FIRMS.value, since
        )

        dedup = Deduplicator.from_reports(
            existing,
            radius_km=settings.dedup_radius_km,
            within_batch=settings.dedup_within_batch,
        )
        deduped = dedup.filter(hotspots)
        new_hotspots = deduped.new

        log.info(
            "[FIRMS Cron] %d new hotspots after deduplication "
            "(%d exact, %d within %.1f km)",
            len(new_hotspots),
            deduped.exact_duplicates,
            deduped.proximity_duplicates,
            settings.dedup_radius_km,
        )

        if not new_hotspots:
            return IngestResult(
                success=True,
                message="No new hotspots to import",
                total_found=len(hotspots),
                duplicates_skipped=deduped.skipped,
            )

        rows: List[Dict] = [hotspot_to_row(h) for h in new_hotspots]

        if dry_run:
            return IngestResult(
                success=True,
                message=f"Dry run: {len(rows)} new fire reports not written",
                total_found=len(hotspots),
                duplicates_skipped=deduped.skipped,
            )

        inserted_ids = await run_in_threadpool(store.insert_reports, rows)
        log.info("[FIRMS Cron] Successfully imported %d new hotspots", len(inserted_ids))

        return IngestResult(
            success=True,
            message=f"Imported {len(inserted_ids)} new fire reports",
            imported=len(inserted_ids),
            total_found=len(hotspots),
            duplicates_skipped=deduped.skipped,
        )

    except FirmsError as e:
        log.error("[FIRMS Cron] FIRMS error (%s): %s", e.code, e)
        code = ERROR_NO_API_KEY if e.code == FirmsError.NO_API_KEY else ERROR_UPSTREAM
        return IngestResult(success=False, message=str(e), error=str(e), error_code=code)

    except Exception as e:
        log.exception("[FIRMS Cron] Error")
        return IngestResult(
            success=False,
            message=str(e) or "Unknown error",
            error=str(e) or "Unknown error",
            error_code=ERROR_INTERNAL,
        )

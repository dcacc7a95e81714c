# focos/services/report_store.py

from datetime import datetime
from typing import Dict, List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models.fire_reports import FireReport
from .dedup import ExistingReport


class StorageError(Exception):
    pass


class FireReportStore:
    """The two queries the ingestion job needs against fire_reports."""

    def __init__(self, db: Session):
        self.db = db

    def recent_reports(self, source: str, since: datetime) -> List[ExistingReport]:
        """Coordinates + source_id of `source` reports created at or after `since`."""
        try:
            rows = (
                self.db.query(FireReport.latitude, FireReport.longitude, FireReport.source_id)
                .filter(FireReport.source == source, FireReport.created_at >= since)
                .all()
            )
        except SQLAlchemyError as e:
            raise StorageError(f"Error fetching existing reports: {e}") from e

        return [ExistingReport(r[0], r[1], r[2]) for r in rows]

    def insert_reports(self, rows: List[Dict]) -> List[int]:
        """Insert all rows in one transaction; returns the new ids."""
        reports = [FireReport(**row) for row in rows]
        try:
            self.db.add_all(reports)
            self.db.flush()
            ids = [r.id for r in reports]
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StorageError(f"Error inserting reports: {e}") from e
        return ids

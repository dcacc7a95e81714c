# focos/routers/reports.py

from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict
from sqlalchemy.orm import Session

from ..db import get_db
from ..models.fire_reports import FireReport, ReportSource, ReportStatus

router = APIRouter()


class FireReportOut(BaseModel):
    id: int
    latitude: float
    longitude: float
    status: str
    source: str
    source_id: Optional[str] = None
    description: Optional[str] = None
    intensity: Optional[str] = None
    confidence_score: int = 0
    image_url: Optional[str] = None
    detected_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class FireReportList(BaseModel):
    items: List[FireReportOut]


@router.get("", response_model=FireReportList)
def list_reports(
    status: Optional[List[ReportStatus]] = Query(default=None),
    source: Optional[ReportSource] = None,
    limit: int = Query(default=100, ge=1, le=1000),
    db: Session = Depends(get_db),
):
    """
    Fire reports, newest first. `status` may be repeated
    (?status=pending&status=active).
    """
    q = db.query(FireReport)

    if status:
        q = q.filter(FireReport.status.in_([s.value for s in status]))
    if source is not None:
        q = q.filter(FireReport.source == source.value)

    q = q.order_by(FireReport.created_at.desc(), FireReport.id.desc()).limit(limit)

    return {"items": q.all()}


@router.get("/{report_id}", response_model=FireReportOut)
def get_report(report_id: int, db: Session = Depends(get_db)):
    report = db.get(FireReport, report_id)
    if report is None:
        raise HTTPException(status_code=404, detail="Fire report not found")
    return report

import enum
from datetime import datetime, timezone

from sqlalchemy import Column, BigInteger, Text, DateTime, Float, Integer, func
from ..db import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ReportStatus(str, enum.Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    ACTIVE = "active"
    CONTAINED = "contained"
    EXTINGUISHED = "extinguished"
    FALSE_ALARM = "false_alarm"


class ReportSource(str, enum.Enum):
    MANUAL = "manual"
    NASA_FIRMS = "nasa_firms"
    TWITTER = "twitter"
    WHATSAPP = "whatsapp"
    TELEGRAM = "telegram"


class Intensity(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    EXTREME = "extreme"


class FireReport(Base):
    __tablename__ = "fire_reports"

    id = Column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, index=True)

    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)

    status = Column(Text, nullable=False, default=ReportStatus.PENDING.value, index=True)
    source = Column(Text, nullable=False, default=ReportSource.MANUAL.value, index=True)

    # Idempotency key for imported records, e.g. "2026-01-17_0142_-42.230_-71.370".
    # NULL for manual reports; unique so overlapping cron runs cannot double insert.
    source_id = Column(Text, unique=True, index=True)

    description = Column(Text)
    reported_by = Column(Text)
    verified_at = Column(DateTime(timezone=True))
    verified_by = Column(Text)
    confidence_score = Column(Integer, nullable=False, default=0)
    intensity = Column(Text)
    image_url = Column(Text)

    # Satellite acquisition time (UTC) for nasa_firms rows
    detected_at = Column(DateTime(timezone=True))

    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=func.now(),
        index=True,
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        server_default=func.now(),
        onupdate=_utcnow,
    )

from datetime import datetime, timezone

import httpx
import pytest
from sqlalchemy.orm import sessionmaker

from focos.config import Settings
from focos.db import Base, make_engine
from focos.models.fire_reports import FireReport
from focos.services.firms_client import FirmsClient

VIIRS_HEADER = (
    "latitude,longitude,bright_ti4,scan,track,acq_date,acq_time,satellite,"
    "instrument,confidence,version,bright_ti5,frp,daynight"
)


def viirs_row(
    lat=-42.23,
    lon=-71.37,
    acq_date="2026-01-17",
    acq_time="0142",
    confidence="h",
    frp="150",
    satellite="N",
    daynight="N",
):
    return (
        f"{lat},{lon},367.2,0.39,0.36,{acq_date},{acq_time},{satellite},"
        f"VIIRS,{confidence},2.0NRT,290.1,{frp},{daynight}"
    )


def viirs_csv(*rows):
    return "\n".join([VIIRS_HEADER, *rows]) + "\n"


@pytest.fixture
def settings():
    return Settings(
        database_url="sqlite://",
        firms_map_key="test-key",
        firms_cache_ttl=0,
    )


@pytest.fixture
def engine(settings):
    from focos import models  # noqa: F401

    engine = make_engine(settings)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autoflush=False)()
    yield session
    session.close()


class FakeFirms:
    """Mock FIRMS endpoint; records every request it answers."""

    def __init__(self, body="", status_code=200):
        self.body = body
        self.status_code = status_code
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, text=self.body)

    def client(self, settings) -> FirmsClient:
        return FirmsClient(settings, transport=httpx.MockTransport(self))


@pytest.fixture
def fake_firms():
    return FakeFirms()


def add_report(db, lat, lon, source="nasa_firms", source_id=None, created_at=None):
    report = FireReport(
        latitude=lat,
        longitude=lon,
        source=source,
        source_id=source_id,
        status="pending",
        created_at=created_at or datetime.now(timezone.utc),
    )
    db.add(report)
    db.commit()
    return report

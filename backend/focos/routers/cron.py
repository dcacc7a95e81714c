# focos/routers/cron.py

import hmac
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ..config import Settings, get_settings
from ..db import get_db
from ..services.firms_client import FirmsClient
from ..services.ingest_firms import (
    ERROR_INTERNAL,
    ERROR_NO_API_KEY,
    ERROR_UPSTREAM,
    ingest_firms_once,
)

log = logging.getLogger(__name__)

router = APIRouter()

STATUS_BY_ERROR = {
    ERROR_NO_API_KEY: 503,
    ERROR_UPSTREAM: 502,
    ERROR_INTERNAL: 500,
}


def get_firms_client(request: Request, settings: Settings = Depends(get_settings)) -> FirmsClient:
    client = getattr(request.app.state, "firms_client", None)
    if client is None:
        client = FirmsClient(settings)
        request.app.state.firms_client = client
    return client


def _authorized(settings: Settings, authorization: Optional[str]) -> bool:
    if not settings.cron_secret:
        return True
    expected = f"Bearer {settings.cron_secret}"
    return hmac.compare_digest((authorization or "").encode(), expected.encode())


@router.get("/firms")
async def firms_cron(
    authorization: Optional[str] = Header(default=None),
    settings: Settings = Depends(get_settings),
    client: FirmsClient = Depends(get_firms_client),
    db: Session = Depends(get_db),
):
    """
    Scheduler entry point (every ~15 minutes): one FIRMS ingestion cycle.

    When CRON_SECRET is set the caller must send `Authorization: Bearer <secret>`.
    """
    if not _authorized(settings, authorization):
        log.warning("[FIRMS Cron] Rejected unauthorized trigger")
        return JSONResponse({"error": "Unauthorized"}, status_code=401)

    result = await ingest_firms_once(db, settings, client=client)

    status_code = 200 if result.success else STATUS_BY_ERROR.get(result.error_code, 500)
    return JSONResponse(result.to_dict(), status_code=status_code)

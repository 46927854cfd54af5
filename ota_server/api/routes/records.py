import json
import logging
import time
from datetime import date, datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import ValidationError
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from ota_server.metrics.collector import metrics, record_metric
from ota_server.models.session import get_db
from ota_server.records.store import RecordStore
from ota_server.schemas.record import (
    RecordAck,
    RecordCreate,
    RecordOut,
    RecordQueryResponse,
    RecordSummaryOut,
)
from ota_server.security.password import require_record_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/game", tags=["records"])


def _store(payload: RecordCreate, db: Session) -> RecordAck:
    timestamp = payload.timestamp if payload.timestamp is not None else int(time.time())
    logger.info(
        "RECORDED - timestamp: %s, type: %s, duration: %s",
        timestamp,
        payload.type,
        payload.duration,
    )
    record_id = RecordStore(db).insert(timestamp, payload.type, payload.duration)
    metrics.records_ingested.inc()
    record_metric("ota.records.ingest", 1)
    return RecordAck(id=record_id, timestamp=datetime.now(timezone.utc))


@router.post("/record", response_model=RecordAck)
async def create_record(request: Request, db: Session = Depends(get_db)):
    body = await request.body()
    try:
        payload = RecordCreate.model_validate(json.loads(body or b"{}"))
    except (ValueError, ValidationError) as exc:
        logger.error("Error parsing JSON body: %s", exc)
        raise HTTPException(status_code=400, detail="Invalid JSON")
    return await run_in_threadpool(_store, payload, db)


@router.get("/record", response_model=RecordAck)
def create_record_from_query(
    timestamp: int | None = None,
    type: str = Query("unknown", max_length=64),
    duration: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    return _store(RecordCreate(timestamp=timestamp, type=type, duration=duration), db)


@router.get(
    "/records",
    response_model=RecordQueryResponse,
    dependencies=[Depends(require_record_password)],
)
def query_records(
    day: date | None = Query(None, alias="date"),
    type: str | None = None,
    duration: int | None = None,
    limit: int = Query(500, ge=1, le=5000),
    db: Session = Depends(get_db),
):
    store = RecordStore(db)
    records = store.query(day=day, record_type=type, duration_ms=duration, limit=limit)
    summary = store.summary(day=day, record_type=type, duration_ms=duration)
    return RecordQueryResponse(
        records=[
            RecordOut(id=r.id, timestamp=r.timestamp, type=r.type, duration_ms=r.duration_ms)
            for r in records
        ],
        summary=RecordSummaryOut(
            count=summary.count,
            total_duration_ms=summary.total_duration_ms,
            total_duration_seconds=summary.total_duration_seconds,
        ),
    )


@router.get("/records/types", dependencies=[Depends(require_record_password)])
def record_types(db: Session = Depends(get_db)):
    return {"types": sorted(RecordStore(db).distinct_types())}

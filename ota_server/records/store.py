"""Record datastore.

Records are append-only rows of ``(timestamp, type, duration_ms)``. Queries
filter by local calendar day, exact type and exact duration; a filter that
is not given places no constraint on the result.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, time

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ota_server.errors import DatastoreError
from ota_server.models import models

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400


def day_bounds(day: date) -> tuple[int, int]:
    """Half-open epoch-second interval covering ``day`` in local time."""
    start = int(datetime.combine(day, time.min).timestamp())
    return start, start + SECONDS_PER_DAY


@dataclass(frozen=True)
class RecordSummary:
    count: int
    total_duration_ms: int

    @property
    def total_duration_seconds(self) -> float:
        return self.total_duration_ms / 1000


class RecordStore:
    def __init__(self, db: Session):
        self.db = db

    def _filtered(self, stmt, day: date | None, record_type: str | None, duration_ms: int | None):
        if day is not None:
            start, end = day_bounds(day)
            stmt = stmt.where(models.Record.timestamp >= start, models.Record.timestamp < end)
        if record_type is not None:
            stmt = stmt.where(models.Record.type == record_type)
        if duration_ms is not None:
            stmt = stmt.where(models.Record.duration_ms == duration_ms)
        return stmt

    def insert(self, timestamp: int, record_type: str, duration_ms: int) -> int:
        record = models.Record(timestamp=timestamp, type=record_type, duration_ms=duration_ms)
        try:
            self.db.add(record)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Failed to insert record: %s", exc)
            raise DatastoreError(str(exc)) from exc
        return record.id

    def query(
        self,
        day: date | None = None,
        record_type: str | None = None,
        duration_ms: int | None = None,
        limit: int | None = None,
    ) -> list[models.Record]:
        stmt = self._filtered(select(models.Record), day, record_type, duration_ms)
        stmt = stmt.order_by(models.Record.timestamp.desc(), models.Record.id.desc())
        if limit is not None:
            stmt = stmt.limit(limit)
        try:
            return list(self.db.scalars(stmt))
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise DatastoreError(str(exc)) from exc

    def distinct_types(self) -> set[str]:
        try:
            return set(self.db.scalars(select(models.Record.type).distinct()))
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise DatastoreError(str(exc)) from exc

    def summary(
        self,
        day: date | None = None,
        record_type: str | None = None,
        duration_ms: int | None = None,
    ) -> RecordSummary:
        stmt = select(func.count(models.Record.id), func.coalesce(func.sum(models.Record.duration_ms), 0))
        stmt = self._filtered(stmt, day, record_type, duration_ms)
        try:
            count, total = self.db.execute(stmt).one()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise DatastoreError(str(exc)) from exc
        return RecordSummary(count=count, total_duration_ms=int(total))

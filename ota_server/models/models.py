import datetime as dt

from sqlalchemy import Column, DateTime, Index, Integer, String

from ota_server.db.base import Base


class Record(Base):
    __tablename__ = "records"
    __table_args__ = (
        Index("ix_records_timestamp", "timestamp"),
        Index("ix_records_type", "type"),
        {"extend_existing": True},
    )

    id = Column(Integer, primary_key=True)
    # Unix epoch seconds as reported by the client.
    timestamp = Column(Integer, nullable=False)
    type = Column(String(64), nullable=False)
    duration_ms = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=lambda: dt.datetime.now(dt.timezone.utc))

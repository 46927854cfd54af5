from datetime import datetime

from pydantic import BaseModel, Field


class RecordCreate(BaseModel):
    timestamp: int | None = None
    type: str = Field("unknown", max_length=64)
    # Milliseconds.
    duration: int = Field(0, ge=0)


class RecordAck(BaseModel):
    status: str = "ok"
    message: str = "Record received"
    id: int
    timestamp: datetime


class RecordOut(BaseModel):
    id: int
    timestamp: int
    type: str
    duration_ms: int


class RecordSummaryOut(BaseModel):
    count: int
    total_duration_ms: int
    total_duration_seconds: float


class RecordQueryResponse(BaseModel):
    records: list[RecordOut]
    summary: RecordSummaryOut

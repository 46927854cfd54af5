from dataclasses import dataclass
from datetime import datetime, timezone

from prometheus_client import Counter, Gauge

from ota_server.config import settings


@dataclass
class MetricPoint:
    name: str
    value: float
    timestamp: datetime


class Metrics:
    def __init__(self):
        self.manifest_requests = Counter("ota_manifest_requests_total", "Manifest requests served", ["app"])
        self.file_downloads = Counter("ota_file_downloads_total", "Binary downloads started", ["app"])
        self.agents_evicted = Counter("ota_agents_evicted_total", "Agents evicted for inactivity")
        self.records_ingested = Counter("ota_records_ingested_total", "Records stored")
        self.record_auth_failures = Counter("ota_record_auth_failures_total", "Rejected record password attempts")
        self.agents_tracked = Gauge("ota_agents_tracked", "Agents currently tracked")


metrics = Metrics()


def record_metric(name: str, value: float) -> MetricPoint | None:
    if not settings.metrics_enabled:
        return None
    return MetricPoint(name=name, value=value, timestamp=datetime.now(timezone.utc))

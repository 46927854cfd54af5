import hmac

from fastapi import Header, HTTPException, Query

from ota_server.config import settings
from ota_server.metrics.collector import metrics


def verify_record_password(candidate: str | None) -> bool:
    if not candidate:
        return False
    return hmac.compare_digest(candidate.encode(), settings.record_password.encode())


def require_record_password(
    x_record_password: str | None = Header(None),
    password: str | None = Query(None),
):
    if not verify_record_password(x_record_password or password):
        metrics.record_auth_failures.inc()
        raise HTTPException(status_code=401, detail="invalid password")

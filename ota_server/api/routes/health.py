from datetime import datetime, timezone

from fastapi import APIRouter
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from ota_server.manifest import repository
from ota_server.models.session import SessionLocal

router = APIRouter(tags=["health"])


def _db_ok() -> bool:
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError:
        return False
    finally:
        db.close()


def _apps_dir_ok() -> bool:
    return repository.apps_root().is_dir()


@router.get("/health")
@router.get("/ping")
def live():
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


@router.get("/health/ready")
def ready():
    status = {
        "db": _db_ok(),
        "apps_dir": _apps_dir_ok(),
    }
    return {"status": "ok" if all(status.values()) else "degraded", "checks": status}

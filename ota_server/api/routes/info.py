import logging

from fastapi import APIRouter, HTTPException

from ota_server.config import settings
from ota_server.manifest import repository

logger = logging.getLogger(__name__)

router = APIRouter(tags=["info"])


@router.get("/")
@router.get("/info")
def service_info():
    try:
        app_names = repository.list_apps()
    except OSError:
        logger.exception("Error serving info")
        raise HTTPException(status_code=500, detail="Internal Server Error")
    return {
        "service": settings.app_name,
        "version": settings.service_version,
        "apps": [
            {
                "name": name,
                "config": f"/ota/{name}/version.yaml",
                "info": f"/ota/{name}/info",
            }
            for name in app_names
        ],
        "endpoints": {
            "config": "/ota/<app_name>/version.yaml",
            "files": "/ota/<app_name>/files/<filename>",
            "info": "/ota/<app_name>/info",
            "agents": "/ota/<app_name>/agents",
            "health": "/health",
        },
    }

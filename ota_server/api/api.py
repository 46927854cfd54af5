from fastapi import APIRouter

from ota_server.api.routes import health, info, ota, records

api_router = APIRouter()
api_router.include_router(health.router)
api_router.include_router(info.router)
api_router.include_router(ota.router)
api_router.include_router(records.router)

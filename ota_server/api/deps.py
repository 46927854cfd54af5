from fastapi import Request

from ota_server.fleet.identity import ClientIdentity, resolve_client_identity
from ota_server.fleet.registry import FleetRegistry


def get_registry(request: Request) -> FleetRegistry:
    return request.app.state.registry


def get_client_identity(request: Request) -> ClientIdentity:
    peer = request.client.host if request.client else None
    return resolve_client_identity(request.headers, peer)

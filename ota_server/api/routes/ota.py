import logging
import re
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse, Response

from ota_server.api.deps import get_client_identity, get_registry
from ota_server.errors import InvalidManifestInput, SourceFileNotFound
from ota_server.fleet.identity import ClientIdentity
from ota_server.fleet.registry import AgentAction, FleetRegistry
from ota_server.manifest import repository
from ota_server.manifest.builder import ManifestFile, ManifestOptions, build_manifest
from ota_server.metrics.collector import metrics, record_metric
from ota_server.schemas.agent import AgentListResponse, AgentSummary
from ota_server.schemas.manifest import ManifestBuildRequest
from ota_server.security.password import require_record_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ota", tags=["ota"])

YAML_MEDIA_TYPE = "application/x-yaml"
NO_CACHE = {"Cache-Control": "no-cache"}

_APP_NAME_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")


def _checked_app(app_name: str) -> str:
    if not _APP_NAME_RE.match(app_name) or ".." in app_name:
        raise HTTPException(status_code=404, detail=f"unknown app: {app_name}")
    return app_name


def _record(
    registry: FleetRegistry,
    app_name: str,
    identity: ClientIdentity,
    action: AgentAction,
    observed_version: str | None = None,
) -> None:
    registry.record_activity(
        app_name,
        identity.agent_id,
        identity.address,
        identity.client_label,
        identity.local_version,
        action,
        observed_version=observed_version,
        explicit_id=identity.explicit_id,
    )
    metrics.agents_tracked.set(registry.total_agents())


@router.get("/{app_name}/version.yaml")
def get_manifest(
    app_name: str,
    identity: ClientIdentity = Depends(get_client_identity),
    registry: FleetRegistry = Depends(get_registry),
):
    app_name = _checked_app(app_name)
    try:
        text = repository.read_manifest_text(app_name)
    except OSError:
        logger.exception("Error serving config for app %s", app_name)
        raise HTTPException(status_code=500, detail="Internal Server Error")
    if text is None:
        raise HTTPException(status_code=404, detail=f"Config file not found for app: {app_name}")

    version = repository.read_manifest_version(text)
    _record(registry, app_name, identity, AgentAction.MANIFEST_CHECK, observed_version=version)
    metrics.manifest_requests.labels(app=app_name).inc()
    record_metric("ota.manifest.request", 1)
    return Response(content=text, media_type=YAML_MEDIA_TYPE, headers=NO_CACHE)


@router.get("/{app_name}/files/{file_name:path}")
def download_file(
    app_name: str,
    file_name: str,
    identity: ClientIdentity = Depends(get_client_identity),
    registry: FleetRegistry = Depends(get_registry),
):
    app_name = _checked_app(app_name)
    path = repository.resolve_binary(app_name, file_name)
    if path is None:
        raise HTTPException(status_code=404, detail=f"Binary file not found: {app_name}/{file_name}")

    _record(registry, app_name, identity, AgentAction.FILE_DOWNLOAD)
    metrics.file_downloads.labels(app=app_name).inc()
    return FileResponse(
        path,
        media_type="application/octet-stream",
        filename=path.name,
        headers=NO_CACHE,
    )


@router.get("/{app_name}/agents", response_model=AgentListResponse)
def list_agents(app_name: str, registry: FleetRegistry = Depends(get_registry)):
    agents = [AgentSummary.from_state(state) for state in registry.list_agents(app_name)]
    return AgentListResponse(
        app=app_name,
        agents=agents,
        total=len(agents),
        timestamp=datetime.now(timezone.utc),
    )


@router.get("/{app_name}/info")
def app_info(app_name: str, registry: FleetRegistry = Depends(get_registry)):
    app_name = _checked_app(app_name)
    try:
        binary = repository.latest_binary(app_name)
    except OSError:
        logger.exception("Error reading binary info for app %s", app_name)
        raise HTTPException(status_code=500, detail="Internal Server Error")
    return {
        "app": app_name,
        "config": repository.read_app_config(app_name),
        "binary": {
            "path": str(binary.path),
            "name": binary.name,
            "size": binary.size,
            "mtime": binary.mtime.isoformat(),
        }
        if binary
        else None,
        "agents": {
            "count": registry.agent_count(app_name),
            "endpoint": f"/ota/{app_name}/agents",
        },
        "endpoints": {
            "config": f"/ota/{app_name}/version.yaml",
            "files": f"/ota/{app_name}/files/<filename>",
            "info": f"/ota/{app_name}/info",
            "agents": f"/ota/{app_name}/agents",
        },
    }


@router.post("/{app_name}/manifest", dependencies=[Depends(require_record_password)])
def publish_manifest(app_name: str, payload: ManifestBuildRequest):
    app_name = _checked_app(app_name)
    files = []
    for item in payload.files:
        path = repository.resolve_binary(app_name, item.file)
        if path is None:
            raise HTTPException(status_code=404, detail=f"Binary file not found: {app_name}/{item.file}")
        files.append(
            ManifestFile(
                source_path=str(path),
                target=item.target,
                name=item.name,
                version=item.version,
                restart=item.restart,
            )
        )
    options = ManifestOptions(base_url=payload.base_url, restart_cmd=payload.restart_cmd)
    try:
        built = build_manifest(files, payload.version, app_name, options)
    except InvalidManifestInput as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except SourceFileNotFound as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    repository.write_manifest(app_name, built)
    return Response(content=built.text, media_type=YAML_MEDIA_TYPE, headers=NO_CACHE)

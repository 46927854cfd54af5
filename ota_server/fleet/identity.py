from collections.abc import Mapping
from dataclasses import dataclass

UNKNOWN = "unknown"

FORWARDED_FOR_HEADER = "x-forwarded-for"
REAL_IP_HEADER = "x-real-ip"
AGENT_ID_HEADER = "x-agent-id"
LOCAL_VERSION_HEADER = "x-local-version"
USER_AGENT_HEADER = "user-agent"


@dataclass(frozen=True)
class ClientIdentity:
    address: str
    agent_id: str
    explicit_id: bool
    client_label: str
    local_version: str


def _header(headers: Mapping[str, str], name: str) -> str:
    # Starlette headers are case-insensitive; plain mappings are not.
    value = headers.get(name)
    if value is None:
        value = headers.get(name.title())
    return value or ""


def resolve_client_address(headers: Mapping[str, str], peer_host: str | None) -> str:
    forwarded = _header(headers, FORWARDED_FOR_HEADER)
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    real_ip = _header(headers, REAL_IP_HEADER).strip()
    if real_ip:
        return real_ip
    return peer_host or UNKNOWN


def resolve_client_identity(headers: Mapping[str, str], peer_host: str | None) -> ClientIdentity:
    address = resolve_client_address(headers, peer_host)
    explicit = _header(headers, AGENT_ID_HEADER).strip()
    return ClientIdentity(
        address=address,
        agent_id=explicit or address,
        explicit_id=bool(explicit),
        client_label=_header(headers, USER_AGENT_HEADER) or UNKNOWN,
        local_version=_header(headers, LOCAL_VERSION_HEADER).strip(),
    )

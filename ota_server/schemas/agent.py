from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from ota_server.fleet.registry import AgentAction, AgentState


class AgentSummary(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    network_address: str = Field(alias="ip")
    last_seen: datetime = Field(alias="lastSeen")
    request_count: int = Field(alias="requestCount")
    current_version: str | None = Field(None, alias="currentVersion")
    local_version: str | None = Field(None, alias="localVersion")
    last_action: AgentAction = Field(alias="lastAction")
    client_label: str = Field(alias="userAgent")

    @classmethod
    def from_state(cls, state: AgentState) -> "AgentSummary":
        return cls(
            id=state.id,
            network_address=state.network_address,
            last_seen=state.last_seen,
            request_count=state.request_count,
            current_version=state.current_version,
            local_version=state.local_version,
            last_action=state.last_action,
            client_label=state.client_label,
        )


class AgentListResponse(BaseModel):
    app: str
    agents: list[AgentSummary]
    total: int
    timestamp: datetime

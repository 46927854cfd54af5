"""In-memory fleet registry.

Tracks, per application, every agent that has polled the server recently:
when it was last seen, how often it asked, which manifest version it was
served and which version it reports running. The registry is a liveness
view only; nothing survives a restart.
"""

from __future__ import annotations

import enum
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone

logger = logging.getLogger(__name__)

DEFAULT_INACTIVITY_WINDOW = timedelta(hours=1)


class AgentAction(str, enum.Enum):
    MANIFEST_CHECK = "config_check"
    FILE_DOWNLOAD = "file_download"


@dataclass
class AgentState:
    id: str
    network_address: str
    last_seen: datetime
    request_count: int
    last_action: AgentAction
    client_label: str
    current_version: str | None = None
    local_version: str | None = None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FleetRegistry:
    def __init__(
        self,
        inactivity_window: timedelta = DEFAULT_INACTIVITY_WINDOW,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.inactivity_window = inactivity_window
        self._clock = clock
        self._apps: dict[str, dict[str, AgentState]] = {}
        self._lock = threading.RLock()

    def record_activity(
        self,
        app_name: str,
        agent_id: str,
        address: str,
        client_label: str,
        local_version: str | None,
        action: AgentAction,
        observed_version: str | None = None,
        explicit_id: bool = False,
    ) -> AgentState:
        """Register one request from an agent and return a copy of its state.

        The stored address is only refreshed for agents that identify
        themselves; agents keyed by address share that key with any other
        traffic from the same address.
        """
        now = self._clock()
        with self._lock:
            agents = self._apps.setdefault(app_name, {})
            agent = agents.get(agent_id)
            if agent is None:
                agent = AgentState(
                    id=agent_id,
                    network_address=address,
                    last_seen=now,
                    request_count=0,
                    last_action=action,
                    client_label=client_label,
                    local_version=local_version or None,
                )
                agents[agent_id] = agent
                logger.debug("New agent %s for app %s", agent_id, app_name)

            if now > agent.last_seen:
                agent.last_seen = now
            agent.request_count += 1
            agent.last_action = action
            if observed_version:
                agent.current_version = observed_version
            if local_version:
                agent.local_version = local_version
            if explicit_id:
                agent.network_address = address
            return replace(agent)

    def list_agents(self, app_name: str) -> list[AgentState]:
        with self._lock:
            agents = [replace(agent) for agent in self._apps.get(app_name, {}).values()]
        agents.sort(key=lambda agent: agent.last_seen, reverse=True)
        return agents

    def agent_count(self, app_name: str) -> int:
        with self._lock:
            return len(self._apps.get(app_name, {}))

    def apps(self) -> list[str]:
        with self._lock:
            return sorted(self._apps)

    def total_agents(self) -> int:
        with self._lock:
            return sum(len(agents) for agents in self._apps.values())

    def snapshot(self) -> dict[str, list[AgentState]]:
        with self._lock:
            names = list(self._apps)
        return {name: self.list_agents(name) for name in names}

    def evict_stale(
        self,
        now: datetime | None = None,
        window: timedelta | None = None,
    ) -> int:
        """Drop agents not seen within ``window`` of ``now``.

        Applications left without agents are dropped as well. A record that
        cannot be evaluated is logged and kept; it never aborts the sweep.
        Returns the number of agents removed.
        """
        if now is None:
            now = self._clock()
        if window is None:
            window = self.inactivity_window
        cutoff = now - window
        evicted = 0
        with self._lock:
            for app_name in list(self._apps):
                agents = self._apps[app_name]
                for agent_id, agent in list(agents.items()):
                    try:
                        stale = agent.last_seen < cutoff
                    except Exception:
                        logger.exception("Skipping unreadable agent %s/%s during sweep", app_name, agent_id)
                        continue
                    if stale:
                        del agents[agent_id]
                        evicted += 1
                if not agents:
                    del self._apps[app_name]
        if evicted:
            logger.info("Evicted %d inactive agent(s)", evicted)
        return evicted

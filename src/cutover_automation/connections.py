from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Optional, Sequence

from .executors import executor_for
from .patch import SedSubstituter, Substituter, update_configuration_file
from .types import HostConfig, UpdateConfigurationReply, UpdateConfigurationRequest

logger = logging.getLogger(__name__)


class Agent:
    """Handles configuration requests on behalf of one host."""

    def __init__(self, substituter: Substituter, *, max_workers: Optional[int] = None):
        self.substituter = substituter
        self.max_workers = max_workers

    def update_configuration(self, request: UpdateConfigurationRequest) -> UpdateConfigurationReply:
        logger.debug("update_configuration directives=%d", len(request.options))
        update_configuration_file(request.options, self.substituter, max_workers=self.max_workers)
        return UpdateConfigurationReply()


class HostConnection(ABC):
    """One established connection to the agent on ``hostname``."""

    def __init__(self, hostname: str):
        self.hostname = hostname

    @abstractmethod
    def update_configuration(self, request: UpdateConfigurationRequest) -> UpdateConfigurationReply:
        """Ask the host to apply every directive in ``request``."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.hostname!r})"


class AgentConnection(HostConnection):
    def __init__(self, hostname: str, agent: Agent):
        super().__init__(hostname)
        self.agent = agent

    def update_configuration(self, request: UpdateConfigurationRequest) -> UpdateConfigurationReply:
        return self.agent.update_configuration(request)


def connect(
    hosts: dict[str, HostConfig],
    hostnames: Sequence[str],
    *,
    default_connection: Optional[str] = None,
    dry_run: bool = False,
    sed: str = "sed",
    timeout: Optional[float] = None,
    max_workers: Optional[int] = None,
) -> list[HostConnection]:
    """Build one connection per hostname.

    Hostnames missing from ``hosts`` are reached through ``default_connection``;
    without one they are rejected before any connection is built.
    """

    configured: list[HostConfig] = []
    for hostname in hostnames:
        host = hosts.get(hostname)
        if host is None:
            if default_connection is None:
                raise ValueError(f"host '{hostname}' is not configured")
            host = HostConfig(name=hostname, connection=default_connection)
        configured.append(host)

    connections: list[HostConnection] = []
    for host in configured:
        executor = executor_for(host, dry_run=dry_run)
        agent = Agent(SedSubstituter(executor, sed=sed, timeout=timeout), max_workers=max_workers)
        connections.append(AgentConnection(host.name, agent))
    return connections

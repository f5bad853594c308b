from __future__ import annotations

import logging
from typing import Callable, Optional, Sequence

from .cluster import Cluster
from .connections import HostConnection
from .errors import HostError
from .fanout import fan_out
from .patch import Substituter, update_configuration_file
from .plan import (
    VersionLike,
    build_coordinator_directives,
    build_mirror_dbid_directives,
    build_per_host_directives,
    build_recovery_directives,
)
from .types import Directive, UpdateConfigurationRequest

logger = logging.getLogger(__name__)


def execute_rpc(
    connections: Sequence[HostConnection],
    request: Callable[[HostConnection], object],
    *,
    max_workers: Optional[int] = None,
) -> None:
    """Call ``request`` once per connection, concurrently.

    Every connection is attempted even when others fail. Failures are raised
    afterwards as :class:`HostError` values, in connection order.
    """

    fan_out(
        connections,
        request,
        wrap=lambda conn, exc: HostError(conn.hostname, exc),
        max_workers=max_workers,
    )


def _send(conn: HostConnection, directives: list[Directive]) -> None:
    logger.debug("host=%s directives=%d", conn.hostname, len(directives))
    conn.update_configuration(UpdateConfigurationRequest(options=directives))


def update_conf_files(
    connections: Sequence[HostConnection],
    version: VersionLike,
    intermediate: Cluster,
    target: Cluster,
    *,
    substituter: Optional[Substituter] = None,
) -> None:
    """Point every configuration file of the cluster at the target ports.

    The coordinator files are edited locally. Each later stage only starts
    once the previous one succeeded everywhere.
    """

    logger.info("Updating coordinator configuration in %s", target.coordinator_data_dir())
    update_configuration_file(build_coordinator_directives(version, intermediate, target), substituter)

    logger.info("Updating postgresql.conf on %d hosts", len(connections))
    update_postgresql_conf_on_segments(connections, intermediate, target)

    logger.info("Updating recovery configuration on %d hosts", len(connections))
    update_recovery_conf_on_segments(connections, version, intermediate, target)


def update_postgresql_conf_on_segments(
    connections: Sequence[HostConnection], intermediate: Cluster, target: Cluster
) -> None:
    def request(conn: HostConnection) -> None:
        _send(conn, build_per_host_directives(conn.hostname, intermediate, target))

    execute_rpc(connections, request)


def update_recovery_conf_on_segments(
    connections: Sequence[HostConnection], version: VersionLike, intermediate: Cluster, target: Cluster
) -> None:
    def request(conn: HostConnection) -> None:
        _send(conn, build_recovery_directives(conn.hostname, version, intermediate, target))

    execute_rpc(connections, request)


def update_internal_auto_conf_on_mirrors(connections: Sequence[HostConnection], intermediate: Cluster) -> None:
    def request(conn: HostConnection) -> None:
        directives = build_mirror_dbid_directives(conn.hostname, intermediate)
        if not directives:
            return
        _send(conn, directives)

    execute_rpc(connections, request)

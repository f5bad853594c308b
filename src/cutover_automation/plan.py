"""Derive the text substitutions each host needs during a cutover.

Numeric patterns end in a non-digit or the end of the line so that
searching for port ``543`` never matches ``5432``.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Union

from packaging.version import Version

from .cluster import Cluster
from .types import Directive

PORT_PATTERN = r"(^port[ \t]*=[ \t]*)%d([^0-9]|$)"
CONNINFO_PORT_PATTERN = r"(primary_conninfo .* port[ \t]*=[ \t]*)%d([^0-9]|$)"
DBID_PATTERN = r"(^gp_dbid=)%d([^0-9]|$)"
REPLACEMENT = r"\1%d\2"

POSTGRESQL_CONF = "postgresql.conf"
INTERNAL_AUTO_CONF = "internal.auto.conf"
LEGACY_RECOVERY_CONF = "recovery.conf"
AUTO_CONF = "postgresql.auto.conf"

VersionLike = Union[Version, str]


@dataclass(frozen=True)
class ConfLayout:
    recovery_file: str
    perfmon: bool


def parse_version(version: VersionLike) -> Version:
    if isinstance(version, Version):
        return version
    return Version(str(version))


def conf_layout(version: VersionLike) -> ConfLayout:
    major = parse_version(version).major
    return ConfLayout(
        recovery_file=LEGACY_RECOVERY_CONF if major == 6 else AUTO_CONF,
        perfmon=major < 7,
    )


def _port_directive(data_dir: str, old: int, new: int, *, filename: str = POSTGRESQL_CONF) -> Directive:
    return Directive(
        path=os.path.join(data_dir, filename),
        pattern=PORT_PATTERN % old,
        replacement=REPLACEMENT % new,
    )


def build_coordinator_directives(version: VersionLike, intermediate: Cluster, target: Cluster) -> list[Directive]:
    directives: list[Directive] = []
    data_dir = target.coordinator_data_dir()
    if conf_layout(version).perfmon:
        directives.append(
            Directive(
                path=os.path.join(data_dir, "gpperfmon", "conf", "gpperfmon.conf"),
                pattern=r"^log_location = .*$",
                replacement="log_location = %s" % os.path.join(data_dir, "gpperfmon", "logs"),
            )
        )
    directives.append(_port_directive(data_dir, intermediate.coordinator_port(), target.coordinator_port()))
    return directives


def _on_standby_host(hostname: str, target: Cluster) -> bool:
    return target.has_standby() and target.standby_hostname() == hostname


def build_per_host_directives(hostname: str, intermediate: Cluster, target: Cluster) -> list[Directive]:
    directives: list[Directive] = []

    if _on_standby_host(hostname, target):
        old_port = intermediate.standby_port()
        if old_port is None:
            raise ValueError("target cluster has a standby but the intermediate cluster does not")
        directives.append(_port_directive(target.standby_data_dir(), old_port, target.standby_port()))

    mirrors = target.select_segments(lambda seg: seg.is_on_host(hostname) and seg.is_mirror())
    for mirror in mirrors:
        old = intermediate.mirrors[mirror.content_id]
        directives.append(_port_directive(mirror.data_dir, old.port, mirror.port))

    primaries = target.select_segments(lambda seg: seg.is_on_host(hostname) and seg.is_primary())
    for primary in primaries:
        old = intermediate.primaries[primary.content_id]
        directives.append(_port_directive(primary.data_dir, old.port, primary.port))

    return directives


def build_recovery_directives(
    hostname: str, version: VersionLike, intermediate: Cluster, target: Cluster
) -> list[Directive]:
    filename = conf_layout(version).recovery_file
    directives: list[Directive] = []

    if _on_standby_host(hostname, target):
        directives.append(
            Directive(
                path=os.path.join(target.standby_data_dir(), filename),
                pattern=CONNINFO_PORT_PATTERN % intermediate.coordinator_port(),
                replacement=REPLACEMENT % target.coordinator_port(),
            )
        )

    # A mirror streams from its primary, so its conninfo carries the primary's port.
    mirrors = target.select_segments(lambda seg: seg.is_on_host(hostname) and seg.is_mirror())
    for mirror in mirrors:
        directives.append(
            Directive(
                path=os.path.join(mirror.data_dir, filename),
                pattern=CONNINFO_PORT_PATTERN % intermediate.primaries[mirror.content_id].port,
                replacement=REPLACEMENT % target.primaries[mirror.content_id].port,
            )
        )

    return directives


def build_mirror_dbid_directives(hostname: str, intermediate: Cluster) -> list[Directive]:
    mirrors = intermediate.select_segments(
        lambda seg: seg.is_on_host(hostname) and not seg.is_standby() and seg.is_mirror()
    )
    if not mirrors:
        return []

    return [
        Directive(
            path=os.path.join(mirror.data_dir, INTERNAL_AUTO_CONF),
            pattern=DBID_PATTERN % intermediate.primaries[mirror.content_id].dbid,
            replacement=REPLACEMENT % mirror.dbid,
        )
        for mirror in mirrors
    ]


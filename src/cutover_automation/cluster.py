from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional

try:
    import tomllib  # type: ignore[attr-defined]
except ModuleNotFoundError:  # pragma: no cover
    import tomli as tomllib  # type: ignore[no-redef]


ROLE_PRIMARY = "p"
ROLE_MIRROR = "m"
COORDINATOR_CONTENT_ID = -1


@dataclass
class SegConfig:
    dbid: int
    content_id: int
    role: str
    hostname: str
    port: int
    data_dir: str

    def is_primary(self) -> bool:
        return self.role == ROLE_PRIMARY and self.content_id != COORDINATOR_CONTENT_ID

    def is_mirror(self) -> bool:
        return self.role == ROLE_MIRROR and self.content_id != COORDINATOR_CONTENT_ID

    def is_coordinator(self) -> bool:
        return self.role == ROLE_PRIMARY and self.content_id == COORDINATOR_CONTENT_ID

    def is_standby(self) -> bool:
        return self.role == ROLE_MIRROR and self.content_id == COORDINATOR_CONTENT_ID

    def is_on_host(self, hostname: str) -> bool:
        return self.hostname == hostname


@dataclass
class Cluster:
    """Read-only view over one topology snapshot, keyed by content-id.

    Content-id -1 holds the coordinator among the primaries and the standby
    among the mirrors.
    """

    primaries: dict[int, SegConfig] = field(default_factory=dict)
    mirrors: dict[int, SegConfig] = field(default_factory=dict)

    @classmethod
    def from_segments(cls, segments: list[SegConfig]) -> "Cluster":
        cluster = cls()
        for seg in segments:
            bucket = cluster.primaries if seg.role == ROLE_PRIMARY else cluster.mirrors
            if seg.content_id in bucket:
                kind = "primary" if seg.role == ROLE_PRIMARY else "mirror"
                raise ValueError(f"duplicate {kind} for content id {seg.content_id}")
            bucket[seg.content_id] = seg
        if COORDINATOR_CONTENT_ID not in cluster.primaries:
            raise ValueError("cluster has no coordinator (content id -1, role p)")
        for content_id in cluster.mirrors:
            if content_id not in cluster.primaries:
                raise ValueError(f"mirror for content id {content_id} has no primary")
        return cluster

    @property
    def coordinator(self) -> SegConfig:
        return self.primaries[COORDINATOR_CONTENT_ID]

    @property
    def standby(self) -> Optional[SegConfig]:
        return self.mirrors.get(COORDINATOR_CONTENT_ID)

    def has_standby(self) -> bool:
        return self.standby is not None

    def coordinator_port(self) -> int:
        return self.coordinator.port

    def coordinator_data_dir(self) -> str:
        return self.coordinator.data_dir

    def standby_port(self) -> Optional[int]:
        return self.standby.port if self.standby else None

    def standby_data_dir(self) -> Optional[str]:
        return self.standby.data_dir if self.standby else None

    def standby_hostname(self) -> Optional[str]:
        return self.standby.hostname if self.standby else None

    def hostnames(self) -> list[str]:
        names: list[str] = []
        for seg in self.select_segments(lambda seg: True):
            if seg.hostname not in names:
                names.append(seg.hostname)
        return names

    def select_segments(self, predicate: Callable[[SegConfig], bool]) -> list[SegConfig]:
        """Segments matching ``predicate``: primaries, then mirrors, by content id."""

        selected: list[SegConfig] = []
        for bucket in (self.primaries, self.mirrors):
            for content_id in sorted(bucket):
                seg = bucket[content_id]
                if predicate(seg):
                    selected.append(seg)
        return selected


def load_cluster(path: Path) -> Cluster:
    path = Path(path)
    try:
        data = tomllib.loads(path.read_text())
    except tomllib.TOMLDecodeError as exc:
        raise ValueError(f"{path}: {exc}") from None
    raw_segments = data.get("segments", [])
    if not isinstance(raw_segments, list):
        raise ValueError(f"{path}: segments must be an array of tables")
    segments = [_parse_segment(raw, f"{path}: segment {idx}") for idx, raw in enumerate(raw_segments, start=1)]
    try:
        return Cluster.from_segments(segments)
    except ValueError as exc:
        raise ValueError(f"{path}: {exc}") from None


def _parse_segment(raw: Any, where: str) -> SegConfig:
    if not isinstance(raw, dict):
        raise ValueError(f"{where} must be a table")
    missing = [key for key in ("content_id", "dbid", "role", "hostname", "port", "data_dir") if key not in raw]
    if missing:
        raise ValueError(f"{where} is missing {', '.join(missing)}")
    role = str(raw["role"])
    if role not in {ROLE_PRIMARY, ROLE_MIRROR}:
        raise ValueError(f"{where} role must be 'p' or 'm'")
    port = int(raw["port"])
    if port < 0:
        raise ValueError(f"{where} port must not be negative")
    data_dir = str(raw["data_dir"])
    if not Path(data_dir).is_absolute():
        raise ValueError(f"{where} data_dir must be an absolute path")
    return SegConfig(
        dbid=int(raw["dbid"]),
        content_id=int(raw["content_id"]),
        role=role,
        hostname=str(raw["hostname"]),
        port=port,
        data_dir=data_dir,
    )

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

try:
    import tomllib  # type: ignore[attr-defined]
except ModuleNotFoundError:  # pragma: no cover
    import tomli as tomllib  # type: ignore[no-redef]

from .types import HostConfig

DEFAULT_CONFIG = Path("/etc/cutover/main.conf")
CONNECTION_TYPES = {"local", "ssh"}


@dataclass
class CutoverConfig:
    intermediate: Optional[Path] = None
    target: Optional[Path] = None
    version: Optional[str] = None
    sed: str = "sed"
    timeout: Optional[float] = None
    max_workers: Optional[int] = None
    default_connection: Optional[str] = None
    hosts: dict[str, HostConfig] = field(default_factory=dict)


def load_config(path: Path) -> CutoverConfig:
    if not path.exists():
        return CutoverConfig()
    try:
        data = tomllib.loads(path.read_text())
    except tomllib.TOMLDecodeError as exc:
        raise ValueError(f"{path}: {exc}") from None
    defaults = data.get("defaults", {})
    intermediate = defaults.get("intermediate")
    target = defaults.get("target")
    version = defaults.get("version")
    max_workers = defaults.get("max_workers")
    if max_workers is not None and (not isinstance(max_workers, int) or max_workers < 1):
        raise ValueError(f"{path}: max_workers must be a positive integer")
    timeout = defaults.get("timeout")
    if timeout is not None and (isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0):
        raise ValueError(f"{path}: timeout must be a positive number of seconds")
    default_connection = defaults.get("connection")
    if default_connection is not None and default_connection not in CONNECTION_TYPES:
        raise ValueError(f"{path}: unknown default connection '{default_connection}'")
    return CutoverConfig(
        intermediate=Path(intermediate) if intermediate else None,
        target=Path(target) if target else None,
        version=str(version) if version else None,
        sed=str(defaults.get("sed", "sed")),
        timeout=float(timeout) if timeout is not None else None,
        max_workers=max_workers,
        default_connection=default_connection,
        hosts=_parse_hosts(data.get("hosts", {}), path),
    )


def _parse_hosts(host_data: dict[str, Any], path: Path) -> dict[str, HostConfig]:
    hosts: dict[str, HostConfig] = {}
    for name, payload in host_data.items():
        connection = payload.get("connection", "local")
        if connection not in CONNECTION_TYPES:
            raise ValueError(f"{path}: host '{name}' has unknown connection '{connection}'")
        hosts[name] = HostConfig(
            name=name,
            connection=connection,
            address=payload.get("address"),
        )
    return hosts

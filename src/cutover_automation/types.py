from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class Directive:
    """One pending in-place text substitution on ``path``."""

    path: str
    pattern: str
    replacement: str


@dataclass
class UpdateConfigurationRequest:
    options: list[Directive] = field(default_factory=list)


@dataclass
class UpdateConfigurationReply:
    pass


@dataclass
class HostConfig:
    name: str
    connection: str = "local"
    address: Optional[str] = None

from __future__ import annotations

import shlex
import subprocess
from dataclasses import dataclass
from typing import Optional, Sequence

from .types import HostConfig


@dataclass
class CommandResult:
    command: list[str]
    stdout: str
    stderr: str
    returncode: int

    @property
    def output(self) -> str:
        return self.stdout + self.stderr

    def render(self) -> str:
        return shlex.join(self.command)


class Executor:
    """Base executor abstraction used to reach a host."""

    def __init__(self, host: HostConfig, *, dry_run: bool = False):
        self.host = host
        self.dry_run = dry_run

    def run(
        self,
        command: Sequence[str],
        *,
        check: bool = True,
        mutable: bool = True,
        timeout: Optional[float] = None,
    ) -> CommandResult:
        """Run ``command`` and optionally skip it during dry-runs."""

        cmd_list = list(command)
        if self.dry_run and mutable:
            return CommandResult(cmd_list, "", "skipped (dry-run)", 0)

        argv = self.wrap(cmd_list)
        proc = subprocess.run(
            argv,
            capture_output=True,
            text=True,
            check=False,
            timeout=timeout,
        )
        if check and proc.returncode != 0:
            raise subprocess.CalledProcessError(
                proc.returncode,
                cmd_list,
                proc.stdout,
                proc.stderr,
            )
        return CommandResult(cmd_list, proc.stdout, proc.stderr, proc.returncode)

    def wrap(self, command: list[str]) -> list[str]:
        raise NotImplementedError


class LocalExecutor(Executor):
    """Executor that acts directly on the local host."""

    def wrap(self, command: list[str]) -> list[str]:
        return command


class SshExecutor(Executor):
    """Executor that runs each command on the host over ssh."""

    SSH_OPTIONS = ("-o", "BatchMode=yes")

    def wrap(self, command: list[str]) -> list[str]:
        target = self.host.address or self.host.name
        return ["ssh", *self.SSH_OPTIONS, target, shlex.join(command)]


def executor_for(host: HostConfig, *, dry_run: bool = False) -> Executor:
    if host.connection == "local":
        return LocalExecutor(host, dry_run=dry_run)
    if host.connection == "ssh":
        return SshExecutor(host, dry_run=dry_run)
    raise ValueError(f"Unknown connection type '{host.connection}'")

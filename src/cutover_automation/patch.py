from __future__ import annotations

import logging
import subprocess
from abc import ABC, abstractmethod
from typing import Optional, Sequence

from .errors import DirectiveError
from .executors import CommandResult, Executor, LocalExecutor
from .fanout import fan_out
from .types import Directive, HostConfig

logger = logging.getLogger(__name__)


class Substituter(ABC):
    """Narrow surface over whatever performs one in-place substitution."""

    @abstractmethod
    def apply(self, path: str, pattern: str, replacement: str) -> CommandResult:
        """Replace the first match of ``pattern`` on every line of ``path``."""


class SedSubstituter(Substituter):
    """Substitutes with ``sed -E -i``, leaving a backup next to the file."""

    def __init__(
        self,
        executor: Executor,
        *,
        sed: str = "sed",
        backup_suffix: str = ".bak",
        timeout: Optional[float] = None,
    ):
        self.executor = executor
        self.sed = sed
        self.backup_suffix = backup_suffix
        self.timeout = timeout

    def command(self, path: str, pattern: str, replacement: str) -> list[str]:
        return [self.sed, "-E", f"-i{self.backup_suffix}", f"s@{pattern}@{replacement}@", path]

    def apply(self, path: str, pattern: str, replacement: str) -> CommandResult:
        cmd = self.command(path, pattern, replacement)
        try:
            return self.executor.run(cmd, timeout=self.timeout)
        except subprocess.CalledProcessError as exc:
            result = CommandResult(cmd, exc.stdout or "", exc.stderr or "", exc.returncode)
            raise DirectiveError(path, result.render(), result.output, exc) from exc


def default_substituter() -> Substituter:
    return SedSubstituter(LocalExecutor(HostConfig(name="localhost")))


def update_configuration_file(
    directives: Sequence[Directive],
    substituter: Optional[Substituter] = None,
    *,
    max_workers: Optional[int] = None,
) -> None:
    """Apply every directive to its file concurrently.

    All directives are attempted. Failures are raised together afterwards in
    the order the directives were supplied. A pattern that matches nothing
    leaves the file as it was and is not a failure.
    """

    directives = list(directives)
    seen: set[str] = set()
    for directive in directives:
        if directive.path in seen:
            raise ValueError(f"more than one directive targets {directive.path}")
        seen.add(directive.path)

    substituter = substituter or default_substituter()

    def _apply(directive: Directive) -> None:
        logger.debug("update path=%s pattern=%s", directive.path, directive.pattern)
        substituter.apply(directive.path, directive.pattern, directive.replacement)

    def _wrap(directive: Directive, exc: Exception) -> Exception:
        if isinstance(exc, DirectiveError):
            return exc
        return DirectiveError(directive.path, _describe(substituter, directive), "", exc)

    fan_out(directives, _apply, wrap=_wrap, max_workers=max_workers)


def _describe(substituter: Substituter, directive: Directive) -> str:
    if isinstance(substituter, SedSubstituter):
        cmd = substituter.command(directive.path, directive.pattern, directive.replacement)
        return CommandResult(cmd, "", "", 0).render()
    return f"s@{directive.pattern}@{directive.replacement}@ {directive.path}"

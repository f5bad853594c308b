from __future__ import annotations

import os
from typing import Iterable, Iterator, Optional


class ErrorList(Exception):
    """Several independent failures folded into one exception."""

    def __init__(self, errors: Iterable[BaseException]):
        self.errors: list[BaseException] = []
        for err in errors:
            if isinstance(err, ErrorList):
                self.errors.extend(err.errors)
            else:
                self.errors.append(err)
        if not self.errors:
            raise ValueError("ErrorList requires at least one error")
        super().__init__(str(self))

    def __iter__(self) -> Iterator[BaseException]:
        return iter(self.errors)

    def __len__(self) -> int:
        return len(self.errors)

    def __str__(self) -> str:
        return "\n".join(str(err) for err in self.errors)


def append_error(err: Optional[BaseException], new: Optional[BaseException]) -> Optional[BaseException]:
    if new is None:
        return err
    if err is None:
        return new
    return ErrorList([err, new])


def flatten(err: Optional[BaseException]) -> list[BaseException]:
    if err is None:
        return []
    if isinstance(err, ErrorList):
        return list(err.errors)
    return [err]


class DirectiveError(Exception):
    """A single configuration file edit that did not succeed."""

    def __init__(self, path: str, command: str, output: str, cause: BaseException):
        self.path = path
        self.command = command
        self.output = output
        self.cause = cause
        super().__init__(
            f"update {os.path.basename(path)} using {command!r} failed with {output!r}: {cause}"
        )
        self.__cause__ = cause


class HostError(Exception):
    """A request to one host that did not succeed."""

    def __init__(self, hostname: str, cause: BaseException):
        self.hostname = hostname
        self.cause = cause
        super().__init__("\n".join(f"host {hostname}: {err}" for err in flatten(cause)))
        self.__cause__ = cause

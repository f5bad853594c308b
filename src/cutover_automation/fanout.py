from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional, Sequence, TypeVar

from .errors import ErrorList

logger = logging.getLogger(__name__)

T = TypeVar("T")


def fan_out(
    items: Sequence[T],
    fn: Callable[[T], object],
    *,
    wrap: Optional[Callable[[T, Exception], Exception]] = None,
    max_workers: Optional[int] = None,
) -> None:
    """Run ``fn`` for every item concurrently and wait for all of them.

    A failing item never cancels its siblings. Once every task has finished,
    the failures are raised together in the order ``items`` were given,
    as the lone exception when only one task failed or an :class:`ErrorList`
    otherwise.
    """

    items = list(items)
    if not items:
        return

    workers = max_workers or len(items)
    errors: list[Exception] = []
    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = [pool.submit(fn, item) for item in items]
        for item, future in zip(items, futures):
            try:
                future.result()
            except Exception as exc:  # noqa: BLE001
                logger.debug("fan-out item=%s failed: %s", item, exc)
                errors.append(wrap(item, exc) if wrap else exc)

    if len(errors) == 1:
        raise errors[0]
    if errors:
        raise ErrorList(errors)

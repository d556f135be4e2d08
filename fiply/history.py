from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Iterator, List, Optional, Tuple, Type

from fiply.cursor import decode_cursor
from fiply.errors import (
    CollectionError,
    MalformedCursorError,
    MalformedResponseError,
    TransportError,
)
from fiply.types import Page, PlayEvent

logger = logging.getLogger(__name__)

MAX_PAGES = 100

Fetcher = Callable[[int], Page]


def _fmt(ts: float) -> str:
    try:
        return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat(timespec="seconds")
    except (OverflowError, ValueError, OSError):
        # cursors are not range checked
        return str(ts)


@dataclass(frozen=True)
class RetryPolicy:
    """
    Bounded retry: `max_attempts` calls in total, waiting `delay` seconds
    before the first retry and multiplying by `backoff_multiplier` after each
    one (1.0 keeps the delay fixed), capped at `max_delay`.
    """
    max_attempts: int = 3
    delay: float = 0.1
    backoff_multiplier: float = 1.0
    max_delay: float = 30.0
    retry_on: Tuple[Type[BaseException], ...] = (TransportError, MalformedResponseError)
    # optional extra filter on errors matched by retry_on
    retry_if: Optional[Callable[[BaseException], bool]] = field(default=None, compare=False)
    sleep: Callable[[float], None] = field(default=time.sleep, compare=False)

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    def delays(self) -> Iterator[float]:
        d = self.delay
        for _ in range(self.max_attempts - 1):
            yield min(d, self.max_delay)
            d *= self.backoff_multiplier

    def call(self, func: Callable, *args, **kwargs):
        waits = self.delays()
        attempt = 0
        while True:
            attempt += 1
            try:
                return func(*args, **kwargs)
            except self.retry_on as e:
                if self.retry_if is not None and not self.retry_if(e):
                    raise
                wait = next(waits, None)
                if wait is None:
                    logger.error("%s failed after %d attempts: %s", _name(func), attempt, e)
                    raise
                logger.warning(
                    "%s failed (attempt %d/%d), retrying in %.2fs: %s",
                    _name(func), attempt, self.max_attempts, wait, e,
                )
                self.sleep(wait)


def _name(func: Callable) -> str:
    return getattr(func, "__name__", type(func).__name__)


class HistoryCollector:
    """Walks the FIP history backward in time, one page per cursor."""

    def __init__(
        self,
        fetcher: Fetcher,
        retry_policy: Optional[RetryPolicy] = None,
        max_pages: int = MAX_PAGES,
        clock: Callable[[], float] = time.time,
        allow_partial: bool = False,
    ):
        self.fetcher = fetcher
        self.retry_policy = retry_policy or RetryPolicy()
        self.max_pages = max_pages
        self.clock = clock
        self.allow_partial = allow_partial

    def collect_since(
        self,
        lookback_seconds: float,
        cancel: Optional[threading.Event] = None,
    ) -> List[PlayEvent]:
        """
        Fetch every page between now and now - lookback_seconds.

        Stops after max_pages + 1 fetches at most, when the feed says there is
        no next page, or once the decoded end cursor falls before the boundary.
        """
        now = int(self.clock())
        until = now - lookback_seconds
        cursor_time = now
        res: List[PlayEvent] = []
        itrs = 0

        while True:
            if cancel is not None and cancel.is_set():
                logger.warning("History walk cancelled at page %d; keeping %d songs", itrs, len(res))
                break

            logger.info("Fetching page %d of songs starting at %s", itrs, _fmt(cursor_time))
            try:
                page = self.retry_policy.call(self.fetcher, cursor_time)
            except self.retry_policy.retry_on as e:
                # nothing collected yet: a partial result would be an empty one
                if self.allow_partial and itrs > 0:
                    logger.warning(
                        "Giving up at page %d (%s); returning %d songs collected so far",
                        itrs, e, len(res),
                    )
                    break
                raise CollectionError(f"page {itrs} at {_fmt(cursor_time)} could not be fetched: {e}", res) from e

            logger.info("Fetched %d elements. Page info is %s", len(page.events), page.page_info)
            res.extend(page.events)

            try:
                end_sec = decode_cursor(page.page_info.end_cursor)
            except MalformedCursorError as e:
                raise CollectionError(f"page {itrs} returned an undecodable cursor: {e}", res) from e
            cursor_time = end_sec

            if itrs >= self.max_pages or not page.page_info.has_next_page or end_sec < until:
                logger.info(
                    "Fetched %d songs. Started at: %s, end: %s, until: %s",
                    len(res), _fmt(now), _fmt(end_sec), _fmt(until),
                )
                break
            itrs += 1

        return res


def collect_since(fetcher: Fetcher, lookback_seconds: float, cancel: Optional[threading.Event] = None, **kwargs) -> List[PlayEvent]:
    return HistoryCollector(fetcher, **kwargs).collect_since(lookback_seconds, cancel=cancel)

"""Issue collection for one browser context.

Usage:
    collector = IssueCollector(context)
    collector.add(issue)                        # or a list of issues
    collector.register_pending_work(coro)       # awaited before any dump
    pages = await collector.dump()              # -> list[PageReport]
"""

import asyncio
import logging
from collections.abc import Awaitable, Iterable
from typing import Any

from page_lint.models import FileReport, Issue, IssueEntry, PageReport

logger = logging.getLogger(__name__)

#: Seconds to wait after network idle for errors raised by timers and
#: deferred handlers.
SETTLE_DELAY = 2.0


class IssueCollector:
    """Aggregates issues by page URL, then file URL."""

    def __init__(self, context: Any, settle_delay: float = SETTLE_DELAY) -> None:
        self._context = context
        self._settle_delay = settle_delay
        self._issues: dict[str, dict[str, list[IssueEntry]]] = {}
        self._pending: set[asyncio.Future] = set()
        self._failures: list[BaseException] = []

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def add(self, issues: Issue | Iterable[Issue]) -> None:
        if isinstance(issues, Issue):
            issues = [issues]

        for issue in issues:
            files = self._issues.setdefault(issue.page_url, {})
            files.setdefault(issue.file_url, []).append(issue.entry())
            logger.debug(
                "Recorded %s issue on %s (%s:%d:%d): %s",
                issue.category, issue.page_url, issue.file_url,
                issue.line.start, issue.column.start, issue.message,
            )

    def register_pending_work(self, work: Awaitable) -> asyncio.Future:
        """Track *work* so that no report is produced before it completes.

        Coroutines are scheduled as tasks on the running loop.
        """
        future = asyncio.ensure_future(work)
        self._pending.add(future)
        future.add_done_callback(self._on_pending_done)
        logger.debug("Registered pending task %r", future)
        return future

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    async def wait_for_collection(self) -> None:
        """Wait until every issue of the current run should have arrived.

        1. every open page of the context reaches network idle
        2. a fixed settling delay
        3. every registered pending task completes

        The first failure of a pending task is raised, here and on every
        later call.
        """
        pages = [page for page in self._context.pages if not page.is_closed()]
        logger.info("Waiting for network idle on %d page(s)", len(pages))
        await asyncio.gather(*(page.wait_for_load_state("networkidle") for page in pages))

        await asyncio.sleep(self._settle_delay)

        # Tasks may register further tasks, so drain until the set stays empty.
        while self._pending:
            logger.info("Waiting for %d pending task(s)", len(self._pending))
            # asyncio.wait leaves the tasks running if this wait is cancelled.
            await asyncio.wait(set(self._pending))

        if self._failures:
            raise self._failures[0]

    async def dump(self) -> list[PageReport]:
        """Return the collected issues sorted by page, file and position."""
        await self.wait_for_collection()

        return [
            PageReport(
                url=page_url,
                files=[
                    FileReport(
                        url=file_url,
                        issues=sorted(entries, key=IssueEntry.sort_key),
                    )
                    for file_url, entries in sorted(files.items())
                ],
            )
            for page_url, files in sorted(self._issues.items())
        ]

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _on_pending_done(self, future: asyncio.Future) -> None:
        self._pending.discard(future)
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            logger.warning("Pending task failed: %r", exc)
            self._failures.append(exc)

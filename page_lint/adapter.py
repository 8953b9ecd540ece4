"""Wire a Playwright browser context to an IssueCollector.

Usage:
    context, collector = init_collector(await browser.new_context())
    page = await context.new_page()
    await page.goto("http://localhost:3456/")
    pages = await collector.dump()

Handled page events:
    console          warning / assert / trace messages        -> console issue
    pageerror        uncaught exceptions                      -> console issue
    requestfailed    transport failures                       -> network issue
    requestfinished  HTTP status >= 400, and HTML validation
                     of the page document                     -> network / html issues
"""

import asyncio
import logging
from collections.abc import Mapping
from typing import Any

from page_lint.collector import IssueCollector
from page_lint.config import Options
from page_lint.models import Issue, Span
from page_lint.stacktrace import locate
from page_lint.validator import NuValidatorClient, ValidationWarning

logger = logging.getLogger(__name__)

# "error" messages are left to the pageerror handler, which Firefox fires
# for the same failure.
_CONSOLE_TYPES = ("warning", "assert", "trace")

# request.response() resolves to None for some finished requests
# (https://github.com/microsoft/playwright/issues/5542). Set to False to
# report them as network issues once that is fixed.
IGNORE_MISSING_RESPONSE = True


def init_collector(
    context: Any,
    options: Options | Mapping[str, Any] | None = None,
    validator: Any = None,
) -> tuple[Any, IssueCollector]:
    """Attach issue collection to every current and future page of *context*.

    *options* may be an Options instance or a plain mapping such as
    ``{"html": False}``. *validator* is any object with ``check(url)``; a
    NuValidatorClient built from the options is used by default.
    """
    if not isinstance(options, Options):
        options = Options.from_mapping(options)
    if validator is None and options.html:
        validator = NuValidatorClient(options.validator_url, timeout=options.validator_timeout)

    collector = IssueCollector(context, settle_delay=options.settle_delay)
    listener = _PageListener(collector, options, validator)

    for page in context.pages:
        listener.attach(page)
    context.on("page", listener.attach)

    return context, collector


class _PageListener:
    def __init__(self, collector: IssueCollector, options: Options, validator: Any) -> None:
        self._collector = collector
        self._options = options
        self._validator = validator

    def attach(self, page: Any) -> None:
        logger.debug("Collecting issues from new page %s", page.url)
        page.on("console", lambda msg: self.on_console(page, msg))
        page.on("pageerror", lambda err: self.on_page_error(page, err))
        page.on("requestfailed", lambda req: self.on_request_failed(page, req))
        page.on("requestfinished", lambda req: self.on_request_finished(page, req))

    # ------------------------------------------------------------------
    # Event handlers
    # ------------------------------------------------------------------

    def on_console(self, page: Any, msg: Any) -> None:
        if msg.type not in _CONSOLE_TYPES:
            return

        location = msg.location or {}
        self._collector.add(Issue(
            page_url=page.url,
            file_url=location.get("url"),
            category="console",
            message=msg.text.strip(),
            line=Span.point(location.get("lineNumber", 0)),
            column=Span.point(location.get("columnNumber", 0)),
        ))

    def on_page_error(self, page: Any, err: Any) -> None:
        message = getattr(err, "message", None) or str(err)
        loc = locate(getattr(err, "stack", None), message)

        self._collector.add(Issue(
            page_url=page.url,
            file_url=loc.file_url,
            category="console",
            message=message.strip(),
            line=Span.point(loc.line),
            column=Span.point(loc.column),
        ))

    def on_request_failed(self, page: Any, req: Any) -> None:
        self._collector.add(Issue(
            page_url=page.url,
            file_url=req.url,
            category="network",
            message=req.failure or "Unexpected request failure",
        ))

    def on_request_finished(self, page: Any, req: Any) -> None:
        self._collector.register_pending_work(self._check_finished_request(page, req))

    # ------------------------------------------------------------------
    # Follow-up work
    # ------------------------------------------------------------------

    async def _check_finished_request(self, page: Any, req: Any) -> None:
        # Give page.url time to switch from about:blank to the real URL.
        await asyncio.sleep(self._options.url_settle_delay)

        page_url = page.url
        req_url = req.url
        res = await req.response()

        if res is None:
            if IGNORE_MISSING_RESPONSE:
                logger.debug("No response for %s, ignored", req_url)
            else:
                self._collector.add(Issue(
                    page_url=page_url,
                    file_url=req_url,
                    category="network",
                    message="Unexpected failure on request",
                ))
        elif res.status >= 400:
            self._collector.add(Issue(
                page_url=page_url,
                file_url=req_url,
                category="network",
                message=f"{res.status} {res.status_text}".strip(),
            ))

        if page_url == req_url and self._options.html and self._validator is not None:
            logger.debug("Validating markup of %s", page_url)
            warnings = await asyncio.to_thread(self._validator.check, page_url)
            self._collector.add([_html_issue(page_url, w) for w in warnings])


def _html_issue(page_url: str, warning: ValidationWarning) -> Issue:
    first_line = warning.first_line if warning.first_line is not None else warning.last_line
    first_column = warning.first_column if warning.first_column is not None else warning.last_column
    return Issue(
        page_url=page_url,
        file_url=page_url,
        category="html",
        message=warning.message,
        line=Span(first_line or 0, warning.last_line or 0),
        column=Span(first_column or 0, warning.last_column or 0),
    )

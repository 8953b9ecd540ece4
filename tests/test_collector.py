"""Tests for page_lint/collector.py"""

import asyncio
import logging

import pytest

from page_lint.collector import IssueCollector
from page_lint.models import Issue, Span
from tests.fakes import FakeContext

PAGE = "http://localhost:3456/"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _issue(page=PAGE, file=None, category="console", message="boom", line=0, column=0) -> Issue:
    return Issue(
        page_url=page,
        file_url=file,
        category=category,
        message=message,
        line=Span.point(line),
        column=Span.point(column),
    )


def _collector(context=None) -> IssueCollector:
    return IssueCollector(context or FakeContext(), settle_delay=0)


def _dump(collector: IssueCollector):
    return asyncio.run(collector.dump())


# ---------------------------------------------------------------------------
# Issue invariants
# ---------------------------------------------------------------------------

def test_issue_file_url_defaults_to_page_url():
    assert _issue(file=None).file_url == PAGE
    assert _issue(file="").file_url == PAGE


def test_issue_requires_page_url():
    with pytest.raises(ValueError, match="page_url"):
        _issue(page="")


def test_issue_rejects_unknown_category():
    with pytest.raises(ValueError, match="category"):
        _issue(category="css")


# ---------------------------------------------------------------------------
# add() / dump()
# ---------------------------------------------------------------------------

def test_dump_without_issues_is_empty():
    assert _dump(_collector()) == []


def test_duplicates_are_kept():
    collector = _collector()
    collector.add(_issue())
    collector.add([_issue(), _issue()])

    pages = _dump(collector)
    assert len(pages) == 1
    assert len(pages[0].files) == 1
    assert len(pages[0].files[0].issues) == 3


def test_pages_and_files_sorted_by_url():
    collector = _collector()
    collector.add([
        _issue(page="http://b.test/", file="http://b.test/z.js"),
        _issue(page="http://b.test/", file="http://b.test/a.js"),
        _issue(page="http://a.test/", file="http://a.test/"),
    ])

    pages = _dump(collector)
    assert [p.url for p in pages] == ["http://a.test/", "http://b.test/"]
    assert [f.url for f in pages[1].files] == ["http://b.test/a.js", "http://b.test/z.js"]


def test_issues_sorted_by_line_column_category():
    collector = _collector()
    collector.add([
        _issue(category="network", line=3, column=1, message="n"),
        _issue(category="html", line=1, column=5, message="h"),
        _issue(category="console", line=3, column=1, message="c"),
        _issue(category="console", line=1, column=2, message="first"),
    ])

    issues = _dump(collector)[0].files[0].issues
    assert [i.message for i in issues] == ["first", "h", "c", "n"]


def test_fully_tied_issues_keep_arrival_order():
    collector = _collector()
    collector.add([_issue(message="one"), _issue(message="two"), _issue(message="three")])

    issues = _dump(collector)[0].files[0].issues
    assert [i.message for i in issues] == ["one", "two", "three"]


def test_dump_returns_snapshot():
    collector = _collector()
    collector.add(_issue(message="before"))
    first = _dump(collector)

    collector.add(_issue(message="after"))
    second = _dump(collector)

    assert [i.message for i in first[0].files[0].issues] == ["before"]
    assert [i.message for i in second[0].files[0].issues] == ["before", "after"]


def test_to_dict_shape():
    collector = _collector()
    collector.add(Issue(PAGE, None, "html", "bad", Span(13, 13), Span(13, 16)))

    assert _dump(collector)[0].to_dict() == {
        "url": PAGE,
        "files": [{
            "url": PAGE,
            "issues": [{
                "category": "html",
                "message": "bad",
                "line": {"start": 13, "end": 13},
                "column": {"start": 13, "end": 16},
            }],
        }],
    }


# ---------------------------------------------------------------------------
# wait_for_collection()
# ---------------------------------------------------------------------------

def test_waits_for_network_idle_on_open_pages():
    context = FakeContext()
    first = context.new_page(PAGE)
    closed = context.new_page("http://localhost:3456/closed")
    closed.closed = True

    asyncio.run(_collector(context).wait_for_collection())

    assert first.idle_waits == ["networkidle"]
    assert closed.idle_waits == []


def test_pending_work_is_awaited_before_dump():
    collector = _collector()

    async def late_issue():
        await asyncio.sleep(0.01)
        collector.add(_issue(message="late"))

    async def run():
        collector.register_pending_work(late_issue())
        return await collector.dump()

    pages = asyncio.run(run())
    assert [i.message for i in pages[0].files[0].issues] == ["late"]
    assert collector.pending_count == 0


def test_pending_work_registered_by_pending_work():
    collector = _collector()

    async def inner():
        await asyncio.sleep(0.01)
        collector.add(_issue(message="inner"))

    async def outer():
        await asyncio.sleep(0)
        collector.register_pending_work(inner())

    async def run():
        collector.register_pending_work(outer())
        return await collector.dump()

    pages = asyncio.run(run())
    assert [i.message for i in pages[0].files[0].issues] == ["inner"]


def test_failed_pending_work_aborts_dump():
    collector = _collector()
    collector.add(_issue())

    async def broken():
        raise RuntimeError("validator down")

    async def run():
        collector.register_pending_work(broken())
        return await collector.dump()

    with pytest.raises(RuntimeError, match="validator down"):
        asyncio.run(run())


def test_failure_before_wait_is_not_lost():
    collector = _collector()

    async def broken():
        raise RuntimeError("early")

    async def run():
        collector.register_pending_work(broken())
        await asyncio.sleep(0.01)
        assert collector.pending_count == 0
        await collector.wait_for_collection()

    with pytest.raises(RuntimeError, match="early"):
        asyncio.run(run())

    with pytest.raises(RuntimeError, match="early"):
        _dump(collector)


def test_cancelled_pending_work_counts_as_done():
    collector = _collector()

    async def run():
        task = collector.register_pending_work(asyncio.sleep(10))
        task.cancel()
        return await collector.dump()

    assert asyncio.run(run()) == []


def test_outer_timeout_leaves_pending_work_running():
    collector = _collector()

    async def slow_validation():
        await asyncio.sleep(0.2)
        collector.add(_issue(category="html", message="late markup"))

    async def run():
        task = collector.register_pending_work(slow_validation())
        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(collector.dump(), 0.05)
        assert not task.cancelled()
        return await collector.dump()

    pages = asyncio.run(run())
    assert [i.message for i in pages[0].files[0].issues] == ["late markup"]


def test_registering_pending_work_is_logged(caplog):
    caplog.set_level(logging.DEBUG, logger="page_lint.collector")
    collector = _collector()

    async def run():
        collector.register_pending_work(asyncio.sleep(0))
        await collector.wait_for_collection()

    asyncio.run(run())
    assert "Registered pending task" in caplog.text

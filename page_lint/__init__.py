"""Collect console, network and HTML issues from pages loaded with Playwright."""

from page_lint.adapter import init_collector
from page_lint.collector import IssueCollector
from page_lint.models import FileReport, Issue, IssueEntry, PageReport, Span

__version__ = "0.1.0"

__all__ = [
    "FileReport",
    "Issue",
    "IssueCollector",
    "IssueEntry",
    "PageReport",
    "Span",
    "init_collector",
]

"""Data models for page issue reports.

Contains dataclasses used to structure and serialize the JSON output:
    - Span         (line or column range)
    - Issue        (one diagnostic attributed to a page and a file)
    - IssueEntry   (an issue body stored under its page/file keys)
    - FileReport
    - PageReport
"""

from dataclasses import dataclass, field
from typing import Any

#: Closed set of issue categories
CATEGORIES = ("console", "html", "network")


@dataclass(frozen=True)
class Span:
    start: int
    end: int

    @classmethod
    def point(cls, value: int) -> "Span":
        return cls(value, value)

    def to_dict(self) -> dict[str, int]:
        return {"start": self.start, "end": self.end}


@dataclass(frozen=True)
class IssueEntry:
    category: str
    message: str
    line: Span
    column: Span

    def sort_key(self) -> tuple[int, int, str]:
        return (self.line.start, self.column.start, self.category)

    def to_dict(self) -> dict[str, Any]:
        return {
            "category": self.category,
            "message":  self.message,
            "line":     self.line.to_dict(),
            "column":   self.column.to_dict(),
        }


@dataclass
class Issue:
    """A single diagnostic collected while a page was loaded.

    ``file_url`` falls back to ``page_url`` when no more specific resource
    is known.
    """

    page_url: str
    file_url: str | None
    category: str
    message: str
    line: Span = field(default_factory=lambda: Span(0, 0))
    column: Span = field(default_factory=lambda: Span(0, 0))

    def __post_init__(self) -> None:
        if not self.page_url:
            raise ValueError("Issue.page_url must not be empty")
        if self.category not in CATEGORIES:
            raise ValueError(
                f"Unknown issue category '{self.category}'. Expected one of: {', '.join(CATEGORIES)}"
            )
        if not self.file_url:
            self.file_url = self.page_url

    def entry(self) -> IssueEntry:
        return IssueEntry(
            category=self.category,
            message=self.message,
            line=self.line,
            column=self.column,
        )


@dataclass
class FileReport:
    url: str
    issues: list[IssueEntry] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"url": self.url, "issues": [i.to_dict() for i in self.issues]}


@dataclass
class PageReport:
    url: str
    files: list[FileReport] = field(default_factory=list)

    @property
    def issue_count(self) -> int:
        return sum(len(f.issues) for f in self.files)

    def to_dict(self) -> dict[str, Any]:
        return {"url": self.url, "files": [f.to_dict() for f in self.files]}

"""Report builders for collected page issues.

Functions:
    build_report(pages)  -> dict   JSON report with a per-category summary
    format_text(pages)   -> str    lint-style listing, one line per issue
"""

from datetime import datetime, timezone

from page_lint.models import CATEGORIES, PageReport


def build_report(pages: list[PageReport]) -> dict:
    return {
        "report_type":  "page_issues",
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "summary":      _build_summary(pages),
        "pages":        [p.to_dict() for p in pages],
    }


def format_text(pages: list[PageReport]) -> str:
    total = sum(p.issue_count for p in pages)
    if not total:
        return "No issues found."

    lines: list[str] = []
    for page in pages:
        lines.append(page.url)
        for file in page.files:
            for issue in file.issues:
                lines.append(
                    f"  {file.url}:{issue.line.start}:{issue.column.start}"
                    f"  {issue.category:<7}  {issue.message}"
                )
        lines.append("")

    pages_with_issues = sum(1 for p in pages if p.issue_count)
    lines.append(f"{total} issue(s) on {pages_with_issues} page(s)")
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _build_summary(pages: list[PageReport]) -> dict:
    by_category = {c: 0 for c in CATEGORIES}

    for page in pages:
        for file in page.files:
            for issue in file.issues:
                by_category[issue.category] += 1

    return {
        "total":       sum(by_category.values()),
        "pages":       len(pages),
        "by_category": by_category,
    }

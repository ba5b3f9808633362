"""Summary counts over a session's file reviews."""

from collections import Counter
from collections.abc import Iterable

from models import FileReview, Summary


def summarize(reviews: Iterable[FileReview]) -> Summary:
    """Count files, findings, and findings by kind and category.

    Only kinds/categories that occur appear in the mappings.
    """
    total_files = 0
    files_with_findings = 0
    by_kind: Counter[str] = Counter()
    by_category: Counter[str] = Counter()

    for review in reviews:
        total_files += 1
        if review.findings:
            files_with_findings += 1
        for finding in review.findings:
            by_kind[finding.kind] += 1
            by_category[finding.category] += 1

    return Summary(
        total_files=total_files,
        total_findings=sum(by_kind.values()),
        findings_by_kind=dict(by_kind),
        findings_by_category=dict(by_category),
        files_with_findings=files_with_findings,
    )

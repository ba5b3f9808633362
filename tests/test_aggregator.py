"""Tests for the result aggregator."""

from aggregator import summarize
from models import FileReview, Finding


def _finding(kind="info", category="readability"):
    return Finding(line=1, kind=kind, category=category, message="m")


def test_empty_session():
    summary = summarize([])
    assert summary.total_files == 0
    assert summary.total_findings == 0
    assert summary.findings_by_kind == {}
    assert summary.findings_by_category == {}
    assert summary.files_with_findings == 0


def test_counts_by_kind_and_category():
    reviews = [
        FileReview(path="a.py", findings=[_finding("error", "security"), _finding()]),
        FileReview(path="b.py", findings=[]),
        FileReview(path="c.py", findings=[_finding("error", "performance")]),
    ]
    summary = summarize(reviews)

    assert summary.total_files == 3
    assert summary.total_findings == 3
    assert summary.files_with_findings == 2
    assert summary.findings_by_kind == {"error": 2, "info": 1}
    assert summary.findings_by_category == {
        "security": 1,
        "readability": 1,
        "performance": 1,
    }


def test_unseen_keys_absent():
    summary = summarize([FileReview(path="a.py", findings=[_finding("style")])])
    assert "error" not in summary.findings_by_kind
    assert "security" not in summary.findings_by_category


def test_failed_file_counts_as_file_without_findings():
    reviews = [FileReview(path="a.py", note="Review failed: boom")]
    summary = summarize(reviews)
    assert summary.total_files == 1
    assert summary.files_with_findings == 0

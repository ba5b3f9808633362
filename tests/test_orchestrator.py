"""Tests for review session orchestration."""

from unittest.mock import MagicMock

import pytest

from conftest import FakeSource
from errors import SessionCancelled, SessionStateError
from models import FileReview, LogEvent
from orchestrator import ReviewOrchestrator


def _orchestrator(source, client, sleep=None):
    return ReviewOrchestrator(
        source,
        client,
        pacing_delay=0.5,
        sleep=sleep or MagicMock(),
    )


def _record(orchestrator):
    progress: list = []
    logs: list = []
    orchestrator.on_progress(progress.append)
    orchestrator.on_log(lambda e: logs.append((e.level, e.message, e.detail)))
    return progress, logs


class TestSuccessfulSession:
    def test_reviews_every_file_in_order(self, fake_client):
        source = FakeSource({"b.py": "x = 1\n", "a.js": "let a = 1;\n", "c.go": "package c\n"})
        result = _orchestrator(source, fake_client).run("org/repo", "main", "rules")

        assert [r.path for r in result.reviews] == ["b.py", "a.js", "c.go"]
        assert result.repository_ref == "org/repo"
        assert result.branch_ref == "main"
        assert result.compliance_text == "rules"
        assert source.refs == ["main"]

    def test_heuristic_findings_precede_remote(self, fake_client):
        source = FakeSource({"a.py": "x = 1  \n# TODO tidy\n"})
        result = _orchestrator(source, fake_client).run("r", "main", "")

        findings = result.reviews[0].findings
        assert [f.kind for f in findings] == ["style", "info", "warning"]
        assert findings[-1].message == "remote issue"

    def test_remote_receives_language_and_standards(self, fake_client):
        source = FakeSource({"src/app.tsx": "const a = 1;\n"})
        _orchestrator(source, fake_client).run("r", "main", "No any types")

        args = fake_client.review.call_args.args
        assert args == ("src/app.tsx", "const a = 1;\n", "typescript", "No any types")

    def test_summary_is_consistent(self, fake_client):
        source = FakeSource({"a.py": "x = 1  \n", "b.py": "y = 2\n"})
        result = _orchestrator(source, fake_client).run("r", "main", "")

        summary = result.summary
        assert summary.total_files == 2
        assert summary.total_findings == sum(len(r.findings) for r in result.reviews)
        assert summary.files_with_findings == 2
        assert summary.findings_by_kind == {"style": 1, "warning": 2}
        assert summary.findings_by_category == {"maintainability": 1, "security": 2}

    def test_timestamps_and_id(self, fake_client):
        result = _orchestrator(FakeSource({"a.py": "x\n"}), fake_client).run("r", "m", "")
        assert result.session_id
        assert result.finished_at >= result.started_at
        assert result.elapsed_ms >= 0

    def test_empty_file_skipped_with_warning(self, fake_client):
        source = FakeSource({"a.py": "  \n\t\n", "b.py": "x = 1\n"})
        orchestrator = _orchestrator(source, fake_client)
        _, logs = _record(orchestrator)

        result = orchestrator.run("r", "main", "")

        assert [r.path for r in result.reviews] == ["b.py"]
        assert ("warning", "Skipping empty file", "a.py") in logs
        assert fake_client.review.call_count == 1

    def test_large_file_skips_remote(self, fake_client):
        content = "# TODO split\n" + "x = 1\n" * 10000
        source = FakeSource({"big.py": content})

        result = _orchestrator(source, fake_client).run("r", "main", "")

        review = result.reviews[0]
        fake_client.review.assert_not_called()
        assert len(review.findings) == 1
        assert review.findings[0].kind == "info"
        assert "too large" in review.note

    def test_pacing_between_files(self, fake_client):
        sleep = MagicMock()
        source = FakeSource({"a.py": "a\n", "b.py": "b\n", "c.py": "c\n"})

        _orchestrator(source, fake_client, sleep=sleep).run("r", "main", "")

        assert sleep.call_count == 2
        sleep.assert_called_with(0.5)

    def test_no_pacing_around_files_without_remote_review(self, fake_client):
        sleep = MagicMock()
        source = FakeSource(
            {
                "a.py": "a\n",
                "big.py": "x = 1\n" * 10000,
                "broken.py": OSError("unreadable"),
                "c.py": "c\n",
            }
        )

        _orchestrator(source, fake_client, sleep=sleep).run("r", "main", "")

        assert fake_client.review.call_count == 2
        assert sleep.call_count == 1

    def test_single_remote_file_never_paces(self, fake_client):
        sleep = MagicMock()
        source = FakeSource({"big.py": "x = 1\n" * 10000, "a.py": "a\n"})

        _orchestrator(source, fake_client, sleep=sleep).run("r", "main", "")

        sleep.assert_not_called()


class TestProgress:
    def test_phases_and_counts(self, fake_client):
        source = FakeSource({"a.py": "a\n", "b.py": "b\n", "c.py": "c\n"})
        orchestrator = _orchestrator(source, fake_client)
        progress, _ = _record(orchestrator)

        orchestrator.run("r", "main", "")

        phases = [p.phase for p in progress]
        assert phases[0] == "fetching"
        assert "analyzing" in phases
        assert phases[-1] == "completed"
        per_file = [p for p in progress if p.current_file in ("a.py", "b.py", "c.py")]
        assert [p.processed_files for p in per_file] == [0, 1, 2]
        assert progress[-1].processed_files == 3
        assert progress[-1].total_files == 3
        assert orchestrator.phase == "completed"

    def test_listeners_called_in_registration_order(self, fake_client):
        orchestrator = _orchestrator(FakeSource({"a.py": "a\n"}), fake_client)
        calls: list[str] = []
        orchestrator.on_progress(lambda p: calls.append("first"))
        orchestrator.on_progress(lambda p: calls.append("second"))

        orchestrator.run("r", "main", "")

        assert calls[:2] == ["first", "second"]
        assert len(calls) % 2 == 0

    def test_log_listener_receives_log_events(self, fake_client):
        orchestrator = _orchestrator(FakeSource({"a.py": "a\n"}), fake_client)
        events: list = []
        orchestrator.on_log(events.append)

        orchestrator.run("r", "main", "")

        assert events
        assert all(isinstance(e, LogEvent) for e in events)
        assert events[-1].message == "Review complete"
        assert events[-1].level == "info"

    def test_listener_sees_current_state_synchronously(self, fake_client):
        orchestrator = _orchestrator(FakeSource({"a.py": "a\n"}), fake_client)
        seen: list[bool] = []
        orchestrator.on_progress(lambda p: seen.append(p == orchestrator.progress))

        orchestrator.run("r", "main", "")

        assert seen and all(seen)

    def test_remote_phase_logs_forwarded(self, fake_client):
        def review(path, content, language, compliance_text, log=None, cancel_event=None):
            log("Request built", "gpt-4")
            return FileReview(path=path)

        fake_client.review.side_effect = review
        orchestrator = _orchestrator(FakeSource({"a.py": "a\n"}), fake_client)
        _, logs = _record(orchestrator)

        orchestrator.run("r", "main", "")

        assert ("info", "Request built", "gpt-4") in logs


class TestFailures:
    def test_no_files_fails_session(self, fake_client):
        orchestrator = _orchestrator(FakeSource({}), fake_client)
        progress, logs = _record(orchestrator)

        with pytest.raises(ValueError, match="No analyzable files"):
            orchestrator.run("r", "main", "")

        assert orchestrator.phase == "failed"
        assert progress[-1].phase == "failed"
        assert "No analyzable files" in progress[-1].error_message
        assert logs[-1][0] == "error"

    def test_listing_error_propagates(self, fake_client):
        source = FakeSource({}, list_error=ValueError("Ref 'x' not found"))
        orchestrator = _orchestrator(source, fake_client)

        with pytest.raises(ValueError, match="not found"):
            orchestrator.run("r", "x", "")
        assert orchestrator.progress.error_message == "Ref 'x' not found"

    def test_one_failing_file_does_not_stop_session(self, fake_client):
        original = fake_client.review.side_effect

        def review(path, *args, **kwargs):
            if path == "b.py":
                raise RuntimeError("provider exploded")
            return original(path, *args, **kwargs)

        fake_client.review.side_effect = review
        source = FakeSource({"a.py": "a\n", "b.py": "b\n", "c.py": "c\n"})
        orchestrator = _orchestrator(source, fake_client)
        _, logs = _record(orchestrator)

        result = orchestrator.run("r", "main", "")

        assert len(result.reviews) == 3
        failed = result.reviews[1]
        assert failed.path == "b.py"
        assert failed.findings == ()
        assert "failed" in failed.note.lower()
        assert result.summary.total_files == 3
        assert result.summary.files_with_findings == 2
        assert ("error", "File review failed", "b.py - provider exploded") in logs
        assert orchestrator.phase == "completed"

    def test_read_error_recorded_on_file(self, fake_client):
        source = FakeSource({"a.py": OSError("gone"), "b.py": "b\n"})
        result = _orchestrator(source, fake_client).run("r", "main", "")

        assert result.reviews[0].note == "Review failed: gone"
        assert len(result.reviews[1].findings) == 1

    def test_cancellation_fails_session(self, fake_client):
        source = FakeSource({"a.py": "a\n", "b.py": "b\n"})
        orchestrator = _orchestrator(source, fake_client)
        original = fake_client.review.side_effect

        def review(*args, **kwargs):
            orchestrator.cancel()
            return original(*args, **kwargs)

        fake_client.review.side_effect = review

        with pytest.raises(SessionCancelled):
            orchestrator.run("r", "main", "")

        assert fake_client.review.call_count == 1
        assert orchestrator.phase == "failed"
        assert orchestrator.progress.error_message == "Review cancelled"

    def test_cancellation_from_client_is_not_isolated(self, fake_client):
        fake_client.review.side_effect = SessionCancelled("Review cancelled")
        orchestrator = _orchestrator(FakeSource({"a.py": "a\n"}), fake_client)

        with pytest.raises(SessionCancelled):
            orchestrator.run("r", "main", "")
        assert orchestrator.phase == "failed"

    def test_session_not_resumable(self, fake_client):
        orchestrator = _orchestrator(FakeSource({"a.py": "a\n"}), fake_client)
        orchestrator.run("r", "main", "")

        with pytest.raises(SessionStateError):
            orchestrator.run("r", "main", "")

    def test_failed_session_not_restartable(self, fake_client):
        orchestrator = _orchestrator(FakeSource({}), fake_client)
        with pytest.raises(ValueError):
            orchestrator.run("r", "main", "")

        with pytest.raises(SessionStateError):
            orchestrator.run("r", "main", "")

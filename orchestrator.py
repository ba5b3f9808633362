"""Review session orchestration - source files + heuristics + remote review."""

import logging
import threading
import time
import uuid
from collections.abc import Callable
from datetime import datetime, timezone

import heuristics
from aggregator import summarize
from config import MAX_REMOTE_FILE_CHARS, PACING_DELAY
from errors import SessionCancelled, SessionStateError
from models import FileReview, Finding, LogEvent, ProgressEvent, SessionResult
from reviewer import RemoteReviewClient
from sources import SourceProvider, detect_language

logger = logging.getLogger(__name__)

ProgressListener = Callable[[ProgressEvent], None]
LogListener = Callable[[LogEvent], None]

_LOG_LEVELS = {
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class ReviewOrchestrator:
    """
    Runs one review session over the files of a source provider.

    Phases move idle -> fetching -> analyzing -> completed, or to failed
    from any non-terminal phase. An instance runs at most one session.

    Files are processed strictly one at a time, in the order the source
    lists them. A failure inside one file's pipeline is recorded on that
    file's review and the session moves on; failures while fetching the
    file list (or cancellation) fail the whole session.

    Listeners registered with ``on_progress``/``on_log`` are called
    synchronously, in registration order, before the session continues.
    """

    def __init__(
        self,
        source: SourceProvider,
        client: RemoteReviewClient,
        analyzer: Callable[[str, str], list[Finding]] = heuristics.analyze,
        pacing_delay: float = PACING_DELAY,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._source = source
        self._client = client
        self._analyzer = analyzer
        self._pacing_delay = pacing_delay
        self._sleep = sleep

        self._progress = ProgressEvent()
        self._progress_listeners: list[ProgressListener] = []
        self._log_listeners: list[LogListener] = []
        self._remote_reviews = 0
        self.cancel_event = threading.Event()

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------
    def on_progress(self, callback: ProgressListener) -> None:
        self._progress_listeners.append(callback)

    def on_log(self, callback: LogListener) -> None:
        self._log_listeners.append(callback)

    @property
    def progress(self) -> ProgressEvent:
        return self._progress

    @property
    def phase(self) -> str:
        return self._progress.phase

    def cancel(self) -> None:
        """Request cancellation; takes effect at the next check point."""
        self.cancel_event.set()

    def _update_progress(self, **changes) -> None:
        self._progress = self._progress.model_copy(update=changes)
        for callback in self._progress_listeners:
            callback(self._progress)

    def _emit_log(self, level: str, message: str, detail: str | None = None) -> None:
        if detail:
            logger.log(_LOG_LEVELS[level], "%s: %s", message, detail)
        else:
            logger.log(_LOG_LEVELS[level], "%s", message)
        event = LogEvent(level=level, message=message, detail=detail)
        for callback in self._log_listeners:
            callback(event)

    def _check_cancelled(self) -> None:
        if self.cancel_event.is_set():
            raise SessionCancelled("Review cancelled")

    # ------------------------------------------------------------------
    # Session
    # ------------------------------------------------------------------
    def run(
        self, repository_ref: str, branch_ref: str, compliance_text: str
    ) -> SessionResult:
        """
        Review every file the source lists for *branch_ref*.

        Args:
            repository_ref: Repository identifier, recorded on the result
            branch_ref: Ref passed to the source provider
            compliance_text: Standards text the remote review checks against

        Returns:
            SessionResult with one FileReview per non-empty file

        Raises:
            SessionStateError: If this orchestrator already ran
            SessionCancelled: If cancelled before completion
            Exception: Whatever the source raised while listing files,
                or ValueError when it listed none
        """
        if self._progress.phase != "idle":
            raise SessionStateError(
                f"Session already {self._progress.phase}; create a new orchestrator"
            )

        started_at = datetime.now(timezone.utc)
        started = time.monotonic()
        logger.info("Starting review of %s @ %s", repository_ref, branch_ref)

        try:
            self._update_progress(
                phase="fetching",
                total_files=0,
                processed_files=0,
                current_file="Scanning source files...",
            )
            self._check_cancelled()
            files = list(self._source.list_files(branch_ref))
            if not files:
                raise ValueError("No analyzable files found")

            self._emit_log("info", "File list", f"{len(files)} file(s)")
            self._update_progress(
                phase="analyzing",
                total_files=len(files),
                current_file=f"Found {len(files)} file(s)",
            )

            reviews = self._review_files(files, compliance_text)

        except Exception as e:
            message = str(e) or type(e).__name__
            self._update_progress(phase="failed", error_message=message)
            self._emit_log("error", "Review session failed", message)
            raise

        summary = summarize(reviews)
        finished_at = datetime.now(timezone.utc)
        elapsed_ms = round((time.monotonic() - started) * 1000)

        result = SessionResult(
            session_id=uuid.uuid4().hex,
            repository_ref=repository_ref,
            branch_ref=branch_ref,
            compliance_text=compliance_text,
            reviews=reviews,
            summary=summary,
            started_at=started_at,
            finished_at=finished_at,
            elapsed_ms=elapsed_ms,
        )

        self._emit_log(
            "info",
            "Review complete",
            f"{summary.total_files} file(s) analysed, "
            f"{summary.total_findings} issue(s) found",
        )
        self._update_progress(
            phase="completed",
            processed_files=len(files),
            current_file="Review complete",
        )
        return result

    def _review_files(self, files: list[str], compliance_text: str) -> list[FileReview]:
        """Review *files* in order, isolating per-file failures."""
        reviews: list[FileReview] = []

        for index, path in enumerate(files):
            self._check_cancelled()
            self._update_progress(current_file=path, processed_files=index)

            try:
                review = self._review_file(path, compliance_text)
            except SessionCancelled:
                raise
            except Exception as e:
                self._emit_log("error", "File review failed", f"{path} - {e}")
                review = FileReview(path=path, note=f"Review failed: {e}")

            if review is not None:
                reviews.append(review)

        return reviews

    def _review_file(self, path: str, compliance_text: str) -> FileReview | None:
        """Heuristics then remote review for one file; None if it is empty."""
        content = self._source.read_file(path)
        if not content.strip():
            self._emit_log("warning", "Skipping empty file", path)
            return None

        language = detect_language(path)
        self._emit_log("info", "Language detected", f"{path} -> {language}")

        heuristic_findings = list(self._analyzer(path, content))
        self._emit_log(
            "info", "Heuristic checks", f"{path} -> {len(heuristic_findings)} issue(s)"
        )

        if len(content) > MAX_REMOTE_FILE_CHARS:
            size_kb = len(content) / 1024
            self._emit_log(
                "warning", "File too large for remote review", f"{path} ({size_kb:.1f}KB)"
            )
            return FileReview(
                path=path,
                findings=heuristic_findings,
                note=f"File too large ({size_kb:.1f}KB); remote review skipped, "
                f"{len(heuristic_findings)} heuristic issue(s)",
            )

        # pause between consecutive remote calls, never before the first
        if self._remote_reviews and self._pacing_delay > 0:
            self._sleep(self._pacing_delay)
        self._remote_reviews += 1

        remote = self._client.review(
            path,
            content,
            language,
            compliance_text,
            log=lambda phase, info: self._emit_log("info", phase, info or None),
            cancel_event=self.cancel_event,
        )

        findings = heuristic_findings + list(remote.findings)
        self._emit_log("info", "File reviewed", f"{path} -> {len(findings)} issue(s)")
        return FileReview(
            path=path,
            findings=findings,
            note=f"{len(findings)} issue(s) found "
            f"({len(heuristic_findings)} heuristic); {remote.note}",
        )

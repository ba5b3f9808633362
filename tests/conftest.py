"""Shared test fixtures."""

from unittest.mock import MagicMock

import pytest

from models import FileReview, Finding
from reviewer import RateLimiter, RemoteReviewClient


class FakeClock:
    """Monotonic clock that only moves when told to (or when slept on)."""

    def __init__(self, start: float = 100.0):
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class FakeSource:
    """In-memory source provider; values that are exceptions are raised on read."""

    def __init__(self, files: dict, list_error: Exception | None = None):
        self.files = files
        self.list_error = list_error
        self.refs: list[str] = []

    def list_files(self, ref: str) -> list[str]:
        self.refs.append(ref)
        if self.list_error is not None:
            raise self.list_error
        return list(self.files)

    def read_file(self, path: str) -> str:
        value = self.files[path]
        if isinstance(value, Exception):
            raise value
        return value


def make_response(status: int = 200, json_data=None, text: str = "") -> MagicMock:
    response = MagicMock()
    response.status_code = status
    response.ok = 200 <= status < 400
    response.text = text
    if json_data is None:
        response.json.side_effect = ValueError("not json")
    else:
        response.json.return_value = json_data
    return response


def chat_envelope(content: str) -> dict:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


def remote_finding(message: str = "remote issue") -> Finding:
    return Finding(line=1, kind="warning", category="security", message=message)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def http_session() -> MagicMock:
    return MagicMock()


@pytest.fixture
def client(http_session: MagicMock, clock: FakeClock) -> RemoteReviewClient:
    return RemoteReviewClient(
        session=http_session,
        rate_limiter=RateLimiter(clock=clock, sleep=clock.sleep),
        timeout=5,
        use_mock=False,
    )


@pytest.fixture
def fake_client() -> MagicMock:
    """A stand-in remote client returning one remote finding per file."""
    mock = MagicMock(spec=RemoteReviewClient)

    def review(path, content, language, compliance_text, log=None, cancel_event=None):
        return FileReview(
            path=path,
            findings=[remote_finding()],
            note="Remote review found 1 issue(s)",
        )

    mock.review.side_effect = review
    return mock

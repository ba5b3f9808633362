"""Remote review client - delegates file analysis to a configured provider."""

import json
import logging
import time
from collections.abc import Callable
from typing import Any

import requests

from config import (
    CONNECTION_MODES,
    REQUEST_TIMEOUT,
    USE_MOCK,
)
from errors import ConfigurationError, ProviderRequestError, SessionCancelled
from mock_data import MOCK_CHAT_ENVELOPE, MOCK_MESSAGES_ENVELOPE
from models import CATEGORIES, KINDS, FileReview, Finding, ProviderProfile
from prompts import build_review_prompt
from providers import get_provider, request_max_tokens, wire_format_for
from redaction import redact

logger = logging.getLogger(__name__)

PhaseLog = Callable[[str, str], None]

_PREVIEW_CHARS = 1000
_ERROR_BODY_CHARS = 200
_PROBE_TIMEOUT = 10.0


# ---------------------------------------------------------------------------
# Rate limiting
# ---------------------------------------------------------------------------
class RateLimiter:
    """Minimum spacing between requests, tracked per provider.

    A bucket of one: a request waits until ``min_interval_ms`` has passed
    since the previous request for the same key, then records its own
    dispatch time.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._clock = clock
        self._sleep = sleep
        self._last_request_at: dict[str, float] = {}

    def wait(self, key: str, min_interval_ms: int) -> float:
        """Block until *key* may send again; return the seconds waited."""
        waited = 0.0
        last = self._last_request_at.get(key)
        if last is not None:
            remaining = min_interval_ms / 1000.0 - (self._clock() - last)
            if remaining > 0:
                self._sleep(remaining)
                waited = remaining
        self._last_request_at[key] = self._clock()
        return waited


# ---------------------------------------------------------------------------
# Response normalisation
# ---------------------------------------------------------------------------
def _positive_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    try:
        number = int(float(value))
    except (TypeError, ValueError, OverflowError):
        return None
    return number if number >= 1 else None


def _coerce_finding(item: dict) -> Finding:
    """Map one untrusted JSON object onto a Finding, defaulting bad fields."""
    kind = item.get("type", item.get("kind"))
    category = item.get("category")
    context = item.get("context")
    return Finding(
        line=_positive_int(item.get("line")) or 1,
        column=_positive_int(item.get("column")),
        kind=kind if kind in KINDS else "info",
        category=category if category in CATEGORIES else "maintainability",
        message=str(item.get("message") or "Issue reported without a description"),
        suggestion=str(item.get("suggestion") or ""),
        source_line=str(item.get("code") or ""),
        context_lines=tuple(str(x) for x in context) if isinstance(context, list) else (),
    )


def _leading_lines(content: str, count: int = 3) -> list[str]:
    return content.split("\n")[:count]


def unstructured_finding(content: str) -> Finding:
    """Placeholder finding for a reply that is not a JSON array of objects."""
    head = _leading_lines(content)
    return Finding(
        line=1,
        kind="info",
        category="readability",
        message="Remote review returned unstructured content; raw reply was logged",
        suggestion="Adjust the prompt or model so the reply is a JSON array",
        source_line=head[0],
        context_lines=tuple(head),
    )


def failure_finding(content: str) -> Finding:
    """Placeholder finding recorded when delegated analysis fails."""
    head = _leading_lines(content)
    return Finding(
        line=1,
        kind="error",
        category="maintainability",
        message="Delegated analysis failed; only heuristic checks were applied",
        suggestion=(
            "Check the API key, provider selection, relay endpoint and "
            "network connection, then retry"
        ),
        source_line=head[0],
        context_lines=tuple(head),
    )


def normalize_findings(text: str, content: str) -> list[Finding]:
    """Parse the JSON array embedded in *text* into Findings.

    The array is taken from the first ``[`` to the last ``]``. Anything
    that is not an array of objects yields a single informational finding
    instead of an error.
    """
    trimmed = text.strip()
    start = trimmed.find("[")
    end = trimmed.rfind("]")

    if start >= 0 and end > start:
        try:
            items = json.loads(trimmed[start : end + 1])
        except (ValueError, RecursionError) as e:
            logger.warning("JSON decode error in remote reply: %s", e)
            items = None
        if isinstance(items, list) and all(isinstance(i, dict) for i in items):
            return [_coerce_finding(item) for item in items]

    logger.warning("Remote reply is not a JSON array of objects")
    logger.debug("Raw reply: %s", text)
    return [unstructured_finding(content)]


def _elide_prompt(body: dict) -> dict:
    """Copy of *body* safe for logging: message content replaced."""
    elided = dict(body)
    elided["messages"] = [
        {"role": m.get("role"), "content": "<omitted>"} for m in body.get("messages", [])
    ]
    elided.pop("api_key", None)
    return elided


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------
class RemoteReviewClient:
    """Sends one file at a time to a remote provider and returns its findings.

    Owns the provider credential, connection mode, per-provider rate
    limiting and success/failure statistics. ``review`` never raises for
    provider or configuration problems; those become a single error
    finding. Only cancellation propagates.
    """

    def __init__(
        self,
        session: requests.Session | None = None,
        rate_limiter: RateLimiter | None = None,
        timeout: float = REQUEST_TIMEOUT,
        use_mock: bool = USE_MOCK,
    ):
        self._session = session or requests.Session()
        self._rate_limiter = rate_limiter or RateLimiter()
        self._timeout = timeout
        self.use_mock = use_mock

        self._credential = ""
        self._profile: ProviderProfile | None = None
        self._connection_mode = "auto"
        self._proxy_url = ""

        self._success = 0
        self._fail = 0
        self._last_error: str | None = None
        self._request_counts: dict[str, int] = {}
        self._warned_providers: set[str] = set()

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------
    def configure(
        self,
        credential: str,
        profile: ProviderProfile | str,
        connection_mode: str = "auto",
        proxy_endpoint: str = "",
    ) -> None:
        """Set credential, provider and transport. Makes no network call.

        *profile* may be a ProviderProfile or a built-in provider id.
        """
        if isinstance(profile, str):
            resolved = get_provider(profile)
            if resolved is None:
                raise ConfigurationError(f"Unknown provider: {profile!r}")
            profile = resolved

        mode = connection_mode.lower()
        if mode not in CONNECTION_MODES:
            raise ConfigurationError(
                f"Invalid connection mode: {connection_mode!r}. "
                f"Expected one of {', '.join(CONNECTION_MODES)}."
            )

        self._credential = credential.strip()
        self._profile = profile
        self._connection_mode = mode
        self._proxy_url = proxy_endpoint.strip()

    @property
    def profile(self) -> ProviderProfile | None:
        return self._profile

    @property
    def connection_mode(self) -> str:
        return self._connection_mode

    def stats(self) -> dict:
        """Snapshot of client statistics."""
        return {
            "success": self._success,
            "fail": self._fail,
            "last_error": self._last_error,
            "requests": dict(self._request_counts),
        }

    def _relay_url(self, fmt) -> str:
        return self._proxy_url.rstrip("/") + fmt.relay_path

    # ------------------------------------------------------------------
    # Connectivity probe
    # ------------------------------------------------------------------
    def test_connection(self) -> bool:
        """Best-effort check that an endpoint answers at all.

        Any HTTP status below 500 counts as reachable. Never raises.
        """
        if not self._credential or self._profile is None:
            return False
        if self.use_mock:
            return True

        urls: list[str] = []
        if self._connection_mode != "proxy":
            urls.extend(self._profile.endpoint_candidates)
        if self._connection_mode != "direct" and self._proxy_url:
            urls.append(self._relay_url(wire_format_for(self._profile)))

        for url in urls:
            try:
                response = self._session.head(
                    url, timeout=min(self._timeout, _PROBE_TIMEOUT)
                )
            except requests.RequestException as e:
                logger.warning("Connection test to %s failed: %s", url, e)
                continue
            if response.status_code < 500:
                return True
            logger.warning(
                "Connection test to %s returned HTTP %d", url, response.status_code
            )
        return False

    # ------------------------------------------------------------------
    # Review
    # ------------------------------------------------------------------
    def review(
        self,
        path: str,
        content: str,
        language: str,
        compliance_text: str,
        log: PhaseLog | None = None,
        cancel_event=None,
    ) -> FileReview:
        """Review one file remotely.

        Args:
            path: File path, used in the prompt and the result
            content: Full file content (redacted before sending)
            language: Detected language name
            compliance_text: Standards the review is checked against
            log: Optional callback receiving (phase, info) pairs
            cancel_event: Optional object with ``is_set()``; checked
                before every network dispatch

        Returns:
            FileReview with the remote findings only
        """

        def emit(phase: str, info: str = "") -> None:
            logger.debug("%s: %s", phase, info)
            if log:
                log(phase, info)

        try:
            profile = self._require_configuration()
            fmt = wire_format_for(profile)

            masked = redact(content)

            self._check_cancelled(cancel_event)
            waited = self._rate_limiter.wait(
                profile.provider_id, profile.min_request_interval_ms
            )
            count = self._request_counts.get(profile.provider_id, 0) + 1
            self._request_counts[profile.provider_id] = count
            emit("Rate limit", f"{count} request(s) so far, waited {waited:.2f}s")

            prompt = build_review_prompt(path, masked, language, compliance_text)
            max_tokens = request_max_tokens(profile)
            body = fmt.build_body(profile.provider_id, prompt, max_tokens)
            emit("Request built", f"{profile.name or profile.provider_id} - standards review")
            emit(
                "Parameters",
                json.dumps({"model": profile.provider_id, "max_tokens": max_tokens}),
            )

            started = time.monotonic()
            if self.use_mock:
                envelope = (
                    MOCK_MESSAGES_ENVELOPE
                    if fmt.name == "messages"
                    else MOCK_CHAT_ENVELOPE
                )
                text = fmt.extract_text(envelope)
            else:
                text = self._dispatch(profile, fmt, body, emit, cancel_event)
            duration_ms = round((time.monotonic() - started) * 1000)

            emit("Response received", f"{duration_ms}ms")
            emit("Response preview", text[:_PREVIEW_CHARS])

            findings = normalize_findings(text, content)
            self._success += 1
            note = f"Remote review found {len(findings)} issue(s)"
            emit("Result", note)
            return FileReview(path=path, findings=findings, note=note)

        except SessionCancelled:
            raise
        except Exception as e:
            self._fail += 1
            self._last_error = str(e)
            logger.error("Remote review of %s failed: %s", path, e)
            emit("Request failed", str(e))
            return FileReview(
                path=path,
                findings=[failure_finding(content)],
                note=f"Remote review failed: {e}",
            )

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------
    def _require_configuration(self) -> ProviderProfile:
        if self._profile is None:
            raise ConfigurationError("No provider selected. Call configure() first.")
        if not self._credential:
            raise ConfigurationError("API key not set. Set REVIEW_API_KEY or pass one.")
        return self._profile

    @staticmethod
    def _check_cancelled(cancel_event) -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise SessionCancelled("Review cancelled")

    def _dispatch(self, profile, fmt, body: dict, emit: PhaseLog, cancel_event) -> str:
        """Route by connection mode and return the reply text."""
        mode = self._connection_mode

        if mode != "proxy" and not profile.supports_direct:
            if profile.provider_id not in self._warned_providers:
                self._warned_providers.add(profile.provider_id)
                emit(
                    "Notice",
                    f"{profile.vendor or profile.provider_id} may reject direct "
                    "calls; consider relay mode",
                )

        if mode == "direct":
            return self._send_direct(profile, fmt, body, emit, cancel_event)
        if mode == "proxy":
            return self._send_relay(fmt, body, emit, cancel_event)

        try:
            return self._send_direct(profile, fmt, body, emit, cancel_event)
        except ProviderRequestError as e:
            if not self._proxy_url:
                raise
            logger.warning("Direct dispatch failed (%s); falling back to relay", e)
            emit("Falling back to relay", str(e))
            return self._send_relay(fmt, body, emit, cancel_event)

    def _send_direct(self, profile, fmt, body: dict, emit: PhaseLog, cancel_event) -> str:
        """Try each endpoint candidate in order; raise the last error."""
        headers = {"Content-Type": "application/json"}
        headers.update(fmt.auth_headers(profile, self._credential))

        last_exc: ProviderRequestError | None = None
        for url in profile.endpoint_candidates:
            emit("Request sent", json.dumps({"url": url, "body": _elide_prompt(body)}))
            try:
                return fmt.extract_text(self._post(url, body, headers, cancel_event))
            except ProviderRequestError as e:
                last_exc = e
                logger.warning("Endpoint %s failed: %s", url, e)
                emit("Endpoint failed", str(e))

        if last_exc is None:
            raise ConfigurationError(
                f"Provider {profile.provider_id} has no endpoint candidates"
            )
        raise last_exc

    def _send_relay(self, fmt, body: dict, emit: PhaseLog, cancel_event) -> str:
        """Post the request plus the raw credential to the relay."""
        if not self._proxy_url:
            raise ConfigurationError("Relay endpoint not configured")

        url = self._relay_url(fmt)
        relay_body = {**body, "api_key": self._credential}
        emit("Relay request sent", url)
        envelope = self._post(
            url, relay_body, {"Content-Type": "application/json"}, cancel_event
        )
        return fmt.extract_text(envelope)

    def _post(self, url: str, body: dict, headers: dict, cancel_event) -> Any:
        """POST *body* as JSON and return the decoded envelope.

        A non-JSON success body is returned as plain text.
        """
        self._check_cancelled(cancel_event)
        try:
            response = self._session.post(
                url, json=body, headers=headers, timeout=self._timeout
            )
        except requests.RequestException as e:
            raise ProviderRequestError(f"Request to {url} failed: {e}", url=url) from e

        if not response.ok:
            raise ProviderRequestError(
                f"HTTP {response.status_code} from {url}: "
                f"{response.text[:_ERROR_BODY_CHARS]}",
                url=url,
                status=response.status_code,
            )

        try:
            return response.json()
        except ValueError:
            return response.text

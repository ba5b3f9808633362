"""Shared configuration and utilities for ComplyLens."""

import functools
import logging
import os
import re
import time

from dotenv import load_dotenv

# ---------------------------------------------------------------------------
# Environment & logging (initialised once on first import)
# ---------------------------------------------------------------------------
load_dotenv()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------
USE_MOCK: bool = os.getenv("USE_MOCK", "false").lower() == "true"
API_KEY: str = os.getenv("REVIEW_API_KEY", "")
DEFAULT_MODEL: str = os.getenv("REVIEW_MODEL", "deepseek-chat")
CONNECTION_MODE: str = os.getenv("REVIEW_CONNECTION_MODE", "auto").lower()
PROXY_URL: str = os.getenv("REVIEW_PROXY_URL", "")
REQUEST_TIMEOUT: float = float(os.getenv("REQUEST_TIMEOUT", "60"))
PACING_DELAY: float = float(os.getenv("PACING_DELAY", "0.5"))

# ---------------------------------------------------------------------------
# Limits
# ---------------------------------------------------------------------------
MAX_STANDARDS_CHARS = 8000  # compliance text sent per request
MAX_CODE_CHARS = 15000  # code body sent per request (~3750 tokens)
MAX_REMOTE_FILE_CHARS = 50000  # larger files get heuristics only
MAX_SOURCE_FILES = 20  # candidate files per session
DEFAULT_MAX_TOKENS = 2048
MASK_TOKEN = "***"

CONNECTION_MODES = ("auto", "direct", "proxy")

# owner/repo, or a hosted-git URL (HTTPS with optional .git, or SSH)
_REPO_PATTERN = re.compile(r"^[\w.-]+/[\w.-]+$")
_REPO_URL_PATTERNS = (
    re.compile(r"^https://(?P<host>github\.com|gitlab\.com|gitee\.com)/"
               r"(?P<owner>[\w.-]+)/(?P<repo>[\w.-]+?)(?:\.git)?/?$"),
    re.compile(r"^git@(?P<host>github\.com|gitlab\.com|gitee\.com):"
               r"(?P<owner>[\w.-]+)/(?P<repo>[\w.-]+?)\.git$"),
)


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------
def validate_repo(repo: str) -> str:
    """Normalise a repository reference to 'owner/repo'.

    Accepts 'owner/repo' or a GitHub/GitLab/Gitee URL. Only GitHub URLs
    can be fetched; other hosts raise ``ValueError``.
    """
    repo = repo.strip()
    if _REPO_PATTERN.match(repo):
        return repo

    for pattern in _REPO_URL_PATTERNS:
        match = pattern.match(repo)
        if match:
            if match.group("host") != "github.com":
                raise ValueError(
                    f"Only GitHub repositories are supported, got {repo!r}."
                )
            return f"{match.group('owner')}/{match.group('repo')}"

    raise ValueError(
        f"Invalid repo format: {repo!r}. Expected 'owner/repo' or a "
        f"repository URL (e.g. 'https://github.com/owner/repo')."
    )


# ---------------------------------------------------------------------------
# Retry decorator
# ---------------------------------------------------------------------------
def with_retry(
    max_retries: int = 3,
    base_delay: float = 1.0,
    retryable: tuple[type[Exception], ...] = (Exception,),
):
    """Decorator: retry a function with exponential back-off."""

    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            last_exc: Exception | None = None
            for attempt in range(max_retries):
                try:
                    return func(*args, **kwargs)
                except retryable as exc:
                    last_exc = exc
                    if attempt < max_retries - 1:
                        delay = base_delay * (2**attempt)
                        logger.warning(
                            "Attempt %d/%d for %s failed: %s. Retrying in %.1fs...",
                            attempt + 1,
                            max_retries,
                            func.__name__,
                            exc,
                            delay,
                        )
                        time.sleep(delay)
            raise last_exc  # type: ignore[misc]

        return wrapper

    return decorator

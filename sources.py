"""Source providers: where the files under review come from."""

import logging
from pathlib import Path, PurePosixPath
from typing import Protocol

from config import MAX_SOURCE_FILES

logger = logging.getLogger(__name__)


class SourceProvider(Protocol):
    """Lists candidate files at a ref and reads their contents."""

    def list_files(self, ref: str) -> list[str]: ...

    def read_file(self, path: str) -> str: ...


# Suffix -> language name sent to the reviewer
LANGUAGES: dict[str, str] = {
    "js": "javascript",
    "jsx": "javascript",
    "ts": "typescript",
    "tsx": "typescript",
    "py": "python",
    "java": "java",
    "kt": "kotlin",
    "cpp": "cpp",
    "c": "c",
    "cs": "csharp",
    "go": "go",
    "rs": "rust",
    "php": "php",
    "rb": "ruby",
    "swift": "swift",
    "vue": "vue",
    "svelte": "svelte",
}

SKIP_DIRECTORIES = {
    "node_modules/", "vendor/", "dist/", "build/", ".git/", "__pycache__/", ".venv/",
}

SKIP_SUFFIXES = (".min.js", ".d.ts")


def detect_language(path: str) -> str:
    """Language for *path* by suffix; 'text' when unknown."""
    suffix = PurePosixPath(path).suffix.lstrip(".").lower()
    return LANGUAGES.get(suffix, "text")


def should_review_file(path: str) -> bool:
    """Check if *path* is a recognised source file outside vendored dirs."""
    for skip_dir in SKIP_DIRECTORIES:
        if path.startswith(skip_dir) or f"/{skip_dir}" in path:
            return False
    if path.lower().endswith(SKIP_SUFFIXES):
        return False
    return detect_language(path) != "text"


def select_files(paths: list[str], limit: int = MAX_SOURCE_FILES) -> list[str]:
    """Filter *paths* to reviewable files, keeping order, capped at *limit*."""
    selected = [p for p in paths if should_review_file(p)]
    if len(selected) > limit:
        logger.info("Capping %d candidate files at %d", len(selected), limit)
    return selected[:limit]


class LocalDirectorySource:
    """Files from a directory on disk; *ref* is ignored."""

    def __init__(self, root: str | Path, limit: int = MAX_SOURCE_FILES):
        self.root = Path(root)
        self.limit = limit
        if not self.root.is_dir():
            raise ValueError(f"Not a directory: {self.root}")

    def list_files(self, ref: str = "") -> list[str]:
        paths = sorted(
            p.relative_to(self.root).as_posix()
            for p in self.root.rglob("*")
            if p.is_file()
        )
        return select_files(paths, self.limit)

    def read_file(self, path: str) -> str:
        return (self.root / path).read_text(encoding="utf-8", errors="replace")

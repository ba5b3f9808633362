"""Local heuristic checks that run before (and independently of) remote review.

Each rule is an independent entry in an ordered table. Line rules see one
physical line at a time and report at most one finding for it; file rules
see the whole content. Adding a rule never touches the orchestration code.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass

from models import Finding

MAX_LINE_LENGTH = 120
MAX_DEFINITIONS = 10
CONTEXT_SIZE = 2

_TODO_RE = re.compile(r"todo|fixme", re.IGNORECASE)
_DEBUG_PRINT_RE = re.compile(
    r"console\.|\bprint\(|System\.out\.print|fmt\.Print|println!\(",
    re.IGNORECASE,
)
_COMMENT_RE = re.compile(r"//|(?:^|\s)#")
_DEFINITION_RE = re.compile(
    r"^\s*(?:async\s+)?def\s+\w+"
    r"|\bfunction\s+\w+"
    r"|\bconst\s+\w+\s*=\s*\([^)]*\)\s*=>"
    r"|\bclass\s+\w+",
    re.MULTILINE,
)


@dataclass(frozen=True)
class LineRule:
    """A per-line detector and the finding it produces."""

    name: str
    matches: Callable[[str], bool]
    kind: str
    category: str
    message: str
    suggestion: str


def _has_trailing_whitespace(line: str) -> bool:
    return line.endswith((" ", "\t"))


def _is_too_long(line: str) -> bool:
    return len(line) > MAX_LINE_LENGTH


def _has_todo(line: str) -> bool:
    return _TODO_RE.search(line) is not None


def _has_debug_print(line: str) -> bool:
    """True if a debug print call appears before any comment marker."""
    match = _DEBUG_PRINT_RE.search(line)
    if match is None:
        return False
    comment = _COMMENT_RE.search(line)
    return comment is None or match.start() < comment.start()


LINE_RULES: list[LineRule] = [
    LineRule(
        name="trailing-whitespace",
        matches=_has_trailing_whitespace,
        kind="style",
        category="maintainability",
        message="Line ends with trailing spaces or tabs",
        suggestion="Remove the trailing whitespace",
    ),
    LineRule(
        name="line-too-long",
        matches=_is_too_long,
        kind="warning",
        category="readability",
        message=f"Line is longer than {MAX_LINE_LENGTH} characters",
        suggestion="Split the statement across several lines",
    ),
    LineRule(
        name="todo-comment",
        matches=_has_todo,
        kind="info",
        category="maintainability",
        message="TODO/FIXME marker left in code",
        suggestion="Resolve the item or track it in the issue tracker",
    ),
    LineRule(
        name="debug-print",
        matches=_has_debug_print,
        kind="warning",
        category="best-practices",
        message="Debug print statement in code",
        suggestion="Remove debug output or route it through a logger",
    ),
]


def context_window(
    lines: list[str], index: int, size: int = CONTEXT_SIZE
) -> tuple[str, ...]:
    """Return lines within *size* of *index* (0-based), clipped to the file."""
    start = max(0, index - size)
    end = min(len(lines), index + size + 1)
    return tuple(lines[start:end])


def _finding_at(
    lines: list[str],
    index: int,
    kind: str,
    category: str,
    message: str,
    suggestion: str,
) -> Finding:
    return Finding(
        line=index + 1,
        kind=kind,
        category=category,
        message=message,
        suggestion=suggestion,
        source_line=lines[index],
        context_lines=context_window(lines, index),
    )


# ---------------------------------------------------------------------------
# Whole-file rules
# ---------------------------------------------------------------------------
def _check_trailing_newline(content: str, lines: list[str]) -> list[Finding]:
    if not content or content.endswith("\n"):
        return []
    return [
        _finding_at(
            lines,
            len(lines) - 1,
            "style",
            "maintainability",
            "File does not end with a newline",
            "Add a newline at the end of the file",
        )
    ]


def _check_definition_count(content: str, lines: list[str]) -> list[Finding]:
    count = len(_DEFINITION_RE.findall(content))
    if count <= MAX_DEFINITIONS:
        return []
    return [
        _finding_at(
            lines,
            0,
            "warning",
            "maintainability",
            f"File defines too many functions/classes ({count})",
            "Split the module so each file focuses on one responsibility",
        )
    ]


FILE_RULES: list[Callable[[str, list[str]], list[Finding]]] = [
    _check_trailing_newline,
    _check_definition_count,
]


def analyze(path: str, content: str) -> list[Finding]:
    """Run every heuristic rule over *content* and return the findings.

    Line findings come first in line order (rule-table order within a
    line), followed by whole-file findings. *path* is accepted for
    symmetry with the remote reviewer; no rule depends on it.
    """
    lines = content.split("\n")
    findings: list[Finding] = []

    for index, line in enumerate(lines):
        for rule in LINE_RULES:
            if rule.matches(line):
                findings.append(
                    _finding_at(
                        lines,
                        index,
                        rule.kind,
                        rule.category,
                        rule.message,
                        rule.suggestion,
                    )
                )

    for check in FILE_RULES:
        findings.extend(check(content, lines))

    return findings

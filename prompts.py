"""Prompt templates for standards-based code review."""

from config import MAX_CODE_CHARS, MAX_STANDARDS_CHARS

# =============================================================================
# SHARED PREAMBLE
# =============================================================================

_KIND_GUIDE = (
    "Kind definitions (use these exactly):\n"
    "- error: Will cause bugs, crashes or a security breach\n"
    "- warning: Violates the standards or is likely to cause problems\n"
    "- info: Worth knowing, low risk\n"
    "- style: Formatting or naming only\n"
)

_CATEGORY_GUIDE = (
    "Category must be one of: "
    "security, performance, maintainability, readability, best-practices.\n"
)

_STANDARDS_CONTEXT = (
    "Review STRICTLY against the development standards below. "
    "Cite the relevant rule in the message when a finding violates one.\n"
)

_OUTPUT_RULES = (
    "Respond with ONLY a JSON array. No markdown, no explanation, no extra text.\n"
    "If no issues found, return: []\n"
)

_RESPONSE_SCHEMA = (
    "Each array item is one issue:\n"
    '{{"line":1,"column":1,"type":"error|warning|info|style",'
    '"category":"security|performance|maintainability|readability|best-practices",'
    '"message":"issue","suggestion":"fix","code":"offending line",'
    '"context":["surrounding line"]}}\n'
)


# =============================================================================
# REVIEW PROMPT
# =============================================================================

REVIEW_PROMPT = (
    "You are an expert code reviewer.\n"
    + _STANDARDS_CONTEXT
    + "\n"
    + _KIND_GUIDE
    + _CATEGORY_GUIDE
    + "\n"
    + _RESPONSE_SCHEMA
    + _OUTPUT_RULES
    + "\n"
    "File: {path}\n"
    "Language: {language}\n"
    "\n"
    "Standards:\n"
    "{standards}\n"
    "---\n"
    "Code:\n"
    "{code}\n"
)


def build_review_prompt(path: str, code: str, language: str, standards: str) -> str:
    """Fill REVIEW_PROMPT, truncating standards and code to their limits."""
    return REVIEW_PROMPT.format(
        path=path,
        language=language,
        standards=standards[:MAX_STANDARDS_CHARS],
        code=code[:MAX_CODE_CHARS],
    )

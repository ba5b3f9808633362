"""Secret masking applied to source code before it leaves the process."""

import re
from dataclasses import dataclass

from config import MASK_TOKEN


@dataclass(frozen=True)
class RedactionRule:
    """A named secret pattern.

    ``regex`` either has one group (a prefix that is kept, such as
    ``password = "``) followed by the secret value, or no groups, in which
    case the whole match is the secret.
    """

    name: str
    regex: re.Pattern[str]


# The mask characters never match a value pattern, so re-applying the
# table to masked text leaves it unchanged.
REDACTION_RULES: list[RedactionRule] = [
    RedactionRule(
        name="access_key",
        regex=re.compile(
            r"""(access[_-]?key\s*[:=]\s*["']?)[A-Za-z0-9_\-]+""",
            re.IGNORECASE,
        ),
    ),
    RedactionRule(
        name="secret_key",
        regex=re.compile(
            r"""(secret[_-]?key\s*[:=]\s*["']?)[A-Za-z0-9_\-]+""",
            re.IGNORECASE,
        ),
    ),
    RedactionRule(
        name="token",
        regex=re.compile(
            r"""(token\s*[:=]\s*["']?(?:bearer\s+)?)(?!bearer\s)[A-Za-z0-9._\-]+""",
            re.IGNORECASE,
        ),
    ),
    RedactionRule(
        name="bearer_token",
        regex=re.compile(r"(bearer\s+)[A-Za-z0-9._\-]{8,}", re.IGNORECASE),
    ),
    RedactionRule(
        name="password",
        regex=re.compile(
            r"""(password\s*[:=]\s*["']?)[^\s"'*]+""",
            re.IGNORECASE,
        ),
    ),
    RedactionRule(
        name="aws_access_key_id",
        regex=re.compile(r"AKIA[0-9A-Z]{16}"),
    ),
]


def _mask(rule: RedactionRule, text: str) -> str:
    if rule.regex.groups:
        return rule.regex.sub(lambda m: m.group(1) + MASK_TOKEN, text)
    return rule.regex.sub(MASK_TOKEN, text)


def redact(text: str) -> str:
    """Mask every secret-like value in *text*, applying rules in table order.

    ``password = "hunter2"`` becomes ``password = "***"``.
    """
    for rule in REDACTION_RULES:
        text = _mask(rule, text)
    return text

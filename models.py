"""Data models for review findings, sessions and provider configuration."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

Kind = Literal["error", "warning", "info", "style"]
Category = Literal[
    "security", "performance", "maintainability", "readability", "best-practices"
]
Phase = Literal["idle", "fetching", "analyzing", "completed", "failed"]
LogLevel = Literal["info", "warning", "error"]
WireFormat = Literal["chat-completions", "messages"]

KINDS: tuple[str, ...] = ("error", "warning", "info", "style")
CATEGORIES: tuple[str, ...] = (
    "security",
    "performance",
    "maintainability",
    "readability",
    "best-practices",
)


class Finding(BaseModel):
    """A single review finding."""

    model_config = ConfigDict(frozen=True)

    line: int = Field(ge=1, description="1-based line number in the file")
    column: int | None = Field(default=None, ge=1, description="1-based column")
    kind: Kind = Field(default="info", description="error, warning, info, style")
    category: Category = Field(
        default="maintainability",
        description="security, performance, maintainability, readability, "
        "best-practices",
    )
    message: str = Field(description="What the issue is")
    suggestion: str = Field(default="", description="Suggested remediation")
    source_line: str = Field(default="", description="The offending source line")
    context_lines: tuple[str, ...] = Field(
        default=(), description="Surrounding source lines"
    )


class FileReview(BaseModel):
    """Review results for a single file."""

    model_config = ConfigDict(frozen=True)

    path: str
    findings: tuple[Finding, ...] = ()
    note: str = ""


class Summary(BaseModel):
    """Counts derived from a session's file reviews."""

    model_config = ConfigDict(frozen=True)

    total_files: int = 0
    total_findings: int = 0
    findings_by_kind: dict[str, int] = Field(default_factory=dict)
    findings_by_category: dict[str, int] = Field(default_factory=dict)
    files_with_findings: int = 0


class SessionResult(BaseModel):
    """Complete output of one review session."""

    model_config = ConfigDict(frozen=True)

    session_id: str
    repository_ref: str
    branch_ref: str
    compliance_text: str
    reviews: tuple[FileReview, ...] = ()
    summary: Summary
    started_at: datetime
    finished_at: datetime
    elapsed_ms: int


class ProviderProfile(BaseModel):
    """Static description of a remote analysis provider."""

    model_config = ConfigDict(frozen=True)

    provider_id: str
    wire_format: WireFormat
    endpoint_candidates: tuple[str, ...]
    auth_header_name: str = "Authorization"
    min_request_interval_ms: int = 1000
    name: str = ""
    vendor: str = ""
    description: str = ""
    max_tokens: int = 8192
    supports_direct: bool = True


class ProgressEvent(BaseModel):
    """Snapshot of session progress, broadcast on every state change."""

    model_config = ConfigDict(frozen=True)

    total_files: int = 0
    processed_files: int = 0
    current_file: str = ""
    phase: Phase = "idle"
    error_message: str | None = None


class LogEvent(BaseModel):
    """A log line broadcast to session listeners."""

    model_config = ConfigDict(frozen=True)

    level: LogLevel
    message: str
    detail: str | None = None

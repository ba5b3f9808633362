"""Command-line entry point: review a local directory or a GitHub repository."""

import argparse
import logging
import sys
from pathlib import Path

import config
from errors import ConfigurationError
from github_client import GitHubSource
from models import SessionResult
from orchestrator import ReviewOrchestrator
from providers import available_models
from reviewer import RemoteReviewClient
from sources import LocalDirectorySource

logger = logging.getLogger(__name__)

_KIND_ICONS = {
    "error": "❌",
    "warning": "⚠️ ",
    "info": "ℹ️ ",
    "style": "📐",
}


def print_report(result: SessionResult) -> None:
    """Pretty print a session result."""
    summary = result.summary
    print(f"\n{'=' * 60}")
    print(f"📋 REVIEW: {result.repository_ref} @ {result.branch_ref}")
    print(f"{'=' * 60}")
    print(f"Files reviewed: {summary.total_files}")
    print(f"Files with issues: {summary.files_with_findings}")
    print(f"Total findings: {summary.total_findings}")

    for review in result.reviews:
        print(f"\n{'─' * 60}")
        print(f"📄 {review.path}")
        print(f"   {review.note}")
        print(f"{'─' * 60}")

        if not review.findings:
            print("  ✅ No issues found")
            continue

        for finding in review.findings:
            icon = _KIND_ICONS.get(finding.kind, "❓")
            print(f"\n  {icon} [{finding.kind}/{finding.category}] Line {finding.line}")
            print(f"     {finding.message}")
            if finding.suggestion:
                print(f"     💡 Fix: {finding.suggestion}")

    print(f"\n{'=' * 60}")
    if summary.findings_by_kind:
        by_kind = ", ".join(f"{k}: {v}" for k, v in summary.findings_by_kind.items())
        print(f"By kind: {by_kind}")
    if summary.findings_by_category:
        by_category = ", ".join(
            f"{k}: {v}" for k, v in summary.findings_by_category.items()
        )
        print(f"By category: {by_category}")
    print(f"Review complete in {result.elapsed_ms}ms")
    print(f"{'=' * 60}\n")


def build_parser() -> argparse.ArgumentParser:
    model_ids = [profile.provider_id for profile in available_models()]
    parser = argparse.ArgumentParser(
        prog="complylens",
        description="Review source files against development standards.",
    )
    parser.add_argument("target", help="Local directory, 'owner/repo' or GitHub URL")
    parser.add_argument("--branch", default="", help="Branch or ref (GitHub only)")
    parser.add_argument("--standards", type=Path, help="Plain-text standards file")
    parser.add_argument("--model", default=config.DEFAULT_MODEL, choices=model_ids)
    parser.add_argument(
        "--mode", default=config.CONNECTION_MODE, choices=config.CONNECTION_MODES
    )
    parser.add_argument("--proxy-url", default=config.PROXY_URL)
    parser.add_argument("--json", action="store_true", help="Print the result as JSON")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    standards = ""
    if args.standards:
        standards = args.standards.read_text(encoding="utf-8", errors="replace")

    try:
        if Path(args.target).is_dir():
            source = LocalDirectorySource(args.target)
        else:
            source = GitHubSource(args.target)

        client = RemoteReviewClient()
        client.configure(config.API_KEY, args.model, args.mode, args.proxy_url)
    except (ValueError, ConfigurationError) as e:
        logger.error("Configuration error: %s", e)
        return 1

    if config.USE_MOCK:
        logger.info("[MOCK MODE - No API calls made]")
    elif not client.test_connection():
        logger.warning("Provider connection test failed; continuing anyway")

    orchestrator = ReviewOrchestrator(source, client)
    try:
        result = orchestrator.run(args.target, args.branch, standards)
    except Exception as e:
        logger.error("Review failed: %s", e)
        return 1

    if args.json:
        print(result.model_dump_json(indent=2))
    else:
        print_report(result)
    return 0


if __name__ == "__main__":
    sys.exit(main())

"""GitHub source provider - branches, file listings and contents."""

import logging
import os
from dataclasses import dataclass

import requests.exceptions
from github import Auth, Github
from github.GithubException import GithubException

from config import MAX_SOURCE_FILES, validate_repo, with_retry
from sources import select_files

logger = logging.getLogger(__name__)

_TRANSIENT_ERRORS = (
    requests.exceptions.ConnectionError,
    requests.exceptions.Timeout,
)


@dataclass
class Branch:
    """A repository branch."""

    name: str
    commit: str  # short SHA
    protected: bool


def _api_message(e: GithubException) -> str:
    data = e.data if isinstance(e.data, dict) else {}
    return data.get("message", str(e))


def make_client(token: str | None = None) -> Github:
    """GitHub client, authenticated when a token is available."""
    token = token or os.getenv("GITHUB_TOKEN")
    if not token:
        logger.info("GITHUB_TOKEN not set; using unauthenticated GitHub access")
        return Github()
    return Github(auth=Auth.Token(token))


class GitHubSource:
    """Source provider backed by a GitHub repository.

    Args:
        repo: 'owner/repo' or a GitHub URL
        token: Optional token; falls back to GITHUB_TOKEN
        client: Optional preconfigured ``Github`` instance
        limit: Maximum number of files returned by ``list_files``
    """

    def __init__(
        self,
        repo: str,
        token: str | None = None,
        client: Github | None = None,
        limit: int = MAX_SOURCE_FILES,
    ):
        self.repo = validate_repo(repo)
        self.limit = limit
        self._client = client or make_client(token)
        self._repository = None
        self._ref = ""

    def _get_repository(self):
        if self._repository is None:
            try:
                self._repository = self._client.get_repo(self.repo)
            except GithubException as e:
                if e.status == 404:
                    raise ValueError(f"Repository {self.repo} not found") from e
                raise ValueError(f"GitHub API error: {_api_message(e)}") from e
        return self._repository

    @with_retry(max_retries=3, base_delay=1.0, retryable=_TRANSIENT_ERRORS)
    def list_branches(self) -> list[Branch]:
        """All branches of the repository."""
        repository = self._get_repository()
        try:
            return [
                Branch(
                    name=branch.name,
                    commit=(branch.commit.sha or "")[:7],
                    protected=bool(branch.protected),
                )
                for branch in repository.get_branches()
            ]
        except GithubException as e:
            raise ValueError(f"Failed to list branches: {_api_message(e)}") from e

    @with_retry(max_retries=3, base_delay=1.0, retryable=_TRANSIENT_ERRORS)
    def list_files(self, ref: str) -> list[str]:
        """Reviewable source files at *ref* (branch, tag or SHA)."""
        repository = self._get_repository()
        ref = ref or repository.default_branch
        try:
            tree = repository.get_git_tree(ref, recursive=True)
        except GithubException as e:
            if e.status == 404:
                raise ValueError(f"Ref {ref!r} not found in {self.repo}") from e
            raise ValueError(f"GitHub API error: {_api_message(e)}") from e

        self._ref = ref
        paths = [item.path for item in tree.tree if item.type == "blob"]
        files = select_files(paths, self.limit)
        logger.info(
            "Files to review: %d (filtered from %d)", len(files), len(paths)
        )
        return files

    @with_retry(max_retries=3, base_delay=1.0, retryable=_TRANSIENT_ERRORS)
    def read_file(self, path: str) -> str:
        """Decoded content of *path* at the ref last passed to list_files."""
        repository = self._get_repository()
        try:
            if self._ref:
                contents = repository.get_contents(path, ref=self._ref)
            else:
                contents = repository.get_contents(path)
        except GithubException as e:
            raise ValueError(
                f"Failed to read {path}: {_api_message(e)}"
            ) from e
        if isinstance(contents, list):
            raise ValueError(f"{path} is a directory")
        return contents.decoded_content.decode("utf-8", errors="replace")

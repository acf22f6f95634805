"""Repository listing and pull request reporting."""

from __future__ import annotations

import logging
from collections.abc import Sequence

import httpx

from org_pulls.config import ReportConfig
from org_pulls.github_client import (
    PullRequestSummary,
    Repository,
    fetch_open_pull_requests,
    fetch_organization_repositories,
    fetch_requested_reviewers,
)
from org_pulls.observability import RunSummary
from org_pulls.output import render_repository_lines
from org_pulls.schema import PullRequestEntry, RepositoryEntry

logger = logging.getLogger(__name__)


def repository_name_key(repository: Repository) -> str:
    """Sort key ordering repositories by name (ordinal string comparison)."""
    return repository.name


def list_repositories(
    *,
    client: httpx.Client,
    org: str,
    config: ReportConfig | None = None,
) -> list[Repository]:
    """Return every repository of ``org`` sorted ascending by name."""
    options = config or ReportConfig()
    repositories = fetch_organization_repositories(
        client=client,
        org=org,
        per_page=options.per_page,
        max_attempts=options.max_attempts,
    )
    logger.debug("Fetched %d repositories for %s", len(repositories), org)
    return sorted(repositories, key=repository_name_key)


def _build_pull_request_entry(
    *,
    client: httpx.Client,
    org: str,
    repository: Repository,
    pull_request: PullRequestSummary,
    options: ReportConfig,
) -> PullRequestEntry:
    reviewers = fetch_requested_reviewers(
        client=client,
        org=org,
        repo=repository.name,
        pr_number=pull_request.number,
        max_attempts=options.max_attempts,
    )
    return PullRequestEntry(
        number=pull_request.number,
        title=pull_request.title,
        owner_login=pull_request.author_login,
        reviewer_logins=reviewers.logins,
        assignee_login=pull_request.assignee_login,
    )


def build_repository_entry(
    *,
    client: httpx.Client,
    org: str,
    repository: Repository,
    config: ReportConfig | None = None,
) -> RepositoryEntry:
    """Fetch open pull requests and their reviewers for one repository."""
    options = config or ReportConfig()
    pull_requests = fetch_open_pull_requests(
        client=client,
        org=org,
        repo=repository.name,
        max_attempts=options.max_attempts,
    )
    entries = [
        _build_pull_request_entry(
            client=client,
            org=org,
            repository=repository,
            pull_request=pull_request,
            options=options,
        )
        for pull_request in pull_requests
    ]
    return RepositoryEntry(name=repository.name, pull_requests=tuple(entries))


def report_pull_requests(
    *,
    client: httpx.Client,
    org: str,
    repositories: Sequence[Repository],
    config: ReportConfig | None = None,
) -> RunSummary:
    """Log the pull request tree for each repository in order.

    Any API or transport error propagates immediately; repositories after the
    failing one are not fetched.
    """
    options = config or ReportConfig()
    summary = RunSummary()
    total = len(repositories)
    for index, repository in enumerate(repositories):
        entry = build_repository_entry(
            client=client,
            org=org,
            repository=repository,
            config=options,
        )
        summary.repositories += 1
        if entry.pull_requests:
            summary.repositories_with_pull_requests += 1
            summary.pull_requests += len(entry.pull_requests)
            summary.reviewers += sum(len(pr.reviewer_logins) for pr in entry.pull_requests)

        for line in render_repository_lines(entry, index=index, total=total):
            logger.info(line)

    logger.debug(
        "Reported %d pull requests across %d of %d repositories",
        summary.pull_requests,
        summary.repositories_with_pull_requests,
        summary.repositories,
    )
    return summary

"""Tests for repository listing and pull request reporting."""

from __future__ import annotations

import logging
from collections.abc import Callable

import httpx
import pytest
from org_pulls.config import ReportConfig
from org_pulls.github_client import GitHubApiError, Repository
from org_pulls.report import (
    list_repositories,
    report_pull_requests,
    repository_name_key,
)

REPORT_LOGGER = "org_pulls.report"


def make_client(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.Client:
    """Create an HTTP client backed by mock transport."""
    transport = httpx.MockTransport(handler)
    return httpx.Client(base_url="https://api.github.com", transport=transport)


def make_org_handler(
    pulls: dict[str, list[dict[str, object]]],
    reviewers: dict[tuple[str, int], list[str]],
    *,
    requested: list[str] | None = None,
    failing_path: str | None = None,
) -> Callable[[httpx.Request], httpx.Response]:
    """Serve pull request and reviewer payloads for the acme organization."""

    def handler(request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if requested is not None:
            requested.append(path)
        if path == failing_path:
            return httpx.Response(status_code=500)
        parts = path.strip("/").split("/")
        if parts[:2] == ["repos", "acme"] and parts[3:] == ["pulls"]:
            return httpx.Response(status_code=200, json=pulls.get(parts[2], []))
        if parts[:2] == ["repos", "acme"] and parts[-1] == "requested_reviewers":
            logins = reviewers.get((parts[2], int(parts[4])), [])
            return httpx.Response(
                status_code=200,
                json={"users": [{"login": login} for login in logins], "teams": []},
            )
        raise AssertionError(f"Unexpected endpoint {path}")

    return handler


def pr_row(number: int, title: str, author: str | None, assignee: str | None = None) -> dict:
    return {
        "number": number,
        "title": title,
        "user": {"login": author} if author else None,
        "assignee": {"login": assignee} if assignee else None,
    }


def report_lines(caplog: pytest.LogCaptureFixture) -> list[str]:
    return [
        record.getMessage()
        for record in caplog.records
        if record.name == REPORT_LOGGER and record.levelno == logging.INFO
    ]


@pytest.mark.unit
def test_repository_name_key_uses_ordinal_ordering() -> None:
    repositories = [Repository("beta"), Repository("Zeta"), Repository("alpha")]
    assert [r.name for r in sorted(repositories, key=repository_name_key)] == [
        "Zeta",
        "alpha",
        "beta",
    ]


@pytest.mark.unit
def test_list_repositories_concatenates_pages_and_sorts() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        page = request.url.params.get("page")
        if page == "1":
            return httpx.Response(
                status_code=200,
                json=[{"name": "beta"}],
                headers={
                    "Link": '<https://api.github.com/orgs/acme/repos?per_page=2&page=2>; rel="next"'
                },
            )
        return httpx.Response(status_code=200, json=[{"name": "alpha"}])

    with make_client(handler) as client:
        repositories = list_repositories(
            client=client,
            org="acme",
            config=ReportConfig(per_page=2),
        )

    assert [repository.name for repository in repositories] == ["alpha", "beta"]


@pytest.mark.unit
def test_report_renders_tree_and_skips_empty_repositories(
    caplog: pytest.LogCaptureFixture,
) -> None:
    caplog.set_level(logging.INFO, logger="org_pulls")
    pulls = {
        "alpha": [pr_row(1, "Add docs", "alice", assignee="dave")],
        "beta": [],
        "gamma": [
            pr_row(3, "Fix build", "bob"),
            pr_row(4, "Nobody home", None),
        ],
    }
    reviewers = {("alpha", 1): ["bob"], ("gamma", 3): ["carol", "erin"]}
    repositories = [Repository("alpha"), Repository("beta"), Repository("gamma")]

    with make_client(make_org_handler(pulls, reviewers)) as client:
        summary = report_pull_requests(client=client, org="acme", repositories=repositories)

    assert report_lines(caplog) == [
        "├ alpha:",
        "│ └ PR: Add docs",
        "│   ├ Owner: alice",
        "│   ├ Reviewer 1: bob",
        "│   └ Assignee: dave",
        "└ gamma:",
        "  ├ PR: Fix build",
        "  │ ├ Owner: bob",
        "  │ ├ Reviewer 1: carol",
        "  │ └ Reviewer 2: erin",
        "  └ PR: Nobody home",
    ]
    assert summary.repositories == 3
    assert summary.repositories_with_pull_requests == 2
    assert summary.pull_requests == 3
    assert summary.reviewers == 3


@pytest.mark.unit
def test_repository_glyph_counts_repositories_that_print_nothing(
    caplog: pytest.LogCaptureFixture,
) -> None:
    caplog.set_level(logging.INFO, logger="org_pulls")
    pulls = {"alpha": [pr_row(1, "Only change", None)]}
    repositories = [Repository("alpha"), Repository("omega")]

    with make_client(make_org_handler(pulls, {})) as client:
        report_pull_requests(client=client, org="acme", repositories=repositories)

    assert report_lines(caplog) == ["├ alpha:", "│ └ PR: Only change"]


@pytest.mark.unit
@pytest.mark.parametrize(
    "failing_path",
    [
        "/repos/acme/alpha/pulls",
        "/repos/acme/alpha/pulls/1/requested_reviewers",
    ],
)
def test_report_stops_at_first_api_error(failing_path: str) -> None:
    requested: list[str] = []
    pulls = {
        "alpha": [pr_row(1, "First", "alice"), pr_row(2, "Second", "bob")],
        "beta": [pr_row(5, "Later", "carol")],
    }
    handler = make_org_handler(pulls, {}, requested=requested, failing_path=failing_path)

    with make_client(handler) as client, pytest.raises(GitHubApiError):
        report_pull_requests(
            client=client,
            org="acme",
            repositories=[Repository("alpha"), Repository("beta")],
        )

    assert requested[-1] == failing_path
    assert not any(path.startswith("/repos/acme/beta") for path in requested)


@pytest.mark.unit
def test_report_keeps_output_of_repositories_before_failure(
    caplog: pytest.LogCaptureFixture,
) -> None:
    caplog.set_level(logging.INFO, logger="org_pulls")
    pulls = {"alpha": [pr_row(1, "Done", "alice")], "beta": [pr_row(2, "Broken", "bob")]}
    handler = make_org_handler(
        pulls,
        {},
        failing_path="/repos/acme/beta/pulls/2/requested_reviewers",
    )

    with make_client(handler) as client, pytest.raises(GitHubApiError):
        report_pull_requests(
            client=client,
            org="acme",
            repositories=[Repository("alpha"), Repository("beta")],
        )

    assert report_lines(caplog) == ["├ alpha:", "│ └ PR: Done", "│   └ Owner: alice"]

"""Typer CLI for the organization pull request report."""

from __future__ import annotations

import logging
from typing import Annotated

import httpx
import typer

from org_pulls.config import ReportConfig
from org_pulls.github_client import (
    GITHUB_MAX_PER_PAGE,
    GitHubApiError,
    GitHubAuthError,
    GitHubInputError,
    build_github_client,
    get_github_token,
)
from org_pulls.observability import configure_logging
from org_pulls.report import list_repositories, report_pull_requests

logger = logging.getLogger(__name__)

app = typer.Typer(help="List open pull requests for every repository in a GitHub organization.")


@app.command(context_settings={"allow_extra_args": True})
def report_command(
    org: Annotated[str, typer.Argument(help="GitHub organization name.")] = "",
    per_page: Annotated[
        int,
        typer.Option(min=1, max=GITHUB_MAX_PER_PAGE, help="Repositories requested per page."),
    ] = GITHUB_MAX_PER_PAGE,
    timeout_seconds: Annotated[
        int, typer.Option(min=1, help="GitHub API timeout in seconds.")
    ] = 20,
    trust_env: Annotated[
        bool,
        typer.Option(
            "--trust-env/--no-trust-env",
            help="Use proxy/SSL environment variables from the current shell.",
        ),
    ] = True,
    max_attempts: Annotated[
        int,
        typer.Option(min=1, help="Attempts per request; values above 1 retry 429/5xx responses."),
    ] = 1,
    timestamps: Annotated[
        bool,
        typer.Option("--timestamps/--no-timestamps", help="Prefix output lines with a timestamp."),
    ] = True,
    verbose: Annotated[bool, typer.Option(help="Log requests and a run summary.")] = False,
) -> None:
    """Print a repository -> pull request -> owner/reviewers/assignee tree."""
    if not org.strip():
        raise typer.Exit(code=1)

    try:
        token = get_github_token()
    except GitHubAuthError as error:
        raise typer.Exit(code=1) from error

    config = ReportConfig(
        per_page=per_page,
        timeout_seconds=timeout_seconds,
        trust_env=trust_env,
        max_attempts=max_attempts,
        timestamps=timestamps,
        verbose=verbose,
    )
    configure_logging(timestamps=config.timestamps, verbose=config.verbose)

    try:
        with build_github_client(
            token,
            timeout_seconds=config.timeout_seconds,
            trust_env=config.trust_env,
        ) as client:
            repositories = list_repositories(client=client, org=org, config=config)
            report_pull_requests(
                client=client,
                org=org,
                repositories=repositories,
                config=config,
            )
    except (GitHubApiError, GitHubAuthError, GitHubInputError) as error:
        logger.error("\tError: %s", error)
        raise typer.Exit(code=1) from error
    except httpx.HTTPError as error:
        logger.error("\tError: network error (%s)", error)
        raise typer.Exit(code=1) from error
    except ImportError as error:
        logger.error(
            "\tError: proxy transport dependency is missing. "
            "Retry with --no-trust-env, or install `httpx[socks]`."
        )
        raise typer.Exit(code=1) from error

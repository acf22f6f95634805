"""GitHub API wrapper and auth helpers."""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
from urllib.parse import parse_qs, quote, urlsplit

import httpx
from dotenv import load_dotenv

GITHUB_API_BASE_URL = "https://api.github.com"
GITHUB_API_VERSION = "2022-11-28"
GITHUB_TOKEN_ENV_VAR = "GITHUB_API_KEY"
GITHUB_MAX_PER_PAGE = 100
DEFAULT_MAX_ATTEMPTS = 1
DEFAULT_RETRY_BACKOFF_SECONDS = 0.5
NO_NEXT_PAGE = 0

logger = logging.getLogger(__name__)


class GitHubAuthError(RuntimeError):
    """Raised when required GitHub authentication is missing."""


class GitHubInputError(ValueError):
    """Raised when organization, repository or PR input values are invalid."""


class GitHubApiError(RuntimeError):
    """Raised when a GitHub API request fails."""

    def __init__(self, message: str, *, status_code: int, endpoint: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.endpoint = endpoint


class GitHubRateLimitError(GitHubApiError):
    """Raised when GitHub API rate limiting prevents request completion."""


@dataclass(frozen=True, slots=True)
class Repository:
    """Repository owned by an organization."""

    name: str


@dataclass(frozen=True, slots=True)
class PullRequestSummary:
    """Open pull request fields needed for the report."""

    number: int
    title: str
    author_login: str
    assignee_login: str


@dataclass(frozen=True, slots=True)
class RequestedReviewers:
    """Reviewer logins for one pull request, in API order."""

    logins: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True, slots=True)
class Page:
    """One page of list results plus the next-page indicator."""

    rows: tuple[dict[str, Any], ...]
    next_page: int


def _ensure_mapping(value: object, *, context: str) -> dict[str, Any]:
    """Ensure a response fragment is a JSON object."""
    if not isinstance(value, dict):
        raise GitHubApiError(
            f"Expected JSON object for {context}.",
            status_code=500,
            endpoint=context,
        )
    return value


def _require_str(payload: dict[str, Any], *, key: str, endpoint: str) -> str:
    """Read a required string field from payload."""
    value = payload.get(key)
    if not isinstance(value, str):
        raise GitHubApiError(
            f"Expected string field '{key}' in GitHub response.",
            status_code=500,
            endpoint=endpoint,
        )
    return value


def _require_int(payload: dict[str, Any], *, key: str, endpoint: str) -> int:
    """Read a required integer field from payload."""
    value = payload.get(key)
    if not isinstance(value, int) or isinstance(value, bool):
        raise GitHubApiError(
            f"Expected integer field '{key}' in GitHub response.",
            status_code=500,
            endpoint=endpoint,
        )
    return value


def _optional_login(payload: dict[str, Any], *, key: str, endpoint: str) -> str:
    """Read the login of a nullable user object, defaulting to an empty string."""
    user = payload.get(key)
    if user is None:
        return ""
    if not isinstance(user, dict):
        raise GitHubApiError(
            f"Expected '{key}' to be an object or null in GitHub response.",
            status_code=500,
            endpoint=endpoint,
        )
    login = user.get("login")
    if login is None:
        return ""
    if not isinstance(login, str):
        raise GitHubApiError(
            f"Expected '{key}.login' to be a string or null in GitHub response.",
            status_code=500,
            endpoint=endpoint,
        )
    return login


def _response_json(response: httpx.Response, *, endpoint: str) -> object:
    """Decode a JSON response body, failing with a typed error for non-JSON bodies."""
    try:
        return response.json()
    except ValueError as error:
        raise GitHubApiError(
            "Expected JSON body in GitHub response.",
            status_code=response.status_code,
            endpoint=endpoint,
        ) from error


def _rows_from_payload(payload: object, *, endpoint: str) -> tuple[dict[str, Any], ...]:
    """Validate a JSON array of objects."""
    if not isinstance(payload, list):
        raise GitHubApiError(
            "Expected JSON array in GitHub response.",
            status_code=500,
            endpoint=endpoint,
        )
    rows: list[dict[str, Any]] = []
    for item in payload:
        if not isinstance(item, dict):
            raise GitHubApiError(
                "Expected all array items to be JSON objects in GitHub response.",
                status_code=500,
                endpoint=endpoint,
            )
        rows.append(item)
    return tuple(rows)


def parse_next_page(response: httpx.Response) -> int:
    """Return the page number of the Link rel="next" target, or 0 when absent."""
    next_link = response.links.get("next")
    if not next_link:
        return NO_NEXT_PAGE
    url = next_link.get("url")
    if not url:
        return NO_NEXT_PAGE
    page_values = parse_qs(urlsplit(url).query).get("page")
    if not page_values:
        return NO_NEXT_PAGE
    try:
        page = int(page_values[0])
    except ValueError:
        return NO_NEXT_PAGE
    return page if page > 0 else NO_NEXT_PAGE


def _is_retryable_status(status_code: int) -> bool:
    """Return whether a status code is retryable under policy."""
    return status_code == 429 or 500 <= status_code < 600


def _parse_retry_after_seconds(response: httpx.Response) -> float | None:
    """Parse Retry-After header as seconds if present and valid."""
    retry_after = response.headers.get("Retry-After")
    if retry_after is None:
        return None
    try:
        parsed_value = float(retry_after)
    except ValueError:
        return None
    if parsed_value < 0:
        return None
    return parsed_value


def _compute_retry_delay_seconds(response: httpx.Response, *, attempt_number: int) -> float:
    """Compute retry delay from Retry-After header or exponential backoff."""
    retry_after_seconds = _parse_retry_after_seconds(response)
    if retry_after_seconds is not None:
        return retry_after_seconds
    return DEFAULT_RETRY_BACKOFF_SECONDS * (2 ** (attempt_number - 1))


def _sleep_for_retry(seconds: float) -> None:
    """Sleep helper for retry delays (wrapped for deterministic tests)."""
    time.sleep(seconds)


def _raise_http_error(response: httpx.Response, endpoint: str) -> None:
    """Raise a typed error for a non-success GitHub API response."""
    message = f"GitHub API request failed with status {response.status_code} for '{endpoint}'."
    if response.status_code == 429:
        raise GitHubRateLimitError(
            message,
            status_code=response.status_code,
            endpoint=endpoint,
        )
    raise GitHubApiError(
        message,
        status_code=response.status_code,
        endpoint=endpoint,
    )


def _request(
    client: httpx.Client,
    endpoint: str,
    *,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> httpx.Response:
    """Perform a GET request; 429/5xx responses are retried only when max_attempts > 1."""
    if max_attempts < 1:
        raise GitHubInputError(f"Invalid max_attempts '{max_attempts}'. Expected at least 1.")

    for attempt_number in range(1, max_attempts + 1):
        logger.debug("GET %s (attempt %d/%d)", endpoint, attempt_number, max_attempts)
        response = client.get(endpoint)
        if response.status_code < 400:
            return response

        should_retry = _is_retryable_status(response.status_code) and attempt_number < max_attempts
        if not should_retry:
            _raise_http_error(response, endpoint)

        delay_seconds = _compute_retry_delay_seconds(response, attempt_number=attempt_number)
        _sleep_for_retry(delay_seconds)

    raise RuntimeError("Unexpected retry loop exit without a response.")


def _request_page(
    client: httpx.Client,
    endpoint: str,
    *,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> Page:
    """Fetch one page of a list endpoint."""
    response = _request(client, endpoint, max_attempts=max_attempts)
    payload = _response_json(response, endpoint=endpoint)
    return Page(
        rows=_rows_from_payload(payload, endpoint=endpoint),
        next_page=parse_next_page(response),
    )


def _paginate(
    client: httpx.Client,
    base_endpoint: str,
    *,
    params: str = "",
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> list[dict[str, Any]]:
    """Collect rows from every page until the next-page indicator is 0."""
    rows: list[dict[str, Any]] = []
    page = 1
    while True:
        query = f"{params}&page={page}" if params else f"page={page}"
        page_result = _request_page(
            client,
            f"{base_endpoint}?{query}",
            max_attempts=max_attempts,
        )
        rows.extend(page_result.rows)
        if page_result.next_page == NO_NEXT_PAGE:
            break
        page = page_result.next_page
    return rows


def validate_name(value: str, *, kind: str) -> str:
    """Validate a non-empty organization or repository name."""
    normalized = value.strip()
    if not normalized or "/" in normalized:
        raise GitHubInputError(f"Invalid {kind} name '{value}'. Expected a non-empty name.")
    return normalized


def validate_pr_number(pr_number: int) -> int:
    """Validate and normalize pull request number input."""
    if pr_number <= 0:
        raise GitHubInputError(f"Invalid PR number '{pr_number}'. Expected a positive integer.")
    return pr_number


def fetch_organization_repositories(
    *,
    client: httpx.Client,
    org: str,
    per_page: int = GITHUB_MAX_PER_PAGE,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> list[Repository]:
    """Fetch every repository of an organization, following pagination."""
    organization = validate_name(org, kind="organization")
    if not 1 <= per_page <= GITHUB_MAX_PER_PAGE:
        raise GitHubInputError(
            f"Invalid per_page '{per_page}'. Expected a value between 1 and {GITHUB_MAX_PER_PAGE}."
        )
    base_endpoint = f"/orgs/{quote(organization, safe='')}/repos"

    rows = _paginate(
        client,
        base_endpoint,
        params=f"per_page={per_page}",
        max_attempts=max_attempts,
    )
    return [Repository(name=_require_str(row, key="name", endpoint=base_endpoint)) for row in rows]


def fetch_open_pull_requests(
    *,
    client: httpx.Client,
    org: str,
    repo: str,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> list[PullRequestSummary]:
    """Fetch open pull requests for one repository in API order."""
    organization = validate_name(org, kind="organization")
    repository = validate_name(repo, kind="repository")
    base_endpoint = f"/repos/{quote(organization, safe='')}/{quote(repository, safe='')}/pulls"

    rows = _paginate(client, base_endpoint, max_attempts=max_attempts)
    return [
        PullRequestSummary(
            number=_require_int(row, key="number", endpoint=base_endpoint),
            title=_require_str(row, key="title", endpoint=base_endpoint),
            author_login=_optional_login(row, key="user", endpoint=base_endpoint),
            assignee_login=_optional_login(row, key="assignee", endpoint=base_endpoint),
        )
        for row in rows
    ]


def fetch_requested_reviewers(
    *,
    client: httpx.Client,
    org: str,
    repo: str,
    pr_number: int,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> RequestedReviewers:
    """Fetch requested reviewer logins for one pull request."""
    organization = validate_name(org, kind="organization")
    repository = validate_name(repo, kind="repository")
    normalized_pr_number = validate_pr_number(pr_number)
    endpoint = (
        f"/repos/{quote(organization, safe='')}/{quote(repository, safe='')}"
        f"/pulls/{normalized_pr_number}/requested_reviewers"
    )

    response = _request(client, endpoint, max_attempts=max_attempts)
    payload = _ensure_mapping(_response_json(response, endpoint=endpoint), context=endpoint)
    users = payload.get("users")
    if users is None:
        return RequestedReviewers()
    if not isinstance(users, list):
        raise GitHubApiError(
            "Expected 'users' to be an array in GitHub response.",
            status_code=500,
            endpoint=endpoint,
        )

    logins: list[str] = []
    for user in _rows_from_payload(users, endpoint=endpoint):
        logins.append(_require_str(user, key="login", endpoint=endpoint))
    return RequestedReviewers(logins=tuple(logins))


def get_github_token() -> str:
    """Read GitHub token from environment (or .env) and fail fast if missing."""
    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)

    token = os.getenv(GITHUB_TOKEN_ENV_VAR)
    if token:
        return token

    message = f"Missing GitHub token. Set {GITHUB_TOKEN_ENV_VAR}."
    raise GitHubAuthError(message)


def build_github_client(
    token: str,
    timeout_seconds: int = 20,
    *,
    trust_env: bool = True,
) -> httpx.Client:
    """Build an authenticated GitHub HTTP client. No request is made here."""
    if not token:
        raise GitHubAuthError("Missing GitHub token.")
    headers = {
        "Accept": "application/vnd.github+json",
        "Authorization": f"Bearer {token}",
        "X-GitHub-Api-Version": GITHUB_API_VERSION,
    }
    return httpx.Client(
        base_url=GITHUB_API_BASE_URL,
        headers=headers,
        timeout=timeout_seconds,
        trust_env=trust_env,
    )

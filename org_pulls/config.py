"""Run options for the pull request report."""

from __future__ import annotations

from dataclasses import dataclass

from org_pulls.github_client import DEFAULT_MAX_ATTEMPTS, GITHUB_MAX_PER_PAGE


@dataclass(frozen=True, slots=True)
class ReportConfig:
    """Options controlling API access and log output for one run."""

    per_page: int = GITHUB_MAX_PER_PAGE
    timeout_seconds: int = 20
    trust_env: bool = True
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    timestamps: bool = True
    verbose: bool = False

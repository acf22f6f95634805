"""Tree rendering for the organization pull request report."""

from __future__ import annotations

from org_pulls.schema import PullRequestEntry, RepositoryEntry

BRANCH_GLYPH = "├"
LAST_BRANCH_GLYPH = "└"
PIPE_GLYPH = "│"
BLANK_GLYPH = " "


def tree_glyphs(index: int, total: int, *, trailing: bool = False) -> tuple[str, str]:
    """Return (connector, continuation) glyphs for the item at ``index`` of ``total``.

    ``trailing`` marks that another sibling line follows the counted items, so
    none of them is the last one at this level.
    """
    if index < 0 or index >= total:
        raise ValueError(f"index {index} out of range for {total} items")
    if index == total - 1 and not trailing:
        return LAST_BRANCH_GLYPH, BLANK_GLYPH
    return BRANCH_GLYPH, PIPE_GLYPH


def render_pull_request_lines(pull_request: PullRequestEntry, *, prefix: str) -> list[str]:
    """Render the owner/reviewer/assignee lines under one pull request."""
    people = []
    if pull_request.has_owner:
        people.append(f"Owner: {pull_request.owner_login}")
    for position, login in enumerate(pull_request.reviewer_logins, start=1):
        people.append(f"Reviewer {position}: {login}")

    lines = []
    for index, label in enumerate(people):
        glyph, _ = tree_glyphs(index, len(people), trailing=pull_request.has_assignee)
        lines.append(f"{prefix} {glyph} {label}")
    if pull_request.has_assignee:
        glyph, _ = tree_glyphs(0, 1)
        lines.append(f"{prefix} {glyph} Assignee: {pull_request.assignee_login}")
    return lines


def render_repository_lines(repository: RepositoryEntry, *, index: int, total: int) -> list[str]:
    """Render one repository subtree; a repository with no pull requests renders nothing."""
    if not repository.pull_requests:
        return []

    repo_glyph, repo_continuation = tree_glyphs(index, total)
    lines = [f"{repo_glyph} {repository.name}:"]
    pull_requests = repository.pull_requests
    for pr_index, pull_request in enumerate(pull_requests):
        pr_glyph, pr_continuation = tree_glyphs(pr_index, len(pull_requests))
        lines.append(f"{repo_continuation} {pr_glyph} PR: {pull_request.title}")
        lines.extend(
            render_pull_request_lines(
                pull_request,
                prefix=f"{repo_continuation} {pr_continuation}",
            )
        )
    return lines

"""Schema contract for the organization pull request report."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PullRequestEntry(BaseModel):
    """One open pull request as rendered in the report."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    number: int = Field(ge=1)
    title: str
    owner_login: str = ""
    reviewer_logins: tuple[str, ...] = ()
    assignee_login: str = ""

    @field_validator("owner_login", "assignee_login", mode="before")
    @classmethod
    def normalize_missing_login(cls, value: object) -> object:
        """Treat a null user login as empty."""
        if value is None:
            return ""
        return value

    @property
    def has_owner(self) -> bool:
        return bool(self.owner_login)

    @property
    def has_assignee(self) -> bool:
        return bool(self.assignee_login)


class RepositoryEntry(BaseModel):
    """A repository and its open pull requests, in API order."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = Field(min_length=1)
    pull_requests: tuple[PullRequestEntry, ...] = ()

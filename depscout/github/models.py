"""Pydantic data models for GitHub contributor records."""

from __future__ import annotations

from pydantic import Field

from depscout.common.data_models import ScrapedData

# Column order of the exported CSV, using serialization aliases.
EXPORT_FIELDS = (
    "username",
    "fullName",
    "email",
    "company",
    "contributions",
    "repository",
)


class ContributorRecord(ScrapedData):
    """The top contributor of one dependent repository."""

    username: str = Field(..., min_length=1, description="Contributor login")
    full_name: str | None = Field(
        None, alias="fullName", description="Display name from the profile"
    )
    email: str | None = Field(
        None, description="Author email of the contributor's latest commit"
    )
    company: str | None = Field(None, description="Company from the profile")
    contributions: int = Field(
        ..., ge=0, description="Contribution count of the top contributor"
    )
    repository: str = Field(..., description="Dependent repository, owner/repo")

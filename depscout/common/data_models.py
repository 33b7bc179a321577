"""Pydantic base model for scraped data.

Models deriving from ScrapedData define the expected schema of what the
pipeline produces, so malformed API data is caught before export.
"""

from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict

from depscout.common.deferred_validation import (
    DeferredValidation,
)

T = TypeVar("T", bound="ScrapedData")


class ScrapedData(BaseModel):
    """Base class for scraped data with deferred validation support.

    Instances are immutable once validated.

    Example:
        # Normal usage (validates immediately)
        record = ContributorRecord(username="octocat", ...)

        # Deferred validation
        deferred = ContributorRecord.raw(username="octocat", ...)
        record = deferred.confirm()  # Validates later
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    @classmethod
    def raw(
        cls: type[T], request_url: str = "", **data: Any
    ) -> DeferredValidation[T]:
        """Create a DeferredValidation wrapper with raw, unvalidated data.

        Args:
            request_url: Optional URL for error reporting.
            **data: Raw field values (not validated).

        Returns:
            DeferredValidation wrapper that validates on confirm().
        """
        return DeferredValidation(cls, request_url, **data)

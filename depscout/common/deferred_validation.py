"""Deferred validation for scraped data.

This module provides DeferredValidation, a wrapper that delays Pydantic
validation until the caller explicitly calls confirm(). The resolver uses it
to assemble a record from several API responses and validate it once, at the
end.
"""

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ValidationError

from depscout.common.exceptions import (
    DataFormatAssumptionException,
)

T = TypeVar("T", bound=BaseModel)


class DeferredValidation(Generic[T]):
    """Wrapper for unvalidated data that validates on confirm().

    Example:
        deferred = ContributorRecord.raw(username=login, contributions=n)
        record = deferred.confirm()  # Raises if invalid
    """

    def __init__(
        self,
        model_class: type[T],
        request_url: str = "",
        **data: Any,
    ) -> None:
        """Initialize deferred validation.

        Args:
            model_class: The Pydantic model class to validate against.
            request_url: Optional URL for error reporting.
            **data: Raw field values (not validated).
        """
        self._model_class = model_class
        self._request_url = request_url
        self._data = data

    def confirm(self) -> T:
        """Validate the data and return the validated model instance.

        Returns:
            Validated instance of the model class.

        Raises:
            DataFormatAssumptionException: If validation fails.
        """
        try:
            return self._model_class.model_validate(self._data)
        except ValidationError as e:
            errors_list = [dict(err) for err in e.errors()]
            raise DataFormatAssumptionException(
                errors=errors_list,
                failed_doc=self._data,
                model_name=self._model_class.__name__,
                request_url=self._request_url,
            ) from e

"""Exception types for scraper errors.

This module defines the exception hierarchy used across the collector and
resolver. Assumption exceptions signal that the scraped site or API no longer
looks the way the code expects; transient exceptions signal failures that
might resolve on retry.
"""

from typing import Any


class ConfigurationError(ValueError):
    """Raised when the run configuration is missing or malformed."""


class ScraperAssumptionException(Exception):
    """Base class for scraper assumption violations.

    The collector assumes a particular page structure and the resolver
    assumes a particular JSON shape. When these assumptions are violated,
    they raise clear, contextual exceptions that help diagnose the issue.
    """

    def __init__(
        self,
        message: str,
        request_url: str,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable description of the assumption violation.
            request_url: The URL of the request that triggered this error.
            context: Optional dict of additional context (selector, counts, etc).
        """
        self.message = message
        self.request_url = request_url
        self.context = context or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the error message with context.

        Returns:
            Formatted error message string.
        """
        parts = [self.message]
        parts.append(f"URL: {self.request_url}")

        if self.context:
            parts.append("Context:")
            for key, value in self.context.items():
                parts.append(f"  {key}: {value}")

        return "\n".join(parts)


class HTMLStructuralAssumptionException(ScraperAssumptionException):
    """Raised when a page no longer has the shape extraction relies on.

    For the dependents page this means the dependents list container is
    missing or duplicated, which usually means GitHub changed its markup or
    served something other than a dependents page.

    Attributes:
        selector: The XPath expression that was evaluated.
        description: What the expression was meant to select.
        expected_min: Fewest results accepted.
        expected_max: Most results accepted, or None for no upper bound.
        actual_count: How many results the page produced.
    """

    def __init__(
        self,
        selector: str,
        description: str,
        expected_min: int,
        expected_max: int | None,
        actual_count: int,
        request_url: str,
    ) -> None:
        self.selector = selector
        self.description = description
        self.expected_min = expected_min
        self.expected_max = expected_max
        self.actual_count = actual_count

        if expected_max is None:
            expected_str = f"at least {expected_min}"
        elif expected_min == expected_max:
            expected_str = f"exactly {expected_min}"
        else:
            expected_str = f"{expected_min} to {expected_max}"

        super().__init__(
            f"Unexpected page structure: expected {expected_str} "
            f"match(es) for {description}, found {actual_count}",
            request_url,
            {"xpath": selector},
        )


class DataFormatAssumptionException(ScraperAssumptionException):
    """Raised when assembled data doesn't match the expected schema.

    Raised during Pydantic validation of a ContributorRecord when the API
    returned values of an unexpected shape (for example a non-numeric
    contribution count).
    """

    def __init__(
        self,
        errors: list[dict[str, Any]],
        failed_doc: dict[str, Any],
        model_name: str,
        request_url: str,
    ) -> None:
        """Initialize the exception.

        Args:
            errors: List of Pydantic validation errors.
            failed_doc: The document that failed validation.
            model_name: Name of the Pydantic model that was being validated against.
            request_url: The URL of the request that produced this data.
        """
        self.errors = errors
        self.failed_doc = failed_doc
        self.model_name = model_name

        error_summary = ", ".join(
            f"{err['loc'][0]}: {err['msg']}" for err in errors
        )

        message = (
            f"Data validation failed for model '{model_name}': {error_summary}"
        )

        context = {
            "model": model_name,
            "error_count": len(errors),
            "errors": errors,
            "failed_doc": failed_doc,
        }

        super().__init__(message, request_url, context)


# =============================================================================
# Transient Exceptions
# =============================================================================


class TransientException(Exception):
    """Base class for transient errors that might resolve on retry.

    Transient exceptions represent temporary failures like network issues,
    throttling or timeouts. Unlike assumption exceptions, which indicate the
    scraping code needs updating, they suggest that trying again later may
    succeed.

    The caller is responsible for deciding whether to retry.
    """

    pass


class HTMLResponseAssumptionException(TransientException):
    """Raised when HTTP response has unexpected status code.

    Attributes:
        status_code: The actual HTTP status code received.
        expected_codes: List of status codes that were expected.
        url: The URL that returned the unexpected status.
        message: Human-readable error message.
    """

    def __init__(
        self,
        status_code: int,
        expected_codes: list[int],
        url: str,
    ) -> None:
        """Initialize the exception.

        Args:
            status_code: The actual status code received.
            expected_codes: List of expected status codes.
            url: The URL of the request.
        """
        self.status_code = status_code
        self.expected_codes = expected_codes
        self.url = url

        expected_str = ", ".join(str(code) for code in expected_codes)
        self.message = (
            f"HTTP {status_code} from {url} (expected one of: {expected_str})"
        )
        super().__init__(self.message)


class RateLimitedException(HTMLResponseAssumptionException):
    """Raised when the server answers 429 Too Many Requests.

    Callers wait their configured delay before retrying.
    """

    def __init__(self, url: str) -> None:
        super().__init__(status_code=429, expected_codes=[200], url=url)


class RequestTimeoutException(TransientException):
    """Raised when a request times out.

    Attributes:
        url: The URL that timed out.
        timeout_seconds: The timeout duration in seconds.
        message: Human-readable error message.
    """

    def __init__(self, url: str, timeout_seconds: float) -> None:
        """Initialize the exception.

        Args:
            url: The URL that timed out.
            timeout_seconds: The timeout duration in seconds.
        """
        self.url = url
        self.timeout_seconds = timeout_seconds
        self.message = f"Request to {url} timed out after {timeout_seconds}s"
        super().__init__(self.message)


class RequestTransportException(TransientException):
    """Raised when a request fails below the HTTP layer.

    Covers refused connections, DNS failures and dropped sockets.

    Attributes:
        url: The URL that could not be fetched.
        reason: The underlying error text.
        message: Human-readable error message.
    """

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        self.message = f"Request to {url} failed: {reason}"
        super().__init__(self.message)

"""Request manager for handling HTTP requests.

This module provides SyncRequestManager, which encapsulates the HTTP client
and request resolution logic.

The request manager is responsible for:
- Maintaining the HTTP client (httpx.Client)
- Optional client-side pacing via pyrate_limiter
- Converting transport failures and throttling into TransientExceptions
- Converting HTTP responses to Response objects

This separation lets the collector and resolver focus on their own control
flow while delegating HTTP concerns to the request manager.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pyrate_limiter import Limiter, Rate

from depscout.common.exceptions import (
    RateLimitedException,
    RequestTimeoutException,
    RequestTransportException,
)
from depscout.data_types import Request, Response

logger = logging.getLogger(__name__)

USER_AGENT = "depscout"


class SyncRequestManager:
    """Manages HTTP requests for the synchronous pipeline.

    This class encapsulates:

    - httpx.Client lifecycle
    - Request pacing (when rates are configured)
    - Request resolution (URL fetching)
    - Response transformation

    Example::

        with SyncRequestManager(timeout=30.0) as manager:
            response = manager.resolve_request(request)
    """

    def __init__(
        self,
        timeout: float | None = None,
        rates: list[Rate] | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        """Initialize the request manager.

        Args:
            timeout: Request timeout in seconds. None means no timeout (default).
            rates: Optional pyrate_limiter Rate objects. When given, every
                request waits for a token before it is sent.
            client: Optional preconfigured httpx.Client. The manager closes
                it on close() either way.
        """
        self.timeout = timeout

        self._client = client or httpx.Client(
            timeout=timeout,
            follow_redirects=True,
            headers={"User-Agent": USER_AGENT},
        )

        self._limiter: Limiter | None = None
        if rates:
            # Wait up to one longest interval for a token instead of failing
            max_delay = int(max(r.interval for r in rates)) + 1000
            self._limiter = Limiter(rates, max_delay=max_delay)
            logger.info(
                f"Rate limiter initialized with {len(rates)} rate(s): "
                + ", ".join(f"{r.limit}/{r.interval}ms" for r in rates)
            )

    def close(self) -> None:
        """Close the HTTP client and release resources."""
        self._client.close()

    def __enter__(self) -> SyncRequestManager:
        """Context manager entry."""
        return self

    def __exit__(self, *args: Any) -> None:
        """Context manager exit - closes the client."""
        self.close()

    def resolve_request(self, request: Request) -> Response:
        """Fetch a Request and return the Response.

        Any status code other than 429 is returned to the caller, which
        decides what counts as success.

        Args:
            request: The Request to fetch. URL should be absolute.

        Returns:
            Response containing the HTTP response data.

        Raises:
            RateLimitedException: If the server returns 429.
            RequestTimeoutException: If the request times out.
            RequestTransportException: If the connection fails.
        """
        http_params = request.request

        if self._limiter is not None:
            self._limiter.try_acquire("request")

        try:
            http_response = self._client.request(
                method=http_params.method.value,
                url=http_params.url,
                params=http_params.params,
                headers=http_params.headers,
                auth=http_params.auth,
            )
        except httpx.TimeoutException as e:
            raise RequestTimeoutException(
                url=http_params.url, timeout_seconds=self.timeout or 0
            ) from e
        except httpx.TransportError as e:
            raise RequestTransportException(
                url=http_params.url, reason=str(e) or type(e).__name__
            ) from e

        url = str(http_response.request.url)
        if http_response.status_code == 429:
            raise RateLimitedException(url=url)

        logger.debug(
            f"{http_params.method.value} {url} -> {http_response.status_code}",
            extra={"step": request.step, **request.context},
        )

        return Response(
            status_code=http_response.status_code,
            headers=dict(http_response.headers),
            content=http_response.content,
            text=http_response.text,
            url=url,
            request=request,
        )

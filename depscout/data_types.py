"""Data types shared by the collector, resolver and request manager.

These types are designed to be:

1. Immutable - Dataclasses with frozen=True where appropriate
2. Transport-agnostic - the collector and resolver build Requests and read
   Responses without touching httpx directly
"""

from __future__ import annotations

import json as jsonlib
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# A dependent repository identifier in ``owner/repo`` form.
DependentRef = str


def split_dependent_ref(ref: DependentRef) -> tuple[str, str]:
    """Split an ``owner/repo`` identifier into its two parts.

    Only the first ``/`` separates owner from repo.

    Raises:
        ValueError: If the identifier has no ``/`` or an empty part.
    """
    owner, sep, repo = ref.partition("/")
    if not sep or not owner or not repo:
        raise ValueError(
            f"Invalid repository identifier '{ref}'. Expected 'owner/repo'"
        )
    return owner, repo


# =============================================================================
# Request and Response
# =============================================================================


class HttpMethod(Enum):
    """HTTP methods supported by the request manager."""

    GET = "GET"


# Type aliases for parameter types
QueryParams = dict[str, Any] | list[tuple[str, Any]] | None
HeadersType = dict[str, str] | None
AuthType = tuple[str, str] | None


@dataclass(frozen=True)
class HTTPRequestParams:
    """Parameters for an HTTP request, mirroring the httpx interface.

    :param method: HTTP method for the request. Only ``GET`` is used.
    :param url: URL for the request.
    :param params: (optional) Dictionary or list of tuples to send in the
        query string for the request.
    :param headers: (optional) Dictionary of HTTP Headers to send with the request.
    :param auth: (optional) ``(username, password)`` tuple for HTTP Basic Auth.
    """

    method: HttpMethod
    url: str
    params: QueryParams = None
    headers: HeadersType = None
    auth: AuthType = None


@dataclass(frozen=True)
class Request:
    """A single fetch issued by the collector or resolver.

    Attributes:
        request: HTTP request parameters (URL, method, headers, etc.).
        step: Name of the pipeline step issuing the request, used in logs
            (for example ``"dependents"`` or ``"contributors"``).
        context: Extra values identifying the request in logs, such as
            owner, repo or page.
    """

    request: HTTPRequestParams
    step: str = ""
    context: dict[str, Any] = field(default_factory=dict)

    @property
    def url(self) -> str:
        return self.request.url


@dataclass
class Response:
    """HTTP response from fetching a page or API resource.

    Modeled after httpx.Response to provide a familiar interface.

    Attributes:
        status_code: HTTP status code (200, 404, etc.).
        headers: Response headers.
        content: Raw response bytes.
        text: Decoded response text.
        url: The requested URL, including the query string.
        request: The Request that triggered this response.
    """

    status_code: int
    headers: dict[str, str]
    content: bytes
    text: str
    url: str
    request: Request

    @property
    def ok(self) -> bool:
        return self.status_code == 200

    def json(self) -> Any:
        """Decode the body as JSON.

        Raises:
            ValueError: If the body is not valid JSON.
        """
        return jsonlib.loads(self.text)

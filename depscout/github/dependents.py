"""Dependent collection from the GitHub network/dependents page.

The dependents page is HTML only, so identifiers are scraped from the
repository hovercard links it renders. Pages are walked with a ``?page=N``
cursor until a page comes back empty, the cap is reached, a fetch fails or
a page no longer has the expected shape.

Example::

    with SyncRequestManager(timeout=config.timeout) as manager:
        refs = DependentCollector(config, manager).collect()
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from depscout.common.checked_html import CheckedHtmlElement
from depscout.common.exceptions import (
    HTMLStructuralAssumptionException,
    RateLimitedException,
    TransientException,
)
from depscout.common.request_manager import SyncRequestManager
from depscout.config import ScoutConfig
from depscout.data_types import (
    DependentRef,
    HttpMethod,
    HTTPRequestParams,
    Request,
    Response,
)

logger = logging.getLogger(__name__)

DEPENDENTS_LIST_XPATH = '//div[@id="dependents"]'
REPOSITORY_LINK_XPATH = './/a[@data-hovercard-type="repository"]/@href'

Extractor = Callable[[str, str, int | None], list[DependentRef]]


def extract_identifiers(
    document: str, url: str = "", limit: int | None = None
) -> list[DependentRef]:
    """Extract dependent identifiers from a dependents page, in document order.

    Every anchor tagged ``data-hovercard-type="repository"`` inside the
    ``#dependents`` list contributes its href with the leading slash removed.

    Args:
        document: The HTML text of one dependents page.
        url: URL the document came from, for error context.
        limit: Maximum identifiers to return. None means no limit.

    Returns:
        Identifiers such as ``"acme/widget-plugin"``. Empty when the page
        lists no dependents or the document is blank.

    Raises:
        HTMLStructuralAssumptionException: If the document has no
            dependents list, or more than one.
    """
    if limit is not None and limit <= 0:
        return []

    tree = CheckedHtmlElement.from_document(document, url)
    if tree is None:
        return []

    dependents_list = tree.checked_xpath(
        DEPENDENTS_LIST_XPATH, "the dependents list", min_count=1, max_count=1
    )[0]
    hrefs = dependents_list.checked_xpath(
        REPOSITORY_LINK_XPATH, "repository links", min_count=0, type=str
    )

    identifiers: list[DependentRef] = []
    for href in hrefs:
        if limit is not None and len(identifiers) >= limit:
            break
        identifiers.append(href[1:] if href.startswith("/") else href)
    return identifiers


class DependentCollector:
    """Collects dependents of a repository, up to a cap.

    Only a 429 response is retried: the collector sleeps for the configured
    delay and fetches the same page again. Any other failure ends collection
    and the identifiers gathered so far are returned.
    """

    def __init__(
        self,
        config: ScoutConfig,
        request_manager: SyncRequestManager,
        extractor: Extractor = extract_identifiers,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize the collector.

        Args:
            config: Run configuration (web URL, cap, backoff delay).
            request_manager: Shared request manager.
            extractor: Function turning a page into identifiers.
            sleep: Function used to wait out rate limiting.
        """
        self.config = config
        self.request_manager = request_manager
        self.extractor = extractor
        self.sleep = sleep

    def page_request(self, repository: str, page: int) -> Request:
        return Request(
            request=HTTPRequestParams(
                method=HttpMethod.GET,
                url=f"{self.config.web_url}/{repository}/network/dependents",
                params={"page": page},
                headers={"Accept": "text/html"},
            ),
            step="dependents",
            context={"repository": repository, "page": page},
        )

    def fetch_page(self, repository: str, page: int) -> Response:
        """Fetch one dependents page, waiting out any rate limiting.

        Raises:
            TransientException: For timeouts and transport errors.
        """
        request = self.page_request(repository, page)
        while True:
            try:
                return self.request_manager.resolve_request(request)
            except RateLimitedException:
                logger.warning(
                    f"Rate limit exceeded on page {page} of {repository}. "
                    f"Waiting {self.config.rate_limit_delay:g}s before retrying...",
                    extra={"repository": repository, "page": page},
                )
                self.sleep(self.config.rate_limit_delay)

    def collect(
        self, repository: str | None = None, max_count: int | None = None
    ) -> list[DependentRef]:
        """Collect dependent identifiers.

        Args:
            repository: Repository in ``owner/repo`` form. Defaults to the
                configured target.
            max_count: Cap on identifiers. Defaults to the configured cap.

        Returns:
            Identifiers in page order, at most ``max_count`` of them.
        """
        repository = repository or self.config.target_repo
        if max_count is None:
            max_count = self.config.max_dependents

        dependents: list[DependentRef] = []
        page = 1

        while len(dependents) < max_count:
            try:
                response = self.fetch_page(repository, page)
            except TransientException as e:
                logger.error(
                    f"Error fetching dependents: {e}",
                    extra={"repository": repository, "page": page},
                )
                break

            if not response.ok:
                logger.error(
                    f"Failed to fetch dependents: {response.status_code}",
                    extra={"repository": repository, "page": page},
                )
                break

            try:
                page_dependents = self.extractor(
                    response.text, response.url, max_count - len(dependents)
                )
            except HTMLStructuralAssumptionException as e:
                logger.error(
                    f"Unexpected dependents page for {repository}: {e.message}",
                    extra={"repository": repository, "page": page},
                )
                break

            logger.debug(
                f"Page {page} of {repository}: {len(page_dependents)} dependents"
            )
            if not page_dependents:
                break

            dependents.extend(page_dependents)
            if len(dependents) >= max_count:
                del dependents[max_count:]
                break
            page += 1

        logger.info(
            f"Collected {len(dependents)} dependents of {repository}",
            extra={"repository": repository, "pages": page},
        )
        return dependents

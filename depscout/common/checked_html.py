"""XPath queries with result-count checks.

A dependents page that suddenly yields nothing looks the same as a
repository with no dependents. CheckedHtmlElement makes the difference
visible: each query states how many results it expects, and a page that
doesn't match raises HTMLStructuralAssumptionException instead of quietly
returning an empty list.
"""

from __future__ import annotations

from typing import overload

from lxml import html
from lxml.etree import ParserError
from lxml.html import HtmlElement

from depscout.common.exceptions import (
    HTMLStructuralAssumptionException,
)


class CheckedHtmlElement:
    """An lxml element whose XPath queries are count-checked.

    Example::

        tree = CheckedHtmlElement.from_document(page_html, url)
        box = tree.checked_xpath('//div[@id="dependents"]', "list", max_count=1)[0]
        hrefs = box.checked_xpath(".//a/@href", "links", min_count=0, type=str)
    """

    def __init__(self, element: HtmlElement, request_url: str = "") -> None:
        self._element = element
        self._request_url = request_url

    @classmethod
    def from_document(
        cls, document: str, request_url: str = ""
    ) -> CheckedHtmlElement | None:
        """Parse an HTML document into a checked element.

        Returns:
            The wrapped root element, or None if the document has no
            parseable content (empty or whitespace-only).
        """
        if not document.strip():
            return None
        try:
            root = html.fromstring(document)
        except ParserError:
            return None
        return cls(root, request_url)

    @overload
    def checked_xpath(
        self,
        xpath: str,
        description: str,
        min_count: int = 1,
        max_count: int | None = None,
        *,
        type: type[str],
    ) -> list[str]: ...

    @overload
    def checked_xpath(
        self,
        xpath: str,
        description: str,
        min_count: int = 1,
        max_count: int | None = None,
    ) -> list[CheckedHtmlElement]: ...

    def checked_xpath(
        self,
        xpath: str,
        description: str,
        min_count: int = 1,
        max_count: int | None = None,
        *,
        type: type[str] | None = None,
    ) -> list[CheckedHtmlElement] | list[str]:
        """Run an XPath query relative to this element and check the count.

        Args:
            xpath: XPath expression to execute.
            description: What is being selected, for the error message.
            min_count: Fewest results accepted (default: 1).
            max_count: Most results accepted (None = unlimited).
            type: Pass ``str`` to keep string results (attributes, text).
                Otherwise only element results are kept, wrapped in
                CheckedHtmlElement.

        Raises:
            HTMLStructuralAssumptionException: If the count is out of range.
        """
        results = self._element.xpath(xpath)

        if type is str:
            strings = [str(r) for r in results if isinstance(r, str)]
            self._check_count(xpath, description, min_count, max_count, strings)
            return strings

        elements = [
            CheckedHtmlElement(r, self._request_url)
            for r in results
            if isinstance(r, HtmlElement)
        ]
        self._check_count(xpath, description, min_count, max_count, elements)
        return elements

    def _check_count(
        self,
        xpath: str,
        description: str,
        min_count: int,
        max_count: int | None,
        results: list,
    ) -> None:
        count = len(results)
        if count >= min_count and (max_count is None or count <= max_count):
            return
        raise HTMLStructuralAssumptionException(
            selector=xpath,
            description=description,
            expected_min=min_count,
            expected_max=max_count,
            actual_count=count,
            request_url=self._request_url,
        )

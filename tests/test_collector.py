"""Tests for DependentCollector pagination, capping and rate-limit handling.

Tests use a real aiohttp server serving dependents pages. Page N of a
target is ``github.dependents[target][N - 1]``; pages past the end list no
dependents.
"""

import logging

import pytest

from depscout.github.dependents import DependentCollector
from tests.mock_server import MockGitHub
from tests.utils import find_free_port

DEPENDENTS_PATH = "/acme/widget/network/dependents"


def _pages(*sizes: int) -> list[list[str]]:
    """Build pages of distinct identifiers with the given sizes."""
    pages = []
    counter = 0
    for size in sizes:
        page = []
        for _ in range(size):
            counter += 1
            page.append(f"user{counter}/lib{counter}")
        pages.append(page)
    return pages


@pytest.fixture
def collector(config, request_manager, sleeps) -> DependentCollector:
    return DependentCollector(config, request_manager, sleep=sleeps.append)


class TestPagination:
    """Tests for walking pages until an empty one."""

    def test_walks_pages_in_order(self, github: MockGitHub, collector):
        """Identifiers from every page shall be returned in page order."""
        github.dependents["acme/widget"] = _pages(3, 2)

        assert collector.collect() == [
            "user1/lib1",
            "user2/lib2",
            "user3/lib3",
            "user4/lib4",
            "user5/lib5",
        ]

    def test_empty_page_stops_collection(self, github: MockGitHub, collector):
        """The first empty page shall end collection; no later page is fetched."""
        github.dependents["acme/widget"] = _pages(2, 2)

        collector.collect()

        pages = [q["page"] for q in github.fetched(DEPENDENTS_PATH)]
        assert pages == ["1", "2", "3"]

    def test_empty_first_page(self, github: MockGitHub, collector):
        """A target without dependents shall yield an empty list after one fetch."""
        github.dependents["acme/widget"] = []

        assert collector.collect() == []
        assert len(github.fetched(DEPENDENTS_PATH)) == 1

    def test_page_request_shape(self, config, collector):
        """Page requests shall carry the page cursor and ask for HTML."""
        request = collector.page_request("acme/widget", 4)

        assert request.url == f"{config.web_url}/acme/widget/network/dependents"
        assert request.request.params == {"page": 4}
        assert request.request.headers == {"Accept": "text/html"}
        assert request.request.auth is None
        assert request.step == "dependents"

    def test_explicit_repository(self, github: MockGitHub, collector):
        """An explicit repository shall replace the configured target."""
        github.dependents["other/lib"] = [["x/y"]]

        assert collector.collect("other/lib") == ["x/y"]


class TestCap:
    """Tests for the dependent cap."""

    @pytest.mark.parametrize("cap", [0, 1, 2, 3, 4, 5, 7, 10])
    def test_never_exceeds_cap(self, github: MockGitHub, collector, cap):
        """No more than ``cap`` identifiers shall ever be returned."""
        github.dependents["acme/widget"] = _pages(3, 3)

        result = collector.collect(max_count=cap)

        assert len(result) == min(cap, 6)
        assert result == [f"user{i}/lib{i}" for i in range(1, len(result) + 1)]

    def test_zero_cap_fetches_nothing(self, github: MockGitHub, collector):
        """A cap of zero shall not fetch any page."""
        github.dependents["acme/widget"] = _pages(3)

        assert collector.collect(max_count=0) == []
        assert github.fetched(DEPENDENTS_PATH) == []

    def test_reaching_cap_stops_fetching(self, github: MockGitHub, collector):
        """Once the cap is reached no further page shall be fetched."""
        github.dependents["acme/widget"] = _pages(3, 3, 3)

        assert collector.collect(max_count=4) == [
            "user1/lib1",
            "user2/lib2",
            "user3/lib3",
            "user4/lib4",
        ]
        pages = [q["page"] for q in github.fetched(DEPENDENTS_PATH)]
        assert pages == ["1", "2"]

    def test_cap_defaults_to_config(self, github: MockGitHub, config, request_manager):
        """Without max_count the configured cap shall apply."""
        github.dependents["acme/widget"] = _pages(5)
        capped = config.model_copy(update={"max_dependents": 2})

        collector = DependentCollector(capped, request_manager)

        assert collector.collect() == ["user1/lib1", "user2/lib2"]


class TestRateLimiting:
    """Tests for 429 handling on dependents pages."""

    def test_429_retries_same_page(
        self, github: MockGitHub, collector, sleeps
    ):
        """A 429 then 200 shall yield the same identifiers as an immediate 200."""
        github.dependents["acme/widget"] = _pages(2, 2)
        github.fail_next(f"{DEPENDENTS_PATH}?page=2", 429)

        result = collector.collect()

        assert result == ["user1/lib1", "user2/lib2", "user3/lib3", "user4/lib4"]
        pages = [q["page"] for q in github.fetched(DEPENDENTS_PATH)]
        assert pages == ["1", "2", "2", "3"]
        assert sleeps == [0]

    def test_repeated_429s_keep_retrying(
        self, github: MockGitHub, collector, sleeps
    ):
        """The page fetch shall keep waiting out 429s until it gets through."""
        github.dependents["acme/widget"] = _pages(1)
        github.fail_next(DEPENDENTS_PATH, 429, 429, 429)

        assert collector.collect() == ["user1/lib1"]
        assert len(sleeps) == 3

    def test_waits_configured_delay(
        self, github: MockGitHub, config, request_manager, sleeps, caplog
    ):
        """The wait after a 429 shall be the configured delay, with a warning."""
        github.dependents["acme/widget"] = _pages(1)
        github.fail_next(DEPENDENTS_PATH, 429)
        slow = config.model_copy(update={"rate_limit_delay": 60.0})
        collector = DependentCollector(slow, request_manager, sleep=sleeps.append)

        with caplog.at_level(logging.WARNING, logger="depscout.github.dependents"):
            collector.collect()

        assert sleeps == [60.0]
        assert "Rate limit exceeded on page 1 of acme/widget" in caplog.text


class TestFailures:
    """Tests for fetch failures ending collection."""

    def test_server_error_returns_partial(
        self, github: MockGitHub, collector, caplog
    ):
        """A non-429 error shall stop collection with the pages gathered so far."""
        github.dependents["acme/widget"] = _pages(2, 2, 2)
        github.fail_next(f"{DEPENDENTS_PATH}?page=2", 500)

        with caplog.at_level(logging.ERROR, logger="depscout.github.dependents"):
            result = collector.collect()

        assert result == ["user1/lib1", "user2/lib2"]
        assert "Failed to fetch dependents: 500" in caplog.text
        assert len(github.fetched(DEPENDENTS_PATH)) == 2

    def test_page_without_dependents_list_returns_partial(
        self, github: MockGitHub, collector, caplog
    ):
        """A 200 page without the dependents list shall stop collection loudly."""
        github.dependents["acme/widget"] = _pages(2, 2, 2)
        github.login_walls.add(("acme/widget", 2))

        with caplog.at_level(logging.ERROR, logger="depscout.github.dependents"):
            result = collector.collect()

        assert result == ["user1/lib1", "user2/lib2"]
        assert "Unexpected dependents page for acme/widget" in caplog.text
        assert "the dependents list" in caplog.text
        assert [q["page"] for q in github.fetched(DEPENDENTS_PATH)] == ["1", "2"]

    def test_unknown_target(self, github: MockGitHub, collector):
        """A 404 for the first page shall yield an empty list."""
        assert collector.collect("nobody/nothing") == []

    def test_transport_error_returns_partial(
        self, github: MockGitHub, config, request_manager, caplog
    ):
        """A connection failure shall stop collection without raising."""
        dead = config.model_copy(
            update={"web_url": f"http://127.0.0.1:{find_free_port()}"}
        )
        collector = DependentCollector(dead, request_manager)

        with caplog.at_level(logging.ERROR, logger="depscout.github.dependents"):
            assert collector.collect() == []

        assert "Error fetching dependents" in caplog.text


class TestExtractorSeam:
    """Tests for substituting the page extractor."""

    def test_custom_extractor_receives_remaining_limit(
        self, github: MockGitHub, config, request_manager
    ):
        """The extractor shall be called with the page text, URL and remaining cap."""
        github.dependents["acme/widget"] = _pages(1, 1)
        calls = []

        def extractor(document, url, limit):
            calls.append((url, limit))
            return ["fixed/one"] if len(calls) == 1 else []

        collector = DependentCollector(
            config, request_manager, extractor=extractor
        )

        assert collector.collect(max_count=3) == ["fixed/one"]
        assert calls[0][0].endswith("/acme/widget/network/dependents?page=1")
        assert [limit for _, limit in calls] == [3, 2]

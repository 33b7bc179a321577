"""Test utilities shared across the depscout test modules."""

import csv
import socket
from collections.abc import Callable
from contextlib import closing
from pathlib import Path
from typing import Any


def collect_results() -> tuple[Callable[[Any], None], list[Any]]:
    """Create a callback that collects results in a list.

    Pass the callback to the driver's on_data (or on_skip) parameter and
    check the results list after running.

    Returns:
        A tuple of (callback_function, results_list).
        The callback appends data to the results list.
        The results list is shared and can be inspected after driver.run().

    Example:
        callback, results = collect_results()
        driver = ScoutDriver(config, on_data=callback)
        driver.run()
        assert len(results) > 0
    """
    results: list[Any] = []

    def callback(data: Any) -> None:
        results.append(data)

    return callback, results


def read_csv(path: Path) -> tuple[list[str], list[dict[str, str]]]:
    """Read an exported CSV back as (header, rows)."""
    with open(path, newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        rows = list(reader)
        return list(reader.fieldnames or []), rows


def find_free_port() -> int:
    """Find a free port on localhost.

    Returns:
        An available port number.
    """
    with closing(socket.socket(socket.AF_INET, socket.SOCK_STREAM)) as s:
        s.bind(("", 0))
        s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        return s.getsockname()[1]

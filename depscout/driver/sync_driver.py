"""Synchronous driver for the dependents pipeline.

The driver runs the collector to completion, then resolves each dependent
one after another, handing every record to the on_data callback. Nothing
overlaps: one page or one API lookup is in flight at a time.

Lifecycle hooks mirror a single run:

- on_run_start(target_repo) fires before the first page is fetched.
- on_run_complete(target_repo, status, error) fires in a finally block with
  status "completed", "stopped" or "error".
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable

from depscout.common.request_manager import SyncRequestManager
from depscout.config import ScoutConfig
from depscout.data_types import DependentRef
from depscout.github.contributors import ContributorResolver
from depscout.github.dependents import DependentCollector
from depscout.github.models import ContributorRecord

logger = logging.getLogger(__name__)


class ScoutDriver:
    """Runs collection and resolution for one target repository.

    Example usage:
        from tests.utils import collect_results

        callback, results = collect_results()
        driver = ScoutDriver(config, on_data=callback)
        records = driver.run()
    """

    def __init__(
        self,
        config: ScoutConfig,
        request_manager: SyncRequestManager | None = None,
        collector: DependentCollector | None = None,
        resolver: ContributorResolver | None = None,
        on_data: Callable[[ContributorRecord], None] | None = None,
        on_skip: Callable[[DependentRef], None] | None = None,
        on_run_start: Callable[[str], None] | None = None,
        on_run_complete: Callable[[str, str, Exception | None], None]
        | None = None,
        stop_event: threading.Event | None = None,
    ) -> None:
        """Initialize the driver.

        Args:
            config: Run configuration.
            request_manager: SyncRequestManager for handling HTTP requests. If
                None, each run() creates one from the configuration and
                closes it when that run finishes.
            collector: Optional collector. Defaults to a DependentCollector
                sharing the run's request manager.
            resolver: Optional resolver. Defaults to a ContributorResolver
                sharing the run's request manager.
            on_data: Optional callback invoked with each resolved record.
            on_skip: Optional callback invoked with each dependent that
                produced no record.
            on_run_start: Optional callback invoked when the run starts.
                Receives the target repository.
            on_run_complete: Optional callback invoked when the run ends.
                Receives the target repository, status ("completed" |
                "stopped" | "error") and the error (Exception | None).
            stop_event: Optional threading.Event for graceful shutdown. When
                set, the driver stops before resolving the next dependent.
        """
        self.config = config
        self.request_manager = request_manager
        self.collector = collector
        self.resolver = resolver
        self.on_data = on_data
        self.on_skip = on_skip
        self.on_run_start = on_run_start
        self.on_run_complete = on_run_complete
        self.stop_event = stop_event

    def run(self) -> list[ContributorRecord]:
        """Run the pipeline and return the resolved records in order.

        Dependents whose top contributor can't be resolved are left out.
        A driver may be run more than once.
        """
        target = self.config.target_repo
        if self.on_run_start:
            self.on_run_start(target)

        status = "completed"
        error: Exception | None = None
        records: list[ContributorRecord] = []

        request_manager = self.request_manager
        owns_request_manager = request_manager is None
        if request_manager is None:
            request_manager = SyncRequestManager(
                timeout=self.config.timeout,
                rates=self.config.rate_limits,
            )
        collector = self.collector or DependentCollector(
            self.config, request_manager
        )
        resolver = self.resolver or ContributorResolver(
            self.config, request_manager
        )

        try:
            dependents = collector.collect(target, self.config.max_dependents)

            for index, dependent in enumerate(dependents, start=1):
                if self.stop_event and self.stop_event.is_set():
                    status = "stopped"
                    logger.info(
                        f"Stop requested; {len(dependents) - index + 1} "
                        f"dependents left unresolved"
                    )
                    break

                logger.debug(
                    f"Resolving {dependent} ({index}/{len(dependents)})"
                )
                record = resolver.resolve(dependent)
                if record is None:
                    if self.on_skip:
                        self.on_skip(dependent)
                    continue

                records.append(record)
                if self.on_data:
                    self.on_data(record)

            logger.info(
                f"Resolved {len(records)} of {len(dependents)} dependents "
                f"of {target}"
            )
            return records

        except Exception as e:
            status = "error"
            error = e
            raise
        finally:
            if owns_request_manager:
                request_manager.close()

            if self.on_run_complete:
                self.on_run_complete(target, status, error)

"""
Enrichment coordinator for sponsor lookups.

Fans lookups for the whole dependency set out over a fixed-size worker pool,
collects results as they complete and hands them back in input order.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from contextlib import contextmanager
from datetime import datetime
from typing import Callable, Iterator, List, Optional, Sequence

from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)

from ..models import (
    EnrichedEntry,
    EnrichmentResult,
    FailureReason,
    PackageRef,
    RunConfig,
    SponsorInfo,
)

DEFAULT_CONCURRENCY = 8


class EnrichmentCoordinator:
    """
    Bounded-concurrency fan-out/fan-in over a sponsor lookup client.

    Features:
    - At most run_config.concurrency lookups in flight, whatever the input size
    - Output order equals input order; completion order does not matter
    - A failed lookup is recorded on its entry and never aborts the run
    """

    def __init__(self, client, console: Optional[Console] = None, show_progress: bool = False):
        """
        Initialize the coordinator.

        Args:
            client: Object exposing lookup(PackageRef) -> SponsorInfo, and
                optionally cancel() to abandon lookups already running
            console: Console used for the progress display
            show_progress: Whether to render a progress bar
        """
        self.client = client
        self.logger = logging.getLogger(__name__)
        self.console = console or Console(stderr=True)
        self.show_progress = show_progress

    def enrich(self, packages: Sequence[PackageRef], run_config: RunConfig) -> EnrichmentResult:
        """
        Look up every package and return one entry per package, in input order.

        Raises:
            KeyboardInterrupt: Propagated after cancelling pending lookups and
                the client; no partial result is returned
        """
        packages = list(packages)
        if not packages:
            return EnrichmentResult(entries=[])

        start_time = datetime.now()
        concurrency = max(1, run_config.concurrency or DEFAULT_CONCURRENCY)
        if not run_config.authenticated:
            self.logger.info("No GitHub token: sponsor counts will be unavailable")

        self.logger.info(f"Looking up sponsors for {len(packages)} packages with {concurrency} workers")

        collected: List[Optional[SponsorInfo]] = [None] * len(packages)
        executor = ThreadPoolExecutor(max_workers=concurrency, thread_name_prefix="sponsor-lookup")
        try:
            with self._progress(len(packages)) as advance:
                future_to_index = {
                    executor.submit(self._lookup, package): index
                    for index, package in enumerate(packages)
                }
                for future in as_completed(future_to_index):
                    index = future_to_index[future]
                    collected[index] = future.result()
                    advance(packages[index].name)
        except BaseException:
            cancel = getattr(self.client, "cancel", None)
            if cancel is not None:
                cancel()
            executor.shutdown(wait=False, cancel_futures=True)
            raise
        executor.shutdown(wait=True)

        result = EnrichmentResult(
            entries=[EnrichedEntry(package, info) for package, info in zip(packages, collected)]
        )

        duration = (datetime.now() - start_time).total_seconds()
        self.logger.info(
            f"Enrichment completed in {duration:.2f} seconds: "
            f"{len(result.sponsorable())} sponsorable, {result.failures} failed"
        )
        if result.failures:
            self.logger.info(f"Failures by reason: {result.failure_breakdown()}")
        return result

    def _lookup(self, package: PackageRef) -> SponsorInfo:
        try:
            return self.client.lookup(package)
        except Exception as e:
            self.logger.error(f"Lookup for {package.name} raised unexpectedly: {e}")
            return SponsorInfo.failed(FailureReason.UNEXPECTED_ERROR, detail=str(e))

    @contextmanager
    def _progress(self, total: int) -> Iterator[Callable[[str], None]]:
        if not self.show_progress:
            yield lambda name: None
            return

        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            console=self.console,
            transient=True,
        ) as progress:
            task = progress.add_task("Retrieving GitHub sponsor information", total=total)

            def advance(name: str) -> None:
                progress.update(task, advance=1, description=f"Retrieving GitHub sponsor information ({name})")

            yield advance

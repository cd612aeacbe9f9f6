"""Bounded-concurrency orchestration of placement scrapes."""

import asyncio
import dataclasses
import inspect
import logging
from collections import deque
from typing import (
    Any,
    AsyncIterator,
    Awaitable,
    Callable,
    Deque,
    Iterable,
    List,
    Optional,
    Protocol,
)

from netlink_scraper.constants import DEFAULT_PAGES_PER_BATCH
from netlink_scraper.exceptions import BatchAbortedError, LaunchError, ScrapeError
from netlink_scraper.models import (
    ScrapeOptions,
    ScrapeResult,
    ScrapeTarget,
    ScrapingStats,
)
from netlink_scraper.scraper import PageScraper

logger = logging.getLogger(__name__)


class TargetSource(Protocol):
    """Where scrape targets come from (e.g. the dashboard listing)."""

    skipped: int

    async def fetch_all(self) -> List[ScrapeTarget]:
        ...

    def iter_batches(self, pages_per_batch: int) -> AsyncIterator[List[ScrapeTarget]]:
        ...


BatchCallback = Callable[[List[ScrapeResult], int], Any]


async def _invoke(callback: Optional[Callable[..., Any]], *args: Any) -> None:
    """Call a sync or async callback."""
    if callback is None:
        return
    value = callback(*args)
    if inspect.isawaitable(value):
        await value


@dataclasses.dataclass
class _RunState:
    """Mutable bookkeeping shared by the workers of one run."""
    total: int
    claimed: int = 0
    aborted: bool = False
    abort_error: Optional[BaseException] = None

    def abort(self, error: BaseException) -> None:
        """Stop the run; only the first error is kept."""
        self.aborted = True
        if self.abort_error is None:
            self.abort_error = error


class ScrapeOrchestrator:
    """
    Drives a PageScraper over a queue of targets with a fixed worker pool.

    Workers are asyncio tasks on one event loop. Each one claims the head of
    a FIFO queue, scrapes it, and sleeps ``delay_ms`` before claiming the
    next target. Results are collected in completion order.
    """

    def __init__(
        self,
        scraper: PageScraper,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        """
        Initialize the orchestrator.

        Args:
            scraper: Page scraper used for every target
            sleep: Sleep coroutine used for the inter-request delay
        """
        self.scraper = scraper
        self._sleep = sleep

    async def scrape_many(
        self,
        targets: Iterable[ScrapeTarget],
        options: Optional[ScrapeOptions] = None,
        **overrides: Any,
    ) -> List[ScrapeResult]:
        """
        Scrape targets concurrently.

        Args:
            targets: Targets to scrape, consumed in FIFO order
            options: Concurrency, timeout, retry, delay and callbacks
            **overrides: Field overrides applied on top of ``options``

        Returns:
            One result per target, in completion order

        Raises:
            BatchAbortedError: On the first failure when skip_errors is False
            LaunchError: If the browser cannot be started
        """
        options = options or ScrapeOptions()
        if overrides:
            options = dataclasses.replace(options, **overrides)

        queue: Deque[ScrapeTarget] = deque(targets)
        if not queue:
            return []

        state = _RunState(total=len(queue))
        results: List[ScrapeResult] = []
        worker_count = max(1, min(options.concurrency, state.total))

        logger.info(
            f"Starting to scrape {state.total} targets with concurrency {worker_count}"
        )

        # Workers are joined before the first recorded error is raised
        await asyncio.gather(
            *(self._worker(queue, results, state, options) for _ in range(worker_count)),
            return_exceptions=True,
        )
        if state.abort_error is not None:
            raise state.abort_error

        return results

    async def _worker(
        self,
        queue: Deque[ScrapeTarget],
        results: List[ScrapeResult],
        state: _RunState,
        options: ScrapeOptions,
    ) -> None:
        """Claim and scrape targets until the queue is empty or the run aborts."""
        try:
            while queue and not state.aborted:
                # Claim without yielding so no two workers take the same target
                target = queue.popleft()
                state.claimed += 1

                await _invoke(options.on_progress, state.claimed, state.total, target.url)

                result = await self._scrape_target(target, options)
                if state.aborted:
                    # Finished after the run was aborted; discarded
                    return
                results.append(result)

                if result.success:
                    await _invoke(options.on_success, result)
                else:
                    await _invoke(
                        options.on_error,
                        target.url,
                        ScrapeError(result.error or "Unknown error", url=target.url),
                    )

                    if not options.skip_errors:
                        logger.error(f"Aborting run on {target.url}: {result.error}")
                        state.abort(BatchAbortedError(
                            f"Scrape aborted on {target.url}: {result.error}",
                            result=result,
                            results=results,
                        ))
                        return

                if options.delay_ms > 0 and queue and not state.aborted:
                    await self._sleep(options.delay_ms / 1000)
        except BaseException as e:
            state.abort(e)
            raise

    async def _scrape_target(
        self,
        target: ScrapeTarget,
        options: ScrapeOptions,
    ) -> ScrapeResult:
        """Scrape one target, converting unexpected errors into a failed result."""
        try:
            return await self.scraper.scrape_one(
                target.url,
                target.landing_page,
                timeout_ms=options.timeout_ms,
                retries=options.retries,
                source_id=target.id,
            )
        except LaunchError:
            raise
        except Exception as e:
            logger.error(f"Unexpected error scraping {target.url}: {e}")
            return ScrapeResult(
                url=target.url,
                landing_page=target.landing_page,
                success=False,
                error=str(e) or type(e).__name__,
                source_id=target.id,
            )

    def _with_stats(
        self,
        options: Optional[ScrapeOptions],
        stats: ScrapingStats,
    ) -> ScrapeOptions:
        """Wrap the callbacks of ``options`` so they also update ``stats``."""
        options = options or ScrapeOptions()
        user_success = options.on_success
        user_error = options.on_error

        async def on_success(result: ScrapeResult) -> None:
            stats.record_success()
            await _invoke(user_success, result)

        async def on_error(url: str, error: Exception) -> None:
            stats.record_failure(url, str(error))
            await _invoke(user_error, url, error)

        return dataclasses.replace(options, on_success=on_success, on_error=on_error)

    async def scrape_all(
        self,
        source: TargetSource,
        options: Optional[ScrapeOptions] = None,
    ) -> ScrapingStats:
        """
        Fetch every target from ``source`` and scrape them in one run.

        Args:
            source: Target source
            options: Scrape options

        Returns:
            Finalized ScrapingStats
        """
        stats = ScrapingStats()

        try:
            logger.info("Fetching targets...")
            targets = await source.fetch_all()
            stats.total = len(targets)
            stats.skipped = source.skipped
            logger.info(f"Fetched {len(targets)} targets. Starting scraping...")

            await self.scrape_many(targets, self._with_stats(options, stats))
        finally:
            stats.finish()

        self._log_summary(stats, "SCRAPING COMPLETED")
        return stats

    async def scrape_in_batches(
        self,
        source: TargetSource,
        on_batch_complete: BatchCallback,
        options: Optional[ScrapeOptions] = None,
        pages_per_batch: int = DEFAULT_PAGES_PER_BATCH,
    ) -> ScrapingStats:
        """
        Stream target batches from ``source`` and scrape each in turn.

        Args:
            source: Target source
            on_batch_complete: Called with (results, batch_number) after each batch
            options: Scrape options
            pages_per_batch: Listing pages fetched per batch

        Returns:
            Finalized ScrapingStats aggregated over all batches
        """
        stats = ScrapingStats()
        batch_number = 0

        try:
            async for batch in source.iter_batches(pages_per_batch):
                batch_number += 1
                stats.total += len(batch)
                logger.info(f"Processing batch {batch_number}: {len(batch)} targets")

                results = await self.scrape_many(batch, self._with_stats(options, stats))
                await _invoke(on_batch_complete, results, batch_number)

                successful = sum(1 for r in results if r.success)
                logger.info(
                    f"Batch {batch_number} complete: {successful}/{len(results)} successful"
                )
        finally:
            stats.skipped = source.skipped
            stats.finish()

        self._log_summary(stats, "BATCH SCRAPING COMPLETED")
        return stats

    def _log_summary(self, stats: ScrapingStats, title: str) -> None:
        logger.info("=" * 60)
        logger.info(title)
        logger.info("=" * 60)
        logger.info(f"Total: {stats.total}")
        logger.info(f"Successful: {stats.successful}")
        logger.info(f"Failed: {stats.failed}")
        logger.info(f"Skipped: {stats.skipped}")
        logger.info(f"Duration: {stats.duration or 0.0:.2f}s")
        logger.info("=" * 60)

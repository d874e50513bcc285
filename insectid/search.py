"""
Debounced Taxon Search
======================
Search-as-you-type for taxa. A search is dispatched only after the input
has been idle for ``delay`` seconds; each keystroke cancels the pending
timer. Requests already sent are not cancelled, but every dispatch carries
a sequence number and only the response to the latest dispatch is applied,
so a slow early response cannot overwrite newer results.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, Set

from .config import settings
from .schemas import Taxon
from .sources.gbif import search_taxa

logger = logging.getLogger(__name__)

SearchFunc = Callable[[str], Awaitable[List[Taxon]]]
ResultsCallback = Callable[[str, List[Taxon]], None]


class DebouncedTaxonSearch:
    """Trailing-debounce wrapper around an async taxon search."""

    def __init__(
        self,
        search_func: SearchFunc = search_taxa,
        *,
        delay: Optional[float] = None,
        min_length: Optional[int] = None,
        on_results: Optional[ResultsCallback] = None,
    ):
        self.search_func = search_func
        self.delay = settings.search_debounce_seconds if delay is None else delay
        self.min_length = settings.search_min_length if min_length is None else min_length
        self.on_results = on_results

        self.query = ""
        self.results: List[Taxon] = []
        self.is_loading = False

        self.dispatch_count = 0
        self._sequence = 0
        self._timer: Optional[asyncio.Task] = None
        self._in_flight: Set[asyncio.Task] = set()

    def on_input(self, query: str) -> None:
        """Record a new input value. Must be called from a running event loop."""
        self.query = query
        self._cancel_timer()

        if len(query.strip()) < self.min_length:
            # Invalidate anything in flight so it cannot repopulate the list.
            self._sequence += 1
            self.results = []
            self.is_loading = False
            return

        self.is_loading = True
        loop = asyncio.get_running_loop()
        self._timer = loop.create_task(self._debounce(query))

    def _cancel_timer(self) -> None:
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None

    async def _debounce(self, query: str) -> None:
        await asyncio.sleep(self.delay)

        # Past this point the search is dispatched and input no longer cancels it.
        task = asyncio.current_task()
        if task is not None and task is self._timer:
            self._timer = None
            self._in_flight.add(task)
            task.add_done_callback(self._in_flight.discard)

        self.dispatch_count += 1
        self._sequence += 1
        sequence = self._sequence
        logger.debug(f"Dispatching search #{sequence} for {query!r}")

        try:
            results = await self.search_func(query)
        except Exception as e:
            logger.error(f"Taxon search for {query!r} failed: {e}", exc_info=True)
            results = []

        if sequence != self._sequence:
            logger.debug(f"Discarding stale results of search #{sequence} for {query!r}")
            return

        self.results = results
        self.is_loading = False
        if self.on_results is not None:
            self.on_results(query, results)

    async def wait(self) -> None:
        """Wait for the pending timer and all in-flight searches to finish."""
        while True:
            pending = [t for t in ([self._timer] + list(self._in_flight)) if t is not None and not t.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    def close(self) -> None:
        """Cancel the pending timer and any in-flight searches."""
        self._cancel_timer()
        for task in list(self._in_flight):
            task.cancel()
        self._in_flight.clear()
        self.is_loading = False

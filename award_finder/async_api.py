"""
Async source fan-out for award-finder.

Availability is fetched per source (one program or airline feed each). The
fetch callables are blocking, so they run in a shared thread pool while the
event loop bounds each one with a wall-clock timeout. A failing or slow
source becomes an error marker on its own result; the others are unaffected.

Example:
    import asyncio
    from award_finder.async_api import fetch_sources, merge_results

    async def main():
        results = await fetch_sources({
            "AC": lambda: load_feed("AC"),
            "UA": lambda: load_feed("UA"),
        }, timeout=10)
        merged = merge_results(results)
        print(merged.failed)

    asyncio.run(main())
"""

from __future__ import annotations

import asyncio
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from functools import partial
from typing import Any, Callable, Dict, List, Mapping, Optional, Set, Tuple, TypeVar, Union

from .config import get_config
from .errors import AwardFinderError, AwardFinderException, ErrorCode
from .schema import AwardResults

logger = logging.getLogger(__name__)

# Type variable for generic async wrapper
T = TypeVar("T")

SourceFetch = Callable[[], Union[AwardResults, Dict[str, Any]]]

# Default thread pool for running sync operations
_executor: Optional[ThreadPoolExecutor] = None
_max_workers: Optional[int] = None


def get_executor(max_workers: Optional[int] = None) -> ThreadPoolExecutor:
    """
    Get or create the thread pool executor for async operations.

    Args:
        max_workers: Maximum number of worker threads (default: config.max_workers)

    Returns:
        ThreadPoolExecutor instance.
    """
    global _executor, _max_workers

    if max_workers is not None:
        _max_workers = max_workers

    if _executor is None or _executor._shutdown:
        _executor = ThreadPoolExecutor(max_workers=_max_workers or get_config().max_workers)

    return _executor


def shutdown_executor(wait: bool = True) -> None:
    """
    Shutdown the thread pool executor.

    Args:
        wait: If True, wait for all pending futures to complete.
    """
    global _executor
    if _executor is not None:
        _executor.shutdown(wait=wait)
        _executor = None


async def run_in_executor(
    func: Callable[..., T],
    *args: Any,
    **kwargs: Any
) -> T:
    """
    Run a synchronous function in the thread pool executor.

    Example:
        result = await run_in_executor(sync_function, arg1, arg2, key=value)
    """
    loop = asyncio.get_running_loop()
    executor = get_executor()

    if kwargs:
        func = partial(func, **kwargs)

    return await loop.run_in_executor(executor, func, *args)


# ============================================================================
# Source Results
# ============================================================================

@dataclass
class SourceResult:
    """Outcome of one source fetch: data or an error marker, never both."""
    source: str
    data: Optional[AwardResults] = None
    error: Optional[AwardFinderError] = None
    elapsed_seconds: float = 0.0

    @property
    def success(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "success": self.success,
            "data": self.data.to_dict() if self.data else None,
            "error": self.error.to_dict() if self.error else None,
            "elapsed_seconds": self.elapsed_seconds,
        }


def _coerce_feed(source: str, payload: Union[AwardResults, Dict[str, Any]]) -> AwardResults:
    if isinstance(payload, AwardResults):
        return payload
    if not isinstance(payload, dict):
        raise AwardFinderException.from_code(
            ErrorCode.INVALID_FEED,
            message=f"Source {source} returned {type(payload).__name__}, expected a feed object",
            details={"source": source},
            recoverable=False,
        )
    try:
        return AwardResults.from_dict(payload)
    except (KeyError, TypeError, ValueError) as e:
        raise AwardFinderException.from_code(
            ErrorCode.INVALID_FEED,
            message=f"Malformed feed from {source}: {e}",
            details={"source": source},
            recoverable=False,
        ) from e


async def fetch_source(
    source: str,
    fetch: SourceFetch,
    timeout: Optional[float] = None,
) -> SourceResult:
    """
    Fetch one source in the thread pool, bounded by a timeout.

    Never raises for source failures; they are returned as the result's error.
    """
    timeout = timeout if timeout is not None else get_config().source_timeout_seconds
    started = time.monotonic()
    try:
        payload = await asyncio.wait_for(run_in_executor(fetch), timeout=timeout)
        data = _coerce_feed(source, payload)
    except Exception as e:
        error = AwardFinderError.from_exception(e, source=source)
        logger.warning(f"Source {source} failed: {error.code.value}: {error.message}")
        return SourceResult(source=source, error=error, elapsed_seconds=time.monotonic() - started)

    elapsed = time.monotonic() - started
    logger.debug(
        f"Source {source}: {len(data.flights)} flights, "
        f"{len(data.itineraries)} itineraries in {elapsed:.2f}s"
    )
    return SourceResult(source=source, data=data, elapsed_seconds=elapsed)


async def fetch_sources(
    sources: Mapping[str, SourceFetch],
    timeout: Optional[float] = None,
    max_concurrent: Optional[int] = None,
) -> List[SourceResult]:
    """
    Fetch several sources concurrently.

    Args:
        sources: Source name -> blocking callable returning a feed
            (AwardResults or its dict form)
        timeout: Per-source bound in seconds (default: config.source_timeout_seconds)
        max_concurrent: Maximum concurrent fetches (default: config.max_concurrent_sources,
            None = all at once)

    Returns:
        One SourceResult per source, in input order
    """
    if max_concurrent is None:
        max_concurrent = get_config().max_concurrent_sources

    if max_concurrent:
        # Use semaphore to limit concurrency
        semaphore = asyncio.Semaphore(max_concurrent)

        async def fetch_with_semaphore(name: str, fetch: SourceFetch) -> SourceResult:
            async with semaphore:
                return await fetch_source(name, fetch, timeout=timeout)

        tasks = [fetch_with_semaphore(name, fetch) for name, fetch in sources.items()]
    else:
        tasks = [fetch_source(name, fetch, timeout=timeout) for name, fetch in sources.items()]

    results = await asyncio.gather(*tasks)

    failed = [r.source for r in results if not r.success]
    if failed:
        logger.info(f"{len(failed)} of {len(results)} sources failed: {', '.join(failed)}")
    return list(results)


def fetch_sources_sync(
    sources: Mapping[str, SourceFetch],
    timeout: Optional[float] = None,
    max_concurrent: Optional[int] = None,
) -> List[SourceResult]:
    """Blocking wrapper around fetch_sources for callers without an event loop."""
    return asyncio.run(fetch_sources(sources, timeout=timeout, max_concurrent=max_concurrent))


# ============================================================================
# Merging
# ============================================================================

@dataclass
class MergedResults:
    """Union of the successful sources plus markers for the failed ones."""
    results: AwardResults
    succeeded: List[str] = field(default_factory=list)
    failed: Dict[str, AwardFinderError] = field(default_factory=dict)

    @property
    def partial(self) -> bool:
        return bool(self.failed)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "results": self.results.to_dict(),
            "succeeded": list(self.succeeded),
            "failed": {source: error.to_dict() for source, error in self.failed.items()},
        }


def merge_results(results: List[SourceResult]) -> MergedResults:
    """
    Merge source results into one feed.

    Flight tables are unioned (the first source to define an id keeps it).
    Itinerary cards are concatenated in source order; an identical card
    from a later source is skipped. Cards keep their ordinals; a later
    card whose (route, date, ordinal) is already taken gets the next free
    ordinal of its (route, date).
    """
    merged = AwardResults()
    seen: Set[Tuple[str, str, Tuple[str, ...]]] = set()
    taken: Dict[Tuple[str, str], Set[int]] = {}
    succeeded: List[str] = []
    failed: Dict[str, AwardFinderError] = {}

    for result in results:
        if not result.success or result.data is None:
            failed[result.source] = result.error or AwardFinderError(
                code=ErrorCode.SOURCE_FAILED,
                message=f"Source {result.source} returned no data",
                details={"source": result.source},
            )
            continue

        succeeded.append(result.source)
        for flight_id, flight in result.data.flights.items():
            merged.flights.setdefault(flight_id, flight)
        for card in result.data.itineraries:
            key = (card["route"], card["date"], tuple(card["itinerary"]))
            if key in seen:
                continue
            seen.add(key)
            used = taken.setdefault((card["route"], card["date"]), set())
            ordinal = card.get("ordinal", 0)
            if ordinal in used:
                ordinal = max(used) + 1
                card = dict(card, ordinal=ordinal)
            used.add(ordinal)
            merged.itineraries.append(card)

    return MergedResults(results=merged, succeeded=succeeded, failed=failed)


__all__ = [
    "get_executor",
    "shutdown_executor",
    "run_in_executor",
    "SourceFetch",
    "SourceResult",
    "fetch_source",
    "fetch_sources",
    "fetch_sources_sync",
    "MergedResults",
    "merge_results",
]

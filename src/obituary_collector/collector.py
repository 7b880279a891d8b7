"""Collection runs: drive every active source through its adapter.

Per source: discover -> fetch page (rate limited) -> extract cards ->
optional detail fetch (rate limited) -> normalize -> validate -> image check
-> suppression check -> dedup/persist, followed by a health update on the
registry. A failing source is recorded and the run moves on.
"""
from __future__ import annotations

import asyncio
import time
from datetime import UTC, date, datetime
from typing import Awaitable, Callable, Iterable

from .adapters import AdapterRegistry, SourceAdapter
from .config import CollectorSettings
from .dedup import DedupEngine, PersistOutcome
from .exceptions import AdapterNotFoundError, PersistenceError
from .extraction.images import check_portrait
from .logging import get_logger
from .models.records import Card, NormalizedRecord
from .models.run import RunSummary, SourceResult
from .models.source import Source
from .net import HttpFetcher, RateLimiter
from .storage.obituaries import ObituaryStore
from .storage.sources import SourceRegistry
from .storage.suppressions import SuppressionList
from .validation import validate_record

log = get_logger(__name__)

SNIPPET_CHARS = 300


def is_banned(domain: str, patterns: Iterable[str]) -> bool:
    """Match ``domain`` against ban patterns.

    ``example.com`` is exact, ``*.example.com`` matches by suffix and
    ``*example*`` anywhere in the domain.
    """
    domain = (domain or "").lower().strip()
    if not domain:
        return False
    for raw in patterns:
        pattern = raw.lower().strip()
        if not pattern:
            continue
        if len(pattern) > 2 and pattern.startswith("*") and pattern.endswith("*"):
            if pattern[1:-1] in domain:
                return True
        elif pattern.startswith("*"):
            if domain.endswith(pattern[1:]):
                return True
        elif domain == pattern:
            return True
    return False


def _snippet(html: str) -> str:
    return " ".join(html[: SNIPPET_CHARS * 2].split())[:SNIPPET_CHARS]


class SourceCollector:
    def __init__(
        self,
        registry: SourceRegistry,
        store: ObituaryStore,
        suppressions: SuppressionList,
        adapters: AdapterRegistry,
        settings: CollectorSettings | None = None,
        fetcher: HttpFetcher | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.registry = registry
        self.store = store
        self.suppressions = suppressions
        self.adapters = adapters
        self.settings = settings or CollectorSettings()
        self.fetcher = fetcher or HttpFetcher(self.settings)
        self.dedup = DedupEngine(store, self.settings)
        self._clock = clock
        self._sleep = sleep
        self._today = today

    # Entry points ---------------------------------------------------------

    async def collect(self, region: str | None = None, city: str | None = None) -> RunSummary:
        """Process every active source (optionally filtered by region/city)."""
        if region or city:
            sources = self.registry.get_sources_by_location(region, city)
        else:
            sources = self.registry.get_active_sources()
        return await self._run(sources)

    async def collect_source(self, source_id: int) -> RunSummary:
        """Process one source on demand, even if it is disabled."""
        source = self.registry.get_source(source_id)
        return await self._run([source])

    # Run orchestration ----------------------------------------------------

    async def _run(self, sources: list[Source]) -> RunSummary:
        summary = RunSummary()
        budget = self.settings.run_budget_seconds
        deadline = self._clock() + budget if budget > 0 else None
        log.info(
            "collection_started",
            sources=len(sources),
            listing_only=self.settings.listing_only,
            budget_seconds=budget or None,
        )

        if self.settings.max_concurrent_sources <= 1:
            for source in sources:
                await self._run_source(source, summary, deadline)
        else:
            semaphore = asyncio.Semaphore(self.settings.max_concurrent_sources)

            async def _guarded(source: Source) -> None:
                async with semaphore:
                    await self._run_source(source, summary, deadline)

            await asyncio.gather(*(_guarded(s) for s in sources))

        summary.completed_at = datetime.now(UTC)
        log.info(
            "collection_completed",
            found=summary.obituaries_found,
            added=summary.obituaries_added,
            merged=summary.obituaries_merged,
            processed=summary.sources_processed,
            skipped=summary.sources_skipped,
            deferred=summary.sources_deferred,
            errors=len(summary.errors),
        )
        return summary

    async def _run_source(self, source: Source, summary: RunSummary, deadline: float | None) -> None:
        if is_banned(source.domain, self.settings.banned_sources) or is_banned(
            source.host, self.settings.banned_sources
        ):
            summary.sources_skipped += 1
            log.info("source_skipped", domain=source.domain, reason="banned")
            return

        try:
            adapter = self.adapters.get(source.adapter_type, source.domain)
        except AdapterNotFoundError as e:
            summary.sources_skipped += 1
            summary.errors[source.domain] = str(e)
            self._record_failure(source, str(e))
            log.warning("source_skipped", domain=source.domain, reason="no_adapter", adapter_type=source.adapter_type)
            return

        if deadline is not None and self._clock() >= deadline:
            summary.sources_deferred += 1
            log.info("source_deferred", domain=source.domain, reason="budget_exhausted")
            return

        result = SourceResult(domain=source.domain, name=source.name)
        try:
            if deadline is None:
                await self._process_source(adapter, source, result)
            else:
                await asyncio.wait_for(
                    self._process_source(adapter, source, result),
                    timeout=max(0.0, deadline - self._clock()),
                )
        except asyncio.TimeoutError:
            # Rows already written stay; the rest waits for the next run
            summary.sources_deferred += 1
            summary.obituaries_found += result.found
            summary.obituaries_added += result.added
            summary.obituaries_merged += result.merged
            log.warning("source_deferred", domain=source.domain, reason="budget_expired", added=result.added)
            return
        except Exception as e:
            message = f"{type(e).__name__}: {e}"
            result.errors.append(message)
            summary.errors[source.domain] = message
            summary.add(result)
            self._record_failure(source, message)
            log.error("source_failed", domain=source.domain, error=message)
            return

        summary.add(result)
        if result.pages == 0 and result.pages_failed > 0:
            reason = result.errors[0] if result.errors else "all listing pages failed"
            summary.errors[source.domain] = reason
            self._record_failure(source, reason)
            log.warning("source_failed", domain=source.domain, error=reason, pages_failed=result.pages_failed)
        else:
            if source.id is not None:
                self.registry.record_success(source.id, result.added)
            log.info("source_completed", **result.model_dump(exclude={"errors"}), errors=len(result.errors))

    def _record_failure(self, source: Source, reason: str) -> None:
        if source.id is None:
            return
        self.registry.record_failure(
            source.id,
            reason,
            threshold=self.settings.failure_threshold,
            cooldown_hours=self.settings.circuit_cooldown_hours,
        )

    # Per-source pipeline --------------------------------------------------

    async def _process_source(self, adapter: SourceAdapter, source: Source, result: SourceResult) -> None:
        limiter = RateLimiter(source.min_request_interval, clock=self._clock, sleep=self._sleep)
        urls = adapter.discover_listing_urls(source, self.settings.max_age_days)

        for url in urls:
            await limiter.acquire()
            fetched = await adapter.fetch_listing(url, source)
            if not fetched.ok:
                result.pages_failed += 1
                result.errors.append(fetched.error or f"Fetch failed for {url}")
                log.warning("listing_fetch_failed", domain=source.domain, url=url, error=fetched.error)
                continue

            result.pages += 1
            cards = adapter.extract_cards(fetched.content, source)
            if not cards:
                result.zero_card_pages += 1
                log.warning(
                    "zero_cards",
                    domain=source.domain,
                    adapter=adapter.adapter_type,
                    url=url,
                    size=len(fetched.content),
                    snippet=_snippet(fetched.content),
                )
                continue

            result.found += len(cards)
            for card in cards:
                await self._process_card(adapter, source, card, limiter, result)

    async def _process_card(
        self,
        adapter: SourceAdapter,
        source: Source,
        card: Card,
        limiter: RateLimiter,
        result: SourceResult,
    ) -> None:
        if adapter.fetches_detail and not self.settings.listing_only and card.detail_url:
            await limiter.acquire()
            card = card.enrich(await adapter.fetch_detail(card.detail_url, card, source))

        record = adapter.normalize(card, source)
        reason = validate_record(record, self.settings.earliest_death_year, self._today())
        if reason is not None:
            result.rejected += 1
            log.debug(
                "candidate_rejected",
                domain=source.domain,
                name=record.name,
                reason=reason.value,
                published_date=card.published_date or None,
            )
            return

        record = await self._vet_image(record, source, limiter)

        if self.is_suppressed(record):
            result.suppressed += 1
            log.info("candidate_suppressed", domain=source.domain, provenance_hash=record.provenance_hash)
            return

        try:
            persisted = self.dedup.persist(record)
        except PersistenceError as e:
            result.errors.append(str(e))
            log.error("persist_failed", domain=source.domain, name=record.name, error=str(e))
            return

        if persisted.outcome == PersistOutcome.INSERTED:
            result.added += 1
        elif persisted.outcome == PersistOutcome.MERGED:
            result.merged += 1

    async def _vet_image(self, record: NormalizedRecord, source: Source, limiter: RateLimiter) -> NormalizedRecord:
        """Keep an image only for allowlisted sources whose HEAD check passes."""
        if not record.image_url:
            return record
        if not source.image_allowlisted:
            return record.model_copy(update={"image_url": ""})

        await limiter.acquire()
        check = await check_portrait(self.fetcher, record.image_url, self.settings.portrait_min_bytes)
        if check.accepted:
            return record
        log.info("image_rejected", domain=source.domain, url=record.image_url, reason=check.reason)
        return record.model_copy(update={"image_url": ""})

    def is_suppressed(self, record: NormalizedRecord) -> bool:
        if not record.provenance_hash:
            return False
        if self.suppressions.is_blocked(record.provenance_hash):
            return True
        return self.store.count_suppressed_by_hash(record.provenance_hash) > 0

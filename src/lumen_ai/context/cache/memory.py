"""In-memory enriched-context cache with adaptive TTL and a background sweep."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from typing import Any

from lumen_ai.context.cache.ttl_policy import (
    DEFAULT_BASE_TTL_SECONDS,
    DEFAULT_MIN_TTL_SECONDS,
    compute_ttl,
)
from lumen_ai.context.models import (
    CacheEntry,
    CacheStatistics,
    CacheStatus,
    ContextCollectionOptions,
    ContextPart,
    EnrichedContext,
)
from lumen_ai.context.protocols import IContextBuilder
from lumen_ai.core.types import Clock

log = logging.getLogger(__name__)


class ContextCache:
    """Session-keyed cache of :class:`EnrichedContext` objects.

    The ``asyncio.Lock`` guards only the entry map; builder calls are awaited
    outside it so one session's slow build never stalls another's lookup.
    Concurrent misses for the same key each invoke the builder unless
    ``single_flight`` is enabled, in which case they share one build.
    """

    def __init__(
        self,
        builder: IContextBuilder,
        *,
        base_ttl_seconds: float = DEFAULT_BASE_TTL_SECONDS,
        min_ttl_seconds: float = DEFAULT_MIN_TTL_SECONDS,
        max_entries: int = 100,
        sweep_interval_seconds: float = 5 * 60,
        single_flight: bool = False,
        clock: Clock = time.time,
    ) -> None:
        if max_entries < 1:
            raise ValueError(f"max_entries must be at least 1, got {max_entries}")
        self._builder = builder
        self._base_ttl = base_ttl_seconds
        self._min_ttl = min_ttl_seconds
        self._max_entries = max_entries
        self._sweep_interval = sweep_interval_seconds
        self._single_flight = single_flight
        self._clock = clock

        self._entries: dict[str, CacheEntry] = {}
        self._lock = asyncio.Lock()
        self._inflight: dict[str, asyncio.Future[EnrichedContext]] = {}
        self._sweep_task: asyncio.Task[None] | None = None
        self._hits = 0
        self._misses = 0
        self._generations = 0
        self._total_generation_ms = 0.0

    # ── Lifecycle ────────────────────────────────────────────────────

    def start(self) -> None:
        """Launch the periodic expiry sweep. Idempotent."""
        if self._sweep_task is None or self._sweep_task.done():
            self._sweep_task = asyncio.create_task(self._sweep_loop(), name="context-cache-sweep")

    async def shutdown(self) -> None:
        """Stop the sweep task and drop every entry."""
        if self._sweep_task is not None:
            self._sweep_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._sweep_task
            self._sweep_task = None
        await self.clear_all()

    async def __aenter__(self) -> ContextCache:
        self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.shutdown()

    # ── Lookup ───────────────────────────────────────────────────────

    async def get_or_update(
        self,
        session_id: str,
        options: ContextCollectionOptions | None = None,
        force_refresh: bool = False,
    ) -> EnrichedContext:
        """Return the cached context for ``session_id``, building it on a miss.

        Builder errors propagate unchanged and nothing is cached for them.
        """
        opts = options or ContextCollectionOptions()

        async with self._lock:
            if not force_refresh:
                entry = self._entries.get(session_id)
                now = self._clock()
                if entry is not None and not entry.is_expired(now):
                    entry.access_count += 1
                    entry.last_accessed_at = now
                    self._hits += 1
                    log.debug("Context cache hit for %s (access #%d)", session_id, entry.access_count)
                    return entry.context
            self._misses += 1

            if self._single_flight:
                pending = self._inflight.get(session_id)
                if pending is None:
                    pending = asyncio.ensure_future(self._build_and_store(session_id, opts))
                    self._inflight[session_id] = pending
                    pending.add_done_callback(lambda fut: self._forget_inflight(session_id, fut))

        log.debug("Context cache miss for %s (force_refresh=%s)", session_id, force_refresh)
        if self._single_flight:
            return await asyncio.shield(pending)
        return await self._build_and_store(session_id, opts)

    async def preload(self, session_id: str, options: ContextCollectionOptions | None = None) -> None:
        """Warm the cache for ``session_id``. Failures are logged, not raised."""
        try:
            await self.get_or_update(session_id, options)
        except Exception as exc:
            log.warning("Context preload failed for %s: %s", session_id, exc)

    # ── Invalidation ─────────────────────────────────────────────────

    async def invalidate_context_part(self, session_id: str, part: ContextPart) -> bool:
        """Rebuild one sub-result of a cached context in place.

        Returns True when the entry was refreshed.  A failed or empty rebuild
        drops the whole entry rather than leaving a half-stale context behind.
        """
        async with self._lock:
            entry = self._entries.get(session_id)
        if entry is None:
            return False

        part_options = ContextCollectionOptions.only(part, entry.options)
        started = time.perf_counter()
        try:
            rebuilt = await self._builder.build(session_id, part_options)
        except Exception as exc:
            log.warning("Partial rebuild of %s for %s failed, dropping entry: %s", part.value, session_id, exc)
            await self.invalidate(session_id)
            return False

        self._record_generation((time.perf_counter() - started) * 1000)

        value = rebuilt.get_part(part)
        if value is None:
            log.warning("Partial rebuild of %s for %s produced nothing, dropping entry", part.value, session_id)
            await self.invalidate(session_id)
            return False

        merged = entry.context.with_part(part, value)
        async with self._lock:
            if self._entries.get(session_id) is not entry:
                # Replaced or removed while the rebuild was in flight
                return False
            now = self._clock()
            entry.context = merged
            entry.created_at = now
            entry.last_accessed_at = now
            entry.ttl_seconds = compute_ttl(merged, self._base_ttl, self._min_ttl)

        log.info("Refreshed %s for %s (ttl=%.0fs)", part.value, session_id, entry.ttl_seconds)
        return True

    async def invalidate(self, session_id: str) -> None:
        async with self._lock:
            self._entries.pop(session_id, None)

    async def clear_all(self) -> None:
        async with self._lock:
            self._entries.clear()

    async def sweep_expired(self) -> int:
        """Remove every expired entry and return how many were dropped."""
        async with self._lock:
            snapshot = list(self._entries.items())

        now = self._clock()
        expired = [key for key, entry in snapshot if entry.is_expired(now)]
        removed = 0
        if expired:
            async with self._lock:
                for key in expired:
                    current = self._entries.get(key)
                    if current is not None and current.is_expired(now):
                        del self._entries[key]
                        removed += 1
        if removed:
            log.info("Context cache sweep removed %d expired entries", removed)
        return removed

    # ── Observability ────────────────────────────────────────────────

    def statistics(self) -> CacheStatistics:
        entries = list(self._entries.values())
        lookups = self._hits + self._misses
        hit_rate = round(self._hits / lookups * 100, 2) if lookups else 0.0
        avg_generation = self._total_generation_ms / self._generations if self._generations else 0.0
        size_bytes = sum(len(e.context.model_dump_json().encode("utf-8")) for e in entries)
        created = [e.created_at for e in entries]
        return CacheStatistics(
            total_entries=len(entries),
            hits=self._hits,
            misses=self._misses,
            hit_rate=hit_rate,
            average_generation_time_ms=avg_generation,
            memory_usage_kb=round(size_bytes / 1024),
            oldest_entry=min(created) if created else 0.0,
            newest_entry=max(created) if created else 0.0,
        )

    def cache_status(self, session_id: str) -> CacheStatus | None:
        entry = self._entries.get(session_id)
        if entry is None:
            return None
        now = self._clock()
        meta = entry.context.metadata
        return CacheStatus(
            exists=True,
            is_valid=not entry.is_expired(now),
            age_minutes=round((now - entry.created_at) / 60, 1),
            access_count=entry.access_count,
            data_source_count=meta.data_source_count,
            confidence_percent=round(meta.total_confidence * 100),
            ttl_seconds=entry.ttl_seconds,
        )

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._entries

    # ── Internals ────────────────────────────────────────────────────

    async def _build_and_store(self, session_id: str, options: ContextCollectionOptions) -> EnrichedContext:
        started = time.perf_counter()
        context = await self._builder.build(session_id, options)
        generation_ms = (time.perf_counter() - started) * 1000
        self._record_generation(generation_ms)
        ttl = compute_ttl(context, self._base_ttl, self._min_ttl)

        async with self._lock:
            self._entries.pop(session_id, None)
            while len(self._entries) >= self._max_entries:
                self._evict_oldest()
            self._entries[session_id] = CacheEntry(
                context=context,
                created_at=self._clock(),
                ttl_seconds=ttl,
                generation_time_ms=generation_ms,
                options=options,
            )

        log.debug("Cached context for %s (ttl=%.0fs, build=%.1fms)", session_id, ttl, generation_ms)
        return context

    def _record_generation(self, elapsed_ms: float) -> None:
        self._generations += 1
        self._total_generation_ms += elapsed_ms

    def _evict_oldest(self) -> None:
        oldest = min(self._entries, key=lambda key: self._entries[key].created_at)
        del self._entries[oldest]
        log.debug("Evicted oldest context entry %s", oldest)

    def _forget_inflight(self, session_id: str, fut: asyncio.Future[EnrichedContext]) -> None:
        if self._inflight.get(session_id) is fut:
            del self._inflight[session_id]

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self._sweep_interval)
            try:
                await self.sweep_expired()
            except Exception:
                log.exception("Context cache sweep failed")

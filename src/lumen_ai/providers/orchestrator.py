"""Provider orchestrator: model registry plus sequential retry/fallback execution."""

from __future__ import annotations

import asyncio
import dataclasses
import logging
import time
from typing import Any, Callable

from lumen_ai.core.types import Sleeper
from lumen_ai.exceptions import (
    AllProvidersExhaustedError,
    NonRetryableError,
    ProviderConfigError,
    ProviderTimeoutError,
    RateLimitExceededError,
)
from lumen_ai.hooks.circuit_breaker import CircuitBreaker
from lumen_ai.hooks.circuit_breaker_store import IBreakerStore, MemoryBreakerStore
from lumen_ai.hooks.cost_hook import record_completion
from lumen_ai.inference.factory import create_backend_client
from lumen_ai.inference.protocols import IBackendClient
from lumen_ai.providers.models import (
    BackendFamily,
    CompletionRequest,
    CompletionResult,
    FallbackConfig,
    ProviderConfig,
)
from lumen_ai.providers.rate_limit import IRateLimiter, IUsageAccountant

log = logging.getLogger(__name__)

ClientFactory = Callable[..., IBackendClient]

ANONYMOUS_SUBJECT = "anonymous"


class ProviderOrchestrator:
    """Registry of AI backend bindings with a bounded fallback chain.

    Candidates are tried one at a time in priority order.  Retryable failures
    move on to the next candidate after a linear backoff; a non-retryable
    failure aborts the whole chain.  Each backend call runs under a
    per-call deadline so a hung backend cannot stall the caller forever.
    """

    def __init__(
        self,
        *,
        rate_limiter: IRateLimiter | None = None,
        usage_accountant: IUsageAccountant | None = None,
        fallback: FallbackConfig | None = None,
        client_factory: ClientFactory = create_backend_client,
        call_timeout: float = 90.0,
        default_temperature: float = 0.7,
        default_top_p: float = 1.0,
        health_check_max_tokens: int = 10,
        circuit_breaker_enabled: bool = True,
        failure_threshold: int = 5,
        recovery_timeout_seconds: float = 60.0,
        breaker_store: IBreakerStore | None = None,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self._rate_limiter = rate_limiter
        self._usage_accountant = usage_accountant
        self._fallback = fallback or FallbackConfig()
        self._client_factory = client_factory
        self._call_timeout = call_timeout
        self._default_temperature = default_temperature
        self._default_top_p = default_top_p
        self._health_check_max_tokens = health_check_max_tokens
        self._breaker_enabled = circuit_breaker_enabled
        self._failure_threshold = failure_threshold
        self._recovery_timeout = recovery_timeout_seconds
        self._breaker_store: IBreakerStore = breaker_store or MemoryBreakerStore()
        self._sleep = sleep

        self._models: dict[str, ProviderConfig] = {}
        self._clients: dict[str, IBackendClient] = {}
        self._breakers: dict[str, CircuitBreaker] = {}
        self._pending: set[asyncio.Task[None]] = set()

    # ── Registry ─────────────────────────────────────────────────────

    def register_model(self, config: ProviderConfig) -> None:
        """Bind ``config`` to a backend client for its family.

        Raises:
            ProviderConfigError: If no client can be built for the family.
        """
        client = self._client_factory(
            config.backend_family.value,
            api_key=config.api_key or "",
            api_base=config.api_base or "",
        )
        if config.id in self._models:
            log.warning("Model %r already registered, overwriting", config.id)
        self._models[config.id] = config
        self._clients[config.id] = client
        if self._breaker_enabled:
            self._breakers[config.id] = CircuitBreaker(
                config.id,
                failure_threshold=self._failure_threshold,
                recovery_timeout_seconds=self._recovery_timeout,
                store=self._breaker_store,
            )
        log.info("Registered model %s (%s/%s)", config.id, config.backend_family.value, config.model_id)

    def unregister_model(self, provider_id: str) -> bool:
        removed = self._models.pop(provider_id, None) is not None
        self._clients.pop(provider_id, None)
        self._breakers.pop(provider_id, None)
        return removed

    def get_model(self, provider_id: str) -> ProviderConfig | None:
        return self._models.get(provider_id)

    def registered_models(self) -> list[ProviderConfig]:
        return list(self._models.values())

    def get_breaker(self, provider_id: str) -> CircuitBreaker | None:
        return self._breakers.get(provider_id)

    def provider_stats(self) -> dict[str, dict[str, int]]:
        """Registered models and bound clients per backend family."""
        stats = {family.value: {"models": 0, "active": 0} for family in BackendFamily}
        for model in self._models.values():
            bucket = stats[model.backend_family.value]
            bucket["models"] += 1
            if model.id in self._clients:
                bucket["active"] += 1
        return stats

    @property
    def fallback_config(self) -> FallbackConfig:
        return self._fallback

    def set_fallback_config(self, **changes: Any) -> FallbackConfig:
        self._fallback = dataclasses.replace(self._fallback, **changes)
        return self._fallback

    def clear(self) -> None:
        self._models.clear()
        self._clients.clear()
        self._breakers.clear()

    # ── Completion ───────────────────────────────────────────────────

    def attempt_sequence(self, provider_id: str) -> list[str]:
        """Requested provider first, then the fallback list, bounded by ``max_retries``."""
        sequence = [provider_id]
        if self._fallback.enabled:
            for candidate in self._fallback.models:
                if candidate not in sequence:
                    sequence.append(candidate)
        return sequence[: max(self._fallback.max_retries, 1)]

    async def generate_completion(self, provider_id: str, request: CompletionRequest) -> CompletionResult:
        """Run ``request`` against ``provider_id``, falling back on retryable failures.

        Raises:
            AllProvidersExhaustedError: When every candidate failed, or when a
                non-retryable error stopped the chain early.
        """
        candidates = self.attempt_sequence(provider_id)
        attempts: list[tuple[str, Exception]] = []

        for index, candidate in enumerate(candidates):
            config = self._models.get(candidate)
            client = self._clients.get(candidate)
            if config is None or client is None:
                log.warning("Model not found: %s, skipping", candidate)
                attempts.append((candidate, ProviderConfigError(f"Model not found: {candidate}", provider_id=candidate)))
                continue

            log.debug("Attempting completion with %s (attempt %d/%d)", candidate, index + 1, len(candidates))
            try:
                result = await self._attempt(config, client, request, index)
            except Exception as exc:
                attempts.append((candidate, exc))
                if isinstance(exc, NonRetryableError):
                    log.error("Model %s failed with a non-retryable error, aborting chain: %s", candidate, exc)
                    raise AllProvidersExhaustedError(
                        f"Non-retryable failure from {candidate}: {exc}", attempts
                    ) from exc
                log.warning("Model %s failed: %s", candidate, exc)
                if index < len(candidates) - 1:
                    await self._sleep(self._fallback.retry_delay * (index + 1))
                continue

            if index > 0:
                log.info("Fallback successful with model %s (requested %s)", candidate, provider_id)
            return result

        last_error = attempts[-1][1] if attempts else None
        raise AllProvidersExhaustedError(
            f"All {len(candidates)} provider attempt(s) failed for {provider_id}", attempts
        ) from last_error

    async def _attempt(
        self,
        config: ProviderConfig,
        client: IBackendClient,
        request: CompletionRequest,
        index: int,
    ) -> CompletionResult:
        breaker = self._breakers.get(config.id)
        if breaker is not None:
            breaker.before_call()

        if request.user_id and self._rate_limiter is not None:
            decision = await self._rate_limiter.check_and_consume(request.user_id, 1)
            if not decision.allowed:
                raise RateLimitExceededError(
                    f"Rate limit exceeded: {decision.reason}",
                    provider_id=config.id,
                    model=config.model_id,
                )

        params = {
            "max_tokens": request.max_tokens or config.max_tokens,
            "temperature": request.temperature if request.temperature is not None else self._default_temperature,
            "top_p": request.top_p if request.top_p is not None else self._default_top_p,
        }
        timeout = request.timeout or self._call_timeout
        started = time.perf_counter()
        try:
            response = await asyncio.wait_for(
                client.complete(config.model_id, request.wire_messages(), **params),
                timeout=timeout,
            )
        except Exception as exc:
            if breaker is not None and not isinstance(exc, NonRetryableError):
                breaker.record_failure()
            if isinstance(exc, asyncio.TimeoutError):
                raise ProviderTimeoutError(
                    f"{config.id} did not answer within {timeout:.0f}s",
                    provider_id=config.id,
                    model=config.model_id,
                ) from exc
            raise

        if breaker is not None:
            breaker.record_success()

        latency_ms = (time.perf_counter() - started) * 1000
        usage = response.usage
        cost = config.cost_of(usage)
        self._report_usage(
            request.user_id or ANONYMOUS_SUBJECT, config, usage.input_tokens, usage.output_tokens, cost
        )
        record_completion(config.id, usage.input_tokens, usage.output_tokens, cost, fallback=index > 0)
        return CompletionResult(
            content=response.content,
            model=config.model_id,
            provider_id=config.id,
            usage=response.usage,
            cost=cost,
            latency_ms=latency_ms,
            finish_reason=response.finish_reason,
            attempt_index=index,
        )

    # ── Accounting ───────────────────────────────────────────────────

    def _report_usage(
        self,
        subject_id: str,
        config: ProviderConfig,
        input_tokens: int,
        output_tokens: int,
        cost: float,
    ) -> None:
        if self._usage_accountant is None:
            return
        task = asyncio.create_task(
            self._usage_accountant.record(subject_id, config.model_id, input_tokens, output_tokens, cost)
        )
        self._pending.add(task)
        task.add_done_callback(self._on_accounting_done)

    def _on_accounting_done(self, task: asyncio.Task[None]) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            log.warning("Usage accounting failed: %s", exc)

    async def drain(self) -> None:
        """Wait for in-flight usage reports to finish."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def shutdown(self) -> None:
        await self.drain()
        self.clear()

    # ── Health ───────────────────────────────────────────────────────

    async def health_check(self, provider_id: str | None = None) -> dict[str, bool]:
        """Probe one or all registered providers with a minimal request.

        No fallback and no accounting; a provider is healthy when its backend
        answers at all.
        """
        ids = [provider_id] if provider_id else list(self._models)

        async def _probe(candidate: str) -> tuple[str, bool]:
            config = self._models.get(candidate)
            client = self._clients.get(candidate)
            if config is None or client is None:
                return candidate, False
            try:
                await asyncio.wait_for(
                    client.complete(
                        config.model_id,
                        [{"role": "user", "content": "test"}],
                        max_tokens=self._health_check_max_tokens,
                    ),
                    timeout=self._call_timeout,
                )
            except Exception as exc:
                log.info("Health check failed for %s: %s", candidate, exc)
                return candidate, False
            return candidate, True

        results = await asyncio.gather(*(_probe(candidate) for candidate in ids))
        return dict(results)

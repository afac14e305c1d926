"""Provider health registry: fallback ordering, retry eligibility and recovery."""

import asyncio
import logging
import threading
from typing import Dict, Iterable, List, Optional, Tuple, Union

from chat_gateway.config.models import RecoveryConfig
from chat_gateway.logging.utils import create_audit_logger
from chat_gateway.models.context import ProviderConfig, ProviderHealth, ProviderHealthView, utc_now
from chat_gateway.models.errors import ConfigurationError
from .recovery import RecoveryScheduler


logger = logging.getLogger(__name__)


class ProviderHealthRegistry:
    """Tracks configuration and live health of every provider.

    Health is process-wide: one request's failure immediately changes routing
    for every other in-flight request. Each provider's record has its own lock,
    held only for in-memory updates and never across an ``await``.
    """

    def __init__(
        self,
        provider_configs: Iterable[ProviderConfig],
        recovery: Optional[RecoveryConfig] = None
    ):
        """Initialize the registry with the static provider configurations."""
        self.recovery = recovery or RecoveryConfig()
        self._configs: Dict[str, ProviderConfig] = {}
        self._health: Dict[str, ProviderHealth] = {}
        self._locks: Dict[str, threading.Lock] = {}

        for config in provider_configs:
            if config.name in self._configs:
                raise ConfigurationError(
                    f"Provider {config.name} is configured more than once",
                    config_key=config.name
                )
            self._configs[config.name] = config
            self._health[config.name] = ProviderHealth(name=config.name)
            self._locks[config.name] = threading.Lock()

        # Enablement is decided once at startup, so the order never changes.
        self._fallback_order: Tuple[str, ...] = tuple(
            config.name
            for config in sorted(self._configs.values(), key=lambda c: c.priority)
            if config.enabled
        )

        self._scheduler = RecoveryScheduler(self.run_recovery_probe)
        self._sweeper: Optional[asyncio.Task] = None
        self._audit = create_audit_logger("providers")

        if self._fallback_order:
            logger.info(
                f"Initialized providers: {' -> '.join(self._fallback_order)}",
                extra={"fallback_order": list(self._fallback_order)}
            )
        else:
            logger.warning("No providers are enabled; every request will fail until one is configured")

    @property
    def fallback_order(self) -> Tuple[str, ...]:
        """Enabled providers, most preferred first."""
        return self._fallback_order

    @property
    def provider_names(self) -> List[str]:
        """All configured providers, enabled or not."""
        return list(self._configs)

    def config(self, provider_name: str) -> ProviderConfig:
        """Get the static configuration of a provider."""
        try:
            return self._configs[provider_name]
        except KeyError:
            raise KeyError(f"Unknown provider: {provider_name}") from None

    def is_healthy(self, provider_name: str) -> bool:
        """Check the current health flag of a provider."""
        health = self._health.get(provider_name)
        return health is not None and health.is_healthy

    def best_available(self) -> Optional[str]:
        """Most preferred healthy provider, or None when every provider is down."""
        for provider_name in self._fallback_order:
            if self._health[provider_name].is_healthy:
                return provider_name
        return None

    def next_provider(self, current_provider: str) -> Optional[str]:
        """First healthy provider strictly after ``current_provider`` in the fallback order."""
        try:
            index = self._fallback_order.index(current_provider)
        except ValueError:
            return None

        for provider_name in self._fallback_order[index + 1:]:
            if self._health[provider_name].is_healthy:
                return provider_name
        return None

    def can_retry(self, provider_name: str, attempt_count: int) -> bool:
        """Whether another attempt against the same provider is allowed.

        A provider that was marked unhealthy mid-loop is never retried.
        """
        config = self._configs.get(provider_name)
        if config is None:
            return False
        return attempt_count < config.max_retries and self._health[provider_name].is_healthy

    def mark_healthy(self, provider_name: str) -> None:
        """Record a success: reset the failure run and restore the provider."""
        if provider_name not in self._health:
            logger.warning(f"Ignoring success report for unknown provider {provider_name}")
            return

        with self._locks[provider_name]:
            health = self._health[provider_name]
            was_unhealthy = not health.is_healthy
            health.is_healthy = True
            health.consecutive_failures = 0
            health.last_error = None
            health.last_checked_at = utc_now()

        self._scheduler.cancel(provider_name)

        if was_unhealthy:
            logger.info(f"Provider {provider_name} recovered", extra={"provider": provider_name})
            self._audit.log_system_event(
                "provider_recovered",
                component="provider_registry",
                provider=provider_name,
            )

    def mark_unhealthy(self, provider_name: str, error: Union[str, Exception]) -> None:
        """Record a failure and schedule a recovery probe.

        The provider flips to unhealthy once its failure run reaches
        ``max_retries``. Below that it stays routable, but a short reset probe
        is still scheduled so isolated errors do not accumulate forever.
        """
        if provider_name not in self._health:
            logger.warning(f"Ignoring failure report for unknown provider {provider_name}")
            return

        config = self._configs[provider_name]
        error_message = str(error)

        with self._locks[provider_name]:
            health = self._health[provider_name]
            health.consecutive_failures += 1
            health.last_error = error_message
            health.last_checked_at = utc_now()
            failures = health.consecutive_failures

            tripped = health.is_healthy and failures >= config.max_retries
            if tripped:
                health.is_healthy = False
            unhealthy = not health.is_healthy

        logger.warning(
            f"Provider {provider_name} failed: {error_message}",
            extra={
                "provider": provider_name,
                "consecutive_failures": failures,
                "max_retries": config.max_retries,
            }
        )

        if tripped:
            self._audit.log_system_event(
                "provider_unhealthy",
                component="provider_registry",
                severity="warning",
                provider=provider_name,
                consecutive_failures=failures,
                last_error=error_message,
            )

        self._scheduler.schedule(provider_name, self._recovery_delay(failures, unhealthy))

    def recovery_pending(self, provider_name: str) -> bool:
        """Whether a recovery probe is waiting for ``provider_name``."""
        return self._scheduler.pending(provider_name)

    def _recovery_delay(self, failures: int, unhealthy: bool) -> float:
        if unhealthy and failures >= self.recovery.repeated_failure_threshold:
            return self.recovery.long_delay
        return self.recovery.short_delay

    async def run_recovery_probe(self, provider_name: str) -> None:
        """Try to restore a provider.

        With a custom health check its verdict decides. Without one, the
        failure run is decremented by one and the provider is restored once it
        reaches zero; the real check happens on the next request.
        """
        config = self._configs.get(provider_name)
        if config is None or not config.enabled:
            return

        logger.info(f"Attempting recovery of provider {provider_name}", extra={"provider": provider_name})

        if config.health_check is not None:
            try:
                recovered = await config.health_check()
            except Exception as e:
                logger.warning(
                    f"Health check for {provider_name} raised: {e}",
                    extra={"provider": provider_name}
                )
                recovered = False

            if recovered:
                self.mark_healthy(provider_name)
            elif not self.is_healthy(provider_name):
                self._scheduler.schedule(provider_name, self.recovery.long_delay)
            return

        with self._locks[provider_name]:
            health = self._health[provider_name]
            if health.consecutive_failures > 0:
                health.consecutive_failures -= 1
            remaining = health.consecutive_failures

        if remaining == 0:
            self.mark_healthy(provider_name)
        else:
            self._scheduler.schedule(provider_name, self.recovery.short_delay)

    async def sweep(self) -> None:
        """Probe every unhealthy provider that has no probe pending."""
        candidates = [
            name for name in self._fallback_order
            if not self._health[name].is_healthy and not self._scheduler.pending(name)
        ]
        if not candidates:
            return

        logger.debug(f"Recovery sweep over {candidates}")
        results = await asyncio.gather(
            *(self.run_recovery_probe(name) for name in candidates),
            return_exceptions=True
        )
        for name, result in zip(candidates, results):
            if isinstance(result, Exception):
                logger.error(f"Recovery sweep failed for {name}: {result}", extra={"provider": name})

    def start_sweeper(self, interval: Optional[float] = None) -> None:
        """Start the periodic recovery sweep on the running loop."""
        interval = self.recovery.sweep_interval if interval is None else interval
        if interval <= 0 or self._sweeper is not None:
            return
        self._sweeper = asyncio.get_running_loop().create_task(self._sweep_forever(interval))

    async def _sweep_forever(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            await self.sweep()

    async def shutdown(self) -> None:
        """Stop the sweeper and cancel pending recovery probes."""
        if self._sweeper is not None:
            self._sweeper.cancel()
            await asyncio.gather(self._sweeper, return_exceptions=True)
            self._sweeper = None
        await self._scheduler.shutdown()

    def healthy_count(self) -> int:
        """Number of enabled providers currently marked healthy."""
        return sum(1 for name in self._fallback_order if self._health[name].is_healthy)

    def status_snapshot(self) -> List[ProviderHealthView]:
        """Read-only dump of every provider's health, ordered by priority."""
        views = []
        for config in sorted(self._configs.values(), key=lambda c: c.priority):
            with self._locks[config.name]:
                health = self._health[config.name]
                views.append(ProviderHealthView(
                    name=config.name,
                    is_healthy=health.is_healthy,
                    last_error=health.last_error,
                    last_checked_at=health.last_checked_at,
                    consecutive_failures=health.consecutive_failures,
                    priority=config.priority,
                    enabled=config.enabled,
                    max_retries=config.max_retries,
                ))
        return views

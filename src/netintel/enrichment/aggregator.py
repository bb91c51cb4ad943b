"""
Network Intel Aggregation Engine
Fans out to providers under a concurrency cap and a global deadline,
folding each answer into one merged record
"""

import asyncio
import logging
import time
from typing import Any, Dict, Iterable, List, Optional, Protocol

from netintel.config.config_manager import AggregationConfig
from netintel.core.exceptions import ProviderError
from netintel.core.models import (
    AggregationResult,
    FetchOutcome,
    IntelRecord,
    IpHint,
    PartialObservation,
    ProviderDescriptor,
    ProviderFailure,
)
from netintel.enrichment.location.normalizers import redact_ip_for_diagnostics
from netintel.enrichment.merge import is_geo_weak, merge_intel, should_stop_early
from netintel.providers.catalog import build_providers
from netintel.providers.parsers import observation_from_ip, parse_provider_response

TIMEOUT_REASON = "timeout"
OVERALL_TIMEOUT_REASON = "overall-timeout"
INTERNAL_FAILURE_REASON = "internal-failure"


class Fetcher(Protocol):
    async def fetch(self, provider: ProviderDescriptor) -> Any:
        ...


class NetworkIntelAggregator:
    """
    Runs one aggregation over a list of providers.

    The orchestrating coroutine is the only writer of the merged record and
    the diagnostic lists. Worker tasks never touch shared state; each one
    returns a FetchOutcome that the orchestrator folds in as it completes.
    """

    def __init__(self, fetcher: Fetcher, config: Optional[AggregationConfig] = None):
        self.logger = logging.getLogger(__name__)
        self.fetcher = fetcher
        self.config = config or AggregationConfig()

    async def aggregate(self,
                        providers: List[ProviderDescriptor],
                        seed: Optional[PartialObservation] = None,
                        seed_sources: Optional[Iterable[str]] = None) -> AggregationResult:
        """
        Query providers until the record is sufficient, the list runs out or the deadline passes

        Args:
            providers: Providers in launch order
            seed: Observation folded in before any provider runs
            seed_sources: Labels credited for the seed

        Returns:
            AggregationResult with the merged record and diagnostics
        """
        loop = asyncio.get_running_loop()
        start_time = time.time()
        deadline = loop.time() + self.config.overall_timeout

        record = merge_intel(IntelRecord(), seed or PartialObservation())
        attempted: List[str] = []
        failures: List[ProviderFailure] = []
        sources_used: List[str] = []
        for label in seed_sources or []:
            if label not in sources_used:
                sources_used.append(label)

        stop = should_stop_early(record)
        cursor = 0
        in_flight: Dict[asyncio.Task, ProviderDescriptor] = {}

        try:
            while True:
                while (not stop
                       and cursor < len(providers)
                       and len(in_flight) < self.config.concurrency_limit
                       and loop.time() < deadline):
                    provider = providers[cursor]
                    cursor += 1
                    attempted.append(provider.id)
                    task = asyncio.ensure_future(self._run_provider(provider, deadline))
                    in_flight[task] = provider

                if not in_flight:
                    break

                wait_budget = max(deadline - loop.time(), 0.0) + self.config.settle_grace
                done, _ = await asyncio.wait(
                    in_flight.keys(), timeout=wait_budget, return_when=asyncio.FIRST_COMPLETED
                )

                if not done:
                    # Overall deadline reached with work still outstanding
                    stop = True
                    failures.extend(await self._abort_in_flight(in_flight))
                    in_flight.clear()
                    break

                for task in done:
                    provider = in_flight.pop(task)
                    outcome = self._collect(task, provider)

                    if not outcome.success:
                        failures.append(ProviderFailure(provider.id, outcome.failure))
                        continue

                    try:
                        merged = merge_intel(record, outcome.observation)
                    except Exception as e:
                        self.logger.error(f"Failed to merge observation from {provider.id}: {e}")
                        failures.append(ProviderFailure(provider.id, INTERNAL_FAILURE_REASON))
                        continue

                    if merged != record:
                        record = merged
                        if provider.id not in sources_used:
                            sources_used.append(provider.id)

                    if should_stop_early(record):
                        stop = True
        finally:
            if in_flight:
                for task in in_flight:
                    task.cancel()
                await asyncio.gather(*in_flight, return_exceptions=True)

        return self._finalize(record, attempted, failures, sources_used, start_time)

    async def _run_provider(self, provider: ProviderDescriptor, deadline: float) -> FetchOutcome:
        """Fetch and parse one provider; every failure becomes a reason tag"""
        remaining = deadline - asyncio.get_running_loop().time()
        if remaining <= 0:
            return FetchOutcome(provider.id, failure=OVERALL_TIMEOUT_REASON)

        provider_timeout = self.config.provider_timeout
        timeout = min(provider_timeout, remaining)

        try:
            raw = await asyncio.wait_for(self.fetcher.fetch(provider), timeout)
        except (asyncio.TimeoutError, TimeoutError):
            reason = TIMEOUT_REASON if provider_timeout <= remaining else OVERALL_TIMEOUT_REASON
            self.logger.debug(f"Provider {provider.id} timed out after {timeout:.2f}s")
            return FetchOutcome(provider.id, failure=reason)
        except ProviderError as e:
            self.logger.debug(f"Provider {provider.id} failed: {e.message}")
            return FetchOutcome(provider.id, failure=e.reason)
        except Exception as e:
            self.logger.warning(f"Unexpected error fetching {provider.id}: {e}")
            return FetchOutcome(provider.id, failure=INTERNAL_FAILURE_REASON)

        try:
            observation = parse_provider_response(provider, raw)
        except Exception as e:
            self.logger.warning(f"Failed to parse response from {provider.id}: {e}")
            return FetchOutcome(provider.id, failure=INTERNAL_FAILURE_REASON)

        return FetchOutcome(provider.id, observation=observation)

    def _collect(self, task: asyncio.Task, provider: ProviderDescriptor) -> FetchOutcome:
        try:
            return task.result()
        except asyncio.CancelledError:
            return FetchOutcome(provider.id, failure=OVERALL_TIMEOUT_REASON)
        except Exception as e:
            self.logger.error(f"Worker for {provider.id} crashed: {e}")
            return FetchOutcome(provider.id, failure=INTERNAL_FAILURE_REASON)

    async def _abort_in_flight(self, in_flight: Dict[asyncio.Task, ProviderDescriptor]) -> List[ProviderFailure]:
        """Cancel outstanding workers and wait for them to settle"""
        for task in in_flight:
            task.cancel()
        await asyncio.gather(*in_flight.keys(), return_exceptions=True)

        # Results that land after the deadline are discarded
        return [ProviderFailure(provider.id, OVERALL_TIMEOUT_REASON) for provider in in_flight.values()]

    def _finalize(self,
                  record: IntelRecord,
                  attempted: List[str],
                  failures: List[ProviderFailure],
                  sources_used: List[str],
                  start_time: float) -> AggregationResult:
        result = AggregationResult(
            record=record,
            attempted_provider_ids=attempted,
            failures=failures,
            sources_used=sources_used,
            processing_time=time.time() - start_time,
        )

        self.logger.info(
            f"Aggregation finished: {len(attempted)} attempted, {len(failures)} failed, "
            f"{len(sources_used)} sources used in {result.processing_time:.2f}s"
        )
        if not result.success:
            self.logger.warning("No provider returned a usable IP address")
        elif is_geo_weak(record):
            self.logger.info("Geolocation data is weak: no ISP, location or coordinates found")

        return result


async def collect_network_intel(hint: Optional[IpHint],
                                fetcher: Fetcher,
                                config: Optional[AggregationConfig] = None) -> AggregationResult:
    """
    Run a full lookup for one request

    Args:
        hint: Caller address taken from proxy headers, if any
        fetcher: Object used to fetch provider responses
        config: Time and concurrency budgets

    Returns:
        AggregationResult for the request
    """
    logger = logging.getLogger(__name__)
    client_ip = hint.ip if hint else None
    providers = build_providers(client_ip)

    seed = observation_from_ip(client_ip) if client_ip else None
    seed_sources = [hint.source_label] if hint else []

    logger.info(
        f"Collecting network intel from {len(providers)} providers "
        f"(hint: {redact_ip_for_diagnostics(client_ip)})"
    )

    aggregator = NetworkIntelAggregator(fetcher, config)
    return await aggregator.aggregate(providers, seed=seed, seed_sources=seed_sources)

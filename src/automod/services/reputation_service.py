"""Link reputation aggregation.

Classifies a URL as malicious or not by walking, in order:
 1. the trusted-domain list (short-circuits to "safe"),
 2. the guild blacklist,
 3. offline heuristic families,
 4. external providers queried concurrently and folded with OR.

The first provider (in configured order) that flags a URL gets its domain
blacklisted for the guild, so later lookups stop at step 2.
"""
from __future__ import annotations

import asyncio
import sqlite3
from typing import List, Optional, Sequence

from ..domain.detection.heuristics import HeuristicTables, TrustedDomains, domain_matches, extract_domain
from ..domain.moderation.interfaces import BlacklistStore, ReputationProvider
from ..infrastructure.logging.structured_logging import (
    debug as log_debug,
    error as log_error,
    info as log_info,
    warning as log_warning,
)
from ..infrastructure.providers.reputation.base import ProviderOutcome


class LinkReputationAggregator:
    def __init__(
        self,
        trusted: TrustedDomains,
        heuristics: HeuristicTables,
        blacklist: BlacklistStore,
        providers: Sequence[ReputationProvider] = (),
    ):
        self.trusted = trusted
        self.heuristics = heuristics
        self.blacklist = blacklist
        self.providers = list(providers)

    def _blacklisted(self, guild_id: int, domain: str) -> bool:
        try:
            entries = self.blacklist.get_blacklisted_domains(guild_id)
        except sqlite3.Error as e:
            log_error("reputation.blacklist_read_failed", guild_id=guild_id, error=str(e))
            return False
        return any(domain_matches(domain, entry) for entry in entries)

    def _heuristic(self, url: str) -> Optional[str]:
        return self.heuristics.match(url)

    async def _query_providers(self, url: str) -> List[ProviderOutcome]:
        if not self.providers:
            return []
        results = await asyncio.gather(*(p.check(url) for p in self.providers), return_exceptions=True)
        outcomes: List[ProviderOutcome] = []
        for provider, res in zip(self.providers, results):
            if isinstance(res, BaseException):
                log_warning("reputation.provider_raised", provider=getattr(provider, 'name', '?'), error=str(res))
                outcomes.append(ProviderOutcome.failed(getattr(provider, 'name', '?'), type(res).__name__))
            else:
                outcomes.append(res)
        return outcomes

    def _remember(self, guild_id: int, domain: str, provider: str) -> None:
        try:
            added = self.blacklist.add_to_blacklist(guild_id, domain, f"auto-detected by {provider}")
        except sqlite3.Error as e:
            log_error("reputation.blacklist_write_failed", guild_id=guild_id, domain=domain, error=str(e))
            return
        if added:
            log_info("reputation.blacklisted", guild_id=guild_id, domain=domain, provider=provider)

    async def is_malicious(self, url: str, guild_id: int) -> bool:
        domain = extract_domain(url)
        if not domain:
            log_debug("reputation.no_domain", url=url[:120])
            return False
        if self.trusted.is_trusted(domain):
            return False
        try:
            if self._blacklisted(guild_id, domain):
                log_info("reputation.blacklist_hit", guild_id=guild_id, domain=domain)
                return True
            family = self._heuristic(url)
            if family:
                log_info("reputation.heuristic_hit", guild_id=guild_id, domain=domain, family=family)
                return True
            outcomes = await self._query_providers(url)
            flagged = [o for o in outcomes if o.malicious]
            errors = [o.provider for o in outcomes if not o.ok]
            if errors:
                log_debug("reputation.provider_errors", domain=domain, providers=errors)
            if flagged:
                self._remember(guild_id, domain, flagged[0].provider)
                return True
            return False
        except Exception as e:  # noqa: BLE001
            log_error("reputation.check_failed", guild_id=guild_id, domain=domain, error=str(e))
            return self._heuristic(url) is not None


__all__ = ['LinkReputationAggregator']

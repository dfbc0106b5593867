"""Unified factory wiring config, stores and providers into an engine."""
from __future__ import annotations

from ..config.settings import AutomodConfig
from ..domain.detection.heuristics import load_heuristics, load_trusted_domains
from ..infrastructure.providers.reputation import create_reputation_providers
from .moderation_pipeline import ModerationEngine
from .reputation_service import LinkReputationAggregator


def build_reputation(cfg: AutomodConfig, blacklist) -> LinkReputationAggregator:
    return LinkReputationAggregator(
        trusted=load_trusted_domains(cfg.trusted_domains_file),
        heuristics=load_heuristics(cfg.heuristics_file),
        blacklist=blacklist,
        providers=create_reputation_providers(cfg),
    )


def build_engine(cfg: AutomodConfig, config_provider, db) -> ModerationEngine:
    """Return a ModerationEngine; call ``start()`` once an event loop runs."""
    return ModerationEngine(
        config_provider,
        db,
        build_reputation(cfg, db),
        hygiene_interval=cfg.hygiene_interval_seconds,
        member_delay=cfg.raid_member_delay_seconds,
        ban_delay=cfg.raid_ban_delay_seconds,
    )

__all__ = ['build_engine', 'build_reputation']

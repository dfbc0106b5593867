"""Factory for URL reputation provider selection."""
from __future__ import annotations

from typing import List

from .base import HttpReputationProvider
from .safe_browsing import SafeBrowsingProvider
from .virustotal import VirusTotalProvider
from .phishtank import PhishTankProvider
from ....config.settings import AutomodConfig


def create_reputation_providers(conf: AutomodConfig) -> List[HttpReputationProvider]:
    """Providers in blacklist-attribution order.

    Keyless providers are still returned; they report ``missing_credentials``
    outcomes so every lookup has the same shape.
    """
    timeout = conf.reputation_timeout_seconds
    return [
        SafeBrowsingProvider(conf.google_safe_browsing_api_key, timeout=timeout),
        VirusTotalProvider(
            conf.virustotal_api_key,
            timeout=timeout,
            detection_threshold=conf.virustotal_detection_threshold,
        ),
        PhishTankProvider(conf.phishtank_app_key, timeout=timeout),
    ]

__all__ = ['create_reputation_providers']

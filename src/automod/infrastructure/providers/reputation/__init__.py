from .base import ProviderOutcome, ReputationError, MissingCredentialsError, HttpReputationProvider
from .safe_browsing import SafeBrowsingProvider
from .virustotal import VirusTotalProvider
from .phishtank import PhishTankProvider
from .factory import create_reputation_providers

__all__ = [
    'create_reputation_providers', 'ProviderOutcome', 'ReputationError', 'MissingCredentialsError',
    'HttpReputationProvider', 'SafeBrowsingProvider', 'VirusTotalProvider', 'PhishTankProvider',
]

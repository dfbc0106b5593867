from __future__ import annotations

from .base import HttpReputationProvider

THREAT_TYPES = [
    "MALWARE",
    "SOCIAL_ENGINEERING",
    "UNWANTED_SOFTWARE",
    "POTENTIALLY_HARMFUL_APPLICATION",
]


class SafeBrowsingProvider(HttpReputationProvider):
    """Google Safe Browsing v4 threat-match lookup."""
    name = "google_safe_browsing"
    endpoint = "https://safebrowsing.googleapis.com/v4/threatMatches:find"
    client_id = "discord-automod"
    client_version = "1.0.0"

    async def _lookup(self, url: str) -> bool:
        key = self._require_key()
        body = {
            "client": {"clientId": self.client_id, "clientVersion": self.client_version},
            "threatInfo": {
                "threatTypes": THREAT_TYPES,
                "platformTypes": ["ANY_PLATFORM"],
                "threatEntryTypes": ["URL"],
                "threatEntries": [{"url": url}],
            },
        }
        async with self._client() as client:
            r = await client.post(self.endpoint, params={"key": key}, json=body)
            r.raise_for_status()
            data = r.json() or {}
        return bool(data.get("matches"))

__all__ = ['SafeBrowsingProvider', 'THREAT_TYPES']

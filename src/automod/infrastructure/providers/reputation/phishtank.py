from __future__ import annotations

from .base import HttpReputationProvider


class PhishTankProvider(HttpReputationProvider):
    """PhishTank check-url lookup. ``api_key`` is the app key sent with each call."""
    name = "phishtank"
    endpoint = "https://checkurl.phishtank.com/checkurl/"

    async def _lookup(self, url: str) -> bool:
        form = {"url": url, "format": "json", "app_key": self.api_key or "discord-bot"}
        async with self._client() as client:
            r = await client.post(self.endpoint, data=form)
            r.raise_for_status()
            data = r.json() or {}
        results = data.get("results") or {}
        return bool(results.get("in_database") and results.get("valid"))

__all__ = ['PhishTankProvider']

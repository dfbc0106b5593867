from __future__ import annotations

import base64
from typing import Optional

import httpx

from .base import HttpReputationProvider


def url_identifier(url: str) -> str:
    """VirusTotal v3 URL id: unpadded url-safe base64 of the URL."""
    return base64.urlsafe_b64encode(url.encode("utf-8")).decode("ascii").rstrip("=")


class VirusTotalProvider(HttpReputationProvider):
    """VirusTotal URL report lookup; an unknown URL (404) is not malicious."""
    name = "virustotal"
    endpoint = "https://www.virustotal.com/api/v3/urls/"

    def __init__(self, api_key: Optional[str] = None, timeout: float = 10.0, detection_threshold: int = 2,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        super().__init__(api_key=api_key, timeout=timeout, transport=transport)
        self.detection_threshold = detection_threshold

    async def _lookup(self, url: str) -> bool:
        key = self._require_key()
        async with self._client() as client:
            r = await client.get(self.endpoint + url_identifier(url), headers={"x-apikey": key})
            if r.status_code == 404:
                return False
            r.raise_for_status()
            data = r.json() or {}
        stats = ((data.get("data") or {}).get("attributes") or {}).get("last_analysis_stats") or {}
        detections = int(stats.get("malicious", 0) or 0) + int(stats.get("suspicious", 0) or 0)
        return detections > self.detection_threshold

__all__ = ['VirusTotalProvider', 'url_identifier']

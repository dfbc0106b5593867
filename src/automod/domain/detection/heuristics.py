"""Trusted-domain list and offline URL heuristics, loaded from versioned YAML.

The packaged defaults live in ``automod/data``; HEURISTICS_FILE and
TRUSTED_DOMAINS_FILE point at replacements (tests load their own tables).
"""
from __future__ import annotations

import re
from pathlib import Path
from typing import List, Optional, Pattern, Tuple
from urllib.parse import urlsplit

import yaml
from pydantic import BaseModel, Field, PrivateAttr, field_validator, model_validator

DATA_DIR = Path(__file__).resolve().parents[2] / "data"
TRUSTED_DOMAINS_FILE = DATA_DIR / "trusted_domains.yaml"
HEURISTICS_FILE = DATA_DIR / "heuristics.yaml"


def extract_domain(url: str) -> Optional[str]:
    """Lower-cased hostname of ``url`` or None when it has none."""
    try:
        host = urlsplit(url.strip()).hostname
    except ValueError:
        return None
    return host.lower() if host else None


def domain_matches(domain: str, entry: str) -> bool:
    """Exact match or ``domain`` is a subdomain of ``entry``."""
    return domain == entry or domain.endswith("." + entry)


class TrustedDomains(BaseModel):
    version: int = 1
    domains: List[str] = Field(default_factory=list)

    @field_validator("domains", mode="before")
    def normalize(cls, v):  # type: ignore[override]
        return [str(d).strip().lower().lstrip(".") for d in (v or []) if str(d).strip()]

    def is_trusted(self, domain: Optional[str]) -> bool:
        if not domain:
            return False
        return any(domain_matches(domain, entry) for entry in self.domains)


class HeuristicFamily(BaseModel):
    name: str
    patterns: List[str]


class HeuristicTables(BaseModel):
    version: int = 1
    families: List[HeuristicFamily] = Field(default_factory=list)
    _compiled: List[Tuple[str, Pattern[str]]] = PrivateAttr(default_factory=list)

    @model_validator(mode="after")
    def compile_patterns(self):  # type: ignore[override]
        compiled: List[Tuple[str, Pattern[str]]] = []
        for family in self.families:
            for raw in family.patterns:
                try:
                    compiled.append((family.name, re.compile(raw, re.IGNORECASE)))
                except re.error as e:
                    raise ValueError(f"Bad pattern in family '{family.name}': {raw!r} ({e})") from e
        self._compiled = compiled
        return self

    def match(self, url: str) -> Optional[str]:
        """Name of the first family with a pattern found in ``url``."""
        for name, pattern in self._compiled:
            if pattern.search(url):
                return name
        return None


def _read_yaml(path: Path | str) -> dict:
    with open(path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def load_trusted_domains(path: Path | str | None = None) -> TrustedDomains:
    return TrustedDomains(**_read_yaml(path or TRUSTED_DOMAINS_FILE))


def load_heuristics(path: Path | str | None = None) -> HeuristicTables:
    return HeuristicTables(**_read_yaml(path or HEURISTICS_FILE))


__all__ = [
    'extract_domain', 'domain_matches', 'TrustedDomains', 'HeuristicFamily', 'HeuristicTables',
    'load_trusted_domains', 'load_heuristics', 'DATA_DIR',
]

"""Policy loader"""
from __future__ import annotations

import os
import yaml
from pydantic import ValidationError

from .models import ModerationPolicy

POLICY_FILE = os.getenv("POLICY_FILE", "policies/automod.yaml")


class PolicyError(ValueError):
    """Raised when a policy file exists but cannot be used."""


def parse_policy(raw: dict | None) -> ModerationPolicy:
    try:
        return ModerationPolicy(**(raw or {}))
    except ValidationError as e:
        raise PolicyError(f"Invalid moderation policy: {e}") from e


def load_policy(path: str = POLICY_FILE) -> ModerationPolicy:
    if not os.path.isfile(path):
        raise FileNotFoundError(f"Policy file not found: {path}")
    with open(path, "r", encoding="utf-8") as f:
        try:
            raw = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise PolicyError(f"Policy file is not valid YAML: {e}") from e
    return parse_policy(raw)

__all__ = ['load_policy', 'parse_policy', 'PolicyError', 'POLICY_FILE']

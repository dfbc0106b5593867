"""Handler registry; each action module registers one handler on import."""
from __future__ import annotations

from typing import List, Optional
from ..interfaces import Action

_REGISTRY: List[Action] = []


def register(action: Action) -> Action:
    # one instance per handler class, even if a module is re-imported
    if not any(type(existing) is type(action) for existing in _REGISTRY):
        _REGISTRY.append(action)
    return action


def list_actions() -> List[Action]:
    return list(_REGISTRY)


def find_handler(action: str) -> Optional[Action]:
    key = (action or "").strip().lower()
    if not key:
        return None
    return next((handler for handler in _REGISTRY if handler.can_handle(key)), None)

__all__ = ["register", "list_actions", "find_handler"]

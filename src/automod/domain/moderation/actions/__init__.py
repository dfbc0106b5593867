"""Import action modules to populate registry on package import."""
from .registry import list_actions, register, find_handler  # re-export
from . import warn, delete_message, timeout, kick, ban  # noqa: F401
from .runner import ActionExecutor, ActionContext

__all__ = [
    'list_actions', 'register', 'find_handler', 'ActionExecutor', 'ActionContext'
]

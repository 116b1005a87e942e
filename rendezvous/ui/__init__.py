"""UI-side collaborators of the event coordinator (no DOM required)."""

from .actions import ActionListener, ActionManager, ActionStep, parse_listeners

__all__ = ["ActionListener", "ActionManager", "ActionStep", "parse_listeners"]

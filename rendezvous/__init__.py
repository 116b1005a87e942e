# ============================================================================
# rendezvous/__init__.py
# Rendezvous: wait for many completions, then run callbacks once
# ============================================================================
#
# QUICK START:
#   from rendezvous import EventCoordinator
#
#   events = EventCoordinator()
#   events.add_group("upload", "file1")
#   events.add_group("upload", "file2")
#   events.attach("upload", on_all_uploaded)
#   events.trigger("upload", "file1")          # False, still waiting
#   events.trigger("upload", "file2", result)  # True, on_all_uploaded(result)
#
# ============================================================================

from rendezvous.base.clock import ManualClock, SystemClock
from rendezvous.base.config import CoordinatorConfig, RendezvousConfig
from rendezvous.errors import ErrorCode, RendezvousError
from rendezvous.events.coordinator import EventCoordinator
from rendezvous.events.selectors import Selector

__version__ = "1.0.0"

__all__ = [
    "CoordinatorConfig",
    "ErrorCode",
    "EventCoordinator",
    "ManualClock",
    "RendezvousConfig",
    "RendezvousError",
    "Selector",
    "SystemClock",
]

# ============================================================================
# rendezvous/events/__init__.py
# Events Package - The Barrier Engine
# ============================================================================
#
# KEY MODULES:
# - **coordinator.py**: EventCoordinator (groups, members, callbacks, dispatch)
# - **selectors.py**: Literal-or-pattern name matching for trigger_similar()
# - **models.py**: Pydantic snapshots of coordinator state
#
# ============================================================================

from .coordinator import EventCoordinator, Registration
from .selectors import Selector

__all__ = ["EventCoordinator", "Registration", "Selector"]

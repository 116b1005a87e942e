"""Module actions: chained actions driven by the event coordinator."""
#
# PURPOSE:
# A source (a button, a form, a job id - anything with a stable name) can
# declare listeners: "on <event>, run action A, then B with A's result, then
# C with B's result". Actions are looked up by type in a handler table, and
# each action reports completion through a `done(result)` callback, which may
# be called later (after a network reply, a timer, ...).
#
# HOW THE CHAIN IS WIRED:
# - Step N finishing triggers coordinator group `source + step_N.key`
# - A callback attached to that group (reset=True) runs step N+1
# - So the coordinator is the only thing that knows how steps connect
#
# DEFINITION FORMAT (JSON or plain lists/dicts):
#   [{"listener": "click",
#     "action": [{"key": "fetch", "type": "http.get", "url": "/items"},
#                {"key": "show",  "type": "render"}]}]
# Extra fields on a step are kept and handed to the handler.
#

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from rendezvous.errors import ErrorCode, RendezvousError
from rendezvous.events.coordinator import EventCoordinator

logger = logging.getLogger(__name__)


class ActionStep(BaseModel):
    model_config = ConfigDict(extra="allow")

    key: str = Field(description="Suffix of the coordinator group signaled when this step completes")
    type: str = Field(description="Handler name in the ActionManager table")
    data: Any = Field(default=None, description="Result of the previous step, filled in at run time")


class ActionListener(BaseModel):
    listener: str = Field(description="Event name that starts the chain")
    action: List[ActionStep] = Field(min_length=1)


Done = Callable[..., bool]
ActionHandler = Callable[[ActionStep, Done], Any]
ListenerSpec = Union[str, Sequence[Union[ActionListener, Dict[str, Any]]]]

_listeners_adapter = TypeAdapter(List[ActionListener])


def parse_listeners(spec: ListenerSpec) -> List[ActionListener]:
    """
    Validate a listener definition.

    Raises:
        RendezvousError(ACTION_INVALID): malformed JSON or structure
    """
    try:
        if isinstance(spec, (str, bytes)):
            return _listeners_adapter.validate_json(spec)
        return _listeners_adapter.validate_python(list(spec))
    except ValidationError as e:
        raise RendezvousError(
            ErrorCode.ACTION_INVALID,
            f"Invalid action listener definition: {e.error_count()} error(s)",
            details={"errors": e.errors(include_url=False)},
        ) from e


class ActionManager:
    """
    Action handler table plus chain binding on top of an EventCoordinator.
    """

    def __init__(self, coordinator: EventCoordinator):
        self.coordinator = coordinator
        self._actions: Dict[str, ActionHandler] = {}
        # source -> event name -> listeners
        self._bindings: Dict[str, Dict[str, List[ActionListener]]] = {}

    def add(self, name: str, handler: ActionHandler) -> None:
        """Register (or replace) the handler for action type `name`."""
        self._actions[name] = handler

    def has_action(self, name: str) -> bool:
        return name in self._actions

    def bind(self, source: str, listeners: ListenerSpec) -> List[ActionListener]:
        """
        Bind listener definitions to `source`.

        Returns:
            The validated listeners
        """
        parsed = parse_listeners(listeners)
        for listener in parsed:
            self.bind_listener(source, listener)
        return parsed

    def bind_listener(self, source: str, listener: ActionListener) -> None:
        steps = listener.action
        for previous, following in zip(steps, steps[1:]):
            self.coordinator.attach(
                source + previous.key,
                self._chain(source, following),
                False,
                True,
            )

        self._bindings.setdefault(source, {}).setdefault(listener.listener, []).append(listener)
        logger.debug(f"[ActionManager] Bound {len(steps)}-step '{listener.listener}' chain to '{source}'")

    def _chain(self, source: str, step: ActionStep) -> Callable[[Any], bool]:
        def run_next(data: Any) -> bool:
            return self.run_action(source, step, data)
        return run_next

    def dispatch(self, source: str, event: str) -> int:
        """
        Start every chain bound to `source` for `event`.

        Returns:
            Number of chains whose first step was started
        """
        started = 0
        for listener in list(self._bindings.get(source, {}).get(event, [])):
            if self.run_action(source, listener.action[0]):
                started += 1
        return started

    def run_action(self, source: str, step: ActionStep, data: Any = None) -> bool:
        """
        Run one step. Its completion triggers group `source + step.key`.

        Returns:
            False if no handler exists for the step's type
        """
        handler = self._actions.get(step.type)
        if handler is None:
            logger.warning(f"[ActionManager] Undefined action {step.type}")
            return False

        def done(result: Any = None) -> bool:
            return self.coordinator.trigger(source + step.key, source, result)

        handler(step.model_copy(update={"data": data}), done)
        return True

    def unbind(self, source: str) -> int:
        """
        Forget every chain bound to `source` and detach its groups.

        Returns:
            Number of listeners removed
        """
        events = self._bindings.pop(source, {})
        removed = 0
        for listeners in events.values():
            for listener in listeners:
                for step in listener.action[:-1]:
                    self.coordinator.detach(source + step.key)
                removed += 1
        return removed

    def listeners(self, source: str, event: Optional[str] = None) -> List[ActionListener]:
        bound = self._bindings.get(source, {})
        if event is not None:
            return list(bound.get(event, []))
        return [listener for group in bound.values() for listener in group]

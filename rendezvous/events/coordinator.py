"""Module coordinator: barrier-style event coordination."""
#
# PURPOSE:
# Lets independent, asynchronously-completing operations register as members
# of named groups, and fires the callbacks attached to a group once every
# member has signaled completion (an AND-join).
#
# LOGIC:
# - add_group(group, id): declare that `group` waits for member `id`
# - trigger(group, id, data): member `id` finished; fire if nothing is left
# - attach(group, cb, remove, reset): what to run, and what happens afterwards
#     remove=True -> one-shot, group and callbacks are torn down after firing
#     reset=True  -> member flags are re-armed for the next round
# - A debounce window swallows repeated fires of the same registration
#
# ERROR MODEL:
# Unknown groups, unknown ids and missing registrations are not errors.
# Every operation answers them with False / an empty value / a no-op, so
# completions that arrive before their setup never blow up the caller.
#
# THREADING:
# Dispatch is synchronous: trigger() returns after the last callback returns.
# With CoordinatorConfig(thread_safe=True) every public operation runs under
# one RLock, so two threads can never both complete the same barrier.
#

from __future__ import annotations

import logging
import threading
from contextlib import nullcontext
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from rendezvous.base.clock import Clock, SystemClock
from rendezvous.base.config import CoordinatorConfig
from rendezvous.errors import ErrorCode, RendezvousError, handle_error
from rendezvous.events.models import CoordinatorSnapshot, GroupSnapshot, RegistrationSnapshot
from rendezvous.events.selectors import Selector, SelectorLike

logger = logging.getLogger(__name__)

Callback = Callable[[Any], Any]


@dataclass
class Registration:
    """
    Callbacks attached to one group name plus their post-fire policy.

    Fields:
        callbacks: invoked in registration order on every fire
        remove: tear down group and registration after firing
        reset: re-arm all member flags after firing (ignored when remove is set)
        last_run: clock reading of the last fire, None if it never fired
    """
    callbacks: List[Callback] = field(default_factory=list)
    remove: bool = False
    reset: bool = False
    last_run: Optional[float] = None


class EventCoordinator:
    """
    Synchronous barrier coordinator.

    Create one per owning application context and hand it to the
    collaborators that need it; there is no global instance.
    """

    def __init__(
        self,
        config: Optional[CoordinatorConfig] = None,
        *,
        clock: Optional[Clock] = None,
        debounce_window: Optional[float] = None,
    ):
        self._config = config or CoordinatorConfig()
        self._clock: Clock = clock or SystemClock()
        self._debounce_window = (
            self._config.debounce_window_ms if debounce_window is None else float(debounce_window)
        )
        if self._debounce_window < 0:
            raise RendezvousError(
                ErrorCode.CONFIG_INVALID,
                "debounce window must not be negative",
                details={"debounce_window": debounce_window},
            )

        # group -> {member id -> completed}
        self._groups: Dict[str, Dict[str, bool]] = {}
        # group -> Registration
        self._callbacks: Dict[str, Registration] = {}

        self._lock = threading.RLock() if self._config.thread_safe else nullcontext()

    @property
    def debounce_window(self) -> float:
        """Debounce window in milliseconds."""
        return self._debounce_window

    # ------------------------------------------------------------------
    # Group membership
    # ------------------------------------------------------------------

    def add_group(self, group: str, id: str) -> None:
        """
        Declare `id` as a member of `group`, in the "waiting" state.

        Adding an existing member re-arms it without touching its siblings.
        """
        with self._lock:
            self._groups.setdefault(group, {})[id] = False

    def reset(self, group: str) -> None:
        """Set every member flag of `group` back to waiting."""
        with self._lock:
            members = self._groups.get(group)
            if members is None:
                return
            for member in members:
                members[member] = False

    def has_outstanding(self, group: str) -> bool:
        """
        Does `group` still wait for at least one member?

        An absent group has no declared members, so nothing is outstanding.
        """
        with self._lock:
            members = self._groups.get(group)
            if members is None:
                return False
            return not all(members.values())

    def groups(self) -> List[str]:
        """Names of all groups with declared members."""
        with self._lock:
            return list(self._groups)

    def members(self, group: str) -> Dict[str, bool]:
        """Copy of the member flags of `group` (empty if absent)."""
        with self._lock:
            return dict(self._groups.get(group, {}))

    # ------------------------------------------------------------------
    # Signaling
    # ------------------------------------------------------------------

    def trigger(self, group: str, id: str = "", data: Any = None) -> bool:
        """
        Mark member `id` of `group` as finished and fire if the barrier is met.

        Args:
            group: Group name
            id: Member id (ignored for groups without declared members)
            data: Passed to every callback

        Returns:
            True if the callbacks ran, False otherwise (no registration,
            debounced, or members still outstanding)
        """
        with self._lock:
            registration = self._callbacks.get(group)
            if registration is None:
                return False

            now = self._clock()
            if (
                registration.last_run is not None
                and now - registration.last_run < self._debounce_window
            ):
                logger.debug(f"[EventCoordinator] Debounced trigger of '{group}' by '{id}'")
                return False

            members = self._groups.get(group)
            if members is not None:
                members[id] = True

            if self.has_outstanding(group):
                return False

            self._fire(group, registration, data, now)
            return True

    def trigger_similar(
        self,
        group: SelectorLike,
        id: SelectorLike = "",
        data: Any = None,
    ) -> bool:
        """
        Trigger every (group, id) pair selected by two selectors.

        Either argument may be a literal name or a pattern (see
        rendezvous.events.selectors). A pattern group is matched against all
        known group names, a pattern id against each candidate group's
        declared members.

        Returns:
            True if at least one of the resulting triggers fired
        """
        legacy = self._config.legacy_pattern_syntax
        group_selector = Selector.coerce(group, legacy)
        id_selector = Selector.coerce(id, legacy)

        with self._lock:
            if group_selector.is_pattern:
                known = dict.fromkeys([*self._groups, *self._callbacks])
                candidates = list(group_selector.select(known))
            else:
                candidates = [group_selector.value]

            triggered = False
            for name in candidates:
                if id_selector.is_pattern:
                    ids = list(id_selector.select(list(self._groups.get(name, {}))))
                else:
                    ids = [id_selector.value]

                for member in ids:
                    # No short-circuit: every pair must be signaled
                    triggered = self.trigger(name, member, data) or triggered

            logger.debug(
                f"[EventCoordinator] trigger_similar({group_selector.value!r}, "
                f"{id_selector.value!r}) matched {len(candidates)} group(s), fired={triggered}"
            )
            return triggered

    def _fire(self, group: str, registration: Registration, data: Any, now: float) -> None:
        registration.last_run = now
        callbacks = list(registration.callbacks)
        logger.debug(f"[EventCoordinator] Barrier '{group}' satisfied, running {len(callbacks)} callback(s)")

        for callback in callbacks:
            if not self._config.isolate_callback_errors:
                callback(data)
                continue
            try:
                callback(data)
            except Exception as e:
                error = handle_error(e, f"callback for '{group}'")
                logger.exception(f"[EventCoordinator] Callback for '{group}' failed ({error.code.value})")

        # A callback may have detached or replaced this registration
        if self._callbacks.get(group) is not registration:
            return

        if registration.remove:
            self.detach(group)
        elif registration.reset:
            self.reset(group)

    # ------------------------------------------------------------------
    # Callback registry
    # ------------------------------------------------------------------

    def attach(
        self,
        group: str,
        callback: Callback,
        remove: bool = False,
        reset: bool = False,
    ) -> bool:
        """
        Attach a callback to `group`.

        The first attach creates the registration and fixes its policy;
        later calls only append callbacks.
        """
        if not callable(callback):
            raise RendezvousError(
                ErrorCode.CALLBACK_NOT_CALLABLE,
                f"Callback for '{group}' is not callable",
                details={"group": group, "callback": repr(callback)},
            )

        with self._lock:
            registration = self._callbacks.get(group)
            if registration is None:
                registration = Registration(remove=remove, reset=reset)
                self._callbacks[group] = registration
            elif (remove, reset) != (registration.remove, registration.reset):
                logger.debug(
                    f"[EventCoordinator] '{group}' keeps policy remove={registration.remove} "
                    f"reset={registration.reset} from its first attach"
                )
            registration.callbacks.append(callback)
            return True

    def is_attached(self, group: str) -> bool:
        with self._lock:
            return group in self._callbacks

    def detach(self, group: str) -> bool:
        """
        Remove the registration and the membership state of `group`.

        Returns:
            True if either existed
        """
        with self._lock:
            had_callbacks = self._callbacks.pop(group, None) is not None
            had_members = self._groups.pop(group, None) is not None
            if had_callbacks or had_members:
                logger.debug(f"[EventCoordinator] Detached '{group}'")
            return had_callbacks or had_members

    def count(self) -> int:
        """Number of groups with a callback registration."""
        with self._lock:
            return len(self._callbacks)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def snapshot(self) -> CoordinatorSnapshot:
        with self._lock:
            return CoordinatorSnapshot(
                taken_at=self._clock(),
                debounce_window_ms=self._debounce_window,
                groups=[
                    GroupSnapshot(
                        name=name,
                        members=dict(members),
                        outstanding=[m for m, done in members.items() if not done],
                    )
                    for name, members in self._groups.items()
                ],
                registrations=[
                    RegistrationSnapshot(
                        name=name,
                        callbacks=len(registration.callbacks),
                        remove=registration.remove,
                        reset=registration.reset,
                        last_run=registration.last_run,
                    )
                    for name, registration in self._callbacks.items()
                ],
            )

    def __len__(self) -> int:
        return self.count()

    def __contains__(self, group: object) -> bool:
        with self._lock:
            return group in self._callbacks

    def __repr__(self) -> str:
        return (
            f"EventCoordinator(groups={len(self._groups)}, "
            f"registrations={len(self._callbacks)}, "
            f"debounce_window={self._debounce_window})"
        )

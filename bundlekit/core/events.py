"""
Minimal synchronous publish/subscribe channel
"""

import logging
from collections import defaultdict
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)


class EventEmitter:
    """Named-event channel; listeners run inline with `emit`"""

    def __init__(self):
        self._listeners: Dict[str, List[Callable]] = defaultdict(list)

    def on(self, event: str, listener: Callable) -> Callable:
        """Register `listener` for `event`"""
        self._listeners[event].append(listener)
        return listener

    def once(self, event: str, listener: Callable) -> Callable:
        """Register `listener` for a single delivery of `event`"""
        def wrapper(*args: Any):
            self.off(event, wrapper)
            return listener(*args)

        wrapper.listener = listener  # type: ignore[attr-defined]
        return self.on(event, wrapper)

    def off(self, event: str, listener: Callable) -> None:
        """Remove `listener` from `event`; unknown listeners are ignored"""
        listeners = self._listeners.get(event, [])
        for registered in list(listeners):
            if registered is listener or getattr(registered, "listener", None) is listener:
                listeners.remove(registered)
                return

    def emit(self, event: str, *args: Any) -> bool:
        """
        Call every listener of `event` with `args`

        Returns:
            True if at least one listener was called
        """
        listeners = list(self._listeners.get(event, []))
        if not listeners:
            return False

        logger.debug(f"Emitting {event} to {len(listeners)} listener(s)")
        for listener in listeners:
            listener(*args)
        return True

    def listener_count(self, event: str) -> int:
        return len(self._listeners.get(event, []))

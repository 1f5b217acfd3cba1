"""Listener registry with cancellable subscriptions.

Used by the engine (log/progress events) and the status cell (status
changes). Emitting an event nobody listens to is a no-op; events are
never queued.
"""


class Subscription:
    """Handle returned by subscribe(). cancel() is idempotent."""

    def __init__(self, registry, event, callback):
        self._registry = registry
        self._event = event
        self._callback = callback
        self.active = True

    def cancel(self) -> None:
        if not self.active:
            return
        self.active = False
        self._registry._remove(self._event, self._callback)


class ListenerRegistry:
    def __init__(self):
        self._listeners: dict[str, list] = {}

    def subscribe(self, event: str, callback) -> Subscription:
        self._listeners.setdefault(event, []).append(callback)
        return Subscription(self, event, callback)

    def emit(self, event: str, payload) -> None:
        # Copy so a callback may cancel its own subscription mid-emit.
        for callback in list(self._listeners.get(event, ())):
            callback(payload)

    def clear(self) -> None:
        self._listeners.clear()

    def count(self, event: str) -> int:
        return len(self._listeners.get(event, ()))

    def _remove(self, event, callback):
        callbacks = self._listeners.get(event, [])
        if callback in callbacks:
            callbacks.remove(callback)

import logging

from ..const import EVENT_STATE_CHANGED
from .AGDataClasses.AGData import BRIGHTNESS_LEVELS, DeviceState

_LOGGER = logging.getLogger(__name__)


class SimpleEventEmitter:
    def __init__(self):
        self.events = {}

    def on(self, event_name, callback):
        """Subscribe to an event."""
        if event_name not in self.events:
            self.events[event_name] = []
        if callback not in self.events[event_name]:
            self.events[event_name].append(callback)

    def off(self, event_name, callback):
        """Remove a listener from an event."""
        if event_name in self.events:
            self.events[event_name] = [
                cb for cb in self.events[event_name] if cb != callback
            ]

    def emit(self, event_name, *args, **kwargs):
        """Call every listener of an event."""
        for callback in list(self.events.get(event_name, [])):
            try:
                callback(*args, **kwargs)
            except Exception as e:
                _LOGGER.error(f"Listener {callback} for '{event_name}' failed: {e}")


class DeviceStateStore(SimpleEventEmitter):
    """In-process cache of the light state of one device.

    Only the stepper and the reconciler (both driven by the device actor)
    write. Everyone else reads, or subscribes to EVENT_STATE_CHANGED.
    """

    def __init__(self, initial_state: DeviceState = None):
        super().__init__()
        self._state = initial_state or DeviceState()
        self._validate(self._state)
        self.writes = 0

    def __repr__(self):
        return f"DeviceStateStore State:'{self._state}'"

    @staticmethod
    def _validate(state: DeviceState):
        if state.brightness not in BRIGHTNESS_LEVELS:
            raise ValueError(
                f"Brightness {state.brightness} is not one of {BRIGHTNESS_LEVELS}"
            )

    def read(self) -> DeviceState:
        return self._state

    def write(self, state: DeviceState, source: str = "unknown"):
        """Replace the state and notify listeners if it changed."""
        self._validate(state)

        old_state = self._state
        self.writes += 1
        if old_state == state:
            return

        self._state = state
        _LOGGER.debug(f"{source}: {old_state.to_dict()} → {state.to_dict()}")
        self.emit(EVENT_STATE_CHANGED, old_state, state)

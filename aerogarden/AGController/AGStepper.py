"""
Three level brightness stepper.

The device only understands a light toggle, so brightness is approximated by
cycling 100 → 50 → 0 → 100. One step is one UpdateDeviceConfig call whose
lightStat comes from the post-step `on` flag, never from the brightness.
"""

import logging

from ..const import (BRIGHTNESS_FULL, BRIGHTNESS_HALF, BRIGHTNESS_OFF,
                     DOUBLE_STEP_DELAY)
from .AGDataClasses.AGData import DeviceState, StepPlan

_LOGGER = logging.getLogger(__name__)


class BrightnessStepper:
    def __init__(self, double_step_delay: float = DOUBLE_STEP_DELAY):
        self.double_step_delay = double_step_delay

    @staticmethod
    def nextState(current: DeviceState) -> DeviceState:
        """State after one toggle from `current`."""
        brightness = current.brightness
        if brightness == BRIGHTNESS_FULL:
            return DeviceState(on=True, brightness=BRIGHTNESS_HALF)
        if BRIGHTNESS_OFF < brightness < BRIGHTNESS_FULL:
            return DeviceState(on=False, brightness=BRIGHTNESS_OFF)
        return DeviceState(on=True, brightness=BRIGHTNESS_FULL)

    @staticmethod
    def lightStat(state: DeviceState) -> int:
        return 1 if state.on else 0

    def plan(self, target: bool, current: DeviceState) -> StepPlan:
        """Decide how many toggles a set-power request needs.

        Only three (target, brightness) combinations act. Everything else,
        e.g. target on while at 50, is left alone.
        """
        brightness = current.brightness

        if not target and brightness == BRIGHTNESS_FULL:
            # one step from full lands at half, the second reaches off
            return StepPlan(
                target=target,
                steps=2,
                delay=self.double_step_delay,
                reason="off from full",
            )
        if not target and BRIGHTNESS_OFF < brightness < BRIGHTNESS_FULL:
            return StepPlan(target=target, steps=1, reason="off from partial")
        if target and brightness == BRIGHTNESS_OFF:
            return StepPlan(target=target, steps=1, reason="on from off")

        _LOGGER.debug(
            f"No toggle for target={target} at brightness={brightness}"
        )
        return StepPlan(target=target, steps=0, reason="no legal step")

import logging
from typing import Optional, Tuple

from ..const import BRIGHTNESS_FULL, BRIGHTNESS_OFF
from .AGDataClasses.AGData import DeviceState, QueryResult

_LOGGER = logging.getLogger(__name__)


def reconcile(
    cached: DeviceState, result: QueryResult
) -> Tuple[bool, Optional[DeviceState]]:
    """Merge a remote query into the cached state.

    Returns the power value to report and the state to write, or None when
    the cache already agrees.
    """
    if not result.isOn:
        if cached.brightness == BRIGHTNESS_OFF:
            return False, None
        return False, DeviceState(on=cached.on, brightness=BRIGHTNESS_OFF)

    if cached.brightness == BRIGHTNESS_OFF:
        # on but zero brightness is not a valid combination
        _LOGGER.debug("Remote reports on while cached brightness is 0, healing to 100")
        return True, DeviceState(on=cached.on, brightness=BRIGHTNESS_FULL)

    return True, None

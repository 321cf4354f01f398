import json
from dataclasses import dataclass, field
from typing import Any, Dict

from ...const import BRIGHTNESS_FULL, BRIGHTNESS_HALF, BRIGHTNESS_OFF, GARDEN_INDEX

BRIGHTNESS_LEVELS = (BRIGHTNESS_OFF, BRIGHTNESS_HALF, BRIGHTNESS_FULL)


@dataclass(frozen=True)
class DeviceState:
    """Last known local view of the light."""

    on: bool = False
    brightness: int = BRIGHTNESS_FULL

    def to_dict(self):
        return {"on": self.on, "brightness": self.brightness}


@dataclass(frozen=True)
class ToggleCommand:
    deviceId: str
    userId: str
    lightStat: int
    gardenIndex: int = GARDEN_INDEX

    def to_params(self) -> Dict[str, Any]:
        """Form fields of an UpdateDeviceConfig request."""
        return {
            "airGuid": self.deviceId,
            "chooseGarden": self.gardenIndex,
            "userID": self.userId,
            "plantConfig": json.dumps({"lightStat": self.lightStat}, separators=(",", ":")),
        }


@dataclass(frozen=True)
class QueryResult:
    lightStat: int
    record: Dict[str, Any] = field(default_factory=dict, compare=False)

    @property
    def isOn(self) -> bool:
        return self.lightStat == 1


@dataclass(frozen=True)
class StepPlan:
    """Ordered toggles for one set-power request.

    An empty plan means the driving policy found nothing to do.
    `delay` is the pause between one step's remote call finishing and the
    next step starting.
    """

    target: bool
    steps: int = 0
    delay: float = 0.0
    reason: str = ""

    @property
    def isNoOp(self) -> bool:
        return self.steps == 0


@dataclass
class ActorStats:
    toggles: int = 0
    queries: int = 0
    failedToggles: int = 0
    failedQueries: int = 0

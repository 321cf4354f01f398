import asyncio
import logging
from typing import Any, Callable, Dict, Optional

from .AGController.AGDataClasses.AGData import DeviceState
from .AGController.AGGateway import AerogardenGateway
from .AGController.AGLight import AerogardenLight
from .config import AerogardenConfig
from .const import (EVENT_STATE_CHANGED, MANUFACTURER, MODEL,
                    SERIAL_NUMBER)

_LOGGER = logging.getLogger(__name__)

CHARACTERISTIC_ON = "On"
CHARACTERISTIC_BRIGHTNESS = "Brightness"


class AGIntegrationCoordinator:
    """Binds one configured Aerogarden light to the host.

    Exposes the host facing handlers (setOn / getOn / setBrightness), pushes
    characteristic changes to registered listeners and polls the power state
    in the background.
    """

    def __init__(self, config: AerogardenConfig, gateway: AerogardenGateway = None):
        self.config = config
        self.displayName = config.name

        self.gateway = gateway or AerogardenGateway(
            config.base_url, timeout=config.request_timeout
        )
        self.light = AerogardenLight(
            config.mac_address,
            config.user_id,
            self.gateway,
            name=config.name,
            ack_window=config.ack_window,
            double_step_delay=config.double_step_delay,
        )

        state = self.light.state
        self.data: Dict[str, Any] = {
            CHARACTERISTIC_ON: state.on,
            CHARACTERISTIC_BRIGHTNESS: state.brightness,
        }
        self._listeners = []
        self._background_tasks: set[asyncio.Task] = set()
        self._started = False

        self.light.store.on(EVENT_STATE_CHANGED, self._handleStateChange)

    def __repr__(self):
        return f"AGIntegrationCoordinator(name='{self.displayName}', data={self.data})"

    @property
    def accessoryInfo(self) -> Dict[str, str]:
        return {
            "Manufacturer": MANUFACTURER,
            "Model": MODEL,
            "SerialNumber": SERIAL_NUMBER,
            "Name": self.displayName,
        }

    def _create_background_task(self, coro) -> asyncio.Task:
        """Create and track a background task for proper cleanup."""
        task = asyncio.create_task(coro)
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)
        return task

    # ---------- characteristic push ----------

    def add_listener(self, callback: Callable[[str, Any], None]) -> Callable[[], None]:
        """Register `callback(characteristic, value)`; returns the remover."""
        self._listeners.append(callback)

        def _remove():
            if callback in self._listeners:
                self._listeners.remove(callback)

        return _remove

    def updateCharacteristic(self, characteristic: str, value):
        if self.data.get(characteristic) == value:
            return
        self.data[characteristic] = value
        for callback in list(self._listeners):
            try:
                callback(characteristic, value)
            except Exception as e:
                _LOGGER.error(f"Listener {callback} for {characteristic} failed: {e}")

    def _handleStateChange(self, old_state: DeviceState, new_state: DeviceState):
        # compared against the published values, which a poll may have moved
        self.updateCharacteristic(CHARACTERISTIC_ON, new_state.on)
        self.updateCharacteristic(CHARACTERISTIC_BRIGHTNESS, new_state.brightness)

    # ---------- host handlers ----------

    def setOn(self, value: bool, callback: Optional[Callable] = None) -> asyncio.Future:
        """Handle a SET of the On characteristic."""
        return self.light.setPower(bool(value), ack=callback)

    def getOn(self, callback: Optional[Callable] = None) -> asyncio.Future:
        """Handle a GET of the On characteristic."""
        return self.light.getPower(ack=callback)

    def setBrightness(self, value: int, callback: Optional[Callable] = None) -> asyncio.Future:
        """Handle a SET of the Brightness characteristic."""
        return self.light.setBrightness(value, ack=callback)

    # ---------- polling ----------

    async def async_refresh(self) -> bool:
        """Fetch the power state once and publish it."""
        isOn = await self.light.getPower()
        self.updateCharacteristic(CHARACTERISTIC_ON, isOn)
        return isOn

    async def _poll(self):
        while True:
            await asyncio.sleep(self.config.poll_interval)
            try:
                await self.async_refresh()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                _LOGGER.error(f"{self.displayName}: poll failed: {e}", exc_info=True)

    async def start(self):
        """Start the device actor, read the initial state and begin polling."""
        if self._started:
            return
        self._started = True
        _LOGGER.info(f"🚀 Starting Aerogarden {self.displayName}")

        self.light.start()
        await self.async_refresh()
        self._create_background_task(self._poll())

    async def async_shutdown(self) -> None:
        """Shutdown coordinator and cleanup all resources."""
        _LOGGER.info(f"🛑 Shutting down coordinator for {self.displayName}")

        for task in self._background_tasks:
            if not task.done():
                task.cancel()
        if self._background_tasks:
            try:
                await asyncio.wait_for(
                    asyncio.gather(*self._background_tasks, return_exceptions=True),
                    timeout=10.0,
                )
            except asyncio.TimeoutError:
                _LOGGER.warning(f"⚠️ Some tasks did not complete within timeout for {self.displayName}")
        self._background_tasks.clear()

        try:
            await self.light.stop()
        except Exception as e:
            _LOGGER.error(f"❌ Error stopping device actor: {e}", exc_info=True)

        self.light.store.off(EVENT_STATE_CHANGED, self._handleStateChange)
        await self.gateway.shutdown()
        self._started = False
        _LOGGER.info(f"✅ Coordinator shutdown complete for {self.displayName}")

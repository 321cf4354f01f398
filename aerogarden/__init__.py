import logging
from typing import Any, Dict

from .AGController.AGDataClasses.AGData import DeviceState
from .AGController.AGExceptions import (AerogardenConfigError,
                                        AerogardenDecodeError, AerogardenError,
                                        AerogardenTransportError)
from .AGController.AGLight import AerogardenLight
from .config import AerogardenConfig, from_dict, from_env
from .coordinator import AGIntegrationCoordinator

_LOGGER = logging.getLogger(__name__)

__version__ = "0.1.0"

__all__ = [
    "AGIntegrationCoordinator",
    "AerogardenConfig",
    "AerogardenConfigError",
    "AerogardenDecodeError",
    "AerogardenError",
    "AerogardenLight",
    "AerogardenTransportError",
    "DeviceState",
    "async_setup",
    "async_unload",
    "from_dict",
    "from_env",
]


async def async_setup(config_data: Dict[str, Any]) -> AGIntegrationCoordinator:
    """Set up one Aerogarden light from the host's plugin config."""
    config = from_dict(config_data)
    coordinator = AGIntegrationCoordinator(config)
    await coordinator.start()
    _LOGGER.info(f"✅ Aerogarden setup complete for {coordinator.displayName}")
    return coordinator


async def async_unload(coordinator: AGIntegrationCoordinator) -> None:
    """Tear down a light set up by async_setup."""
    _LOGGER.info(f"🛑 Unloading Aerogarden {coordinator.displayName}")
    try:
        await coordinator.async_shutdown()
    except Exception as e:
        _LOGGER.error(f"❌ Error during coordinator shutdown: {e}", exc_info=True)
        raise
    _LOGGER.info("✅ Aerogarden unloaded successfully")

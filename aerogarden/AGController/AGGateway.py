"""
Remote device gateway for the Aerogarden cloud API.

The API only knows two calls that matter for the light:

- UpdateDeviceConfig: toggles the light (lightStat 0/1 in plantConfig)
- QueryUserDevice: lists the user's devices, record 0 is ours

Both are form encoded POSTs. The gateway never retries, every transport or
decode failure is raised to the caller as an AerogardenError.
"""

import asyncio
import json
import logging
from typing import Any, Dict, List, Optional

import aiohttp

from ..const import (API_BASE_URL, API_QUERY_USER_DEVICE,
                     API_UPDATE_DEVICE_CONFIG, API_USER_AGENT, REQUEST_TIMEOUT)
from .AGDataClasses.AGData import QueryResult, ToggleCommand
from .AGExceptions import AerogardenDecodeError, AerogardenTransportError

_LOGGER = logging.getLogger(__name__)


class AerogardenGateway:
    """Request/response transport to the remote device API."""

    HEADERS = {
        "Content-Type": "application/x-www-form-urlencoded",
        "User-Agent": API_USER_AGENT,
    }

    def __init__(
        self,
        base_url: str = API_BASE_URL,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: float = REQUEST_TIMEOUT,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session
        self._owns_session = session is None

    def __repr__(self):
        return f"AerogardenGateway(base_url='{self.base_url}', timeout={self.timeout})"

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
            self._owns_session = True
        return self._session

    async def shutdown(self):
        """Close the session if the gateway created it."""
        if self._session and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None
        _LOGGER.debug(f"{self} shutdown")

    async def send(self, path: str, params: Dict[str, Any]) -> str:
        """POST form encoded params to path and return the raw body."""
        url = f"{self.base_url}{path}"
        try:
            session = await self._get_session()
            async with session.post(
                url,
                data={key: str(value) for key, value in params.items()},
                headers=self.HEADERS,
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            ) as response:
                if response.status >= 400:
                    raise AerogardenTransportError(
                        f"HTTP {response.status} from {path}",
                        path=path,
                        status=response.status,
                    )
                raw = await response.read()
                try:
                    return raw.decode(response.get_encoding())
                except (UnicodeDecodeError, LookupError) as e:
                    raise AerogardenDecodeError(
                        f"Response from {path} is not text: {e}", path=path, body=raw
                    ) from e
        except asyncio.TimeoutError as e:
            raise AerogardenTransportError(
                f"Request to {path} timed out after {self.timeout}s", path=path
            ) from e
        except aiohttp.ClientError as e:
            raise AerogardenTransportError(
                f"Request to {path} failed: {e}", path=path
            ) from e

    async def updateConfig(self, command: ToggleCommand) -> str:
        """Send one toggle. The body is returned for logging only."""
        _LOGGER.debug(
            f"UpdateDeviceConfig airGuid={command.deviceId} lightStat={command.lightStat}"
        )
        return await self.send(API_UPDATE_DEVICE_CONFIG, command.to_params())

    async def queryState(self, userId: str) -> QueryResult:
        """Query the user's devices and decode record 0."""
        body = await self.send(API_QUERY_USER_DEVICE, {"userID": userId})
        records = self._decode_records(body)
        record = records[0]

        if not isinstance(record, dict) or "lightStat" not in record:
            raise AerogardenDecodeError(
                "Device record has no lightStat", path=API_QUERY_USER_DEVICE, body=body
            )

        try:
            lightStat = int(record["lightStat"])
        except (TypeError, ValueError) as e:
            raise AerogardenDecodeError(
                f"Invalid lightStat {record['lightStat']!r}",
                path=API_QUERY_USER_DEVICE,
                body=body,
            ) from e

        if lightStat not in (0, 1):
            raise AerogardenDecodeError(
                f"Invalid lightStat {lightStat}", path=API_QUERY_USER_DEVICE, body=body
            )

        _LOGGER.debug(f"lightStat={lightStat}")
        return QueryResult(lightStat=lightStat, record=record)

    @staticmethod
    def _decode_records(body: str) -> List[Any]:
        try:
            data = json.loads(body)
        except (TypeError, ValueError) as e:
            raise AerogardenDecodeError(
                f"Response is not JSON: {e}", path=API_QUERY_USER_DEVICE, body=body
            ) from e

        if not isinstance(data, list):
            raise AerogardenDecodeError(
                "Response is not a device list", path=API_QUERY_USER_DEVICE, body=body
            )
        if not data:
            raise AerogardenDecodeError(
                "Response device list is empty", path=API_QUERY_USER_DEVICE, body=body
            )
        return data

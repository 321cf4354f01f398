import asyncio
import json

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from aerogarden.AGController.AGDatastore import DeviceStateStore
from aerogarden.AGController.AGGateway import AerogardenGateway
from aerogarden.AGController.AGLight import AerogardenLight
from aerogarden.const import API_QUERY_USER_DEVICE, API_UPDATE_DEVICE_CONFIG

DEVICE_ID = "AA:BB:CC:DD:EE:FF"
USER_ID = "4711"

# short timings so the suite runs in well under a second per test
ACK_WINDOW = 0.2
STEP_DELAY = 0.05


class FakeAerogardenApi:
    """In-process stand-in for the Aerogarden cloud API."""

    def __init__(self):
        self.base_url = None
        self.toggles = []
        self.queries = []
        self.headers = []
        self.toggle_times = []
        self.devices = [{"lightStat": 1, "configID": 1, "plantedName": "Basil"}]
        self.query_body = None
        self.query_status = 200
        self.query_delay = 0
        self.update_status = 200
        self.update_delay = 0
        # (status, raw body) answers used for the next toggles, oldest first
        self.update_replies = []

    @property
    def lightStats(self):
        return [json.loads(toggle["plantConfig"])["lightStat"] for toggle in self.toggles]

    async def update(self, request):
        form = await request.post()
        self.toggles.append(dict(form))
        self.headers.append(request.headers.copy())
        self.toggle_times.append(asyncio.get_running_loop().time())
        if self.update_delay:
            await asyncio.sleep(self.update_delay)
        if self.update_replies:
            status, body = self.update_replies.pop(0)
            return web.Response(
                status=status, body=body, content_type="text/plain", charset="utf-8"
            )
        return web.Response(status=self.update_status, text="true")

    async def query(self, request):
        form = await request.post()
        self.queries.append(dict(form))
        if self.query_delay:
            await asyncio.sleep(self.query_delay)
        if self.query_body is not None:
            return web.Response(status=self.query_status, text=self.query_body)
        return web.json_response(self.devices, status=self.query_status)


@pytest.fixture
async def fake_api():
    api = FakeAerogardenApi()
    app = web.Application()
    app.router.add_post(API_UPDATE_DEVICE_CONFIG, api.update)
    app.router.add_post(API_QUERY_USER_DEVICE, api.query)

    server = TestServer(app)
    await server.start_server()
    api.base_url = str(server.make_url("")).rstrip("/")
    yield api
    await server.close()


@pytest.fixture
async def gateway(fake_api):
    gateway = AerogardenGateway(fake_api.base_url, timeout=1)
    yield gateway
    await gateway.shutdown()


@pytest.fixture
async def make_light(gateway):
    lights = []

    def _make(state=None, **kwargs):
        kwargs.setdefault("ack_window", ACK_WINDOW)
        kwargs.setdefault("double_step_delay", STEP_DELAY)
        light = AerogardenLight(
            DEVICE_ID,
            USER_ID,
            gateway,
            store=DeviceStateStore(state) if state else None,
            **kwargs,
        )
        lights.append(light)
        return light

    yield _make
    for light in lights:
        await light.stop()

import json

import aiohttp
import pytest

from aerogarden.AGController.AGDataClasses.AGData import ToggleCommand
from aerogarden.AGController.AGExceptions import (AerogardenDecodeError,
                                                  AerogardenTransportError)
from aerogarden.AGController.AGGateway import AerogardenGateway
from aerogarden.const import API_USER_AGENT

from .conftest import DEVICE_ID, USER_ID


@pytest.mark.asyncio
async def test_update_config_posts_form_encoded_toggle(fake_api, gateway):
    await gateway.updateConfig(ToggleCommand(DEVICE_ID, USER_ID, lightStat=1))

    assert fake_api.toggles == [
        {
            "airGuid": DEVICE_ID,
            "chooseGarden": "0",
            "userID": USER_ID,
            "plantConfig": '{"lightStat":1}',
        }
    ]
    headers = fake_api.headers[0]
    assert headers["Content-Type"] == "application/x-www-form-urlencoded"
    assert headers["User-Agent"] == API_USER_AGENT


@pytest.mark.asyncio
async def test_query_state_reads_first_record(fake_api, gateway):
    fake_api.devices = [{"lightStat": 0}, {"lightStat": 1}]

    result = await gateway.queryState(USER_ID)

    assert result.lightStat == 0
    assert result.isOn is False
    assert fake_api.queries == [{"userID": USER_ID}]


@pytest.mark.asyncio
async def test_query_state_accepts_string_light_stat(fake_api, gateway):
    fake_api.query_body = json.dumps([{"lightStat": "1"}])

    result = await gateway.queryState(USER_ID)

    assert result.isOn is True
    assert result.record == {"lightStat": "1"}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        "[]",
        "not json",
        '{"lightStat": 1}',
        '[{"configID": 3}]',
        '[{"lightStat": 2}]',
        '[{"lightStat": "on"}]',
        '["device"]',
    ],
)
async def test_query_state_rejects_malformed_body(fake_api, gateway, body):
    fake_api.query_body = body

    with pytest.raises(AerogardenDecodeError):
        await gateway.queryState(USER_ID)


@pytest.mark.asyncio
async def test_http_error_is_transport_error(fake_api, gateway):
    fake_api.update_status = 500

    with pytest.raises(AerogardenTransportError) as error:
        await gateway.updateConfig(ToggleCommand(DEVICE_ID, USER_ID, lightStat=0))

    assert error.value.status == 500


@pytest.mark.asyncio
async def test_undecodable_body_is_decode_error(fake_api, gateway):
    fake_api.update_replies = [(200, b"\xff\xfe\xfa")]

    with pytest.raises(AerogardenDecodeError) as error:
        await gateway.updateConfig(ToggleCommand(DEVICE_ID, USER_ID, lightStat=1))

    assert error.value.body == b"\xff\xfe\xfa"


@pytest.mark.asyncio
async def test_user_agent_matches_legacy_client(fake_api, gateway):
    await gateway.updateConfig(ToggleCommand(DEVICE_ID, USER_ID, lightStat=1))

    assert fake_api.headers[0]["User-Agent"] == "HA-Aerogarden/0.1"


@pytest.mark.asyncio
async def test_timeout_is_transport_error(fake_api):
    fake_api.query_delay = 0.5
    gateway = AerogardenGateway(fake_api.base_url, timeout=0.1)
    try:
        with pytest.raises(AerogardenTransportError, match="timed out"):
            await gateway.queryState(USER_ID)
    finally:
        await gateway.shutdown()


@pytest.mark.asyncio
async def test_unreachable_host_is_transport_error():
    gateway = AerogardenGateway("http://127.0.0.1:1", timeout=1)
    try:
        with pytest.raises(AerogardenTransportError):
            await gateway.queryState(USER_ID)
    finally:
        await gateway.shutdown()


@pytest.mark.asyncio
async def test_shutdown_keeps_injected_session_open(fake_api):
    async with aiohttp.ClientSession() as session:
        gateway = AerogardenGateway(fake_api.base_url, session=session)
        await gateway.queryState(USER_ID)
        await gateway.shutdown()

        assert not session.closed

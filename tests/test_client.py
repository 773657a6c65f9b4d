"""Tests for dreamcatcher client."""

from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest

from dreamcatcher.client import DreamcatcherClient
from dreamcatcher.const import MQTT_PORT
from dreamcatcher.exceptions import (
    DreamcatcherApiError,
    DreamcatcherAuthError,
    DreamcatcherConnectionError,
)
from dreamcatcher.models import DeviceInfo, Routing, Session

DISCOVERY_OK = {"uibReturn": {"Return status": "200", "uacIP": "1.2.3.4", "token": "T"}}
LOGIN_OK = {"status": "200", "token": "ABC"}
USER_INFO_OK = {"status": "200", "user": {"userAlias": "alice"}}


def _response(body: Any) -> MagicMock:
    resp = MagicMock()
    resp.json = AsyncMock(return_value=body)
    ctx = MagicMock()
    ctx.__aenter__.return_value = resp
    ctx.__aexit__.return_value = False
    return ctx


def _make_client(*bodies: Any) -> DreamcatcherClient:
    session = MagicMock()
    session.get = MagicMock(side_effect=[_response(b) for b in bodies])
    return DreamcatcherClient(session)


def _logged_in_client(*bodies: Any) -> DreamcatcherClient:
    client = _make_client(*bodies)
    client._auth = Session(
        username="alice@example.com",
        alias="alice",
        installation_id="uuid-1",
        token="ABC",
        routing=Routing(uac_domain="", uac_ip="1.2.3.4", token="T"),
    )
    return client


def test_client_defaults() -> None:
    client = _make_client()
    assert client.auth is None
    assert client.is_authenticated is False


@pytest.mark.asyncio
async def test_login_success() -> None:
    client = _make_client(DISCOVERY_OK, LOGIN_OK, USER_INFO_OK)
    session = await client.async_login("alice@example.com", "p@ss word", "uuid-1")

    assert session.token == "ABC"
    assert session.alias == "alice"
    assert session.username == "alice@example.com"
    assert session.installation_id == "uuid-1"
    assert session.routing.uac_ip == "1.2.3.4"
    assert session.routing.token == "T"
    assert client.is_authenticated is True
    assert client.auth is session

    calls = client._session.get.call_args_list
    assert len(calls) == 3
    assert "/uib/GET/userReg/" in calls[0].args[0]
    assert "uuid-1-com.chuango.h4plus" in calls[0].args[0]
    login_url = calls[1].args[0]
    assert login_url.startswith("https://1.2.3.4/uac/SET/userLogin/")
    assert "/alice@example.com//1.8.2/uuid-1-com.chuango.h4plus/T/" in login_url
    assert calls[1].kwargs["headers"]["dcsn"] == "p%40ss%20word"
    assert calls[2].args[0].startswith("https://1.2.3.4/uac/GET/getUserInfo/")


@pytest.mark.asyncio
async def test_login_discovery_failure_stops_before_login() -> None:
    body = {"uibReturn": {"Return status": "404"}}
    client = _make_client(body)
    with pytest.raises(DreamcatcherAuthError) as exc_info:
        await client.async_login("alice@example.com", "secret", "uuid-1")
    assert exc_info.value.body == body
    assert client._session.get.call_count == 1
    assert client.is_authenticated is False


@pytest.mark.asyncio
async def test_login_discovery_missing_payload() -> None:
    client = _make_client({"error": "nope"})
    with pytest.raises(DreamcatcherAuthError):
        await client.async_login("alice@example.com", "secret", "uuid-1")


@pytest.mark.asyncio
async def test_login_failure_issues_no_session() -> None:
    body = {"status": "401", "msg": "bad password"}
    client = _make_client(DISCOVERY_OK, body)
    with pytest.raises(DreamcatcherAuthError, match="Login failed") as exc_info:
        await client.async_login("alice@example.com", "wrong", "uuid-1")
    assert exc_info.value.body == body
    assert client._session.get.call_count == 2
    assert client.auth is None


@pytest.mark.asyncio
async def test_login_user_info_not_an_object() -> None:
    body = {"status": "200", "user": "alice"}
    client = _make_client(DISCOVERY_OK, LOGIN_OK, body)
    with pytest.raises(DreamcatcherAuthError, match="Unexpected user info") as exc_info:
        await client.async_login("alice@example.com", "secret", "uuid-1")
    assert exc_info.value.body == body
    assert client.auth is None


@pytest.mark.asyncio
async def test_login_user_info_failure() -> None:
    client = _make_client(DISCOVERY_OK, LOGIN_OK, {"status": "500"})
    with pytest.raises(DreamcatcherAuthError, match="user info"):
        await client.async_login("alice@example.com", "secret", "uuid-1")
    assert client.auth is None


@pytest.mark.asyncio
async def test_login_numeric_status_accepted() -> None:
    client = _make_client(
        {"uibReturn": {"Return status": 200, "uacIP": "1.2.3.4", "token": "T"}},
        {"status": 200, "token": "ABC"},
        {"status": 200, "user": {"userAlias": "alice"}},
    )
    session = await client.async_login("alice@example.com", "secret", "uuid-1")
    assert session.token == "ABC"


@pytest.mark.asyncio
async def test_connection_error_wrapped() -> None:
    session = MagicMock()
    session.get = MagicMock(side_effect=aiohttp.ClientConnectionError("down"))
    client = DreamcatcherClient(session)
    with pytest.raises(DreamcatcherConnectionError):
        await client.async_login("alice@example.com", "secret", "uuid-1")


@pytest.mark.asyncio
async def test_non_object_body_rejected() -> None:
    client = _make_client(["not", "a", "dict"])
    with pytest.raises(DreamcatcherApiError):
        await client.async_login("alice@example.com", "secret", "uuid-1")


@pytest.mark.asyncio
async def test_list_devices() -> None:
    client = _logged_in_client(
        {
            "status": "200",
            "list": {
                "list": [
                    {"deviceID": "dev-1", "cmdIP": "5.6.7.8"},
                    {"deviceID": "dev-2", "cmdIP": "5.6.7.9"},
                ]
            },
        }
    )
    devices = await client.async_list_devices()
    assert [d.device_id for d in devices] == ["dev-1", "dev-2"]
    assert devices[0].cmd_ip == "5.6.7.8"
    url = client._session.get.call_args.args[0]
    assert url.startswith(
        "https://1.2.3.4/uac/GET/listDevice/00s/01/com.dreamcatcher.smanos/"
        "alice@example.com/ABC/"
    )


@pytest.mark.asyncio
async def test_list_devices_empty() -> None:
    client = _logged_in_client({"status": "200", "list": {}})
    assert await client.async_list_devices() == []


@pytest.mark.asyncio
async def test_list_devices_failure() -> None:
    body = {"status": "403"}
    client = _logged_in_client(body)
    with pytest.raises(DreamcatcherApiError) as exc_info:
        await client.async_list_devices()
    assert exc_info.value.status_code == "403"
    assert exc_info.value.body == body


@pytest.mark.asyncio
async def test_list_devices_requires_login() -> None:
    client = _make_client()
    with pytest.raises(DreamcatcherAuthError, match="Not logged in"):
        await client.async_list_devices()


@pytest.mark.asyncio
async def test_connect() -> None:
    client = _logged_in_client()
    device = DeviceInfo.from_api({"deviceID": "dev-1", "cmdIP": "5.6.7.8"})
    with (
        patch("dreamcatcher.client.aiomqtt.Client") as mqtt_cls,
        patch(
            "dreamcatcher.client.DeviceConnection.async_start", new_callable=AsyncMock
        ) as start,
    ):
        connection = await client.async_connect(device)

    kwargs = mqtt_cls.call_args.kwargs
    assert kwargs["hostname"] == "5.6.7.8"
    assert kwargs["port"] == MQTT_PORT
    assert kwargs["username"] == "and_dev-1"
    assert kwargs["password"] == "ABC"
    assert kwargs["tls_context"].check_hostname is False
    start.assert_awaited_once()
    assert connection.device_id == "dev-1"


@pytest.mark.asyncio
async def test_connect_requires_login() -> None:
    client = _make_client()
    with pytest.raises(DreamcatcherAuthError):
        await client.async_connect(DeviceInfo.from_api({"deviceID": "dev-1"}))

"""dreamcatcher — Python client library for the Dreamcatcher security cloud.

Supports Chuango H4 Plus and other Dreamcatcher-powered alarm panels.

Usage:
    from dreamcatcher import ArmState, ConnectionEvent, DreamcatcherClient

    async with aiohttp.ClientSession() as session:
        client = DreamcatcherClient(session)
        await client.async_login("user@example.com", "secret", installation_id)
        for panel in await client.async_list_devices():
            async with await client.async_connect(panel) as connection:
                connection.subscribe(ConnectionEvent.ALARM, print)
                print(await connection.async_get_current_alarm_state())
"""

from .client import DreamcatcherClient
from .connection import DeviceConnection
from .const import ArmState, ConnectionEvent, DeviceType, ItemEventType
from .exceptions import (
    DreamcatcherApiError,
    DreamcatcherAuthError,
    DreamcatcherCommandError,
    DreamcatcherConnectionError,
    DreamcatcherError,
    DreamcatcherRequestSupersededError,
    DreamcatcherTimeoutError,
)
from .models import (
    Alarm,
    AlarmState,
    Device,
    DeviceInfo,
    DeviceNode,
    Routing,
    Session,
    SignalAttribute,
)

__all__ = [
    "DreamcatcherClient",
    "DeviceConnection",
    "ArmState",
    "ConnectionEvent",
    "DeviceType",
    "ItemEventType",
    "DreamcatcherError",
    "DreamcatcherAuthError",
    "DreamcatcherApiError",
    "DreamcatcherCommandError",
    "DreamcatcherConnectionError",
    "DreamcatcherTimeoutError",
    "DreamcatcherRequestSupersededError",
    "Alarm",
    "AlarmState",
    "Device",
    "DeviceInfo",
    "DeviceNode",
    "Routing",
    "Session",
    "SignalAttribute",
]

__version__ = "0.1.0"

"""Data models for the dreamcatcher library."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .const import ArmState, DeviceType, ItemEventType


@dataclass(frozen=True)
class Routing:
    """Per-user service hosts returned by service discovery."""

    uac_domain: str
    uac_ip: str
    psb_domain: str = ""
    psb_ip: str = ""
    dib_domain: str = ""
    dib_ip: str = ""
    relay_domain: str = ""
    relay_ip: str = ""
    relay_port: str = ""
    p2p_port: str = ""
    token: str = ""

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Routing:
        """Create from the ``uibReturn`` object of a discovery response."""
        return cls(
            uac_domain=data.get("uacDomain", ""),
            uac_ip=data.get("uacIP", ""),
            psb_domain=data.get("psbDomain", ""),
            psb_ip=data.get("psbIP", ""),
            dib_domain=data.get("dibDomain", ""),
            dib_ip=data.get("dibIP", ""),
            relay_domain=data.get("relayDomain", ""),
            relay_ip=data.get("relayIP", ""),
            relay_port=data.get("relayPort", ""),
            p2p_port=data.get("p2pPort", ""),
            token=data.get("token", ""),
        )


@dataclass(frozen=True)
class Session:
    """An authenticated Dreamcatcher session."""

    username: str
    alias: str
    installation_id: str
    token: str
    routing: Routing


@dataclass
class DeviceInfo:
    """A panel registered to the account, as listed by the directory."""

    device_id: str
    product_id: str
    model_id: str
    alias: str
    cmd_ip: str
    cmd_domain: str
    timezone: str
    auth: str = ""
    order: str = ""
    period: str = ""
    time: str = ""
    day: str = ""
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> DeviceInfo:
        """Create from API response data."""
        return cls(
            device_id=data.get("deviceID", ""),
            product_id=data.get("productID", ""),
            model_id=data.get("enu_modelid", ""),
            alias=data.get("deviceAlias", ""),
            cmd_ip=data.get("cmdIP", ""),
            cmd_domain=data.get("cmdDomain", ""),
            timezone=data.get("timezone", ""),
            auth=data.get("auth", ""),
            order=data.get("deviceOrder", ""),
            period=data.get("period", ""),
            time=data.get("time", ""),
            day=data.get("day", ""),
            raw=data,
        )


@dataclass
class DeviceNode:
    """A functional node of a peripheral (one sensor channel)."""

    rf: str
    ft_code: str
    index: str
    version: str
    uuid: str
    func_type: str
    value: str
    unit: str
    alarm_24h: bool
    mode_enable_list: str
    disable_sos: bool
    chime: bool
    alarm_delay_enable: bool
    user_name: str
    update: str
    nickname: str

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> DeviceNode:
        return cls(
            rf=data.get("RF", ""),
            ft_code=data.get("FTCode", ""),
            index=data.get("Index", ""),
            version=data.get("Ver", ""),
            uuid=data.get("UUID", ""),
            func_type=data.get("FuncType", ""),
            value=data.get("Value", ""),
            unit=data.get("Unit", ""),
            alarm_24h=data.get("Alarm24H") == "1",
            mode_enable_list=data.get("ModeEnableList", ""),
            disable_sos=data.get("DisableSOS") == "1",
            chime=data.get("Chime") == "1",
            alarm_delay_enable=data.get("AlarmDelayEnable") == "1",
            user_name=data.get("UserName", ""),
            update=data.get("Update", ""),
            nickname=data.get("NewNick", ""),
        )


@dataclass
class SignalAttribute:
    """Signal strength attribute of a peripheral."""

    attr_id: str
    value: str

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> SignalAttribute:
        return cls(
            attr_id=data.get("AttrID", ""),
            value=data.get("AttrValue", ""),
        )


@dataclass
class Device:
    """A peripheral (sensor, remote, siren...) attached to a panel."""

    id: str
    name: str
    icon: str
    country: str
    rf: str
    notice_flag: str
    offline: bool
    group_id: str
    disable_push: bool
    nickname: str
    endpoint_id: str
    nodes: list[DeviceNode] = field(default_factory=list)
    signal: SignalAttribute | None = None

    # Full raw entry for anything we haven't modeled
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @property
    def device_type(self) -> DeviceType:
        """Peripheral type derived from the RF code prefix."""
        try:
            return DeviceType(self.rf[:2])
        except ValueError:
            return DeviceType.UNKNOWN

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Device:
        """Create from an entry of a ``DevicesList`` array."""
        signal = data.get("Signal")
        return cls(
            id=data["DevId"],
            name=data.get("DevName", ""),
            icon=data.get("Icon", ""),
            country=data.get("Country", ""),
            rf=data.get("RF", ""),
            notice_flag=data.get("NoticeFlag", ""),
            offline=data.get("OFFLine") == "1",
            group_id=data.get("GID", ""),
            disable_push=data.get("DisPush") == "1",
            nickname=data.get("NewNick", ""),
            endpoint_id=data.get("EpId", ""),
            nodes=[DeviceNode.from_api(n) for n in data.get("NodesList") or []],
            signal=SignalAttribute.from_api(signal) if isinstance(signal, dict) else None,
            raw=data,
        )


@dataclass
class AlarmState:
    """Arm state of a panel and whether it is currently in alarm."""

    state: ArmState
    alarm: bool = False

    @property
    def is_armed(self) -> bool:
        """Return True if the panel is armed in any mode."""
        return self.state in (ArmState.HOME, ArmState.ARMED)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> AlarmState:
        """Create from a ``SceneUpdate`` response."""
        try:
            state = ArmState(int(data.get("CurrentSceneId", 0)))
        except (TypeError, ValueError):
            state = ArmState.UNKNOWN
        return cls(state=state, alarm=data.get("AlarmState") == "1")


@dataclass
class Alarm:
    """An alarm event pushed by the panel."""

    device_id: str
    item_name: str
    item_id: str
    item_event: ItemEventType
    alarm_type: str
    timestamp: int
    dst: str
    timezone: str
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Alarm:
        """Create from the response of an ``Alarm`` subject message."""
        try:
            item_event = ItemEventType(str(data.get("itemEvent", "")))
        except ValueError:
            item_event = ItemEventType.UNKNOWN
        try:
            timestamp = int(data.get("timeStamp", 0))
        except (TypeError, ValueError):
            timestamp = 0
        return cls(
            device_id=data.get("deviceID", ""),
            item_name=data.get("itemName", ""),
            item_id=data.get("itemID", ""),
            item_event=item_event,
            alarm_type=data.get("alarmType", ""),
            timestamp=timestamp,
            dst=data.get("dst", ""),
            timezone=data.get("timeZone", ""),
            raw=data,
        )

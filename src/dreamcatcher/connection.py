"""Real-time command channel to a Dreamcatcher panel."""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import random
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import aiomqtt

from .const import (
    CLIENT_ID_PREFIX,
    COMMAND_OK,
    DEFAULT_REQUEST_TIMEOUT,
    PUBLISH_TOPIC,
    SUBJECT_ALARM,
    SUBJECT_ZWAVE,
    SUBSCRIBE_TOPIC,
    ArmState,
    ConnectionEvent,
)
from .exceptions import (
    DreamcatcherCommandError,
    DreamcatcherConnectionError,
    DreamcatcherError,
    DreamcatcherRequestSupersededError,
    DreamcatcherTimeoutError,
)
from .models import Alarm, AlarmState, Device, DeviceInfo, Session

_LOGGER = logging.getLogger(__name__)

# Returned by a response handler that needs further messages
_MORE = object()

ResponseHandler = Callable[[dict[str, Any]], Any]
Listener = Callable[[Any], None]


def _ignore_message(response: dict[str, Any]) -> None:
    """Accept a message without acting on it."""


@dataclass
class _PendingRequest:
    """An outstanding request waiting for the panel to answer."""

    token: str
    action: str
    future: asyncio.Future[Any]
    handler: ResponseHandler


class DeviceConnection:
    """MQTT command channel bound to one panel.

    The vendor protocol carries no request ids: answers are matched to
    requests by the ``action`` field of the response. Each outgoing
    request gets a synthetic token in an in-flight table keyed by that
    action, holding at most one entry per action, and is bounded by
    ``request_timeout``.

    Usage:
        async with await client.async_connect(device_info) as connection:
            connection.subscribe(ConnectionEvent.ALARM, print)
            state = await connection.async_get_current_alarm_state()
            await connection.async_set_alarm_state(ArmState.ARMED)
    """

    def __init__(
        self,
        mqtt: aiomqtt.Client,
        device: DeviceInfo,
        session: Session,
        *,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ) -> None:
        """Initialize the connection.

        Args:
            mqtt: MQTT client for the panel's command host (not yet connected).
            device: The panel this connection talks to.
            session: The authenticated session that owns the panel.
            request_timeout: Seconds to wait for an answer to a request.
        """
        self._mqtt = mqtt
        self._device = device
        self._session = session
        self._request_timeout = request_timeout
        self._client_id = f"{CLIENT_ID_PREFIX}{random.randrange(1_000_000)}"
        self._publish_topic = PUBLISH_TOPIC.format(device_id=device.device_id)
        self._subscribe_topic = SUBSCRIBE_TOPIC.format(device_id=device.device_id)

        self._model = ""
        self._online = False
        self._devices: list[Device] = []
        self._alarm_state: AlarmState | None = None

        self._pending: dict[str, _PendingRequest] = {}
        self._listeners: dict[ConnectionEvent, list[Listener]] = {
            event: [] for event in ConnectionEvent
        }
        self._handlers: dict[str, Callable[[dict[str, Any]], None]] = {
            "device_info": _ignore_message,
            "get_all_devices": _ignore_message,
            "get_scene_current": _ignore_message,
            "status_info": self._handle_status_info,
            "update_devices": self._handle_update_devices,
            "SceneUpdate": self._handle_scene_update,
        }

        self._exit_stack: contextlib.AsyncExitStack | None = None
        self._listen_task: asyncio.Task[None] | None = None

    # ── Public properties ────────────────────────────────────────────

    @property
    def device_info(self) -> DeviceInfo:
        """The panel this connection is bound to."""
        return self._device

    @property
    def device_id(self) -> str:
        return self._device.device_id

    @property
    def client_id(self) -> str:
        """Sender id put in the ``from`` field of outgoing messages."""
        return self._client_id

    @property
    def model(self) -> str:
        """Panel model reported by the last status update."""
        return self._model

    @property
    def online(self) -> bool:
        """Last known online status of the panel."""
        return self._online

    @property
    def devices(self) -> list[Device]:
        """Peripherals known so far, in arrival order."""
        return list(self._devices)

    @property
    def alarm_state(self) -> AlarmState | None:
        """Last known arm state, or None before any scene update."""
        return self._alarm_state

    @property
    def is_connected(self) -> bool:
        """Return True while the listener is running."""
        return self._listen_task is not None and not self._listen_task.done()

    # ── Lifecycle ────────────────────────────────────────────────────

    async def async_start(self) -> None:
        """Connect, subscribe to the panel's topics and start listening.

        Raises:
            DreamcatcherConnectionError: If the broker cannot be reached.
        """
        stack = contextlib.AsyncExitStack()
        try:
            await stack.enter_async_context(self._mqtt)
            await self._mqtt.subscribe(self._subscribe_topic)
        except aiomqtt.MqttError as err:
            await stack.aclose()
            raise DreamcatcherConnectionError(
                f"Unable to connect to panel {self.device_id}: {err}"
            ) from err
        self._exit_stack = stack
        self._listen_task = asyncio.create_task(self._async_listen())
        _LOGGER.debug("Listening on %s", self._subscribe_topic)

    async def async_close(self) -> None:
        """Stop listening, fail outstanding requests and disconnect."""
        if self._listen_task is not None:
            self._listen_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._listen_task
            self._listen_task = None
        self._fail_pending("Connection closed")
        if self._exit_stack is not None:
            stack, self._exit_stack = self._exit_stack, None
            try:
                await stack.aclose()
            except aiomqtt.MqttError as err:
                _LOGGER.debug("Error disconnecting from %s: %s", self.device_id, err)

    async def __aenter__(self) -> DeviceConnection:
        if self._listen_task is None:
            await self.async_start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.async_close()

    async def _async_listen(self) -> None:
        try:
            async for message in self._mqtt.messages:
                try:
                    self.handle_message(str(message.topic), message.payload)
                except Exception:  # noqa: BLE001
                    _LOGGER.exception("Error handling message from %s", self.device_id)
        except aiomqtt.MqttError as err:
            _LOGGER.warning("Lost command channel to %s: %s", self.device_id, err)
            self._fail_pending(f"Lost command channel: {err}")
            if self._online:
                self._online = False
                self._emit(ConnectionEvent.STATUS, False)

    # ── Events ───────────────────────────────────────────────────────

    def subscribe(
        self, event: ConnectionEvent, callback: Listener
    ) -> Callable[[], None]:
        """Register a listener for an event.

        ``status`` listeners receive a bool, ``state`` listeners an
        AlarmState and ``alarm`` listeners an Alarm.

        Returns:
            A callable that removes the listener.
        """
        listeners = self._listeners[ConnectionEvent(event)]
        listeners.append(callback)

        def unsubscribe() -> None:
            if callback in listeners:
                listeners.remove(callback)

        return unsubscribe

    def _emit(self, event: ConnectionEvent, value: Any) -> None:
        for callback in list(self._listeners[event]):
            try:
                callback(value)
            except Exception:  # noqa: BLE001
                _LOGGER.exception("Error in %s listener", event)

    # ── Outgoing ─────────────────────────────────────────────────────

    def build_message(self, subject: str, request: dict[str, Any]) -> dict[str, Any]:
        """Wrap a request in the broadcast envelope the panel expects."""
        return {
            "message": {
                "type": "broadcast",
                "to": self.device_id,
                "from": self._client_id,
                "username": self._session.alias,
                "ack_mark": "0",
                "subject": subject,
                "request": request,
            }
        }

    async def async_send(self, subject: str, request: dict[str, Any]) -> None:
        """Publish a request to the panel without waiting for an answer.

        Raises:
            DreamcatcherConnectionError: If the publish fails.
        """
        payload = json.dumps(self.build_message(subject, request))
        _LOGGER.debug("Publishing to %s: %s", self._publish_topic, payload)
        try:
            await self._mqtt.publish(self._publish_topic, payload)
        except aiomqtt.MqttError as err:
            raise DreamcatcherConnectionError(
                f"Unable to publish to panel {self.device_id}: {err}"
            ) from err

    async def _async_request(
        self,
        request: dict[str, Any],
        handler: ResponseHandler,
        *,
        subject: str = SUBJECT_ZWAVE,
    ) -> Any:
        """Send a request and wait until ``handler`` produces a result.

        The handler is fed every response carrying the request's action.
        It returns ``_MORE`` while it needs further messages and raises a
        DreamcatcherError to fail the request.
        """
        action = request["action"]
        future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        pending = _PendingRequest(
            token=uuid.uuid4().hex, action=action, future=future, handler=handler
        )

        previous = self._pending.get(action)
        if previous is not None and not previous.future.done():
            _LOGGER.debug(
                "Request %s for %s superseded by %s",
                previous.token,
                action,
                pending.token,
            )
            previous.future.set_exception(
                DreamcatcherRequestSupersededError(
                    f"{action} request superseded by a newer one"
                )
            )
        self._pending[action] = pending

        try:
            await self.async_send(subject, request)
            async with asyncio.timeout(self._request_timeout):
                return await future
        except TimeoutError as err:
            raise DreamcatcherTimeoutError(
                f"No {action} response from panel {self.device_id} "
                f"within {self._request_timeout}s"
            ) from err
        finally:
            if self._pending.get(action) is pending:
                del self._pending[action]

    def _fail_pending(self, reason: str) -> None:
        pending, self._pending = self._pending, {}
        for request in pending.values():
            if not request.future.done():
                request.future.set_exception(
                    DreamcatcherConnectionError(f"{request.action}: {reason}")
                )

    # ── Commands ─────────────────────────────────────────────────────

    async def async_get_all_devices(self) -> list[Device]:
        """Fetch every peripheral attached to the panel.

        The panel answers in pages. A page with ``clear_flag == "1"``
        empties the list first, entries are merged by device id, and the
        page with ``page_flag == "0"`` completes the listing.
        """

        def collect(response: dict[str, Any]) -> Any:
            page = [Device.from_api(d) for d in response.get("DevicesList") or []]
            if response.get("clear_flag") == "1":
                self._devices.clear()
            self._merge_devices(page)
            if response.get("page_flag") == "0":
                return self.devices
            return _MORE

        return await self._async_request(
            {"action": "get_all_devices", "status": COMMAND_OK}, collect
        )

    async def async_get_current_alarm_state(self) -> AlarmState:
        """Ask the panel for its current scene."""

        def scene(response: dict[str, Any]) -> Any:
            if response.get("action") == "SceneUpdate":
                return self._alarm_state
            return _MORE

        return await self._async_request({"action": "get_scene_current"}, scene)

    async def async_set_alarm_state(self, state: ArmState) -> bool:
        """Switch the panel to another scene.

        Returns:
            True once the panel acknowledges the change.

        Raises:
            DreamcatcherCommandError: If the panel answers with a failure status.
        """
        state = ArmState(state)
        if state is ArmState.UNKNOWN:
            raise ValueError("Cannot set an unknown arm state")

        def apply(response: dict[str, Any]) -> bool:
            if response.get("status") != COMMAND_OK:
                raise DreamcatcherCommandError(
                    f"Panel {self.device_id} refused {state.name}: "
                    f"{response.get('status')}",
                    response=response,
                )
            self._alarm_state = AlarmState(state=state, alarm=False)
            self._emit(ConnectionEvent.STATE, self._alarm_state)
            return True

        return await self._async_request(
            {
                "action": "set_scene_current",
                "Mail": self._session.username,
                "NewSceneId": str(int(state)),
            },
            apply,
        )

    # ── Incoming ─────────────────────────────────────────────────────

    def handle_message(self, topic: str, payload: Any) -> None:
        """Process one inbound message.

        Unparseable, unknown and malformed messages are logged and dropped.
        """
        try:
            msg = json.loads(payload)
        except (TypeError, ValueError):
            _LOGGER.warning("Dropping unparseable message on %s: %r", topic, payload)
            return
        if not isinstance(msg, dict):
            _LOGGER.warning("Dropping unexpected message on %s: %r", topic, msg)
            return

        envelope = msg.get("message")
        response = envelope.get("response") if isinstance(envelope, dict) else None
        if not isinstance(response, dict):
            if msg.get("msg") == "online":
                _LOGGER.debug("Keep-alive from %s", self.device_id)
            else:
                _LOGGER.debug("Unknown message on %s: %s", topic, msg)
            return

        try:
            if envelope.get("subject") == SUBJECT_ALARM:
                self._emit(ConnectionEvent.ALARM, Alarm.from_api(response))
            else:
                self._dispatch(topic, response)
        except (AttributeError, KeyError, TypeError, ValueError) as err:
            _LOGGER.warning("Dropping malformed message on %s (%s): %s", topic, err, msg)

    def _dispatch(self, topic: str, response: dict[str, Any]) -> None:
        action = response.get("action")
        handled = False
        handler = self._handlers.get(action)
        if handler is not None:
            handler(response)
            handled = True
        if self._resolve(action, response):
            handled = True
        if not handled:
            _LOGGER.debug("Unhandled %s message on %s: %s", action, topic, response)

    def _resolve(self, action: Any, response: dict[str, Any]) -> bool:
        """Feed a response to the request waiting on ``action``."""
        pending = self._pending.get(action)
        if pending is None or pending.future.done():
            return False
        try:
            result = pending.handler(response)
        except DreamcatcherError as err:
            pending.future.set_exception(err)
        else:
            if result is not _MORE:
                pending.future.set_result(result)
        return True

    def _handle_status_info(self, response: dict[str, Any]) -> None:
        self._model = response.get("model", "")
        self._online = response.get("online") == "1"
        self._emit(ConnectionEvent.STATUS, self._online)

    def _handle_update_devices(self, response: dict[str, Any]) -> None:
        self._merge_devices(
            [Device.from_api(d) for d in response.get("DevicesList") or []]
        )

    def _handle_scene_update(self, response: dict[str, Any]) -> None:
        self._alarm_state = AlarmState.from_api(response)
        self._emit(ConnectionEvent.STATE, self._alarm_state)
        self._resolve("get_scene_current", response)

    def _merge_devices(self, devices: list[Device]) -> None:
        """Replace known devices by id in place, append new ones."""
        for device in devices:
            for idx, known in enumerate(self._devices):
                if known.id == device.id:
                    self._devices[idx] = device
                    break
            else:
                self._devices.append(device)

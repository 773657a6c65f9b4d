"""Dreamcatcher cloud client."""

from __future__ import annotations

import logging
import ssl
import time
from typing import Any
from urllib.parse import quote

import aiohttp
import aiomqtt

from .connection import DeviceConnection
from .const import (
    API_PREFIX,
    APP_SUFFIX,
    APP_VERSION,
    DEFAULT_REQUEST_TIMEOUT,
    DREAMCATCHER_ROOT,
    MQTT_PORT,
    MQTT_USERNAME_PREFIX,
    STATUS_OK,
    USER_AGENT,
)
from .exceptions import (
    DreamcatcherApiError,
    DreamcatcherAuthError,
    DreamcatcherConnectionError,
)
from .models import DeviceInfo, Routing, Session

_LOGGER = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


def _is_ok(status: Any) -> bool:
    return str(status) == STATUS_OK


class DreamcatcherClient:
    """Async client for the Dreamcatcher cloud.

    Usage:
        async with aiohttp.ClientSession() as session:
            client = DreamcatcherClient(session)
            await client.async_login("user@example.com", "secret", installation_id)
            panels = await client.async_list_devices()
            connection = await client.async_connect(panels[0])
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        *,
        root: str = DREAMCATCHER_ROOT,
        app_version: str = APP_VERSION,
        verify_ssl: bool = False,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ) -> None:
        """Initialize the client.

        Args:
            session: aiohttp client session (caller manages lifecycle).
            root: Service discovery host.
            app_version: App version reported at login.
            verify_ssl: Verify TLS certificates (the vendor's are self-signed).
            request_timeout: Seconds a panel has to answer a command.
        """
        self._session = session
        self._root = root
        self._app_version = app_version
        self._verify_ssl = verify_ssl
        self._request_timeout = request_timeout

        self._auth: Session | None = None

    # ── Public properties ────────────────────────────────────────────

    @property
    def is_authenticated(self) -> bool:
        """Return True once a login has succeeded."""
        return self._auth is not None

    @property
    def auth(self) -> Session | None:
        """The session produced by the last successful login."""
        return self._auth

    # ── HTTP helpers ─────────────────────────────────────────────────

    async def _get(
        self, url: str, *, headers: dict[str, str] | None = None
    ) -> dict[str, Any]:
        """GET a vendor endpoint and return its JSON body."""
        request_headers = {
            "Accept": "application/json",
            "User-Agent": USER_AGENT,
            **(headers or {}),
        }
        try:
            async with self._session.get(
                url, headers=request_headers, ssl=self._verify_ssl
            ) as resp:
                resp.raise_for_status()
                # The vendor does not always label JSON as such
                body = await resp.json(content_type=None)
        except aiohttp.ClientError as err:
            raise DreamcatcherConnectionError(f"Connection error: GET {url}: {err}") from err
        except ValueError as err:
            raise DreamcatcherApiError(f"Invalid JSON from {url}: {err}") from err

        if not isinstance(body, dict):
            raise DreamcatcherApiError(f"Unexpected response from {url}", body=body)
        return body

    def _require_auth(self) -> Session:
        if self._auth is None:
            raise DreamcatcherAuthError("Not logged in. Call async_login() first.")
        return self._auth

    # ── Authentication ───────────────────────────────────────────────

    async def async_login(
        self, username: str, password: str, installation_id: str
    ) -> Session:
        """Authenticate and resolve the user's service hosts.

        Args:
            username: Account e-mail.
            password: Account password.
            installation_id: Stable UUID identifying this installation.

        Returns:
            The new Session.

        Raises:
            DreamcatcherAuthError: If discovery, login or user info fails.
                The raw response body is available as ``body``.
            DreamcatcherConnectionError: If unable to reach the cloud.
        """
        app_id = f"{installation_id}-{APP_SUFFIX}"

        discovery = await self._get(
            f"https://{self._root}/uib/GET/userReg/{API_PREFIX}/android/"
            f"{app_id}/127.0.0.1/{_now_ms()}"
        )
        uib = discovery.get("uibReturn")
        if not isinstance(uib, dict) or not _is_ok(uib.get("Return status")):
            raise DreamcatcherAuthError(
                f"Service discovery failed: {discovery}", body=discovery
            )
        routing = Routing.from_api(uib)
        base_url = f"https://{routing.uac_ip}"
        _LOGGER.debug("Discovered user access host %s", routing.uac_ip)

        login = await self._get(
            f"{base_url}/uac/SET/userLogin/{API_PREFIX}/{username}//"
            f"{self._app_version}/{app_id}/{routing.token}/{_now_ms()}/dc/en/h4_plus",
            headers={"dcsn": quote(password, safe="-_.!~*'()")},
        )
        if not _is_ok(login.get("status")):
            raise DreamcatcherAuthError(f"Login failed: {login}", body=login)

        user_info = await self._get(
            f"{base_url}/uac/GET/getUserInfo/{API_PREFIX}/{username}//"
            f"{routing.token}/{_now_ms()}"
        )
        if not _is_ok(user_info.get("status")):
            raise DreamcatcherAuthError(
                f"Fetching user info failed: {user_info}", body=user_info
            )

        user = user_info.get("user")
        if not isinstance(user, dict):
            raise DreamcatcherAuthError(
                f"Unexpected user info: {user_info}", body=user_info
            )

        self._auth = Session(
            username=username,
            alias=user.get("userAlias", ""),
            installation_id=installation_id,
            token=login.get("token", ""),
            routing=routing,
        )
        _LOGGER.debug("Logged in as %s", self._auth.alias)
        return self._auth

    # ── Devices ──────────────────────────────────────────────────────

    async def async_list_devices(self) -> list[DeviceInfo]:
        """Get the panels registered to the account.

        Raises:
            DreamcatcherAuthError: If not logged in.
            DreamcatcherApiError: If the directory answers with a failure status.
        """
        auth = self._require_auth()
        body = await self._get(
            f"https://{auth.routing.uac_ip}/uac/GET/listDevice/{API_PREFIX}/"
            f"{auth.username}/{auth.token}/{_now_ms()}"
        )
        if not _is_ok(body.get("status")):
            raise DreamcatcherApiError(
                f"Listing devices failed: {body}",
                status_code=body.get("status"),
                body=body,
            )
        entries = (body.get("list") or {}).get("list") or []
        return [DeviceInfo.from_api(d) for d in entries]

    # ── Command channel ──────────────────────────────────────────────

    async def async_connect(self, device: DeviceInfo) -> DeviceConnection:
        """Open the MQTT command channel of a panel.

        Raises:
            DreamcatcherAuthError: If not logged in.
            DreamcatcherConnectionError: If the command host cannot be reached.
        """
        auth = self._require_auth()
        mqtt = aiomqtt.Client(
            hostname=device.cmd_ip,
            port=MQTT_PORT,
            identifier=str(_now_ms()),
            username=f"{MQTT_USERNAME_PREFIX}{device.device_id}",
            password=auth.token,
            tls_context=self._make_tls_context(),
        )
        connection = DeviceConnection(
            mqtt, device, auth, request_timeout=self._request_timeout
        )
        await connection.async_start()
        return connection

    def _make_tls_context(self) -> ssl.SSLContext:
        ctx = ssl.create_default_context()
        if not self._verify_ssl:
            ctx.check_hostname = False
            ctx.verify_mode = ssl.CERT_NONE
        return ctx

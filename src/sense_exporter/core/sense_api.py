# src/sense_exporter/core/sense_api.py
"""Sense REST and realtime websocket client built on aiohttp."""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple

import aiohttp

from .client import MessageCallback
from .config import AccountConfig
from .errors import AuthenticationError, SenseAPIError, StreamError
from .models import (
    Device,
    DevicePower,
    DeviceState,
    DeviceStates,
    Monitor,
    RealtimeUpdate,
    StreamControl,
    StreamMessage,
    StreamOutcome,
)

logger = logging.getLogger(__name__)

API_URL = "https://api.sense.com/apiservice/api/v1/"
REALTIME_URL = "wss://clientrt.sense.com/monitors/{monitor_id}/realtimefeed"

MfaProvider = Callable[[], Awaitable[str]]


def parse_device(data: Dict[str, Any]) -> Device:
    """Build a Device from a catalog entry."""
    return Device(
        id=str(data.get("id", "")),
        name=data.get("name") or "",
        type=data.get("type") or "",
        make=data.get("make") or "",
        model=data.get("model") or "",
    )


def parse_message(frame: Dict[str, Any]) -> Optional[StreamMessage]:
    """
    Decode one realtime feed frame.

    Returns None for frame types the exporter does not consume
    (hello, monitor_info, data_change, ...).
    """
    frame_type = frame.get("type")
    payload = frame.get("payload") or {}

    if frame_type == "realtime_update":
        return RealtimeUpdate(
            watts=float(payload.get("w", 0.0)),
            hz=float(payload.get("hz", 0.0)),
            voltage=tuple(float(v) for v in payload.get("voltage") or ()),
            devices=tuple(
                DevicePower(device_id=str(d.get("id", "")), watts=float(d.get("w", 0.0)))
                for d in payload.get("devices") or ()
            ),
        )

    if frame_type == "device_states":
        return DeviceStates(
            states=tuple(
                DeviceState(
                    device_id=str(s.get("device_id", "")),
                    mode=s.get("mode") or "",
                    state=s.get("state") or "",
                )
                for s in payload.get("states") or ()
            ),
        )

    return None


class SenseAPIClient:
    """One authenticated Sense account."""

    def __init__(self,
                 request_timeout: float = 30.0,
                 session: Optional[aiohttp.ClientSession] = None,
                 api_url: str = API_URL,
                 realtime_url: str = REALTIME_URL):
        """
        Initialize client.

        Args:
            request_timeout: Total timeout for REST calls and the websocket handshake
            session: Optional shared session (not closed by this client)
            api_url: Base URL of the REST API
            realtime_url: Realtime feed URL template with a {monitor_id} field
        """
        self.request_timeout = request_timeout
        self.api_url = api_url
        self.realtime_url = realtime_url

        self._session = session
        self._owns_session = session is None
        self._access_token: Optional[str] = None
        self._user_id = 0
        self._account_id = 0
        self._monitors: Tuple[Monitor, ...] = ()

    def get_user_id(self) -> int:
        return self._user_id

    def get_account_id(self) -> int:
        return self._account_id

    def get_monitors(self) -> Sequence[Monitor]:
        return self._monitors

    @property
    def authenticated(self) -> bool:
        return self._access_token is not None

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.request_timeout)
            )
            self._owns_session = True
        return self._session

    def _token(self) -> str:
        if self._access_token is None:
            raise AuthenticationError("Client is not authenticated")
        return self._access_token

    def _auth_headers(self) -> Dict[str, str]:
        return {"Authorization": f"bearer {self._token()}"}

    async def authenticate(self,
                           email: str,
                           password: str,
                           mfa_provider: Optional[MfaProvider] = None) -> None:
        """Log in and load the account's user id, account id and monitors."""
        session = self._get_session()

        async with session.post(self.api_url + "authenticate",
                                data={"email": email, "password": password}) as response:
            data = await response.json(content_type=None) or {}
            status = response.status

        if status == 401 and data.get("status") == "mfa_required":
            if mfa_provider is None:
                raise AuthenticationError(f"Account {email} requires MFA but no MFA source is configured")
            code = await mfa_provider()
            logger.debug(f"Submitting MFA code for {email}")
            async with session.post(self.api_url + "authenticate/mfa",
                                    data={
                                        "totp": code,
                                        "mfa_token": data.get("mfa_token", ""),
                                        "client_time": datetime.now(timezone.utc).isoformat(),
                                    }) as response:
                data = await response.json(content_type=None) or {}
                status = response.status

        if status != 200:
            reason = data.get("error_reason") or data.get("message") or f"HTTP {status}"
            raise AuthenticationError(f"Authentication failed for {email}: {reason}")

        self._apply_auth(data)

    def _apply_auth(self, data: Dict[str, Any]) -> None:
        try:
            self._access_token = data["access_token"]
            self._user_id = int(data["user_id"])
            self._account_id = int(data["account_id"])
        except (KeyError, TypeError, ValueError) as e:
            raise AuthenticationError(f"Unexpected authentication response: {e}") from e

        self._monitors = tuple(
            Monitor(
                id=int(m["id"]),
                serial_number=m.get("serial_number") or "",
                time_zone=m.get("time_zone") or "",
            )
            for m in data.get("monitors") or ()
        )

    async def get_devices(self, monitor_id: int, include_merged: bool = False) -> List[Device]:
        """Fetch the device catalog for a monitor."""
        session = self._get_session()
        url = f"{self.api_url}app/monitors/{monitor_id}/devices"
        params = {"include_merged": "true" if include_merged else "false"}

        async with session.get(url, params=params, headers=self._auth_headers()) as response:
            if response.status == 401:
                raise AuthenticationError(f"Token rejected fetching devices for monitor {monitor_id}")
            if response.status != 200:
                raise SenseAPIError(response.status, (await response.text())[:200])
            data = await response.json(content_type=None)

        if isinstance(data, dict):
            data = data.get("devices") or []
        return [parse_device(d) for d in data]

    async def stream(self, monitor_id: int, on_message: MessageCallback) -> StreamOutcome:
        """Read the realtime feed for a monitor until the callback stops it."""
        session = self._get_session()
        url = self.realtime_url.format(monitor_id=monitor_id)
        params = {"access_token": self._token()}

        async with session.ws_connect(url, params=params, heartbeat=30.0) as ws:
            logger.debug(f"Realtime feed opened for monitor {monitor_id}")
            async for msg in ws:
                if msg.type == aiohttp.WSMsgType.TEXT:
                    frame = json.loads(msg.data)
                    if frame.get("type") == "error":
                        payload = frame.get("payload") or {}
                        raise StreamError(f"Realtime feed error for monitor {monitor_id}: "
                                          f"{payload.get('error_reason') or payload}")
                    message = parse_message(frame)
                    if message is None:
                        continue
                    if on_message(message) is StreamControl.STOP:
                        return StreamOutcome.STOPPED
                elif msg.type == aiohttp.WSMsgType.ERROR:
                    raise StreamError(f"Realtime feed failed for monitor {monitor_id}: {ws.exception()}")

            if ws.close_code not in (None, aiohttp.WSCloseCode.OK):
                raise StreamError(f"Realtime feed for monitor {monitor_id} closed with code {ws.close_code}")

        return StreamOutcome.CLOSED

    async def close(self) -> None:
        """Close the HTTP session if this client created it."""
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


def fixed_mfa(code: str) -> MfaProvider:
    async def provider() -> str:
        return code
    return provider


def file_mfa(path: Path) -> MfaProvider:
    async def provider() -> str:
        return Path(path).read_text().strip()
    return provider


def command_mfa(command: str) -> MfaProvider:
    """Run a shell command and use its stdout as the MFA code."""
    async def provider() -> str:
        proc = await asyncio.create_subprocess_shell(
            command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        stdout, stderr = await proc.communicate()
        if proc.returncode != 0:
            raise AuthenticationError(
                f"MFA command exited with {proc.returncode}: {stderr.decode(errors='replace').strip()}"
            )
        return stdout.decode().strip()
    return provider


def mfa_provider_for(account: AccountConfig) -> Optional[MfaProvider]:
    if account.mfa_code:
        return fixed_mfa(account.mfa_code)
    if account.mfa_file:
        return file_mfa(account.mfa_file)
    if account.mfa_command:
        return command_mfa(account.mfa_command)
    return None


async def create_clients(accounts: Sequence[AccountConfig],
                         request_timeout: float = 30.0) -> List[SenseAPIClient]:
    """Authenticate every configured account."""
    clients: List[SenseAPIClient] = []
    try:
        for account in accounts:
            client = SenseAPIClient(request_timeout=request_timeout)
            clients.append(client)
            await client.authenticate(
                account.email,
                account.resolve_password(),
                mfa_provider=mfa_provider_for(account),
            )
            logger.info(f"Successfully authenticated account {client.get_account_id()} "
                        f"(monitors {[m.id for m in client.get_monitors()]})")
    except Exception:
        await asyncio.gather(*(c.close() for c in clients), return_exceptions=True)
        raise
    return clients

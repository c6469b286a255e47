# KuliahBot - Course Schedule Assistant for Discord
# Copyright (c) 2025-2026 Slash Daemon slashdaemon@protonmail.com
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published by
# the Free Software Foundation, version 3 of the License.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program. If not, see <https://www.gnu.org/licenses/>.
#
# Commercial licensing: [slashdaemon@protonmail.com]

"""
Connection Supervisor

Explicit state machine around the Discord gateway session:

    DISCONNECTED -> CONNECTING -> OPEN -> CLOSING
                         ^          |
                         +----------+  (transport failure, with backoff)

LOGGED_OUT is terminal: the token was rejected, so reconnecting cannot help.

Each connection epoch logs in, connects with the client's own reconnect
disabled, and on any transport failure falls back to DISCONNECTED and waits
a capped exponential backoff before trying again.
"""

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, Optional

import aiohttp
import discord

from analytics import track

logger = logging.getLogger("kuliahbot.delivery.connection")

# Gateway close code for an invalid token
AUTH_FAILED_CLOSE_CODE = 4004

StateListener = Callable[["ConnectionState", "ConnectionState"], None]


class ConnectionState(Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSING = "closing"
    LOGGED_OUT = "logged_out"


class ConnectionLost(Exception):
    """Raised when the gateway connection ends without being asked to."""

    pass


class ConnectionSupervisor:
    """Drives a discord.py client through connect/reconnect/shutdown."""

    def __init__(
        self,
        client: discord.Client,
        token: str,
        base_delay: float = 2.0,
        max_delay: float = 300.0,
        on_close: Optional[Callable[[], Awaitable[None]]] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        Initialize the supervisor.

        Args:
            client: discord.py client to drive
            token: Bot token
            base_delay: First reconnect delay in seconds
            max_delay: Upper bound for the reconnect delay
            on_close: Awaited during shutdown before the client closes
                (e.g. draining store writes)
            sleep: Sleep function (tests pass a fake)
        """
        self.client = client
        self.token = token
        self.base_delay = base_delay
        self.max_delay = max_delay
        self._on_close = on_close
        self._sleep = sleep
        self._state = ConnectionState.DISCONNECTED
        self._listeners: list[StateListener] = []
        self._attempt = 0
        self._stopping = False

    @property
    def state(self) -> ConnectionState:
        return self._state

    def add_listener(self, listener: StateListener) -> None:
        """Register a callback(old_state, new_state) for every transition."""
        self._listeners.append(listener)

    def _set_state(self, new_state: ConnectionState) -> None:
        old_state = self._state
        if old_state == new_state:
            return
        self._state = new_state
        logger.info(f"Connection state: {old_state.value} -> {new_state.value}")
        track("connection_state", "system", properties={"state": new_state.value})
        for listener in self._listeners:
            try:
                listener(old_state, new_state)
            except Exception as e:
                logger.error(f"Connection state listener failed: {e}", exc_info=True)

    def backoff_delay(self, attempt: int) -> float:
        """Reconnect delay for the given zero-based attempt number."""
        return min(self.max_delay, self.base_delay * (2 ** attempt))

    def mark_open(self) -> None:
        """Called from the client's on_ready/on_resumed events."""
        if self._state == ConnectionState.CONNECTING:
            self._attempt = 0
            self._set_state(ConnectionState.OPEN)

    async def run(self) -> None:
        """Connect and keep reconnecting until stopped or logged out."""
        while not self._stopping:
            self._set_state(ConnectionState.CONNECTING)
            try:
                if self.client.is_closed():
                    # A previous epoch closed the client; reset it for reuse
                    self.client.clear()
                await self.client.login(self.token)
                await self.client.connect(reconnect=False)
                if self._stopping:
                    break
                raise ConnectionLost("gateway connection ended")
            except discord.LoginFailure as e:
                logger.error(f"Login rejected, not reconnecting: {e}")
                self._set_state(ConnectionState.LOGGED_OUT)
                return
            except discord.ConnectionClosed as e:
                if e.code == AUTH_FAILED_CLOSE_CODE:
                    logger.error("Gateway rejected authentication, not reconnecting")
                    self._set_state(ConnectionState.LOGGED_OUT)
                    return
                error: Exception = e
            except (
                ConnectionLost,
                discord.GatewayNotFound,
                discord.HTTPException,
                aiohttp.ClientError,
                asyncio.TimeoutError,
                OSError,
            ) as e:
                error = e

            if self._stopping:
                break

            self._set_state(ConnectionState.DISCONNECTED)
            delay = self.backoff_delay(self._attempt)
            self._attempt += 1
            logger.warning(f"Connection lost ({error}); reconnecting in {delay:.0f}s")
            await self._sleep(delay)

        if self._state != ConnectionState.LOGGED_OUT:
            self._set_state(ConnectionState.DISCONNECTED)

    async def stop(self) -> None:
        """Graceful shutdown: drain pending work, then close the client."""
        if self._stopping:
            return
        self._stopping = True
        if self._state != ConnectionState.LOGGED_OUT:
            self._set_state(ConnectionState.CLOSING)
        if self._on_close is not None:
            try:
                await self._on_close()
            except Exception as e:
                logger.error(f"Error while draining before shutdown: {e}", exc_info=True)
        await self.client.close()

"""
WebSocket Data Reader

Ingestion servisinin Socket.IO `record` event'lerini dinler ve kayıtları
store'a ekler. Bağlantı koparsa açık bir durum makinesi ile yeniden bağlanır:

    DISCONNECTED -> CONNECTING -> CONNECTED -> RETRY_WAIT -> CONNECTING ...
"""
import asyncio
import logging
from enum import Enum
from typing import Optional, Tuple

import socketio

from shared import config
from shared.errors import InvalidInput
from shared.record_store import DataStorage

logger = logging.getLogger(__name__)

RECORD_EVENT = "record"


class ConnectionState(str, Enum):
    DISCONNECTED = "DISCONNECTED"
    CONNECTING = "CONNECTING"
    CONNECTED = "CONNECTED"
    RETRY_WAIT = "RETRY_WAIT"


def parse_message(message: str) -> Tuple[int, float, str, int]:
    """
    Parses "patient_id,value,record_type,timestamp".

    Raises:
        ValueError: wrong field count or non-numeric fields.
    """
    parts = [p.strip() for p in str(message).split(",")]
    if len(parts) != 4:
        raise ValueError("Message format is invalid")
    patient_id, value, record_type, timestamp = parts
    return int(patient_id), float(value), record_type, int(timestamp)


class WebSocketDataReader:
    def __init__(
        self,
        url: str,
        storage: DataStorage,
        reconnect_delay: float = config.RECONNECT_DELAY_SECONDS,
        max_attempts: int = config.MAX_RECONNECT_ATTEMPTS,
        client: Optional[socketio.AsyncClient] = None,
    ):
        self.url = url
        self.storage = storage
        self.reconnect_delay = reconnect_delay
        self.max_attempts = max_attempts  # 0 = retry forever
        # reconnection is handled here, not by the socketio client
        self.client = client or socketio.AsyncClient(reconnection=False)
        self.state = ConnectionState.DISCONNECTED
        self.received = 0
        self.skipped = 0
        self.failed_attempts = 0
        self._disconnected: Optional[asyncio.Event] = None
        self._stop: Optional[asyncio.Event] = None

        self.client.on("disconnect", self._on_disconnect)
        self.client.on(RECORD_EVENT, self.handle_message)

    def handle_message(self, message) -> None:
        try:
            self.storage.add_patient_data(*parse_message(message))
            self.received += 1
        except InvalidInput as e:
            self.skipped += 1
            logger.warning("Record rejected by store: %s (%r)", e, message)
        except ValueError as e:
            self.skipped += 1
            logger.warning("Invalid message received: %s (%r)", e, message)

    async def read_data(self) -> None:
        """Connects and keeps the connection alive until stop() or the attempt limit."""
        self._disconnected = asyncio.Event()
        self._stop = asyncio.Event()

        while not self._stop.is_set():
            self._set_state(ConnectionState.CONNECTING)
            self._disconnected.clear()
            try:
                await self.client.connect(self.url)
            except (socketio.exceptions.ConnectionError, OSError) as e:
                self.failed_attempts += 1
                logger.warning("Connection attempt %d to %s failed: %s", self.failed_attempts, self.url, e)
                if self.max_attempts and self.failed_attempts >= self.max_attempts:
                    logger.error("Giving up on %s after %d attempts", self.url, self.failed_attempts)
                    break
            else:
                self.failed_attempts = 0
                self._set_state(ConnectionState.CONNECTED)
                await self._wait_first(self._disconnected, self._stop)
                if self._stop.is_set():
                    break
                logger.warning("Connection to %s lost", self.url)

            self._set_state(ConnectionState.RETRY_WAIT)
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=self.reconnect_delay)
            except asyncio.TimeoutError:
                pass

        if self.state == ConnectionState.CONNECTED:
            await self.client.disconnect()
        self._set_state(ConnectionState.DISCONNECTED)

    async def stop(self) -> None:
        if self._stop is not None:
            self._stop.set()

    async def _on_disconnect(self, *args) -> None:
        if self._disconnected is not None:
            self._disconnected.set()

    @staticmethod
    async def _wait_first(*events: asyncio.Event) -> None:
        tasks = [asyncio.ensure_future(e.wait()) for e in events]
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in pending:
            task.cancel()

    def _set_state(self, state: ConnectionState) -> None:
        if state != self.state:
            logger.info("Socket reader %s -> %s", self.state.value, state.value)
        self.state = state

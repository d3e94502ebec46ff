import asyncio
import logging
from typing import Callable, List, Optional

from bleak import BleakClient
from bleak.exc import BleakError

from .config import (
    BridgeConfig,
    POLL_COMMAND,
    REQUEST_UUID,
    RESPONSE_UUID,
)
from .errors import (
    CharacteristicNotFound,
    CommandWriteError,
    DiscoveryError,
    SubscriptionError,
    TrackerConnectionError,
)
from .polling import Poller

_STREAM_END = None


class TrackerSession:
    """Connection to a single tracker, from connect to disconnect"""

    def __init__(self, device, config: Optional[BridgeConfig] = None,
                 on_connect: Optional[Callable[[str], None]] = None,
                 on_disconnect: Optional[Callable[[str], None]] = None,
                 client_factory=BleakClient):
        self.device = device
        self.address = getattr(device, "address", str(device))
        self.config = config or BridgeConfig()
        self.on_connect = on_connect
        self.on_disconnect = on_disconnect
        self.client_factory = client_factory
        self.client = None
        self.request_char = None
        self.response_char = None
        self.subscribed: List[str] = []
        self.poller: Optional[Poller] = None
        self.closed = False
        self._queue: asyncio.Queue = asyncio.Queue()
        self.log = logging.getLogger(f"Dev-{self.address[-5:]}")

    def _make_client(self):
        kwargs = {
            "disconnected_callback": self._handle_disconnect,
            "timeout": self.config.connect_timeout,
        }
        if self.config.adapter:
            kwargs["adapter"] = self.config.adapter
        return self.client_factory(self.device, **kwargs)

    async def negotiate(self):
        """
        Connect and bring the tracker into streaming state.
        Raises a SetupError subclass on any failure, the session is then unusable.
        """
        self.client = self._make_client()

        self.log.info(f"Connecting to {self.address}...")
        try:
            await self.client.connect()
        except (BleakError, OSError, asyncio.TimeoutError) as e:
            raise TrackerConnectionError(f"Connecting to {self.address} failed: {e}") from e
        self.log.info("✓ Connected to tracker")
        if self.on_connect:
            self.on_connect(self.address)

        try:
            services = self.client.services
        except BleakError as e:
            raise DiscoveryError(f"Service discovery failed: {e}") from e
        if services is None or not list(services):
            raise DiscoveryError("No services discovered")

        characteristics = [c for s in services for c in s.characteristics]
        self.log.info(f"Found {len(characteristics)} characteristics")

        # Any subscription failure is fatal, it could be the response channel
        for char in characteristics:
            if "notify" not in char.properties:
                continue
            self.log.info(f"Subscribing to characteristic {char.uuid}")
            try:
                await self.client.start_notify(char, self._handle_notification)
            except (BleakError, OSError) as e:
                raise SubscriptionError(f"Subscribing to {char.uuid} failed: {e}") from e
            self.subscribed.append(char.uuid)

        self.request_char = self._find_characteristic(characteristics, REQUEST_UUID)
        self.log.info(f"Found request characteristic: {self.request_char.uuid}")
        self.response_char = self._find_characteristic(characteristics, RESPONSE_UUID)
        self.log.info(f"Found response characteristic: {self.response_char.uuid}")

        try:
            await self.write_poll_command()
        except (BleakError, OSError) as e:
            raise CommandWriteError(f"Initial poll command failed: {e}") from e

        self.poller = Poller(self.write_poll_command, self.config.poll_delay, self.log)
        self.poller.start()
        self.log.info("Waiting for notifications")

    @staticmethod
    def _find_characteristic(characteristics, uuid: str):
        for char in characteristics:
            if char.uuid.lower() == uuid.lower():
                return char
        raise CharacteristicNotFound(uuid)

    async def write_poll_command(self):
        await self.client.write_gatt_char(self.request_char, POLL_COMMAND, response=True)

    def _handle_notification(self, sender, data: bytearray):
        if self.closed:
            return
        source = getattr(sender, "uuid", str(sender))
        self._queue.put_nowait((source, bytes(data)))

    def _handle_disconnect(self, client):
        self.log.info("Disconnected")
        if self.on_disconnect:
            self.on_disconnect(self.address)

    async def notifications(self):
        """Incoming notifications in arrival order, until the session closes."""
        while True:
            item = await self._queue.get()
            if item is _STREAM_END:
                return
            yield item

    async def close(self):
        if self.closed:
            return
        self.closed = True

        if self.poller:
            await self.poller.stop()
        self._queue.put_nowait(_STREAM_END)

        if self.client and self.client.is_connected:
            try:
                await self.client.disconnect()
            except BleakError as e:
                self.log.error(f"Disconnect failed: {e}")

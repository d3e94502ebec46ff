import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from bleak import BleakScanner

from .config import BridgeConfig, DisconnectPolicy, RESPONSE_UUID
from .errors import SetupError
from .matcher import advertised_name, is_tracker
from .protocol import ButtonPress, HeartRate, decode_notification
from .session import TrackerSession

logger = logging.getLogger("Bridge")


@dataclass(frozen=True)
class DeviceDiscovered:
    device: Any
    advertisement: Any = None


@dataclass(frozen=True)
class DeviceConnected:
    address: str


@dataclass(frozen=True)
class DeviceDisconnected:
    address: str


_STOP = object()


class BridgeManager:
    """Scans for the tracker and routes its messages"""

    def __init__(self, config: Optional[BridgeConfig] = None, keyboard=None,
                 scanner_factory=BleakScanner, session_factory=TrackerSession):
        self.config = config or BridgeConfig()
        self.keyboard = keyboard
        self.scanner_factory = scanner_factory
        self.session_factory = session_factory
        self.sessions: Dict[str, TrackerSession] = {}
        self.stream_tasks: Dict[str, asyncio.Task] = {}
        self.events: asyncio.Queue = asyncio.Queue()

    def _on_detection(self, device, advertisement_data):
        self.events.put_nowait(DeviceDiscovered(device, advertisement_data))

    def _on_connected(self, address):
        self.events.put_nowait(DeviceConnected(address))

    def _on_disconnected(self, address):
        self.events.put_nowait(DeviceDisconnected(address))

    def _make_scanner(self):
        kwargs = {"detection_callback": self._on_detection}
        if self.config.adapter:
            kwargs["adapter"] = self.config.adapter
        return self.scanner_factory(**kwargs)

    async def run(self):
        """
        Consume scanner and connection events until stopped.
        SetupError from a session negotiation propagates to the caller.
        """
        logger.info("========================================")
        logger.info("   ID107 Bridge Started")
        logger.info("========================================")

        if self.keyboard is None:
            from .keyboard import KeyboardInput
            self.keyboard = KeyboardInput(self.config.key)

        scanner = self._make_scanner()
        logger.info("Scanning for devices")
        await scanner.start()

        try:
            while True:
                event = await self.events.get()
                if event is _STOP:
                    break
                if not await self.handle_event(event):
                    break
        finally:
            await scanner.stop()
            for address in list(self.sessions):
                await self._close_session(address)
            logger.info("Bridge stopped")

    def stop(self):
        self.events.put_nowait(_STOP)

    async def handle_event(self, event) -> bool:
        """Handle one platform event, returns False once the bridge should stop."""
        if isinstance(event, DeviceDiscovered):
            await self._handle_discovered(event)
        elif isinstance(event, DeviceConnected):
            logger.info(f"Connected to device {event.address}")
        elif isinstance(event, DeviceDisconnected):
            return await self._handle_disconnected(event)
        return True

    async def _handle_discovered(self, event: DeviceDiscovered):
        address = event.device.address

        # Skip if already connected
        if address in self.sessions:
            return
        if not is_tracker(event.device, event.advertisement, self.config.target_name):
            return
        if self.config.single_device and self.sessions:
            logger.debug(f"Ignoring second tracker {address}, a session is active")
            return

        logger.info(f"Found device: {advertised_name(event.device, event.advertisement)} ({address})")

        session = self.session_factory(
            event.device,
            self.config,
            on_connect=self._on_connected,
            on_disconnect=self._on_disconnected,
        )
        self.sessions[address] = session
        try:
            await session.negotiate()
        except SetupError:
            del self.sessions[address]
            await session.close()
            raise

        self.stream_tasks[address] = asyncio.create_task(self._stream(session))

    async def _handle_disconnected(self, event: DeviceDisconnected) -> bool:
        if event.address not in self.sessions:
            return True

        logger.info(f"Disconnected from {event.address}")
        await self._close_session(event.address)

        if self.config.disconnect_policy is DisconnectPolicy.EXIT:
            return False
        logger.info("Scanning for devices")
        return True

    async def _close_session(self, address):
        session = self.sessions.pop(address)
        await session.close()

        task = self.stream_tasks.pop(address, None)
        if task is not None:
            # The closed notification stream ends the task
            await task

    async def _stream(self, session: TrackerSession):
        async for source, data in session.notifications():
            self.dispatch(session, decode_notification(source, data, RESPONSE_UUID))

    def dispatch(self, session: TrackerSession, event):
        if isinstance(event, HeartRate):
            session.log.debug(f"Heart rate: {event.bpm}")
            session.poller.kick()
        elif isinstance(event, ButtonPress):
            session.log.info("Button pressed")
            try:
                self.keyboard.tap()
            except Exception as e:
                session.log.error(f"Key tap failed: {e}")
        else:
            session.log.warning(str(event))

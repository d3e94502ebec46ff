"""Stand-ins for the bleak scanner/client and the keyboard"""

import asyncio
from types import SimpleNamespace

from bleak.exc import BleakError
from bleak.uuids import normalize_uuid_16

from id107_bridge.config import REQUEST_UUID, RESPONSE_UUID


class FakeCharacteristic:
    def __init__(self, uuid, properties):
        self.uuid = uuid
        self.properties = properties

    def __repr__(self):
        return f"FakeCharacteristic({self.uuid})"


class FakeService:
    def __init__(self, characteristics):
        self.characteristics = characteristics


def tracker_services():
    battery = FakeCharacteristic(normalize_uuid_16(0x2A19), ["read", "notify"])
    request = FakeCharacteristic(REQUEST_UUID, ["write"])
    response = FakeCharacteristic(RESPONSE_UUID, ["notify"])
    return [FakeService([battery]), FakeService([request, response])]


def make_device(address="C8:0F:10:AA:BB:CC", name="ID107Plus HR"):
    return SimpleNamespace(address=address, name=name)


def make_advertisement(local_name):
    return SimpleNamespace(local_name=local_name)


class FakeClient:
    """Records every call made by a TrackerSession"""

    def __init__(self, device, disconnected_callback=None, services=None,
                 fail_connect=False, fail_subscribe=None, fail_write_after=None, **kwargs):
        self.device = device
        self.disconnected_callback = disconnected_callback
        self.kwargs = kwargs
        self._services = tracker_services() if services is None else services
        self.fail_connect = fail_connect
        self.fail_subscribe = fail_subscribe
        self.fail_write_after = fail_write_after
        self.is_connected = False
        self.callbacks = {}
        self.writes = []

    async def connect(self):
        if self.fail_connect:
            raise BleakError("Device not found")
        self.is_connected = True

    @property
    def services(self):
        if not self.is_connected:
            raise BleakError("Service Discovery has not been performed yet")
        return self._services

    async def start_notify(self, char, callback):
        if char.uuid == self.fail_subscribe:
            raise BleakError("Could not start notify")
        self.callbacks[char.uuid] = (char, callback)

    async def write_gatt_char(self, char, data, response=False):
        if self.fail_write_after is not None and len(self.writes) >= self.fail_write_after:
            raise BleakError("Write failed")
        self.writes.append((char.uuid, bytes(data), response, asyncio.get_running_loop().time()))

    async def disconnect(self):
        self.drop()

    def notify(self, uuid, data):
        char, callback = self.callbacks[uuid]
        callback(char, bytearray(data))

    def drop(self):
        """Simulate the tracker going away"""
        if not self.is_connected:
            return
        self.is_connected = False
        if self.disconnected_callback:
            self.disconnected_callback(self)


def client_factory(**options):
    """Returns a factory that keeps the last created client around"""
    def factory(device, **kwargs):
        client = FakeClient(device, **kwargs, **options)
        factory.clients.append(client)
        return client

    factory.clients = []
    return factory


class FakeScanner:
    instances = []

    def __init__(self, detection_callback=None, **kwargs):
        self.detection_callback = detection_callback
        self.kwargs = kwargs
        self.running = False
        FakeScanner.instances.append(self)

    async def start(self):
        self.running = True

    async def stop(self):
        self.running = False

    def advertise(self, device, local_name=None):
        self.detection_callback(device, make_advertisement(local_name or device.name))


class FakeKeyboard:
    def __init__(self, fail=False):
        self.taps = 0
        self.fail = fail

    def tap(self):
        if self.fail:
            raise RuntimeError("no display")
        self.taps += 1


class FakeController:
    def __init__(self):
        self.events = []

    def press(self, key):
        self.events.append(("press", key))

    def release(self, key):
        self.events.append(("release", key))

class BridgeError(Exception):
    """Base class for all bridge errors"""


class SetupError(BridgeError):
    """Session setup failed; the session is unusable"""


class TrackerConnectionError(SetupError):
    pass


class DiscoveryError(SetupError):
    pass


class SubscriptionError(SetupError):
    pass


class CharacteristicNotFound(SetupError):
    def __init__(self, uuid: str):
        super().__init__(f"Characteristic {uuid} not found")
        self.uuid = uuid


class CommandWriteError(SetupError):
    pass

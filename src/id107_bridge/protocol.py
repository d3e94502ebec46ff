"""
Decoder for notifications sent by the tracker on the response characteristic.

Frame layout:
    [0..1] = message type (uint16, little endian)
    [2..]  = type specific payload

Known types:
    0xa002 = heart rate sample, bpm is the last payload byte
    0x0107 = button pressed, payload ignored
"""

import struct
from dataclasses import dataclass
from typing import Union

from .config import RESPONSE_UUID

TYPE_HEART_RATE = 0xA002
TYPE_BUTTON = 0x0107

HEADER_SIZE = 2
MIN_FRAME_SIZE = 3


@dataclass(frozen=True)
class HeartRate:
    bpm: int


@dataclass(frozen=True)
class ButtonPress:
    pass


@dataclass(frozen=True)
class Unknown:
    type_code: int
    payload: bytes

    def __str__(self):
        return f"Unknown type {self.type_code:x} - Data: {self.payload.hex(' ')}"


@dataclass(frozen=True)
class InvalidPayload:
    source: str
    data: bytes

    def __str__(self):
        return f"Invalid data - [{self.source}] {self.data.hex(' ')}"


@dataclass(frozen=True)
class UnrecognizedSource:
    source: str
    data: bytes

    def __str__(self):
        return f"Unknown notification - [{self.source}] {self.data.hex(' ')}"


DecodedEvent = Union[HeartRate, ButtonPress, Unknown, InvalidPayload, UnrecognizedSource]


def decode_notification(source: str, payload, response_uuid: str = RESPONSE_UUID) -> DecodedEvent:
    data = bytes(payload)

    if str(source).lower() != response_uuid.lower():
        return UnrecognizedSource(str(source), data)

    if len(data) < MIN_FRAME_SIZE:
        return InvalidPayload(str(source), data)

    (type_code,) = struct.unpack("<H", data[:HEADER_SIZE])
    body = data[HEADER_SIZE:]

    if type_code == TYPE_HEART_RATE:
        return HeartRate(body[-1])
    if type_code == TYPE_BUTTON:
        return ButtonPress()
    return Unknown(type_code, body)

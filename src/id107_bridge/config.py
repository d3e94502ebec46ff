import argparse
import enum
import logging
from dataclasses import dataclass
from typing import Optional

from bleak.uuids import normalize_uuid_16

TARGET_NAME = "ID107Plus HR"  # Advertised local name substring

# Tracker characteristics
REQUEST_UUID = normalize_uuid_16(0x0AF6)  # WRITE
RESPONSE_UUID = normalize_uuid_16(0x0AF7)  # NOTIFY

# Starts / continues heart rate streaming
POLL_COMMAND = bytes([0x02, 0xA0])

# Seconds between a heart rate sample and the next poll
POLL_DELAY = 1.0

DEFAULT_KEY = "space"
CONNECT_TIMEOUT = 20.0

LOG_FORMAT = "%(asctime)s - %(levelname)s - [%(name)s] %(message)s"
LOG_DATEFMT = "%H:%M:%S"


class DisconnectPolicy(enum.Enum):
    EXIT = "exit"
    RESCAN = "rescan"


@dataclass
class BridgeConfig:
    target_name: str = TARGET_NAME
    poll_delay: float = POLL_DELAY
    key: str = DEFAULT_KEY
    disconnect_policy: DisconnectPolicy = DisconnectPolicy.EXIT
    single_device: bool = True
    adapter: Optional[str] = None
    connect_timeout: float = CONNECT_TIMEOUT
    log_level: str = "INFO"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="id107-bridge",
        description="Forward ID107Plus HR button presses to the keyboard",
    )
    parser.add_argument("--name", default=TARGET_NAME,
                        help="advertised name substring to connect to")
    parser.add_argument("--key", default=DEFAULT_KEY,
                        help="key to tap on a button press (default: space)")
    parser.add_argument("--poll-delay", type=float, default=POLL_DELAY,
                        help="seconds to wait before re-polling heart rate")
    parser.add_argument("--on-disconnect",
                        choices=[p.value for p in DisconnectPolicy],
                        default=DisconnectPolicy.EXIT.value,
                        help="exit the process or keep scanning after a disconnect")
    parser.add_argument("--multi", action="store_true",
                        help="accept more than one tracker at a time")
    parser.add_argument("--adapter", default=None,
                        help="bluetooth adapter, e.g. hci0 (BlueZ only)")
    parser.add_argument("--connect-timeout", type=float, default=CONNECT_TIMEOUT)
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser


def config_from_args(argv=None) -> BridgeConfig:
    args = build_parser().parse_args(argv)
    if args.poll_delay < 0:
        raise SystemExit("--poll-delay must not be negative")

    return BridgeConfig(
        target_name=args.name,
        poll_delay=args.poll_delay,
        key=args.key,
        disconnect_policy=DisconnectPolicy(args.on_disconnect),
        single_device=not args.multi,
        adapter=args.adapter,
        connect_timeout=args.connect_timeout,
        log_level=args.log_level,
    )


def setup_logging(level: str = "INFO"):
    logging.basicConfig(
        level=getattr(logging, level),
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
    )

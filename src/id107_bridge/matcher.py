from typing import Optional

from .config import TARGET_NAME


def advertised_name(device, advertisement=None) -> Optional[str]:
    """
    Best known name of a peripheral.
    The advertisement's local name wins, the cached device name is the fallback.
    """
    name = getattr(advertisement, "local_name", None) if advertisement else None
    if not name and device is not None:
        name = getattr(device, "name", None)
    return name or None


def is_tracker(device, advertisement=None, target_name: str = TARGET_NAME) -> bool:
    name = advertised_name(device, advertisement)
    return bool(name) and target_name in name

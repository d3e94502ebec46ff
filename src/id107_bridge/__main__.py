import asyncio
import logging
import sys

from .bridge import BridgeManager
from .config import config_from_args, setup_logging
from .errors import SetupError

logger = logging.getLogger("Bridge")


def main(argv=None) -> int:
    config = config_from_args(argv)
    setup_logging(config.log_level)

    if sys.platform == "win32":
        asyncio.set_event_loop_policy(
            asyncio.WindowsSelectorEventLoopPolicy())

    try:
        asyncio.run(BridgeManager(config).run())
    except KeyboardInterrupt:
        logger.info("Bridge stopped by user.")
    except SetupError as e:
        logger.error(f"Tracker setup failed: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

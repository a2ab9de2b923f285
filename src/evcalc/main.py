"""Application entry point."""

import asyncio
import logging
import signal
import sys

from evcalc.config import get_config
from evcalc.server import run_server


async def serve() -> None:
    """
    Boot sequence: load config → start HTTP server → wait for SIGTERM/SIGINT.

    Raises:
        SystemExit: On configuration or startup errors
    """
    logger = logging.getLogger(__name__)
    shutdown_event = asyncio.Event()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, shutdown_event.set)

    try:
        await run_server(shutdown_event=shutdown_event)
        logger.info("Application shutdown complete")
    except OSError as e:
        logger.error(f"Server startup failed: {e}")
        raise SystemExit(1) from e


def main() -> None:
    """Main entry point with logging configuration."""
    try:
        config = get_config()
    except Exception as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        sys.exit(1)

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logging.info(f"Configuration loaded: env={config.env}")

    try:
        asyncio.run(serve())
    except KeyboardInterrupt:
        logging.info("Interrupted by user")
        sys.exit(0)
    except SystemExit:
        raise
    except Exception as e:
        logging.error(f"Unexpected error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()

import argparse
import asyncio
import logging
import sys

from strangerlink.config import ConfigError, Settings
from strangerlink.server import run

logger = logging.getLogger("strangerlink")


def parse_args(argv=None, environ=None):
    try:
        defaults = Settings.from_env(environ)
    except ConfigError as e:
        raise SystemExit(f"Invalid configuration: {e}")

    parser = argparse.ArgumentParser(description="Stranger matchmaking and signal relay server")
    parser.add_argument("--host", default=defaults.host, help="Bind address (env HOST)")
    parser.add_argument("--port", type=int, default=defaults.port, help="Bind port (env PORT)")
    parser.add_argument(
        "--escalation-delay-ms",
        type=int,
        default=defaults.escalation_delay_ms,
        help="Delay before a voice pair is offered video (env ESCALATION_DELAY_MS)",
    )
    parser.add_argument(
        "--single-queue",
        action="store_true",
        default=not defaults.partition_by_mode,
        help="Match voice and video clients from one queue (env PARTITION_BY_MODE=false)",
    )
    parser.add_argument("--log-level", default=defaults.log_level, help="Logging level (env LOG_LEVEL)")
    args = parser.parse_args(argv)

    try:
        return Settings(
            host=args.host,
            port=args.port,
            escalation_delay_ms=args.escalation_delay_ms,
            partition_by_mode=not args.single_queue,
            log_level=args.log_level,
        )
    except ConfigError as e:
        parser.error(str(e))


def main(argv=None):
    settings = parse_args(argv)
    logging.basicConfig(level=settings.log_level, format="%(asctime)s - %(levelname)s - %(message)s")
    logger.debug("Loaded %r", settings)
    try:
        asyncio.run(run(settings))
    except KeyboardInterrupt:
        logger.info("Server stopped")
    return 0


if __name__ == "__main__":
    sys.exit(main())

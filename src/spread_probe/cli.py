import argparse
import asyncio
import signal
import sys
from typing import Optional

import yaml
from loguru import logger

from spread_probe.bot import ProbeBot
from spread_probe.config.settings import Config, ProbeSettings, get_config
from spread_probe.logging.setup import setup_logging
from spread_probe.utils.error_handler import ConfigError, FatalLoopError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="RWA DEX spread probe (simulation only, no trades are executed)"
    )
    parser.add_argument("--config", help="Path to a YAML configuration file.")
    parser.add_argument("--log-level", help="Console log level (DEBUG, INFO, ...).")
    runs = parser.add_mutually_exclusive_group()
    runs.add_argument("--once", action="store_true", help="Run a single check cycle and exit.")
    runs.add_argument("--cycles", type=int, help="Run this many check cycles and exit.")
    return parser


async def run_bot(settings: ProbeSettings, max_cycles: Optional[int] = None) -> int:
    """
    Creates the bot, wires the shutdown signals to its stop token and runs
    it. Returns the process exit code.
    """
    bot = await ProbeBot.create(settings)
    loop = asyncio.get_running_loop()

    def on_signal(sig: signal.Signals):
        logger.warning(f"Received exit signal {sig.name}...")
        bot.stop()

    shutdown_signals = [getattr(signal, name) for name in ("SIGHUP", "SIGTERM", "SIGINT") if hasattr(signal, name)]
    for s in shutdown_signals:
        try:
            loop.add_signal_handler(s, on_signal, s)
        except NotImplementedError:
            # Windows event loops have no signal handler support
            pass

    exit_code = 0
    try:
        await bot.run(max_cycles=max_cycles)
    except FatalLoopError as e:
        logger.opt(exception=e).critical(f"Fatal error: {e}")
        exit_code = 1
    finally:
        await bot.shutdown()
        for s in shutdown_signals:
            try:
                loop.remove_signal_handler(s)
            except NotImplementedError:
                pass
    return exit_code


def main(argv=None) -> int:
    """
    The main entry point for the CLI application.

    This function is called by the script defined in pyproject.toml.
    """
    args = build_parser().parse_args(argv)

    try:
        cfg = Config(args.config) if args.config else get_config()
        settings = ProbeSettings.from_config(cfg)
    except (ConfigError, FileNotFoundError, yaml.YAMLError) as e:
        setup_logging(args.log_level, Config.from_dict({}))
        logger.error(f"Invalid configuration: {e}")
        return 1

    setup_logging(args.log_level, cfg)
    if args.cycles is not None and args.cycles <= 0:
        logger.error("--cycles must be a positive integer")
        return 1

    max_cycles = 1 if args.once else args.cycles
    logger.info("Initializing spread probe...")
    try:
        return asyncio.run(run_bot(settings, max_cycles))
    except KeyboardInterrupt:
        logger.info("Program interrupted by user. Shutting down.")
        return 0


if __name__ == "__main__":
    sys.exit(main())

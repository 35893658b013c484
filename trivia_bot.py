#!/usr/bin/env python3
"""
Trivia Bot - game server trivia orchestrator

Connects to NATS, starts the trivia plugin and keeps it running until
interrupted. The game server bridge publishes chat and player events
on NATS and carries out broadcasts, item grants and commands.

usage: trivia_bot.py <config file>
"""

import asyncio
import logging
import signal
from typing import Optional

import nats
from nats.aio.client import Client as NATS

from common.config import get_config
from trivia.plugin import TriviaPlugin

logger = logging.getLogger(__name__)


class TriviaBot:
    """
    Trivia Bot Orchestrator

    Responsibilities:
    1. Connect to NATS
    2. Start the trivia plugin
    3. Coordinate graceful shutdown
    """

    DEFAULT_NATS_URL = "nats://localhost:4222"

    def __init__(self, config: dict, plugin_config: dict):
        self.config = config
        self.plugin_config = plugin_config
        self.nats: Optional[NATS] = None
        self.plugin: Optional[TriviaPlugin] = None

    async def start(self):
        """Start all components in correct order"""
        try:
            nats_url = self.config.get("nats_url", self.DEFAULT_NATS_URL)
            logger.info(f"Connecting to NATS at {nats_url}...")
            self.nats = await nats.connect(nats_url)

            logger.info("Starting trivia plugin...")
            self.plugin = TriviaPlugin(self.nats, self.plugin_config)
            await self.plugin.initialize()

            logger.info("✅ Trivia bot started")
        except Exception as e:
            logger.error(f"Failed to start trivia bot: {e}", exc_info=True)
            await self.stop()
            raise

    async def stop(self):
        """Stop all components in reverse order"""
        logger.info("Shutting down trivia bot...")

        if self.plugin:
            await self.plugin.shutdown()
            self.plugin = None
        if self.nats and self.nats.is_connected:
            await self.nats.drain()
        self.nats = None

        logger.info("✅ Trivia bot stopped")


async def main():
    """Entry point"""
    config, plugin_config = get_config()
    bot = TriviaBot(config, plugin_config)

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            pass  # Windows

    try:
        await bot.start()
        await stop_event.wait()
        logger.info("Received shutdown signal")
    finally:
        await bot.stop()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass

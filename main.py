#!/usr/bin/env python3
"""SafeTube - a guardian-curated YouTube library for kids."""

import argparse
import asyncio
import logging
import os
import secrets
import signal

import uvicorn
from starlette.middleware.sessions import SessionMiddleware

from config import load_config, Config
from data.catalog import Catalog
from data.video_store import VideoStore
from web.app import app as fastapi_app
from web.cache import init_app_state
from web.middleware import SecurityHeadersMiddleware, AccessMiddleware
from youtube.data_api import MetadataResolver, YouTubeDataClient

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("safetube")

# Linked devices stay linked for a long time; the cookie is the link.
_SESSION_MAX_AGE = 180 * 86400


class SafeTube:
    """Main orchestrator - wires the store, resolver and web app, then runs uvicorn."""

    def __init__(self, config: Config):
        self.config = config
        self.video_store = None
        self.running = False

    def _bootstrap_guardian(self) -> None:
        """Ensure at least one guardian exists. Creates the configured one on first run."""
        if self.video_store.get_guardians():
            return
        g = self.config.guardian
        self.video_store.create_guardian(g.id, g.display_name, pin=g.pin)
        logger.info("Created guardian '%s' (PIN: %s)", g.id, "set" if g.pin else "none")

    def _session_secret(self) -> str:
        # Priority: config value > persisted DB value > generate + persist new
        if self.config.web.session_secret:
            return self.config.web.session_secret
        secret = self.video_store.get_setting("session_secret")
        if not secret:
            secret = secrets.token_hex(32)
            self.video_store.set_setting("session_secret", secret)
            logger.info("Generated and persisted new session secret")
        return secret

    async def setup(self) -> None:
        """Initialize all components."""
        db_path = self.config.database.path
        os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
        self.video_store = VideoStore(db_path=db_path)
        logger.info("Database initialized")

        self._bootstrap_guardian()

        yt = self.config.youtube
        client = YouTubeDataClient(yt.api_key, base_url=yt.api_base_url, timeout=yt.request_timeout)
        resolver = MetadataResolver(client, page_size=yt.page_size)

        state = fastapi_app.state
        state.video_store = self.video_store
        state.resolver = resolver
        state.catalog = Catalog(self.video_store, resolver)
        state.web_config = self.config.web
        state.youtube_config = yt
        init_app_state(state, self.config.playback)

        # Last added = outermost; the session must be decoded before access checks
        fastapi_app.add_middleware(SecurityHeadersMiddleware)
        fastapi_app.add_middleware(AccessMiddleware)
        fastapi_app.add_middleware(
            SessionMiddleware, secret_key=self._session_secret(), max_age=_SESSION_MAX_AGE,
        )
        logger.info("Web app initialized")

    async def run(self) -> None:
        """Start everything."""
        self.running = True
        await self.setup()

        config = uvicorn.Config(
            fastapi_app,
            host=self.config.web.host,
            port=self.config.web.port,
            log_level="info",
        )
        server = uvicorn.Server(config)

        stats = self.video_store.get_stats()
        logger.info(
            "SafeTube started - %d videos, %d watches, %d guardians",
            stats["videos"], stats["watches"], stats["guardians"],
        )

        try:
            await server.serve()
        except asyncio.CancelledError:
            logger.info("Server cancelled")

    async def stop(self) -> None:
        """Stop all components."""
        self.running = False
        if self.video_store:
            self.video_store.close()
        logger.info("SafeTube stopped")


async def main() -> None:
    parser = argparse.ArgumentParser(description="SafeTube")
    parser.add_argument("-c", "--config", help="Path to config file", default=None)
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose logging")
    args = parser.parse_args()

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    config = load_config(args.config)
    app = SafeTube(config)

    loop = asyncio.get_running_loop()

    def signal_handler():
        asyncio.create_task(app.stop())

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, signal_handler)
        except NotImplementedError:
            signal.signal(sig, lambda s, f: signal_handler())

    try:
        await app.run()
    except KeyboardInterrupt:
        await app.stop()


def cli() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    cli()

"""
The entry point for the CLI tool
"""
import asyncio

import uvloop
from aiohttp import web

from kiosk import logger
from kiosk.app import build_app
from kiosk.version import __version__, name


def run():
    """Builds the app and serves it on a uvloop event loop."""
    logger.info(f'Starting {name} %s!', __version__)

    loop = uvloop.new_event_loop()
    asyncio.set_event_loop(loop)
    web.run_app(build_app(), loop=loop)


if __name__ == '__main__':
    run()

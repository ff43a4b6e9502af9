"""
The primary entry point to the application, with an aiomonitor console
attached to the running loop.
"""
import asyncio

import aiomonitor
import uvloop
from aiohttp import web

from kiosk import logger, server_mode
from kiosk.app import build_app
from kiosk.version import __version__, name

if __name__ == '__main__':
    logger.info(f'Starting {name} %s!', __version__)

    loop = uvloop.new_event_loop()
    asyncio.set_event_loop(loop)
    loop.set_debug(server_mode == "development")

    app = build_app()
    with aiomonitor.start_monitor(loop=loop, locals={"app": app}):
        web.run_app(app, loop=loop)

"""
Signals
-------

Defines a number of signals that the aiohttp server uses
to bring the kiosk up and down cleanly.

Each signal must accept an the ``app`` argument.
"""
from aiohttp import WSCloseCode
from aiohttp.abc import Application
from tortoise import Tortoise

from kiosk import logger
from kiosk.service.rebuildable import Rebuildable


async def initialize_database(app: Application):
    """Initializes and generates the schema for our database."""
    await Tortoise.init(
        db_url=app['database_uri'],
        modules={'models': ['kiosk.models']}
    )
    await Tortoise.generate_schemas(safe=True)
    logger.info("Connected to %s", app['database_uri'].split("://")[0])


async def rebuild_event_states(app: Application):
    """Rebuilds the event-based state from the database."""
    for rebuildable in (x for x in app.values() if isinstance(x, Rebuildable)):
        await rebuildable._rebuild()


async def close_live_sockets(app: Application):
    """Closes the sockets watching live rentals, which stops their pollers."""
    for socket in set(app['live_sockets']):
        await socket.close(code=WSCloseCode.GOING_AWAY, message=b"Server shutdown")


async def close_database_connections(app: Application):
    """Closes the open database connections."""
    await Tortoise.close_connections()


def register_signals(app, init_database=True):
    """Registers all the signals at the appropriate hooks."""
    if init_database:
        app.on_startup.append(initialize_database)
        app.on_cleanup.append(close_database_connections)

    app.on_startup.append(rebuild_event_states)

    app.on_shutdown.append(close_live_sockets)

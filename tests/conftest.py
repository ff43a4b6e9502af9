from datetime import datetime, timezone
from decimal import Decimal
from itertools import count

import pytest
from aiohttp import web
from aiohttp.test_utils import TestClient
from faker import Faker
from tortoise import Tortoise

from kiosk.middleware import validate_token_middleware
from kiosk.models import Accessory, Cycle, CycleType, Location, PricingSlab, Staff
from kiosk.models.util import StaffRole
from kiosk.service import KioskIndex, MaintenanceManager, RentalManager
from kiosk.service.verify_token import DummyVerifier
from kiosk.signals import register_signals
from kiosk.views import register_views
from tests.util import Clock

fake = Faker()


@pytest.fixture
async def database():
    await Tortoise.init(
        db_url="sqlite://:memory:",
        modules={'models': ['kiosk.models']},
    )
    await Tortoise.generate_schemas(safe=True)
    yield
    await Tortoise.close_connections()


@pytest.fixture
def clock():
    return Clock(datetime(2025, 11, 2, 10, 0, tzinfo=timezone.utc))


@pytest.fixture
def random_staff_factory(database):
    async def create_staff(is_admin=False, is_active=True):
        return await Staff.create(
            auth_id=fake.sha1(), name=fake.name(), email=fake.unique.email(),
            role=StaffRole.ADMIN if is_admin else StaffRole.STAFF, is_active=is_active
        )

    return create_staff


@pytest.fixture
async def random_staff(random_staff_factory) -> Staff:
    return await random_staff_factory()


@pytest.fixture
async def random_admin(random_staff_factory) -> Staff:
    return await random_staff_factory(is_admin=True)


@pytest.fixture
async def location(database) -> Location:
    return await Location.create(name="Main Kiosk")


@pytest.fixture
async def cycle_type(database) -> CycleType:
    return await CycleType.create(name="Standard")


@pytest.fixture
async def pricing_slab(cycle_type, location) -> PricingSlab:
    """A rupee slab of 10 per started 15 minutes."""
    return await PricingSlab.create(cycle_type=cycle_type, location=location, block_minutes=15, price=Decimal("10"))


@pytest.fixture
def random_cycle_factory(cycle_type, location):
    cycle_number = count(101)

    async def create_cycle(**kwargs):
        number = next(cycle_number)
        kwargs.setdefault("code", f"C{number}")
        kwargs.setdefault("tag_id", fake.sha1()[:16])
        cycle = await Cycle.create(cycle_type=cycle_type, location=location, **kwargs)
        await cycle.fetch_related("cycle_type", "location")
        return cycle

    return create_cycle


@pytest.fixture
async def random_cycle(random_cycle_factory, pricing_slab) -> Cycle:
    return await random_cycle_factory()


@pytest.fixture
def random_accessory_factory(database):
    async def create_accessory(name=None, rental_price="20", **kwargs):
        return await Accessory.create(
            name=name if name is not None else fake.word().title(), rental_price=Decimal(rental_price), **kwargs
        )

    return create_accessory


@pytest.fixture
async def helmet(random_accessory_factory) -> Accessory:
    return await random_accessory_factory("Helmet", "20")


@pytest.fixture
def rental_manager(database, clock) -> RentalManager:
    return RentalManager(clock=clock)


@pytest.fixture
def kiosk_index(rental_manager) -> KioskIndex:
    return KioskIndex(rental_manager.hub)


@pytest.fixture
def maintenance_manager(kiosk_index, rental_manager, clock) -> MaintenanceManager:
    manager = MaintenanceManager(kiosk_index, rental_manager=rental_manager, clock=clock)
    kiosk_index.watch(manager.hub)
    return manager


@pytest.fixture
async def random_rental(rental_manager, random_cycle, random_staff):
    """Starts a rental on the random cycle."""
    return await rental_manager.start(random_cycle, random_staff, fake.name())


@pytest.fixture
async def client(aiohttp_client, database, rental_manager, maintenance_manager, kiosk_index) -> TestClient:
    app = web.Application(middlewares=[validate_token_middleware])

    app['rental_manager'] = rental_manager
    app['maintenance_manager'] = maintenance_manager
    app['kiosk_index'] = kiosk_index
    app['estimate_poll_interval'] = 0.05
    app['live_sockets'] = set()
    app['token_verifier'] = DummyVerifier()

    register_signals(app, init_database=False)  # we get the database from a fixture
    register_views(app, "/api/v1")

    return await aiohttp_client(app)

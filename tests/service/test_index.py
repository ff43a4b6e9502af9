from kiosk.models.util import CycleStatus
from kiosk.service import KioskIndex


async def test_cycles_are_cached(kiosk_index: KioskIndex, random_cycle, random_cycle_factory):
    """Assert that the index keeps serving what it read until it is invalidated."""
    assert [cycle.id for cycle in await kiosk_index.cycles()] == [random_cycle.id]

    await random_cycle_factory()
    assert len(await kiosk_index.cycles()) == 1

    kiosk_index.invalidate()
    assert len(await kiosk_index.cycles()) == 2


async def test_rental_invalidates(kiosk_index, rental_manager, random_cycle, random_staff):
    """Assert that starting a rental drops the cached cycles, so the new status is read."""
    cached = await kiosk_index.cycle(random_cycle.id)
    assert cached.status is CycleStatus.AVAILABLE

    await rental_manager.start(random_cycle, random_staff, "Asha Rao")

    assert kiosk_index.invalidations == 1
    assert (await kiosk_index.cycle(random_cycle.id)).status is CycleStatus.IN_USE


async def test_damage_invalidates(kiosk_index, maintenance_manager, random_cycle, random_staff):
    await kiosk_index.cycles()
    await maintenance_manager.toggle_cycle_maintenance(random_cycle)
    await maintenance_manager.report(random_staff, "Flat tyre", cycle=random_cycle)

    assert kiosk_index.invalidations == 2
    assert (await kiosk_index.cycle(random_cycle.id)).status is CycleStatus.MAINTENANCE


async def test_accessories(kiosk_index, helmet, random_accessory_factory):
    await random_accessory_factory("Basket")
    assert [accessory.name for accessory in await kiosk_index.accessories()] == ["Basket", "Helmet"]


async def test_last_rental_for_cycle(kiosk_index, rental_manager, random_cycle_factory, random_staff, pricing_slab,
                                     clock):
    first_cycle, second_cycle = await random_cycle_factory(), await random_cycle_factory()

    await rental_manager.start(first_cycle, random_staff, "Asha Rao")
    clock.advance(minutes=5)
    rental = await rental_manager.start(second_cycle, random_staff, "Ravi")

    assert (await kiosk_index.last_rental_for_cycle(second_cycle)).id == rental.id
    assert (await kiosk_index.last_rental_for_cycle(first_cycle)).cycle_id == first_cycle.id
    assert await kiosk_index.last_rental_for_cycle(999) is None

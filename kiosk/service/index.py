"""
Kiosk Index
-----------

A read-through cache of the lookups the kiosk screens make over and over:
the cycle list, the accessory list and the recent rentals. Nothing is
evicted on a timer. Instead the index listens to the rental and damage
hubs and drops everything whenever one of their events fires, so the
next read goes back to the store.
"""
from typing import Dict, List, Optional, Union

from kiosk import logger
from kiosk.events import EventHub
from kiosk.models import Accessory, Cycle, Rental
from kiosk.models.util import resolve_id
from kiosk.service.access.accessories import get_accessories
from kiosk.service.access.cycles import get_cycles
from kiosk.service.access.rentals import get_last_rental_for_cycle

RECENT_RENTALS = 200
"""How many of the newest rentals are kept in memory."""


class KioskIndex:

    def __init__(self, *hubs: EventHub):
        self._cycles: Optional[Dict[int, Cycle]] = None
        self._accessories: Optional[List[Accessory]] = None
        self._recent_rentals: Optional[List[Rental]] = None
        self.invalidations = 0

        for hub in hubs:
            self.watch(hub)

    def watch(self, hub: EventHub):
        """Invalidates the index whenever any event on the hub fires."""
        for event in hub.events():
            hub.subscribe(event, self.invalidate)

    def invalidate(self, *args):
        self._cycles = None
        self._accessories = None
        self._recent_rentals = None
        self.invalidations += 1

    async def cycles(self) -> List[Cycle]:
        if self._cycles is None:
            self._cycles = {cycle.id: cycle for cycle in await get_cycles()}
            logger.debug("Indexed %s cycles", len(self._cycles))
        return list(self._cycles.values())

    async def cycle(self, cycle_id: int) -> Optional[Cycle]:
        await self.cycles()
        return self._cycles.get(cycle_id)

    async def accessories(self) -> List[Accessory]:
        if self._accessories is None:
            self._accessories = await get_accessories()
        return list(self._accessories)

    async def recent_rentals(self) -> List[Rental]:
        if self._recent_rentals is None:
            self._recent_rentals = await Rental.all().order_by("-start_time", "-id").limit(RECENT_RENTALS)
        return list(self._recent_rentals)

    async def last_rental_for_cycle(self, cycle: Union[Cycle, int]) -> Optional[Rental]:
        """
        Gets the rental most recently started on the cycle.

        The recent rentals are checked first, falling back to the store for
        cycles that have not been out in a while.
        """
        cycle_id = resolve_id(cycle)
        for rental in await self.recent_rentals():
            if rental.cycle_id == cycle_id:
                return rental
        return await get_last_rental_for_cycle(cycle_id)

"""
Cycles
------
"""
from typing import List, Optional

from tortoise.exceptions import BaseORMException

from kiosk.models import Cycle
from kiosk.models.util import CycleStatus


async def get_cycles(*, status: CycleStatus = None, cycle_ids: List[int] = None) -> List[Cycle]:
    """Gets the cycles in the system, optionally only those in the given status."""
    query = Cycle.all()

    if status is not None:
        query = query.filter(status=status)
    if cycle_ids is not None:
        query = query.filter(id__in=cycle_ids)

    return await query.order_by("code").prefetch_related("cycle_type", "location")


async def get_cycle(*, tag: str = None, cycle_id: int = None) -> Optional[Cycle]:
    """
    Gets a cycle by its scanned tag or its id.

    The tag is matched against the RFID tag first and the painted code second,
    since staff type the code in when a tag will not scan.
    """
    if cycle_id is not None:
        return await Cycle.filter(id=cycle_id).first().prefetch_related("cycle_type", "location")

    if not tag:
        return None

    cycle = await Cycle.filter(tag_id=tag).first().prefetch_related("cycle_type", "location")
    if cycle is None:
        cycle = await Cycle.filter(code=tag).first().prefetch_related("cycle_type", "location")
    return cycle


async def set_cycle_status(cycle: Cycle, status: CycleStatus, *, using_db=None) -> Cycle:
    """Writes the status of a cycle. The cycle is left untouched if the write fails."""
    previous, cycle.status = cycle.status, status
    try:
        await cycle.save(update_fields=["status"], using_db=using_db)
    except BaseORMException:
        cycle.status = previous
        raise
    return cycle

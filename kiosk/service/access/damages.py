"""
Damages
-------
"""
from typing import List, Optional

from kiosk.models import DamageReport
from kiosk.models.util import DamageStatus

DAMAGE_RELATIONS = ("cycle", "accessories", "accessories__accessory")


async def get_damage(damage_id: int) -> Optional[DamageReport]:
    return await DamageReport.filter(id=damage_id).first().prefetch_related(*DAMAGE_RELATIONS)


async def get_damages(*, active: bool = None, status: DamageStatus = None) -> List[DamageReport]:
    """
    Gets the damage reports, newest first.

    :param active: If true, only the open reports. If false, only the closed ones.
    :param status: Only the reports in this status.
    """
    query = DamageReport.all()

    if active is not None:
        states = DamageStatus.open_states() if active else DamageStatus.terminal_states()
        query = query.filter(status__in=list(states))
    if status is not None:
        query = query.filter(status=status)

    return await query.order_by("-reported_on", "-id").prefetch_related(*DAMAGE_RELATIONS)


async def count_damages(*states: DamageStatus) -> int:
    query = DamageReport.all()
    if states:
        query = query.filter(status__in=list(states))
    return await query.count()

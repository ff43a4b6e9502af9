"""
Rentals
-------
"""
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Union
from zoneinfo import ZoneInfo

from kiosk.models import Cycle, Rental
from kiosk.models.util import RentalStatus, resolve_id
from kiosk.timestamps import DISPLAY_ZONE, now as utc_now

RENTAL_RELATIONS = ("cycle", "customer", "accessories", "accessories__accessory")

PERIODS = ("today", "week", "month", "year")
"""The periods the rental logs are grouped by."""


def period_start(period: str, now: datetime = None, zone: str = DISPLAY_ZONE) -> datetime:
    """
    Gets the instant a reporting period began, measured on the kiosk wall clock.

    Weeks start on Sunday.

    :raises ValueError: If the period is not one of :data:`PERIODS`.
    """
    local = (now if now is not None else utc_now()).astimezone(ZoneInfo(zone))
    midnight = local.replace(hour=0, minute=0, second=0, microsecond=0)

    if period == "today":
        start = midnight
    elif period == "week":
        # isoweekday counts monday as 1 and sunday as 7
        start = midnight - timedelta(days=local.isoweekday() % 7)
    elif period == "month":
        start = midnight.replace(day=1)
    elif period == "year":
        start = midnight.replace(month=1, day=1)
    else:
        raise ValueError(f"Unknown period {period}, expected one of {', '.join(PERIODS)}.")

    return start.astimezone(timezone.utc)


async def get_rental(rental_id: int) -> Optional[Rental]:
    return await Rental.filter(id=rental_id).first().prefetch_related(*RENTAL_RELATIONS)


async def get_rentals(*, status: RentalStatus = None, period: str = None, now: datetime = None) -> List[Rental]:
    """
    Gets the rental logs, newest first.

    :param status: Only get rentals in this status.
    :param period: Only get rentals started since the beginning of this period.
    :param now: The instant the period is measured from.
    """
    query = Rental.all()

    if status is not None:
        query = query.filter(status=status)
    if period is not None:
        query = query.filter(start_time__gte=period_start(period, now))

    return await query.order_by("-start_time").prefetch_related(*RENTAL_RELATIONS)


async def get_rentals_for_cycle(cycle: Union[Cycle, int]) -> List[Rental]:
    """Gets the rental history of a cycle, newest first."""
    return await Rental.filter(cycle_id=resolve_id(cycle)).order_by("-start_time").prefetch_related(*RENTAL_RELATIONS)


async def get_last_rental_for_cycle(cycle: Union[Cycle, int]) -> Optional[Rental]:
    """Gets the rental most recently started on a cycle, whatever its state."""
    return await Rental.filter(cycle_id=resolve_id(cycle)).order_by("-start_time", "-id").first()


async def get_active_rentals(*, rental_ids: List[int] = None) -> List[Rental]:
    query = Rental.filter(status=RentalStatus.ACTIVE)
    if rental_ids is not None:
        query = query.filter(id__in=rental_ids)
    return await query.order_by("start_time").prefetch_related(*RENTAL_RELATIONS)

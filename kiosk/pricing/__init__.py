"""
The pricing module determines the price of a rental: the cycle is billed per started
block of time at the rate of the slab for its type and kiosk, and every accessory
handed out with it adds its flat rental price.

Both the elapsed minutes and the number of blocks are rounded up, so any partial
minute or block is billed in full.
"""

import math
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, NamedTuple, Optional

from kiosk.models import Accessory, PricingSlab
from kiosk.timestamps import to_instant, now as utc_now

DEFAULT_BLOCK_MINUTES = 15
"""The block length used when a cycle has no slab."""

CENTS = Decimal("0.01")


class PriceEstimate(NamedTuple):
    amount: Decimal
    """The amount owed, rounded to 2 decimal places."""

    minutes: int
    """The elapsed minutes, rounded up."""


def elapsed_minutes(start: datetime, end: datetime) -> int:
    """The minutes from start to end, with any partial minute counted as a full one."""
    return max(0, math.ceil((end - start).total_seconds() / 60))


def price_for(minutes: int, block_minutes: Optional[int], block_price, accessory_prices: Iterable = ()) -> Decimal:
    """
    Prices a rental of the given length.

    >>> price_for(16, 15, 10)
    Decimal('20.00')

    :param minutes: The billed minutes.
    :param block_minutes: The block length, where a missing or zero length falls back to the default.
    :param block_price: The price per started block.
    :param accessory_prices: The price of each accessory rented alongside.
    """
    block_minutes = block_minutes or DEFAULT_BLOCK_MINUTES
    blocks = math.ceil(minutes / block_minutes)
    amount = blocks * Decimal(block_price or 0)
    amount += sum((Decimal(price or 0) for price in accessory_prices), Decimal(0))
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


async def get_slab(cycle_type_id: Optional[int], location_id: Optional[int]) -> Optional[PricingSlab]:
    """Gets the slab for exactly the given cycle type and location, if there is one."""
    if cycle_type_id is None or location_id is None:
        return None
    return await PricingSlab.filter(cycle_type_id=cycle_type_id, location_id=location_id).order_by("id").first()


async def estimate(
    start, accessory_ids: Iterable[int], cycle_type_id: Optional[int], location_id: Optional[int], *,
    now: datetime = None
) -> PriceEstimate:
    """
    Gets the price of a rental so far.

    Accessories are billed at their current price, and each accessory is only billed once.

    :param start: The start of the rental, in any form :func:`~kiosk.timestamps.to_instant` accepts.
    :param accessory_ids: The accessories attached to the rental.
    :param cycle_type_id: The type of the rented cycle.
    :param location_id: The kiosk the cycle was rented from.
    :param now: The instant to price up to, defaulting to the current time.
    :raises ValueError: If the start cannot be parsed.
    """
    start_instant = to_instant(start)
    if start_instant is None:
        raise ValueError(f"Rental start {start!r} is not a valid timestamp.")

    minutes = elapsed_minutes(start_instant, now if now is not None else utc_now())

    slab = await get_slab(cycle_type_id, location_id)
    block_minutes, block_price = (slab.block_minutes, slab.price) if slab is not None else (None, 0)

    accessory_ids = set(accessory_ids)
    accessory_prices = []
    if accessory_ids:
        accessory_prices = await Accessory.filter(id__in=accessory_ids).values_list("rental_price", flat=True)

    return PriceEstimate(price_for(minutes, block_minutes, block_price, accessory_prices), minutes)

"""
Accessories
-----------
"""
from typing import Iterable, List, Optional

from kiosk.models import Accessory
from kiosk.models.util import AccessoryStatus


async def get_accessories(*, status: AccessoryStatus = None, accessory_ids: Iterable[int] = None) -> List[Accessory]:
    """Gets the accessories, optionally filtered by status or id."""
    query = Accessory.all()

    if status is not None:
        query = query.filter(status=status)
    if accessory_ids is not None:
        query = query.filter(id__in=list(accessory_ids))

    return await query.order_by("name")


async def get_accessory(accessory_id: int) -> Optional[Accessory]:
    return await Accessory.filter(id=accessory_id).first()


async def set_accessories_status(accessory_ids: Iterable[int], status: AccessoryStatus, *, using_db=None) -> int:
    """
    Writes the status of a number of accessories.

    :return: The number of accessories updated.
    """
    accessory_ids = list(accessory_ids)
    if not accessory_ids:
        return 0

    query = Accessory.filter(id__in=accessory_ids)
    if using_db is not None:
        query = query.using_db(using_db)

    return await query.update(status=status)

"""
Staff
-----
"""
from typing import List, Optional

from kiosk.models import Staff


async def get_staff(*, auth_id: str = None, staff_id: int = None) -> Optional[Staff]:
    """
    Gets a staff member by the subject of their session token or their id.

    :return: The staff member, or None if there is no match or nothing to match on.
    """
    kwargs = {}
    if auth_id is not None:
        kwargs["auth_id"] = auth_id
    if staff_id is not None:
        kwargs["id"] = staff_id

    if not kwargs:
        return None

    return await Staff.filter(**kwargs).first()


async def get_active_staff() -> List[Staff]:
    return await Staff.filter(is_active=True).order_by("name")

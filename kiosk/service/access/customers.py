"""
Customers
---------
"""
from typing import Optional

from kiosk.models import Customer


async def resolve_customer(full_name: str, phone: Optional[str], *, using_db=None) -> Optional[Customer]:
    """
    Finds the customer with the given phone number, creating them if they are new.

    Customers are keyed by phone alone, so a returning customer keeps the name
    they were first recorded with.

    :return: The customer, or None when no phone was taken.
    """
    phone = phone.strip() if phone else None
    if not phone:
        return None

    query = Customer.filter(phone=phone)
    if using_db is not None:
        query = query.using_db(using_db)

    existing = await query.first()
    if existing is not None:
        return existing

    return await Customer.create(full_name=full_name, phone=phone, using_db=using_db)

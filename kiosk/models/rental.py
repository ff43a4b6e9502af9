"""
Rental
---------------------------

A rental ties one cycle to a customer for a period of time. It is
created active, completed when the cycle comes back, and then
amended twice at the counter: once if the charge is overridden and
once when the payment is recorded. After that it is never written again.
"""

from datetime import datetime
from typing import Dict, Any, Optional

from tortoise import Model, fields

from kiosk.models.util import RentalStatus, PaymentMode, fetched
from kiosk.timestamps import to_instant, to_display_string, format_elapsed


class RentalAccessory(Model):
    id = fields.IntField(pk=True)
    rental = fields.ForeignKeyField("models.Rental", related_name="accessories", on_delete=fields.CASCADE)
    accessory = fields.ForeignKeyField("models.Accessory", related_name="rentals", on_delete=fields.RESTRICT)
    quantity = fields.IntField(default=1)
    price_per_unit = fields.DecimalField(max_digits=10, decimal_places=2, null=True)
    """The accessory price when it was handed out."""

    def serialize(self) -> Dict[str, Any]:
        accessory = self.accessory if isinstance(self.accessory, Model) else None
        return {
            "accessory_id": self.accessory_id,
            "name": accessory.name if accessory is not None else "Unknown",
            "quantity": self.quantity,
            "price_per_unit": self.price_per_unit,
        }

    class Meta:
        table = "rental_accessories"


class Rental(Model):
    id = fields.IntField(pk=True)
    cycle = fields.ForeignKeyField("models.Cycle", related_name="rentals", on_delete=fields.RESTRICT)
    customer = fields.ForeignKeyField("models.Customer", related_name="rentals", null=True, on_delete=fields.SET_NULL)
    staff = fields.ForeignKeyField("models.Staff", related_name="rentals", null=True, on_delete=fields.SET_NULL)
    location = fields.ForeignKeyField("models.Location", related_name="rentals", null=True, on_delete=fields.SET_NULL)

    start_time: datetime = fields.DatetimeField()
    end_time: Optional[datetime] = fields.DatetimeField(null=True)
    duration_minutes = fields.IntField(null=True)
    status = fields.CharEnumField(RentalStatus, default=RentalStatus.ACTIVE)

    calculated_amount = fields.DecimalField(max_digits=10, decimal_places=2, null=True)
    """The amount the pricing engine arrived at."""

    final_amount = fields.DecimalField(max_digits=10, decimal_places=2, null=True)
    """The amount actually charged, which staff may override."""

    payment_mode = fields.CharEnumField(PaymentMode, null=True)
    remarks = fields.TextField(null=True)

    active_cycle_id = fields.IntField(null=True, unique=True)
    """Mirrors the cycle id while the rental is active, so the store rejects a second active rental."""

    @property
    def is_active(self) -> bool:
        return self.status is RentalStatus.ACTIVE

    @property
    def is_paid(self) -> bool:
        return self.payment_mode is not None

    @property
    def is_overridden(self) -> bool:
        return (
            self.final_amount is not None and self.calculated_amount is not None
            and self.final_amount != self.calculated_amount
        )

    @property
    def start_instant(self) -> Optional[datetime]:
        return to_instant(self.start_time)

    @property
    def end_instant(self) -> Optional[datetime]:
        return to_instant(self.end_time)

    @property
    def accessory_ids(self):
        """The attached accessory ids (requires the accessories to be fetched)."""
        return [attachment.accessory_id for attachment in self.accessories]

    def serialize(self, router=None, *, estimate=None, now: datetime = None) -> Dict[str, Any]:
        """
        Serializes the rental.

        :param router: If supplied, urls to the rental and its cycle are included.
        :param estimate: The running price estimate of an active rental.
        :param now: The instant the elapsed time is measured to.
        """
        cycle = self.cycle if isinstance(self.cycle, Model) else None
        customer = self.customer if isinstance(self.customer, Model) else None
        start = self.start_instant

        data = {
            "id": self.id,
            "cycle_id": self.cycle_id,
            "cycle_code": cycle.code if cycle is not None else "Unknown",
            "customer_id": self.customer_id,
            "customer_name": customer.full_name if customer is not None else "Unknown",
            "customer_phone": customer.phone if customer is not None else None,
            "staff_id": self.staff_id,
            "start_time": start,
            "start_display": to_display_string(start),
            "status": self.status,
            "is_active": self.is_active,
            "accessories": [a.serialize() for a in fetched(self.accessories)],
        }

        if router is not None:
            data["url"] = router["rental"].url_for(id=str(self.id)).path
            if cycle is not None:
                data["cycle_url"] = router["cycle"].url_for(tag=cycle.tag_id).path

        if self.end_time is not None:
            data["end_time"] = self.end_instant
            data["end_display"] = to_display_string(self.end_instant)
            data["duration_minutes"] = self.duration_minutes
            data["calculated_amount"] = self.calculated_amount
            data["final_amount"] = self.final_amount
            data["is_overridden"] = self.is_overridden

        if self.is_paid:
            data["payment_mode"] = self.payment_mode
            data["remarks"] = self.remarks

        if estimate is not None:
            data["estimated_amount"] = estimate.amount
            data["elapsed_minutes"] = estimate.minutes
            if now is not None and start is not None:
                data["elapsed"] = format_elapsed(start, now)

        return data

    def __str__(self):
        return f"[{self.status.value}] rental {self.id} on cycle {self.cycle_id}"

    class Meta:
        table = "rentals"

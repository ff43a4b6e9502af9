"""
Accessory
---------------------------

Helmets, baskets, locks and the like, rented out alongside a cycle.
"""
from typing import Dict, Any

from tortoise import Model, fields

from kiosk.models.util import AccessoryStatus


class Accessory(Model):
    id = fields.IntField(pk=True)
    name = fields.CharField(max_length=255)
    description = fields.TextField(null=True)
    rental_price = fields.DecimalField(max_digits=10, decimal_places=2, default=0)
    """The flat price charged per rental."""
    status = fields.CharEnumField(AccessoryStatus, default=AccessoryStatus.AVAILABLE)

    def serialize(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "rental_price": self.rental_price,
            "status": self.status,
        }

    @property
    def is_available(self) -> bool:
        return self.status is AccessoryStatus.AVAILABLE

    def __str__(self):
        return f"[{self.status.value}] {self.name}"

    class Meta:
        table = "accessories"

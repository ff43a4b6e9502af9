"""
Pricing Slab
---------------------------
"""

from tortoise import Model, fields


class PricingSlab(Model):
    """
    The block price for a cycle type at a given kiosk.

    A rental is billed ``price`` for every started block of ``block_minutes``.
    """

    id = fields.IntField(pk=True)
    cycle_type = fields.ForeignKeyField("models.CycleType", related_name="pricing_slabs")
    location = fields.ForeignKeyField("models.Location", related_name="pricing_slabs")
    block_minutes = fields.IntField(default=15)
    price = fields.DecimalField(max_digits=10, decimal_places=2)

    def serialize(self):
        return {
            "id": self.id,
            "cycle_type_id": self.cycle_type_id,
            "location_id": self.location_id,
            "block_minutes": self.block_minutes,
            "price": self.price,
        }

    class Meta:
        table = "pricing"

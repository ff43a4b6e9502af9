"""
Damage Report
---------------------------
"""
from typing import Any, Dict

from tortoise import Model, fields

from kiosk.models.util import DamageStatus, fetched
from kiosk.timestamps import to_instant, to_display_string


class DamageAccessory(Model):
    id = fields.IntField(pk=True)
    damage = fields.ForeignKeyField("models.DamageReport", related_name="accessories", on_delete=fields.CASCADE)
    accessory = fields.ForeignKeyField("models.Accessory", related_name="damages", on_delete=fields.CASCADE)

    class Meta:
        table = "damage_accessories"


class DamageReport(Model):
    id = fields.IntField(pk=True)
    cycle = fields.ForeignKeyField("models.Cycle", null=True, related_name="damages", on_delete=fields.SET_NULL)
    rental = fields.ForeignKeyField("models.Rental", null=True, related_name="damages", on_delete=fields.SET_NULL)
    reported_by = fields.ForeignKeyField("models.Staff", null=True, related_name="damages", on_delete=fields.SET_NULL)
    damage_type = fields.CharField(max_length=255)
    description = fields.TextField(null=True)
    photo_url = fields.CharField(max_length=1024, null=True)
    estimated_cost = fields.DecimalField(max_digits=10, decimal_places=2, null=True)
    status = fields.CharEnumField(DamageStatus, default=DamageStatus.PENDING)
    reported_on = fields.DatetimeField()
    resolved_on = fields.DatetimeField(null=True)
    remarks = fields.TextField(null=True)

    @property
    def is_open(self) -> bool:
        return self.status in DamageStatus.open_states()

    def serialize(self, router=None) -> Dict[str, Any]:
        cycle = self.cycle if isinstance(self.cycle, Model) else None
        accessories = [link.accessory for link in fetched(self.accessories)]

        data = {
            "id": self.id,
            "cycle_id": self.cycle_id,
            "cycle_code": cycle.code if cycle is not None else None,
            "rental_id": self.rental_id,
            "reported_by": self.reported_by_id,
            "damage_type": self.damage_type,
            "description": self.description,
            "photo_url": self.photo_url,
            "estimated_cost": self.estimated_cost,
            "status": self.status,
            "reported_on": to_instant(self.reported_on),
            "reported_display": to_display_string(self.reported_on),
            "remarks": self.remarks,
            "accessories": [
                {"id": accessory.id, "name": accessory.name}
                for accessory in accessories if isinstance(accessory, Model)
            ],
        }

        if router is not None:
            data["url"] = router["damage"].url_for(id=str(self.id)).path

        if self.resolved_on is not None:
            data["resolved_on"] = to_instant(self.resolved_on)

        return data

    def __str__(self):
        return f"[{self.status.value}] {self.damage_type}"

    class Meta:
        table = "damages"

"""
Cycle
-------------------------

Represents a cycle on the kiosk network. A cycle is identified on the floor
by the RFID tag stuck to its frame, and by its painted code everywhere else.

The cycle status is written by the rental manager (``available`` to
``in_use`` and back) and by the maintenance manager (``maintenance``).
"""
from typing import Dict, Any

from tortoise import Model, fields

from kiosk.models.util import CycleStatus


class CycleType(Model):
    id = fields.IntField(pk=True)
    name = fields.CharField(max_length=255)
    base_rate_per_min = fields.DecimalField(max_digits=10, decimal_places=2, null=True)
    description = fields.TextField(null=True)

    def __str__(self):
        return self.name

    class Meta:
        table = "cycle_types"


class Cycle(Model):
    id = fields.IntField(pk=True)
    code: str = fields.CharField(max_length=32, unique=True)
    tag_id: str = fields.CharField(max_length=64, unique=True)
    cycle_type = fields.ForeignKeyField("models.CycleType", related_name="cycles")
    location = fields.ForeignKeyField("models.Location", related_name="cycles")
    status = fields.CharEnumField(CycleStatus, default=CycleStatus.AVAILABLE)
    created_at = fields.DatetimeField(auto_now_add=True)

    def serialize(self, router=None) -> Dict[str, Any]:
        """
        Serializes the cycle into a format that can be turned into JSON.

        The type and location names fall back to "Unknown" when they were not fetched.
        """
        cycle_type = self._fetched_or_none("cycle_type")
        location = self._fetched_or_none("location")

        data = {
            "id": self.id,
            "code": self.code,
            "tag_id": self.tag_id,
            "status": self.status,
            "cycle_type_id": self.cycle_type_id,
            "cycle_type": cycle_type.name if cycle_type is not None else "Unknown",
            "location_id": self.location_id,
            "location": location.name if location is not None else "Unknown",
            "created_at": self.created_at,
        }

        if router is not None:
            data["url"] = router["cycle"].url_for(tag=self.tag_id).path

        return data

    def _fetched_or_none(self, relation: str):
        value = getattr(self, relation, None)
        return value if isinstance(value, Model) else None

    @property
    def is_available(self) -> bool:
        return self.status is CycleStatus.AVAILABLE

    def __str__(self):
        return f"[{self.status.value}] {self.code}"

    class Meta:
        table = "cycles"

"""
Location
---------------------------

A location is a kiosk: the physical place cycles are rented from and returned to.
"""

from tortoise import Model, fields


class Location(Model):
    id = fields.IntField(pk=True)
    name = fields.CharField(max_length=255)

    def serialize(self):
        return {
            "id": self.id,
            "name": self.name,
        }

    def __str__(self):
        return self.name

    class Meta:
        table = "locations"

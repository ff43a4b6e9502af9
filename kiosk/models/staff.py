"""
Staff
---------------------------
"""

from tortoise import Model, fields

from kiosk.models.util import StaffRole


class Staff(Model):
    """
    Represents a staff member operating the kiosks.

    Staff sign in with the external identity provider; ``auth_id``
    is the subject of the tokens it issues.
    """

    id = fields.IntField(pk=True)
    auth_id = fields.CharField(max_length=64, unique=True)

    name = fields.CharField(max_length=255)
    email = fields.CharField(max_length=255, unique=True)

    role: StaffRole = fields.CharEnumField(StaffRole, default=StaffRole.STAFF)
    is_active = fields.BooleanField(default=True)

    @property
    def is_admin(self) -> bool:
        return self.role is StaffRole.ADMIN

    def serialize(self):
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role,
        }

    def __str__(self):
        return f"[{self.id}] {self.name} ({self.email})"

    class Meta:
        table = "staff"

"""
Customer
---------------------------
"""

from tortoise import Model, fields


class Customer(Model):
    """
    A walk-in customer. Customers are only recorded when the
    staff member takes a phone number, which is what they are keyed by.
    """

    id = fields.IntField(pk=True)
    full_name = fields.CharField(max_length=255)
    phone = fields.CharField(max_length=32, unique=True, null=True)
    created_at = fields.DatetimeField(auto_now_add=True)

    def serialize(self):
        return {
            "id": self.id,
            "full_name": self.full_name,
            "phone": self.phone,
        }

    def __str__(self):
        return f"[{self.id}] {self.full_name} ({self.phone})"

    class Meta:
        table = "customers"

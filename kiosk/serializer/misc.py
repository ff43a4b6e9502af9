"""
Request Schemas
---------------

The bodies the kiosk screens send in.
"""

from marshmallow import Schema, validates_schema, ValidationError
from marshmallow.fields import Bool, Decimal, Integer, List, String
from marshmallow.validate import Range

from kiosk.models.util import CycleStatus, DamageStatus, PaymentMode, MAX_AMOUNT
from .fields import EnumField


class RentalStartSchema(Schema):
    """The schema of the start rental request."""
    customer_name = String(required=True, metadata={"description": "The name of the customer."})
    phone = String(allow_none=True, metadata={"description": "Returning customers are matched by phone."})
    accessory_ids = List(Integer(), load_default=list, metadata={"description": "The accessories handed out."})


class OverrideSchema(Schema):
    final_amount = Decimal(
        required=True, validate=Range(max=MAX_AMOUNT), metadata={"description": "The amount to charge instead."}
    )


class PaymentSchema(Schema):
    payment_mode = EnumField(PaymentMode, required=True)
    remarks = String(allow_none=True)


class CycleStatusSchema(Schema):
    status = EnumField(CycleStatus, required=True)


class DamageCreateSchema(Schema):
    """The schema of the damage report request."""
    damage_type = String(required=True)
    cycle_id = Integer(allow_none=True)
    accessory_id = Integer(allow_none=True)
    description = String(allow_none=True)
    photo_url = String(allow_none=True)
    estimated_cost = Decimal(allow_none=True, validate=Range(min=0, max=MAX_AMOUNT))
    status = EnumField(DamageStatus, load_default=DamageStatus.PENDING)
    link_rental = Bool(load_default=False, metadata={"description": "Link the last rental of the cycle."})

    @validates_schema
    def assert_subject(self, data, **kwargs):
        """Asserts that the report is about something."""
        if data.get("cycle_id") is None and data.get("accessory_id") is None:
            raise ValidationError("A report must name a cycle or an accessory.")


class DamageUpdateSchema(Schema):
    status = EnumField(DamageStatus)
    description = String()
    estimated_cost = Decimal(validate=Range(min=0, max=MAX_AMOUNT))
    remarks = String()
    photo_url = String()

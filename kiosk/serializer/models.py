"""
Model Serializers
-----------------

Defines serializers for the various models in the system.
The models build their own dictionaries in ``serialize``,
and these schemas shape those dictionaries into JSON.
"""

from marshmallow import Schema, validates_schema, ValidationError
from marshmallow.fields import Integer, Boolean, String, Email, Nested, DateTime, Url, Dict

from kiosk.models.util import CycleStatus, AccessoryStatus, RentalStatus, PaymentMode, DamageStatus, StaffRole
from .fields import EnumField, Money, Many


class StaffSchema(Schema):
    """The schema corresponding to the :class:`~kiosk.models.staff.Staff` model."""

    id = Integer()
    name = String(required=True)
    email = Email(required=True)
    role = EnumField(StaffRole, required=True)


class CycleSchema(Schema):
    id = Integer(required=True)
    code = String(required=True)
    tag_id = String(required=True)
    status = EnumField(CycleStatus, required=True)
    cycle_type_id = Integer(allow_none=True)
    cycle_type = String()
    location_id = Integer(allow_none=True)
    location = String()
    created_at = DateTime()
    url = Url(relative=True)


class AccessorySchema(Schema):
    id = Integer(required=True)
    name = String(required=True)
    description = String(allow_none=True)
    rental_price = Money()
    status = EnumField(AccessoryStatus, required=True)


class RentalAccessorySchema(Schema):
    accessory_id = Integer(required=True)
    name = String()
    quantity = Integer()
    price_per_unit = Money(allow_none=True)


class EstimateSchema(Schema):
    """A running price estimate for an active rental."""

    rental_id = Integer()
    amount = Money(required=True)
    minutes = Integer(required=True)
    elapsed = String()


class RentalSchema(Schema):
    id = Integer(required=True)
    url = Url(relative=True)

    cycle_id = Integer(required=True)
    cycle_code = String()
    cycle_url = Url(relative=True)

    customer_id = Integer(allow_none=True)
    customer_name = String()
    customer_phone = String(allow_none=True)
    staff_id = Integer(allow_none=True)

    start_time = DateTime(required=True)
    start_display = String()
    end_time = DateTime()
    end_display = String()
    duration_minutes = Integer()

    status = EnumField(RentalStatus, required=True)
    is_active = Boolean(required=True)
    accessories = Many(RentalAccessorySchema())

    calculated_amount = Money(allow_none=True)
    final_amount = Money(allow_none=True)
    is_overridden = Boolean()
    payment_mode = EnumField(PaymentMode, allow_none=True)
    remarks = String(allow_none=True)

    estimated_amount = Money()
    elapsed_minutes = Integer()
    elapsed = String()

    @validates_schema
    def assert_end_time_with_amount(self, data, **kwargs):
        """
        Asserts that when a rental is complete both the amount and end time are included.
        """
        if "end_time" in data and "final_amount" not in data:
            raise ValidationError("If the end time is included, then the final amount must be included.")
        if data.get("is_active") and "end_time" in data:
            raise ValidationError("An active rental cannot have an end time.")


class DamageAccessorySchema(Schema):
    id = Integer(required=True)
    name = String()


class DamageSchema(Schema):
    id = Integer(required=True)
    url = Url(relative=True)

    cycle_id = Integer(allow_none=True)
    cycle_code = String(allow_none=True)
    rental_id = Integer(allow_none=True)
    reported_by = Integer(allow_none=True)
    accessories = Many(DamageAccessorySchema())

    damage_type = String(required=True)
    description = String(allow_none=True)
    photo_url = String(allow_none=True)
    estimated_cost = Money(allow_none=True)
    status = EnumField(DamageStatus, required=True)
    reported_on = DateTime()
    reported_display = String()
    resolved_on = DateTime()
    remarks = String(allow_none=True)


class CycleScanSchema(Schema):
    """What the kiosk screen needs after a tag is scanned."""

    cycle = Nested(CycleSchema(), required=True)
    view = String(required=True)
    accessories = Many(AccessorySchema())
    rental = Nested(RentalSchema())
    estimate = Nested(EstimateSchema())


class MaintenanceSummarySchema(Schema):
    open_damages = Integer(required=True)
    cycles_in_maintenance = Integer(required=True)
    accessories_out = Integer(required=True)
    resolved_damages = Integer(required=True)


class DashboardSchema(Schema):
    total_cycles = Integer(required=True)
    available_cycles = Integer(required=True)
    active_rentals = Integer(required=True)
    active_staff = Integer(required=True)
    open_damages = Integer(required=True)
    rentals = Dict(keys=String(), values=Integer())

"""Marshmallow schema module for SubscriptionChargeModel."""
# pylint: disable=too-few-public-methods
from marshmallow import fields
from marshmallow_sqlalchemy import SQLAlchemyAutoSchema

from donation_service.flask_essentials import database
from donation_service.models.subscription_charge import SubscriptionChargeModel


class SubscriptionChargeSchema( SQLAlchemyAutoSchema ):
    """Marshmallow schema for serialization of SubscriptionChargeModel."""

    amount = fields.Decimal( as_string=True )

    class Meta:
        """Meta object for Marshmallow schema."""

        model = SubscriptionChargeModel
        sqla_session = database.session
